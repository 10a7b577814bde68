"""Tests for the Penny response synthesizer."""
from ewa_admin.penny.builders.base import FALLBACK_MENU, MAX_SUGGESTIONS
from ewa_admin.penny.schemas import Answer, AnswerKind, EntityName
from ewa_admin.penny.synthesizer import candidate_names, finalize_suggestions, find_spans, synthesize


class TestFindSpans:
    """Entity names located in answer text."""

    def test_longest_name_wins(self):
        names = {"Acme Co": "company", "Acme Co Holdings": "company"}
        spans = find_spans("Acme Co Holdings and Acme Co", names)
        assert [(s.start, s.end, s.name) for s in spans] == [(0, 16, "Acme Co Holdings"), (21, 28, "Acme Co")]

    def test_case_sensitive_whole_words(self):
        names = {"Jane Smith": "employee"}
        assert find_spans("jane smith and Jane Smithers", names) == []

    def test_markdown_bold(self):
        spans = find_spans("**Jane Smith** is Active.", {"Jane Smith": "employee"})
        assert [(s.start, s.end, s.entity) for s in spans] == [(2, 12, "employee")]

    def test_empty(self):
        assert find_spans("", {"Jane Smith": "employee"}) == []
        assert find_spans("Jane Smith", {}) == []


class TestCandidateNames:
    """The capped set of names to highlight."""

    def test_answer_entities_come_first(self, sample_snapshot):
        answer = Answer(
            kind=AnswerKind.SINGLE_VALUE, text="x",
            entities=[EntityName(name="Priya Patel", entity="employee")],
        )
        names = candidate_names(answer, sample_snapshot, cap=1)
        assert names == {"Priya Patel": "employee"}

    def test_cap_takes_longest_snapshot_names(self, sample_snapshot):
        answer = Answer(kind=AnswerKind.SINGLE_VALUE, text="x")
        names = candidate_names(answer, sample_snapshot, cap=2)
        assert list(names) == ["Stark Industries", "Umbrella Corp"]

    def test_without_snapshot(self):
        answer = Answer(kind=AnswerKind.SINGLE_VALUE, text="x", entities=[EntityName(name="Al", entity="employee")])
        assert candidate_names(answer, None) == {}


class TestSynthesize:
    """Building the external response."""

    def test_not_found_leads_with_menu(self):
        answer = Answer(kind=AnswerKind.NOT_FOUND, text="Nope", suggestions=["Tell me about Acme Co"])
        suggestions = finalize_suggestions(answer)
        assert suggestions[:len(FALLBACK_MENU)] == FALLBACK_MENU
        assert len(suggestions) <= MAX_SUGGESTIONS

    def test_suggestions_deduplicated(self):
        answer = Answer(kind=AnswerKind.SINGLE_VALUE, text="x", suggestions=["a", "b", "a"])
        assert finalize_suggestions(answer) == ["a", "b"]

    def test_response_fields(self, sample_snapshot):
        answer = Answer(
            kind=AnswerKind.SINGLE_VALUE,
            text="**Jane Smith** works at Acme Co (Austin).",
            entities=[EntityName(name="Jane Smith", entity="employee"), EntityName(name="Acme Co", entity="company")],
        )
        response = synthesize(answer, "conv_1", sample_snapshot)
        assert response.conversation_id == "conv_1"
        assert response.kind == AnswerKind.SINGLE_VALUE
        assert [(s.name, s.entity) for s in response.spans] == [("Jane Smith", "employee"), ("Acme Co", "company")]
        assert response.suggestions is None
        assert response.actions is None

    def test_camel_case_on_the_wire(self):
        response = synthesize(Answer(kind=AnswerKind.SINGLE_VALUE, text="hi"), "conv_1")
        dumped = response.model_dump(by_alias=True)
        assert dumped["conversationId"] == "conv_1"
        assert "richContent" in dumped
        assert dumped["kind"] == AnswerKind.SINGLE_VALUE
