"""Tests for the rotating example prompts."""
import random

from ewa_admin.penny.examples import (
    EXAMPLE_PROMPTS,
    FALLBACK_COMPANY,
    FALLBACK_EMPLOYEE,
    RANDOM_COMPANY,
    RANDOM_EMPLOYEE,
    SHOW_COUNT,
    rotating_examples,
    substitute_names,
)


class TestSubstituteNames:
    """Placeholder replacement."""

    def test_replaces_text_and_display_text(self):
        prompt = EXAMPLE_PROMPTS[2]
        filled = substitute_names(prompt, employee="Jane Smith")
        assert filled.text == "Is Jane Smith enrolled?"
        assert prompt.text == f"Is {RANDOM_EMPLOYEE} enrolled?"

    def test_fallbacks_while_loading(self):
        filled = substitute_names(EXAMPLE_PROMPTS[8])
        assert filled.text == f"Tell me about {FALLBACK_COMPANY}"

    def test_display_text_kept(self):
        stats = next(p for p in EXAMPLE_PROMPTS if p.display_text)
        assert substitute_names(stats).display_text == "Show US stats"


class TestRotatingExamples:
    """The window shown in the "Try asking" panel."""

    def test_window_size_and_start(self):
        window = rotating_examples(0)
        assert len(window) == SHOW_COUNT
        assert window[0].text == EXAMPLE_PROMPTS[0].text

    def test_wraps_around(self):
        total = len(EXAMPLE_PROMPTS)
        window = rotating_examples(total - 2)
        assert window[2].text == EXAMPLE_PROMPTS[0].text
        assert rotating_examples(total)[0].text == EXAMPLE_PROMPTS[0].text

    def test_names_from_snapshot(self, sample_snapshot):
        window = rotating_examples(2, sample_snapshot, rng=random.Random(7))
        employees = {e.full_name for e in sample_snapshot.employees}
        name = window[0].text[len("Is "):-len(" enrolled?")]
        assert name in employees
        # One employee per call, shared by the whole window
        assert window[3].text == f"Does {name} have an outstanding balance?"

    def test_no_snapshot_uses_fallbacks(self):
        texts = " ".join(p.text for p in rotating_examples(2))
        assert FALLBACK_EMPLOYEE in texts
        assert RANDOM_EMPLOYEE not in texts
        assert RANDOM_COMPANY not in texts
