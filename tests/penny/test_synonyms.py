"""Unit tests for the Penny synonym library."""
import pytest

from ewa_admin.penny import synonyms


class TestMatching:
    """Whole-word matching of synonym variants."""

    def test_matches_variant(self):
        """Any variant of a category matches."""
        assert synonyms.matches("Who owes money?", "outstanding")
        assert synonyms.matches("Show suspended staff", "paused")

    def test_whole_words_only(self):
        """'owes' must not match inside 'lowest'."""
        assert not synonyms.matches("lowest adoption", "outstanding")

    def test_multi_word_variant_tolerates_whitespace(self):
        assert synonyms.matches("what is the  balance   due", "outstanding")

    def test_case_insensitive(self):
        assert synonyms.matches("SHOW SAVINGS", "savings")

    def test_unknown_category_raises(self):
        """Asking for a category that doesn't exist is a programming error."""
        with pytest.raises(KeyError, match="no_such_category"):
            synonyms.matches("anything", "no_such_category")


class TestBestCategory:
    """Choosing between categories that all fire."""

    def test_most_variants_wins(self):
        """Two outstanding variants beat one savings variant."""
        query = "who owes money and has an unpaid balance in savings"
        assert synonyms.best_category(query, ["savings", "outstanding"]) == "outstanding"

    def test_tie_goes_to_first_listed(self):
        assert synonyms.best_category("paused employees", ["paused", "employees"]) == "paused"
        assert synonyms.best_category("paused employees", ["employees", "paused"]) == "employees"

    def test_no_match_is_none(self):
        assert synonyms.best_category("hello there", ["paused", "savings"]) is None


class TestPronouns:
    """Pronoun and plural-subject detection for follow-ups."""

    def test_person_pronoun(self):
        assert synonyms.has_pronoun("What about their adoption?")
        assert synonyms.has_pronoun("Is she enrolled?")

    def test_company_pronoun(self):
        assert synonyms.has_company_pronoun("How many admins does this company have?")
        assert not synonyms.has_company_pronoun("Is she enrolled?")

    def test_plural_subject(self):
        """Questions about a group are not follow-ups."""
        assert synonyms.has_plural_subject("Which employees have their savings set up?")
        assert synonyms.has_plural_subject("Does anyone owe money?")
        assert not synonyms.has_plural_subject("What about their adoption?")

    def test_group_antecedent(self):
        """A plural pronoun can point back to a group in the same question."""
        assert synonyms.has_group_antecedent("How many employees have their savings account?")
        assert synonyms.has_group_antecedent("Who owes money and how much do they owe?")
        assert synonyms.has_group_antecedent("Show outstanding balances and their companies")
        assert not synonyms.has_group_antecedent("What about their adoption?")
        assert not synonyms.has_group_antecedent("Who are their admins?")

    def test_categories_are_plain_data(self):
        assert "outstanding" in synonyms.categories()
        assert "profile" in synonyms.categories()
