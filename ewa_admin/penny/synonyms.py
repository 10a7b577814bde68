"""Penny Synonym Library.

Maps semantic categories ("outstanding", "paused", "adoption"...) to the
natural-language variants admins actually type. Matching is whole-word only:
"owes" never matches inside "lowest".

Categories are plain data. Adding one here does not require touching the
intent classifier; callers ask by name.
"""
import re
from functools import lru_cache
from typing import Dict, Iterable, List, Optional, Pattern, Tuple


SYNONYMS: Dict[str, List[str]] = {
    "outstanding": [
        "outstanding", "owed", "owes", "owe", "unpaid", "due", "debt",
        "balance due", "amount due", "money owed",
    ],
    "balance": ["balance", "balances", "amount", "total", "sum", "money"],
    "employees": [
        "employees", "employee", "staff", "workers", "worker", "team", "people",
        "person", "member", "members", "users",
    ],
    "enrolled": [
        "enrolled", "enrollees", "signed up", "registered", "participating",
        "opted in", "using", "adopted",
    ],
    "transfers": [
        "transfers", "transfer", "transactions", "withdrawals", "advances",
        "ewa", "wage access", "streamed",
    ],
    "savings": [
        "savings", "saved", "save", "saving", "save account", "save accounts",
        "emergency fund",
    ],
    "adoption": [
        "adoption", "adoption rate", "signup", "sign-up", "enrollment",
        "participation", "usage rate",
    ],
    "paused": [
        "paused", "pause", "blocked", "suspended", "inactive", "disabled",
        "on hold",
    ],
    "company": [
        "company", "companies", "client", "clients", "employer", "employers",
        "organization", "organizations", "customer", "customers",
    ],
    "location": [
        "location", "city", "where", "based", "located", "works", "work", "office",
        "site",
    ],
    "active": ["active", "active users", "active employees", "engaged"],
    "export": ["export", "download", "csv", "spreadsheet"],
    "admin": ["admin", "admins", "administrator", "administrators", "admin email", "contact"],
    "model": ["model", "business model", "pricing model"],
    "live": ["live", "launched", "went live", "go live", "launch"],
    "ranking": ["top", "highest", "most", "best", "largest", "biggest", "leading", "ranking", "rank"],
    "ranking_low": ["lowest", "bottom", "least", "worst", "smallest", "fewest"],
    "status": ["status", "state", "enrollment status"],
    "compare": ["compare", "comparison", "versus", "vs", "against"],
    "above": ["above", "over", "more than", "greater than", "at least", "exceeding"],
    "below": ["below", "under", "less than", "fewer than", "lower than"],
    "profile": ["tell me about", "about", "profile", "details", "info", "information", "who is", "look up", "lookup"],
    "list": ["list", "show", "who", "which", "all"],
    "count": ["how many", "number of", "count"],
    "report": ["report", "reports"],
}

# A question about a group ("which employees have their...") is not a follow-up
_PLURAL_SUBJECT_RE = re.compile(
    r"^\s*(?:which|who|list|show(?: me)?(?: all)?|do any|are any)\s+(?:of (?:the |our )?)?"
    r"(?:employees|people|staff|workers|users|members|companies|clients|employers|customers|organizations)\b"
    r"|\b(?:everyone|anyone|everybody|anybody)\b",
    re.IGNORECASE,
)

# A plural pronoun pointing back to a group named earlier in the question
# ("employees with their savings", "who owes and how much do they owe")
_GROUP_ANTECEDENT_RE = re.compile(
    r"\b(?:employees|people|staff|workers|users|members|companies|clients|employers|customers|organizations"
    r"|everyone|anyone|balances|accounts)\b.*\b(?:they|them|their|theirs)\b"
    r"|^\s*(?:who|which)\s+(?!(?:is|are|was|were|of)\b)\w+.*\b(?:they|them|their|theirs)\b",
    re.IGNORECASE,
)

PRONOUNS: List[str] = [
    "they", "them", "their", "theirs", "he", "him", "his", "she", "her", "hers",
    "this person", "that person", "this employee", "that employee",
]

COMPANY_PRONOUNS: List[str] = ["it", "its", "this company", "that company", "this client", "that client"]


def _variant_pattern(variant: str) -> str:
    # Multi-word variants tolerate any run of whitespace between words
    words = [re.escape(w) for w in variant.split()]
    return r"\s+".join(words)


@lru_cache(maxsize=None)
def _compile(variants: Tuple[str, ...]) -> Pattern:
    # Longest variant first so "balance due" wins over "balance"
    ordered = sorted(variants, key=len, reverse=True)
    alternation = "|".join(_variant_pattern(v) for v in ordered)
    return re.compile(rf"(?<![\w-])(?:{alternation})(?![\w-])", re.IGNORECASE)


def _variants(category: str) -> Tuple[str, ...]:
    try:
        return tuple(SYNONYMS[category])
    except KeyError:
        raise KeyError(f"Unknown synonym category: {category}") from None


def contains_phrase(query: str, phrases: Iterable[str]) -> bool:
    """True if any phrase occurs in the query as a whole word/phrase."""
    phrases = tuple(phrases)
    if not phrases:
        return False
    return _compile(phrases).search(query) is not None


def matches(query: str, category: str) -> bool:
    """True if the query contains any variant of the category as a whole word."""
    return _compile(_variants(category)).search(query) is not None


def count_matches(query: str, category: str) -> int:
    """Number of distinct variants of the category present in the query."""
    found = set()
    for variant in _variants(category):
        if _compile((variant,)).search(query):
            found.add(variant)
    return len(found)


def best_category(query: str, categories: Iterable[str]) -> Optional[str]:
    """
    The category with the most matched variants.

    Ties go to the category listed first; None when nothing matches.
    """
    best: Optional[str] = None
    best_count = 0
    for category in categories:
        count = count_matches(query, category)
        if count > best_count:
            best, best_count = category, count
    return best


def has_pronoun(query: str) -> bool:
    return contains_phrase(query, PRONOUNS) or contains_phrase(query, COMPANY_PRONOUNS)


def has_company_pronoun(query: str) -> bool:
    return contains_phrase(query, COMPANY_PRONOUNS)


def has_plural_subject(query: str) -> bool:
    return _PLURAL_SUBJECT_RE.search(query) is not None


def has_group_antecedent(query: str) -> bool:
    return _GROUP_ANTECEDENT_RE.search(query) is not None


def categories() -> List[str]:
    return list(SYNONYMS)
