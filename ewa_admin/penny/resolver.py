"""Penny Entity Resolver.

Resolves free-text name fragments against the employee, company and
partnership names of one data snapshot.

Matching order:
1. Exact match on the normalized name (case, whitespace and possessive 's
   ignored). Several employees sharing a display name is EXACT_MANY, never
   a guess.
2. Fuzzy candidates: word-prefix matches found by binary search over a
   sorted word index, plus rapidfuzz token-sort similarity above
   PENNY_FUZZY_MIN_SCORE. Results are memoized per fragment, so repeated
   fragments never rescan the corpus.

A resolver is built once per snapshot and reused for every conversation
reading that snapshot.
"""
import bisect
import logging
from dataclasses import dataclass, field
from enum import Enum
from functools import lru_cache
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from rapidfuzz import fuzz, process

from ewa_admin.config import settings
from ewa_admin.data.records import CompanyRecord, EmployeeRecord, Suggestions
from ewa_admin.data.snapshot import TOKEN_RE, DataSnapshot, name_key

logger = logging.getLogger(__name__)

# Upper bound on prefix candidates collected before ranking
PREFIX_SCAN_LIMIT = 200

# Longest name (in words) the mention scanner will try to match
MAX_NAME_WORDS = 8

# Single-word names that are also everyday query words are never treated as mentions
MENTION_STOPWORDS = frozenset({
    "a", "an", "the", "all", "any", "and", "or", "of", "at", "in", "on", "for",
    "by", "to", "is", "are", "me", "my", "our", "top", "show", "list", "total",
    "live", "active", "paused", "who", "what", "which", "how", "many", "much",
})


class MatchKind(str, Enum):
    """Outcome of a name lookup."""
    EXACT_ONE = "exact_one"
    EXACT_MANY = "exact_many"
    FUZZY = "fuzzy"
    NONE = "none"


class EntityType(str, Enum):
    """Kinds of named things Penny can recognise in a query."""
    EMPLOYEE = "employee"
    COMPANY = "company"
    PARTNERSHIP = "partnership"
    MODEL = "model"
    LOCATION = "location"


@dataclass(frozen=True)
class EmployeeMatch:
    kind: MatchKind
    employees: Tuple[EmployeeRecord, ...] = ()

    @property
    def employee(self) -> Optional[EmployeeRecord]:
        return self.employees[0] if self.kind == MatchKind.EXACT_ONE else None


@dataclass(frozen=True)
class CompanyMatch:
    kind: MatchKind
    companies: Tuple[CompanyRecord, ...] = ()

    @property
    def company(self) -> Optional[CompanyRecord]:
        return self.companies[0] if self.kind == MatchKind.EXACT_ONE else None


@dataclass(frozen=True)
class Mention:
    """A known name found in a query, as a character span of that query."""
    entity: EntityType
    name: str
    start: int
    end: int
    employees: Tuple[EmployeeRecord, ...] = ()
    company: Optional[CompanyRecord] = None


@dataclass
class QueryToken:
    text: str
    start: int
    end: int


def query_tokens(query: str) -> List[QueryToken]:
    """Tokens of the raw query with character offsets (same rules as name_tokens)."""
    tokens: List[QueryToken] = []
    lowered = query.lower().replace("’", "'")
    for match in TOKEN_RE.finditer(lowered):
        text = match.group(0)
        end = match.end()
        if text.endswith("'s"):
            text = text[:-2]
            end -= 2
        if text:
            tokens.append(QueryToken(text=text, start=match.start(), end=end))
    return tokens


@dataclass
class _NameIndex:
    """Sorted word index over one set of normalized names."""
    keys: List[str] = field(default_factory=list)
    words: List[Tuple[str, str]] = field(default_factory=list)

    @classmethod
    def build(cls, keys: Iterable[str]) -> "_NameIndex":
        unique = sorted(set(k for k in keys if k))
        words = sorted({(word, key) for key in unique for word in key.split()})
        return cls(keys=unique, words=words)

    def prefix_candidates(self, fragment_key: str, limit: int = PREFIX_SCAN_LIMIT) -> List[str]:
        """Names in which every fragment word is a prefix of some name word."""
        parts = fragment_key.split()
        if not parts:
            return []
        # The longest fragment word narrows the bisect range the most
        anchor = max(parts, key=len)
        if len(anchor) < 2:
            return []

        found: List[str] = []
        seen = set()
        i = bisect.bisect_left(self.words, (anchor, ""))
        while i < len(self.words) and self.words[i][0].startswith(anchor):
            key = self.words[i][1]
            i += 1
            if key in seen:
                continue
            seen.add(key)
            name_words = key.split()
            if all(any(w.startswith(p) for w in name_words) for p in parts):
                found.append(key)
                if len(found) >= limit:
                    break
        return found


class EntityResolver:
    """Name lookup over one DataSnapshot."""

    @classmethod
    def for_snapshot(cls, snapshot: DataSnapshot) -> "EntityResolver":
        """Return the resolver cached on a snapshot, building it on first use."""
        return snapshot.derived("resolver", lambda: cls(snapshot))

    def __init__(
        self,
        snapshot: DataSnapshot,
        min_score: Optional[float] = None,
        suggestion_limit: Optional[int] = None,
        cache_size: Optional[int] = None,
    ):
        self.snapshot = snapshot
        self.min_score = settings.PENNY_FUZZY_MIN_SCORE if min_score is None else min_score
        self.suggestion_limit = suggestion_limit or settings.PENNY_SUGGESTION_LIMIT

        self._employees_by_key: Dict[str, List[EmployeeRecord]] = {}
        for employee in snapshot.employees:
            key = name_key(employee.full_name)
            if key:
                self._employees_by_key.setdefault(key, []).append(employee)

        # Companies named only on employee rows still resolve, with no counts
        self._companies_by_key: Dict[str, CompanyRecord] = {}
        for company in snapshot.companies:
            self._companies_by_key.setdefault(name_key(company.name), company)
        for employee in snapshot.employees:
            if employee.company:
                key = name_key(employee.company)
                if key and key not in self._companies_by_key:
                    self._companies_by_key[key] = CompanyRecord(name=employee.company.strip())

        self._partnerships = {name_key(p): p for p in snapshot.partnerships()}
        self._models = {name_key(m): m for m in snapshot.models()}
        self._locations = {name_key(loc): loc for loc in snapshot.locations()}

        self._employee_index = _NameIndex.build(self._employees_by_key)
        self._company_index = _NameIndex.build(self._companies_by_key)

        self._mention_words = max(
            [len(k.split()) for k in self._employees_by_key]
            + [len(k.split()) for k in self._companies_by_key]
            + [len(k.split()) for k in self._partnerships]
            + [len(k.split()) for k in self._locations]
            + [1],
        )
        self._mention_words = min(self._mention_words, MAX_NAME_WORDS)

        size = cache_size or settings.PENNY_FUZZY_CACHE_SIZE
        self._fuzzy_employee_keys = lru_cache(maxsize=size)(self._rank_employee_keys)
        self._fuzzy_company_keys = lru_cache(maxsize=size)(self._rank_company_keys)

        logger.debug(
            f"Built resolver for snapshot v{snapshot.version}: "
            f"{len(self._employees_by_key)} employee names, {len(self._companies_by_key)} companies"
        )

    # ==========================================================================
    # Lookups
    # ==========================================================================

    def company_named(self, name: str) -> Optional[CompanyRecord]:
        return self._companies_by_key.get(name_key(name))

    def employees_named(self, name: str) -> List[EmployeeRecord]:
        return list(self._employees_by_key.get(name_key(name), ()))

    def employee_at(self, name: str, company: Optional[str]) -> Optional[EmployeeRecord]:
        """The employee with this name at this company (first if still ambiguous)."""
        matches = self.employees_named(name)
        if company:
            company_key = name_key(company)
            at_company = [e for e in matches if name_key(e.company) == company_key]
            if at_company:
                return at_company[0]
        return matches[0] if len(matches) == 1 else None

    def company_names(self) -> List[str]:
        return sorted((c.name for c in self._companies_by_key.values()), key=str.lower)

    def resolve_employee(self, fragment: str) -> EmployeeMatch:
        """Exact one, exact many (shared display name), fuzzy candidates, or none."""
        key = name_key(fragment)
        if not key:
            return EmployeeMatch(MatchKind.NONE)

        exact = self._employees_by_key.get(key)
        if exact:
            kind = MatchKind.EXACT_ONE if len(exact) == 1 else MatchKind.EXACT_MANY
            return EmployeeMatch(kind, tuple(exact))

        keys = self._fuzzy_employee_keys(key)
        if not keys:
            return EmployeeMatch(MatchKind.NONE)
        employees = tuple(e for k in keys for e in self._employees_by_key[k])
        return EmployeeMatch(MatchKind.FUZZY, employees)

    def resolve_company(self, fragment: str) -> CompanyMatch:
        key = name_key(fragment)
        if not key:
            return CompanyMatch(MatchKind.NONE)

        exact = self._companies_by_key.get(key)
        if exact is not None:
            return CompanyMatch(MatchKind.EXACT_ONE, (exact,))

        keys = self._fuzzy_company_keys(key)
        if not keys:
            return CompanyMatch(MatchKind.NONE)
        return CompanyMatch(MatchKind.FUZZY, tuple(self._companies_by_key[k] for k in keys))

    def resolve_partnership(self, fragment: str) -> Optional[str]:
        """Exact partnership label, or the only label starting with the fragment."""
        key = name_key(fragment)
        if not key:
            return None
        if key in self._partnerships:
            return self._partnerships[key]
        prefixed = [label for k, label in self._partnerships.items() if k.startswith(key)]
        return prefixed[0] if len(prefixed) == 1 else None

    def companies_in_partnership(self, partnership: str) -> List[CompanyRecord]:
        return self.snapshot.companies_in_partnership(partnership)

    def suggest(self, term: str) -> Suggestions:
        """Did-you-mean names for a term, best first, bounded per type."""
        key = name_key(term)
        if not key:
            return Suggestions()

        if key in self._employees_by_key:
            employee_keys: Sequence[str] = [key]
        else:
            employee_keys = self._fuzzy_employee_keys(key)
        if key in self._companies_by_key:
            company_keys: Sequence[str] = [key]
        else:
            company_keys = self._fuzzy_company_keys(key)

        return Suggestions(
            employees=[self._employees_by_key[k][0].full_name for k in employee_keys][: self.suggestion_limit],
            companies=[self._companies_by_key[k].name for k in company_keys][: self.suggestion_limit],
        )

    # ==========================================================================
    # Fuzzy ranking
    # ==========================================================================

    def _rank(self, fragment_key: str, index: _NameIndex) -> Tuple[str, ...]:
        scores: Dict[str, float] = {}

        for key in index.prefix_candidates(fragment_key):
            # Prefix hits rank above typo matches; closer lengths rank higher
            scores[key] = 100.0 + fuzz.ratio(fragment_key, key) / 100.0

        for key, score, _ in process.extract(
            fragment_key,
            index.keys,
            scorer=fuzz.token_sort_ratio,
            score_cutoff=self.min_score,
            limit=self.suggestion_limit * 2,
        ):
            scores[key] = max(scores.get(key, 0.0), score)

        ranked = sorted(scores.items(), key=lambda item: (-item[1], item[0]))
        return tuple(key for key, _ in ranked[: self.suggestion_limit])

    def _rank_employee_keys(self, fragment_key: str) -> Tuple[str, ...]:
        return self._rank(fragment_key, self._employee_index)

    def _rank_company_keys(self, fragment_key: str) -> Tuple[str, ...]:
        return self._rank(fragment_key, self._company_index)

    # ==========================================================================
    # Mentions
    # ==========================================================================

    def find_mentions(self, query: str) -> List[Mention]:
        """
        Known names appearing in a query as whole words.

        Longer names win over shorter names they overlap ("Acme Co Holdings"
        beats "Acme Co"). The same name mentioned twice yields two mentions.
        Results are ordered by position in the query.
        """
        tokens = query_tokens(query)
        if not tokens:
            return []

        spans: List[Tuple[int, int, str]] = []
        for i in range(len(tokens)):
            for length in range(min(self._mention_words, len(tokens) - i), 0, -1):
                key = " ".join(t.text for t in tokens[i:i + length])
                if length == 1 and key in MENTION_STOPWORDS:
                    continue
                if self._is_known(key):
                    spans.append((i, length, key))

        spans.sort(key=lambda s: (-s[1], s[0]))
        taken = [False] * len(tokens)
        chosen: List[Tuple[int, int, str]] = []
        for i, length, key in spans:
            if any(taken[i:i + length]):
                continue
            for j in range(i, i + length):
                taken[j] = True
            chosen.append((i, length, key))
        chosen.sort()

        mentions: List[Mention] = []
        for i, length, key in chosen:
            start, end = tokens[i].start, tokens[i + length - 1].end
            mentions.extend(self._mentions_for(key, start, end))
        return mentions

    def _is_known(self, key: str) -> bool:
        return (
            key in self._employees_by_key
            or key in self._companies_by_key
            or key in self._partnerships
            or key in self._models
            or key in self._locations
        )

    def _mentions_for(self, key: str, start: int, end: int) -> List[Mention]:
        found: List[Mention] = []
        if key in self._employees_by_key:
            employees = tuple(self._employees_by_key[key])
            found.append(Mention(EntityType.EMPLOYEE, employees[0].full_name, start, end, employees=employees))
        if key in self._companies_by_key:
            company = self._companies_by_key[key]
            found.append(Mention(EntityType.COMPANY, company.name, start, end, company=company))
        if key in self._partnerships:
            found.append(Mention(EntityType.PARTNERSHIP, self._partnerships[key], start, end))
        if key in self._models:
            found.append(Mention(EntityType.MODEL, self._models[key], start, end))
        if key in self._locations:
            found.append(Mention(EntityType.LOCATION, self._locations[key], start, end))
        return found

