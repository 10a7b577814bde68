"""Penny Intent Classification Module.

Decides which answer builder handles a question, and with which entities.

Steps, in order:
1. A pending disambiguation is resumed when the admin picks one of the
   offered names (by name or by number).
2. Conversational intents (greeting, help, reports, export, list filter).
3. Pronoun follow-ups ("what about their adoption?") are rewritten with the
   remembered employee or company and classified again.
4. Known names are extracted from the query, longest first.
5. Synonym categories pick the intent. When several categories fire, the one
   with the most matched variants wins.
6. A name-like fragment that matches nothing exactly goes to the resolver's
   fuzzy candidates and becomes a disambiguation.
"""
import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from ewa_admin.config import settings
from ewa_admin.data.records import CompanyRecord, EmployeeRecord
from ewa_admin.data.snapshot import name_key
from ewa_admin.penny import synonyms
from ewa_admin.penny.context import Candidate, ConversationContext, PendingDisambiguation
from ewa_admin.penny.resolver import EntityResolver, EntityType, MatchKind, Mention, query_tokens

logger = logging.getLogger(__name__)


class Intent(str, Enum):
    """What the admin is asking for."""
    # Conversational
    GREETING = "greeting"
    HELP = "help"
    REPORTS = "reports"
    EXPORT = "export"
    FILTER_LIST = "filter_list"

    # Comparison, ranking, thresholds
    COMPARE_COMPANIES = "compare_companies"
    COMPARE_EMPLOYEES = "compare_employees"
    ADOPTION_THRESHOLD = "adoption_threshold"
    TOP_COMPANIES = "top_companies"

    # Company counts
    COMPANY_COUNT_LIVE = "company_count_live"
    PARTNERSHIP_COMPANIES = "partnership_companies"
    MODEL_COMPANIES = "model_companies"

    # One company
    COMPANY_LIVE = "company_live"
    COMPANY_MODEL = "company_model"
    COMPANY_ADMINS = "company_admins"
    COMPANY_ACTIVE = "company_active"
    COMPANY_ENROLLED = "company_enrolled"
    COMPANY_ADOPTION = "company_adoption"
    COMPANY_EMPLOYEE_COUNT = "company_employee_count"
    COMPANY_EMPLOYEES = "company_employees"
    COMPANY_SAVINGS = "company_savings"
    COMPANY_OUTSTANDING = "company_outstanding"
    COMPANY_TRANSFERS = "company_transfers"
    COMPANY_PROFILE = "company_profile"

    # One employee
    EMPLOYEE_STATUS = "employee_status"
    EMPLOYEE_LOCATION = "employee_location"
    EMPLOYEE_SAVINGS = "employee_savings"
    EMPLOYEE_OUTSTANDING = "employee_outstanding"
    EMPLOYEE_TRANSFERS = "employee_transfers"
    EMPLOYEE_PROFILE = "employee_profile"
    DUPLICATE_EMPLOYEES = "duplicate_employees"

    # Portal-wide overviews and lists
    PAUSED_EMPLOYEES = "paused_employees"
    OUTSTANDING_OVERVIEW = "outstanding_overview"
    SAVINGS_OVERVIEW = "savings_overview"
    ADOPTION_OVERVIEW = "adoption_overview"
    TRANSFER_OVERVIEW = "transfer_overview"
    COMPANY_SUMMARY = "company_summary"
    EMPLOYEE_LIST = "employee_list"
    EMPLOYEES_BY_LOCATION = "employees_by_location"

    # Fallbacks
    DISAMBIGUATION = "disambiguation"
    NOT_FOUND = "not_found"
    UNKNOWN = "unknown"


class QueryError(str, Enum):
    """Why a question could not be answered directly."""
    NO_MATCH = "no_match"
    AMBIGUOUS = "ambiguous"
    DATA_UNAVAILABLE = "data_unavailable"
    MALFORMED = "malformed"


class Metric(str, Enum):
    """Company metrics that rankings and comparisons can use."""
    ADOPTION = "adoption"
    TRANSFER_AMOUNT = "transfer_amount"
    TRANSFER_COUNT = "transfer_count"
    ACTIVE_USERS = "active_users"
    OUTSTANDING = "outstanding"
    PAUSED = "paused"
    ENROLLED = "enrolled"
    SAVINGS = "savings"


@dataclass
class Classification:
    """The classifier's decision, handed to an answer builder."""
    intent: Intent
    confidence: float
    query: str
    employee: Optional[EmployeeRecord] = None
    employees: Tuple[EmployeeRecord, ...] = ()
    company: Optional[CompanyRecord] = None
    companies: Tuple[CompanyRecord, ...] = ()
    partnership: Optional[str] = None
    model: Optional[str] = None
    location: Optional[str] = None
    metric: Optional[Metric] = None
    ascending: bool = False
    top_n: Optional[int] = None
    threshold: Optional[float] = None
    above: bool = True
    fragment: Optional[str] = None
    candidates: Tuple[Candidate, ...] = ()
    error: Optional[QueryError] = None
    used_context: bool = False
    clear_filter: bool = False

    @property
    def pending(self) -> Optional[PendingDisambiguation]:
        """The disambiguation to remember, if this classification asks the admin to pick."""
        if self.candidates and self.fragment:
            return PendingDisambiguation(query=self.query, fragment=self.fragment, candidates=self.candidates)
        return None


# ============================================================================
# PATTERNS
# ============================================================================

# (pattern, intent, priority) for questions that need no entity
CONVERSATION_PATTERNS: List[Tuple[str, Intent, int]] = [
    # Greetings (only when that's the whole message)
    (r"^(hi|hello|hey|hiya|howdy|good (morning|afternoon|evening))\b[\s,!.]*(penny)?[\s!.]*$", Intent.GREETING, 100),

    # Help requests
    (r"^(help|help me|\?)[\s!.?]*$", Intent.HELP, 90),
    (r"\b(what can you do|what can i ask|what do you know|how do (you|i) (work|use (this|penny)))\b", Intent.HELP, 90),

    # Reports
    (r"^(show |list |what )?(me )?(the |available )?reports?( are available| do you have)?[\s?.!]*$", Intent.REPORTS, 85),
    (r"\bwhat reports\b|\breports? (can i|could i|are available)\b", Intent.REPORTS, 85),

    # Export of the list on screen
    (r"^(please )?(export|download)( (this|that|it|these|them|the list|this list|that list|the results|results))?( (to|as) (a )?(csv|spreadsheet))?[\s.!]*$", Intent.EXPORT, 95),
    (r"\b(export|download) (this|that|it|these|them|the list|this list)\b", Intent.EXPORT, 95),
]

_FILTER_RE = re.compile(
    r"^\s*(?:only|just|filter(?: it| this| the list)? (?:to|by|for)|show only|only show|limit (?:it |this )?to|narrow (?:it |this )?(?:down )?to)\s+(?P<target>.+?)\s*[.!?]*$",
    re.IGNORECASE,
)
_CLEAR_FILTER_RE = re.compile(
    r"^\s*(?:show (?:me )?(?:all|everyone|everything)|clear (?:the )?filter|remove (?:the )?filter|all companies|unfilter)\s*[.!?]*$",
    re.IGNORECASE,
)
_THRESHOLD_RE = re.compile(
    r"\b(?P<dir>above|over|more than|greater than|at least|exceeding|higher than|below|under|less than|lower than|fewer than)\s+"
    r"(?P<value>\d+(?:\.\d+)?)\s*(?P<pct>%|percent)?",
    re.IGNORECASE,
)
_TOP_N_RE = re.compile(r"\b(?:top|bottom)\s+(\d+)\b", re.IGNORECASE)
_COMPARE_RE = re.compile(r"\b(compare|comparison|versus|vs\.?|compared (to|with)|difference between)\b", re.IGNORECASE)
_COMPARE_SPLIT_RE = re.compile(
    r"^(?:.*?\b(?:compare|between)\s+)?(?P<a>.+?)\s+(?:vs\.?|versus|and|with|to|against)\s+(?P<b>.+?)\s*[?.!]*$",
    re.IGNORECASE,
)
_ORDINAL_RE = re.compile(
    r"^\s*(?:the\s+)?(?:#|no\.?\s*|number\s+|option\s+)?(?P<n>\d+|first|second|third|fourth|fifth|1st|2nd|3rd|4th|5th)(?:\s+one)?\s*[.)!]*\s*$",
    re.IGNORECASE,
)
_ORDINAL_WORDS = {
    "first": 1, "1st": 1, "second": 2, "2nd": 2, "third": 3, "3rd": 3,
    "fourth": 4, "4th": 4, "fifth": 5, "5th": 5,
}
_TRANSFER_AMOUNT_RE = re.compile(r"\b(amount|volume|value|dollars?|usd|sum)\b|\$", re.IGNORECASE)
_ENTITY_CUE_RE = re.compile(r"\b(about|for|at|of|named|called|is|does|did|has|from|with)\b", re.IGNORECASE)

# Words that never form part of a name fragment
_FILLER_WORDS = {
    "what", "whats", "is", "are", "was", "were", "the", "a", "an", "of", "for", "at", "in", "on",
    "to", "me", "my", "show", "tell", "about", "please", "can", "you", "could", "would", "does",
    "do", "did", "has", "have", "had", "how", "many", "much", "who", "which", "where", "when",
    "why", "with", "and", "or", "by", "from", "give", "get", "list", "find", "look", "up",
    "any", "all", "there", "their", "they", "them", "this", "that", "these", "those", "i",
    "we", "our", "us", "it", "its", "be", "been", "some", "per", "each", "every", "everyone",
    "current", "currently", "right", "now", "today", "overall", "stats", "stat", "statistics",
    "info", "details", "summary", "number", "count", "rate", "rates", "percentage", "percent",
    "vs", "versus", "compare", "than", "more", "less", "top", "bottom", "named", "called",
    "let", "know", "see", "need", "want", "check", "account", "accounts", "having", "got",
    "across", "between", "only", "just", "whole", "entire", "program", "portal", "penny", "hi",
    "hello", "hey", "thanks", "thank", "he", "she", "him", "her", "his", "hers", "also",
    "again", "yes", "no", "not", "isn't", "doesn't", "anyone", "somebody", "someone", "person",
    "as", "if", "so", "then", "else", "way", "ok", "okay", "partnership", "partnerships",
    "overview", "breakdown", "average", "avg", "rated", "ranked", "should", "will",
}
_SYNONYM_WORDS = {word for variants in synonyms.SYNONYMS.values() for v in variants for word in v.lower().split()}
STOPWORDS = frozenset(_FILLER_WORDS | _SYNONYM_WORDS)

# Category -> company intent, in tie-break order
COMPANY_TOPICS: List[Tuple[str, Intent]] = [
    ("paused", Intent.PAUSED_EMPLOYEES),
    ("outstanding", Intent.COMPANY_OUTSTANDING),
    ("savings", Intent.COMPANY_SAVINGS),
    ("model", Intent.COMPANY_MODEL),
    ("live", Intent.COMPANY_LIVE),
    ("admin", Intent.COMPANY_ADMINS),
    ("adoption", Intent.COMPANY_ADOPTION),
    ("active", Intent.COMPANY_ACTIVE),
    ("enrolled", Intent.COMPANY_ENROLLED),
    ("transfers", Intent.COMPANY_TRANSFERS),
    ("employees", Intent.COMPANY_EMPLOYEES),
]

# Category -> employee intent, in tie-break order
EMPLOYEE_TOPICS: List[Tuple[str, Intent]] = [
    ("location", Intent.EMPLOYEE_LOCATION),
    ("paused", Intent.EMPLOYEE_STATUS),
    ("status", Intent.EMPLOYEE_STATUS),
    ("outstanding", Intent.EMPLOYEE_OUTSTANDING),
    ("savings", Intent.EMPLOYEE_SAVINGS),
    ("transfers", Intent.EMPLOYEE_TRANSFERS),
    ("enrolled", Intent.EMPLOYEE_STATUS),
    ("active", Intent.EMPLOYEE_STATUS),
]

# Category -> portal-wide intent, in tie-break order
AGGREGATE_TOPICS: List[Tuple[str, Intent]] = [
    ("paused", Intent.PAUSED_EMPLOYEES),
    ("outstanding", Intent.OUTSTANDING_OVERVIEW),
    ("savings", Intent.SAVINGS_OVERVIEW),
    ("adoption", Intent.ADOPTION_OVERVIEW),
    ("transfers", Intent.TRANSFER_OVERVIEW),
    ("live", Intent.COMPANY_COUNT_LIVE),
    ("active", Intent.ADOPTION_OVERVIEW),
    ("enrolled", Intent.EMPLOYEE_LIST),
    ("company", Intent.COMPANY_SUMMARY),
    ("employees", Intent.EMPLOYEE_LIST),
    ("balance", Intent.OUTSTANDING_OVERVIEW),
]

# Follow-up topics that are about a company even when the last subject was a person
_COMPANY_LEVEL_TOPICS = ["adoption", "admin", "model", "live", "company"]

_METRIC_TOPICS: List[Tuple[str, Metric]] = [
    ("paused", Metric.PAUSED),
    ("outstanding", Metric.OUTSTANDING),
    ("savings", Metric.SAVINGS),
    ("transfers", Metric.TRANSFER_COUNT),
    ("active", Metric.ACTIVE_USERS),
    ("enrolled", Metric.ENROLLED),
    ("adoption", Metric.ADOPTION),
]


def _best(query: str, topics: Sequence[Tuple[str, Intent]]) -> Optional[Intent]:
    category = synonyms.best_category(query, [c for c, _ in topics])
    if category is None:
        return None
    return dict(topics)[category]


def detect_metric(query: str, default: Metric = Metric.ADOPTION) -> Metric:
    """Which company metric a ranking or comparison is about."""
    category = synonyms.best_category(query, [c for c, _ in _METRIC_TOPICS])
    if category is None:
        if synonyms.matches(query, "balance"):
            return Metric.OUTSTANDING
        return default
    metric = dict(_METRIC_TOPICS)[category]
    if metric == Metric.TRANSFER_COUNT and _TRANSFER_AMOUNT_RE.search(query):
        return Metric.TRANSFER_AMOUNT
    return metric


# ============================================================================
# CLASSIFIER
# ============================================================================

def classify_intent(query: str, context: ConversationContext, resolver: EntityResolver) -> Classification:
    """
    Classify a question against the conversation context and the snapshot's names.

    Never raises for bad input: empty text, unknown names and stale pronouns
    come back as NOT_FOUND / DISAMBIGUATION classifications with an error set.
    """
    text = (query or "").strip()
    if not text or not re.search(r"\w", text):
        return Classification(Intent.NOT_FOUND, 0.0, query=text, error=QueryError.MALFORMED)

    if context.pending is not None:
        resumed = _resume_pending(text, context.pending, context, resolver)
        if resumed is not None:
            return resumed

    return _classify(text, context, resolver, allow_followup=True)


def _classify(
    text: str,
    context: ConversationContext,
    resolver: EntityResolver,
    allow_followup: bool,
    pin: Optional[Candidate] = None,
    depth: int = 0,
) -> Classification:
    mentions = resolver.find_mentions(text)
    named = [m for m in mentions if m.entity in (EntityType.EMPLOYEE, EntityType.COMPANY)]

    conversational = _match_conversation(text, context, resolver, mentions)
    if conversational is not None:
        return conversational

    # Pronoun follow-up: rewrite with the remembered entity and classify again
    if (
        allow_followup
        and not named
        and synonyms.has_pronoun(text)
        and not synonyms.has_plural_subject(text)
        and not synonyms.has_group_antecedent(text)
    ):
        return _follow_up(text, context, resolver)

    employees, companies = _split_mentions(text, mentions)
    partnership = _first(mentions, EntityType.PARTNERSHIP)
    model = _first(mentions, EntityType.MODEL)
    location = _first(mentions, EntityType.LOCATION)

    # Comparison
    if _COMPARE_RE.search(text):
        compared = _classify_comparison(text, resolver, employees, companies, pin)
        if compared is not None:
            return compared

    # Threshold filters ("above 20% adoption")
    threshold = _THRESHOLD_RE.search(text)
    if threshold and not employees and not companies and (
        synonyms.matches(text, "adoption") or threshold.group("pct")
    ):
        direction = threshold.group("dir").lower()
        value = float(threshold.group("value"))
        if threshold.group("pct") or value > 1:
            value /= 100.0
        return Classification(
            Intent.ADOPTION_THRESHOLD, 0.9, query=text,
            threshold=value,
            above=direction not in ("below", "under", "less than", "lower than", "fewer than"),
            partnership=partnership.name if partnership else None,
            metric=Metric.ADOPTION,
        )

    # One employee
    if employees:
        return _classify_employee(text, employees[0], companies, pin)

    # One company
    if companies:
        company = companies[0].company
        intent = _best(text, COMPANY_TOPICS)
        if intent == Intent.COMPANY_EMPLOYEES and synonyms.matches(text, "count"):
            intent = Intent.COMPANY_EMPLOYEE_COUNT
        if intent is None:
            intent = Intent.COMPANY_OUTSTANDING if synonyms.matches(text, "balance") else Intent.COMPANY_PROFILE
        return Classification(intent, 0.95, query=text, company=company)

    is_ranking = synonyms.matches(text, "ranking") or synonyms.matches(text, "ranking_low")

    # Partnership / model / location without a company or person
    if partnership is not None:
        if is_ranking or synonyms.matches(text, "adoption"):
            return _ranking(text, partnership=partnership.name)
        return Classification(Intent.PARTNERSHIP_COMPANIES, 0.9, query=text, partnership=partnership.name)
    if model is not None:
        return Classification(Intent.MODEL_COMPANIES, 0.9, query=text, model=model.name)
    if location is not None:
        return Classification(Intent.EMPLOYEES_BY_LOCATION, 0.9, query=text, location=location.name)

    # Rankings
    if is_ranking or _TOP_N_RE.search(text):
        if synonyms.matches(text, "company") or not (
            synonyms.matches(text, "outstanding") or synonyms.matches(text, "savings")
        ):
            return _ranking(text)

    aggregate = _best(text, AGGREGATE_TOPICS)
    if aggregate == Intent.COMPANY_SUMMARY and synonyms.matches(text, "count"):
        aggregate = Intent.COMPANY_COUNT_LIVE

    # A name-like fragment nobody recognised exactly
    fragment = residual_fragment(text)
    if fragment and depth == 0 and (aggregate is None or _has_entity_cue(text, fragment)):
        fuzzy = _classify_fragment(text, fragment, context, resolver)
        if fuzzy is not None:
            return fuzzy
        if aggregate is None and _has_entity_cue(text, fragment):
            return Classification(
                Intent.NOT_FOUND, 0.3, query=text, fragment=fragment, error=QueryError.NO_MATCH,
            )

    if aggregate is not None:
        return Classification(aggregate, 0.8, query=text)

    return Classification(Intent.UNKNOWN, 0.2, query=text)


# ============================================================================
# CONVERSATIONAL INTENTS
# ============================================================================

def _match_conversation(
    text: str,
    context: ConversationContext,
    resolver: EntityResolver,
    mentions: List[Mention],
) -> Optional[Classification]:
    if context.last_list is not None:
        if _CLEAR_FILTER_RE.match(text):
            return Classification(Intent.FILTER_LIST, 0.9, query=text, clear_filter=True)
        match = _FILTER_RE.match(text)
        if match:
            return _classify_filter(text, match.group("target"), resolver, mentions)

    best_intent: Optional[Intent] = None
    best_priority = 0
    for pattern, intent, priority in CONVERSATION_PATTERNS:
        if priority > best_priority and re.search(pattern, text, re.IGNORECASE):
            best_intent, best_priority = intent, priority

    if best_intent is None:
        return None
    if best_intent in (Intent.HELP, Intent.REPORTS) and mentions:
        return None
    return Classification(best_intent, best_priority / 100.0, query=text)


def _classify_filter(text: str, target: str, resolver: EntityResolver, mentions: List[Mention]) -> Classification:
    company = next((m.company for m in mentions if m.entity == EntityType.COMPANY), None)
    if company is None:
        match = resolver.resolve_company(target)
        if match.kind == MatchKind.EXACT_ONE or (match.kind == MatchKind.FUZZY and len(match.companies) == 1):
            company = match.companies[0]
        elif match.kind == MatchKind.FUZZY:
            return Classification(
                Intent.DISAMBIGUATION, 0.5, query=text, fragment=target.strip(),
                candidates=tuple(Candidate(c.name, "company") for c in match.companies),
                error=QueryError.AMBIGUOUS,
            )
        else:
            return Classification(
                Intent.NOT_FOUND, 0.3, query=text, fragment=target.strip(), error=QueryError.NO_MATCH,
            )
    return Classification(Intent.FILTER_LIST, 0.9, query=text, company=company)


# ============================================================================
# PENDING DISAMBIGUATION
# ============================================================================

def _resume_pending(
    text: str,
    pending: PendingDisambiguation,
    context: ConversationContext,
    resolver: EntityResolver,
) -> Optional[Classification]:
    """Re-run the pending question if this turn picks one of the offered names."""
    choice = _pick_candidate(text, pending.candidates, resolver)
    if choice is None:
        return None

    rewritten = re.sub(re.escape(pending.fragment), choice.name, pending.query, count=1, flags=re.IGNORECASE)
    if rewritten == pending.query and name_key(choice.name) not in name_key(pending.query):
        rewritten = f"Tell me about {choice.name}"
    logger.debug(f"Resuming pending question as {rewritten!r}")

    # The list on screen stays, so "Only <name>" resumes as a filter
    resumed_context = ConversationContext(last_list=context.last_list)
    classification = _classify(rewritten, resumed_context, resolver, allow_followup=False, pin=choice)
    classification.used_context = True
    return classification


def _pick_candidate(text: str, candidates: Sequence[Candidate], resolver: EntityResolver) -> Optional[Candidate]:
    if not candidates:
        return None

    ordinal = _ORDINAL_RE.match(text)
    if ordinal:
        raw = ordinal.group("n").lower()
        n = _ORDINAL_WORDS.get(raw) or int(raw)
        if 1 <= n <= len(candidates):
            return candidates[n - 1]
        return None

    if len(candidates) == 1 and re.match(r"^\s*(yes|yep|yeah|correct|that one|right)\b", text, re.IGNORECASE):
        return candidates[0]

    mentions = resolver.find_mentions(text)
    mentioned_companies = {name_key(m.name) for m in mentions if m.entity == EntityType.COMPANY}
    for mention in mentions:
        key = name_key(mention.name)
        same_name = [c for c in candidates if name_key(c.name) == key]
        if not same_name:
            continue
        at_company = [c for c in same_name if c.company and name_key(c.company) in mentioned_companies]
        return (at_company or same_name)[0]

    # "the one at Acme Co" when every candidate shares a name
    if mentioned_companies:
        for candidate in candidates:
            if candidate.company and name_key(candidate.company) in mentioned_companies:
                return candidate
    return None


# ============================================================================
# FOLLOW-UPS
# ============================================================================

_POSSESSIVE_PRONOUNS = {"their", "theirs", "his", "hers", "its"}


def _follow_up(text: str, context: ConversationContext, resolver: EntityResolver) -> Classification:
    employee = context.last_employee
    company_name = context.last_company or (employee.company if employee else None)
    company_topic = (
        synonyms.has_company_pronoun(text)
        or synonyms.best_category(text, _COMPANY_LEVEL_TOPICS) is not None
    )

    if employee is not None and not company_topic and context.last_subject != "company":
        name, pin = employee.full_name, Candidate(employee.full_name, "employee", employee.company or None)
    elif company_name:
        name, pin = company_name, Candidate(company_name, "company")
    else:
        # Nothing to refer back to
        return Classification(Intent.NOT_FOUND, 0.1, query=text, error=QueryError.MALFORMED)

    rewritten = substitute_pronouns(text, name)
    logger.debug(f"Follow-up {text!r} rewritten as {rewritten!r}")
    classification = _classify(rewritten, context, resolver, allow_followup=False, pin=pin)
    classification.used_context = True
    return classification


def substitute_pronouns(text: str, name: str) -> str:
    """Replace pronoun phrases with a name ("their adoption" -> "Acme Co's adoption")."""
    phrases = sorted(synonyms.PRONOUNS + synonyms.COMPANY_PRONOUNS, key=len, reverse=True)
    pattern = re.compile(r"(?<![\w-])(" + "|".join(re.escape(p) for p in phrases) + r")(?![\w-])", re.IGNORECASE)

    def _swap(match: "re.Match") -> str:
        word = match.group(1).lower()
        following = text[match.end():match.end() + 2]
        possessive = word in _POSSESSIVE_PRONOUNS or (word == "her" and re.match(r"\s\w", following) is not None)
        return f"{name}'s" if possessive else name

    return pattern.sub(_swap, text)


# ============================================================================
# ENTITIES
# ============================================================================

def _first(mentions: List[Mention], entity: EntityType) -> Optional[Mention]:
    return next((m for m in mentions if m.entity == entity), None)


def _split_mentions(text: str, mentions: List[Mention]) -> Tuple[List[Mention], List[Mention]]:
    """Employee and company mentions; a name that is both goes by the question's topic."""
    employees = [m for m in mentions if m.entity == EntityType.EMPLOYEE]
    companies = [m for m in mentions if m.entity == EntityType.COMPANY]
    shared = {(m.start, m.end) for m in employees} & {(m.start, m.end) for m in companies}
    if shared:
        about_company = _best(text, COMPANY_TOPICS) in (
            Intent.COMPANY_ADOPTION, Intent.COMPANY_ADMINS, Intent.COMPANY_MODEL, Intent.COMPANY_LIVE,
            Intent.COMPANY_ACTIVE, Intent.COMPANY_EMPLOYEES, Intent.COMPANY_ENROLLED,
        ) or synonyms.matches(text, "company")
        if about_company:
            employees = [m for m in employees if (m.start, m.end) not in shared]
        else:
            companies = [m for m in companies if (m.start, m.end) not in shared]
    return employees, companies


def _pick_employee(
    mention: Mention,
    companies: List[Mention],
    pin: Optional[Candidate],
) -> Tuple[Optional[EmployeeRecord], Tuple[EmployeeRecord, ...]]:
    """Narrow a mention to one employee, or return every namesake."""
    records = mention.employees
    if len(records) == 1:
        return records[0], records
    wanted = set()
    if pin is not None and pin.entity == "employee" and pin.company:
        wanted.add(name_key(pin.company))
    wanted.update(name_key(m.name) for m in companies)
    if wanted:
        narrowed = [e for e in records if name_key(e.company) in wanted]
        if len(narrowed) == 1:
            return narrowed[0], records
    return None, records


def _classify_employee(
    text: str,
    mention: Mention,
    companies: List[Mention],
    pin: Optional[Candidate],
) -> Classification:
    employee, namesakes = _pick_employee(mention, companies, pin)
    if employee is None:
        return Classification(
            Intent.DUPLICATE_EMPLOYEES, 0.7, query=text, employees=namesakes,
            fragment=text[mention.start:mention.end],
            candidates=tuple(Candidate(e.full_name, "employee", e.company or None) for e in namesakes),
            error=QueryError.AMBIGUOUS,
        )

    intent = _best(text, EMPLOYEE_TOPICS)
    if intent is None:
        intent = Intent.EMPLOYEE_OUTSTANDING if synonyms.matches(text, "balance") else Intent.EMPLOYEE_PROFILE
    return Classification(intent, 0.95, query=text, employee=employee)


# ============================================================================
# COMPARISON AND RANKING
# ============================================================================

def _classify_comparison(
    text: str,
    resolver: EntityResolver,
    employees: List[Mention],
    companies: List[Mention],
    pin: Optional[Candidate],
) -> Optional[Classification]:
    if len(companies) >= 2 and len(employees) < 2:
        return Classification(
            Intent.COMPARE_COMPANIES, 0.9, query=text,
            companies=(companies[0].company, companies[1].company),
            metric=detect_metric(text, Metric.ADOPTION),
        )

    if len(employees) >= 2:
        picked = []
        for mention in employees[:2]:
            employee, namesakes = _pick_employee(mention, companies, pin)
            if employee is None:
                return _classify_employee(text, mention, companies, pin)
            picked.append(employee)
        return Classification(
            Intent.COMPARE_EMPLOYEES, 0.9, query=text, employees=tuple(picked),
            metric=detect_metric(text, Metric.OUTSTANDING),
        )

    # Fewer than two known names: try each side of "A vs B" against the fuzzy index
    split = _COMPARE_SPLIT_RE.match(text)
    if not split:
        return None
    sides = []
    for side in ("a", "b"):
        fragment = split.group(side).strip()
        match = resolver.resolve_company(fragment)
        if match.kind == MatchKind.EXACT_ONE or (match.kind == MatchKind.FUZZY and len(match.companies) == 1):
            sides.append(match.companies[0])
            continue
        if match.kind == MatchKind.FUZZY:
            return Classification(
                Intent.DISAMBIGUATION, 0.5, query=text, fragment=fragment,
                candidates=tuple(Candidate(c.name, "company") for c in match.companies),
                error=QueryError.AMBIGUOUS,
            )
        return None
    return Classification(
        Intent.COMPARE_COMPANIES, 0.7, query=text, companies=tuple(sides),
        metric=detect_metric(text, Metric.ADOPTION),
    )


def _ranking(text: str, partnership: Optional[str] = None) -> Classification:
    top_n = None
    explicit = _TOP_N_RE.search(text)
    if explicit:
        top_n = max(1, min(int(explicit.group(1)), settings.PENNY_TOP_N))
    ascending = synonyms.matches(text, "ranking_low") and not synonyms.matches(text, "ranking")
    return Classification(
        Intent.TOP_COMPANIES, 0.9, query=text,
        metric=detect_metric(text, Metric.ADOPTION),
        ascending=ascending,
        top_n=top_n,
        partnership=partnership,
    )


# ============================================================================
# FUZZY FRAGMENTS
# ============================================================================

def residual_fragment(text: str) -> Optional[str]:
    """
    The longest run of words that aren't question or topic words.

    "What is Jnae Smth's balance?" -> "Jnae Smth". Returned in the query's
    original casing; None when nothing name-like is left.
    """
    tokens = query_tokens(text)
    best: Optional[Tuple[int, int]] = None
    run_start = None
    for i, token in enumerate(tokens + [None]):
        is_word = token is not None and token.text not in STOPWORDS and not token.text.isdigit()
        if is_word and run_start is None:
            run_start = i
        elif not is_word and run_start is not None:
            if best is None or (i - run_start) > (best[1] - best[0]):
                best = (run_start, i)
            run_start = None
    if best is None:
        return None
    start, end = tokens[best[0]].start, tokens[best[1] - 1].end
    fragment = text[start:end].strip()
    if sum(ch.isalpha() for ch in fragment) < 3:
        return None
    return fragment


def _has_entity_cue(text: str, fragment: str) -> bool:
    """True when the fragment is introduced like a name ("about X", "for X", "is X ...")."""
    position = text.find(fragment)
    if position < 0:
        return False
    preceding = text[:position].split()
    if not preceding:
        return True
    return _ENTITY_CUE_RE.fullmatch(preceding[-1].strip(",.?!:;").lower()) is not None


def _classify_fragment(
    text: str,
    fragment: str,
    context: ConversationContext,
    resolver: EntityResolver,
) -> Optional[Classification]:
    company_match = resolver.resolve_company(fragment)
    employee_match = resolver.resolve_employee(fragment)

    # A single close company is safe to assume; a person never is
    if (
        company_match.kind == MatchKind.FUZZY
        and len(company_match.companies) == 1
        and employee_match.kind == MatchKind.NONE
    ):
        name = company_match.companies[0].name
        rewritten = text.replace(fragment, name, 1)
        logger.debug(f"Assuming {fragment!r} means company {name!r}")
        return _classify(rewritten, context, resolver, allow_followup=False, depth=1)

    candidates: List[Candidate] = []
    if employee_match.kind in (MatchKind.FUZZY, MatchKind.EXACT_MANY):
        seen = set()
        for employee in employee_match.employees:
            key = (name_key(employee.full_name), name_key(employee.company))
            if key in seen:
                continue
            seen.add(key)
            candidates.append(Candidate(employee.full_name, "employee", employee.company or None))
        candidates = candidates[: resolver.suggestion_limit]
    if company_match.kind == MatchKind.FUZZY:
        candidates.extend(Candidate(c.name, "company") for c in company_match.companies)

    if not candidates:
        return None
    return Classification(
        Intent.DISAMBIGUATION, 0.5, query=text, fragment=fragment,
        candidates=tuple(candidates), error=QueryError.AMBIGUOUS,
    )
