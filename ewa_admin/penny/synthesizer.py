"""Penny Response Synthesizer.

Turns a builder's Answer into the response the chat UI consumes:

* entity names in the text are located as spans (exact, case-sensitive,
  non-overlapping, longest name first, one left-to-right scan) so the UI can
  make them clickable;
* suggestions are de-duplicated and capped, and a not-found answer always
  carries the fallback menu.

The highlighter only scans for the names the answer itself refers to plus
the longest PENNY_NAME_SCAN_CAP names of the snapshot. Names beyond that
ceiling are never marked; a debug line records each truncation.
"""
import logging
import re
from functools import lru_cache
from typing import Dict, List, Optional, Pattern, Tuple

from ewa_admin.config import settings
from ewa_admin.data.snapshot import DataSnapshot
from ewa_admin.penny.builders.base import FALLBACK_MENU, MAX_SUGGESTIONS, unique
from ewa_admin.penny.schemas import Answer, AnswerKind, PennyResponse, Span

logger = logging.getLogger(__name__)

# Names shorter than this are too likely to occur inside ordinary words
MIN_SPAN_LENGTH = 3


def snapshot_names(snapshot: DataSnapshot) -> List[Tuple[str, str]]:
    """(name, entity) for every employee and company, longest first (built once per snapshot)."""
    def _build() -> List[Tuple[str, str]]:
        names: Dict[str, str] = {}
        for company in snapshot.companies:
            names.setdefault(company.name, "company")
        for employee in snapshot.employees:
            if employee.company:
                names.setdefault(employee.company.strip(), "company")
        for employee in snapshot.employees:
            names.setdefault(employee.full_name, "employee")
        ordered = [(n, e) for n, e in names.items() if len(n) >= MIN_SPAN_LENGTH]
        ordered.sort(key=lambda item: (-len(item[0]), item[0]))
        return ordered

    return snapshot.derived("highlight_names", _build)


def candidate_names(answer: Answer, snapshot: Optional[DataSnapshot], cap: Optional[int] = None) -> Dict[str, str]:
    """
    The names to scan for, capped.

    Names the answer refers to always come first; the rest of the budget goes
    to the snapshot's longest names.
    """
    cap = settings.PENNY_NAME_SCAN_CAP if cap is None else cap
    names: Dict[str, str] = {}
    for entity in answer.entities:
        if len(entity.name) >= MIN_SPAN_LENGTH:
            names.setdefault(entity.name, entity.entity)

    if snapshot is not None:
        pool = snapshot_names(snapshot)
        for name, entity in pool:
            if len(names) >= cap:
                logger.debug(
                    f"Name highlighting capped at {cap} names; {len(pool)} known names in snapshot v{snapshot.version}"
                )
                break
            names.setdefault(name, entity)
    return names


@lru_cache(maxsize=256)
def _pattern(names: Tuple[str, ...]) -> Pattern:
    # Longest alternative first, so at any position the longest name wins
    alternation = "|".join(re.escape(n) for n in names)
    return re.compile(rf"(?<!\w)(?:{alternation})(?!\w)")


def find_spans(text: str, names: Dict[str, str]) -> List[Span]:
    """Exact, case-sensitive, non-overlapping occurrences of the names in text."""
    if not text or not names:
        return []
    ordered = tuple(sorted(names, key=lambda n: (-len(n), n)))
    return [
        Span(start=m.start(), end=m.end(), name=m.group(0), entity=names[m.group(0)])
        for m in _pattern(ordered).finditer(text)
    ]


def finalize_suggestions(answer: Answer) -> List[str]:
    if answer.kind == AnswerKind.NOT_FOUND:
        return unique(FALLBACK_MENU + [s for s in answer.suggestions if s not in FALLBACK_MENU], MAX_SUGGESTIONS)
    return unique(answer.suggestions, MAX_SUGGESTIONS)


def synthesize(
    answer: Answer,
    conversation_id: str,
    snapshot: Optional[DataSnapshot] = None,
) -> PennyResponse:
    """Build the external response for an answer."""
    names = candidate_names(answer, snapshot)

    suggestions = finalize_suggestions(answer)
    return PennyResponse(
        text=answer.text,
        rich_content=answer.rich_content,
        suggestions=suggestions or None,
        actions=answer.actions or None,
        follow_up=answer.follow_up,
        kind=answer.kind,
        spans=find_spans(answer.text, names),
        conversation_id=conversation_id,
    )
