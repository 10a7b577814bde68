"""Penny Orchestrator - runs one question through the engine.

The orchestrator:
1. Takes a working copy of the conversation context
2. Loads the current data snapshot (DataUnavailable -> not-found answer)
3. Classifies the question against the context and the snapshot's names
4. Runs the answer builder for the intent (and, optionally, the LLM fallback)
5. Synthesizes the response and commits the context together with it
"""
import csv
import io
import logging
from typing import Optional

from ewa_admin.config import settings
from ewa_admin.data.provider import DataProvider, DataUnavailable, get_provider
from ewa_admin.penny.assistant import answer_with_ai
from ewa_admin.penny.builders import build_answer
from ewa_admin.penny.builders.base import BuildResult, not_found
from ewa_admin.penny.context import ConversationStore, conversation_store, new_conversation_id
from ewa_admin.penny.formatting import MISSING, ListView, format_cell
from ewa_admin.penny.intent import Intent, classify_intent
from ewa_admin.penny.resolver import EntityResolver
from ewa_admin.penny.schemas import ActionType, ChatRequest, PennyResponse
from ewa_admin.penny.synthesizer import synthesize

logger = logging.getLogger(__name__)

DATA_UNAVAILABLE_TEXT = (
    "I can't reach the employee and company data right now. "
    "Please try again in a moment, or try one of these:"
)


def _link_downloads(result: BuildResult, conversation_id: str) -> None:
    """Point download actions at this conversation's export."""
    for action in result.answer.actions:
        if action.type == ActionType.DOWNLOAD and action.target and "?" not in action.target:
            action.target = f"{action.target}?conversation_id={conversation_id}"


async def chat(
    request: ChatRequest,
    provider: Optional[DataProvider] = None,
    store: Optional[ConversationStore] = None,
) -> PennyResponse:
    """
    Answer one question.

    Never raises for bad input or missing data; the caller always gets a
    response. The conversation context is only updated when an answer is
    produced.
    """
    if provider is None:
        provider = get_provider()
    if store is None:
        store = conversation_store
    conversation_id = request.conversation_id or new_conversation_id()
    context = store.get_context(conversation_id)

    try:
        snapshot = await provider.get_snapshot()
    except DataUnavailable as e:
        logger.error(f"Penny data unavailable: {e}")
        return synthesize(not_found(DATA_UNAVAILABLE_TEXT).answer, conversation_id)

    resolver = EntityResolver.for_snapshot(snapshot)
    classification = classify_intent(request.message, context, resolver)
    logger.debug(
        f"Penny classified '{request.message}' as {classification.intent.value} "
        f"(confidence {classification.confidence:.2f})"
    )

    result = build_answer(classification, snapshot, context)

    if classification.intent == Intent.UNKNOWN and settings.AI_FALLBACK_ENABLED:
        ai_answer = await answer_with_ai(request.message, snapshot, request.conversation_history)
        if ai_answer is not None:
            result = BuildResult(answer=ai_answer)

    _link_downloads(result, conversation_id)
    response = synthesize(result.answer, conversation_id, snapshot)

    result.apply_to(context)
    store.commit(conversation_id, context)
    return response


def reset(conversation_id: str, store: Optional[ConversationStore] = None) -> None:
    """Forget a conversation's context."""
    (conversation_store if store is None else store).reset(conversation_id)


def last_list(conversation_id: str, store: Optional[ConversationStore] = None) -> Optional[ListView]:
    """The list the conversation showed last (with its filter), if any."""
    return (conversation_store if store is None else store).get_context(conversation_id).last_list


def _csv_cell(value, is_amount: bool) -> str:
    if value is None:
        return ""
    if is_amount:
        return f"{float(value):.2f}"
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return format_cell(value)


def export_view(view: ListView) -> str:
    """CSV of the rows in view, with a total row when the list has an amount column."""
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(view.headers)
    for row in view.visible_rows():
        writer.writerow([_csv_cell(value, i == view.amount_column) for i, value in enumerate(row)])

    if view.has_amounts:
        total = view.total()
        total_row = [""] * len(view.headers)
        total_row[0] = view.total_label or "Total"
        total_row[view.amount_column] = MISSING if total is None else f"{total:.2f}"
        writer.writerow(total_row)
    return buffer.getvalue()
