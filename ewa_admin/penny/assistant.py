"""Penny Assistant - optional OpenAI fallback for unclassified questions.

Only consulted when PENNY_AI_MODE is "openai" and an API key is configured.
The model sees a summary of the current aggregate stats and must reply with
a JSON object ``{"text": ..., "suggestions": [...]}``. Any failure returns
None so the caller falls back to the deterministic answer.
"""
import json
import logging
from typing import Any, Dict, List, Optional

from openai import AsyncOpenAI, OpenAIError

from ewa_admin.config import settings
from ewa_admin.data.snapshot import DataSnapshot
from ewa_admin.penny.builders.base import MAX_SUGGESTIONS, unique
from ewa_admin.penny.formatting import currency, percent
from ewa_admin.penny.schemas import Answer, AnswerKind, ChatMessage

logger = logging.getLogger(__name__)

# Conversation turns forwarded to the model
HISTORY_LIMIT = 6


def get_openai_client() -> AsyncOpenAI:
    """Get the OpenAI client."""
    return AsyncOpenAI(api_key=settings.OPENAI_API_KEY)


def build_system_prompt(snapshot: DataSnapshot) -> str:
    """System prompt with the portal-wide figures the model may quote."""
    stats = snapshot.aggregate_stats
    return f"""You are Penny, a helpful assistant for an EWA (Earned Wage Access) admin portal.
You help HR administrators understand how their employees use the EWA program.

CURRENT DATA:
- Live companies: {stats.total_companies:,}
- Eligible employees: {stats.total_eligible:,}
- Adopted (enrolled): {stats.total_adopted:,}
- Active users: {stats.total_active:,}
- Overall adoption rate: {percent(stats.overall_adoption_rate)}
- Enrolled employees: {stats.total_employees:,} ({stats.active_employees:,} active, {stats.paused_employees:,} paused)
- Total outstanding: {currency(stats.total_outstanding_balance)} across {stats.employees_with_outstanding_balance:,} employees
- Total saved: {currency(stats.total_savings_balance)} across {stats.employees_with_savings_balance:,} employees
- Transfers (all-time): {stats.total_transfers:,} totalling {currency(stats.total_transfer_amount)}

GUIDELINES:
1. Be concise and direct. Use **bold** for important numbers and names.
2. Only quote figures listed above. If the question needs data you don't have, say so.
3. Offer follow-up questions the admin can ask, such as "Show outstanding balances".

Respond with a JSON object: {{"text": "markdown answer", "suggestions": ["follow-up question", ...]}}"""


def _parse_reply(content: Optional[str]) -> Optional[Answer]:
    if not content:
        return None
    try:
        data: Dict[str, Any] = json.loads(content)
    except json.JSONDecodeError as e:
        logger.warning(f"Penny assistant returned invalid JSON: {e}")
        return None

    if not isinstance(data, dict):
        return None
    text = data.get("text")
    if not isinstance(text, str) or not text.strip():
        return None
    suggestions = data.get("suggestions") or []
    if not isinstance(suggestions, list):
        suggestions = []

    return Answer(
        kind=AnswerKind.SINGLE_VALUE,
        text=text.strip(),
        suggestions=unique((s for s in suggestions if isinstance(s, str)), MAX_SUGGESTIONS),
    )


async def answer_with_ai(
    query: str,
    snapshot: DataSnapshot,
    history: Optional[List[ChatMessage]] = None,
) -> Optional[Answer]:
    """Ask the model to answer a question the rules could not classify."""
    if not settings.AI_FALLBACK_ENABLED:
        return None

    messages: List[Dict[str, str]] = [{"role": "system", "content": build_system_prompt(snapshot)}]
    for message in (history or [])[-HISTORY_LIMIT:]:
        if message.role in ("user", "assistant"):
            messages.append({"role": message.role, "content": message.content})
    messages.append({"role": "user", "content": query})

    client = get_openai_client()
    try:
        response = await client.chat.completions.create(
            model=settings.OPENAI_MODEL,
            messages=messages,
            max_tokens=settings.OPENAI_MAX_TOKENS,
            response_format={"type": "json_object"},
        )
    except OpenAIError as e:
        logger.error(f"Penny assistant request failed: {e}")
        return None

    return _parse_reply(response.choices[0].message.content)
