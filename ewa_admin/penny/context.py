"""Penny conversation context.

Each conversation remembers the last employee and company it talked about,
a pending disambiguation, and the last itemized list shown. This is the only
mutable state in Penny. It lives in process memory, is never persisted, and
expires after PENNY_CONTEXT_TTL_SECONDS of inactivity.

Callers work on a copy (``get_context``) and hand it back with ``commit``
once the answer it accompanies is ready, so an abandoned request never
leaves a half-updated context behind.
"""
import logging
import secrets
from collections import OrderedDict
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

from ewa_admin.config import settings
from ewa_admin.data.records import EmployeeRecord
from ewa_admin.penny.formatting import ListView

logger = logging.getLogger(__name__)


def new_conversation_id() -> str:
    return f"conv_{secrets.token_hex(8)}"


@dataclass(frozen=True)
class Candidate:
    """One option offered in a disambiguation prompt."""
    name: str
    entity: str  # "employee" | "company"
    company: Optional[str] = None

    @property
    def label(self) -> str:
        if self.entity == "employee" and self.company:
            return f"{self.name} ({self.company})"
        return self.name


@dataclass(frozen=True)
class PendingDisambiguation:
    """A question waiting for the admin to pick one of the offered names."""
    query: str
    fragment: str
    candidates: Tuple[Candidate, ...]


@dataclass
class ConversationContext:
    """Cross-turn memory for one conversation."""
    last_employee: Optional[EmployeeRecord] = None
    last_company: Optional[str] = None
    pending: Optional[PendingDisambiguation] = None
    last_list: Optional[ListView] = None
    last_subject: Optional[str] = None  # "employee" | "company", whichever was mentioned last

    @property
    def pending_query(self) -> Optional[str]:
        return self.pending.query if self.pending else None

    @property
    def is_empty(self) -> bool:
        return self.last_employee is None and self.last_company is None

    def copy(self) -> "ConversationContext":
        # Every field is immutable, so a shallow copy is a full copy
        return replace(self)

    def reset(self) -> None:
        self.last_employee = None
        self.last_company = None
        self.pending = None
        self.last_list = None
        self.last_subject = None


@dataclass
class _StoreEntry:
    context: ConversationContext
    expires_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class ConversationStore:
    """
    In-memory conversation contexts with an idle TTL.

    Bounded: when more than ``max_conversations`` are live, the least
    recently used one is dropped.
    """

    def __init__(self, ttl_seconds: int = 1800, max_conversations: int = 10000):
        self._entries: "OrderedDict[str, _StoreEntry]" = OrderedDict()
        self._ttl = timedelta(seconds=ttl_seconds)
        self._max = max_conversations

    def _now(self) -> datetime:
        return datetime.now(timezone.utc)

    def _live_entry(self, conversation_id: str) -> Optional[_StoreEntry]:
        entry = self._entries.get(conversation_id)
        if entry is None:
            return None
        if self._now() > entry.expires_at:
            # Expired, remove from store
            del self._entries[conversation_id]
            logger.debug(f"Conversation {conversation_id} expired")
            return None
        return entry

    def get_context(self, conversation_id: str) -> ConversationContext:
        """A working copy of the conversation's context (empty if unknown or expired)."""
        entry = self._live_entry(conversation_id)
        if entry is None:
            return ConversationContext()
        return entry.context.copy()

    def commit(self, conversation_id: str, context: ConversationContext) -> None:
        """Store the context that accompanies an answer that was produced."""
        self._entries[conversation_id] = _StoreEntry(
            context=context.copy(),
            expires_at=self._now() + self._ttl,
        )
        self._entries.move_to_end(conversation_id)
        if len(self._entries) > self._max:
            self.purge_expired()
        while len(self._entries) > self._max:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug(f"Evicted conversation {evicted} (store full)")

    def reset(self, conversation_id: str) -> None:
        """Forget everything about a conversation."""
        self._entries.pop(conversation_id, None)

    def purge_expired(self) -> int:
        now = self._now()
        expired = [cid for cid, entry in self._entries.items() if now > entry.expires_at]
        for cid in expired:
            del self._entries[cid]
        return len(expired)

    def __len__(self) -> int:
        return len(self._entries)

    def clear(self) -> None:
        self._entries.clear()


# Global store shared by every request in this process
conversation_store = ConversationStore(
    ttl_seconds=settings.PENNY_CONTEXT_TTL_SECONDS,
    max_conversations=settings.PENNY_MAX_CONVERSATIONS,
)
