"""
Registry of live assistants, one per conversation.

Chats are keyed by a random id, belong to an owner and expire after a TTL of
inactivity; every successful lookup extends the expiry.
"""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Type

from assistant_chat.domain.exceptions import ChatNotFoundError
from assistant_chat.infrastructure.config import Config
from assistant_chat.providers.base.interfaces import ChatProvider
from .assistant import Assistant

logger = logging.getLogger(__name__)


@dataclass
class ChatEntry:
    owner: str
    chat: Assistant
    expiration: float


class ChatsHolder:
    """
    Args:
        provider: Provider handed to every assistant created through the holder
        ttl: Seconds of inactivity before a chat expires; 0 disables expiry
        clock: Time source (seconds), injectable for tests
    """

    def __init__(
        self,
        provider: ChatProvider,
        ttl: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.provider = provider
        self.ttl = Config.CHATS_TTL if ttl is None else ttl
        self._clock = clock
        self._chats: Dict[str, ChatEntry] = {}

    def __len__(self) -> int:
        return len(self._chats)

    def _expiration(self) -> float:
        return self._clock() + self.ttl if self.ttl else float("inf")

    async def create_chat(self, owner: str, chat_type: Type[Assistant], *args: Any, **kwargs: Any) -> str:
        """Instantiate chat_type(provider, *args, **kwargs) and register it for owner."""
        chat_id = uuid.uuid4().hex
        chat = chat_type(self.provider, *args, **kwargs)
        self._chats[chat_id] = ChatEntry(owner=owner, chat=chat, expiration=self._expiration())
        logger.info("Created chat %s (%s) for %s", chat_id, chat_type.__name__, owner)
        return chat_id

    def create_chat_factory(
        self, chat_types: Mapping[str, Type[Assistant]], owner: str, type_name: str
    ) -> Callable[..., Awaitable[str]]:
        """Bind owner and chat type; the returned coroutine function takes the remaining constructor args."""
        try:
            chat_type = chat_types[type_name]
        except KeyError:
            raise ValueError(f"Unknown chat type '{type_name}'") from None

        async def factory(*args: Any, **kwargs: Any) -> str:
            return await self.create_chat(owner, chat_type, *args, **kwargs)

        return factory

    async def get_chat(self, chat_id: str, owner: str) -> Assistant:
        entry = self._chats.get(chat_id)
        if entry is None:
            raise ChatNotFoundError(chat_id)
        if entry.owner != owner:
            # Same error as a missing chat; ids of other owners are not disclosed
            raise ChatNotFoundError(chat_id)
        if entry.expiration < self._clock():
            await self._expire(chat_id, entry)
            raise ChatNotFoundError(chat_id)
        entry.expiration = self._expiration()
        return entry.chat

    async def remove_chat(self, chat_id: str, owner: str) -> None:
        entry = self._chats.get(chat_id)
        if entry is None or entry.owner != owner:
            raise ChatNotFoundError(chat_id)
        del self._chats[chat_id]
        await entry.chat.retire()

    async def purge_expired(self) -> int:
        """Remove every expired chat; returns how many were removed."""
        now = self._clock()
        expired = [(cid, e) for cid, e in self._chats.items() if e.expiration < now]
        for chat_id, entry in expired:
            await self._expire(chat_id, entry)
        return len(expired)

    async def _expire(self, chat_id: str, entry: ChatEntry) -> None:
        self._chats.pop(chat_id, None)
        logger.info("Chat %s expired", chat_id)
        await entry.chat.retire()


__all__ = ["ChatsHolder", "ChatEntry"]
