import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Type

from ledgerboard.models.transaction import Transaction

__all__ = ["EventBus", "TransactionCreated", "TransactionDeleted", "TransactionUpdated"]

logger = logging.getLogger(__name__)

Handler = Callable[[Any], Awaitable[None]]


@dataclass(frozen=True)
class TransactionCreated:
    category: str
    type: str
    amount: float


@dataclass(frozen=True)
class TransactionDeleted:
    category: str
    type: str
    amount: float


@dataclass(frozen=True)
class TransactionUpdated:
    previous: Transaction
    current: Transaction


class EventBus:
    """In-process publish/subscribe keyed by event class.

    Handlers run sequentially in subscription order and are awaited before
    ``publish`` returns. A failing handler propagates to the publisher.
    """

    def __init__(self) -> None:
        self._subscribers: Dict[Type, List[Handler]] = {}

    def subscribe(self, event_type: Type, handler: Handler) -> None:
        self._subscribers.setdefault(event_type, []).append(handler)

    def unsubscribe(self, event_type: Type, handler: Handler) -> None:
        handlers = self._subscribers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    async def publish(self, event: Any) -> int:
        handlers = list(self._subscribers.get(type(event), []))
        logger.debug(f"Publishing {type(event).__name__} to {len(handlers)} handler(s)")
        for handler in handlers:
            await handler(event)
        return len(handlers)
