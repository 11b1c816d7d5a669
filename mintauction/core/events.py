"""
Events - Append-only observations for external indexers.

Every state change an indexer cares about is recorded as a frozen
dataclass in an EventLog. The log participates in Chain.atomic()
scopes, so events emitted by a call that later fails are dropped
together with the rest of its effects.
"""

from dataclasses import dataclass, fields
from typing import Callable, Dict, Iterator, List, Optional, Type, TypeVar

from mintauction.crypto import bytes_to_hex
from mintauction.utils.logger import get_logger

logger = get_logger("events")


# =============================================================================
# Observations
# =============================================================================


@dataclass(frozen=True)
class Event:
    """Base class for observations."""

    @property
    def name(self) -> str:
        return type(self).__name__

    def to_dict(self) -> dict:
        """JSON-friendly form: bytes as 0x-hex, ints as decimal strings."""
        out = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, (bytes, bytearray)):
                value = bytes_to_hex(value)
            elif isinstance(value, int) and not isinstance(value, bool):
                value = str(value)
            out[f.name] = value
        return out


@dataclass(frozen=True)
class BidAccepted(Event):
    bidder: bytes
    amount: int


@dataclass(frozen=True)
class AuctionStarted(Event):
    deadline: int
    contested_token_id: int


@dataclass(frozen=True)
class AuctionExtended(Event):
    deadline: int


@dataclass(frozen=True)
class AuctionSettled(Event):
    winner: bytes
    amount: int
    token_id: int


@dataclass(frozen=True)
class AuctionAbandoned(Event):
    """Round closed with issuance off; the winning bid went back to the winner."""
    winner: bytes
    amount: int


@dataclass(frozen=True)
class TokenMinted(Event):
    token_id: int
    owner: bytes


@dataclass(frozen=True)
class TransferFellBack(Event):
    """A direct value transfer failed and the wrapped asset was sent instead."""
    recipient: bytes
    amount: int


@dataclass(frozen=True)
class MetadataFrozen(Event):
    pass


@dataclass(frozen=True)
class BaseURIChanged(Event):
    value: str


@dataclass(frozen=True)
class MinterChanged(Event):
    address: bytes


EVENT_TYPES: Dict[str, Type[Event]] = {
    cls.__name__: cls
    for cls in (
        BidAccepted,
        AuctionStarted,
        AuctionExtended,
        AuctionSettled,
        AuctionAbandoned,
        TokenMinted,
        TransferFellBack,
        MetadataFrozen,
        BaseURIChanged,
        MinterChanged,
    )
}

E = TypeVar("E", bound=Event)


# =============================================================================
# Event Log
# =============================================================================


class EventLog:
    """
    Append-only list of observations.

    Listeners are notified synchronously on emit. A listener that
    raises aborts the emitting call, which is then rolled back.
    """

    def __init__(self):
        self._events: List[Event] = []
        self._listeners: List[Callable[[Event], None]] = []

    def emit(self, event: Event) -> None:
        self._events.append(event)
        logger.debug(f"{event.name} {event.to_dict()}")
        for listener in self._listeners:
            listener(event)

    def subscribe(self, listener: Callable[[Event], None]) -> None:
        self._listeners.append(listener)

    def of_type(self, cls: Type[E]) -> List[E]:
        return [e for e in self._events if isinstance(e, cls)]

    def last(self, cls: Optional[Type[E]] = None) -> Optional[Event]:
        events = self._events if cls is None else self.of_type(cls)
        return events[-1] if events else None

    def since(self, index: int) -> List[Event]:
        """Events appended at or after position `index`."""
        return list(self._events[index:])

    # -- Stateful --

    def snapshot(self) -> int:
        return len(self._events)

    def restore(self, snapshot: int) -> None:
        del self._events[snapshot:]

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self) -> Iterator[Event]:
        return iter(list(self._events))


def event_from_dict(name: str, payload: dict) -> Event:
    """Rebuild an event stored with Event.to_dict()."""
    cls = EVENT_TYPES[name]
    kwargs = {}
    for f in fields(cls):
        raw = payload[f.name]
        if f.type in (bytes, "bytes"):
            kwargs[f.name] = bytes.fromhex(raw[2:])
        elif f.type in (int, "int"):
            kwargs[f.name] = int(raw)
        else:
            kwargs[f.name] = raw
    return cls(**kwargs)
