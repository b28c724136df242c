"""Data models for ldif-events."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Protocol, Union


class ParserState(Enum):
    """Parser states used while scanning LDIF content.

    Attributes:
        CLOSED: No entry is open; only ``dn:`` lines, comments and blank lines
            are legal.
        OPEN: An entry has begun and attribute lines belong to it.
    """

    CLOSED = auto()
    OPEN = auto()


class ControlFlow(Enum):
    """Outcome of a single parser step.

    Attributes:
        CONTINUE: More input may follow.
        END_OF_INPUT: The line source is exhausted.
    """

    CONTINUE = auto()
    END_OF_INPUT = auto()


@dataclass
class ParserContext:
    """Encapsulate parser state while walking LDIF text.

    Attributes:
        state: Current parser state.
        last_dn: Distinguished name of the open (or just closed) entry.
        version: LDIF version from an optional header line, if any.
        entries_seen: Number of entries opened so far.
    """

    state: ParserState = ParserState.CLOSED
    last_dn: str | None = None
    version: int | None = None
    entries_seen: int = 0

    @property
    def entry_open(self) -> bool:
        return self.state is ParserState.OPEN


@dataclass(frozen=True)
class BeginEntry:
    """A new entry starts with distinguished name `dn`."""

    dn: str


@dataclass(frozen=True)
class Attribute:
    """One attribute value of the open entry.

    Attributes:
        name: Attribute description exactly as written before the colon.
        value: ``str`` for literal values, ``bytes`` for base64 (``::``) values.
    """

    name: str
    value: str | bytes

    @property
    def is_binary(self) -> bool:
        return isinstance(self.value, bytes)


@dataclass(frozen=True)
class EndEntry:
    """The entry named `dn` is complete."""

    dn: str


ParseEvent = Union[BeginEntry, Attribute, EndEntry]


class EventHandler(Protocol):
    """Receiver for parse events delivered by `LdifLineParser.consume_next`."""

    def begin_entry(self, dn: str) -> None: ...

    def attribute(self, name: str, value: str | bytes) -> None: ...

    def end_entry(self, dn: str) -> None: ...
