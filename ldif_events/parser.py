"""LDIF line parsing."""

from __future__ import annotations

import base64
import binascii
import logging
from collections.abc import Iterable, Iterator
from pathlib import Path

from .constants import (
    COMMENT_PREFIX,
    CONTINUATION_PREFIX,
    DEFAULT_ENCODING,
    DN_ATTRIBUTE,
    DN_PREFIX,
    SUPPORTED_VERSION,
    VALUE_SEPARATOR,
    VERSION_ATTRIBUTE,
)
from .exceptions import (
    AttributeOutsideEntryError,
    EntryAlreadyOpenError,
    InvalidBase64Error,
    InvalidDnEncodingError,
    LineTooLongError,
    MalformedLineError,
    UnsupportedVersionError,
    VersionNotANumberError,
)
from .models import (
    Attribute,
    BeginEntry,
    ControlFlow,
    EndEntry,
    EventHandler,
    ParseEvent,
    ParserContext,
    ParserState,
)
from .source import LineSource

logger = logging.getLogger(__name__)


def _open_entry(ctx: ParserContext, dn: str) -> BeginEntry:
    """Move the context into the open state for entry `dn`.

    Args:
        ctx: Parser context to update.
        dn: Decoded distinguished name of the new entry.

    Returns:
        BeginEntry: Event announcing the entry.

    Examples:
        _open_entry(ParserContext(), "cn=a,dc=x")  # BeginEntry(dn="cn=a,dc=x")
    """
    ctx.state = ParserState.OPEN
    ctx.last_dn = dn
    ctx.entries_seen += 1
    return BeginEntry(dn)


def _close_entry(ctx: ParserContext) -> EndEntry | None:
    """Close the open entry, if any.

    `last_dn` is kept so that hosts can still read it after the end event.

    Args:
        ctx: Parser context to update.

    Returns:
        EndEntry | None: Event for the closed entry, or None when no entry was open.
    """
    if ctx.state is not ParserState.OPEN:
        return None

    ctx.state = ParserState.CLOSED
    return EndEntry(ctx.last_dn)


def _split_logical_line(
    logical_line: str, segment_ends: tuple[int, ...], line_number: int
) -> tuple[str, bool, str]:
    """Split an unfolded line into name, base64 flag and raw value.

    Leading whitespace of the value is trimmed only up to the end of the
    physical line on which the value starts; whitespace contributed by later
    continuation lines is kept. The name itself may be folded.

    Args:
        logical_line: The unfolded line.
        segment_ends: End offsets of each physical line within `logical_line`.
        line_number: One-based line number, used in errors.

    Returns:
        tuple[str, bool, str]: Attribute name, whether the ``::`` marker was
            present, and the value text.

    Raises:
        MalformedLineError: If there is no colon or the name is empty.

    Examples:
        _split_logical_line("cn:  a", (6,), 1)  # ("cn", False, "a")
        _split_logical_line("photo:: AAE=", (12,), 1)  # ("photo", True, "AAE=")
    """
    name, separator, _ = logical_line.partition(VALUE_SEPARATOR)
    if not separator or not name:
        raise MalformedLineError(logical_line, line_number)

    value_start = len(name) + 1
    is_base64 = logical_line.startswith(VALUE_SEPARATOR, value_start)
    if is_base64:
        value_start += 1

    segment_end = next((end for end in segment_ends if end > value_start), value_start)
    while value_start < segment_end and logical_line[value_start].isspace():
        value_start += 1

    return name, is_base64, logical_line[value_start:]


def _decode_base64(payload: str, name: str, line_number: int) -> bytes:
    # Whitespace inside a folded payload carries no data
    compact = "".join(payload.split())
    try:
        return base64.b64decode(compact, validate=True)
    except (binascii.Error, ValueError) as error:
        raise InvalidBase64Error(name, line_number) from error


def _dispatch(handler: EventHandler, event: ParseEvent) -> None:
    if isinstance(event, BeginEntry):
        handler.begin_entry(event.dn)
    elif isinstance(event, Attribute):
        handler.attribute(event.name, event.value)
    else:
        handler.end_entry(event.dn)


class LdifLineParser:
    """Pull-based LDIF parser producing begin-entry, attribute and end-entry events.

    Each call to `consume_next` reads one logical line (a physical line plus
    its continuation lines) and emits at most one event. Events reach the
    optional `handler`; iterating the parser yields them instead.

    Args:
        source: A `LineSource`, or any iterable of text lines which is then
            borrowed (never closed by the parser).
        handler: Receiver for events produced by `consume_next`.
        allow_version: Accept a ``version:`` header line before the first entry.
        max_line_length: Maximum length of an unfolded line; None disables the check.

    Examples:
        with LdifLineParser.open(Path("export.ldif")) as parser:
            for event in parser:
                print(event)
    """

    def __init__(
        self,
        source: LineSource | Iterable[str],
        handler: EventHandler | None = None,
        *,
        allow_version: bool = False,
        max_line_length: int | None = None,
    ):
        if isinstance(source, (str, bytes)):
            raise TypeError("source must be an iterable of lines, not a single string")
        if not isinstance(source, LineSource):
            source = LineSource(source)
        self._source = source
        self._handler = handler
        self._allow_version = allow_version
        self._max_line_length = max_line_length
        self.context = ParserContext()

    @classmethod
    def open(
        cls, filepath: Path, encoding: str = DEFAULT_ENCODING, **kwargs
    ) -> "LdifLineParser":
        """Create a parser that owns the file at `filepath`."""
        return cls(LineSource.open(filepath, encoding), **kwargs)

    @property
    def last_dn(self) -> str | None:
        return self.context.last_dn

    @property
    def entry_open(self) -> bool:
        return self.context.entry_open

    @property
    def line_number(self) -> int:
        return self._source.line_number

    def _unfold(self, first_line: str, line_number: int) -> tuple[str, tuple[int, ...]]:
        parts = [first_line]
        length = len(first_line)
        segment_ends = [length]
        while True:
            if self._max_line_length is not None and length > self._max_line_length:
                raise LineTooLongError(line_number, self._max_line_length)
            if not self._source.peek_continuation():
                break
            segment = self._source.read_line()[1:]
            parts.append(segment)
            length += len(segment)
            segment_ends.append(length)
        return "".join(parts), tuple(segment_ends)

    def _accept_version(self, raw_value: str, line_number: int) -> None:
        try:
            version = int(raw_value.strip())
        except ValueError as error:
            raise VersionNotANumberError(raw_value, line_number) from error
        if version != SUPPORTED_VERSION:
            raise UnsupportedVersionError(version, line_number)
        self.context.version = version
        logger.debug("LDIF version %d declared at line %d", version, line_number)

    def _is_version_header(self, name: str, is_base64: bool) -> bool:
        ctx = self.context
        return (
            self._allow_version
            and not is_base64
            and name.lower() == VERSION_ATTRIBUTE
            and ctx.state is ParserState.CLOSED
            and ctx.entries_seen == 0
            and ctx.version is None
        )

    def step(self) -> tuple[ControlFlow, ParseEvent | None]:
        """Consume the next logical line and return the flow and the event it produced.

        Returns:
            tuple[ControlFlow, ParseEvent | None]: `ControlFlow.END_OF_INPUT`
                once the source is exhausted, otherwise `ControlFlow.CONTINUE`;
                and the emitted event, or None for comments, blank lines
                outside an entry, and the version header.

        Raises:
            ParseError: A subclass describing why the line was rejected. The
                parser context is left as it was before the call.
        """
        ctx = self.context
        line = self._source.read_line()

        if line is None:
            event = _close_entry(ctx)
            if event is not None:
                logger.debug("Entry %s closed by end of input", event.dn)
            return ControlFlow.END_OF_INPUT, event

        line_number = self._source.line_number

        if line.startswith(COMMENT_PREFIX):
            # RFC 2849 lets comments fold like any other line
            self._unfold(line, line_number)
            return ControlFlow.CONTINUE, None

        if line == "":
            return ControlFlow.CONTINUE, _close_entry(ctx)

        if line.startswith(CONTINUATION_PREFIX):
            raise MalformedLineError(line, line_number)

        logical_line, segment_ends = self._unfold(line, line_number)
        name, is_base64, raw_value = _split_logical_line(logical_line, segment_ends, line_number)

        if self._is_version_header(name, is_base64):
            self._accept_version(raw_value, line_number)
            return ControlFlow.CONTINUE, None

        value: str | bytes = raw_value
        if is_base64:
            value = _decode_base64(raw_value, name, line_number)

        if name == DN_ATTRIBUTE:
            if is_base64:
                try:
                    value = value.decode("utf-8")
                except UnicodeDecodeError as error:
                    raise InvalidDnEncodingError(line_number) from error
            if ctx.entry_open:
                raise EntryAlreadyOpenError(ctx.last_dn, line_number)
            logger.debug("Entry %s opened at line %d", value, line_number)
            return ControlFlow.CONTINUE, _open_entry(ctx, value)

        if not ctx.entry_open:
            raise AttributeOutsideEntryError(name, line_number)

        return ControlFlow.CONTINUE, Attribute(name, value)

    def consume_next(self) -> ControlFlow:
        """Consume the next logical line, delivering any event to the handler.

        Returns:
            ControlFlow: `ControlFlow.END_OF_INPUT` once the source is exhausted.

        Raises:
            ParseError: If the line cannot be parsed; no event is delivered.

        Examples:
            while parser.consume_next() is ControlFlow.CONTINUE:
                pass
        """
        flow, event = self.step()
        if event is not None and self._handler is not None:
            _dispatch(self._handler, event)
        return flow

    def skip_entry(self) -> EndEntry | None:
        """Discard raw lines up to the next blank line and close the open entry.

        Intended for hosts that recover from a `ParseError` by dropping the
        rest of the damaged entry. When no entry was open, a ``dn:`` line also
        ends the skip and is left for the next `step`, so a well-formed entry
        following orphan lines is not lost.

        Returns:
            EndEntry | None: Event for the entry that was open, or None.
        """
        entry_was_open = self.context.entry_open
        while True:
            if not entry_was_open and self._source.peek_startswith(DN_PREFIX):
                logger.debug("Skip stopped before dn line %d", self._source.line_number + 1)
                break
            line = self._source.read_line()
            if line is None or line == "":
                break
        return _close_entry(self.context)

    def __iter__(self) -> Iterator[ParseEvent]:
        while True:
            flow, event = self.step()
            if event is not None:
                yield event
            if flow is ControlFlow.END_OF_INPUT:
                return

    def close(self) -> None:
        self._source.close()

    def __enter__(self) -> "LdifLineParser":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def parse_ldif(content: str, **kwargs) -> list[ParseEvent]:
    """Parse LDIF text held in memory.

    Args:
        content: The LDIF document.
        **kwargs: Options forwarded to `LdifLineParser`.

    Returns:
        list[ParseEvent]: Events in emission order.

    Raises:
        ParseError: On the first line that cannot be parsed.

    Examples:
        parse_ldif("dn: cn=a,dc=x\\ncn: a\\n")
    """
    with LdifLineParser(LineSource.from_text(content), **kwargs) as parser:
        return list(parser)
