"""Host-side helpers: error recovery policy and whole-file parsing."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path

from .config import ConfigError, LdifConfig, validate_config
from .exceptions import ParseError
from .models import ControlFlow, ParseEvent
from .parser import LdifLineParser

logger = logging.getLogger(__name__)


class ParseFileError(Exception):
    """Raised when parsing an LDIF file fails."""


def iter_events(parser: LdifLineParser, on_error: str = "abort") -> Iterator[ParseEvent]:
    """Yield events from `parser` until end of input, applying a recovery policy.

    With ``"abort"`` the first `ParseError` propagates. With ``"skip"`` each
    error is logged, the rest of the damaged entry is discarded and parsing
    resumes after the next blank line (or, when no entry was open, at the
    next ``dn:`` line); an entry that was already announced still receives
    its `EndEntry`.

    Args:
        parser: Parser to drain.
        on_error: ``"abort"`` or ``"skip"``.

    Yields:
        ParseEvent: Events in emission order.

    Raises:
        ParseError: With the ``"abort"`` policy, on the first unparsable line.
        ValueError: If `on_error` is not a known policy.
    """
    if on_error not in ("abort", "skip"):
        raise ValueError(f"Unknown error policy: {on_error}")

    while True:
        try:
            flow, event = parser.step()
        except ParseError as error:
            if on_error == "abort":
                raise
            logger.warning("Skipping damaged entry: %s", error)
            end_event = parser.skip_entry()
            if end_event is not None:
                yield end_event
            continue

        if event is not None:
            yield event
        if flow is ControlFlow.END_OF_INPUT:
            return


def iter_file_events(filepath: Path, config: LdifConfig | None = None) -> Iterator[ParseEvent]:
    """Stream events from an LDIF file.

    The file is opened lazily and closed when the generator finishes, fails,
    or is closed early by the caller.

    Args:
        filepath: Path to the LDIF file.
        config: Configuration controlling encoding, recovery policy and
            limits. Defaults to a new `LdifConfig` when omitted.

    Yields:
        ParseEvent: Events in emission order.

    Raises:
        ParseFileError: If configuration is invalid, the file cannot be read or
            decoded, or a line cannot be parsed under the ``"abort"`` policy.
    """
    config = config or LdifConfig()
    try:
        validate_config(config)
    except ConfigError as error:
        raise ParseFileError(str(error)) from error

    try:
        with LdifLineParser.open(
            filepath,
            config.encoding,
            allow_version=config.allow_version,
            max_line_length=config.max_line_length,
        ) as parser:
            yield from iter_events(parser, config.on_error)
    except UnicodeDecodeError as error:
        error_message = f"Invalid {config.encoding} sequence in {filepath}: {error}"
        raise ParseFileError(error_message) from error
    except ParseError as error:
        error_message = f"{filepath}: {error}"
        raise ParseFileError(error_message) from error
    except IOError as error:
        raise ParseFileError(str(error)) from error


def parse_file(filepath: Path, config: LdifConfig | None = None) -> list[ParseEvent]:
    """Parse an LDIF file into a list of events.

    Args:
        filepath: Path to the LDIF file.
        config: Configuration controlling encoding, recovery policy and limits.

    Returns:
        list[ParseEvent]: Events in emission order.

    Raises:
        ParseFileError: See `iter_file_events`.

    Examples:
        events = parse_file(Path("export.ldif"), LdifConfig(on_error="skip"))
    """
    return list(iter_file_events(filepath, config))
