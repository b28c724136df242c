"""
ldif-events: streaming LDIF parser emitting begin-entry, attribute and end-entry events.

This package can be used both as a CLI tool and as a library.

CLI Usage:
    ldif-events export.ldif

Library Usage:
    from pathlib import Path
    from ldif_events import LdifLineParser

    with LdifLineParser.open(Path("export.ldif")) as parser:
        for event in parser:
            print(event)
"""

from .exceptions import (
    AttributeOutsideEntryError,
    EntryAlreadyOpenError,
    InvalidBase64Error,
    InvalidDnEncodingError,
    LineTooLongError,
    MalformedLineError,
    ParseError,
    UnsupportedVersionError,
    VersionNotANumberError,
)
from .models import Attribute, BeginEntry, ControlFlow, EndEntry, EventHandler, ParseEvent
from .parser import LdifLineParser, parse_ldif
from .reader import ParseFileError, iter_events, iter_file_events, parse_file
from .source import LineSource

__version__ = "0.1.0"

__all__ = [
    # Core functionality
    "LdifLineParser",
    "LineSource",
    "parse_ldif",
    "parse_file",
    "iter_events",
    "iter_file_events",
    # Data models
    "Attribute",
    "BeginEntry",
    "ControlFlow",
    "EndEntry",
    "EventHandler",
    "ParseEvent",
    # Exceptions
    "AttributeOutsideEntryError",
    "EntryAlreadyOpenError",
    "InvalidBase64Error",
    "InvalidDnEncodingError",
    "LineTooLongError",
    "MalformedLineError",
    "ParseError",
    "ParseFileError",
    "UnsupportedVersionError",
    "VersionNotANumberError",
    # Version
    "__version__",
]
