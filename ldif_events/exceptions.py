"""Package-specific exception types."""

from __future__ import annotations


class ParseError(ValueError):
    """Base class for LDIF parsing errors.

    Args:
        message: Human-readable description of the problem.
        line_number: One-based index of the line where the offending logical
            line starts, or None when unknown.
    """

    def __init__(self, message: str, line_number: int | None = None):
        self.line_number = line_number
        if line_number is not None:
            message = f"Line {line_number}: {message}"
        super().__init__(message)


class MalformedLineError(ParseError):
    """Raised when a line has no colon separator or an empty attribute name.

    Args:
        line: The offending logical line.
        line_number: One-based index of the line.
    """

    def __init__(self, line: str, line_number: int | None = None):
        self.line = line
        super().__init__(f"Malformed LDIF line {line!r}", line_number)


class InvalidBase64Error(ParseError):
    """Raised when a ``::`` value is not valid base64."""

    def __init__(self, name: str, line_number: int | None = None):
        self.name = name
        super().__init__(f"Invalid base64 value for {name!r}", line_number)


class InvalidDnEncodingError(ParseError):
    """Raised when a base64 distinguished name does not decode to UTF-8 text."""

    def __init__(self, line_number: int | None = None):
        super().__init__("Distinguished name is not valid UTF-8", line_number)


class AttributeOutsideEntryError(ParseError):
    """Raised when an attribute line appears while no entry is open.

    Args:
        name: Attribute name found on the line.
        line_number: One-based index of the line.
    """

    def __init__(self, name: str, line_number: int | None = None):
        self.name = name
        super().__init__(f"Attribute {name!r} outside of an entry", line_number)


class EntryAlreadyOpenError(ParseError):
    """Raised when a ``dn:`` line appears before the open entry was closed."""

    def __init__(self, open_dn: str, line_number: int | None = None):
        self.open_dn = open_dn
        super().__init__(
            f"New entry started before {open_dn!r} was closed by a blank line", line_number
        )


class LineTooLongError(ParseError):
    """Raised when an unfolded logical line exceeds the configured maximum length.

    Args:
        line_number: One-based index of the line.
        max_line_length: Maximum allowed logical line length in characters.
    """

    def __init__(self, line_number: int, max_line_length: int):
        self.max_line_length = max_line_length
        super().__init__(
            f"Logical line exceeds maximum allowed length of {max_line_length} characters",
            line_number,
        )


class VersionNotANumberError(ParseError):
    """Raised when the LDIF ``version:`` header is not an integer."""

    def __init__(self, value: str, line_number: int | None = None):
        self.value = value
        super().__init__(f"Non-numeric LDIF version {value!r}", line_number)


class UnsupportedVersionError(ParseError):
    """Raised when the LDIF ``version:`` header names an unsupported version."""

    def __init__(self, version: int, line_number: int | None = None):
        self.version = version
        super().__init__(f"LDIF version {version} is not supported", line_number)
