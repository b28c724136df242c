"""Line sources and filesystem helpers for ldif-events."""

from __future__ import annotations

import io
import os
import stat
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import TextIO

from .constants import (
    CONTINUATION_PREFIX,
    DEFAULT_ENCODING,
    DEFAULT_MAX_FILE_SIZE,
    LDIF_EXTENSIONS,
)

MAX_FILE_SIZE_ENV_VAR = "LDIF_EVENTS_MAX_FILE_SIZE"


def _strip_line_separator(line: str) -> str:
    if line.endswith("\r\n"):
        return line[:-2]
    if line.endswith("\n"):
        return line[:-1]
    return line


class LineSource:
    """Raw LDIF lines with single-line lookahead.

    Wraps any iterable of text lines (an open file, a list, a generator).
    Trailing ``\\n`` or ``\\r\\n`` separators are removed; no other whitespace
    is touched. At most one line is buffered, to answer `peek_continuation` and
    `peek_startswith`.

    A source built with ``owned=True`` closes the wrapped stream on `close`;
    a borrowed one only drops its reference.

    Examples:
        with LineSource.open(Path("export.ldif")) as source:
            first = source.read_line()
    """

    def __init__(self, lines: Iterable[str], owned: bool = False):
        self._stream = lines
        self._lines: Iterator[str] | None = iter(lines)
        self._pending: str | None = None
        self._owned = owned
        self.line_number = 0

    @classmethod
    def open(cls, filepath: Path, encoding: str = DEFAULT_ENCODING) -> "LineSource":
        """Open `filepath` and return a source that owns the file handle.

        Raises:
            IOError: If the file cannot be opened.
        """
        return cls(safe_open(filepath, encoding), owned=True)

    @classmethod
    def from_text(cls, text: str) -> "LineSource":
        return cls(io.StringIO(text), owned=True)

    @property
    def owned(self) -> bool:
        return self._owned

    @property
    def closed(self) -> bool:
        return self._lines is None

    def _next_raw(self) -> str | None:
        if self._lines is None:
            return None
        return next(self._lines, None)

    def read_line(self) -> str | None:
        """Return the next line without its separator, or None at end of input."""
        if self._pending is not None:
            line, self._pending = self._pending, None
        else:
            line = self._next_raw()
        if line is None:
            return None
        self.line_number += 1
        return _strip_line_separator(line)

    def peek_startswith(self, prefix: str) -> bool:
        """Report whether the next line starts with `prefix`, without consuming it."""
        if self._pending is None:
            self._pending = self._next_raw()
        return self._pending is not None and self._pending.startswith(prefix)

    def peek_continuation(self) -> bool:
        """Report whether the next line starts with a single leading space."""
        return self.peek_startswith(CONTINUATION_PREFIX)

    def close(self) -> None:
        """Release the underlying stream if this source owns it."""
        if self._lines is None:
            return
        if self._owned and hasattr(self._stream, "close"):
            self._stream.close()
        self._stream = None
        self._lines = None
        self._pending = None

    def __enter__(self) -> "LineSource":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def get_max_file_size(default: int = DEFAULT_MAX_FILE_SIZE) -> int:
    """Resolve the maximum allowed file size.

    Args:
        default: Fallback value in bytes when the environment variable is unset.

    Returns:
        int: Maximum allowed file size in bytes.

    Raises:
        ValueError: If the environment value is not a positive integer.

    Examples:
        os.environ["LDIF_EVENTS_MAX_FILE_SIZE"] = "204800"
        limit = get_max_file_size(default=102400)
    """
    env_value = os.environ.get(MAX_FILE_SIZE_ENV_VAR)
    if env_value is None:
        return default

    try:
        max_size = int(env_value)
    except ValueError as error:
        error_message = (
            f"Invalid value for {MAX_FILE_SIZE_ENV_VAR}: {env_value} (expected positive integer)"
        )
        raise ValueError(error_message) from error

    if max_size <= 0:
        error_message = f"{MAX_FILE_SIZE_ENV_VAR} must be a positive integer, got {max_size}."
        raise ValueError(error_message)

    return max_size


def contains_symlink(path: Path) -> bool:
    """Check whether a path or any parent directory is a symlink."""
    for candidate in (path, *path.parents):
        try:
            if candidate.is_symlink():
                return True
        except OSError:
            continue
    return False


def normalize_filepath(raw_path: str) -> Path:
    """Resolve and validate an LDIF filepath.

    Args:
        raw_path: User-supplied path to an LDIF file (absolute or relative).

    Returns:
        Path: Absolute path to the LDIF file.

    Raises:
        ValueError: If the path does not exist, is not a regular file, uses an
            unsupported extension, or traverses a symlink.

    Examples:
        normalize_filepath("exports/people.ldif")
    """
    path = Path(raw_path).expanduser()

    if contains_symlink(path):
        error_message = f"Symlinks are not supported for security reasons: {path}"
        raise ValueError(error_message)

    try:
        resolved = path.resolve(strict=True)
    except FileNotFoundError as error:
        error_message = f"{path} does not exist."
        raise ValueError(error_message) from error
    except OSError as error:
        error_message = f"Error resolving {path}: {error}"
        raise ValueError(error_message) from error

    if not resolved.is_file():
        error_message = f"{resolved} is not a regular file."
        raise ValueError(error_message)

    if resolved.suffix.lower() not in LDIF_EXTENSIONS:
        error_message = f"{resolved} is not an LDIF file.\n"
        error_message += f"Supported extensions are: {', '.join(LDIF_EXTENSIONS)}"
        raise ValueError(error_message)

    return resolved


def collect_file_stat(filepath: Path) -> os.stat_result:
    """Return stat information for a file while disallowing symlinks.

    Raises:
        IOError: If the path is inaccessible, a symlink, or not a regular file.
    """
    try:
        stat_result = os.stat(filepath, follow_symlinks=False)
    except OSError as error:
        error_message = f"Error accessing {filepath}: {error}"
        raise IOError(error_message) from error

    if stat.S_ISLNK(stat_result.st_mode):
        error_message = f"Symlinks are not supported: {filepath}."
        raise IOError(error_message)

    if not stat.S_ISREG(stat_result.st_mode):
        error_message = f"{filepath} is not a regular file."
        raise IOError(error_message)

    return stat_result


def enforce_file_size(stat_result: os.stat_result, max_size: int, filepath: Path):
    """Guard against files that exceed the configured maximum size.

    Raises:
        IOError: If `stat_result.st_size` exceeds `max_size`.
    """
    if stat_result.st_size > max_size:
        error_message = f"{filepath} exceeds the maximum allowed size of {max_size} bytes."
        raise IOError(error_message)


def safe_open(filepath: Path, encoding: str = DEFAULT_ENCODING) -> TextIO:
    """Open a file for reading with consistent error handling.

    Only ``\\n`` terminates lines; ``\\r\\n`` reaches `LineSource` untranslated
    and a lone ``\\r`` stays part of a value.

    Args:
        filepath: Path to the file.
        encoding: Text encoding of the file.

    Returns:
        TextIO: File handle opened for reading.

    Raises:
        IOError: If the path is missing, inaccessible, or not a file.

    Examples:
        with safe_open(Path("export.ldif"), "ascii") as handle:
            first_line = handle.readline()
    """
    try:
        return open(filepath, "r", encoding=encoding, newline="\n")
    except (
        FileNotFoundError,
        PermissionError,
        IsADirectoryError,
        NotADirectoryError,
    ) as error:
        error_message = f"Error accessing {filepath}: {error}"
        raise IOError(error_message) from error
