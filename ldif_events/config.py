"""Configuration loading and management."""

from __future__ import annotations

import codecs
from dataclasses import dataclass, replace
from pathlib import Path
import tomllib

ON_ERROR_POLICIES = ("abort", "skip")
BINARY_FORMATS = ("base64", "hex")
OUTPUT_FORMATS = ("text", "json")


@dataclass
class LdifConfig:
    """Configuration for reading LDIF files.

    Attributes:
        encoding: Character encoding used to decode input files.
        on_error: Recovery policy for parse errors: ``"abort"`` re-raises the
            first error, ``"skip"`` logs it and resumes after the next blank line.
        allow_version: Whether a leading ``version:`` header line is accepted.
        binary_format: Rendering of binary values on output (``"base64"`` or ``"hex"``).
        output_format: Event output format (``"text"`` or ``"json"``).
        max_file_size: Maximum file size in bytes that will be processed.
        max_line_length: Maximum length of an unfolded logical line.

    Examples:
        LdifConfig(encoding="ascii", on_error="skip")
    """

    # Input
    encoding: str = "utf-8"
    on_error: str = "abort"
    allow_version: bool = True

    # Output
    binary_format: str = "base64"
    output_format: str = "text"

    # Limits
    max_file_size: int = 100 * 1024 * 1024
    max_line_length: int = 1_000_000


class ConfigError(ValueError):
    """Exception raised when configuration values are invalid.

    Examples:
        raise ConfigError("`on_error` must be one of: abort, skip")
    """


def load_config(search_path: Path) -> LdifConfig:
    """Load configuration from the nearest config file.

    Walks parent directories from `search_path` to the filesystem root, reading
    the ``[tool.ldif-events]`` table from `pyproject.toml` and the
    ``[ldif-events]`` or ``[tool.ldif-events]`` table from `.ldif-events.toml`
    when present. Returns default values when no configuration is found. TOML
    files that cannot be read or decoded are skipped.

    Args:
        search_path: Directory used as the starting point for configuration lookup.

    Returns:
        LdifConfig: Loaded configuration with defaults applied when necessary.

    Raises:
        ConfigError: If a matching table is present but not a mapping or
            contains unsupported keys.

    Examples:
        load_config(Path("exports"))
    """
    current = search_path.resolve()

    while True:
        pyproject_config = _load_from_file(
            current / "pyproject.toml", table_paths=[("tool", "ldif-events")]
        )
        if pyproject_config is not None:
            return pyproject_config

        dotfile_config = _load_from_file(
            current / ".ldif-events.toml",
            table_paths=[("ldif-events",), ("tool", "ldif-events")],
        )
        if dotfile_config is not None:
            return dotfile_config

        parent = current.parent
        if parent == current:
            break
        current = parent

    return LdifConfig()


_MISSING = object()


def _load_from_file(config_file: Path, table_paths: list[tuple[str, ...]]) -> LdifConfig | None:
    if not config_file.exists():
        return None

    try:
        with open(config_file, "rb") as stream:
            data = tomllib.load(stream)
    except (OSError, tomllib.TOMLDecodeError):
        return None

    for table_path in table_paths:
        raw_config = _extract_table(data, table_path)
        if raw_config is _MISSING:
            continue
        return _build_config_from_raw(raw_config, config_file, table_path)

    return None


def _extract_table(data: object, table_path: tuple[str, ...]) -> object:
    current = data
    for key in table_path:
        if not isinstance(current, dict) or key not in current:
            return _MISSING
        current = current[key]
    return current


def _build_config_from_raw(
    raw_config: object, config_file: Path, table_path: tuple[str, ...]
) -> LdifConfig:
    table_display = ".".join(table_path)

    if not isinstance(raw_config, dict):
        raise ConfigError(f"Invalid `[{table_display}]` settings in {config_file}")

    # TOML keys are conventionally kebab-case
    normalized = {key.replace("-", "_"): value for key, value in raw_config.items()}
    try:
        return LdifConfig(**normalized)
    except TypeError as error:
        raise ConfigError(f"Invalid `[{table_display}]` settings in {config_file}") from error


def validate_config(config: LdifConfig) -> None:
    """Validate a `LdifConfig` instance.

    Args:
        config: Configuration to validate.

    Raises:
        ConfigError: If the encoding is unknown, a choice field holds an
            unsupported value, or numeric limits are not positive integers.

    Examples:
        validate_config(LdifConfig(on_error="skip"))
    """
    if not isinstance(config.encoding, str) or not config.encoding:
        raise ConfigError("`encoding` must be a non-empty string")
    try:
        codecs.lookup(config.encoding)
    except LookupError as error:
        raise ConfigError(f"Unknown encoding: {config.encoding}") from error

    if config.on_error not in ON_ERROR_POLICIES:
        raise ConfigError(f"`on_error` must be one of: {', '.join(ON_ERROR_POLICIES)}")
    if config.binary_format not in BINARY_FORMATS:
        raise ConfigError(f"`binary_format` must be one of: {', '.join(BINARY_FORMATS)}")
    if config.output_format not in OUTPUT_FORMATS:
        raise ConfigError(f"`output_format` must be one of: {', '.join(OUTPUT_FORMATS)}")
    if not isinstance(config.allow_version, bool):
        raise ConfigError("`allow_version` must be a boolean")

    limits = {
        "max_file_size": config.max_file_size,
        "max_line_length": config.max_line_length,
    }
    _ensure_integers(limits)
    _ensure_positive(limits)


def apply_overrides(config: LdifConfig, **overrides: object) -> LdifConfig:
    """Apply override values to a `LdifConfig`.

    Args:
        config: Base configuration to update.
        overrides: Override values keyed by configuration field name; values set to
            None are ignored.

    Returns:
        LdifConfig: New configuration with the provided overrides applied. The
        original configuration is returned when no changes are supplied.

    Raises:
        TypeError: If an override name is not defined on `LdifConfig`.
    """
    changes = {key: value for key, value in overrides.items() if value is not None}
    if not changes:
        return config
    return replace(config, **changes)


def build_config(search_path: Path, **overrides: object) -> LdifConfig:
    """Load, override, and validate configuration.

    Args:
        search_path: Directory where configuration files are resolved.
        overrides: Override values keyed by configuration attributes; None values
            are ignored.

    Returns:
        LdifConfig: Validated configuration ready for parsing.

    Raises:
        ConfigError: If configuration loading or validation fails.

    Examples:
        config = build_config(Path.cwd(), on_error="skip")
    """
    config = load_config(search_path)
    config = apply_overrides(config, **overrides)
    validate_config(config)
    return config


def _ensure_positive(values: dict[str, int]) -> None:
    for key, value in values.items():
        if value <= 0:
            raise ConfigError(f"`{key}` must be a positive integer")


def _ensure_integers(values: dict[str, object]) -> None:
    for key, value in values.items():
        if isinstance(value, bool) or not isinstance(value, int):
            raise ConfigError(f"`{key}` must be an integer")
