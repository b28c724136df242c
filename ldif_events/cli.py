"""
Prints the begin-entry, attribute and end-entry events of an LDIF file.
"""

from __future__ import annotations

import base64
import json
import logging
import sys

import click
from .config import ConfigError, LdifConfig, build_config
from .models import Attribute, BeginEntry, ParseEvent
from .reader import ParseFileError, iter_file_events
from .source import (
    collect_file_stat,
    enforce_file_size,
    get_max_file_size,
    normalize_filepath,
)

__all__ = ["cli"]

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"

TEXT_ESCAPES = str.maketrans({"\\": "\\\\", "\t": "\\t", "\r": "\\r", "\n": "\\n"})


def _render_binary(value: bytes, binary_format: str) -> str:
    if binary_format == "hex":
        return value.hex()
    return base64.b64encode(value).decode("ascii")


def _escape_text(text: str) -> str:
    return text.translate(TEXT_ESCAPES)


def format_event(event: ParseEvent, config: LdifConfig) -> str:
    """Render one event as a line of CLI output.

    Text output escapes backslash, tab, carriage return and newline so each
    event stays on one line with unambiguous tab-separated columns.

    Args:
        event: Event to render.
        config: Supplies `output_format` and `binary_format`.

    Returns:
        str: The rendered line, without a trailing newline.

    Examples:
        format_event(BeginEntry("cn=a,dc=x"), LdifConfig())  # "begin\\tcn=a,dc=x"
        format_event(Attribute("photo", b"\\x00"), LdifConfig())  # "attr\\tphoto::\\tAA=="
    """
    if isinstance(event, Attribute):
        value = event.value
        if event.is_binary:
            value = _render_binary(event.value, config.binary_format)
        if config.output_format == "json":
            return json.dumps(
                {"event": "attribute", "name": event.name, "value": value, "binary": event.is_binary}
            )
        name = f"{event.name}::" if event.is_binary else event.name
        return f"attr\t{_escape_text(name)}\t{_escape_text(value)}"

    kind = "begin" if isinstance(event, BeginEntry) else "end"
    if config.output_format == "json":
        return json.dumps({"event": f"{kind}_entry", "dn": event.dn})
    return f"{kind}\t{_escape_text(event.dn)}"


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format=LOG_FORMAT,
        stream=sys.stderr,
    )


@click.command()
@click.version_option()
@click.option("--encoding", help="Character encoding of the input file")
@click.option(
    "--on-error",
    type=click.Choice(["abort", "skip"]),
    help="Stop at the first error or skip the damaged entry",
)
@click.option("--format", "output_format", type=click.Choice(["text", "json"]), help="Output format")
@click.option(
    "--binary", "binary_format", type=click.Choice(["base64", "hex"]), help="Binary value rendering"
)
@click.option(
    "--allow-version/--no-allow-version",
    default=None,
    help="Accept a leading `version:` header line",
)
@click.option("--count", is_flag=True, help="Print only the number of entries")
@click.option("-v", "--verbose", is_flag=True, help="Log parser progress to stderr")
@click.argument("filepath", type=click.Path(exists=True, dir_okay=False))
def cli(
    filepath: str,
    encoding: str | None = None,
    on_error: str | None = None,
    output_format: str | None = None,
    binary_format: str | None = None,
    allow_version: bool | None = None,
    count: bool = False,
    verbose: bool = False,
):
    """
    Entry point for streaming the parse events of an LDIF file.

    Args:
        filepath: Path to the LDIF file to read.
        encoding: Override for the input encoding.
        on_error: Recovery policy (`abort` or `skip`).
        output_format: `text` (tab separated) or `json` (one object per line).
        binary_format: Rendering of `::` values (`base64` or `hex`).
        allow_version: Override for accepting a `version:` header.
        count: Print the number of entries instead of the events.
        verbose: Enable debug logging.

    Raises:
        click.BadParameter: If the path is not an acceptable LDIF file or the
            configuration is invalid.
        click.ClickException: If the file is too large or cannot be parsed.

    Examples:
        ldif-events export.ldif --on-error skip --format json
    """
    _setup_logging(verbose)

    try:
        filepath = normalize_filepath(filepath)
    except ValueError as error:
        raise click.BadParameter(str(error)) from error
    try:
        config = build_config(
            filepath.parent,
            encoding=encoding,
            on_error=on_error,
            output_format=output_format,
            binary_format=binary_format,
            allow_version=allow_version,
        )
    except ConfigError as error:
        raise click.BadParameter(str(error)) from error

    try:
        max_file_size = get_max_file_size(default=config.max_file_size)
        enforce_file_size(collect_file_stat(filepath), max_file_size, filepath)
    except (ValueError, IOError) as error:
        raise click.ClickException(str(error)) from error

    entries = 0
    try:
        for event in iter_file_events(filepath, config):
            if isinstance(event, BeginEntry):
                entries += 1
            if not count:
                click.echo(format_event(event, config))
    except ParseFileError as error:
        raise click.ClickException(str(error)) from error

    if count:
        click.echo(entries)


if __name__ == "__main__":
    cli()
