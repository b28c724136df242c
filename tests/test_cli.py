from __future__ import annotations

import json
import textwrap
from pathlib import Path

from ldif_events.cli import cli, format_event
from ldif_events.config import LdifConfig
from ldif_events.models import Attribute, BeginEntry, EndEntry

SAMPLE = """
version: 1

# people
dn: cn=a,dc=example,dc=com
cn: a
jpegPhoto:: /9j/4A==

dn: cn=b,dc=example,dc=com
sn: b
"""


def _write(tmp_path: Path, filename: str, content: str) -> Path:
    path = tmp_path / filename
    path.write_text(textwrap.dedent(content).lstrip(), encoding="utf-8")
    return path


def _write_pyproject(base: Path, body: str) -> Path:
    path = base / "pyproject.toml"
    path.write_text(textwrap.dedent(body).lstrip(), encoding="utf-8")
    return path


def test_cli_prints_text_events(cli_runner, tmp_path):
    target = _write(tmp_path, "people.ldif", SAMPLE)

    result = cli_runner.invoke(cli, [str(target)])

    assert result.exit_code == 0
    assert result.stdout.splitlines() == [
        "begin\tcn=a,dc=example,dc=com",
        "attr\tcn\ta",
        "attr\tjpegPhoto::\t/9j/4A==",
        "end\tcn=a,dc=example,dc=com",
        "begin\tcn=b,dc=example,dc=com",
        "attr\tsn\tb",
        "end\tcn=b,dc=example,dc=com",
    ]


def test_cli_prints_json_lines_with_hex_binary(cli_runner, tmp_path):
    target = _write(tmp_path, "people.ldif", SAMPLE)

    result = cli_runner.invoke(cli, ["--format", "json", "--binary", "hex", str(target)])

    assert result.exit_code == 0
    records = [json.loads(line) for line in result.stdout.splitlines()]
    assert records[0] == {"event": "begin_entry", "dn": "cn=a,dc=example,dc=com"}
    assert records[2] == {
        "event": "attribute",
        "name": "jpegPhoto",
        "value": "ffd8ffe0",
        "binary": True,
    }
    assert records[-1] == {"event": "end_entry", "dn": "cn=b,dc=example,dc=com"}


def test_cli_count(cli_runner, tmp_path):
    target = _write(tmp_path, "people.ldif", SAMPLE)

    result = cli_runner.invoke(cli, ["--count", str(target)])

    assert result.exit_code == 0
    assert result.stdout == "2\n"


def test_cli_rejects_version_header_when_disabled(cli_runner, tmp_path):
    target = _write(tmp_path, "people.ldif", SAMPLE)

    result = cli_runner.invoke(cli, ["--no-allow-version", str(target)])

    assert result.exit_code != 0
    assert "outside of an entry" in result.output


def test_cli_aborts_on_parse_error(cli_runner, tmp_path):
    target = _write(
        tmp_path,
        "broken.ldif",
        """
        dn: cn=a
        broken line

        dn: cn=b
        """,
    )

    result = cli_runner.invoke(cli, [str(target)])

    assert result.exit_code != 0
    assert "Line 2" in result.output


def test_cli_skip_policy_recovers(cli_runner, tmp_path):
    target = _write(
        tmp_path,
        "broken.ldif",
        """
        dn: cn=a
        broken line

        dn: cn=b
        """,
    )

    result = cli_runner.invoke(cli, ["--on-error", "skip", "--count", str(target)])

    assert result.exit_code == 0
    assert result.stdout == "2\n"


def test_cli_reads_config_from_pyproject(cli_runner, tmp_path):
    _write_pyproject(
        tmp_path,
        """
        [tool.ldif-events]
        output_format = "json"
        """,
    )
    target = _write(tmp_path, "people.ldif", "dn: cn=a\n")

    result = cli_runner.invoke(cli, [str(target)])

    assert result.exit_code == 0
    assert json.loads(result.stdout.splitlines()[0]) == {"event": "begin_entry", "dn": "cn=a"}


def test_cli_invalid_config_is_bad_parameter(cli_runner, tmp_path):
    _write_pyproject(
        tmp_path,
        """
        [tool.ldif-events]
        encoding = "no-such-codec"
        """,
    )
    target = _write(tmp_path, "people.ldif", "dn: cn=a\n")

    result = cli_runner.invoke(cli, [str(target)])

    assert result.exit_code == 2
    assert "Unknown encoding" in result.output


def test_cli_rejects_non_ldif_files(cli_runner, tmp_path):
    target = _write(tmp_path, "notes.txt", "dn: cn=a\n")

    result = cli_runner.invoke(cli, [str(target)])

    assert result.exit_code != 0
    assert "not an LDIF file" in result.output


def test_cli_enforces_max_file_size(cli_runner, tmp_path, monkeypatch):
    monkeypatch.setenv("LDIF_EVENTS_MAX_FILE_SIZE", "4")
    target = _write(tmp_path, "people.ldif", "dn: cn=a\n")

    result = cli_runner.invoke(cli, [str(target)])

    assert result.exit_code != 0
    assert "exceeds the maximum allowed size" in result.output


def test_format_event_text_and_json():
    config = LdifConfig()
    json_config = LdifConfig(output_format="json")

    assert format_event(BeginEntry("cn=a"), config) == "begin\tcn=a"
    assert format_event(EndEntry("cn=a"), config) == "end\tcn=a"
    assert format_event(Attribute("cn", "a b"), config) == "attr\tcn\ta b"
    assert format_event(Attribute("photo", b"\x00"), config) == "attr\tphoto::\tAA=="
    assert json.loads(format_event(Attribute("cn", "a"), json_config)) == {
        "event": "attribute",
        "name": "cn",
        "value": "a",
        "binary": False,
    }


def test_format_event_text_escapes_control_characters():
    config = LdifConfig()

    assert format_event(Attribute("description", "a\tb\rc\\d"), config) == "attr\tdescription\ta\\tb\\rc\\\\d"
    assert format_event(BeginEntry("cn=a\tb"), config) == "begin\tcn=a\\tb"
    assert format_event(EndEntry("cn=a\nb"), config) == "end\tcn=a\\nb"


def test_format_event_json_keeps_raw_text():
    config = LdifConfig(output_format="json")

    record = json.loads(format_event(Attribute("description", "a\tb\r"), config))

    assert record["value"] == "a\tb\r"


def test_cli_text_output_keeps_one_column_per_field(cli_runner, tmp_path):
    target = tmp_path / "tabs.ldif"
    target.write_text("dn: cn=a\ndescription: left\tright\n", encoding="utf-8")

    result = cli_runner.invoke(cli, [str(target)])

    assert result.exit_code == 0
    lines = result.stdout.splitlines()
    assert lines[1] == "attr\tdescription\tleft\\tright"
    assert all(len(line.split("\t")) <= 3 for line in lines)
