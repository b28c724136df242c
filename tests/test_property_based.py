from __future__ import annotations

import base64
import string

from hypothesis import given
from hypothesis import strategies as st
from ldif_events.exceptions import ParseError
from ldif_events.models import Attribute, BeginEntry, EndEntry, ParserState
from ldif_events.parser import LdifLineParser, parse_ldif

VALUE_ALPHABET = string.ascii_letters + string.digits + " ,=.-_"

name_strategy = st.text(alphabet=string.ascii_letters, min_size=1, max_size=12).filter(
    lambda name: name != "dn"
)
first_segment_strategy = st.text(alphabet=VALUE_ALPHABET, min_size=1, max_size=30).filter(
    lambda text: not text[0].isspace()
)
chunk_strategy = st.text(alphabet=VALUE_ALPHABET, max_size=30)
entry_strategy = st.tuples(
    first_segment_strategy,
    st.lists(st.tuples(name_strategy, first_segment_strategy), max_size=5),
)


def _render(entries) -> str:
    blocks = []
    for dn, attributes in entries:
        lines = [f"dn: {dn}"]
        lines.extend(f"{name}: {value}" for name, value in attributes)
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks) + "\n"


@given(st.lists(entry_strategy, max_size=8))
def test_begin_and_end_events_pair_up(entries):
    events = parse_ldif(_render(entries))

    begins = [event.dn for event in events if isinstance(event, BeginEntry)]
    ends = [event.dn for event in events if isinstance(event, EndEntry)]
    assert begins == ends == [dn for dn, _ in entries]


@given(st.lists(entry_strategy, max_size=8))
def test_attributes_only_inside_entries(entries):
    open_dn = None
    for event in parse_ldif(_render(entries)):
        if isinstance(event, BeginEntry):
            assert open_dn is None
            open_dn = event.dn
        elif isinstance(event, EndEntry):
            assert event.dn == open_dn
            open_dn = None
        else:
            assert open_dn is not None
    assert open_dn is None


@given(first_segment_strategy, st.lists(chunk_strategy, max_size=6))
def test_folded_value_is_plain_concatenation(first, chunks):
    folded = "\n ".join([f"description: {first}", *chunks])

    events = parse_ldif(f"dn: cn=a\n{folded}\n")

    assert events[1] == Attribute("description", first + "".join(chunks))


@given(st.binary(max_size=256), st.integers(min_value=1, max_value=76))
def test_base64_values_round_trip(payload, width):
    encoded = base64.b64encode(payload).decode("ascii")
    pieces = [encoded[index : index + width] for index in range(0, len(encoded), width)] or [""]
    folded = "\n ".join(pieces)

    events = parse_ldif(f"dn: cn=a\nblob:: {folded}\n")

    assert events[1] == Attribute("blob", payload)


@given(st.text(alphabet=VALUE_ALPHABET + "#:", max_size=40))
def test_comment_between_entries_changes_nothing(comment):
    parser = LdifLineParser(["dn: cn=a", "", f"#{comment}", "dn: cn=b"])

    parser.step()
    parser.step()
    assert parser.step()[1] is None
    assert parser.context.state is ParserState.CLOSED
    assert parser.last_dn == "cn=a"


@given(st.text(max_size=300))
def test_arbitrary_text_only_raises_parse_errors(content):
    try:
        parse_ldif(content)
    except ParseError:
        pass


@given(st.text(max_size=200))
def test_parse_ldif_is_deterministic(content):
    def _run():
        try:
            return parse_ldif(content)
        except ParseError as error:
            return type(error), str(error)

    assert _run() == _run()
