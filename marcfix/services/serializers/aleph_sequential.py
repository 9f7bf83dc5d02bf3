"""Aleph sequential reader.

Each line is ``<id> <tag><ind1><ind2> L <content>``; consecutive lines sharing
an id form one record. Data field content is split on ``$$`` subfield
delimiters.
"""

from collections.abc import Iterable, Iterator
from pathlib import Path

from pymarc import Field, Leader, Record, Subfield

_ID_END = 9
_TAG_START = 10
_TAG_END = 13
_CONTENT_START = 18


def _is_control_tag(tag: str) -> bool:
    return tag.isdigit() and int(tag) < 10


def _parse_subfields(content: str) -> list[Subfield]:
    subfields: list[Subfield] = []
    for chunk in content.split("$$")[1:]:
        if not chunk:
            continue
        subfields.append(Subfield(code=chunk[0], value=chunk[1:]))
    return subfields


def _build_record(lines: list[str]) -> Record:
    record = Record()
    for line in lines:
        tag = line[_TAG_START:_TAG_END]
        content = line[_CONTENT_START:]
        if tag == "LDR":
            record.leader = Leader(content.replace("^", " "))
            continue
        if _is_control_tag(tag):
            record.add_field(Field(tag=tag, data=content))
            continue
        indicators = [line[_TAG_END : _TAG_END + 1] or " ", line[_TAG_END + 1 : _TAG_END + 2] or " "]
        record.add_field(Field(tag=tag, indicators=indicators, subfields=_parse_subfields(content)))
    return record


def parse_aleph_sequential(lines: Iterable[str]) -> Iterator[Record]:
    current_id: str | None = None
    buffered: list[str] = []
    for raw in lines:
        line = raw.rstrip("\r\n")
        if len(line) < _CONTENT_START:
            continue
        line_id = line[:_ID_END]
        if current_id is not None and line_id != current_id:
            yield _build_record(buffered)
            buffered = []
        current_id = line_id
        buffered.append(line)
    if buffered:
        yield _build_record(buffered)


def read_aleph_sequential(path: Path) -> Iterator[Record]:
    with path.open("r", encoding="utf-8") as handle:
        yield from parse_aleph_sequential(handle)
