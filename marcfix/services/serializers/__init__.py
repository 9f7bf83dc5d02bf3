"""Record file readers and writers, selected by file suffix."""

from collections.abc import Iterator
from pathlib import Path

from pymarc import Record

from marcfix.constants import ALEPH_SEQUENTIAL_SUFFIXES, ISO2709_SUFFIXES, XML_SUFFIXES
from marcfix.services.serializers.aleph_sequential import read_aleph_sequential
from marcfix.services.serializers.iso2709 import read_iso2709
from marcfix.services.serializers.marcxml import read_marcxml, write_marcxml


class UnsupportedFormatError(ValueError):
    pass


def read_records(path: Path) -> Iterator[Record]:
    ext = path.suffix.lower()
    if ext in XML_SUFFIXES:
        return read_marcxml(path)
    if ext in ISO2709_SUFFIXES:
        return read_iso2709(path)
    if ext in ALEPH_SEQUENTIAL_SUFFIXES:
        return read_aleph_sequential(path)
    raise UnsupportedFormatError(f"Unrecognized filetype: {ext or path.name}")


__all__ = ["UnsupportedFormatError", "read_records", "write_marcxml"]
