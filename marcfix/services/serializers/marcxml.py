from collections.abc import Iterable, Iterator
from pathlib import Path
from xml.sax import SAXException, make_parser
from xml.sax.handler import feature_namespaces

from pymarc import Record, XMLWriter
from pymarc.marcxml import XmlHandler

from marcfix.services.validation import RecordParseError

READ_CHUNK_BYTES = 64 * 1024


def _drain(handler: XmlHandler) -> list[Record]:
    records = list(handler.records)
    handler.records.clear()
    return records


def read_marcxml(path: Path) -> Iterator[Record]:
    """Stream records out of a MARCXML file, one ``<record>`` at a time."""
    handler = XmlHandler(strict=False)
    parser = make_parser()
    parser.setContentHandler(handler)
    parser.setFeature(feature_namespaces, 1)
    with path.open("rb") as handle:
        while True:
            chunk = handle.read(READ_CHUNK_BYTES)
            try:
                if chunk:
                    parser.feed(chunk)
                else:
                    parser.close()
            except SAXException as exc:
                raise RecordParseError(f"Malformed MARCXML in {path}: {exc}") from exc
            yield from _drain(handler)
            if not chunk:
                return


def write_marcxml(records: Iterable[Record], path: Path) -> int:
    count = 0
    writer = XMLWriter(path.open("wb"))
    try:
        for record in records:
            writer.write(record)
            count += 1
    finally:
        writer.close()
    return count
