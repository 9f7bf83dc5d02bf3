"""In-memory record helpers.

Records are plain ``pymarc.Record`` objects. Validators mutate the record they
are handed, so callers that need the pre-validation state must take a
``clone_record`` copy first.
"""

import copy
import io
from xml.sax import SAXException

from pymarc import Record, parse_xml_to_array, record_to_xml

from marcfix.constants import RECORD_ID_TAG
from marcfix.services.validation import RecordParseError


def clone_record(record: Record) -> Record:
    return copy.deepcopy(record)


def records_equal(left: Record, right: Record) -> bool:
    return left.as_dict() == right.as_dict()


def get_record_id(record: Record) -> str | None:
    fields = record.get_fields(RECORD_ID_TAG)
    if not fields:
        return None
    return fields[0].data


def record_to_marcxml(record: Record, *, namespace: bool = True) -> str:
    return record_to_xml(record, namespace=namespace).decode("utf-8")


def records_from_marcxml(payload: str | bytes) -> list[Record]:
    data = payload.encode("utf-8") if isinstance(payload, str) else payload
    try:
        return parse_xml_to_array(io.BytesIO(data), strict=False)
    except SAXException as exc:
        raise RecordParseError(f"Malformed MARCXML: {exc}") from exc


def record_from_marcxml(payload: str | bytes) -> Record | None:
    records = records_from_marcxml(payload)
    return records[0] if records else None


def render_record(record: Record) -> str:
    return str(record)
