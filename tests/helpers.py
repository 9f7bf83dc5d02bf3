import threading

from pymarc import Record

from marcfix.services.records import clone_record, get_record_id, record_from_marcxml
from marcfix.services.validation import UpdateFailedError

SAMPLE_RECORD_ID = "009877349"

SAMPLE_RECORD_XML = """
  <record>
    <leader>00000cca^a22000007i^4500</leader>
    <controlfield tag="001">009877349</controlfield>
    <controlfield tag="003">FI-MELINDA</controlfield>
    <controlfield tag="005">20171218125223.0</controlfield>
    <controlfield tag="007">qu</controlfield>
    <controlfield tag="008">170103s2016^^^^xxu||z|^^||||||||^|^zxx|c</controlfield>
    <datafield tag="035" ind1=" " ind2=" ">
      <subfield code="a">(FI-MELINDA)009877349</subfield>
    </datafield>
    <datafield tag="084" ind1=" " ind2=" ">
      <subfield code="a">78.852</subfield>
      <subfield code="2">ykl</subfield>
    </datafield>
    <datafield tag="100" ind1="1" ind2=" ">
      <subfield code="a">Smith, Sam,</subfield>
      <subfield code="e">säveltäjä.</subfield>
    </datafield>
    <datafield tag="245" ind1="1" ind2="0">
      <subfield code="a">Writing's on the wall.</subfield>
    </datafield>
    <datafield tag="336" ind1=" " ind2=" ">
      <subfield code="a">nuottikirjoitus</subfield>
      <subfield code="b">ntm</subfield>
      <subfield code="2">rdacontent</subfield>
    </datafield>
    <datafield tag="700" ind1="1" ind2=" ">
      <subfield code="a">Napier, James,</subfield>
      <subfield code="e">säveltäjä.</subfield>
    </datafield>
    <datafield tag="773" ind1="0" ind2=" ">
      <subfield code="7">nncm</subfield>
      <subfield code="w">(FI-MELINDA)009877249</subfield>
      <subfield code="t">101 movie hits. Trumpet. -</subfield>
      <subfield code="z">978-1-4950-6067-0,</subfield>
    </datafield></record>"""


def build_sample_record(record_id: str = SAMPLE_RECORD_ID, *, dirty: bool = False) -> Record:
    xml = SAMPLE_RECORD_XML.replace(SAMPLE_RECORD_ID, record_id)
    if dirty:
        xml = xml.replace("Writing's on the wall.", "Writing's  on the wall. ")
    record = record_from_marcxml(xml)
    assert record is not None
    return record


class FakeCatalog:
    """In-memory catalog. Hands out copies, so callers never share a record."""

    def __init__(self, records: dict[str, Record] | None = None, *, fail_load=(), fail_update=()) -> None:
        self.records = dict(records or {})
        self.fail_load = set(fail_load)
        self.fail_update = set(fail_update)
        self.loads: list[str] = []
        self.updates: list[tuple[str, Record]] = []
        self._lock = threading.Lock()

    def load_record(self, record_id: str) -> Record | None:
        with self._lock:
            self.loads.append(record_id)
        if record_id in self.fail_load:
            raise RuntimeError(f"Catalog unavailable for {record_id}")
        record = self.records.get(record_id)
        return clone_record(record) if record is not None else None

    def update_record(self, record: Record) -> dict:
        record_id = get_record_id(record)
        if record_id in self.fail_update:
            raise UpdateFailedError(f"Catalog rejected record {record_id}")
        with self._lock:
            self.updates.append((record_id, clone_record(record)))
            self.records[record_id] = clone_record(record)
        return {"messages": [{"code": "20", "message": f"Record {record_id} updated"}]}

    def updated_ids(self) -> list[str]:
        return [record_id for record_id, _ in self.updates]


def seed_records(catalog: FakeCatalog, ids, *, dirty: bool = False) -> None:
    for record_id in ids:
        catalog.records[record_id] = build_sample_record(record_id, dirty=dirty)
