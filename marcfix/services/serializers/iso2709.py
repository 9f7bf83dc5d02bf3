import logging
from collections.abc import Iterator
from pathlib import Path

from pymarc import MARCReader, Record

logger = logging.getLogger(__name__)


def read_iso2709(path: Path) -> Iterator[Record]:
    with path.open("rb") as handle:
        reader = MARCReader(handle, to_unicode=True, force_utf8=True)
        for record in reader:
            if record is None:
                logger.warning("Skipped unreadable record in %s: %s", path, reader.current_exception)
                continue
            yield record
