import logging
from collections.abc import Iterator
from pathlib import Path
from typing import Any

from pymarc import Record

from marcfix.constants import VALIDATED_FILE_SUFFIX
from marcfix.services.records import get_record_id
from marcfix.services.serializers import read_records, write_marcxml
from marcfix.services.validators import Validator

logger = logging.getLogger(__name__)


def save_locally(record: Record, suffix: str, output_dir: Path) -> Path:
    output_dir.mkdir(parents=True, exist_ok=True)
    record_id = get_record_id(record) or "record"
    path = output_dir / f"{record_id}{suffix}.xml"
    write_marcxml([record], path)
    return path


def file_fix(path: Path, validator: Validator, output_dir: Path) -> dict[str, Any]:
    records = read_records(path)
    if not path.exists():
        raise FileNotFoundError(f"File {path} does not exist.")
    output_dir.mkdir(parents=True, exist_ok=True)
    output_file = output_dir / f"{path.stem}{VALIDATED_FILE_SUFFIX}.xml"
    counter = {"processed": 0, "with_issues": 0}

    def _validated() -> Iterator[Record]:
        for record in records:
            report = validator(record)
            counter["processed"] += 1
            if report.issue_count:
                counter["with_issues"] += 1
                logger.info("Record %s: %s issue(s) corrected", get_record_id(record), report.issue_count)
            yield record

    write_marcxml(_validated(), output_file)
    return {"output_file": output_file, **counter}
