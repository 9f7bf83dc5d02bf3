import secrets
from collections.abc import Sequence
from datetime import UTC, datetime
from pathlib import Path

from marcfix.services.validation import is_valid_id, pad_record_id, validate_chunk_size


def now_utc() -> datetime:
    return datetime.now(UTC)


def generate_batch_id(now: datetime | None = None) -> str:
    """Sortable correlation token, e.g. ``20261019T201500-3fa94c1e``."""
    stamp = (now or datetime.now()).strftime("%Y%m%dT%H%M%S")
    return f"{stamp}-{secrets.token_hex(4)}"


def chunk_ids(ids: Sequence[str], chunk_size: int) -> list[list[str]]:
    validate_chunk_size(chunk_size)
    return [list(ids[start : start + chunk_size]) for start in range(0, len(ids), chunk_size)]


def read_id_file(path: Path) -> list[str]:
    lines = path.read_text(encoding="utf-8").splitlines()
    ids = [pad_record_id(line) for line in lines if line.strip()]
    return [record_id for record_id in ids if is_valid_id(record_id)]
