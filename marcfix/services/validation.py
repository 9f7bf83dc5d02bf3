from marcfix.constants import RECORD_ID_MAX_EXCLUSIVE, RECORD_ID_MIN_EXCLUSIVE, RECORD_ID_WIDTH


class MarcfixError(Exception):
    pass


class InvalidIdError(MarcfixError, ValueError):
    pass


class NotFoundError(MarcfixError):
    pass


class ValidatorFailure(MarcfixError):
    pass


class UpdateFailedError(MarcfixError):
    pass


class RecordParseError(MarcfixError):
    pass


class StoreFailure(MarcfixError):
    pass


class ConfigError(MarcfixError):
    pass


class InvalidChunkSizeError(MarcfixError, ValueError):
    pass


def require(condition: bool, message: str, error: type[MarcfixError] = MarcfixError) -> None:
    if not condition:
        raise error(message)


def is_valid_id(record_id: str) -> bool:
    value = str(record_id)
    if not value.isascii() or not value.isdigit():
        return False
    return RECORD_ID_MIN_EXCLUSIVE < int(value) < RECORD_ID_MAX_EXCLUSIVE


def validate_record_id(record_id: str) -> str:
    require(is_valid_id(record_id), f"Invalid record id: {record_id}", InvalidIdError)
    return str(record_id)


def pad_record_id(record_id: str | int) -> str:
    """Restore the leading zeros that numeric parsing strips, e.g. 9877349 -> '009877349'."""
    value = str(record_id).strip()
    return value.zfill(RECORD_ID_WIDTH)


def validate_chunk_size(chunk_size: int) -> int:
    require(isinstance(chunk_size, int) and chunk_size >= 1, f"Chunk size must be >= 1, got {chunk_size}", InvalidChunkSizeError)
    return chunk_size
