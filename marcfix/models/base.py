from uuid import uuid4

from sqlalchemy.orm import DeclarativeBase


def prefixed_id(prefix: str) -> str:
    return f"{prefix}_{uuid4().hex[:16]}"


class Base(DeclarativeBase):
    pass
