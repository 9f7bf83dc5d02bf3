from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import Engine
from sqlalchemy.orm import Session, sessionmaker

from marcfix.config import Settings
from marcfix.database import build_engine, build_session_factory, init_db
from marcfix.services.catalog import CatalogClient
from marcfix.services.orchestrator import Catalog
from marcfix.services.validators import Validator, build_validator

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass
class RunContext:
    """Everything a command needs, built once per process and passed down explicitly."""

    settings: Settings
    catalog: Catalog
    validator: Validator
    session_factory: sessionmaker[Session]
    engine: Engine | None = None

    def close(self) -> None:
        close = getattr(self.catalog, "close", None)
        if callable(close):
            close()
        if self.engine is not None:
            self.engine.dispose()


def configure_logging(settings: Settings) -> None:
    root = logging.getLogger()
    if getattr(root, "_marcfix_configured", False):
        return
    formatter = logging.Formatter(LOG_FORMAT)
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if settings.log_file is not None:
        handlers.append(logging.FileHandler(settings.log_file, encoding="utf-8"))
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)
    root.setLevel(settings.log_level.upper())
    # httpx logs every request at INFO.
    logging.getLogger("httpx").setLevel(logging.WARNING)
    root._marcfix_configured = True  # type: ignore[attr-defined]


def build_context(settings: Settings, *, catalog: Catalog | None = None, validator: Validator | None = None) -> RunContext:
    engine = build_engine(settings.database_url)
    init_db(engine)
    if catalog is None:
        catalog = CatalogClient(
            settings.catalog_api_url,
            user=settings.catalog_user,
            password=settings.catalog_password,
            timeout=settings.catalog_timeout_seconds,
        )
    return RunContext(
        settings=settings,
        catalog=catalog,
        validator=validator or build_validator(settings.validator_names),
        session_factory=build_session_factory(engine),
        engine=engine,
    )
