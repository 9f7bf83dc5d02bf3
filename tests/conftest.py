import os
import tempfile
from pathlib import Path

import pytest

os.environ.setdefault("VALIDATE_API", "http://catalog.test")
os.environ.setdefault("VALIDATE_USER", "tester")
os.environ.setdefault("VALIDATE_PASS", "secret")
os.environ.setdefault("OPERATOR_ID", "test-operator")
os.environ.setdefault("LOG_FILE", str(Path(tempfile.gettempdir()) / "marcfix-test.log"))

from marcfix.config import Settings, get_settings  # noqa: E402
from marcfix.context import build_context  # noqa: E402
from marcfix.services.validators import build_validator  # noqa: E402
from tests.helpers import SAMPLE_RECORD_ID, FakeCatalog, build_sample_record  # noqa: E402


@pytest.fixture(autouse=True)
def reset_settings(tmp_path, monkeypatch):
    monkeypatch.setenv("DATABASE_URL", f"sqlite+pysqlite:///{tmp_path / 'backup.db'}")
    monkeypatch.setenv("OUTPUT_DIR", str(tmp_path / "files"))
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture()
def settings() -> Settings:
    return get_settings()


@pytest.fixture()
def catalog():
    return FakeCatalog({SAMPLE_RECORD_ID: build_sample_record()})


@pytest.fixture()
def context(settings, catalog):
    ctx = build_context(settings, catalog=catalog, validator=build_validator())
    yield ctx
    ctx.close()


@pytest.fixture()
def db_session(context):
    with context.session_factory() as db:
        yield db
        db.rollback()
