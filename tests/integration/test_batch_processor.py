from datetime import datetime

import pytest

from marcfix.schemas import TimeWindow
from marcfix.services.backup import list_entries
from marcfix.services.validation import InvalidChunkSizeError, StoreFailure
from marcfix.services.workflows import batch as batch_module
from marcfix.services.workflows.batch import BatchProcessor
from tests.helpers import seed_records

IDS = [f"{n:09d}" for n in range(1, 13)]
EVENING = datetime(2026, 10, 19, 20, 0)
MORNING = datetime(2026, 10, 19, 10, 0)


class Clock:
    def __init__(self, *times: datetime) -> None:
        self.times = list(times)

    def __call__(self) -> datetime:
        if len(self.times) > 1:
            return self.times.pop(0)
        return self.times[0]


class RecordingProcessor(BatchProcessor):
    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.chunks: list[list[str]] = []

    def process_chunk(self, chunk):
        self.chunks.append(list(chunk))
        return super().process_chunk(chunk)


def _processor(context, **kwargs) -> RecordingProcessor:
    kwargs.setdefault("batch_id", "batch-test")
    kwargs.setdefault("chunk_size", 5)
    kwargs.setdefault("sleep", lambda seconds: pytest.fail("unexpected sleep"))
    return RecordingProcessor(context, **kwargs)


def test_chunks_processed_in_order(context, catalog):
    seed_records(catalog, IDS, dirty=True)
    processor = _processor(context)

    summary = processor.run(IDS)

    assert [len(chunk) for chunk in processor.chunks] == [5, 5, 2]
    assert [record_id for chunk in processor.chunks for record_id in chunk] == IDS
    assert summary.processed == 12
    assert summary.succeeded == 12
    assert summary.failed == 0
    assert summary.backed_up == 12
    assert str(processor.progress) == "12/12 (100 %) records processed."
    assert sorted(catalog.updated_ids()) == IDS


def test_backup_entries_follow_input_order_within_chunks(context, catalog, db_session):
    seed_records(catalog, IDS, dirty=True)
    _processor(context).run(IDS)
    stored = list_entries(db_session, batch_id="batch-test")
    assert [entry.record_id for entry in stored] == IDS


def test_failed_records_do_not_stop_the_batch(context, catalog, db_session):
    seed_records(catalog, IDS)
    catalog.fail_update = {IDS[1]}
    catalog.fail_load = {IDS[7]}
    failures: list[tuple[str, str]] = []
    successes: list[str] = []

    summary = _processor(
        context,
        on_failure=lambda record_id, exc: failures.append((record_id, str(exc))),
        on_success=lambda outcome: successes.append(outcome.record_id),
    ).run(IDS)

    assert summary.failed_ids == [IDS[1], IDS[7]]
    assert summary.succeeded == 10
    assert summary.processed == 12
    assert sorted(record_id for record_id, _ in failures) == [IDS[1], IDS[7]]
    assert len(successes) == 10
    stored_ids = [entry.record_id for entry in list_entries(db_session, batch_id="batch-test")]
    assert stored_ids == [record_id for record_id in IDS if record_id not in {IDS[1], IDS[7]}]


def test_process_chunk_is_index_aligned(context, catalog):
    seed_records(catalog, IDS[:3])
    catalog.fail_update = {IDS[1]}
    outcomes = _processor(context).process_chunk(IDS[:3])
    assert outcomes[1] is None
    assert [outcome.record_id for outcome in (outcomes[0], outcomes[2])] == [IDS[0], IDS[2]]
    assert {outcome.batch_id for outcome in (outcomes[0], outcomes[2])} == {"batch-test"}


def test_missing_record_is_a_failure(context, catalog):
    summary = _processor(context).run(["000000404"])
    assert summary.failed_ids == ["000000404"]
    assert summary.backed_up == 0


def test_outside_window_sleeps_before_consuming_anything(context, catalog):
    seed_records(catalog, IDS)
    sleeps: list[float] = []

    def sleep(seconds: float) -> None:
        assert catalog.loads == []
        sleeps.append(seconds)

    processor = _processor(
        context,
        time_window=TimeWindow.from_string("17-06"),
        clock=Clock(MORNING, MORNING, EVENING),
        sleep=sleep,
    )
    summary = processor.run(IDS)

    assert sleeps == [1200]
    assert summary.processed == 12
    assert [len(chunk) for chunk in processor.chunks] == [5, 5, 2]


def test_inside_window_runs_immediately(context, catalog):
    seed_records(catalog, IDS)
    processor = _processor(context, time_window=TimeWindow.from_string("17-06"), clock=Clock(EVENING))
    assert processor.run(IDS).processed == 12


def test_window_closing_mid_run_pauses_next_chunk(context, catalog):
    seed_records(catalog, IDS)
    loads_at_sleep: list[int] = []
    processor = _processor(
        context,
        time_window=TimeWindow.from_string("17-06"),
        # Gate checks: chunk 1 open; chunk 2 closed (plus the log line), then open again.
        clock=Clock(EVENING, MORNING, MORNING, EVENING),
        sleep=lambda seconds: loads_at_sleep.append(len(catalog.loads)),
    )
    summary = processor.run(IDS)

    assert loads_at_sleep == [5]
    assert summary.processed == 12


def test_empty_id_list_is_done_immediately(context):
    processor = _processor(context, time_window=TimeWindow.from_string("17-06"), clock=Clock(MORNING))
    summary = processor.run([])
    assert summary.processed == 0
    assert summary.total == 0
    assert processor.chunks == []


@pytest.mark.parametrize("chunk_size", [0, -3])
def test_invalid_chunk_size_rejected_before_start(context, catalog, chunk_size):
    with pytest.raises(InvalidChunkSizeError):
        BatchProcessor(context, batch_id="batch-test", chunk_size=chunk_size)
    assert catalog.loads == []


def test_store_failure_is_logged_and_walk_continues(context, catalog, monkeypatch, caplog):
    seed_records(catalog, IDS)
    calls: list[str] = []
    original_save = batch_module.save_batch

    def flaky_save(db, outcomes, batch_id, *, actor):
        calls.append(batch_id)
        if len(calls) == 1:
            raise StoreFailure("disk full")
        return original_save(db, outcomes, batch_id, actor=actor)

    monkeypatch.setattr(batch_module, "save_batch", flaky_save)

    summary = _processor(context).run(IDS)

    assert len(calls) == 3
    assert summary.unbacked_ids == IDS[:5]
    assert summary.backed_up == 7
    assert summary.processed == 12
    assert "Records fixed without backup" in caplog.text
