"""Chunked fix-and-backup walk over a list of record ids.

The walk handles one chunk at a time. Inside a chunk every id is fixed
concurrently and the chunk is joined before its outcomes are written to the
backup store, so chunk N+1 never starts before chunk N is saved. Outside the
configured time window the whole walk sleeps and then re-checks, without
consuming any chunk.
"""

from __future__ import annotations

import logging
import time
from collections import deque
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError

from marcfix.context import RunContext
from marcfix.enums import FixAction
from marcfix.schemas import BatchProgress, BatchSummary, SaveBatchResult, TimeWindow
from marcfix.services.backup import save_batch
from marcfix.services.catalog import update_messages
from marcfix.services.orchestrator import FixOutcome, fix
from marcfix.services.utils import chunk_ids
from marcfix.services.validation import StoreFailure, validate_chunk_size

logger = logging.getLogger(__name__)

SuccessCallback = Callable[[FixOutcome], None]
FailureCallback = Callable[[str, Exception], None]


def is_within_time_window(window: TimeWindow | None, now: datetime) -> bool:
    if window is None:
        return True
    return window.contains_hour(now.hour)


class BatchProcessor:
    def __init__(
        self,
        context: RunContext,
        *,
        batch_id: str,
        chunk_size: int,
        time_window: TimeWindow | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], datetime] = datetime.now,
        on_success: SuccessCallback | None = None,
        on_failure: FailureCallback | None = None,
    ) -> None:
        self.context = context
        self.batch_id = batch_id
        self.chunk_size = validate_chunk_size(chunk_size)
        self.time_window = time_window
        self.sleep = sleep
        self.clock = clock
        self.on_success = on_success
        self.on_failure = on_failure
        self.progress = BatchProgress(processed=0, total=0)

    def gate_open(self) -> bool:
        return is_within_time_window(self.time_window, self.clock())

    def wait_for_window(self) -> None:
        while not self.gate_open():
            seconds = self.context.settings.batch_sleep_seconds
            logger.info(
                "Current time (%s) is not within the time limits (%s) to run. Sleeping for %s minutes...",
                self.clock().strftime("%H:%M"),
                self.time_window,
                round(seconds / 60),
            )
            self.sleep(seconds)

    def _fix_one(self, record_id: str) -> FixOutcome:
        return fix(self.context.catalog, self.context.validator, record_id)

    def process_chunk(self, chunk: Sequence[str]) -> list[FixOutcome | None]:
        """Fix every id of the chunk; the result has one slot per id, ``None`` where the fix failed."""
        outcomes: list[FixOutcome | None] = [None] * len(chunk)
        if not chunk:
            return outcomes

        with ThreadPoolExecutor(max_workers=len(chunk), thread_name_prefix="marcfix-fix") as executor:
            futures = {executor.submit(self._fix_one, record_id): index for index, record_id in enumerate(chunk)}
            for future in as_completed(futures):
                index = futures[future]
                record_id = chunk[index]
                try:
                    outcome = future.result()
                except Exception as exc:
                    self._report_failure(record_id, exc)
                    continue
                outcome.record_id = record_id
                outcome.batch_id = self.batch_id
                outcomes[index] = outcome
                self._report_success(outcome)
        return outcomes

    def _report_success(self, outcome: FixOutcome) -> None:
        messages = "; ".join(update_messages(outcome.update_response))
        logger.info(
            "id: %s, action: %s (chunksize: %s, batchId: %s), active validators: %s%s",
            outcome.record_id,
            FixAction.fix_multiple.value,
            self.chunk_size,
            self.batch_id,
            ", ".join(outcome.results.active_validators()) or "none",
            f", response: {messages}" if messages else "",
        )
        if self.on_success is not None:
            self.on_success(outcome)

    def _report_failure(self, record_id: str, exc: Exception) -> None:
        logger.error("Updating record %s failed: '%s'", record_id, exc)
        if self.on_failure is not None:
            self.on_failure(record_id, exc)

    def persist_chunk(self, outcomes: Sequence[FixOutcome | None]) -> SaveBatchResult:
        with self.context.session_factory() as db:
            result = save_batch(db, outcomes, self.batch_id, actor=self.context.settings.operator_id)
            try:
                db.commit()
            except SQLAlchemyError as exc:
                raise StoreFailure(f"Committing backup for batch {self.batch_id} failed: {exc}") from exc
        if result.inserted_count:
            logger.info(
                "Saved %s records to database: %s with batchId '%s'.",
                result.inserted_count,
                ", ".join(result.record_ids),
                self.batch_id,
            )
        return result

    def run(self, ids: Sequence[str]) -> BatchSummary:
        worklist = deque(chunk_ids(ids, self.chunk_size))
        summary = BatchSummary(batch_id=self.batch_id, total=len(ids))
        self.progress = BatchProgress(processed=0, total=len(ids))

        while True:
            if not worklist:
                logger.info("Done. Batch %s: %s succeeded, %s failed.", self.batch_id, summary.succeeded, summary.failed)
                return summary

            self.wait_for_window()
            chunk = worklist.popleft()
            outcomes = self.process_chunk(chunk)

            succeeded = [outcome for outcome in outcomes if outcome is not None]
            summary.succeeded += len(succeeded)
            summary.failed_ids.extend(record_id for record_id, outcome in zip(chunk, outcomes) if outcome is None)

            try:
                result = self.persist_chunk(outcomes)
            except StoreFailure as exc:
                unbacked = [outcome.record_id for outcome in succeeded if outcome.record_id]
                summary.unbacked_ids.extend(unbacked)
                logger.error("%s. Records fixed without backup: %s", exc, ", ".join(unbacked) or "none")
            else:
                summary.backed_up += result.inserted_count

            summary.processed += len(chunk)
            self.progress = BatchProgress(processed=summary.processed, total=summary.total)
            logger.info("%s", self.progress)
