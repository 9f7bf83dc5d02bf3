"""Append-only backup of fixed records.

Every successful fix stores the record as it was before and after
validation. Reverting pushes the stored original back to the catalog and
leaves the entry in place, so reverting the same record twice re-applies the
same snapshot.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from marcfix.enums import AuditAction, AuditObjectType
from marcfix.models.core import BackupEntry
from marcfix.schemas import RevertResult, SaveBatchResult
from marcfix.services.audit import emit_audit_event
from marcfix.services.catalog import update_messages
from marcfix.services.orchestrator import Catalog, FixOutcome
from marcfix.services.records import get_record_id, record_from_marcxml, record_to_marcxml
from marcfix.services.utils import now_utc
from marcfix.services.validation import StoreFailure

logger = logging.getLogger(__name__)


def _outcome_record_id(outcome: FixOutcome) -> str:
    return outcome.record_id or get_record_id(outcome.original_record) or ""


def save_batch(db: Session, outcomes: Sequence[FixOutcome | None], batch_id: str, *, actor: str) -> SaveBatchResult:
    defined = [outcome for outcome in outcomes if outcome is not None]
    if not defined:
        return SaveBatchResult(inserted_count=0)

    try:
        entries: list[BackupEntry] = []
        for outcome in defined:
            entry = BackupEntry(
                batch_id=batch_id,
                record_id=_outcome_record_id(outcome),
                original_xml=record_to_marcxml(outcome.original_record),
                validated_xml=record_to_marcxml(outcome.validated_record),
                report_json=outcome.results.as_dict(),
                update_messages_json=update_messages(outcome.update_response),
                created_by=actor,
                inserted_at=now_utc(),
            )
            db.add(entry)
            # Flushing one at a time keeps entry ids in input order.
            db.flush()
            entries.append(entry)

        emit_audit_event(
            db,
            actor=actor,
            action=AuditAction.backup_saved,
            object_type=AuditObjectType.batch,
            object_id=batch_id,
            correlation_id=batch_id,
            metadata_blob={"record_ids": [entry.record_id for entry in entries]},
        )
    except SQLAlchemyError as exc:
        db.rollback()
        raise StoreFailure(f"Saving backup for batch {batch_id} failed: {exc}") from exc

    return SaveBatchResult(
        inserted_count=len(entries),
        inserted_ids=[entry.entry_id for entry in entries],
        record_ids=[entry.record_id for entry in entries],
    )


def list_entries(db: Session, *, record_id: str | None = None, batch_id: str | None = None) -> list[BackupEntry]:
    stmt = select(BackupEntry)
    if record_id is not None:
        stmt = stmt.where(BackupEntry.record_id == record_id)
    if batch_id is not None:
        stmt = stmt.where(BackupEntry.batch_id == batch_id)
    return list(db.scalars(stmt.order_by(BackupEntry.entry_id.asc())))


def latest_entry(db: Session, record_id: str, *, batch_id: str | None = None) -> BackupEntry | None:
    stmt = select(BackupEntry).where(BackupEntry.record_id == record_id)
    if batch_id is not None:
        stmt = stmt.where(BackupEntry.batch_id == batch_id)
    return db.scalar(stmt.order_by(BackupEntry.entry_id.desc()).limit(1))


def _restore(catalog: Catalog, entry: BackupEntry) -> None:
    original = record_from_marcxml(entry.original_xml)
    if original is None:
        raise StoreFailure(f"Backup entry {entry.entry_id} holds no record")
    catalog.update_record(original)


def revert_single(
    db: Session,
    catalog: Catalog,
    record_id: str,
    *,
    actor: str,
    batch_id: str | None = None,
) -> bool:
    entry = latest_entry(db, record_id, batch_id=batch_id)
    if entry is None:
        return False

    _restore(catalog, entry)
    emit_audit_event(
        db,
        actor=actor,
        action=AuditAction.record_reverted,
        object_type=AuditObjectType.record,
        object_id=record_id,
        correlation_id=entry.batch_id,
        metadata_blob={"entry_id": entry.entry_id},
    )
    return True


def revert_to_previous(db: Session, catalog: Catalog, batch_id: str, *, actor: str) -> list[RevertResult]:
    results: list[RevertResult] = []
    for entry in list_entries(db, batch_id=batch_id):
        try:
            _restore(catalog, entry)
        except Exception as exc:
            logger.error("Reverting record %s from batch %s failed: %s", entry.record_id, batch_id, exc)
            results.append(RevertResult(record_id=entry.record_id, entry_id=entry.entry_id, reverted=False, error=str(exc)))
            continue
        results.append(RevertResult(record_id=entry.record_id, entry_id=entry.entry_id, reverted=True))

    emit_audit_event(
        db,
        actor=actor,
        action=AuditAction.batch_reverted,
        object_type=AuditObjectType.batch,
        object_id=batch_id,
        correlation_id=batch_id,
        metadata_blob={
            "reverted": sum(1 for result in results if result.reverted),
            "failed": [result.record_id for result in results if not result.reverted],
        },
    )
    return results


def wipe_database(db: Session, *, actor: str) -> bool:
    deleted = db.execute(delete(BackupEntry)).rowcount
    emit_audit_event(
        db,
        actor=actor,
        action=AuditAction.backup_wiped,
        object_type=AuditObjectType.backup,
        object_id="all",
        correlation_id=f"wipe:{now_utc().isoformat()}",
        metadata_blob={"deleted": deleted},
    )
    return True
