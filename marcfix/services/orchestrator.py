"""Fetch, validate and fix single records.

These functions do no printing; the CLI and the batch processor decide how
outcomes are reported.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

from pymarc import Record

from marcfix.services.records import clone_record, records_equal, render_record
from marcfix.services.validation import NotFoundError, validate_record_id
from marcfix.services.validators import ValidationReport, Validator


class Catalog(Protocol):
    def load_record(self, record_id: str) -> Record | None: ...

    def update_record(self, record: Record) -> dict[str, Any]: ...


@dataclass
class ValidationOutcome:
    original_record: Record
    validated_record: Record
    results: ValidationReport
    revalidation_results: ValidationReport | None = None


@dataclass(kw_only=True)
class FixOutcome(ValidationOutcome):
    update_response: dict[str, Any]
    record_id: str | None = None
    batch_id: str | None = None


def validate_record(catalog: Catalog, validator: Validator, record_id: str) -> ValidationOutcome | None:
    validate_record_id(record_id)
    record = catalog.load_record(record_id)
    if record is None:
        return None

    original = clone_record(record)
    results = validator(record)
    revalidation_results = None
    # Corrections made by the first pass can expose new issues.
    if not records_equal(original, record):
        revalidation_results = validator(record)

    return ValidationOutcome(
        original_record=original,
        validated_record=record,
        results=results,
        revalidation_results=revalidation_results,
    )


def fix(catalog: Catalog, validator: Validator, record_id: str) -> FixOutcome:
    outcome = validate_record(catalog, validator, record_id)
    if outcome is None:
        raise NotFoundError(f"Record not found: {record_id}")
    response = catalog.update_record(outcome.validated_record)
    return FixOutcome(
        original_record=outcome.original_record,
        validated_record=outcome.validated_record,
        results=outcome.results,
        revalidation_results=outcome.revalidation_results,
        update_response=response,
        record_id=record_id,
    )


def show(catalog: Catalog, record_id: str) -> str:
    validate_record_id(record_id)
    record = catalog.load_record(record_id)
    if record is None:
        raise NotFoundError(f"Record not found: {record_id}")
    return render_record(record)
