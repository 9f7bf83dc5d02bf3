from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from pymarc import Field, Record, Subfield

from marcfix.services.validation import ConfigError, ValidatorFailure, require

_MULTISPACE_PATTERN = re.compile(r"\s{2,}")

Rule = Callable[[Record], list[str]]
Validator = Callable[[Record], "ValidationReport"]


@dataclass(frozen=True)
class ValidatorResult:
    name: str
    issues: tuple[str, ...] = ()

    @property
    def passed(self) -> bool:
        return not self.issues


@dataclass(frozen=True)
class ValidationReport:
    results: tuple[ValidatorResult, ...] = field(default_factory=tuple)

    @property
    def issue_count(self) -> int:
        return sum(len(result.issues) for result in self.results)

    def failing(self) -> list[ValidatorResult]:
        return [result for result in self.results if not result.passed]

    def active_validators(self) -> list[str]:
        return [result.name for result in self.failing()]

    def as_dict(self) -> dict:
        return {"validators": [{"name": result.name, "issues": list(result.issues)} for result in self.results]}


def _data_fields(record: Record) -> list[Field]:
    return [item for item in record.fields if not item.is_control_field()]


def remove_empty_fields(record: Record) -> list[str]:
    issues: list[str] = []
    for data_field in _data_fields(record):
        kept = [subfield for subfield in data_field.subfields if subfield.value and subfield.value.strip()]
        for dropped in data_field.subfields:
            if dropped not in kept:
                issues.append(f"Field {data_field.tag} has an empty subfield ${dropped.code}")
        if not kept:
            record.remove_field(data_field)
            issues.append(f"Field {data_field.tag} has no content")
            continue
        data_field.subfields = kept
    return issues


def strip_whitespace(record: Record) -> list[str]:
    issues: list[str] = []
    for data_field in _data_fields(record):
        cleaned: list[Subfield] = []
        for subfield in data_field.subfields:
            value = _MULTISPACE_PATTERN.sub(" ", subfield.value or "").strip()
            if value != subfield.value:
                issues.append(f"Field {data_field.tag} subfield ${subfield.code} has extra whitespace")
            cleaned.append(Subfield(code=subfield.code, value=value))
        data_field.subfields = cleaned
    return issues


def remove_duplicate_fields(record: Record) -> list[str]:
    issues: list[str] = []
    seen: set[tuple] = set()
    for data_field in _data_fields(record):
        key = (data_field.tag, tuple(data_field.indicators), tuple(data_field.subfields))
        if key in seen:
            record.remove_field(data_field)
            issues.append(f"Field {data_field.tag} is duplicated")
            continue
        seen.add(key)
    return issues


def collapse_double_commas(record: Record) -> list[str]:
    issues: list[str] = []
    for data_field in _data_fields(record):
        cleaned: list[Subfield] = []
        for subfield in data_field.subfields:
            value = subfield.value or ""
            if ",," in value:
                issues.append(f"Field {data_field.tag} subfield ${subfield.code} has a double comma")
                while ",," in value:
                    value = value.replace(",,", ",")
            cleaned.append(Subfield(code=subfield.code, value=value))
        data_field.subfields = cleaned
    return issues


DEFAULT_RULES: dict[str, Rule] = {
    "empty-fields": remove_empty_fields,
    "trailing-whitespace": strip_whitespace,
    "duplicate-fields": remove_duplicate_fields,
    "double-commas": collapse_double_commas,
}


class RuleValidator:
    """Runs named rules in order. Every rule reports its issues and corrects the record in place."""

    def __init__(self, rules: dict[str, Rule]) -> None:
        self.rules = dict(rules)

    def __call__(self, record: Record) -> ValidationReport:
        results: list[ValidatorResult] = []
        for name, rule in self.rules.items():
            try:
                issues = rule(record)
            except Exception as exc:
                raise ValidatorFailure(f"Validator {name} failed: {exc}") from exc
            results.append(ValidatorResult(name=name, issues=tuple(issues)))
        return ValidationReport(results=tuple(results))


def build_validator(names: Iterable[str] | None = None) -> RuleValidator:
    selected = list(names or [])
    if not selected:
        return RuleValidator(DEFAULT_RULES)
    unknown = [name for name in selected if name not in DEFAULT_RULES]
    require(not unknown, f"Unknown validator(s): {', '.join(unknown)}", ConfigError)
    return RuleValidator({name: DEFAULT_RULES[name] for name in selected})


def format_results(report: ValidationReport) -> str:
    failing = report.failing()
    if not failing:
        return "All validators passed."
    lines: list[str] = []
    for result in failing:
        lines.append(f"{result.name}:")
        lines.extend(f"  - {issue}" for issue in result.issues)
    return "\n".join(lines)
