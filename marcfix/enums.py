from enum import Enum


class AuditAction(str, Enum):
    backup_saved = "backup_saved"
    record_reverted = "record_reverted"
    batch_reverted = "batch_reverted"
    backup_wiped = "backup_wiped"


class AuditObjectType(str, Enum):
    record = "record"
    batch = "batch"
    backup = "backup"


class FixAction(str, Enum):
    fix = "fix"
    fix_multiple = "fixmultiple"
