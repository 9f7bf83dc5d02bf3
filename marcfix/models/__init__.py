from marcfix.models.core import AuditEvent, BackupEntry

__all__ = [
    "AuditEvent",
    "BackupEntry",
]
