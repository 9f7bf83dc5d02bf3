from pydantic import BaseModel, Field, field_validator

from marcfix.services.validation import ConfigError


class TimeWindow(BaseModel):
    """Daily local-time window. ``start_hour > end_hour`` wraps past midnight."""

    start_hour: int = Field(ge=0, le=23)
    end_hour: int = Field(ge=0, le=23)

    @classmethod
    def from_string(cls, value: str) -> "TimeWindow":
        parts = value.strip().split("-")
        if len(parts) != 2 or not all(part.strip().isdigit() for part in parts):
            raise ConfigError(f"Invalid time interval '{value}', expected HH-HH (e.g. 17-06)")
        start, end = (int(part) for part in parts)
        if not (0 <= start <= 23 and 0 <= end <= 23):
            raise ConfigError(f"Invalid time interval '{value}', hours must be between 0 and 23")
        return cls(start_hour=start, end_hour=end)

    def contains_hour(self, hour: int) -> bool:
        if self.start_hour == self.end_hour:
            return True
        if self.start_hour < self.end_hour:
            return self.start_hour <= hour < self.end_hour
        return hour >= self.start_hour or hour < self.end_hour

    def __str__(self) -> str:
        return f"{self.start_hour:02d}-{self.end_hour:02d}"


class SaveBatchResult(BaseModel):
    inserted_count: int
    inserted_ids: list[int] = Field(default_factory=list)
    record_ids: list[str] = Field(default_factory=list)


class RevertResult(BaseModel):
    record_id: str
    entry_id: int
    reverted: bool
    error: str | None = None


class BatchProgress(BaseModel):
    processed: int
    total: int

    @property
    def percent(self) -> int:
        if self.total == 0:
            return 100
        return round(self.processed / self.total * 100)

    def __str__(self) -> str:
        return f"{self.processed}/{self.total} ({self.percent} %) records processed."


class BatchSummary(BaseModel):
    batch_id: str
    total: int
    processed: int = 0
    succeeded: int = 0
    failed_ids: list[str] = Field(default_factory=list)
    backed_up: int = 0
    unbacked_ids: list[str] = Field(default_factory=list)

    @field_validator("batch_id")
    @classmethod
    def batch_id_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("batch_id must not be blank")
        return value

    @property
    def failed(self) -> int:
        return len(self.failed_ids)
