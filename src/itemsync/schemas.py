"""Pydantic schemas for items, search requests and reconciliation reports."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator, model_validator

MIN_YEAR = 1800
YEAR_HORIZON = 10


def max_year() -> int:
    """Latest accepted build year, relative to the current UTC year."""
    return datetime.now(timezone.utc).year + YEAR_HORIZON


class Category(str, Enum):
    """Closed set of item categories."""

    SAILBOAT = "Sailboat"
    CATAMARAN = "Catamaran"
    YACHT = "Yacht"
    DINGHY = "Dinghy"
    KETCH = "Ketch"
    SLOOP = "Sloop"
    SCHOONER = "Schooner"
    TRIMARAN = "Trimaran"
    MONOHULL = "Monohull"
    CRUISER = "Cruiser"
    RACER = "Racer"
    MOTOR_YACHT = "Motor Yacht"
    FISHING_BOAT = "Fishing Boat"
    SPEEDBOAT = "Speedboat"


def _check_name(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("name must be a non-empty string")
    return value


def _check_year(value: int) -> int:
    upper = max_year()
    if not MIN_YEAR <= value <= upper:
        raise ValueError(f"year must be between {MIN_YEAR} and {upper}")
    return value


class Item(BaseModel):
    """An item as held by the primary store.

    Attributes:
        id: Store-assigned identifier, also the index document id.
        name: Display name, free-text searchable.
        category: Category from the closed set.
        year: Build year.
    """

    id: str
    name: str
    category: Category
    year: int

    def document(self) -> dict[str, Any]:
        """Index document body for this item, without timestamps."""
        return self.model_dump(mode="json")


class ItemCreate(BaseModel):
    """Fields required to create an item."""

    name: str = Field(max_length=200)
    category: Category
    year: int

    @field_validator("name")
    @classmethod
    def check_name(cls, value: str) -> str:
        return _check_name(value)

    @field_validator("year")
    @classmethod
    def check_year(cls, value: int) -> int:
        return _check_year(value)


class ItemPatch(BaseModel):
    """Partial update; fields left out (or null) keep their current value."""

    name: str | None = Field(default=None, max_length=200)
    category: Category | None = None
    year: int | None = None

    @field_validator("name")
    @classmethod
    def check_name(cls, value: str | None) -> str | None:
        return None if value is None else _check_name(value)

    @field_validator("year")
    @classmethod
    def check_year(cls, value: int | None) -> int | None:
        return None if value is None else _check_year(value)

    def changes(self) -> dict[str, Any]:
        """Supplied fields only, JSON-ready.

        Returns:
            Mapping of field name to new value for every present field.
        """
        return self.model_dump(mode="json", exclude_none=True)


class YearRange(BaseModel):
    """Inclusive year bounds; either side may be open."""

    min: int | None = None
    max: int | None = None

    @model_validator(mode="after")
    def check_order(self) -> "YearRange":
        if self.min is not None and self.max is not None and self.min > self.max:
            raise ValueError("year range min must not exceed max")
        return self

    @property
    def is_open(self) -> bool:
        """True when neither bound is set."""
        return self.min is None and self.max is None


class SearchFilters(BaseModel):
    """Structured filters applied alongside the free-text term.

    Filters restrict which documents match; they never change scores.
    """

    category: Category | None = None
    year: int | None = None
    year_range: YearRange | None = None


class SearchHit(BaseModel):
    """Item snapshot read back from the index with its relevance score."""

    id: str
    name: str
    category: Category
    year: int
    created_at: datetime | None = None
    updated_at: datetime | None = None
    score: float | None = None


class SearchResult(BaseModel):
    """Search response envelope.

    Attributes:
        total: Number of matching documents, regardless of page size.
        items: Ranked hits, best first.
    """

    total: int
    items: list[SearchHit]


class ReconciliationFailure(BaseModel):
    """One item that could not be re-synced during a reconcile pass."""

    item_id: str
    error: str


class ReconciliationReport(BaseModel):
    """Outcome of a reconciliation pass.

    Attributes:
        total: Items read from the primary store.
        succeeded: Items whose index document was rewritten.
        failed: Items that could not be rewritten, plus orphan deletions
            that failed.
        failures: Per-item failure details.
        purged: Orphaned index document ids removed.
        scan_error: Why the index id scan failed, if it did; no orphans
            are purged in that case.
        status: "partial_failure" when any rewrite or purge step
            failed, or the scan did.
        started_at: Start of the pass (UTC).
        duration_ms: Wall time of the pass.
    """

    total: int = 0
    succeeded: int = 0
    failed: int = 0
    failures: list[ReconciliationFailure] = Field(default_factory=list)
    purged: list[str] = Field(default_factory=list)
    scan_error: str | None = None
    status: Literal["ok", "partial_failure"] = "ok"
    started_at: datetime
    duration_ms: float = 0.0
