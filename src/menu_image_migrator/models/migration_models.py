"""Migration progress and outcome models.

The checkpoint is stored in MongoDB next to the menus so a rerun resumes
after the last processed document. Results and the summary are in-memory
only and are reported through logs and metrics.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class ItemImageOutcome(str, Enum):
    """What happened to a single menu item's image."""

    RELOCATED = "relocated"
    FALLBACK_MISSING = "fallback_missing"
    FALLBACK_FAILED = "fallback_failed"


class DocumentOutcome(str, Enum):
    """What happened to a single menu document."""

    UPDATED = "updated"
    SKIPPED = "skipped"
    FAILED = "failed"


class MigrationCheckpoint(BaseModel):
    """Resume cursor for a migration job.

    Stored in the checkpoint collection with the job name as ``_id``.
    """

    job_name: str = Field(..., description="Migration job identifier")
    last_document_id: Any = Field(..., description="_id of the last processed menu document")
    documents_processed: int = Field(default=0, ge=0, description="Documents processed so far")
    updated_at: datetime | None = Field(None, description="Time the checkpoint was written")

    def to_mongo_document(self) -> dict[str, Any]:
        """Convert to the stored document shape.

        Returns:
            dict: Mongo-compatible representation
        """
        doc: dict[str, Any] = {
            "_id": self.job_name,
            "last_document_id": self.last_document_id,
            "documents_processed": self.documents_processed,
        }

        if self.updated_at is not None:
            doc["updated_at"] = self.updated_at

        return doc

    @classmethod
    def from_mongo_document(cls, doc: dict[str, Any]) -> "MigrationCheckpoint":
        """Create a MigrationCheckpoint from a stored document.

        Args:
            doc: Stored checkpoint document

        Returns:
            MigrationCheckpoint: Parsed model instance
        """
        return cls(
            job_name=doc["_id"],
            last_document_id=doc["last_document_id"],
            documents_processed=doc.get("documents_processed", 0),
            updated_at=doc.get("updated_at"),
        )


@dataclass
class DocumentResult:
    """Result of processing one menu document.

    Attributes:
        document_id: The document's _id
        outcome: Whether the document was updated, skipped or failed
        restaurant_id: Restaurant id, None when it could not be determined
        item_outcomes: Per-item image outcomes in item order
    """

    document_id: Any
    outcome: DocumentOutcome
    restaurant_id: int | float | str | None = None
    item_outcomes: list[ItemImageOutcome] = field(default_factory=list)

    def count(self, outcome: ItemImageOutcome) -> int:
        return sum(1 for o in self.item_outcomes if o == outcome)


@dataclass
class MigrationSummary:
    """Aggregate counters for a whole migration run."""

    documents_seen: int = 0
    documents_updated: int = 0
    documents_skipped: int = 0
    documents_failed: int = 0
    images_relocated: int = 0
    images_missing: int = 0
    images_failed: int = 0

    def record_document(self, result: DocumentResult) -> None:
        """Add one document's result to the totals."""
        self.documents_seen += 1
        if result.outcome == DocumentOutcome.UPDATED:
            self.documents_updated += 1
        elif result.outcome == DocumentOutcome.SKIPPED:
            self.documents_skipped += 1
        else:
            self.documents_failed += 1

        self.images_relocated += result.count(ItemImageOutcome.RELOCATED)
        self.images_missing += result.count(ItemImageOutcome.FALLBACK_MISSING)
        self.images_failed += result.count(ItemImageOutcome.FALLBACK_FAILED)

    @property
    def all_relocations_failed(self) -> bool:
        """True when relocation was attempted at least once and never succeeded."""
        return self.images_failed > 0 and self.images_relocated == 0

    def as_dict(self) -> dict[str, int]:
        return {
            "documents_seen": self.documents_seen,
            "documents_updated": self.documents_updated,
            "documents_skipped": self.documents_skipped,
            "documents_failed": self.documents_failed,
            "images_relocated": self.images_relocated,
            "images_missing": self.images_missing,
            "images_failed": self.images_failed,
        }
