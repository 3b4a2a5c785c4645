"""MongoDB repository for migration checkpoints.

Following the same pattern as the menu service repositories, expected
failures return None/False instead of raising so that losing a checkpoint
write never stops the migration.
"""

import logging
from datetime import UTC, datetime
from typing import Any

from pymongo.database import Database
from pymongo.errors import PyMongoError

from menu_image_migrator.models.migration_models import MigrationCheckpoint

logger = logging.getLogger(__name__)


class CheckpointRepository:
    """Repository for the resume checkpoint of a migration job.

    One document per job, keyed by job name.
    """

    def __init__(self, database: Database, collection_name: str) -> None:
        """Initialize repository.

        Args:
            database: PyMongo database handle
            collection_name: Name of the checkpoint collection
        """
        self.database = database
        self.collection_name = collection_name
        self.collection = database[collection_name]

    def get_checkpoint(self, job_name: str) -> MigrationCheckpoint | None:
        """Retrieve the checkpoint for a job.

        Args:
            job_name: Migration job identifier

        Returns:
            MigrationCheckpoint if found, None otherwise
        """
        try:
            doc = self.collection.find_one({"_id": job_name})

            if doc is None:
                return None

            return MigrationCheckpoint.from_mongo_document(doc)

        except PyMongoError as e:
            logger.error(f"Failed to read checkpoint for {job_name}: {e}")
            return None

    def save_checkpoint(self, job_name: str, last_document_id: Any, documents_processed: int) -> bool:
        """Save or update the checkpoint for a job.

        Args:
            job_name: Migration job identifier
            last_document_id: ``_id`` of the last processed document
            documents_processed: Running count of processed documents

        Returns:
            bool: True if save succeeded, False otherwise
        """
        checkpoint = MigrationCheckpoint(
            job_name=job_name,
            last_document_id=last_document_id,
            documents_processed=documents_processed,
            updated_at=datetime.now(UTC),
        )

        try:
            self.collection.replace_one(
                {"_id": job_name}, checkpoint.to_mongo_document(), upsert=True
            )
            return True

        except PyMongoError as e:
            logger.error(f"Failed to save checkpoint for {job_name}: {e}")
            return False

    def clear_checkpoint(self, job_name: str) -> bool:
        """Remove the checkpoint for a job once it has run to completion.

        Args:
            job_name: Migration job identifier

        Returns:
            bool: True if the delete succeeded (or there was nothing to delete)
        """
        try:
            self.collection.delete_one({"_id": job_name})
            logger.info(f"Cleared checkpoint for {job_name}")
            return True

        except PyMongoError as e:
            logger.error(f"Failed to clear checkpoint for {job_name}: {e}")
            return False
