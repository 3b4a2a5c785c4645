"""Drives the migration across every menu document in the collection."""

import logging
from typing import Any

from pymongo.errors import PyMongoError

from menu_image_migrator.config import MigrationConfig
from menu_image_migrator.models.migration_models import (
    DocumentOutcome,
    DocumentResult,
    MigrationSummary,
)
from menu_image_migrator.observability import metrics
from menu_image_migrator.repositories.checkpoint_repository import CheckpointRepository
from menu_image_migrator.repositories.menu_repository import MenuRepository
from menu_image_migrator.services.document_updater import DocumentUpdater

logger = logging.getLogger(__name__)

PROGRESS_LOG_INTERVAL = 100


class MigrationDriver:
    """Walks the menu collection and updates one document at a time.

    Documents are processed strictly in sequence. A failure on one document
    is logged and counted; it never stops the run.

    When resuming is enabled the checkpoint is advanced after every document
    until the first failure, so a later run revisits the failed document. A
    run that reaches the end of the cursor with no failures clears the
    checkpoint, and the next run starts over from the beginning.
    """

    def __init__(
        self,
        config: MigrationConfig,
        menu_repository: MenuRepository,
        checkpoint_repository: CheckpointRepository,
        document_updater: DocumentUpdater,
    ) -> None:
        """Initialize the driver.

        Args:
            config: Migration configuration
            menu_repository: Source of menu documents
            checkpoint_repository: Store for the resume checkpoint
            document_updater: Updater applied to each document
        """
        self.config = config
        self.menu_repository = menu_repository
        self.checkpoint_repository = checkpoint_repository
        self.document_updater = document_updater

    def _starting_point(self) -> tuple[Any, int]:
        """Return (after_id, starting count) for this run."""
        if self.config.resume:
            checkpoint = self.checkpoint_repository.get_checkpoint(self.config.job_name)
            if checkpoint is not None:
                logger.info(
                    f"Resuming {self.config.job_name} after document "
                    f"{checkpoint.last_document_id} "
                    f"({checkpoint.documents_processed} already processed)"
                )
                return checkpoint.last_document_id, checkpoint.documents_processed

        if self.config.skip:
            logger.info(f"Skipping the first {self.config.skip} documents")
        return None, self.config.skip

    async def _process(self, doc: dict[str, Any]) -> DocumentResult:
        try:
            return await self.document_updater.update_document(doc)
        except Exception as e:
            logger.error(f"Error processing document {doc.get('_id')}: {e}")
            return DocumentResult(document_id=doc.get("_id"), outcome=DocumentOutcome.FAILED)

    async def run(self) -> MigrationSummary:
        """Process every remaining menu document.

        Returns:
            MigrationSummary with aggregate counts for this run
        """
        summary = MigrationSummary()
        after_id, count = self._starting_point()
        first_failed_id: Any = None

        try:
            cursor = self.menu_repository.iter_documents(after_id=after_id, skip=self.config.skip)
            logger.info("Fetched cursor over restaurant menus")

            for doc in cursor:
                result = await self._process(doc)
                summary.record_document(result)
                metrics.record_document(result.outcome.value)

                count += 1
                if result.outcome == DocumentOutcome.FAILED and summary.documents_failed == 1:
                    first_failed_id = doc.get("_id")
                if self.config.resume and not summary.documents_failed:
                    self.checkpoint_repository.save_checkpoint(
                        self.config.job_name, doc.get("_id"), count
                    )

                if count % PROGRESS_LOG_INTERVAL == 0:
                    logger.info(f"Processed {count} documents so far...")

            logger.info("Finished processing all documents.")

            if self.config.resume:
                if summary.documents_failed:
                    logger.warning(
                        f"Checkpoint for {self.config.job_name} held before document "
                        f"{first_failed_id}; the next run resumes there"
                    )
                else:
                    self.checkpoint_repository.clear_checkpoint(self.config.job_name)

        except PyMongoError as e:
            logger.error(f"Error updating restaurant menus images: {e}")

        self._report(summary)
        return summary

    def _report(self, summary: MigrationSummary) -> None:
        logger.info("Migration summary", extra=summary.as_dict())

        if summary.documents_failed or summary.images_failed:
            logger.warning(
                f"{summary.documents_failed} documents and {summary.images_failed} images failed"
            )
        if summary.all_relocations_failed:
            logger.error(
                "Every attempted image relocation failed; check source URLs and S3 access"
            )
