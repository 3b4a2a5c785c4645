"""Rewrites the image URLs of a single restaurant menu document."""

import logging
from typing import Any

from menu_image_migrator.config import FallbackPolicy, MigrationConfig
from menu_image_migrator.exceptions import ImageRelocationError
from menu_image_migrator.models.menu_models import MenuDocument, item_image
from menu_image_migrator.models.migration_models import (
    DocumentOutcome,
    DocumentResult,
    ItemImageOutcome,
)
from menu_image_migrator.observability import metrics, traced
from menu_image_migrator.repositories.menu_repository import MenuRepository
from menu_image_migrator.services.image_relocator import ImageRelocator

logger = logging.getLogger(__name__)


class DocumentUpdater:
    """Relocates every item image of a menu and saves the new items array.

    Items whose image is missing, or whose relocation fails, get the fallback
    URL selected by the configured FallbackPolicy. All other item fields are
    copied unchanged.
    """

    def __init__(
        self,
        config: MigrationConfig,
        relocator: ImageRelocator,
        menu_repository: MenuRepository,
    ) -> None:
        """Initialize the updater.

        Args:
            config: Migration configuration
            relocator: Relocator used for items that have an image
            menu_repository: Repository used to save the rewritten items
        """
        self.config = config
        self.relocator = relocator
        self.menu_repository = menu_repository

    def fallback_url(self, restaurant_id: int | float | str, item_id: Any) -> str:
        """Return the URL used when an item's image cannot be relocated."""
        if self.config.fallback_policy == FallbackPolicy.ITEM_URL:
            return self.relocator.item_url(restaurant_id, item_id)
        return self.config.placeholder_url

    async def rewrite_item(
        self, restaurant_id: int | float | str, item: dict[str, Any]
    ) -> tuple[dict[str, Any], ItemImageOutcome]:
        """Produce a copy of the item with its image relocated.

        Args:
            restaurant_id: Restaurant the item belongs to
            item: Original menu item

        Returns:
            Tuple of (new item, outcome)
        """
        item_id = item.get("id")
        image_url = item_image(item)

        if image_url is None:
            new_url = self.fallback_url(restaurant_id, item_id)
            outcome = ItemImageOutcome.FALLBACK_MISSING
            logger.info(
                f"No original image for restaurantId {restaurant_id}, item {item_id}. "
                f"Setting URL to {new_url}"
            )
        else:
            try:
                new_url = await self.relocator.relocate(restaurant_id, item_id, image_url)
                outcome = ItemImageOutcome.RELOCATED
            except ImageRelocationError as e:
                new_url = self.fallback_url(restaurant_id, item_id)
                outcome = ItemImageOutcome.FALLBACK_FAILED
                logger.error(
                    f"Failed to update image for restaurantId {restaurant_id}, item {item_id}: {e}"
                )

        metrics.record_image(outcome.value)
        return {**item, "image": new_url}, outcome

    @traced("update_menu_document", service_name="menu-image-migrator")
    async def update_document(self, doc: dict[str, Any]) -> DocumentResult:
        """Relocate all item images of one document and persist the result.

        Args:
            doc: Raw menu document with ``_id``, ``restaurantId`` and ``items``

        Returns:
            DocumentResult describing what happened

        Raises:
            PyMongoError: If saving the new items fails
        """
        document_id = doc.get("_id")
        menu = MenuDocument.from_mongo(doc)

        if menu is None:
            logger.warning(
                f"Skipping document {document_id} due to missing restaurantId or items."
            )
            return DocumentResult(document_id=document_id, outcome=DocumentOutcome.SKIPPED)

        updated_items: list[dict[str, Any]] = []
        outcomes: list[ItemImageOutcome] = []
        for item in menu.items:
            new_item, outcome = await self.rewrite_item(menu.restaurant_id, item)
            updated_items.append(new_item)
            outcomes.append(outcome)

        if not self.menu_repository.replace_items(menu.id, updated_items):
            logger.warning(f"Document {document_id} disappeared before it could be updated")

        logger.info(f"Updated document for restaurantId {menu.restaurant_id}")

        return DocumentResult(
            document_id=document_id,
            outcome=DocumentOutcome.UPDATED,
            restaurant_id=menu.restaurant_id,
            item_outcomes=outcomes,
        )
