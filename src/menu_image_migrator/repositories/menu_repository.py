"""MongoDB repository for restaurant menu documents.

Write failures propagate to the caller so the migration loop can log the
failing document and move on.
"""

import logging
from collections.abc import Iterator
from typing import Any

from pymongo.database import Database

from menu_image_migrator.models.menu_models import MENU_PROJECTION
from menu_image_migrator.observability import traced

logger = logging.getLogger(__name__)


class MenuRepository:
    """Repository for reading and rewriting restaurant menus."""

    def __init__(self, database: Database, collection_name: str) -> None:
        """Initialize repository.

        Args:
            database: PyMongo database handle
            collection_name: Name of the menu collection
        """
        self.database = database
        self.collection_name = collection_name
        self.collection = database[collection_name]

    def build_pipeline(self, after_id: Any = None, skip: int = 0) -> list[dict[str, Any]]:
        """Build the aggregation pipeline used to walk the collection.

        Documents are walked in ``_id`` order so that a checkpoint on the last
        processed ``_id`` is a valid resume point. The skip offset therefore
        counts documents in ``_id`` order, not in natural collection order, so
        an offset carried over from an unsorted scan will not land on the same
        documents.

        The resume filter is an aggregation ``$gt`` expression, which compares
        ``_id`` values of different BSON types in the same order as ``$sort``.

        Args:
            after_id: Only return documents whose ``_id`` sorts after this one
            skip: Number of documents to skip (ignored when after_id is given)

        Returns:
            list: Aggregation pipeline stages
        """
        pipeline: list[dict[str, Any]] = []

        if after_id is not None:
            pipeline.append({"$match": {"$expr": {"$gt": ["$_id", after_id]}}})

        pipeline.append({"$sort": {"_id": 1}})

        if after_id is None and skip > 0:
            pipeline.append({"$skip": skip})

        pipeline.append({"$project": dict(MENU_PROJECTION)})
        return pipeline

    def iter_documents(self, after_id: Any = None, skip: int = 0) -> Iterator[dict[str, Any]]:
        """Iterate menu documents one at a time.

        Args:
            after_id: Resume after this ``_id``
            skip: Number of leading documents to skip when not resuming

        Returns:
            Iterator over raw documents with ``_id``, ``restaurantId`` and ``items``
        """
        pipeline = self.build_pipeline(after_id=after_id, skip=skip)
        logger.info(f"Opening cursor on {self.collection_name} with pipeline {pipeline}")
        return self.collection.aggregate(pipeline, allowDiskUse=True)

    @traced("replace_menu_items", service_name="menu-image-migrator")
    def replace_items(self, document_id: Any, items: list[dict[str, Any]]) -> bool:
        """Overwrite the items array of a single document.

        Args:
            document_id: ``_id`` of the document to update
            items: The complete new items array

        Returns:
            bool: True if a document matched the id, False otherwise

        Raises:
            PyMongoError: If the update fails
        """
        result = self.collection.update_one({"_id": document_id}, {"$set": {"items": items}})
        return result.matched_count > 0
