"""Restaurant menu document models.

Menu items are kept as plain dictionaries so that every field other than
``image`` is written back exactly as it was read.
"""

import logging
from collections.abc import Sequence
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

MENU_PROJECTION = {"_id": 1, "restaurantId": 1, "items": 1}


class MenuDocument(BaseModel):
    """A restaurant menu as stored in the ``restaurantmenus`` collection."""

    model_config = ConfigDict(populate_by_name=True)

    id: Any = Field(..., alias="_id", description="Opaque document identifier")
    restaurant_id: int | float | str = Field(
        ..., alias="restaurantId", description="Restaurant owning the menu"
    )
    items: list[dict[str, Any]] = Field(..., description="Menu items in display order")

    @classmethod
    def from_mongo(cls, doc: dict[str, Any]) -> "MenuDocument | None":
        """Create a MenuDocument from a raw Mongo document.

        Args:
            doc: Raw document with ``_id``, ``restaurantId`` and ``items``

        Returns:
            MenuDocument, or None if the restaurant id is missing/falsy or the
            items field is not a sequence of objects
        """
        restaurant_id = doc.get("restaurantId")
        items = doc.get("items")

        if not restaurant_id or isinstance(restaurant_id, bool):
            return None
        if not isinstance(restaurant_id, (int, float, str)):
            return None
        if isinstance(items, (str, bytes)) or not isinstance(items, Sequence):
            return None
        for position, item in enumerate(items):
            if not isinstance(item, dict):
                logger.warning(
                    f"Document {doc.get('_id')} has a malformed item at position {position}: "
                    f"expected an object, got {type(item).__name__}"
                )
                return None

        return cls(_id=doc.get("_id"), restaurantId=restaurant_id, items=list(items))


def item_image(item: dict[str, Any]) -> str | None:
    """Return the item's image URL, or None when absent or empty."""
    image = item.get("image")
    if not image:
        return None
    return str(image)
