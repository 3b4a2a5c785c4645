"""Exceptions raised by the menu image migration.

Configuration problems are fatal and stop the run before any work starts.
Relocation problems are recovered per item by substituting a fallback URL.
"""

from typing import Any


class MigrationError(Exception):
    """Base exception for all migration errors."""

    def __init__(self, message: str, hint: str | None = None) -> None:
        """Initialize the exception.

        Args:
            message: The error message
            hint: Optional hint for resolving the error
        """
        self.message = message
        self.hint = hint
        super().__init__(message)

    def __str__(self) -> str:
        if self.hint:
            return f"{self.message} (hint: {self.hint})"
        return self.message


class ConfigurationError(MigrationError):
    """Raised when required configuration is missing or invalid."""


class ImageRelocationError(MigrationError):
    """Raised when an image cannot be fetched or written to object storage."""

    def __init__(
        self,
        restaurant_id: Any,
        item_id: Any,
        original_error: Exception,
    ) -> None:
        """Initialize the relocation error.

        Args:
            restaurant_id: Restaurant the image belongs to
            item_id: Menu item the image belongs to
            original_error: The fetch or storage error that caused the failure
        """
        self.restaurant_id = restaurant_id
        self.item_id = item_id
        self.original_error = original_error
        super().__init__(
            f"Failed to relocate image for restaurant {restaurant_id}, item {item_id}: "
            f"{original_error}"
        )
