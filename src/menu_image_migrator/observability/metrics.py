"""Counters for the menu image migration."""

from opentelemetry import metrics

meter = metrics.get_meter("menu-image-migrator")

documents_processed_counter = meter.create_counter(
    name="menu_documents_processed_total",
    description="Menu documents processed by outcome",
    unit="1",
)

images_processed_counter = meter.create_counter(
    name="menu_images_processed_total",
    description="Menu item images processed by outcome",
    unit="1",
)


def record_document(outcome: str) -> None:
    """Record one processed menu document.

    Args:
        outcome: "updated", "skipped" or "failed"
    """
    documents_processed_counter.add(1, {"outcome": outcome})


def record_image(outcome: str) -> None:
    """Record one processed menu item image.

    Args:
        outcome: "relocated", "fallback_missing" or "fallback_failed"
    """
    images_processed_counter.add(1, {"outcome": outcome})
