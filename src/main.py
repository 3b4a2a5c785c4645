"""Entry point for the restaurant menu image migration.

This module wires configuration, clients, repositories and services
together, runs the migration once and maps the outcome to an exit code.
"""

import asyncio
import logging
import os
import sys
from typing import Any

import boto3
import httpx
from dotenv import load_dotenv
from pymongo import MongoClient

from menu_image_migrator.config import MigrationConfig
from menu_image_migrator.exceptions import ConfigurationError
from menu_image_migrator.models.migration_models import MigrationSummary
from menu_image_migrator.observability import (
    configure_logging,
    setup_observability,
    shutdown_observability,
)
from menu_image_migrator.repositories.checkpoint_repository import CheckpointRepository
from menu_image_migrator.repositories.menu_repository import MenuRepository
from menu_image_migrator.services.document_updater import DocumentUpdater
from menu_image_migrator.services.image_relocator import ImageRelocator
from menu_image_migrator.services.migration_driver import MigrationDriver

logger = logging.getLogger(__name__)


def get_s3_client(config: MigrationConfig) -> Any:
    """Create the S3 client for the destination bucket.

    Args:
        config: Migration configuration

    Returns:
        Boto3 S3 client configured for the bucket's region
    """
    kwargs: dict[str, Any] = {"region_name": config.region}

    if config.aws_access_key_id and config.aws_secret_access_key:
        kwargs["aws_access_key_id"] = config.aws_access_key_id
        kwargs["aws_secret_access_key"] = config.aws_secret_access_key
    else:
        # boto3 falls back to its default credential chain (IAM role, profile, ...)
        logger.info("S3 credentials not set explicitly, using default credential chain")

    if config.s3_endpoint_url:
        logger.info(f"Using S3 endpoint {config.s3_endpoint_url}")
        kwargs["endpoint_url"] = config.s3_endpoint_url

    return boto3.client("s3", **kwargs)


def get_mongo_client(config: MigrationConfig) -> MongoClient:
    """Create the MongoDB client.

    Args:
        config: Migration configuration

    Returns:
        MongoClient for the configured connection string
    """
    return MongoClient(config.mongo_uri)


async def run_migration(
    config: MigrationConfig,
    mongo_client: MongoClient,
    s3_client: Any,
    http_client: httpx.AsyncClient | None = None,
) -> MigrationSummary:
    """Run the migration with already-created clients.

    The Mongo client and the HTTP client are closed when the run ends,
    whichever way it ends.

    Args:
        config: Migration configuration
        mongo_client: Connected MongoDB client
        s3_client: Boto3 S3 client for the destination bucket
        http_client: Client used to download images (created if not given)

    Returns:
        MigrationSummary for the run
    """
    if http_client is None:
        http_client = httpx.AsyncClient(follow_redirects=True)

    try:
        async with http_client:
            database = mongo_client[config.db_name]
            menu_repository = MenuRepository(database=database, collection_name=config.collection_name)
            checkpoint_repository = CheckpointRepository(
                database=database, collection_name=config.checkpoint_collection_name
            )
            relocator = ImageRelocator(
                http_client=http_client,
                s3_client=s3_client,
                bucket_name=config.bucket_name,
                region=config.region,
            )
            updater = DocumentUpdater(
                config=config, relocator=relocator, menu_repository=menu_repository
            )
            driver = MigrationDriver(
                config=config,
                menu_repository=menu_repository,
                checkpoint_repository=checkpoint_repository,
                document_updater=updater,
            )

            logger.info(
                f"Migrating {config.db_name}.{config.collection_name} images "
                f"to s3://{config.bucket_name} ({config.region}), "
                f"fallback policy: {config.fallback_policy.value}"
            )
            return await driver.run()
    finally:
        mongo_client.close()
        logger.info("Database connection closed")


def main() -> int:
    """Run the migration from the environment.

    Returns:
        Process exit code: 0 when the run completed, 1 when the
        configuration is invalid or the run crashed
    """
    load_dotenv()
    configure_logging(os.getenv("LOG_LEVEL", "INFO"))

    try:
        config = MigrationConfig.from_env()
    except ConfigurationError as e:
        logger.error(str(e))
        return 1

    setup_observability()

    try:
        s3_client = get_s3_client(config)
        mongo_client = get_mongo_client(config)
        asyncio.run(run_migration(config, mongo_client, s3_client))
    except Exception:
        logger.exception("Migration aborted")
        return 1
    finally:
        shutdown_observability()

    return 0


if __name__ == "__main__":
    sys.exit(main())
