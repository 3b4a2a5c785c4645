"""Migration configuration.

All settings are read from the environment once at startup and carried in a
single immutable MigrationConfig that is passed to every component.
"""

import os
from collections.abc import Mapping
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from menu_image_migrator.exceptions import ConfigurationError

BUCKET_NAME = "gobbl-restaurant-images-bucket"
REGION = "ap-south-1"
DB_NAME = "agentic"
COLLECTION_NAME = "restaurantmenus"
CHECKPOINT_COLLECTION_NAME = "migration_checkpoints"
DEFAULT_JOB_NAME = "menu-image-migration"
PLACEHOLDER_IMAGE_KEY = "landscape-placeholder-svgrepo-co.jpg"


def parse_bool(value: str) -> bool:
    """Parse a "true"/"false" environment value, case-insensitively."""
    normalized = value.strip().lower()
    if normalized not in ("true", "false"):
        raise ValueError(f"expected true or false, got {value!r}")
    return normalized == "true"


class FallbackPolicy(str, Enum):
    """How an item's image URL is filled in when relocation is not possible."""

    PLACEHOLDER = "placeholder"
    ITEM_URL = "item_url"


class MigrationConfig(BaseModel):
    """Settings for one migration run."""

    model_config = ConfigDict(frozen=True)

    mongo_uri: str = Field(..., min_length=1, description="MongoDB connection string")
    db_name: str = Field(default=DB_NAME, description="Database holding the menus")
    collection_name: str = Field(default=COLLECTION_NAME, description="Menu collection")
    checkpoint_collection_name: str = Field(
        default=CHECKPOINT_COLLECTION_NAME, description="Collection holding resume checkpoints"
    )
    bucket_name: str = Field(default=BUCKET_NAME, description="Destination S3 bucket")
    region: str = Field(default=REGION, description="Destination S3 region")
    aws_access_key_id: str | None = Field(None, description="S3 access key id")
    aws_secret_access_key: str | None = Field(None, description="S3 secret access key")
    s3_endpoint_url: str | None = Field(None, description="Alternate S3 endpoint")
    skip: int = Field(default=0, ge=0, description="Documents to skip when not resuming")
    resume: bool = Field(default=True, description="Resume from the persisted checkpoint")
    job_name: str = Field(default=DEFAULT_JOB_NAME, min_length=1, description="Checkpoint key")
    fallback_policy: FallbackPolicy = Field(
        default=FallbackPolicy.PLACEHOLDER, description="Fallback URL policy"
    )

    @property
    def placeholder_url(self) -> str:
        """Shared placeholder image URL inside the destination bucket."""
        return f"https://{self.bucket_name}.s3.{self.region}.amazonaws.com/{PLACEHOLDER_IMAGE_KEY}"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "MigrationConfig":
        """Build the configuration from environment variables.

        Args:
            environ: Mapping to read from (defaults to os.environ)

        Returns:
            Validated MigrationConfig

        Raises:
            ConfigurationError: If MONGO_URI is missing or a value is invalid
        """
        env = os.environ if environ is None else environ

        mongo_uri = env.get("MONGO_URI", "").strip()
        if not mongo_uri:
            raise ConfigurationError(
                "MONGO_URI is not set in the environment",
                hint="export MONGO_URI or add it to .env",
            )

        try:
            return cls(
                mongo_uri=mongo_uri,
                aws_access_key_id=env.get("AWS_ACCESS_KEY_ID") or None,
                aws_secret_access_key=env.get("AWS_SECRET_ACCESS_KEY") or None,
                s3_endpoint_url=env.get("S3_ENDPOINT") or None,
                skip=int(env.get("MIGRATION_SKIP", "0")),
                resume=parse_bool(env.get("MIGRATION_RESUME", "true")),
                job_name=env.get("MIGRATION_JOB_NAME", DEFAULT_JOB_NAME),
                fallback_policy=FallbackPolicy(
                    env.get("MIGRATION_FALLBACK_POLICY", FallbackPolicy.PLACEHOLDER.value).lower()
                ),
            )
        except (ValueError, ValidationError) as e:
            raise ConfigurationError(f"Invalid migration configuration: {e}") from e
