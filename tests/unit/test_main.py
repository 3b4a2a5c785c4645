"""Unit tests for the migration entry point."""

import os
from unittest.mock import MagicMock, Mock, patch

import httpx
import pytest

from main import get_mongo_client, get_s3_client, main, run_migration
from menu_image_migrator.config import MigrationConfig
from menu_image_migrator.models.migration_models import MigrationSummary


@pytest.mark.unit
class TestGetS3Client:
    """Tests for get_s3_client."""

    @patch("main.boto3.client")
    def test_uses_explicit_credentials(self, mock_boto3_client: Mock) -> None:
        """Test that configured credentials are passed to boto3."""
        config = MigrationConfig(
            mongo_uri="mongodb://localhost",
            aws_access_key_id="AKIA123",
            aws_secret_access_key="secret",
        )

        result = get_s3_client(config)

        mock_boto3_client.assert_called_once_with(
            "s3",
            region_name="ap-south-1",
            aws_access_key_id="AKIA123",
            aws_secret_access_key="secret",
        )
        assert result == mock_boto3_client.return_value

    @patch("main.boto3.client")
    def test_uses_default_credential_chain(self, mock_boto3_client: Mock) -> None:
        """Test that boto3 resolves credentials itself when none are configured."""
        get_s3_client(MigrationConfig(mongo_uri="mongodb://localhost"))

        mock_boto3_client.assert_called_once_with("s3", region_name="ap-south-1")

    @patch("main.boto3.client")
    def test_uses_endpoint_override(self, mock_boto3_client: Mock) -> None:
        """Test that an alternate S3 endpoint is honoured."""
        config = MigrationConfig(
            mongo_uri="mongodb://localhost", s3_endpoint_url="http://localhost:4566"
        )

        get_s3_client(config)

        assert mock_boto3_client.call_args.kwargs["endpoint_url"] == "http://localhost:4566"


@pytest.mark.unit
class TestGetMongoClient:
    """Tests for get_mongo_client."""

    @patch("main.MongoClient")
    def test_connects_with_uri(self, mock_mongo_client: Mock) -> None:
        """Test that the connection string is used as-is."""
        get_mongo_client(MigrationConfig(mongo_uri="mongodb://db:27017/?tls=true"))

        mock_mongo_client.assert_called_once_with("mongodb://db:27017/?tls=true")


@pytest.mark.unit
class TestRunMigration:
    """Tests for run_migration."""

    @pytest.mark.asyncio
    @patch("main.MigrationDriver")
    async def test_closes_clients_after_run(self, mock_driver_cls: Mock) -> None:
        """Test that the database and HTTP clients are closed after a normal run."""
        summary = MigrationSummary(documents_seen=1)
        mock_driver_cls.return_value.run = MagicMock(return_value=_completed(summary))
        mongo_client = MagicMock()
        http_client = httpx.AsyncClient()

        result = await run_migration(
            MigrationConfig(mongo_uri="mongodb://localhost"), mongo_client, MagicMock(), http_client
        )

        assert result is summary
        mongo_client.close.assert_called_once()
        mongo_client.__getitem__.assert_called_once_with("agentic")
        assert http_client.is_closed

    @pytest.mark.asyncio
    @patch("main.MigrationDriver")
    async def test_closes_clients_after_crash(self, mock_driver_cls: Mock) -> None:
        """Test that the database client is closed when the run raises."""
        mock_driver_cls.return_value.run = MagicMock(side_effect=RuntimeError("boom"))
        mongo_client = MagicMock()

        with pytest.raises(RuntimeError):
            await run_migration(
                MigrationConfig(mongo_uri="mongodb://localhost"), mongo_client, MagicMock()
            )

        mongo_client.close.assert_called_once()


async def _completed(summary: MigrationSummary) -> MigrationSummary:
    return summary


@pytest.mark.unit
class TestMain:
    """Tests for the main function."""

    @patch.dict(os.environ, {"ENVIRONMENT": "test"}, clear=True)
    @patch("main.load_dotenv")
    @patch("main.configure_logging")
    @patch("main.get_mongo_client")
    def test_missing_mongo_uri_exits_non_zero(
        self,
        mock_get_mongo_client: Mock,
        mock_configure_logging: Mock,
        mock_load_dotenv: Mock,
    ) -> None:
        """Test that a missing connection string fails before connecting."""
        assert main() == 1
        mock_get_mongo_client.assert_not_called()

    @patch.dict(os.environ, {"ENVIRONMENT": "test", "MONGO_URI": "mongodb://db"}, clear=True)
    @patch("main.load_dotenv")
    @patch("main.configure_logging")
    @patch("main.shutdown_observability")
    @patch("main.setup_observability")
    @patch("main.run_migration")
    @patch("main.get_s3_client")
    @patch("main.get_mongo_client")
    def test_successful_run_exits_zero(
        self,
        mock_get_mongo_client: Mock,
        mock_get_s3_client: Mock,
        mock_run_migration: Mock,
        mock_setup: Mock,
        mock_shutdown: Mock,
        mock_configure_logging: Mock,
        mock_load_dotenv: Mock,
    ) -> None:
        """Test that a completed run exits with status 0."""
        mock_run_migration.return_value = _completed(MigrationSummary(documents_failed=4))

        assert main() == 0

        config = mock_run_migration.call_args.args[0]
        assert config.mongo_uri == "mongodb://db"
        assert mock_run_migration.call_args.args[1] == mock_get_mongo_client.return_value
        assert mock_run_migration.call_args.args[2] == mock_get_s3_client.return_value
        mock_shutdown.assert_called_once()

    @patch.dict(os.environ, {"ENVIRONMENT": "test", "MONGO_URI": "mongodb://db"}, clear=True)
    @patch("main.load_dotenv")
    @patch("main.configure_logging")
    @patch("main.shutdown_observability")
    @patch("main.setup_observability")
    @patch("main.get_s3_client")
    @patch("main.get_mongo_client")
    def test_crash_exits_non_zero(
        self,
        mock_get_mongo_client: Mock,
        mock_get_s3_client: Mock,
        mock_setup: Mock,
        mock_shutdown: Mock,
        mock_configure_logging: Mock,
        mock_load_dotenv: Mock,
    ) -> None:
        """Test that an unexpected error is logged and exits with status 1."""
        mock_get_s3_client.side_effect = RuntimeError("no region")

        assert main() == 1
        mock_get_mongo_client.assert_not_called()
        mock_shutdown.assert_called_once()
