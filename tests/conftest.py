"""Shared pytest fixtures and configuration for all tests."""

import os
from typing import Any

import pytest
from botocore.exceptions import ClientError
from bson import ObjectId
from pymongo.results import UpdateResult

from menu_image_migrator.config import MigrationConfig

os.environ.setdefault("ENVIRONMENT", "test")

# BSON comparison order for the _id types the fakes need to handle
BSON_TYPE_ORDER = [(type(None),), (int, float), (str,), (dict,), (list,), (bytes,), (ObjectId,)]


def bson_sort_key(value: Any) -> tuple[int, Any]:
    if isinstance(value, bool):
        return len(BSON_TYPE_ORDER), value
    for rank, types in enumerate(BSON_TYPE_ORDER):
        if isinstance(value, types):
            return rank, value
    raise TypeError(f"Unsupported _id type {type(value).__name__}")


class FakeS3Client:
    """In-memory stand-in for the boto3 S3 client."""

    def __init__(self, fail: bool = False) -> None:
        self.objects: dict[tuple[str, str], dict[str, Any]] = {}
        self.fail = fail

    def put_object(self, Bucket: str, Key: str, Body: bytes, ContentType: str) -> dict:  # noqa: N803
        if self.fail:
            raise ClientError(
                {"Error": {"Code": "ServiceUnavailable", "Message": "S3 down"}}, "PutObject"
            )
        self.objects[(Bucket, Key)] = {"Body": Body, "ContentType": ContentType}
        return {"ETag": '"etag"'}


class FakeCollection:
    """In-memory stand-in for a pymongo collection.

    Supports the aggregation stages and update operators the migration uses.
    Documents are kept in insertion order.
    """

    def __init__(self, docs: list[dict[str, Any]] | None = None) -> None:
        self.docs: list[dict[str, Any]] = [dict(d) for d in docs or []]
        self.pipelines: list[list[dict[str, Any]]] = []

    def aggregate(self, pipeline: list[dict[str, Any]], **kwargs: Any) -> list[dict[str, Any]]:
        self.pipelines.append(pipeline)
        result = list(self.docs)
        for stage in pipeline:
            if "$match" in stage:
                _, after = stage["$match"]["$expr"]["$gt"]
                result = [d for d in result if bson_sort_key(d["_id"]) > bson_sort_key(after)]
            elif "$sort" in stage:
                result = sorted(result, key=lambda d: bson_sort_key(d["_id"]))
            elif "$skip" in stage:
                result = result[stage["$skip"] :]
            elif "$project" in stage:
                fields = stage["$project"]
                result = [{k: v for k, v in d.items() if k in fields} for d in result]
        return result

    def update_one(self, flt: dict[str, Any], update: dict[str, Any]) -> UpdateResult:
        for doc in self.docs:
            if doc["_id"] == flt["_id"]:
                doc.update(update["$set"])
                return UpdateResult({"n": 1, "nModified": 1}, acknowledged=True)
        return UpdateResult({"n": 0, "nModified": 0}, acknowledged=True)

    def find_one(self, flt: dict[str, Any]) -> dict[str, Any] | None:
        for doc in self.docs:
            if doc["_id"] == flt["_id"]:
                return dict(doc)
        return None

    def replace_one(self, flt: dict[str, Any], replacement: dict[str, Any], upsert: bool = False) -> None:
        for i, doc in enumerate(self.docs):
            if doc["_id"] == flt["_id"]:
                self.docs[i] = dict(replacement)
                return
        if upsert:
            self.docs.append(dict(replacement))

    def delete_one(self, flt: dict[str, Any]) -> None:
        self.docs = [doc for doc in self.docs if doc["_id"] != flt["_id"]]


class FakeDatabase(dict):
    """Dictionary of FakeCollection objects that creates collections on access."""

    def __missing__(self, name: str) -> FakeCollection:
        collection = FakeCollection()
        self[name] = collection
        return collection


@pytest.fixture
def migration_config() -> MigrationConfig:
    """Fixture providing a configuration with default constants."""
    return MigrationConfig(mongo_uri="mongodb://localhost:27017", resume=False)


@pytest.fixture
def sample_menu_document() -> dict[str, Any]:
    """Fixture providing a menu document with one image and one missing image."""
    return {
        "_id": "d1",
        "restaurantId": 42,
        "items": [
            {"id": 1, "name": "Paneer Tikka", "price": 249.0, "image": "http://ex.com/a.png"},
            {"id": 2, "name": "Dal Makhani", "price": 199.0, "image": None},
        ],
    }


@pytest.fixture
def fake_s3() -> FakeS3Client:
    """Fixture providing an empty in-memory S3 client."""
    return FakeS3Client()


@pytest.fixture
def failing_s3() -> FakeS3Client:
    """Fixture providing an S3 client whose writes always fail."""
    return FakeS3Client(fail=True)


@pytest.fixture
def fake_database() -> FakeDatabase:
    """Fixture providing an empty in-memory database."""
    return FakeDatabase()


@pytest.fixture
def seeded_database(fake_database: FakeDatabase, sample_menu_document: dict[str, Any]) -> FakeDatabase:
    """Fixture providing a database whose menu collection holds the sample document."""
    fake_database["restaurantmenus"] = FakeCollection([sample_menu_document])
    return fake_database
