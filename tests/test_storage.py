"""
Tests for the object store backends and their URL/path mapping.
"""

from unittest.mock import Mock

import pytest
from botocore.exceptions import ClientError

from propmatch.config import Settings
from propmatch.storage import LocalObjectStore, build_object_store
from propmatch.storage.s3 import S3ObjectStore
from propmatch.utils.exceptions import UploadFailureError, CleanupFailureError


def client_error(code: str, operation: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


@pytest.fixture
def local_store(tmp_path) -> LocalObjectStore:
    return LocalObjectStore(
        upload_dir=str(tmp_path),
        bucket="property-images",
        public_base_url="http://localhost:8000/storage/"
    )


class TestPublicUrls:

    def test_public_url_round_trip(self, local_store):
        url = local_store.public_url("abc/123-x.png")

        assert url == "http://localhost:8000/storage/property-images/abc/123-x.png"
        assert local_store.path_from_url(url) == "abc/123-x.png"

    @pytest.mark.parametrize("url", [
        "http://elsewhere.test/storage/property-images/abc/1.png",
        "https://localhost:8000/storage/property-images/abc/1.png",
        "http://localhost:8000/storage/other-bucket/abc/1.png",
        "http://localhost:8000/storage/property-images/",
        "http://localhost:8000/storage/property-images/../secrets.txt",
        "not a url",
    ])
    def test_foreign_urls_are_rejected(self, local_store, url):
        assert local_store.path_from_url(url) is None


class TestLocalObjectStore:

    @pytest.mark.asyncio
    async def test_upload_and_delete(self, local_store, tmp_path):
        url = await local_store.upload("prop-1/1-a.png", b"png-bytes", "image/png")

        stored = tmp_path / "property-images" / "prop-1" / "1-a.png"
        assert stored.read_bytes() == b"png-bytes"
        assert url.endswith("/property-images/prop-1/1-a.png")

        await local_store.delete("prop-1/1-a.png")

        assert not stored.exists()
        # The property directory is left in place
        assert stored.parent.is_dir()

        await local_store.upload("prop-1/2-b.png", b"next")
        assert (stored.parent / "2-b.png").read_bytes() == b"next"

    @pytest.mark.asyncio
    async def test_upload_never_overwrites(self, local_store):
        await local_store.upload("prop-1/1-a.png", b"first")

        with pytest.raises(UploadFailureError) as exc_info:
            await local_store.upload("prop-1/1-a.png", b"second")

        assert "already exists" in exc_info.value.detail
        assert (local_store.root / "prop-1" / "1-a.png").read_bytes() == b"first"

    @pytest.mark.asyncio
    async def test_delete_missing_object(self, local_store):
        with pytest.raises(CleanupFailureError):
            await local_store.delete("prop-1/missing.png")


class TestS3ObjectStore:

    @pytest.fixture
    def s3_client(self) -> Mock:
        client = Mock()
        client.head_object.side_effect = client_error("404", "HeadObject")
        return client

    @pytest.fixture
    def s3_store(self, s3_client) -> S3ObjectStore:
        return S3ObjectStore(
            bucket="property-images",
            public_base_url="https://cdn.example.com/storage/v1/object/public",
            cache_control="max-age=3600",
            client=s3_client
        )

    @pytest.mark.asyncio
    async def test_upload(self, s3_store, s3_client):
        url = await s3_store.upload("prop-1/1-a.png", b"data", "image/png")

        assert url == "https://cdn.example.com/storage/v1/object/public/property-images/prop-1/1-a.png"
        s3_client.put_object.assert_called_once_with(
            Bucket="property-images",
            Key="prop-1/1-a.png",
            Body=b"data",
            CacheControl="max-age=3600",
            ContentType="image/png"
        )

    @pytest.mark.asyncio
    async def test_upload_refuses_existing_key(self, s3_store, s3_client):
        s3_client.head_object.side_effect = None
        s3_client.head_object.return_value = {"ContentLength": 4}

        with pytest.raises(UploadFailureError):
            await s3_store.upload("prop-1/1-a.png", b"data")

        s3_client.put_object.assert_not_called()

    @pytest.mark.asyncio
    async def test_upload_error(self, s3_store, s3_client):
        s3_client.put_object.side_effect = client_error("AccessDenied", "PutObject")

        with pytest.raises(UploadFailureError) as exc_info:
            await s3_store.upload("prop-1/1-a.png", b"data")

        assert exc_info.value.status_code == 502

    @pytest.mark.asyncio
    async def test_delete(self, s3_store, s3_client):
        await s3_store.delete("prop-1/1-a.png")

        s3_client.delete_object.assert_called_once_with(Bucket="property-images", Key="prop-1/1-a.png")

    @pytest.mark.asyncio
    async def test_delete_error(self, s3_store, s3_client):
        s3_client.delete_object.side_effect = client_error("AccessDenied", "DeleteObject")

        with pytest.raises(CleanupFailureError):
            await s3_store.delete("prop-1/1-a.png")


def test_build_object_store_defaults_to_local(tmp_path):
    store = build_object_store(Settings(upload_dir=str(tmp_path), storage_backend="local"))

    assert isinstance(store, LocalObjectStore)
    assert store.bucket == "property-images"
