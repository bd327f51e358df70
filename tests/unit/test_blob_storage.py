"""Tests for local and S3 blob storage."""

from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import ClientError

from audiobook_buddy.domain.entities import BlobNotFoundError, TransientError, ValidationError
from audiobook_buddy.infrastructure.local_blob_storage import LocalBlobStorage
from audiobook_buddy.infrastructure.s3_blob_storage import S3BlobStorage


class TestLocalBlobStorage:
    """Tests for LocalBlobStorage."""

    @pytest.fixture
    def storage(self, tmp_path):
        return LocalBlobStorage(base_dir=str(tmp_path / "storage"))

    @pytest.mark.asyncio
    async def test_upload_fetch_delete(self, storage):
        progress = []

        location = await storage.upload("uploads/alice-sub/1_book.pdf", b"%PDF-1.4", "application/pdf", progress.append)

        assert location.startswith("file://")
        assert progress[-1] == 100.0
        assert await storage.fetch(location) == b"%PDF-1.4"

        await storage.delete(location)
        with pytest.raises(BlobNotFoundError):
            await storage.fetch(location)

    @pytest.mark.asyncio
    async def test_delete_missing_is_quiet(self, storage):
        await storage.delete(storage.location_for("uploads/none.pdf"))

    @pytest.mark.asyncio
    async def test_public_location_is_served_path(self, storage):
        location = await storage.upload("audiobooks_generated/alice-sub/doc_audio.mp3", b"ID3", "audio/mpeg")

        assert await storage.public_location(location) == "/media/audiobooks_generated/alice-sub/doc_audio.mp3"

    def test_keys_cannot_escape_base_dir(self, storage):
        with pytest.raises(ValidationError):
            storage.path_for("../outside.txt")

    @pytest.mark.asyncio
    async def test_foreign_locations_are_not_found(self, storage, tmp_path):
        with pytest.raises(BlobNotFoundError):
            await storage.fetch("s3://bucket/key")
        with pytest.raises(BlobNotFoundError):
            await storage.fetch((tmp_path / "elsewhere.pdf").as_uri())


class TestS3BlobStorage:
    """Tests for S3BlobStorage."""

    @pytest.fixture
    def s3_client(self):
        with patch("audiobook_buddy.infrastructure.s3_blob_storage.boto3.client") as mock_client_factory:
            client = MagicMock()
            mock_client_factory.return_value = client
            yield client

    @pytest.fixture
    def storage(self, s3_client):
        return S3BlobStorage(bucket_name="audiobook-bucket")

    @pytest.mark.asyncio
    async def test_upload_reports_progress(self, storage, s3_client):
        progress = []

        def upload_fileobj(fileobj, bucket, key, ExtraArgs, Callback):
            data = fileobj.read()
            Callback(len(data) // 2)
            Callback(len(data) - len(data) // 2)

        s3_client.upload_fileobj.side_effect = upload_fileobj

        location = await storage.upload("uploads/alice-sub/1_book.pdf", b"0123456789", "application/pdf", progress.append)

        assert location == "s3://audiobook-bucket/uploads/alice-sub/1_book.pdf"
        assert progress == [50.0, 100.0]
        assert s3_client.upload_fileobj.call_args.kwargs["ExtraArgs"] == {"ContentType": "application/pdf"}

    @pytest.mark.asyncio
    async def test_upload_failure_is_transient(self, storage, s3_client):
        s3_client.upload_fileobj.side_effect = ClientError({"Error": {"Code": "AccessDenied"}}, "PutObject")

        with pytest.raises(TransientError):
            await storage.upload("uploads/k.pdf", b"x", "application/pdf")

    @pytest.mark.asyncio
    async def test_fetch(self, storage, s3_client):
        body = MagicMock()
        body.read.return_value = b"%PDF"
        s3_client.get_object.return_value = {"Body": body}

        data = await storage.fetch("s3://audiobook-bucket/uploads/alice-sub/1_book.pdf")

        assert data == b"%PDF"
        s3_client.get_object.assert_called_once_with(Bucket="audiobook-bucket", Key="uploads/alice-sub/1_book.pdf")

    @pytest.mark.asyncio
    async def test_fetch_missing(self, storage, s3_client):
        s3_client.get_object.side_effect = ClientError({"Error": {"Code": "NoSuchKey"}}, "GetObject")

        with pytest.raises(BlobNotFoundError):
            await storage.fetch("s3://audiobook-bucket/missing.pdf")

    @pytest.mark.asyncio
    async def test_delete_missing_is_quiet(self, storage, s3_client):
        s3_client.delete_object.side_effect = ClientError({"Error": {"Code": "NoSuchKey"}}, "DeleteObject")

        await storage.delete("s3://audiobook-bucket/missing.pdf")

    @pytest.mark.asyncio
    async def test_delete_failure_is_transient(self, storage, s3_client):
        s3_client.delete_object.side_effect = ClientError({"Error": {"Code": "AccessDenied"}}, "DeleteObject")

        with pytest.raises(TransientError):
            await storage.delete("s3://audiobook-bucket/k.pdf")

    @pytest.mark.asyncio
    async def test_public_location_is_presigned(self, storage, s3_client):
        s3_client.generate_presigned_url.return_value = "https://signed.example.com/audio.mp3"

        url = await storage.public_location("s3://audiobook-bucket/audiobooks_generated/a/doc_audio.mp3")

        assert url == "https://signed.example.com/audio.mp3"
        s3_client.generate_presigned_url.assert_called_once_with(
            "get_object",
            Params={"Bucket": "audiobook-bucket", "Key": "audiobooks_generated/a/doc_audio.mp3"},
            ExpiresIn=7 * 24 * 60 * 60,
        )
