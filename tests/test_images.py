"""
Travel Journal — Image Endpoint and Storage Tests
"""

import threading
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError
from fastapi import status

from travel_journal.core.storage import S3ImageStore, filename_from_url, generate_filename, get_image_store


# -----------------------------------------------------------------------------
# Upload Tests (POST /image-upload)
# -----------------------------------------------------------------------------


class TestImageUpload:
    @pytest.mark.asyncio
    async def test_upload_stores_file_and_returns_url(self, client, image_store):
        response = await client.post(
            "/image-upload",
            files={"image": ("beach.PNG", b"\x89PNG fake", "image/png")},
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["error"] is False
        assert data["imageUrl"].startswith("http://test/uploads/")
        assert data["imageUrl"].endswith(".png")

        stored = image_store.directory / filename_from_url(data["imageUrl"])
        assert stored.read_bytes() == b"\x89PNG fake"

    @pytest.mark.asyncio
    async def test_rejects_non_images(self, client, image_store):
        response = await client.post(
            "/image-upload",
            files={"image": ("notes.txt", b"hello", "text/plain")},
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["message"] == "Only images are allowed"
        assert list(image_store.directory.iterdir()) == []

    @pytest.mark.asyncio
    async def test_rejects_missing_file(self, client):
        response = await client.post("/image-upload", data={"something": "else"})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["message"] == "No images uploaded"


# -----------------------------------------------------------------------------
# Delete Tests (DELETE /delete-image)
# -----------------------------------------------------------------------------


class TestDeleteImage:
    @pytest.mark.asyncio
    async def test_delete_by_url(self, client, image_store):
        url = image_store.save("123.jpg", b"jpeg")

        response = await client.delete("/delete-image", params={"imageUrl": url})

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["message"] == "Image deleted successfully"
        assert not image_store.exists("123.jpg")

    @pytest.mark.asyncio
    async def test_delete_by_json_body(self, client, image_store):
        image_store.save("456.jpg", b"jpeg")

        response = await client.request("DELETE", "/delete-image", json={"imageUrl": "456.jpg"})

        assert response.status_code == status.HTTP_200_OK
        assert not image_store.exists("456.jpg")

    @pytest.mark.asyncio
    async def test_missing_image_url(self, client):
        response = await client.delete("/delete-image")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["message"] == "imageUrl parameter is required"

    @pytest.mark.asyncio
    async def test_unknown_image_is_404(self, client):
        response = await client.delete("/delete-image", params={"imageUrl": "http://test/uploads/nope.jpg"})

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["message"] == "Image not found"

    @pytest.mark.asyncio
    async def test_path_traversal_only_reaches_the_basename(self, client, image_store, tmp_path):
        outside = tmp_path / "secret.jpg"
        outside.write_bytes(b"keep me")

        response = await client.delete("/delete-image", params={"imageUrl": "../secret.jpg"})

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert outside.exists()


# -----------------------------------------------------------------------------
# Storage Helpers
# -----------------------------------------------------------------------------


class TestStorageHelpers:
    def test_filename_from_url(self) -> None:
        assert filename_from_url("http://localhost:8000/uploads/1700.png") == "1700.png"
        assert filename_from_url("1700.png") == "1700.png"
        assert filename_from_url("..\\..\\etc\\passwd") == "passwd"

    def test_generated_names_keep_extension_and_differ(self) -> None:
        first = generate_filename("Photo.JPG")
        second = generate_filename("Photo.JPG")
        assert first.endswith(".jpg")
        assert first != second


class TestS3ImageStore:
    def test_save_puts_object_and_returns_bucket_url(self) -> None:
        client = MagicMock()
        store = S3ImageStore(client, "journal-images", "eu-west-1")

        url = store.save("1.png", b"png", "image/png")

        client.put_object.assert_called_once_with(
            Bucket="journal-images", Key="1.png", Body=b"png", ContentType="image/png"
        )
        assert url == "https://journal-images.s3.eu-west-1.amazonaws.com/1.png"

    def test_delete_missing_object_returns_false(self) -> None:
        client = MagicMock()
        client.head_object.side_effect = ClientError({"Error": {"Code": "404"}}, "HeadObject")
        store = S3ImageStore(client, "journal-images", "eu-west-1")

        assert store.delete("gone.png") is False
        client.delete_object.assert_not_called()

    def test_delete_existing_object(self) -> None:
        client = MagicMock()
        store = S3ImageStore(client, "journal-images", "eu-west-1")

        assert store.delete("1.png") is True
        client.delete_object.assert_called_once_with(Bucket="journal-images", Key="1.png")


class TestUploadOffTheEventLoop:
    @pytest.mark.asyncio
    async def test_save_runs_in_a_worker_thread(self, app, client, image_store):
        calls = []

        class RecordingStore:
            def save(self, filename, content, content_type=None):
                calls.append(threading.get_ident())
                return image_store.save(filename, content, content_type)

        app.dependency_overrides[get_image_store] = lambda: RecordingStore()

        response = await client.post(
            "/image-upload",
            files={"image": ("beach.png", b"png", "image/png")},
        )

        assert response.status_code == status.HTTP_200_OK
        assert calls and calls[0] != threading.get_ident()
