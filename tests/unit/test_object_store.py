"""
Unit tests for the object store helpers.
Tests storage key construction, upload validation and the unconfigured-store failure.
"""
import io
import re
import pytest
from uuid import uuid4
from fastapi import UploadFile
from starlette.datastructures import Headers

from planner.core.exceptions import BadRequestError
from planner.services.photo_service import read_image_upload
from planner.storage.object_store import ObjectStore, StorageError, event_photo_key, profile_image_key


@pytest.mark.unit
class TestStorageKeys:
    """Keys follow events/{eventId}/{userId}-{timestamp}.{ext} and profile-images/{userId}-{timestamp}.{ext}"""

    def test_event_photo_key_format(self):
        event_id, user_id = uuid4(), uuid4()

        key = event_photo_key(event_id, user_id, "image/png")

        assert re.fullmatch(rf"events/{event_id}/{user_id}-\d{{13}}\.png", key)

    @pytest.mark.parametrize(
        "content_type,ext",
        [("image/jpeg", "jpg"), ("image/jpg", "jpg"), ("image/webp", "webp"), ("image/gif", "gif")],
    )
    def test_extension_from_content_type(self, content_type, ext):
        assert event_photo_key(uuid4(), uuid4(), content_type).endswith(f".{ext}")

    def test_unsupported_content_type(self):
        with pytest.raises(KeyError):
            event_photo_key(uuid4(), uuid4(), "text/plain")

    def test_profile_image_key(self):
        user_id = uuid4()

        key = profile_image_key(user_id, "image/webp")

        assert re.fullmatch(rf"profile-images/{user_id}-\d{{13}}\.webp", key)


@pytest.mark.unit
@pytest.mark.asyncio
class TestReadImageUpload:
    """Upload validation shared by event photos and profile images."""

    def _upload(self, data: bytes, content_type: str, size=None) -> UploadFile:
        return UploadFile(
            io.BytesIO(data),
            size=len(data) if size is None else size,
            filename="upload.png",
            headers=Headers({"content-type": content_type}),
        )

    async def test_returns_contents_and_type(self):
        data, content_type = await read_image_upload(
            self._upload(b"\x89PNG", "IMAGE/PNG"), {"image/png"}, 10, "bad type", "too big"
        )

        assert data == b"\x89PNG"
        assert content_type == "image/png"

    async def test_declared_size_checked_before_reading(self):
        upload = self._upload(b"x", "image/png", size=11)

        with pytest.raises(BadRequestError) as exc:
            await read_image_upload(upload, {"image/png"}, 10, "bad type", "too big")

        assert exc.value.message == "too big"
        assert exc.value.details == {"size": 11, "max_size": 10}
        assert upload.file.tell() == 0

    async def test_read_size_checked_without_declared_size(self):
        upload = UploadFile(io.BytesIO(b"x" * 11), headers=Headers({"content-type": "image/png"}))

        with pytest.raises(BadRequestError, match="too big"):
            await read_image_upload(upload, {"image/png"}, 10, "bad type", "too big")

    async def test_rejects_type(self):
        with pytest.raises(BadRequestError) as exc:
            await read_image_upload(self._upload(b"x", "text/plain"), {"image/png"}, 10, "bad type", "too big")

        assert exc.value.details == {"content_type": "text/plain"}


@pytest.mark.unit
@pytest.mark.asyncio
class TestObjectStore:
    async def test_upload_requires_configuration(self):
        store = ObjectStore(cloud_name="", api_key="", api_secret="")
        store.cloud_name = store.api_key = store.api_secret = None

        with pytest.raises(StorageError, match="not configured"):
            await store.upload(b"data", "events/x/y-1.jpg", "image/jpeg")

    async def test_public_url_base(self, monkeypatch):
        store = ObjectStore(
            cloud_name="demo",
            api_key="key",
            api_secret="secret",
            root_folder="uploads",
            public_url="https://img.example.com/",
        )
        calls = []

        def fake_upload(file, **options):
            calls.append(options)
            return {"secure_url": "https://res.cloudinary.com/demo/x.jpg"}

        monkeypatch.setattr("cloudinary.uploader.upload", fake_upload)

        url = await store.upload(b"data", "events/e/u-1.jpg", "image/jpeg")

        assert url == "https://img.example.com/events/e/u-1.jpg"
        assert calls[0]["public_id"] == "uploads/events/e/u-1"
        assert calls[0]["format"] == "jpg"
