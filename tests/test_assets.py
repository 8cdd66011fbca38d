import logging

import pytest

from devevents.core.errors import (
    DeleteFailedError,
    PayloadTooLargeError,
    StoreError,
    UnsupportedMediaTypeError,
    UploadFailedError,
    VersionConflictError,
)
from devevents.services.assets import MAX_IMAGE_SIZE, AssetReplacementCoordinator, ImageUpload
from devevents.utils.s3 import StoredAsset

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


class RecordingCommit:
    def __init__(self, error=None):
        self.calls = []
        self.error = error

    async def __call__(self, asset_fields):
        self.calls.append(asset_fields)
        if self.error is not None:
            raise self.error
        return {"committed": asset_fields}


@pytest.fixture
def coordinator(media_store):
    media_store.seed("DevEvent/old")
    return AssetReplacementCoordinator(media_store, upload_timeout=1)


def png():
    return ImageUpload(data=PNG_BYTES, content_type="image/png", filename="cover.png")


@pytest.mark.asyncio
async def test_no_image_commits_without_asset_side_effects(coordinator, media_store):
    commit = RecordingCommit()

    result = await coordinator.replace(None, "DevEvent/old", commit)

    assert result == {"committed": {}}
    assert commit.calls == [{}]
    assert media_store.uploads == []
    assert media_store.delete_calls == []


@pytest.mark.asyncio
async def test_new_image_replaces_old_one(coordinator, media_store):
    commit = RecordingCommit()

    await coordinator.replace(png(), "DevEvent/old", commit)

    new_id = media_store.uploads[0]
    assert commit.calls == [{"image": f"https://media.test/{new_id}", "image_public_id": new_id}]
    assert media_store.delete_calls == ["DevEvent/old"]
    assert new_id in media_store.assets
    assert "DevEvent/old" not in media_store.assets


@pytest.mark.asyncio
async def test_commit_failure_rolls_back_upload(coordinator, media_store):
    commit = RecordingCommit(error=VersionConflictError("event-1", 1))

    with pytest.raises(VersionConflictError):
        await coordinator.replace(png(), "DevEvent/old", commit)

    new_id = media_store.uploads[0]
    assert media_store.delete_calls == [new_id]
    assert new_id not in media_store.assets
    assert "DevEvent/old" in media_store.assets


@pytest.mark.asyncio
async def test_rollback_failure_does_not_mask_commit_error(coordinator, media_store, caplog):
    media_store.delete_error = DeleteFailedError("x", "boom")
    commit = RecordingCommit(error=StoreError("write failed"))

    with caplog.at_level(logging.WARNING):
        with pytest.raises(StoreError) as exc_info:
            await coordinator.replace(png(), "DevEvent/old", commit)

    assert exc_info.value.detail == "write failed"
    assert "Failed to delete image" in caplog.text


@pytest.mark.asyncio
async def test_ambiguous_commit_keeps_uploaded_image(coordinator, media_store):
    commit = RecordingCommit(error=StoreError("timed out", outcome_unknown=True))

    with pytest.raises(StoreError):
        await coordinator.replace(png(), "DevEvent/old", commit)

    assert media_store.delete_calls == []
    assert media_store.uploads[0] in media_store.assets


@pytest.mark.asyncio
async def test_old_image_delete_failure_is_only_logged(coordinator, media_store, caplog):
    media_store.delete_error = DeleteFailedError("DevEvent/old", "boom")
    commit = RecordingCommit()

    with caplog.at_level(logging.WARNING):
        result = await coordinator.replace(png(), "DevEvent/old", commit)

    assert result["committed"]["image_public_id"] == media_store.uploads[0]
    assert media_store.delete_calls == ["DevEvent/old"]
    assert "superseded" in caplog.text


@pytest.mark.asyncio
async def test_same_asset_id_is_not_deleted():
    class SameIdStore:
        def __init__(self):
            self.deleted = []

        async def upload(self, data, content_type):
            return StoredAsset(url="https://media.test/DevEvent/fixed", asset_id="DevEvent/fixed")

        async def delete(self, asset_id):
            self.deleted.append(asset_id)

    store = SameIdStore()
    coordinator = AssetReplacementCoordinator(store)

    await coordinator.replace(png(), "DevEvent/fixed", RecordingCommit())

    assert store.deleted == []


@pytest.mark.asyncio
async def test_unsupported_type_rejected_before_upload(coordinator, media_store):
    commit = RecordingCommit()
    gif = ImageUpload(data=b"GIF89a", content_type="image/gif")

    with pytest.raises(UnsupportedMediaTypeError):
        await coordinator.replace(gif, "DevEvent/old", commit)

    assert media_store.uploads == []
    assert commit.calls == []


@pytest.mark.asyncio
async def test_oversized_image_rejected_before_upload(coordinator, media_store):
    commit = RecordingCommit()
    huge = ImageUpload(data=b"\x00" * (MAX_IMAGE_SIZE + 1), content_type="image/jpeg")

    with pytest.raises(PayloadTooLargeError):
        await coordinator.replace(huge, "DevEvent/old", commit)

    assert media_store.uploads == []
    assert commit.calls == []


@pytest.mark.asyncio
async def test_upload_failure_skips_commit(coordinator, media_store):
    media_store.upload_error = UploadFailedError("AccessDenied")
    commit = RecordingCommit()

    with pytest.raises(UploadFailedError) as exc_info:
        await coordinator.replace(png(), "DevEvent/old", commit)

    assert exc_info.value.detail == "AccessDenied"
    assert commit.calls == []
    assert media_store.delete_calls == []


@pytest.mark.asyncio
async def test_unexpected_upload_error_becomes_upload_failed(coordinator, media_store):
    media_store.upload_error = ConnectionError("connection reset")

    with pytest.raises(UploadFailedError) as exc_info:
        await coordinator.replace(png(), "DevEvent/old", RecordingCommit())

    assert "connection reset" in exc_info.value.detail


@pytest.mark.asyncio
async def test_upload_timeout_becomes_upload_failed(media_store):
    media_store.upload_delay = 0.5
    coordinator = AssetReplacementCoordinator(media_store, upload_timeout=0.01)
    commit = RecordingCommit()

    with pytest.raises(UploadFailedError):
        await coordinator.replace(png(), None, commit)

    assert commit.calls == []
