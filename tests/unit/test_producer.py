"""
Unit tests for upload validation and job publishing.
"""

import json
import re

import pytest

from mediaq.core.models import MediaMetadata, MediaStatus
from mediaq.core.producer import FileValidator, MediaProducer
from mediaq.errors import MediaValidationError


def image_metadata(**overrides):
    values = dict(uploader_id=1, name="cat", mime_type="image/jpeg", size=2048, width=800, height=600)
    values.update(overrides)
    return MediaMetadata(**values)


@pytest.mark.asyncio
async def test_upload_stores_original_record_and_one_job(context, store, queue, object_store):
    record = await MediaProducer(context).upload(b"jpeg-bytes", "Cat.JPG", image_metadata())

    assert record.status == MediaStatus.PENDING
    assert re.fullmatch(
        r"media/originals/\d{4}/\d{1,2}/[0-9a-f-]{36}\.jpg", record.original_key
    )
    assert object_store.objects[record.original_key] == (b"jpeg-bytes", "image/jpeg")
    assert store.records[record.id] == record

    assert len(queue.sent) == 1
    body = json.loads(queue.sent[0])
    assert body["mediaId"] == record.id
    assert body["objectKey"] == record.original_key
    assert body["mimeType"] == "image/jpeg"
    assert body["retryCount"] == 0
    assert body["requestedThumbnailSizes"] == [
        {"width": 150, "height": 150},
        {"width": 300, "height": 300},
    ]
    assert body["correlationId"]


@pytest.mark.asyncio
async def test_each_upload_gets_its_own_correlation_id(context, queue):
    producer = MediaProducer(context)
    await producer.upload(b"a", "a.png", image_metadata(mime_type="image/png"))
    await producer.upload(b"b", "b.png", image_metadata(mime_type="image/png"))

    ids = {json.loads(body)["correlationId"] for body in queue.sent}
    assert len(ids) == 2


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "metadata, message",
    [
        (image_metadata(mime_type="application/pdf"), "Unsupported file type"),
        (image_metadata(size=11 * 1024 * 1024), "Image file size exceeds"),
        (image_metadata(width=4000), "Image dimensions exceed"),
        (image_metadata(height=2000), "Image dimensions exceed"),
        (
            image_metadata(mime_type="video/mp4", size=201 * 1024 * 1024, width=None, height=None),
            "Video file size exceeds",
        ),
    ],
)
async def test_rejected_upload_has_no_side_effects(context, store, queue, object_store, metadata, message):
    with pytest.raises(MediaValidationError, match=message):
        await MediaProducer(context).upload(b"data", "file.bin", metadata)

    assert object_store.put_calls == []
    assert store.records == {}
    assert queue.sent == []


@pytest.mark.asyncio
async def test_publish_failure_is_raised(context, queue):
    queue.send_error = ConnectionError("queue unreachable")

    with pytest.raises(ConnectionError):
        await MediaProducer(context).upload(b"x", "x.jpg", image_metadata())


def test_validator_accepts_large_video_dimensions(settings):
    metadata = image_metadata(mime_type="video/mp4", size=50 * 1024 * 1024, width=3840, height=2160)
    FileValidator(settings).validate(metadata)


def test_validator_accepts_image_at_limits(settings):
    metadata = image_metadata(size=10 * 1024 * 1024, width=1920, height=1080)
    FileValidator(settings).validate(metadata)


def test_validator_mime_type_is_case_insensitive(settings):
    FileValidator(settings).validate(image_metadata(mime_type="IMAGE/JPEG"))
