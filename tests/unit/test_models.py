from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from mediaq.core.keys import original_key, thumbnail_key
from mediaq.core.models import JobMessage, MediaStatus, ThumbnailSize


def test_job_message_wire_format_uses_camel_case():
    job = JobMessage(
        correlation_id="c-1",
        media_id=42,
        object_key="media/originals/2026/10/x.png",
        mime_type="image/png",
        requested_thumbnail_sizes=[ThumbnailSize(width=150, height=150)],
    )

    decoded = JobMessage.from_body(job.to_body())

    assert '"mediaId":42' in job.to_body()
    assert decoded == job


def test_job_message_accepts_camel_case_body():
    body = (
        '{"correlationId": "c-1", "mediaId": 7, "objectKey": "k.jpg", '
        '"mimeType": "image/jpeg", "requestedThumbnailSizes": [{"width": 10, "height": 20}], '
        '"retryCount": 2}'
    )

    job = JobMessage.from_body(body)

    assert job.media_id == 7
    assert job.requested_thumbnail_sizes == [ThumbnailSize(width=10, height=20)]
    assert job.retry_count == 2


def test_job_message_rejects_missing_fields():
    with pytest.raises(ValidationError):
        JobMessage.from_body('{"mediaId": 7}')


@pytest.mark.parametrize("width, height", [(0, 10), (10, -1)])
def test_thumbnail_size_must_be_positive(width, height):
    with pytest.raises(ValidationError):
        ThumbnailSize(width=width, height=height)


def test_terminal_statuses():
    assert MediaStatus.READY.is_terminal
    assert MediaStatus.FAILED.is_terminal
    assert not MediaStatus.PENDING.is_terminal
    assert not MediaStatus.PROCESSING.is_terminal


def test_thumbnail_key_layout():
    now = datetime(2026, 3, 9, tzinfo=timezone.utc)
    key = thumbnail_key(42, 150, 150, "media/originals/2026/3/abc.png", now)
    assert key == "media/thumbnails/2026/3/42-150x150.png"


def test_original_key_keeps_lowercased_extension():
    now = datetime(2026, 10, 1, tzinfo=timezone.utc)
    key = original_key("Holiday.JPEG", now)
    assert key.startswith("media/originals/2026/10/")
    assert key.endswith(".jpeg")


def test_original_key_without_extension():
    key = original_key("README")
    assert "." not in key.rsplit("/", 1)[-1]
