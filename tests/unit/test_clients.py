"""
Unit tests for the boto3-backed object store and queue, using botocore's Stubber.
"""

import io

import boto3
import pytest
from botocore.client import Config
from botocore.exceptions import ClientError
from botocore.response import StreamingBody
from botocore.stub import ANY, Stubber

from mediaq.errors import EmptyObjectError
from mediaq.queue.sqs import SQSQueue
from mediaq.storage.s3 import ObjectStore

QUEUE_URL = "http://localstack:4566/000000000000/media-tasks"


def _client(service, endpoint, config=None):
    return boto3.client(
        service,
        region_name="us-east-1",
        endpoint_url=endpoint,
        aws_access_key_id="test",
        aws_secret_access_key="test",
        config=config,
    )


@pytest.fixture
def s3(settings):
    client = _client(
        "s3",
        "http://minio:9000",
        Config(signature_version="s3v4", s3={"addressing_style": "path"}),
    )
    return ObjectStore(settings, client=client), Stubber(client)


@pytest.fixture
def sqs(settings):
    client = _client("sqs", "http://localstack:4566")
    return SQSQueue(settings, client=client), Stubber(client)


@pytest.mark.asyncio
async def test_put_returns_s3_uri(s3):
    store, stubber = s3
    stubber.add_response(
        "put_object",
        {},
        {"Bucket": "media", "Key": "a/b.png", "Body": ANY, "ContentType": "image/png"},
    )

    with stubber:
        assert await store.put("a/b.png", b"data", "image/png") == "s3://media/a/b.png"
    stubber.assert_no_pending_responses()


@pytest.mark.asyncio
async def test_get_reads_body(s3):
    store, stubber = s3
    stubber.add_response(
        "get_object",
        {"Body": StreamingBody(io.BytesIO(b"original"), len(b"original"))},
        {"Bucket": "media", "Key": "a.jpg"},
    )

    with stubber:
        assert await store.get("a.jpg") == b"original"


@pytest.mark.asyncio
async def test_get_empty_body_raises(s3):
    store, stubber = s3
    stubber.add_response(
        "get_object",
        {"Body": StreamingBody(io.BytesIO(b""), 0)},
        {"Bucket": "media", "Key": "empty.jpg"},
    )

    with stubber:
        with pytest.raises(EmptyObjectError):
            await store.get("empty.jpg")


@pytest.mark.asyncio
async def test_get_missing_object_raises_client_error(s3):
    store, stubber = s3
    stubber.add_client_error("get_object", service_error_code="NoSuchKey", http_status_code=404)

    with stubber:
        with pytest.raises(ClientError):
            await store.get("missing.jpg")


@pytest.mark.asyncio
async def test_ensure_bucket_creates_missing_bucket(s3):
    store, stubber = s3
    stubber.add_client_error("head_bucket", service_error_code="404", http_status_code=404)
    stubber.add_response("create_bucket", {}, {"Bucket": "media"})

    with stubber:
        await store.ensure_bucket()
    stubber.assert_no_pending_responses()


@pytest.mark.asyncio
async def test_presign_uses_path_style_and_ttl(s3):
    store, _ = s3
    url = await store.presign("media/thumbnails/2026/10/1-150x150.jpg", ttl=60)

    assert url.startswith("http://minio:9000/media/media/thumbnails/2026/10/1-150x150.jpg?")
    assert "X-Amz-Expires=60" in url


def test_source_url(s3):
    store, _ = s3
    assert store.source_url("media/originals/x.jpg") == "http://minio:9000/media/media/originals/x.jpg"


@pytest.mark.asyncio
async def test_send_resolves_queue_url_once(sqs):
    queue, stubber = sqs
    stubber.add_response("get_queue_url", {"QueueUrl": QUEUE_URL}, {"QueueName": "media-tasks"})
    stubber.add_response(
        "send_message", {"MessageId": "m-1"}, {"QueueUrl": QUEUE_URL, "MessageBody": "{}"}
    )
    stubber.add_response("delete_message", {}, {"QueueUrl": QUEUE_URL, "ReceiptHandle": "rh-1"})

    with stubber:
        assert await queue.send("{}") == "m-1"
        await queue.delete("rh-1")
    stubber.assert_no_pending_responses()


@pytest.mark.asyncio
async def test_receive_maps_messages(sqs):
    queue, stubber = sqs
    stubber.add_response("get_queue_url", {"QueueUrl": QUEUE_URL}, {"QueueName": "media-tasks"})
    stubber.add_response(
        "receive_message",
        {
            "Messages": [
                {"MessageId": "m-1", "ReceiptHandle": "rh-1", "Body": '{"mediaId": 1}'},
                {"MessageId": "m-2"},
            ]
        },
        {
            "QueueUrl": QUEUE_URL,
            "MaxNumberOfMessages": 1,
            "WaitTimeSeconds": 10,
            "VisibilityTimeout": 300,
        },
    )

    with stubber:
        messages = await queue.receive(max_messages=1, wait_time_seconds=10, visibility_timeout=300)

    assert [m.message_id for m in messages] == ["m-1", "m-2"]
    assert messages[0].body == '{"mediaId": 1}'
    assert messages[1].body is None
    assert messages[1].receipt_handle is None


@pytest.mark.asyncio
async def test_receive_empty_queue(sqs):
    queue, stubber = sqs
    stubber.add_response("get_queue_url", {"QueueUrl": QUEUE_URL}, {"QueueName": "media-tasks"})
    stubber.add_response("receive_message", {}, None)

    with stubber:
        assert await queue.receive(1, 0, 30) == []
