import pytest
from botocore.exceptions import ClientError

from sfa.core.exceptions import CompensationError, UploadError
from sfa.infrastructure.storage import S3BlobStorage


class DummyS3Client:
    def __init__(self, fail=False):
        self.fail = fail
        self.put_calls = []
        self.delete_calls = []

    def _maybe_fail(self, operation):
        if self.fail:
            raise ClientError({"Error": {"Code": "500", "Message": "boom"}}, operation)

    def put_object(self, **kwargs):
        self._maybe_fail("PutObject")
        self.put_calls.append(kwargs)
        return {"ETag": '"abc"'}

    def delete_object(self, **kwargs):
        self._maybe_fail("DeleteObject")
        self.delete_calls.append(kwargs)
        return {}


def _storage(client, public_base_url=""):
    return S3BlobStorage(
        bucket="sfa-media",
        endpoint_url="https://s3.eu-central-003.backblazeb2.com",
        public_base_url=public_base_url,
        client=client,
    )


def test_upload_puts_object_and_returns_path_style_url():
    client = DummyS3Client()
    url = _storage(client).upload(b"data", "visits/self/12-1700000000000-a b.jpg", "image/jpeg")

    assert url == "https://s3.eu-central-003.backblazeb2.com/sfa-media/visits/self/12-1700000000000-a%20b.jpg"
    assert client.put_calls == [
        {
            "Bucket": "sfa-media",
            "Key": "visits/self/12-1700000000000-a b.jpg",
            "Body": b"data",
            "ContentType": "image/jpeg",
        }
    ]


def test_upload_uses_public_base_url():
    storage = _storage(DummyS3Client(), public_base_url="https://cdn.example.com/media/")
    assert storage.upload(b"x", "visits/cooler/k.png", "image/png") == "https://cdn.example.com/media/visits/cooler/k.png"


def test_upload_failure_raises_upload_error():
    with pytest.raises(UploadError) as exc_info:
        _storage(DummyS3Client(fail=True)).upload(b"x", "visits/self/k.jpg", "image/jpeg")
    assert exc_info.value.message.startswith("Image upload failed")
    assert exc_info.value.status_code == 502


@pytest.mark.parametrize(
    "url",
    [
        "https://s3.eu-central-003.backblazeb2.com/sfa-media/visits/self/k%201.jpg",
        "https://f003.backblazeb2.com/file/sfa-media/visits/self/k%201.jpg",
        "https://cdn.example.com/media/visits/self/k%201.jpg",
    ],
)
def test_delete_derives_key_from_url(url):
    client = DummyS3Client()
    _storage(client, public_base_url="https://cdn.example.com/media").delete(url)
    assert client.delete_calls == [{"Bucket": "sfa-media", "Key": "visits/self/k 1.jpg"}]


def test_delete_failure_raises_compensation_error():
    with pytest.raises(CompensationError):
        _storage(DummyS3Client(fail=True)).delete("https://s3.example.com/sfa-media/visits/self/k.jpg")
