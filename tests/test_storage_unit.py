# tests/test_storage_unit.py
import datetime

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

import portal.services.storage as storage_mod
from portal.core.config import settings
from portal.core.errors import ConfigurationError, RemoteCallError


class DummyS3Client:
    def __init__(self, buckets=("unit-test-bucket",), fail_with=None):
        self.objects = {}
        self.buckets = list(buckets)
        self.fail_with = fail_with

    def list_buckets(self):
        return {"Buckets": [{"Name": name} for name in self.buckets]}

    def put_object(self, Bucket, Key, Body, ContentType=None, ContentLength=None):
        if self.fail_with is not None:
            raise self.fail_with
        self.objects[(Bucket, Key)] = {"Body": Body, "ContentType": ContentType, "ContentLength": ContentLength}
        return {"ETag": '"dummy-etag"'}


def _client_error(code, message="boom"):
    return ClientError({"Error": {"Code": code, "Message": message}}, "PutObject")


@pytest.fixture
def aws_settings(monkeypatch):
    monkeypatch.setattr(settings, "AWS_REGION", "us-east-1")
    monkeypatch.setattr(settings, "AWS_ACCESS_KEY_ID", "AKIAUNITTEST1234")
    monkeypatch.setattr(settings, "AWS_SECRET_ACCESS_KEY", "secret")
    monkeypatch.setattr(settings, "AWS_S3_BUCKET", "unit-test-bucket")


def _patch_client(monkeypatch, dummy):
    calls = []

    def fake_boto3_client(*args, **kwargs):
        calls.append((args, kwargs))
        return dummy

    monkeypatch.setattr("portal.services.storage.boto3.client", fake_boto3_client)
    return calls


def test_resume_key_layout():
    key = storage_mod.build_resume_key("JB#2", "resume.pdf", datetime.date(2026, 1, 17))
    assert key == "clients/resumes/JB2-20260117/resume.pdf"


def test_resume_key_uses_last_extension():
    key = storage_mod.build_resume_key("AW-1001", "my.cv.final.PDF", datetime.date(2025, 12, 1))
    assert key == "clients/resumes/AW-1001-20251201/resume.PDF"


def test_upload_records_object(monkeypatch, aws_settings):
    dummy = DummyS3Client()
    calls = _patch_client(monkeypatch, dummy)

    key = storage_mod.upload_resume(b"%PDF-1.4", "resume.pdf", "JB 7", "application/pdf",
                                    today=datetime.date(2026, 1, 17))

    assert key == "clients/resumes/JB7-20260117/resume.pdf"
    stored = dummy.objects[("unit-test-bucket", key)]
    assert stored["Body"] == b"%PDF-1.4"
    assert stored["ContentType"] == "application/pdf"
    assert stored["ContentLength"] == 8
    assert calls[0][1]["region_name"] == "us-east-1"


def test_upload_requires_file_and_id(monkeypatch, aws_settings):
    calls = _patch_client(monkeypatch, DummyS3Client())
    with pytest.raises(ValueError):
        storage_mod.upload_resume(b"data", "resume.pdf", "")
    with pytest.raises(ValueError):
        storage_mod.upload_resume(b"", "resume.pdf", "JB1")
    assert calls == []


def test_missing_config_never_touches_boto(monkeypatch, aws_settings):
    monkeypatch.setattr(settings, "AWS_SECRET_ACCESS_KEY", None)
    monkeypatch.setattr(settings, "AWS_S3_BUCKET", "")
    calls = _patch_client(monkeypatch, DummyS3Client())

    with pytest.raises(ConfigurationError) as info:
        storage_mod.upload_resume(b"data", "resume.pdf", "JB1")

    assert "AWS_SECRET_ACCESS_KEY" in info.value.message
    assert "AWS_S3_BUCKET" in info.value.message
    assert calls == []


@pytest.mark.parametrize("exc, expected", [
    (_client_error("InvalidAccessKeyId"), "Invalid AWS Access Key ID"),
    (_client_error("SignatureDoesNotMatch"), "Invalid AWS Secret Access Key"),
    (_client_error("NoSuchBucket"), 'S3 bucket "unit-test-bucket" does not exist'),
    (_client_error("AccessDenied"), "Access Denied"),
    (EndpointConnectionError(endpoint_url="https://s3.amazonaws.com"), "Network error"),
])
def test_upload_errors_are_described(monkeypatch, aws_settings, exc, expected):
    _patch_client(monkeypatch, DummyS3Client(fail_with=exc))
    with pytest.raises(RemoteCallError) as info:
        storage_mod.upload_resume(b"data", "resume.pdf", "JB1")
    assert expected in info.value.message


@pytest.mark.asyncio
async def test_async_upload_runs_in_pool(monkeypatch, aws_settings):
    dummy = DummyS3Client()
    _patch_client(monkeypatch, dummy)
    key = await storage_mod.async_upload_resume(b"data", "resume.pdf", "JB1", "application/pdf")
    assert key.startswith("clients/resumes/JB1-")
    assert ("unit-test-bucket", key) in dummy.objects


def test_check_storage_config_ok(monkeypatch, aws_settings):
    dummy = DummyS3Client(buckets=["other", "unit-test-bucket"])
    _patch_client(monkeypatch, dummy)
    result = storage_mod.check_storage_config()
    assert result["success"] is True
    assert ("unit-test-bucket", storage_mod.PROBE_KEY) in dummy.objects


def test_check_storage_config_unknown_bucket(monkeypatch, aws_settings):
    _patch_client(monkeypatch, DummyS3Client(buckets=["other"]))
    result = storage_mod.check_storage_config()
    assert result == {
        "success": False,
        "error": 'Bucket "unit-test-bucket" does not exist. Available buckets: other',
    }


def test_check_storage_config_missing_credentials(monkeypatch, aws_settings):
    monkeypatch.setattr(settings, "AWS_ACCESS_KEY_ID", None)
    calls = _patch_client(monkeypatch, DummyS3Client())
    assert storage_mod.check_storage_config() == {"success": False, "error": "Missing AWS credentials in .env file"}
    assert calls == []
