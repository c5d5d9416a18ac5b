# portal/services/storage.py
import asyncio
import concurrent.futures
import datetime
import logging
import re
from typing import Any, Dict, List, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError, EndpointConnectionError

from portal.core.config import settings
from portal.core.errors import ConfigurationError, RemoteCallError
from portal.core.logging_config import mask_key

logger = logging.getLogger(__name__)

RESUME_PREFIX = "clients/resumes"
PROBE_KEY = "test/test-upload.txt"

_JB_ID_UNSAFE = re.compile(r"[^a-zA-Z0-9_-]")

# blocking boto3 calls run here when called from async code
_thread_pool = concurrent.futures.ThreadPoolExecutor(max_workers=3)


def _missing_config() -> List[str]:
    required = {
        "AWS_REGION": settings.AWS_REGION,
        "AWS_ACCESS_KEY_ID": settings.AWS_ACCESS_KEY_ID,
        "AWS_SECRET_ACCESS_KEY": settings.AWS_SECRET_ACCESS_KEY,
        "AWS_S3_BUCKET": settings.AWS_S3_BUCKET,
    }
    return [name for name, value in required.items() if not value]


def _get_s3_client():
    """
    Return a boto3 S3 client for the configured region and credentials.
    Raises ConfigurationError naming every missing variable; nothing is sent
    over the network in that case.
    """
    missing = _missing_config()
    if missing:
        raise ConfigurationError(
            f"AWS Configuration missing: {', '.join(missing)}. "
            "Please check your .env file and restart the server."
        )
    return boto3.client(
        "s3",
        region_name=settings.AWS_REGION,
        aws_access_key_id=settings.AWS_ACCESS_KEY_ID,
        aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
    )


def sanitize_jb_id(jb_id: str) -> str:
    return _JB_ID_UNSAFE.sub("", jb_id)


def file_extension(filename: str) -> str:
    """Text after the last dot; the whole name when there is no dot."""
    return filename.rsplit(".", 1)[-1]


def build_resume_key(jb_id: str, filename: str, today: Optional[datetime.date] = None) -> str:
    """
    clients/resumes/{sanitized jb id}-{YYYYMMDD}/resume.{ext}

    >>> build_resume_key("JB#2", "resume.pdf", datetime.date(2026, 1, 17))
    'clients/resumes/JB2-20260117/resume.pdf'
    """
    today = today or datetime.date.today()
    folder = f"{RESUME_PREFIX}/{sanitize_jb_id(jb_id)}-{today.strftime('%Y%m%d')}"
    return f"{folder}/resume.{file_extension(filename)}"


def _error_code(exc: Exception) -> str:
    if isinstance(exc, ClientError):
        return exc.response.get("Error", {}).get("Code", "") or ""
    return type(exc).__name__


def describe_upload_error(exc: Exception, bucket: Optional[str] = None) -> str:
    """Turn a boto3/botocore failure into a message a person can act on."""
    code = _error_code(exc)
    message = str(exc)
    bucket = bucket or settings.AWS_S3_BUCKET

    if code == "InvalidAccessKeyId":
        return "Invalid AWS Access Key ID. Please check your credentials."
    if code == "SignatureDoesNotMatch":
        return "Invalid AWS Secret Access Key. Please check your credentials."
    if code == "NoSuchBucket":
        return f'S3 bucket "{bucket}" does not exist. Please create it first.'
    if code == "AccessDenied" or "Access Denied" in message:
        return "Access Denied. Please check your IAM permissions (need s3:PutObject)."
    if "CORS" in message:
        return "CORS error. Please configure CORS on your S3 bucket."
    if (
        isinstance(exc, EndpointConnectionError)
        or "Failed to fetch" in message
        or "NetworkingError" in message
    ):
        return "Network error. Check your AWS credentials and bucket configuration."
    return message


def upload_resume(data: bytes, filename: str, jb_id: str, content_type: Optional[str] = None,
                  today: Optional[datetime.date] = None) -> str:
    """
    Blocking upload of a resume. Returns the object key the onboarding API expects.
    """
    if not data or not filename or not jb_id:
        raise ValueError("File and JB ID are required")

    s3 = _get_s3_client()
    bucket = settings.AWS_S3_BUCKET
    key = build_resume_key(jb_id, filename, today)

    logger.info(
        "Uploading resume bucket=%s key=%s size=%s type=%s access_key=%s",
        bucket, key, len(data), content_type, mask_key(settings.AWS_ACCESS_KEY_ID),
    )
    try:
        s3.put_object(
            Bucket=bucket,
            Key=key,
            Body=data,
            ContentType=content_type or "application/octet-stream",
            ContentLength=len(data),
        )
    except (ClientError, BotoCoreError) as exc:
        logger.error("S3 upload failed code=%s: %s", _error_code(exc), exc)
        raise RemoteCallError(describe_upload_error(exc, bucket)) from exc

    logger.info("Resume uploaded to %s", key)
    return key


async def async_upload_resume(data: bytes, filename: str, jb_id: str,
                              content_type: Optional[str] = None) -> str:
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(
        _thread_pool, lambda: upload_resume(data, filename, jb_id, content_type)
    )


def check_storage_config() -> Dict[str, Any]:
    """
    Verify credentials by listing buckets, confirm the configured bucket is
    among them, then upload a small probe object.
    """
    missing = _missing_config()
    if missing:
        logger.error("AWS credentials are missing: %s", ", ".join(missing))
        return {"success": False, "error": "Missing AWS credentials in .env file"}

    s3 = _get_s3_client()
    bucket = settings.AWS_S3_BUCKET
    try:
        names = [b["Name"] for b in s3.list_buckets().get("Buckets", [])]
        logger.info("Credentials are valid, available buckets: %s", names)
        if bucket not in names:
            return {
                "success": False,
                "error": f'Bucket "{bucket}" does not exist. Available buckets: {", ".join(names)}',
            }

        s3.put_object(Bucket=bucket, Key=PROBE_KEY, Body=b"This is a test file", ContentType="text/plain")
        logger.info("Test file uploaded to %s", PROBE_KEY)
    except (ClientError, BotoCoreError) as exc:
        logger.exception("AWS storage check failed")
        return {"success": False, "error": describe_upload_error(exc, bucket)}

    return {"success": True, "message": "All tests passed! AWS S3 is configured correctly."}
