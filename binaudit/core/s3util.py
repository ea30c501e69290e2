"""Upload rendered reports to S3 (optional)."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional, Tuple

try:
    import boto3  # type: ignore
    from botocore.exceptions import BotoCoreError, ClientError  # type: ignore
except ImportError:  # pragma: no cover - optional dependency
    boto3 = None
    BotoCoreError = ClientError = None

from binaudit.core.errors import Error, ErrorKind

_LOG = logging.getLogger(__name__)


def parse_s3_url(url: str) -> Tuple[str, str]:
    """Split ``s3://bucket/key`` into bucket and key."""

    if not url.startswith("s3://"):
        raise Error(ErrorKind.BAD_PARAM, f"expected an s3:// URL, got {url!r}")
    bucket, _, key = url[len("s3://"):].partition("/")
    if not bucket or not key:
        raise Error(ErrorKind.BAD_PARAM, f"S3 URL needs both bucket and key: {url!r}")
    return bucket, key


def upload_json(bucket: str, key: str, payload: Dict[str, Any], client: Optional[Any] = None) -> bool:
    serialized = json.dumps(payload, indent=2, sort_keys=True).encode("utf-8")
    return upload_bytes(bucket, key, serialized, client)


def upload_bytes(bucket: str, key: str, data: bytes, client: Optional[Any] = None) -> bool:
    try:
        client = client or _client()
        if not client:
            _LOG.warning("boto3 not available; skipping upload for s3://%s/%s", bucket, key)
            return False
        client.put_object(Bucket=bucket, Key=key, Body=data, ContentType="application/json")
    except _upload_errors() as exc:
        raise Error(ErrorKind.IO, f"upload to s3://{bucket}/{key} failed: {exc}") from exc
    _LOG.info("uploaded report to s3://%s/%s", bucket, key)
    return True


def _upload_errors() -> Tuple[type, ...]:
    if BotoCoreError is None:
        return (OSError,)
    return (BotoCoreError, ClientError, OSError)


def _client() -> Any:
    if boto3 is None:
        return None
    return boto3.client("s3")
