"""JSONL snapshots of a run's records, written locally or to S3."""

import json
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional, Sequence

import boto3

from common.serialization import serialize_dataclass

logger = logging.getLogger(__name__)


def snapshot_filename(prefix: str, timestamp: datetime) -> str:
    return f"{prefix}_{timestamp.strftime('%Y_%m_%d_%H_%M')}.jsonl"


def partitioned_key(prefix: str, timestamp: datetime) -> str:
    """S3 key partitioned by day, e.g. `forecasts/year=2024/month=06/day=19/...`."""
    return (
        f"{prefix}/"
        f"year={timestamp.year:04d}/"
        f"month={timestamp.month:02d}/"
        f"day={timestamp.day:02d}/"
        f"{snapshot_filename(prefix, timestamp)}"
    )


def to_jsonl(records: Sequence[Any]) -> str:
    """Serialize dataclass records to JSONL, one record per line."""
    return "".join(
        json.dumps(serialize_dataclass(record), default=str, ensure_ascii=False) + "\n"
        for record in records
    )


def save_snapshot_local(
    records: Sequence[Any],
    prefix: str,
    output_dir: str = "output",
    now: Optional[datetime] = None,
) -> Path:
    """
    Write records to `<output_dir>/<prefix>_<timestamp>.jsonl`.

    Returns:
        Path to the created file.
    """
    now = now or datetime.now(timezone.utc)
    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)

    filepath = output_path / snapshot_filename(prefix, now)
    filepath.write_text(to_jsonl(records), encoding="utf-8")

    logger.info("Saved %d records to %s", len(records), filepath)
    return filepath


def upload_snapshot_to_s3(
    records: Sequence[Any],
    prefix: str,
    bucket: Optional[str] = None,
    now: Optional[datetime] = None,
    client: Any = None,
) -> str:
    """
    Upload records as JSONL under a day-partitioned key.

    The bucket defaults to the S3_BUCKET_NAME environment variable.

    Returns:
        The S3 key written.
    """
    bucket = bucket or os.environ.get("S3_BUCKET_NAME")
    if not bucket:
        raise ValueError("S3_BUCKET_NAME environment variable is required")

    now = now or datetime.now(timezone.utc)
    key = partitioned_key(prefix, now)

    s3 = client or boto3.client("s3")
    s3.put_object(
        Bucket=bucket,
        Key=key,
        Body=to_jsonl(records).encode("utf-8"),
        ContentType="application/jsonl",
    )

    logger.info("Uploaded %d records to s3://%s/%s", len(records), bucket, key)
    return key


def write_snapshots(
    records: Sequence[Any],
    prefix: str,
    load_s3: bool = False,
    load_local: bool = False,
) -> None:
    """
    Write the selected snapshots of a finished run.

    Snapshots are a side output: a failed target is logged and the other
    target is still written.
    """
    if not records:
        return

    if load_s3:
        try:
            upload_snapshot_to_s3(records, prefix)
        except Exception as e:
            logger.error("Failed to upload %s snapshot to S3: %s", prefix, e)

    if load_local:
        try:
            save_snapshot_local(records, prefix)
        except Exception as e:
            logger.error("Failed to save %s snapshot locally: %s", prefix, e)
