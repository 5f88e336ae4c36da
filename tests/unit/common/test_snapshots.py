"""Tests for common.snapshots module."""

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from common.snapshots import (
    partitioned_key,
    save_snapshot_local,
    to_jsonl,
    upload_snapshot_to_s3,
    write_snapshots,
)

NOW = datetime(2024, 3, 5, 7, 9, tzinfo=timezone.utc)


@dataclass
class Record:
    id: str
    created_at: datetime


class TestToJsonl:
    def test_one_line_per_record(self) -> None:
        body = to_jsonl([Record("a", NOW), Record("b", NOW)])
        lines = body.strip().split("\n")
        assert [json.loads(line)["id"] for line in lines] == ["a", "b"]
        assert json.loads(lines[0])["created_at"] == "2024-03-05T07:09:00+00:00"

    def test_empty(self) -> None:
        assert to_jsonl([]) == ""


class TestPartitionedKey:
    def test_key_layout(self) -> None:
        assert partitioned_key("processed_trends", NOW) == (
            "processed_trends/year=2024/month=03/day=05/processed_trends_2024_03_05_07_09.jsonl"
        )


class TestSaveSnapshotLocal:
    def test_writes_file(self, tmp_path: Path) -> None:
        path = save_snapshot_local([Record("a", NOW)], "forecasts", output_dir=str(tmp_path / "out"), now=NOW)

        assert path == tmp_path / "out" / "forecasts_2024_03_05_07_09.jsonl"
        assert json.loads(path.read_text())["id"] == "a"


class TestUploadSnapshotToS3:
    def test_uploads_with_given_client(self) -> None:
        client = MagicMock()

        key = upload_snapshot_to_s3([Record("a", NOW)], "processed_trends", bucket="b", now=NOW, client=client)

        kwargs = client.put_object.call_args.kwargs
        assert kwargs["Bucket"] == "b"
        assert kwargs["Key"] == key
        assert kwargs["ContentType"] == "application/jsonl"
        assert json.loads(kwargs["Body"].decode("utf-8"))["id"] == "a"

    @patch("common.snapshots.boto3")
    def test_bucket_from_env(self, mock_boto3, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("S3_BUCKET_NAME", "trend-bucket")
        mock_s3 = MagicMock()
        mock_boto3.client.return_value = mock_s3

        upload_snapshot_to_s3([], "forecasts", now=NOW)

        mock_boto3.client.assert_called_once_with("s3")
        assert mock_s3.put_object.call_args.kwargs["Bucket"] == "trend-bucket"

    def test_missing_bucket(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("S3_BUCKET_NAME", raising=False)
        with pytest.raises(ValueError, match="S3_BUCKET_NAME"):
            upload_snapshot_to_s3([], "forecasts")


class TestWriteSnapshots:
    def test_missing_bucket_still_saves_local(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("S3_BUCKET_NAME", raising=False)
        monkeypatch.chdir(tmp_path)

        write_snapshots([Record("a", NOW)], "processed_trends", load_s3=True, load_local=True)

        files = list((tmp_path / "output").glob("processed_trends_*.jsonl"))
        assert len(files) == 1

    @patch("common.snapshots.save_snapshot_local", side_effect=OSError("disk full"))
    @patch("common.snapshots.upload_snapshot_to_s3")
    def test_local_failure_is_logged(self, mock_upload, mock_save) -> None:
        write_snapshots([Record("a", NOW)], "forecasts", load_s3=True, load_local=True)

        mock_upload.assert_called_once()
        mock_save.assert_called_once()

    @patch("common.snapshots.save_snapshot_local")
    @patch("common.snapshots.upload_snapshot_to_s3")
    def test_no_records_writes_nothing(self, mock_upload, mock_save) -> None:
        write_snapshots([], "forecasts", load_s3=True, load_local=True)

        mock_upload.assert_not_called()
        mock_save.assert_not_called()
