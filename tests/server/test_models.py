"""Tests for shared record models."""

from __future__ import annotations

from datetime import UTC, datetime

from sftpbridge.core.types import EntryType, LogLevel, TransferDirection
from sftpbridge.server.models import FileEntry, Listing, LogEntry, TransferJob, timestamp_to_iso


def make_job(total: int) -> TransferJob:
    return TransferJob(
        direction=TransferDirection.UPLOAD,
        file_name="a.txt",
        source_path="/local/a.txt",
        destination_path="/tmp/a.txt",
        total_bytes=total,
    )


class TestFileEntry:
    """Tests for FileEntry and Listing serialization."""

    def test_to_dict(self) -> None:
        """Should convert to JSON-serializable dict."""
        entry = FileEntry(
            name="a.txt",
            type=EntryType.FILE,
            size=5,
            modified_at="2024-01-01T00:00:00+00:00",
            permissions=0o100644,
            path="/tmp/a.txt",
        )
        d = entry.to_dict()
        assert d == {
            "name": "a.txt",
            "type": "file",
            "size": 5,
            "modified": "2024-01-01T00:00:00+00:00",
            "permissions": 0o100644,
            "path": "/tmp/a.txt",
        }

    def test_listing_to_dict(self) -> None:
        """Listing should expose path, files and parent."""
        listing = Listing(path="/tmp", entries=[], parent="/")
        assert listing.to_dict() == {"path": "/tmp", "files": [], "parent": "/"}

    def test_timestamp_to_iso(self) -> None:
        """Should produce UTC ISO timestamps."""
        assert timestamp_to_iso(0) == "1970-01-01T00:00:00+00:00"
        assert timestamp_to_iso(None) == "1970-01-01T00:00:00+00:00"


class TestLogEntry:
    """Tests for LogEntry."""

    def test_defaults(self) -> None:
        """Should default to info level and current time."""
        entry = LogEntry(message="hello")
        assert entry.level == LogLevel.INFO
        assert entry.timestamp <= datetime.now(UTC)

    def test_to_dict(self) -> None:
        """Should serialize level by value."""
        now = datetime.now(UTC)
        entry = LogEntry(message="boom", level=LogLevel.ERROR, timestamp=now)
        assert entry.to_dict() == {
            "timestamp": now.isoformat(),
            "message": "boom",
            "level": "error",
        }


class TestTransferJob:
    """Tests for TransferJob progress accounting."""

    def test_rounds_half_up(self) -> None:
        """1 of 8 bytes is 12.5%, reported as 13."""
        job = make_job(8)
        progress = job.advance(1)
        assert progress is not None
        assert progress.percent == 13

    def test_never_100_before_finished(self) -> None:
        """All bytes moved is still 99 until the destination is closed."""
        job = make_job(1000)
        job.advance(999)
        assert job.percent == 99
        job.advance(1)
        assert job.percent == 99
        job.finished = True
        assert job.percent == 100

    def test_advance_only_reports_forward_moves(self) -> None:
        """Repeated percentages should not produce events."""
        job = make_job(1000)
        assert job.advance(1) is not None  # 0%
        assert job.advance(1) is None  # still 0%
        progress = job.advance(100)
        assert progress is not None
        assert progress.percent == 10
        assert progress.transferred == 102
        assert progress.total == 1000

    def test_zero_byte_job(self) -> None:
        """Empty files jump straight to 100 on completion."""
        job = make_job(0)
        assert job.percent == 0
        job.finished = True
        progress = job.advance()
        assert progress is not None
        assert progress.percent == 100

    def test_progress_to_dict(self) -> None:
        """Progress events should carry direction by value."""
        job = make_job(4)
        progress = job.advance(2)
        assert progress is not None
        assert progress.to_dict() == {
            "file": "a.txt",
            "percent": 50,
            "direction": "upload",
            "transferred": 2,
            "total": 4,
        }
