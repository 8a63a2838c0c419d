"""Tests for delta change detection."""

import os
from datetime import datetime, timedelta, timezone

import pytest

from staticdeploy.exceptions import SourceUnavailableError
from staticdeploy.models import FileEntry, RemoteRecord, WorkBatch
from staticdeploy.sync.comparator import DeltaDecision, DeltaEngine
from staticdeploy.utils import calculate_etag

REMOTE_TIME = datetime(2020, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
OLDER = REMOTE_TIME.timestamp() - 3600
NEWER = REMOTE_TIME.timestamp() + 3600


def _inventory(key="index.html", content_hash="abc", last_modified=REMOTE_TIME):
    return {key: RemoteRecord(key, content_hash, last_modified)}


class TestDeltaEngineDecide:
    """Tests for DeltaEngine.decide."""

    def test_new_file(self):
        """Test that a key absent from the bucket is transferred."""
        engine = DeltaEngine()
        assert engine.decide(OLDER, "abc", {}, "index.html") is True

    def test_same_hash_newer_mtime(self):
        """Test that identical content is skipped even if touched."""
        engine = DeltaEngine()
        assert engine.decide(NEWER, "abc", _inventory(), "index.html") is False

    def test_same_hash_older_mtime(self):
        """Test that identical content is skipped."""
        engine = DeltaEngine()
        assert engine.decide(OLDER, "abc", _inventory(), "index.html") is False

    def test_changed_and_newer(self):
        """Test that changed content with a newer local copy is transferred."""
        engine = DeltaEngine()
        assert engine.decide(NEWER, "def", _inventory(), "index.html") is True

    def test_changed_but_older(self):
        """Test that changed content with an older local copy is skipped."""
        engine = DeltaEngine()
        assert engine.decide(OLDER, "def", _inventory(), "index.html") is False

    def test_changed_equal_time(self):
        """Test that equal timestamps do not count as newer."""
        engine = DeltaEngine()
        assert (
            engine.decide(REMOTE_TIME.timestamp(), "def", _inventory(), "index.html")
            is False
        )

    def test_lookup_by_upload_key(self):
        """Test that the inventory is looked up by upload key, not local path."""
        engine = DeltaEngine()
        inventory = _inventory(key="css/site.css")
        assert engine.decide(OLDER, "abc", inventory, "css/site.css") is False
        assert engine.decide(OLDER, "abc", inventory, "public/css/site.css") is True

    def test_remote_time_with_offset(self):
        """Test comparison against a non-UTC remote timestamp."""
        remote = REMOTE_TIME.astimezone(timezone(timedelta(hours=5)))
        engine = DeltaEngine()
        inventory = _inventory(last_modified=remote)
        assert engine.decide(NEWER, "def", inventory, "index.html") is True
        assert engine.decide(OLDER, "def", inventory, "index.html") is False

    def test_explain_reasons(self):
        """Test that explain reports why."""
        engine = DeltaEngine()
        decision = engine.explain(NEWER, "def", _inventory(), "index.html")

        assert isinstance(decision, DeltaDecision)
        assert decision.transfer is True
        assert decision.reason == "Local file is newer"
        assert decision.upload_key == "index.html"
        assert engine.explain(NEWER, "x", {}, "a").reason == "New file"


class TestFilterBatch:
    """Tests for DeltaEngine.filter_batch."""

    def _entry(self, root, name, content, mtime):
        path = root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        os.utime(path, (mtime, mtime))
        return FileEntry(local_path=str(path), upload_key=name)

    def test_delta_scenario(self, tmp_path):
        """Test that only new or newer-and-changed files are kept."""
        unchanged = self._entry(tmp_path, "a.html", b"same", NEWER)
        newer = self._entry(tmp_path, "b.html", b"changed", NEWER)
        older = self._entry(tmp_path, "c.html", b"changed", OLDER)
        new = self._entry(tmp_path, "d.html", b"brand new", OLDER)
        batch = WorkBatch([unchanged, newer, older, new])

        inventory = {
            "a.html": RemoteRecord(
                "a.html", calculate_etag(unchanged.local_path), REMOTE_TIME
            ),
            "b.html": RemoteRecord("b.html", "0" * 32, REMOTE_TIME),
            "c.html": RemoteRecord("c.html", "0" * 32, REMOTE_TIME),
        }

        result = DeltaEngine().filter_batch(batch, inventory)

        assert sorted(entry.upload_key for entry in result.entries()) == [
            "b.html",
            "d.html",
        ]
        assert len(batch) == 4

    def test_headers_kept(self, tmp_path):
        """Test that kept entries carry their headers."""
        path = tmp_path / "index.html"
        path.write_bytes(b"x")
        entry = FileEntry(str(path), "index.html", (("Content-Type", "text/html"),))

        result = DeltaEngine().filter_batch(WorkBatch([entry]), {})

        assert result.headers_for(str(path)) == [("Content-Type", "text/html")]

    def test_unreadable_file(self, tmp_path):
        """Test that a file vanishing before hashing is reported."""
        entry = FileEntry(str(tmp_path / "gone.html"), "gone.html")

        with pytest.raises(SourceUnavailableError, match="gone.html"):
            DeltaEngine().filter_batch(WorkBatch([entry]), {})


class TestDeltaScenario:
    """Tests for a delta run over a two-file site."""

    def test_hash_equal_wins_over_newer_mtime(self):
        """Test a touched but unchanged index.html next to a new logo.png."""
        t0 = REMOTE_TIME
        inventory = {"index.html": RemoteRecord("index.html", "abc", t0)}
        engine = DeltaEngine()

        assert engine.decide(t0.timestamp() + 1, "abc", inventory, "index.html") is False
        assert engine.decide(t0.timestamp() + 1, "def", inventory, "logo.png") is True
