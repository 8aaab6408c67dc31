"""Unit tests for preview_host/ingest.py."""

import gzip
import io
import sys
import tarfile
from pathlib import Path

import pytest

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from preview_host.errors import IngestionError
from preview_host.ingest import extract_bundle


def make_bundle(files: dict[str, bytes]) -> bytes:
    """Build an in-memory .tar.gz with the given members."""
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:gz") as tar:
        for name, content in files.items():
            info = tarfile.TarInfo(name)
            info.size = len(content)
            tar.addfile(info, io.BytesIO(content))
    return buf.getvalue()


class TestExtractBundle:
    """Tests for extract_bundle."""

    def test_extracts_flat_files(self, tmp_path):
        data = make_bundle({"index.html": b"<h1>Hi</h1>", "app.js": b"console.log(1)"})

        count = extract_bundle(data, tmp_path)

        assert count == 2
        assert (tmp_path / "index.html").read_bytes() == b"<h1>Hi</h1>"
        assert (tmp_path / "app.js").read_bytes() == b"console.log(1)"

    def test_preserves_directory_structure(self, tmp_path):
        data = make_bundle({
            "index.html": b"home",
            "css/site.css": b"body{}",
            "docs/guide/index.html": b"guide",
        })

        extract_bundle(data, tmp_path)

        assert (tmp_path / "css" / "site.css").read_bytes() == b"body{}"
        assert (tmp_path / "docs" / "guide" / "index.html").read_bytes() == b"guide"

    def test_dot_prefixed_paths(self, tmp_path):
        """Archives made with `tar -C dist .` prefix entries with ./"""
        data = make_bundle({"./index.html": b"home"})
        extract_bundle(data, tmp_path)
        assert (tmp_path / "index.html").read_bytes() == b"home"

    def test_not_gzip(self, tmp_path):
        with pytest.raises(IngestionError):
            extract_bundle(b"definitely not a tarball", tmp_path)

    def test_gzip_but_not_tar(self, tmp_path):
        with pytest.raises(IngestionError):
            extract_bundle(gzip.compress(b"hello world" * 100), tmp_path)

    def test_empty_input(self, tmp_path):
        with pytest.raises(IngestionError):
            extract_bundle(b"", tmp_path)

    def test_truncated_archive(self, tmp_path):
        data = make_bundle({"index.html": b"x" * 10000})
        with pytest.raises(IngestionError):
            extract_bundle(data[: len(data) // 2], tmp_path)

    def test_entry_escaping_destination_rejected(self, tmp_path):
        """tarfile's data filter refuses entries outside the target."""
        dest = tmp_path / "site"
        dest.mkdir()
        data = make_bundle({"../escape.txt": b"nope"})

        with pytest.raises(IngestionError):
            extract_bundle(data, dest)

        assert not (tmp_path / "escape.txt").exists()

    def test_error_chains_original_exception(self, tmp_path):
        with pytest.raises(IngestionError) as exc_info:
            extract_bundle(b"junk", tmp_path)
        assert isinstance(exc_info.value.__cause__, tarfile.TarError)
