"""Bundle extraction.

Bundles are gzip-compressed tar archives. Entries are unpacked with their
relative paths into an already-reserved preview directory. Containment of
entry paths is left to ``tarfile``'s "data" extraction filter.

A bundle that fails halfway leaves whatever was extracted in place; the
preview directory is not removed.
"""

from __future__ import annotations

import gzip
import io
import logging
import tarfile
import zlib
from pathlib import Path

from .errors import IngestionError

_LOG = logging.getLogger(__name__)

_EXTRACTION_ERRORS = (tarfile.TarError, gzip.BadGzipFile, zlib.error, EOFError, OSError)


def extract_bundle(data: bytes, dest_dir: Path) -> int:
    """Decompress and unpack a .tar.gz bundle into ``dest_dir``.

    Args:
        data: Raw bytes of the uploaded bundle.
        dest_dir: Reserved, existing preview directory.

    Returns:
        Number of archive members extracted.

    Raises:
        IngestionError: The bytes are not a valid gzip tar archive, or
            extraction failed.
    """
    try:
        with tarfile.open(fileobj=io.BytesIO(data), mode="r:gz") as tar:
            members = tar.getmembers()
            tar.extractall(dest_dir, filter="data")
    except _EXTRACTION_ERRORS as e:
        _LOG.error("Failed to extract bundle into %s: %s", dest_dir, e, exc_info=True)
        raise IngestionError() from e

    _LOG.info("Extracted %d entries into %s", len(members), dest_dir)
    return len(members)
