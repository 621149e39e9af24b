"""
Zip buildpack download and extraction.

The archive is streamed to a temporary file, extracted into a staging
directory beside the destination and swapped into place, so a failed or
repeated download never leaves a half-written buildpack behind.
"""

from __future__ import annotations

import logging
import os
import shutil
import stat
import tempfile
import zipfile
from pathlib import Path, PurePosixPath

import httpx

logger = logging.getLogger(__name__)

DOWNLOAD_TIMEOUT = 10 * 60.0

_BYTE_UNITS = ("B", "K", "M", "G", "T")


def format_bytes(size: int) -> str:
    """Human-readable size in the style of ``10.5M``."""
    value = float(size)
    for unit in _BYTE_UNITS:
        if value < 1024 or unit == _BYTE_UNITS[-1]:
            if unit == "B":
                return f"{int(value)}B"
            return f"{value:.1f}".rstrip("0").rstrip(".") + unit
        value /= 1024
    return f"{size}B"


class ZipDownloader:
    """
    Downloads zip buildpacks over HTTP(S).

    Args:
        skip_cert_verify: Disable TLS certificate verification
        timeout: Per-phase timeout in seconds (connect, read, write, pool)
        client: Optional pre-built httpx client (tests inject a MockTransport)
    """

    def __init__(
        self,
        skip_cert_verify: bool = False,
        timeout: float = DOWNLOAD_TIMEOUT,
        client: httpx.Client | None = None,
    ):
        self._skip_cert_verify = skip_cert_verify
        self._timeout = timeout
        self._client = client

    def _get_client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(
                verify=not self._skip_cert_verify,
                timeout=self._timeout,
                follow_redirects=True,
            )
        return self._client

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def download_and_extract(self, url: str, destination: Path) -> int:
        """
        Download ``url`` and extract it into ``destination``.

        Returns:
            Total uncompressed size of the extracted files in bytes

        Raises:
            httpx.HTTPError: download failed
            zipfile.BadZipFile: payload is not a zip archive
        """
        destination.parent.mkdir(parents=True, exist_ok=True)
        suffix = PurePosixPath(httpx.URL(url).path).name or "buildpack.zip"

        fd, zip_path = tempfile.mkstemp(suffix=f"-{suffix}")
        try:
            with os.fdopen(fd, "wb") as zip_file:
                with self._get_client().stream("GET", url) as response:
                    response.raise_for_status()
                    for chunk in response.iter_bytes():
                        zip_file.write(chunk)

            staging = Path(tempfile.mkdtemp(prefix=f".{destination.name}-", dir=destination.parent))
            try:
                size = extract_zip(Path(zip_path), staging)
                if destination.exists():
                    shutil.rmtree(destination)
                staging.rename(destination)
            except BaseException:
                shutil.rmtree(staging, ignore_errors=True)
                raise
        finally:
            os.remove(zip_path)

        logger.debug(f"Extracted {size} bytes from {url} into {destination}")
        return size


def extract_zip(zip_path: Path, destination: Path) -> int:
    """
    Extract a zip archive, restoring Unix permission bits.

    zipfile drops the mode bits stored in each entry's external attributes;
    buildpack hooks must stay executable, so they are re-applied here.
    """
    total = 0
    with zipfile.ZipFile(zip_path) as archive:
        for info in archive.infolist():
            extracted = Path(archive.extract(info, destination))
            mode = (info.external_attr >> 16) & 0o7777
            if mode and not stat.S_ISLNK(info.external_attr >> 16):
                os.chmod(extracted, mode)
            if not info.is_dir():
                total += info.file_size
    return total
