"""
ZIP packaging and download writing for exported slides.
"""
import asyncio
import io
import os
import zipfile
from typing import Sequence, Tuple

import aiofiles

from carouselai.core.logging import get_logger
from carouselai.domain.interfaces.rendering import IArchivePackager

logger = get_logger(__name__)


class ZipArchivePackager(IArchivePackager):
    """Builds deflated ZIP archives in memory."""

    def __init__(self, compression: int = zipfile.ZIP_DEFLATED):
        self.compression = compression

    async def package(self, entries: Sequence[Tuple[str, bytes]]) -> bytes:
        """Package ordered (name, data) pairs; entry order is preserved."""
        data = await asyncio.to_thread(self._build, list(entries))
        logger.info("archive_packaged", entries=len(entries), size_bytes=len(data))
        return data

    def _build(self, entries: Sequence[Tuple[str, bytes]]) -> bytes:
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w", compression=self.compression) as archive:
            for name, data in entries:
                archive.writestr(name, data)
        return buffer.getvalue()

    async def write_download(self, path: str, data: bytes) -> str:
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        async with aiofiles.open(path, "wb") as f:
            await f.write(data)
        logger.info("download_written", path=path, size_bytes=len(data))
        return path
