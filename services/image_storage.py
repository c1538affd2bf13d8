"""Helpers for keeping artwork image files outside the database.

Primary and additional images are written as JPEG files under
`<DATABASE_DIR>/images/`; the artworks table stores only the file name.
Thumbnails stay inline in the row as a BLOB.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from pathlib import Path
from typing import Iterable, List

import aiofiles

LOGGER = logging.getLogger(__name__)


class ImageStorage:
    """Save, read and delete stored artwork images.

    Args:
        base_dir: Directory holding the image files.
    """

    def __init__(self, base_dir: Path | str) -> None:
        self.base_dir = Path(base_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)

    async def save(self, data: bytes, suffix: str = "jpg") -> str:
        """Write `data` to a new file and return its stored name.

        Raises:
            ValueError: If `data` is empty.
        """
        if not data:
            raise ValueError("Image bytes are required for saving.")
        filename = f"{uuid.uuid4().hex}.{suffix}"
        async with aiofiles.open(self.base_dir / filename, "wb") as f:
            await f.write(data)
        return filename

    async def save_many(self, items: Iterable[bytes]) -> List[str]:
        return [await self.save(item) for item in items]

    async def read(self, name: str) -> bytes:
        """Return the bytes of a stored image.

        Raises:
            FileNotFoundError: If no such image is stored.
        """
        path = self._resolve(name)
        async with aiofiles.open(path, "rb") as f:
            return await f.read()

    async def delete(self, names: Iterable[str]) -> None:
        """Remove stored images, ignoring ones already gone."""
        for name in names:
            path = self._resolve(name)
            try:
                await asyncio.to_thread(path.unlink)
            except FileNotFoundError:
                LOGGER.warning("Stored image %s was already removed", name)

    def _resolve(self, name: str) -> Path:
        # Stored names are generated here; anything with a path component is not ours.
        if not name or Path(name).name != name:
            raise FileNotFoundError(name)
        return self.base_dir / name
