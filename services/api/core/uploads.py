# services/api/core/uploads.py
"""
Request-scoped scratch space for uploaded files.

Usage:
    with UploadScratch(settings.upload_tmp_dir) as scratch:
        tmp = await scratch.save(upload_file, max_bytes=...)
        ...
    # every file saved or allocated through `scratch` is gone here,
    # whether the block returned, raised a validation error or crashed.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import List, Optional

from fastapi import UploadFile

from core.errors import TooLarge

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024


@dataclass
class TempUpload:
    path: Path
    filename: str
    content_type: str
    size: int

    def read_bytes(self) -> bytes:
        return self.path.read_bytes()


def _suffix_for(filename: Optional[str]) -> str:
    ext = os.path.splitext(filename or "")[1]
    return ext[:10] if ext else ""


class UploadScratch:
    def __init__(self, tmp_dir: str):
        self.tmp_dir = Path(tmp_dir)
        self._paths: List[Path] = []

    def __enter__(self) -> "UploadScratch":
        self.tmp_dir.mkdir(parents=True, exist_ok=True)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.cleanup()

    def new_path(self, suffix: str = "") -> Path:
        """Allocate an empty temp file that is removed with the scratch."""
        f = NamedTemporaryFile(delete=False, dir=self.tmp_dir, suffix=suffix)
        f.close()
        path = Path(f.name)
        self._paths.append(path)
        return path

    async def save(
        self,
        upload: UploadFile,
        *,
        max_bytes: Optional[int] = None,
        too_large_message: Optional[str] = None,
    ) -> TempUpload:
        """
        Stream an UploadFile to disk.

        Raises TooLarge as soon as more than `max_bytes` have been read; the
        partial file is still cleaned up on exit.
        """
        path = self.new_path(_suffix_for(upload.filename))
        size = 0
        with open(path, "wb") as out:
            while True:
                chunk = await upload.read(CHUNK_SIZE)
                if not chunk:
                    break
                size += len(chunk)
                if max_bytes is not None and size > max_bytes:
                    raise TooLarge(
                        too_large_message
                        or f"File must be at most {max_bytes // (1024 * 1024)}MB"
                    )
                out.write(chunk)

        return TempUpload(
            path=path,
            filename=upload.filename or path.name,
            content_type=(upload.content_type or "").lower(),
            size=size,
        )

    def cleanup(self) -> None:
        while self._paths:
            path = self._paths.pop()
            try:
                path.unlink(missing_ok=True)
            except OSError as e:
                logger.warning(f"Could not remove temp file {path}: {e}")
