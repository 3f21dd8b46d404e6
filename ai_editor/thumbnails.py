"""Project thumbnails captured from the source video."""

from __future__ import annotations

import asyncio
import base64
import io
import logging
from abc import ABC, abstractmethod

from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

THUMBNAIL_SIZE = (160, 90)
THUMBNAIL_SEEK = 0.5
THUMBNAIL_QUALITY = 70


def encode_thumbnail(
    image: Image.Image,
    size: tuple[int, int] = THUMBNAIL_SIZE,
    quality: int = THUMBNAIL_QUALITY,
) -> str:
    """Scale a frame to the thumbnail size and encode it as a JPEG data URL."""
    frame = image.convert("RGB").resize(size, Image.Resampling.LANCZOS)
    buffer = io.BytesIO()
    frame.save(buffer, format="JPEG", quality=quality)
    encoded = base64.b64encode(buffer.getvalue()).decode("utf-8")
    return f"data:image/jpeg;base64,{encoded}"


class ThumbnailGenerator(ABC):
    """Best-effort thumbnail capture; never raises."""

    @abstractmethod
    async def generate(self, source: str) -> str | None:
        """Return a JPEG data URL for the video at source, or None."""
        ...


class FfmpegThumbnailGenerator(ThumbnailGenerator):
    """Grab one frame with ffmpeg and encode it with Pillow."""

    def __init__(
        self,
        ffmpeg_path: str = "ffmpeg",
        seek: float = THUMBNAIL_SEEK,
        size: tuple[int, int] = THUMBNAIL_SIZE,
        quality: int = THUMBNAIL_QUALITY,
    ) -> None:
        self.ffmpeg_path = ffmpeg_path
        self.seek = seek
        self.size = size
        self.quality = quality

    def _command(self, source: str) -> list[str]:
        return [
            self.ffmpeg_path,
            "-hide_banner",
            "-loglevel", "error",
            "-ss", str(self.seek),
            "-i", source,
            "-frames:v", "1",
            "-f", "image2pipe",
            "-vcodec", "png",
            "pipe:1",
        ]

    async def generate(self, source: str) -> str | None:
        try:
            proc = await asyncio.create_subprocess_exec(
                *self._command(source),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            stdout, stderr = await proc.communicate()
        except OSError as exc:
            logger.warning("[THUMBNAIL] could not run %s: %s", self.ffmpeg_path, exc)
            return None

        if proc.returncode != 0 or not stdout:
            stderr_text = stderr.decode("utf-8", errors="replace").strip()
            logger.warning("[THUMBNAIL] frame capture failed for %s: %s", source, stderr_text)
            return None

        try:
            with Image.open(io.BytesIO(stdout)) as frame:
                return encode_thumbnail(frame, self.size, self.quality)
        except (UnidentifiedImageError, OSError) as exc:
            logger.warning("[THUMBNAIL] could not decode frame for %s: %s", source, exc)
            return None
