from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Union

from PIL import Image, UnidentifiedImageError

try:
    import cairosvg
except Exception:  # pragma: no cover
    cairosvg = None

from .errors import SynthesisFailure

logger = logging.getLogger("autoblogger.imaging")

JPEG_QUALITY = 90
CONTENT_TYPE = "image/jpeg"


class TitleCardRenderer:
    """Composite an SVG overlay onto a background image and encode it as JPEG."""

    def __init__(self, quality: int = JPEG_QUALITY):
        self.quality = quality

    def render(self, svg_markup: str, background_path: Union[str, Path]) -> bytes:
        path = Path(background_path)
        if not path.is_file():
            raise SynthesisFailure(f"Background image not found at {path}")
        if cairosvg is None:
            raise SynthesisFailure("cairosvg is not available; cannot rasterize title overlay.")

        try:
            with Image.open(path) as source:
                background = source.convert("RGBA")
        except (OSError, UnidentifiedImageError) as exc:
            raise SynthesisFailure(f"Could not open background image {path}: {exc}") from exc

        width, height = background.size
        try:
            png_bytes = cairosvg.svg2png(
                bytestring=svg_markup.encode("utf-8"),
                output_width=width,
                output_height=height,
            )
            overlay = Image.open(io.BytesIO(png_bytes)).convert("RGBA")
        except Exception as exc:
            raise SynthesisFailure(f"Title overlay rasterization failed: {exc}") from exc

        if overlay.size != background.size:
            overlay = overlay.resize(background.size)
        background.alpha_composite(overlay)

        buffer = io.BytesIO()
        try:
            background.convert("RGB").save(buffer, format="JPEG", quality=self.quality)
        except OSError as exc:
            raise SynthesisFailure(f"JPEG encoding failed: {exc}") from exc
        data = buffer.getvalue()
        logger.info("autoblogger.imaging.rendered size=%sx%s bytes=%s", width, height, len(data))
        return data
