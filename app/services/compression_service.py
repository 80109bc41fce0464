from __future__ import annotations

import re
from io import BytesIO
from typing import Callable, Dict, Optional

from PIL import Image

from app.core.config import Settings, get_settings
from app.core.errors import ProcessingFailed
from app.core.logging import configure_logging
from app.models import CompressionResult, Upload

logger = configure_logging()

MIN_QUALITY = 1
MAX_QUALITY = 100

_LEADING_INT = re.compile(r"^\s*([+-]?)0*([0-9]+)")
# أربع خانات تكفي لتجاوز الحد الأعلى للجودة، وما زاد عنها يُشبَّع قبل التحويل إلى int
_MAX_QUALITY_DIGITS = 4


def clamp_quality(quality: int) -> int:
    return max(MIN_QUALITY, min(MAX_QUALITY, quality))


def _has_alpha(image: Image.Image) -> bool:
    return image.mode in ("RGBA", "LA", "PA") or (
        image.mode == "P" and "transparency" in image.info
    )


class CompressionService:
    """إعادة ترميز الصور المرفوعة حسب نوعها المعلن وبمستوى الجودة المطلوب عبر Pillow."""

    FALLBACK_MIME = "image/jpeg"

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()
        self.encoders: Dict[str, Callable[[Image.Image, int], bytes]] = {
            "image/jpeg": self._encode_jpeg,
            "image/png": self._encode_png,
            "image/webp": self._encode_webp,
        }

    # ------------------------------------------------------------------
    def resolve_quality(self, raw: Optional[str]) -> int:
        """
        تحويل حقل الجودة النصي إلى عدد صحيح.

        يُقبل أول عدد صحيح في بداية النص (مثل "55abc" -> 55)، وتُعاد القيمة
        الافتراضية عند غياب الحقل أو تعذر تحليله أو كونه صفرًا.
        """
        if raw is None:
            return self.settings.default_quality
        match = _LEADING_INT.match(raw)
        if not match:
            return self.settings.default_quality
        sign, digits = match.groups()
        if len(digits) > _MAX_QUALITY_DIGITS:
            digits = "9" * _MAX_QUALITY_DIGITS
        return int(sign + digits) or self.settings.default_quality

    def output_mime_for(self, mime_type: str) -> str:
        key = self._normalise_mime(mime_type)
        return key if key in self.encoders else self.FALLBACK_MIME

    # ------------------------------------------------------------------
    def compress(self, upload: Upload) -> CompressionResult:
        quality = clamp_quality(upload.quality)
        try:
            with Image.open(BytesIO(upload.raw_bytes)) as image:
                image.load()
                source_mime = upload.declared_mime_type
                if not self.settings.trust_declared_type:
                    source_mime = image.get_format_mimetype() or source_mime
                output_mime = self.output_mime_for(source_mime)
                output_bytes = self.encoders[output_mime](image, quality)
        except Exception as exc:
            logger.exception("فشل ترميز الصورة %s (%s)", upload.filename, upload.declared_mime_type)
            raise ProcessingFailed() from exc

        result = CompressionResult(output_bytes=output_bytes, output_mime_type=output_mime)
        logger.info(
            "تم ضغط الصورة %s: %s -> %s بجودة %s (%s -> %s بايت)",
            upload.filename,
            upload.declared_mime_type,
            output_mime,
            quality,
            upload.size_bytes,
            result.size_bytes,
        )
        return result

    # ------------------------------------------------------------------
    @staticmethod
    def _normalise_mime(mime_type: str | None) -> str:
        return (mime_type or "").split(";", 1)[0].strip().lower()

    @staticmethod
    def palette_colors(quality: int) -> int:
        return max(2, min(256, round(256 * quality / 100)))

    def _encode_jpeg(self, image: Image.Image, quality: int) -> bytes:
        # JPEG لا يدعم الشفافية ولا الصور ذات اللوحة
        if image.mode not in ("RGB", "L", "CMYK"):
            image = image.convert("RGB")
        buffer = BytesIO()
        image.save(buffer, format="JPEG", quality=quality, optimize=True)
        return buffer.getvalue()

    def _encode_png(self, image: Image.Image, quality: int) -> bytes:
        image = image.convert("RGBA" if _has_alpha(image) else "RGB")
        paletted = image.quantize(
            colors=self.palette_colors(quality),
            method=Image.Quantize.FASTOCTREE,
        )
        buffer = BytesIO()
        paletted.save(buffer, format="PNG", compress_level=self.settings.png_compression_level)
        return buffer.getvalue()

    def _encode_webp(self, image: Image.Image, quality: int) -> bytes:
        image = image.convert("RGBA" if _has_alpha(image) else "RGB")
        buffer = BytesIO()
        image.save(buffer, format="WEBP", quality=quality)
        return buffer.getvalue()
