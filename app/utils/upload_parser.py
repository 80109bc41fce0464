from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, Optional

from python_multipart.exceptions import MultipartParseError
from python_multipart.multipart import MultipartParser, parse_options_header
from starlette.requests import Request

from app.core.errors import FileTooLarge, NoFileUploaded
from app.core.logging import configure_logging

logger = configure_logging()

IMAGE_FIELD = "image"
DEFAULT_PART_TYPE = "application/octet-stream"
# الحقول النصية (مثل quality) صغيرة، وما يتجاوز هذا الحد يُقتطع
FIELD_SIZE_LIMIT = 64 * 1024


@dataclass
class UploadForm:
    file_bytes: bytes
    mime_type: str
    filename: Optional[str] = None
    fields: Dict[str, str] = field(default_factory=dict)


@dataclass
class _Part:
    name: str = ""
    filename: Optional[str] = None
    content_type: str = DEFAULT_PART_TYPE
    is_file: bool = False


class UploadCollector:
    """
    تجميع أجزاء طلب multipart أثناء وصوله على دفعات.

    يُحفظ أول جزء ملف باسم ``image`` في الذاكرة مع فحص الحجم قبل كل إضافة،
    وتُجمع الحقول النصية الصغيرة. بعد وصول الطلب إلى حالة نهائية (تجاوز الحد
    أو اكتمال التحليل) تتحول كل الاستدعاءات اللاحقة إلى عمليات فارغة.
    """

    def __init__(self, max_file_bytes: int) -> None:
        self.max_file_bytes = max_file_bytes
        self.fields: Dict[str, str] = {}
        self.file_chunks: list[bytes] = []
        self.file_size = 0
        self.file_mime: Optional[str] = None
        self.filename: Optional[str] = None
        self.terminated = False

        self._headers: Dict[bytes, bytes] = {}
        self._header_field = b""
        self._header_value = b""
        self._part = _Part()
        self._field_value = b""
        self._capturing_file = False

    # ------------------------------------------------------------------
    def callbacks(self) -> Dict[str, Callable]:
        return {
            "on_part_begin": self.on_part_begin,
            "on_header_field": self.on_header_field,
            "on_header_value": self.on_header_value,
            "on_header_end": self.on_header_end,
            "on_headers_finished": self.on_headers_finished,
            "on_part_data": self.on_part_data,
            "on_part_end": self.on_part_end,
            "on_end": self.on_end,
        }

    def on_part_begin(self) -> None:
        if self.terminated:
            return
        self._headers = {}
        self._part = _Part()
        self._field_value = b""

    def on_header_field(self, data: bytes, start: int, end: int) -> None:
        if self.terminated:
            return
        self._header_field += data[start:end]

    def on_header_value(self, data: bytes, start: int, end: int) -> None:
        if self.terminated:
            return
        self._header_value += data[start:end]

    def on_header_end(self) -> None:
        if self.terminated:
            return
        self._headers[self._header_field.strip().lower()] = self._header_value.strip()
        self._header_field = b""
        self._header_value = b""

    def on_headers_finished(self) -> None:
        if self.terminated:
            return
        _, options = parse_options_header(self._headers.get(b"content-disposition", b""))
        name = options.get(b"name", b"").decode("latin-1")
        raw_filename = options.get(b"filename")
        filename = raw_filename.decode("utf-8", errors="replace") if raw_filename is not None else None

        content_type = DEFAULT_PART_TYPE
        if b"content-type" in self._headers:
            ctype, _ = parse_options_header(self._headers[b"content-type"])
            content_type = ctype.decode("latin-1").lower() or DEFAULT_PART_TYPE

        self._part = _Part(name=name, filename=filename, content_type=content_type, is_file=filename is not None)
        self._capturing_file = (
            self._part.is_file and name == IMAGE_FIELD and self.file_mime is None
        )
        if self._capturing_file:
            self.file_mime = content_type
            self.filename = filename

    def on_part_data(self, data: bytes, start: int, end: int) -> None:
        if self.terminated:
            return
        chunk = data[start:end]
        if self._capturing_file:
            if self.file_size + len(chunk) > self.max_file_bytes:
                self.terminated = True
                self.file_chunks = []
                logger.warning("تم رفض الصورة %s لتجاوزها %s بايت", self.filename, self.max_file_bytes)
                raise FileTooLarge(
                    f"File size too large (Max {self.max_file_bytes // (1024 * 1024)}MB)"
                )
            self.file_chunks.append(chunk)
            self.file_size += len(chunk)
        elif not self._part.is_file and len(self._field_value) < FIELD_SIZE_LIMIT:
            self._field_value += chunk[: FIELD_SIZE_LIMIT - len(self._field_value)]

    def on_part_end(self) -> None:
        if self.terminated:
            return
        if not self._part.is_file and self._part.name:
            self.fields[self._part.name] = self._field_value.decode("utf-8", errors="replace")
        self._capturing_file = False

    def on_end(self) -> None:
        self.terminated = True

    # ------------------------------------------------------------------
    def result(self) -> UploadForm:
        if self.file_mime is None or not self.file_size:
            raise NoFileUploaded()
        return UploadForm(
            file_bytes=b"".join(self.file_chunks),
            mime_type=self.file_mime,
            filename=self.filename,
            fields=dict(self.fields),
        )


async def read_upload(request: Request, max_file_bytes: int) -> UploadForm:
    """
    قراءة جسم الطلب على دفعات وتحليله كـ multipart/form-data.

    Raises:
        FileTooLarge: فور تجاوز جزء الصورة للحد المسموح، ويتوقف استهلاك الطلب.
        NoFileUploaded: عند انتهاء الطلب دون جزء صورة صالح.
    """
    ctype, options = parse_options_header(request.headers.get("content-type", ""))
    boundary = options.get(b"boundary")
    if ctype.lower() != b"multipart/form-data" or not boundary:
        logger.warning("طلب بدون محتوى multipart صالح: %s", request.headers.get("content-type"))
        raise NoFileUploaded()

    collector = UploadCollector(max_file_bytes)
    parser = MultipartParser(boundary, collector.callbacks())

    try:
        async for chunk in request.stream():
            if chunk:
                parser.write(chunk)
        parser.finalize()
    except MultipartParseError as exc:
        logger.warning("تعذر تحليل جسم الطلب: %s", exc)
        raise NoFileUploaded() from exc

    return collector.result()
