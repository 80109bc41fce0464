from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel, Field


@dataclass(frozen=True)
class Upload:
    raw_bytes: bytes
    declared_mime_type: str
    quality: int = 80
    filename: Optional[str] = None

    @property
    def size_bytes(self) -> int:
        return len(self.raw_bytes)


@dataclass(frozen=True)
class CompressionResult:
    output_bytes: bytes
    output_mime_type: str

    @property
    def size_bytes(self) -> int:
        return len(self.output_bytes)


class ErrorResponse(BaseModel):
    error: str = Field(..., description="رسالة الخطأ الموجهة للعميل.")
