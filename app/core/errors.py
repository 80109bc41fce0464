from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException


class CompressAPIError(Exception):
    """خطأ نهائي للطلب الحالي يُعاد للعميل كجسم JSON بالشكل {"error": ...}."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    message: str = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class MethodNotAllowed(CompressAPIError):
    status_code = status.HTTP_405_METHOD_NOT_ALLOWED
    message = "Method not allowed"


class FileTooLarge(CompressAPIError):
    status_code = status.HTTP_413_CONTENT_TOO_LARGE
    message = "File size too large"


class NoFileUploaded(CompressAPIError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "No image uploaded"


class ProcessingFailed(CompressAPIError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Image processing failed"


async def _compress_error_handler(request: Request, exc: CompressAPIError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def _http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


def register_error_handlers(app: FastAPI) -> None:
    """ربط معالجات الأخطاء بحيث تتوحد صيغة جسم الخطأ في كل المسارات."""
    app.add_exception_handler(CompressAPIError, _compress_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_error_handler)
