from fastapi import APIRouter, Request, Response
from starlette.concurrency import run_in_threadpool

from app.core.config import get_settings
from app.core.errors import MethodNotAllowed
from app.core.logging import configure_logging
from app.models import ErrorResponse, Upload
from app.services.compression_service import CompressionService
from app.utils.upload_parser import read_upload

router = APIRouter(prefix="/api", tags=["Image Compression"])

logger = configure_logging()
settings = get_settings()
compression_service = CompressionService(settings)

# كل الطرق تصل إلى المعالج كي يُرفض غير POST برسالة JSON موحدة قبل أي تحليل
ACCEPTED_METHODS = ["GET", "HEAD", "OPTIONS", "POST", "PUT", "PATCH", "DELETE"]


@router.api_route(
    "/compress",
    methods=ACCEPTED_METHODS,
    summary="ضغط صورة مرفوعة وإرجاعها بنفس النوع أو كـ JPEG",
    response_class=Response,
    responses={
        200: {"content": {"image/jpeg": {}, "image/png": {}, "image/webp": {}}},
        400: {"model": ErrorResponse},
        405: {"model": ErrorResponse},
        413: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def compress_image(request: Request) -> Response:
    if request.method != "POST":
        raise MethodNotAllowed()

    form = await read_upload(request, settings.max_upload_bytes)
    upload = Upload(
        raw_bytes=form.file_bytes,
        declared_mime_type=form.mime_type,
        quality=compression_service.resolve_quality(form.fields.get("quality")),
        filename=form.filename,
    )
    logger.info("تم استلام صورة للضغط: %s (%s، %s بايت)", upload.filename, upload.declared_mime_type, upload.size_bytes)

    result = await run_in_threadpool(compression_service.compress, upload)

    return Response(
        content=result.output_bytes,
        media_type=result.output_mime_type,
        headers={"Content-Length": str(result.size_bytes)},
    )
