from .compress import CompressionResult, ErrorResponse, Upload

__all__ = [
    "CompressionResult",
    "ErrorResponse",
    "Upload",
]
