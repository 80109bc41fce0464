import subprocess
import sys
from pathlib import Path

from app.core.errors import CompressAPIError, FileTooLarge, MethodNotAllowed, NoFileUploaded, ProcessingFailed

PROJECT_ROOT = Path(__file__).resolve().parents[1]


def test_error_status_codes():
    assert MethodNotAllowed.status_code == 405
    assert FileTooLarge.status_code == 413
    assert NoFileUploaded.status_code == 400
    assert ProcessingFailed.status_code == 500
    assert issubclass(FileTooLarge, CompressAPIError)


def test_custom_message_overrides_default():
    error = FileTooLarge("File size too large (Max 2MB)")

    assert error.message == "File size too large (Max 2MB)"
    assert str(error) == "File size too large (Max 2MB)"


def test_errors_module_uses_current_status_names():
    # مكتبات الإطار تُحمَّل أولًا كي يقتصر الفحص على كود الوحدة نفسها
    script = (
        "import warnings\n"
        "import fastapi, fastapi.responses, starlette.exceptions\n"
        "warnings.simplefilter('error', DeprecationWarning)\n"
        "import app.core.errors\n"
    )
    result = subprocess.run(
        [sys.executable, "-c", script],
        cwd=PROJECT_ROOT,
        capture_output=True,
        text=True,
    )

    assert result.returncode == 0, result.stderr
