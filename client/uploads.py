"""File analysis uploads with client-side checks and cancellation.

Files are checked for type and size before anything is sent. Accepted files
are posted as multipart form data (single field ``file``) to the analysis
endpoint on a worker thread. The returned ``UploadHandle`` can be cancelled;
a cancelled upload fails with ``RequestCancelledError("Analysis cancelled")``,
which callers render differently from a network failure.
"""

from __future__ import annotations

import logging
import mimetypes
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

from client.errors import RequestCancelledError, UploadRejectedError
from client.http import ApiClient, CancelToken
from client.models import AnalysisResult
from utils.sanitize import sanitize_file_name, validate_file_size, validate_file_type

logger = logging.getLogger(__name__)

ANALYZE_PATH = "/api/analyzeFile"
DEFAULT_MAX_SIZE_MB = 10.0
DEFAULT_MAX_FILES = 5
CANCELLED_MESSAGE = "Analysis cancelled"

ALLOWED_TYPES = (
    "application/pdf",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "application/vnd.ms-excel",
    "text/csv",
)

_TYPES_BY_EXTENSION = {
    ".pdf": "application/pdf",
    ".xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ".xls": "application/vnd.ms-excel",
    ".csv": "text/csv",
}


def guess_content_type(file_name: str) -> Optional[str]:
    suffix = Path(file_name).suffix.lower()
    if suffix in _TYPES_BY_EXTENSION:
        return _TYPES_BY_EXTENSION[suffix]
    return mimetypes.guess_type(file_name)[0]


@dataclass(frozen=True)
class UploadFile:
    name: str
    content: bytes
    content_type: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.content)

    @classmethod
    def from_path(cls, path: Path | str) -> "UploadFile":
        path = Path(path)
        return cls(name=path.name, content=path.read_bytes(),
                   content_type=guess_content_type(path.name))


def validate_upload(file: UploadFile, max_size_mb: float = DEFAULT_MAX_SIZE_MB,
                    allowed_types: Iterable[str] = ALLOWED_TYPES) -> UploadFile:
    """Check type and size; return the file with a sanitized name.

    Raises:
        UploadRejectedError: With a ``file`` field message.
    """
    content_type = file.content_type or guess_content_type(file.name)
    if not validate_file_type(content_type, tuple(allowed_types)):
        raise UploadRejectedError(
            {"file": "Only PDF, Excel, and CSV files are accepted"},
            f"{file.name}: unsupported file type",
        )
    if not validate_file_size(file.size, max_size_mb):
        raise UploadRejectedError(
            {"file": f"File must be smaller than {max_size_mb:g}MB"},
            f"{file.name}: file too large",
        )
    return UploadFile(name=sanitize_file_name(file.name), content=file.content,
                      content_type=content_type)


class UploadHandle:
    """Tracks one in-flight analysis and lets the caller cancel it."""

    def __init__(self, file: UploadFile, token: CancelToken) -> None:
        self.file = file
        self._token = token
        self._lock = threading.Lock()
        self._future: Future = Future()

    def _attach(self, inner: Future) -> None:
        inner.add_done_callback(self._settle)

    def _settle(self, inner: Future) -> None:
        exc = inner.exception()
        with self._lock:
            if self._future.done():
                return
            if isinstance(exc, RequestCancelledError):
                self._future.set_exception(RequestCancelledError(CANCELLED_MESSAGE))
            elif exc is not None:
                self._future.set_exception(exc)
            else:
                self._future.set_result(inner.result().analysis)

    def cancel(self) -> bool:
        """Abort the analysis. Returns False if it had already finished."""
        self._token.cancel(CANCELLED_MESSAGE)
        with self._lock:
            if self._future.done():
                return False
            self._future.set_exception(RequestCancelledError(CANCELLED_MESSAGE))
        logger.info("Analysis of %s cancelled", self.file.name)
        return True

    @property
    def cancelled(self) -> bool:
        return self._token.cancelled

    def done(self) -> bool:
        return self._future.done()

    def result(self, timeout: Optional[float] = None) -> str:
        """The analysis text; raises the upload's error."""
        return self._future.result(timeout)


class FileAnalyzer:
    """Posts files to the analysis endpoint on a worker pool."""

    def __init__(self, client: ApiClient, max_size_mb: float = DEFAULT_MAX_SIZE_MB,
                 max_files: int = DEFAULT_MAX_FILES,
                 executor: Optional[ThreadPoolExecutor] = None) -> None:
        self.client = client
        self.max_size_mb = max_size_mb
        self.max_files = max_files
        self._owns_executor = executor is None
        self.executor = executor or ThreadPoolExecutor(max_workers=2, thread_name_prefix="uploads")

    def _post(self, file: UploadFile, token: CancelToken) -> AnalysisResult:
        files = {"file": (file.name, file.content, file.content_type)}
        return self.client.request(ANALYZE_PATH, "POST", files=files, cancel=token,
                                   response_model=AnalysisResult)

    def analyze(self, file: UploadFile) -> UploadHandle:
        """Validate ``file`` and start its analysis.

        Raises:
            UploadRejectedError: Before dispatch, if the file fails the checks.
        """
        checked = validate_upload(file, self.max_size_mb)
        token = CancelToken()
        handle = UploadHandle(checked, token)
        logger.info("Uploading %s (%d bytes) for analysis", checked.name, checked.size)
        handle._attach(self.executor.submit(self._post, checked, token))
        return handle

    def analyze_many(self, files: Iterable[UploadFile]) -> list[UploadHandle]:
        """Start analysis for several files after checking all of them."""
        files = list(files)
        if len(files) > self.max_files:
            raise UploadRejectedError(
                {"files": f"You can upload at most {self.max_files} files at once"})
        for file in files:
            validate_upload(file, self.max_size_mb)
        return [self.analyze(file) for file in files]

    def close(self) -> None:
        if self._owns_executor:
            self.executor.shutdown(wait=False)
