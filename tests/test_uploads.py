"""Tests for client/uploads.py: client-side checks and cancellable analysis."""

import threading

import pytest
import requests

from client.errors import NetworkError, RequestCancelledError, UploadRejectedError
from client.uploads import (
    CANCELLED_MESSAGE,
    FileAnalyzer,
    UploadFile,
    guess_content_type,
    validate_upload,
)
from conftest import FakeResponse

CSV = "text/csv"
PDF = "application/pdf"


@pytest.fixture()
def analyzer(api_client):
    a = FileAnalyzer(api_client, max_size_mb=1, max_files=2)
    yield a
    a.close()


class TestValidateUpload:
    def test_accepts_csv(self):
        f = validate_upload(UploadFile("quotes.csv", b"a,b\n1,2\n", CSV))
        assert f.name == "quotes.csv"

    def test_type_guessed_from_extension(self):
        assert guess_content_type("Contract.PDF") == PDF
        f = validate_upload(UploadFile("budget.xlsx", b"PK"))
        assert f.content_type.endswith("spreadsheetml.sheet")

    def test_rejects_unsupported_type(self):
        with pytest.raises(UploadRejectedError) as exc_info:
            validate_upload(UploadFile("photo.png", b"\x89PNG", "image/png"))
        assert "file" in exc_info.value.field_errors

    def test_rejects_oversized_file(self):
        big = UploadFile("big.csv", b"x" * (1024 * 1024 + 1), CSV)
        with pytest.raises(UploadRejectedError):
            validate_upload(big, max_size_mb=1)

    def test_sanitizes_name(self):
        f = validate_upload(UploadFile('bad<name>?.csv', b"a", CSV))
        assert f.name == "badname.csv"

    def test_from_path(self, tmp_path):
        path = tmp_path / "guests.csv"
        path.write_bytes(b"name\nAva\n")
        f = UploadFile.from_path(path)
        assert f.size == 9
        assert f.content_type == CSV


class TestFileAnalyzer:
    def test_posts_multipart_file_field(self, analyzer, transport):
        transport.add("POST", "/api/analyzeFile", FakeResponse(200, {"analysis": "2 rows"}))
        handle = analyzer.analyze(UploadFile("quotes.csv", b"a\n1\n2\n", CSV))
        assert handle.result(timeout=5) == "2 rows"
        assert handle.done()
        call = transport.calls[0]
        assert call.files["file"] == ("quotes.csv", b"a\n1\n2\n", CSV)
        assert "Content-Type" not in call.headers

    def test_rejected_before_dispatch(self, analyzer, transport):
        with pytest.raises(UploadRejectedError):
            analyzer.analyze(UploadFile("x.exe", b"MZ", "application/octet-stream"))
        assert transport.calls == []

    def test_too_many_files(self, analyzer, transport):
        files = [UploadFile(f"f{i}.csv", b"a", CSV) for i in range(3)]
        with pytest.raises(UploadRejectedError) as exc_info:
            analyzer.analyze_many(files)
        assert "files" in exc_info.value.field_errors
        assert transport.calls == []

    def test_network_failure_is_not_cancellation(self, analyzer, transport):
        transport.add("POST", "/api/analyzeFile", requests.ConnectionError("reset"))
        handle = analyzer.analyze(UploadFile("a.csv", b"a", CSV))
        with pytest.raises(NetworkError):
            handle.result(timeout=5)

    def test_cancel_rejects_with_cancellation(self, analyzer, transport):
        entered = threading.Event()
        release = threading.Event()

        def slow(call):
            entered.set()
            release.wait(5)
            return FakeResponse(200, {"analysis": "too late"})

        transport.add("POST", "/api/analyzeFile", slow)
        handle = analyzer.analyze(UploadFile("a.pdf", b"%PDF-1.4", PDF))
        assert entered.wait(5)

        assert handle.cancel() is True
        assert handle.cancelled
        with pytest.raises(RequestCancelledError) as exc_info:
            handle.result(timeout=1)
        assert exc_info.value.message == CANCELLED_MESSAGE
        release.set()

    def test_cancel_after_completion_is_noop(self, analyzer, transport):
        transport.add("POST", "/api/analyzeFile", FakeResponse(200, {"analysis": "done"}))
        handle = analyzer.analyze(UploadFile("a.csv", b"a", CSV))
        assert handle.result(timeout=5) == "done"
        assert handle.cancel() is False
        assert handle.result() == "done"
