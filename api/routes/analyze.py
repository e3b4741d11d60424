"""
File analysis endpoint.

Accepts a single multipart ``file`` (PDF, XLSX, XLS or CSV) and returns a
short plain-text summary of its contents as ``{"analysis": ...}``. Rejected
uploads get a 400 (type) or 413 (size) with a ``message``.
"""

import csv
import io
import logging

import openpyxl
import pdfplumber
from fastapi import APIRouter, File, HTTPException, Request, UploadFile

from api.models import AnalysisResponse
from client.uploads import ALLOWED_TYPES, guess_content_type
from utils.formatting import format_currency
from utils.strings import normalize_whitespace, safe_float

logger = logging.getLogger(__name__)

router = APIRouter(tags=["analysis"])

_PREVIEW_CHARS = 400
_AMOUNT_HEADERS = ("amount", "cost", "estimated cost", "actual cost", "price", "total")


def _amount_columns(headers) -> list[int]:
    return [i for i, h in enumerate(headers)
            if h is not None and str(h).strip().lower() in _AMOUNT_HEADERS]


def _summarize_rows(label: str, rows: list) -> str:
    if not rows:
        return f"{label}: empty"
    headers = [str(h).strip() for h in rows[0] if h not in (None, "")]
    body = rows[1:]
    parts = [f"{label}: {len(body)} data rows"]
    if headers:
        parts.append(f"columns: {', '.join(headers)}")
    amount_cols = _amount_columns(rows[0])
    if amount_cols:
        total = sum(safe_float(row[i]) for row in body for i in amount_cols if i < len(row))
        parts.append(f"total amount {format_currency(total)}")
    return "; ".join(parts)


def analyze_csv(content: bytes) -> str:
    text = content.decode("utf-8-sig", errors="replace")
    rows = [row for row in csv.reader(io.StringIO(text)) if any(cell.strip() for cell in row)]
    return _summarize_rows("CSV", rows)


def analyze_xlsx(content: bytes) -> str:
    wb = openpyxl.load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    try:
        summaries = []
        for sheet_name in wb.sheetnames:
            ws = wb[sheet_name]
            rows = [row for row in ws.iter_rows(values_only=True)
                    if any(v not in (None, "") for v in row)]
            summaries.append(_summarize_rows(f"Sheet '{sheet_name}'", rows))
    finally:
        wb.close()
    return f"Workbook with {len(summaries)} sheet(s). " + " | ".join(summaries)


def analyze_pdf(content: bytes) -> str:
    with pdfplumber.open(io.BytesIO(content)) as pdf:
        num_pages = len(pdf.pages)
        texts = []
        for page in pdf.pages:
            texts.append(page.extract_text(layout=False) or "")
            if sum(len(t) for t in texts) >= _PREVIEW_CHARS:
                break
    preview = normalize_whitespace(" ".join(texts))[:_PREVIEW_CHARS]
    if not preview:
        return f"PDF with {num_pages} page(s); no extractable text."
    return f"PDF with {num_pages} page(s). Preview: {preview}"


_ANALYZERS = {
    "text/csv": analyze_csv,
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet": analyze_xlsx,
    "application/pdf": analyze_pdf,
}


def analyze_content(name: str, content_type: str, content: bytes) -> str:
    """Dispatch on content type; legacy ``.xls`` gets a size-only summary."""
    analyzer = _ANALYZERS.get(content_type)
    if analyzer is None:
        return (f"Legacy Excel workbook '{name}' ({len(content)} bytes). "
                "Save it as .xlsx for a detailed summary.")
    return analyzer(content)


@router.post("/analyzeFile", response_model=AnalysisResponse, summary="Summarize an uploaded file")
def analyze_file(request: Request, file: UploadFile = File(...)) -> dict:
    name = file.filename or "upload"
    content_type = file.content_type
    if content_type not in ALLOWED_TYPES:
        content_type = guess_content_type(name)
    if content_type not in ALLOWED_TYPES:
        raise HTTPException(status_code=400,
                            detail="Invalid file type. Please upload PDF, Excel, or CSV files.")

    content = file.file.read()
    max_mb = request.app.state.config.upload_max_mb
    if len(content) > max_mb * 1024 * 1024:
        raise HTTPException(status_code=413,
                            detail=f"File too large. Maximum size is {max_mb:g}MB.")

    try:
        analysis = analyze_content(name, content_type, content)
    except Exception as e:
        logger.warning("Could not analyze %s: %s", name, e)
        raise HTTPException(status_code=400, detail=f"Could not read {name}") from e
    logger.info("Analyzed %s (%s, %d bytes)", name, content_type, len(content))
    return {"analysis": analysis}
