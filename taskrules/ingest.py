"""Format detection and dispatch to the ingestion adapters."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Optional, Union

import structlog

from taskrules.adapters import csv_adapter, json_adapter, text_adapter
from taskrules.errors import ContainerMalformed, FormatUnsupported, IngestError
from taskrules.schema import IngestResult

logger = structlog.get_logger(__name__)

UNSUPPORTED_MESSAGE = "Unsupported file format. Please upload JSON, CSV, PDF or plain text files."


class Format(str, Enum):
    JSON = "json"
    CSV = "csv"
    PDF = "pdf"
    TEXT = "text"


_CONTENT_TYPES = {
    "application/json": Format.JSON,
    "text/csv": Format.CSV,
    "application/pdf": Format.PDF,
    "text/plain": Format.TEXT,
}

_SUFFIXES = {
    ".json": Format.JSON,
    ".csv": Format.CSV,
    ".pdf": Format.PDF,
    ".txt": Format.TEXT,
}


def detect_format(name: Optional[str] = None, content_type: Optional[str] = None) -> Format:
    """Pick an encoding from a MIME type, falling back to the file name suffix."""

    if content_type:
        fmt = _CONTENT_TYPES.get(content_type.split(";")[0].strip().lower())
        if fmt is not None:
            return fmt
    if name:
        fmt = _SUFFIXES.get(Path(name).suffix.lower())
        if fmt is not None:
            return fmt
    raise FormatUnsupported(UNSUPPORTED_MESSAGE)


def _as_text(content: Union[str, bytes]) -> str:
    if isinstance(content, str):
        return content
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise ContainerMalformed(f"Content is not valid UTF-8 text: {exc}") from exc


def _parse(content: Union[str, bytes], fmt: Format) -> IngestResult:
    if fmt is Format.JSON:
        return json_adapter.parse(_as_text(content))
    if fmt is Format.CSV:
        return csv_adapter.parse(_as_text(content))
    if fmt is Format.PDF and isinstance(content, bytes):
        return text_adapter.parse(text_adapter.extract_pdf_text(content))
    return text_adapter.parse(_as_text(content))


def parse_content(content: Union[str, bytes], fmt: Union[Format, str]) -> IngestResult:
    """Parse content in a known encoding; whole-batch failures become a single error."""

    try:
        fmt = Format(fmt)
    except ValueError:
        logger.warning("ingest.unsupported", format=str(fmt))
        return IngestResult.failed(UNSUPPORTED_MESSAGE)

    try:
        result = _parse(content, fmt)
    except IngestError as exc:
        logger.warning("ingest.failed", format=fmt.value, error=str(exc), kind=type(exc).__name__)
        return IngestResult.failed(str(exc))

    logger.info("ingest.parsed", format=fmt.value, **result.counts())
    return result


def normalize(
    content: Union[str, bytes],
    name: Optional[str] = None,
    content_type: Optional[str] = None,
) -> IngestResult:
    """Detect the encoding of ``content`` and parse it into canonical records."""

    try:
        fmt = detect_format(name, content_type)
    except FormatUnsupported as exc:
        logger.warning("ingest.unsupported", name=name, content_type=content_type)
        return IngestResult.failed(str(exc))
    return parse_content(content, fmt)


def load_file(path: Union[str, Path]) -> IngestResult:
    """Read a file from disk and normalize it according to its suffix."""

    file_path = Path(path)
    return normalize(file_path.read_bytes(), name=file_path.name)
