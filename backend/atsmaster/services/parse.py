from __future__ import annotations
import logging
from pathlib import Path
from typing import List, Optional
import fitz  # pymupdf

from atsmaster.core import ALLOWED_MEDIA_TYPES, PDF_MEDIA_TYPE, TEXT_MEDIA_TYPE
from atsmaster.exceptions import ExtractionError

logger = logging.getLogger(__name__)

_SUFFIX_MEDIA_TYPES = {
    ".pdf": PDF_MEDIA_TYPE,
    ".txt": TEXT_MEDIA_TYPE,
}


def resolve_media_type(media_type: Optional[str], filename: Optional[str] = None) -> str:
    """
    Declared media type wins; browsers sometimes send octet-stream or nothing,
    in which case the filename suffix decides.
    """
    mt = (media_type or "").split(";")[0].strip().lower()
    if mt and mt != "application/octet-stream":
        return mt
    if filename:
        return _SUFFIX_MEDIA_TYPES.get(Path(filename).suffix.lower(), mt)
    return mt


def extract_text_from_plain(data: bytes) -> str:
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise ExtractionError("The text file is not valid UTF-8.") from e


def _page_text(page: fitz.Page) -> str:
    # spans keep the document's own spacing; only the joins between them are ours
    spans: List[str] = []
    for block in page.get_text("dict", sort=False)["blocks"]:
        if block.get("type") != 0:  # image
            continue
        for line in block["lines"]:
            for span in line["spans"]:
                if span["text"]:
                    spans.append(span["text"])
    return " ".join(spans)


def extract_text_from_pdf(data: bytes) -> str:
    try:
        doc = fitz.open(stream=data, filetype="pdf")
    except Exception as e:
        raise ExtractionError("The PDF could not be opened. Is the file corrupt?") from e

    try:
        pages: List[str] = []
        for page in doc:
            pages.append(_page_text(page))
    except Exception as e:
        raise ExtractionError("The PDF could not be read.") from e
    finally:
        doc.close()

    return "\n".join(pages)


def extract_text(data: bytes, media_type: Optional[str], filename: Optional[str] = None) -> str:
    if not data:
        raise ExtractionError("The uploaded file is empty.")

    mt = resolve_media_type(media_type, filename)
    if mt not in ALLOWED_MEDIA_TYPES:
        raise ExtractionError("Only PDF or plain-text files are supported.")

    if mt == PDF_MEDIA_TYPE:
        text = extract_text_from_pdf(data)
    else:
        text = extract_text_from_plain(data)

    logger.debug("Extracted %d characters from %s (%s)", len(text), filename or "upload", mt)
    return text
