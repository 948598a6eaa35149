"""PDF text extraction backends.

Two interchangeable extractors, both `bytes -> str`:
    - `extract_pdf_text`: in-process extraction with `pdfplumber`.
    - `pdftotext_extract`: pipes the document through the poppler `pdftotext`
      process (`pdftotext - -`).

`get_pdf_extractor` selects one according to `provider_config.PDF_EXTRACTOR`.
"""

import io
import subprocess

import pdfplumber

from structask.core.errors import ConfigurationError, PdfExtractionError
from structask.llm import provider_config


def extract_pdf_text(content: bytes) -> str:
    """Render every page with `pdfplumber`; pages are joined by newlines.

    Raises:
        PdfExtractionError: The bytes are not a readable PDF; the library's
            exception is chained as `__cause__`.
    """
    try:
        with pdfplumber.open(io.BytesIO(content)) as pdf:
            pages = [page.extract_text() or "" for page in pdf.pages]
    except Exception as err:
        raise PdfExtractionError(None, f"{type(err).__name__}: {err}") from err

    return "\n".join(pages)


def pdftotext_extract(content: bytes) -> str:
    """Render a PDF to text with the external `pdftotext` process.

    Raises:
        PdfExtractionError: The process is missing or exits non-zero; carries the
            exit status and stderr.
    """
    try:
        result = subprocess.run(
            ["pdftotext", "-", "-"],
            input=content,
            capture_output=True,
            check=False,
        )
    except FileNotFoundError as err:
        raise PdfExtractionError(127, str(err)) from err

    if result.returncode != 0:
        raise PdfExtractionError(
            result.returncode,
            result.stderr.decode("utf-8", errors="replace"),
        )
    return result.stdout.decode("utf-8", errors="replace")


_EXTRACTORS = {
    "pdfplumber": extract_pdf_text,
    "pdftotext": pdftotext_extract,
}


def get_pdf_extractor(name=None):
    name = name or provider_config.PDF_EXTRACTOR
    try:
        return _EXTRACTORS[name]
    except KeyError:
        raise ConfigurationError(f"unknown pdf extractor: {name!r}") from None
