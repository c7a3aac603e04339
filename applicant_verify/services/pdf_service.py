# applicant_verify/services/pdf_service.py

import logging

import pypdfium2 as pdfium

from applicant_verify.exceptions import ExtractionFailure

logger = logging.getLogger(__name__)


def extract_text_from_pdf(file_path: str) -> str:
    """
    Reads the embedded text layer of every page. Returns '' for scanned PDFs without one.
    The try...finally block ensures the PDF file is always closed.
    """
    pdf = None
    try:
        pdf = pdfium.PdfDocument(file_path)
        pages = []
        for index in range(len(pdf)):
            page = pdf[index]
            textpage = page.get_textpage()
            try:
                pages.append(textpage.get_text_range())
            finally:
                textpage.close()
                page.close()
        text = '\n'.join(pages).replace('\r\n', '\n').replace('\r', '\n')
        logger.info("Read %d page(s), %d chars of text from '%s'.", len(pages), len(text.strip()), file_path)
        return text.strip()
    except pdfium.PdfiumError as e:
        raise ExtractionFailure(f"Failed to extract text from PDF: {e}") from e
    finally:
        if pdf:
            pdf.close()


def render_first_page(file_path: str, output_path: str, scale: int = 2) -> str:
    """Renders page 1 to an image file so that scanned PDFs can go through OCR."""
    pdf = None
    try:
        pdf = pdfium.PdfDocument(file_path)
        if len(pdf) == 0:
            raise ExtractionFailure(f"PDF has no pages: {file_path}")
        page = pdf[0]
        try:
            pil_image = page.render(scale=scale).to_pil()
        finally:
            page.close()
        pil_image.save(output_path)
        return output_path
    except pdfium.PdfiumError as e:
        raise ExtractionFailure(f"Failed to render PDF page: {e}") from e
    finally:
        if pdf:
            pdf.close()
