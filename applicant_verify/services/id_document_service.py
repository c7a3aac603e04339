# applicant_verify/services/id_document_service.py

import logging
import os
import threading
from typing import Optional

from applicant_verify.config import Config
from applicant_verify.exceptions import ExtractionFailure, UnsupportedFormat
from applicant_verify.models import ExtractionResult
from applicant_verify.services import id_parser, ocr_service

logger = logging.getLogger(__name__)


def process_id_document(image_path: str, recognizer: Optional[ocr_service.TextRecognizer] = None,
                        settings=Config) -> ExtractionResult:
    """
    Full ID pipeline: preprocess -> recognize -> parse.

    Raises UnsupportedFormat for anything but a JPG. Every later failure comes back as an
    ExtractionResult with success=False, which callers treat as "ask for manual entry".
    The processed PNG is removed here; the uploaded original stays with the caller
    (see schedule_secure_delete).
    """
    extension = os.path.splitext(image_path)[1].lower()
    if extension not in settings.ID_DOCUMENT_EXTENSIONS:
        raise UnsupportedFormat(
            'Only JPG files are supported for ID documents. Please upload a JPG image of your ID document.'
        )

    recognizer = recognizer or ocr_service.get_default_recognizer(settings)
    processed_path = ocr_service.preprocess_image(image_path, settings)
    if not processed_path:
        raise UnsupportedFormat('Unsupported file format. Please upload a JPG image.')

    try:
        recognition = recognizer.recognize(processed_path, ocr_service.ID_DOCUMENT_PROFILE)
    except ExtractionFailure as e:
        logger.error("ID document OCR failed for '%s': %s", os.path.basename(image_path), e)
        return ExtractionResult.failed(str(e))
    finally:
        if processed_path != image_path and os.path.exists(processed_path):
            os.remove(processed_path)

    logger.debug("Raw ID OCR text:\n%s", recognition.text)
    return id_parser.parse_id_text(recognition.text, recognition.confidence, settings)


def requires_manual_review(result: ExtractionResult, settings=Config) -> bool:
    """Caller-side policy: failed extractions and low-confidence reads go to manual entry."""
    return result.needs_manual_review(settings.MANUAL_ENTRY_CONFIDENCE)


def _delete_quietly(path: str):
    try:
        os.remove(path)
        logger.info("Deleted ID document '%s'.", os.path.basename(path))
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.error("Could not delete ID document '%s': %s", path, e)


def schedule_secure_delete(path: str, delay: Optional[float] = None, settings=Config) -> threading.Timer:
    """
    Deletes the raw ID image after `delay` seconds (settings.ID_FILE_DELETE_DELAY by default).
    ID photos carry PII and must not outlive the extraction.
    """
    delay = settings.ID_FILE_DELETE_DELAY if delay is None else delay
    timer = threading.Timer(delay, _delete_quietly, args=(path,))
    timer.daemon = True
    timer.start()
    return timer
