# applicant_verify/services/certificate_service.py

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, List, Optional, Sequence, Tuple

from applicant_verify.config import Config
from applicant_verify.exceptions import CertificateProcessingFailure, UnsupportedFormat, VerificationError
from applicant_verify.institutions import institutions_for
from applicant_verify.models import BatchItemResult, CertificateOutcome, NameMatch, RecognitionResult
from applicant_verify.services import hash_service, ocr_service, pdf_service
from applicant_verify.services.authenticity_service import score_certificate
from applicant_verify.services.certificate_parser import parse_certificate

logger = logging.getLogger(__name__)


def extract_certificate_text(file_path: str, recognizer: Optional[ocr_service.TextRecognizer] = None,
                             settings=Config) -> RecognitionResult:
    """
    PDFs are read from their text layer; a PDF without one has its first page rendered and
    OCR'd. Images go straight to the recognizer with the certificate profile.
    """
    extension = os.path.splitext(file_path)[1].lower()
    if extension not in settings.CERTIFICATE_EXTENSIONS:
        raise UnsupportedFormat(f"Unsupported certificate format '{extension}'. Upload a JPG, PNG or PDF.")

    if extension == '.pdf':
        text = pdf_service.extract_text_from_pdf(file_path)
        if text:
            return RecognitionResult(text=text, confidence=settings.PDF_TEXT_CONFIDENCE)

        logger.info("No text layer in '%s'. Falling back to OCR of page 1.", os.path.basename(file_path))
        base, _ = os.path.splitext(file_path)
        rendered = pdf_service.render_first_page(file_path, f"{base}_page1.png")
        try:
            recognizer = recognizer or ocr_service.get_default_recognizer(settings)
            return recognizer.recognize(rendered, ocr_service.CERTIFICATE_PROFILE)
        finally:
            if os.path.exists(rendered):
                os.remove(rendered)

    recognizer = recognizer or ocr_service.get_default_recognizer(settings)
    return recognizer.recognize(file_path, ocr_service.CERTIFICATE_PROFILE)


def process_certificate(file_path: str, recognizer: Optional[ocr_service.TextRecognizer] = None,
                        institutions: Optional[Iterable[str]] = None, settings=Config) -> CertificateOutcome:
    """
    Extracts, parses and scores one certificate.
    Raises UnsupportedFormat for a wrong file type, CertificateProcessingFailure for anything else.
    """
    filename = os.path.basename(file_path)
    institutions = tuple(institutions) if institutions is not None else institutions_for(settings)
    try:
        extracted = extract_certificate_text(file_path, recognizer, settings)
        record = score_certificate(parse_certificate(extracted.text, institutions), extracted.text)
    except UnsupportedFormat:
        raise
    except Exception as e:
        logger.exception("Certificate processing failed for '%s'.", filename)
        raise CertificateProcessingFailure(filename, str(e)) from e

    return CertificateOutcome(
        record=record,
        confidence=extracted.confidence,
        raw_text=extracted.text,
        file_hash=hash_service.sha256_of_file(file_path),
    )


def verify_name_match(certificate_name: Optional[str], first_name: Optional[str],
                      surname: Optional[str]) -> NameMatch:
    """
    Compares a certificate holder name with the applicant's names.
    Both names: 0.95. First initial ("J.") with surname: 0.8. One name only: 0.7.
    """
    first_name = (first_name or '').strip().lower()
    surname = (surname or '').strip().lower()
    if not certificate_name or not first_name or not surname:
        return NameMatch(matches=False, confidence=0.0)

    cert_name = certificate_name.lower()
    first_found = first_name in cert_name
    surname_match = surname in cert_name

    if first_found and surname_match:
        return NameMatch(matches=True, confidence=0.95)
    if surname_match and f"{first_name[0]}." in cert_name:
        return NameMatch(matches=True, confidence=0.8)
    if first_found or surname_match:
        return NameMatch(matches=True, confidence=0.7)
    return NameMatch(matches=False, confidence=0.0)


def _process_batch_item(file_path, recognizer, institutions, settings, applicant) -> BatchItemResult:
    filename = os.path.basename(file_path)
    try:
        outcome = process_certificate(file_path, recognizer, institutions, settings)
    except VerificationError as e:
        logger.warning("Certificate '%s' skipped: %s", filename, e)
        return BatchItemResult(
            filename=filename, file_path=file_path, error=str(e),
            file_hash=hash_service.sha256_of_file(file_path),
        )

    name_match = None
    if applicant:
        name_match = verify_name_match(outcome.record.holder_name, *applicant)
    return BatchItemResult(
        filename=filename, file_path=file_path, record=outcome.record,
        confidence=outcome.confidence, file_hash=outcome.file_hash, name_match=name_match,
    )


def process_certificate_batch(file_paths: Sequence[str], recognizer: Optional[ocr_service.TextRecognizer] = None,
                              institutions: Optional[Iterable[str]] = None, settings=Config,
                              max_workers: Optional[int] = None,
                              applicant: Optional[Tuple[str, str]] = None) -> List[BatchItemResult]:
    """
    Processes certificates concurrently. Results come back in input order, one per file;
    a failing file yields an entry with `error` set and never aborts the others.
    `applicant` is an optional (first_name, surname) pair for holder-name matching.
    """
    if not file_paths:
        return []
    institutions = tuple(institutions) if institutions is not None else institutions_for(settings)
    workers = min(max_workers or settings.CERTIFICATE_BATCH_WORKERS, len(file_paths))

    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = [
            executor.submit(_process_batch_item, path, recognizer, institutions, settings, applicant)
            for path in file_paths
        ]
        results = [future.result() for future in futures]

    failed = sum(1 for item in results if not item.ok)
    logger.info("Certificate batch finished: %d processed, %d failed.", len(results) - failed, failed)
    return results
