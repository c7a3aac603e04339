# applicant_verify/services/authenticity_service.py

import dataclasses
import logging
import re
from typing import Optional

from applicant_verify.models import AuthenticityReport, CertificateRecord, VerificationFlags
from applicant_verify.services.certificate_parser import DATE_PATTERNS, parse_issue_date

logger = logging.getLogger(__name__)

# --- Configuration for the Authenticity Score ---
# Full marks on every check sum to exactly 100.
WEIGHTS = {
    'INSTITUTION_ACCREDITED': 30,
    'INSTITUTION_UNACCREDITED': 15,
    'DATE_FORMAT': 20,
    'HOLDER_NAME': 15,
    'GRADE': 10,
    'SUBJECT': 10,
    'STRUCTURE_FULL': 15,
    'STRUCTURE_PARTIAL': 8,
}
MAX_SCORE = 100

STRUCTURAL_PATTERNS = (
    re.compile(r'(?:certificate|diploma|degree)', re.I),
    re.compile(r'(?:university|institute|college)', re.I),
    re.compile(r'(?:awarded|presented|conferred)', re.I),
    re.compile(r'\d{4}'),
)


def is_valid_date_format(value: Optional[str]) -> bool:
    """A recognised date layout that also names a real calendar day."""
    if not value:
        return False
    if not any(pattern.fullmatch(value) for pattern in DATE_PATTERNS):
        return False
    return parse_issue_date(value) is not None


def count_structural_signals(raw_text: str) -> int:
    return sum(1 for pattern in STRUCTURAL_PATTERNS if pattern.search(raw_text or ''))


def evaluate_authenticity(record: CertificateRecord, raw_text: str) -> AuthenticityReport:
    """
    Scores a parsed certificate from 0 to 100. Deterministic: the same record and text
    always produce the same report.
    """
    score = 0
    reasons = []

    # 1. Institution
    if record.verification_flags.institution_found and record.is_accredited:
        score += WEIGHTS['INSTITUTION_ACCREDITED']
        reasons.append(f"+{WEIGHTS['INSTITUTION_ACCREDITED']} pts: Accredited institution '{record.institution}'.")
    elif record.institution:
        score += WEIGHTS['INSTITUTION_UNACCREDITED']
        reasons.append(f"+{WEIGHTS['INSTITUTION_UNACCREDITED']} pts: Institution '{record.institution}' is not on the accredited list.")

    # 2. Date
    date_valid = is_valid_date_format(record.date_issued)
    if date_valid:
        score += WEIGHTS['DATE_FORMAT']
        reasons.append(f"+{WEIGHTS['DATE_FORMAT']} pts: Valid issue date '{record.date_issued}'.")

    # 3. Holder name
    if record.holder_name and len(record.holder_name) > 3:
        score += WEIGHTS['HOLDER_NAME']
        reasons.append(f"+{WEIGHTS['HOLDER_NAME']} pts: Holder name present.")

    # 4. Grade
    grade_present = bool(record.grade)
    if grade_present:
        score += WEIGHTS['GRADE']
        reasons.append(f"+{WEIGHTS['GRADE']} pts: Grade '{record.grade}' present.")

    # 5. Subject
    if record.subject:
        score += WEIGHTS['SUBJECT']
        reasons.append(f"+{WEIGHTS['SUBJECT']} pts: Subject '{record.subject}' present.")

    # 6. Structure
    signals = count_structural_signals(raw_text)
    structure_valid = signals >= 3
    if structure_valid:
        score += WEIGHTS['STRUCTURE_FULL']
        reasons.append(f"+{WEIGHTS['STRUCTURE_FULL']} pts: Certificate structure ({signals}/4 signals).")
    elif signals == 2:
        score += WEIGHTS['STRUCTURE_PARTIAL']
        reasons.append(f"+{WEIGHTS['STRUCTURE_PARTIAL']} pts: Partial certificate structure ({signals}/4 signals).")

    flags = VerificationFlags(
        institution_found=record.verification_flags.institution_found,
        date_format_valid=date_valid,
        grade_present=grade_present,
        certificate_structure_valid=structure_valid,
    )
    return AuthenticityReport(score=min(score, MAX_SCORE), flags=flags, reasons=tuple(reasons))


def score_certificate(record: CertificateRecord, raw_text: str) -> CertificateRecord:
    """Returns a new record carrying the score and flags. Re-scoring replaces both outright."""
    report = evaluate_authenticity(record, raw_text)
    logger.info("Authenticity score %d for %s certificate.", report.score, record.type.value)
    return dataclasses.replace(record, authenticity_score=report.score, verification_flags=report.flags)
