# applicant_verify/services/certificate_parser.py
"""
Turns certificate text (OCR or PDF text layer) into an unscored CertificateRecord.
The authenticity score is added afterwards by authenticity_service.
"""

import logging
import re
from typing import Iterable, Optional, Tuple

from dateutil import parser as date_parser

from applicant_verify.institutions import DEFAULT_ACCREDITED_INSTITUTIONS
from applicant_verify.models import CertificateRecord, VerificationFlags
from applicant_verify.services.document_classifier import classify_certificate
from applicant_verify.services.pattern_rules import first_match, group, rule

logger = logging.getLogger(__name__)

_WORD = r"[A-Z][A-Za-z&'\-]*"

### Institution ###

INSTITUTION_RULES = (
    rule('university_of', rf"\b((?i:university of) (?:(?i:the) )?{_WORD}(?: {_WORD})*)", group(1)),
    rule('named_institution', rf"\b((?:{_WORD} )+(?i:university|institute|institut|college))\b", group(1)),
    rule('institution_of', rf"\b((?i:institute|college|school|academy) of(?: {_WORD})+)", group(1)),
    rule('language_body', r"\b(goethe[\s-]?institut(?:e)?|testdaf|telc|cambridge|british council)\b", group(1), re.I),
)


def extract_institution(text: str, institutions: Iterable[str] = DEFAULT_ACCREDITED_INSTITUTIONS
                        ) -> Tuple[Optional[str], bool]:
    """
    Returns (institution, is_accredited). An accredited name found anywhere in the text, or
    inside the pattern match, wins and is reported with its canonical spelling.
    """
    hit = first_match(INSTITUTION_RULES, text)
    found = ' '.join(hit.value.split()) if hit else ''
    text_lower = ' '.join(text.split()).lower()
    found_lower = found.lower()

    for institution in institutions:
        name = institution.lower()
        if name in text_lower or (found_lower and name in found_lower):
            return institution, True
    return (found or None), False


### Issue date ###

_MONTHS = r'(?:January|February|March|April|May|June|July|August|September|October|November|December)'

# Tried in order; within the first pattern that matches, the LAST occurrence is the issue date
# (enrolment or birth dates tend to come first).
DATE_PATTERNS = (
    re.compile(r'\b(\d{1,2}[-/]\d{1,2}[-/]\d{4})\b'),
    re.compile(r'\b(\d{4}[-/]\d{1,2}[-/]\d{1,2})\b'),
    re.compile(rf'\b({_MONTHS}\s+\d{{1,2}},?\s+\d{{4}})\b', re.I),
    re.compile(rf'\b(\d{{1,2}}\s+{_MONTHS},?\s+\d{{4}})\b', re.I),
)


def extract_issue_date(text: str) -> Optional[str]:
    for pattern in DATE_PATTERNS:
        matches = pattern.findall(text)
        if matches:
            return ' '.join(matches[-1].split())
    return None


def parse_issue_date(value: Optional[str]) -> Optional[str]:
    """ISO form of an extracted date ('15/06/2020' -> '2020-06-15'), or None if it is not a real date."""
    if not value:
        return None
    try:
        parsed = date_parser.parse(value, dayfirst=not re.match(r'\d{4}', value))
    except (ValueError, OverflowError):
        return None
    return parsed.date().isoformat()


### Subject, holder name, grade ###

def _subject(match):
    value = re.split(r'\s+with\s+', match.group(1).strip(), maxsplit=1, flags=re.I)[0]
    return value.strip() or None


SUBJECT_RULES = (
    rule('subject_before_has', r'\b(?:in|of)\s+([A-Za-z]+(?: [A-Za-z]+){0,5}?)\s+(?:has|successfully)\b', _subject, re.I),
    rule('qualification_in', r'\bqualification in\s+([A-Za-z][A-Za-z ]*)', _subject, re.I),
    rule('degree_of', r"\b(?:bachelor|master|diploma)(?:'s)?\s+(?:of|in)\s+([A-Za-z][A-Za-z ]*)", _subject, re.I),
)

_NAME = rf"({_WORD}(?:[ ]+{_WORD})+)"
_NAME_STOP_WORDS = frozenset({'HAS', 'HAVE', 'IS', 'WAS', 'HEREBY', 'SUCCESSFULLY', 'WHO', 'ON', 'FOR'})


def _holder_name(match):
    tokens = []
    for token in match.group(1).split():
        if token.upper() in _NAME_STOP_WORDS:
            break
        tokens.append(token)
    return ' '.join(tokens) if len(tokens) >= 2 else None


HOLDER_NAME_RULES = (
    rule('certify_that', rf"(?i:this is to certify that|certifies that|awarded to)\s+{_NAME}", _holder_name),
    rule('title', rf"\b(?i:mrs|mr|ms|miss)\.?\s+{_NAME}", _holder_name),
    rule('name_caption', rf"\b(?i:name|student|candidate):\s*{_NAME}", _holder_name),
    rule('caps_before_verb', r"\b([A-Z][A-Z ]{3,}?)\s+(?i:has|successfully|is|hereby)\b", _holder_name),
    rule('presented_to', rf"(?i:presented to)\s+{_NAME}", _holder_name),
)


def _normalise(match):
    return ' '.join(match.group(1).split()) or None


GRADE_RULES = (
    rule('classification',
         r'\b((?:upper |lower )?(?:first|second|third)\s+class(?:\s+honours)?|distinction|cum laude|pass)\b',
         _normalise, re.I),
    rule('with_class', r'\bwith\s+([A-Za-z]+(?: [A-Za-z]+)?\s+(?:class|distinction))\b', _normalise, re.I),
    rule('grade_caption', r'\bgrade\s*:\s*([A-Za-z0-9+\-]{1,10})', _normalise, re.I),
    rule('level', r'\b(?:level|niveau)\s*:?\s*([ABC][12])\b', _normalise, re.I),
)


def _value(rules, text):
    hit = first_match(rules, text)
    return hit.value if hit else None


def extract_subject(text: str) -> Optional[str]:
    return _value(SUBJECT_RULES, text)


def extract_holder_name(text: str) -> Optional[str]:
    return _value(HOLDER_NAME_RULES, text)


def extract_grade(text: str) -> Optional[str]:
    return _value(GRADE_RULES, text)


def parse_certificate(text: str, institutions: Iterable[str] = DEFAULT_ACCREDITED_INSTITUTIONS) -> CertificateRecord:
    """Pure function of its inputs: identical text always yields an identical record."""
    text = text or ''
    cert_type, classification = classify_certificate(text)
    institution, accredited = extract_institution(text, institutions)
    date_issued = extract_issue_date(text)

    record = CertificateRecord(
        type=cert_type,
        classification=classification,
        institution=institution,
        subject=extract_subject(text),
        date_issued=date_issued,
        date_issued_iso=parse_issue_date(date_issued),
        grade=extract_grade(text),
        holder_name=extract_holder_name(text),
        is_accredited=accredited,
        verification_flags=VerificationFlags(institution_found=accredited),
    )
    logger.info("Parsed certificate: %s / %s, institution=%r (accredited=%s)",
                cert_type.value, classification or '-', institution, accredited)
    return record
