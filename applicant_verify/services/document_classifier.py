# services/document_classifier.py

import re
from typing import Iterable, Tuple

from applicant_verify.models import CertificateType

# A certificate, diploma or degree must be mentioned before any qualification is considered.
CERTIFICATE_KEYWORDS = ('certificate', 'diploma', 'degree')

# Checked top to bottom; the first category with a keyword in the text wins.
QUALIFICATION_KEYWORDS = (
    ("Bachelor's Degree", CertificateType.ACADEMIC, ('bachelor', 'bsc', 'ba', 'bcom')),
    ("Master's Degree", CertificateType.ACADEMIC, ('master', 'msc', 'ma', 'mcom', 'mba')),
    ('Doctorate', CertificateType.ACADEMIC, ('phd', 'doctorate', 'doctoral')),
    ('Diploma', CertificateType.PROFESSIONAL, ('diploma',)),
)
REFERENCE_KEYWORDS = ('reference', 'recommendation', 'letter')


def contains_any(text_lower: str, keywords: Iterable[str]) -> bool:
    """
    Keyword containment on lowercased text. Short abbreviations ('ba', 'ma', 'mba') must
    stand as whole words, otherwise 'ba' would match inside 'basic' and 'ma' inside 'management'.
    """
    for keyword in keywords:
        if len(keyword) <= 4:
            if re.search(r'\b' + re.escape(keyword) + r'\b', text_lower):
                return True
        elif keyword in text_lower:
            return True
    return False


def classify_certificate(text: str) -> Tuple[CertificateType, str]:
    """Returns (type, classification label). Unrecognised text is (UNKNOWN, '')."""
    text_lower = (text or '').lower()

    if contains_any(text_lower, CERTIFICATE_KEYWORDS):
        for label, cert_type, keywords in QUALIFICATION_KEYWORDS:
            if contains_any(text_lower, keywords):
                return cert_type, label
        return CertificateType.PROFESSIONAL, 'Certificate'

    if contains_any(text_lower, REFERENCE_KEYWORDS):
        return CertificateType.REFERENCE, 'Reference Letter'

    return CertificateType.UNKNOWN, ''
