# applicant_verify/services/language_service.py

from typing import Optional

from applicant_verify.models import CertificateRecord, GermanVerification, LanguageClaim

GERMAN_INSTITUTIONS = (
    'Goethe Institut',
    'TestDaF Institute',
    'TELC',
    'ÖSD',
    'Deutsche Sprachprüfung',
    'Zertifikat Deutsch',
)
GERMAN_LEVELS = ('A1', 'A2', 'B1', 'B2', 'C1', 'C2', 'DSH', 'TestDaF')


def is_german_certificate(record: CertificateRecord) -> bool:
    institution = (record.institution or '').lower()
    subject = (record.subject or '').lower()
    if 'german' in subject or 'deutsch' in subject:
        return True
    return any(name.lower() in institution for name in GERMAN_INSTITUTIONS)


def verify_german_certificate(record: CertificateRecord) -> GermanVerification:
    """A German certificate counts as verified only when it also comes from an accredited body."""
    if not is_german_certificate(record):
        return GermanVerification(
            is_valid=False,
            reason='Certificate is not from a recognized German language institution',
        )

    haystacks = (record.subject or '', record.grade or '')
    has_level = any(level in text for level in GERMAN_LEVELS for text in haystacks)
    return GermanVerification(
        is_valid=record.is_accredited,
        level='Verified German Proficiency' if has_level else 'Basic German',
        institution=record.institution,
        reason=None if record.is_accredited else 'Issuing institution is not accredited',
    )


def language_claim_from_certificate(record: CertificateRecord) -> Optional[LanguageClaim]:
    """The German claim a certificate supports, or None for non-German certificates."""
    if not is_german_certificate(record):
        return None
    verification = verify_german_certificate(record)
    return LanguageClaim(language='German', is_verified=verification.is_valid, verification_method='certificate')
