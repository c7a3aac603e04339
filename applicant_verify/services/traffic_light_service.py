# applicant_verify/services/traffic_light_service.py
"""
Traffic Light scoring: five independent components summed into a 0-100 total.

    identity      20   ID-extraction confidence + how quickly the e-mail was verified
    language      25   verified/claimed languages + German certificate bonus
    certificate   30   accreditation, average authenticity and relevance ratios
    completeness  15   required profile fields + picture + video
    consistency   10   certificate holder names vs. the applicant's first name

Missing facts never raise; they simply contribute nothing.
"""

import logging
import math
from typing import Dict, List, Optional

from applicant_verify.models import (
    CertificateType, ProfileFacts, ScoreBreakdown, Suggestion, TrafficLightResult, TrafficLightStatus,
)

logger = logging.getLogger(__name__)

# Single source of truth for the status thresholds (display layer included).
GREEN_THRESHOLD = 80
YELLOW_THRESHOLD = 60

REQUIRED_PROFILE_FIELDS = ('first_name', 'surname', 'email', 'phone', 'country')
RELEVANT_CERTIFICATE_TYPES = (CertificateType.ACADEMIC, CertificateType.PROFESSIONAL)

STATUS_DETAILS = {
    TrafficLightStatus.GREEN: {
        'level': 'Excellent',
        'message': 'Ready for Employer Consideration',
        'description': 'Your profile meets all quality standards and is ready for employers.',
    },
    TrafficLightStatus.YELLOW: {
        'level': 'Good',
        'message': 'Minor Improvements Recommended',
        'description': 'Your profile is good but could benefit from some enhancements.',
    },
    TrafficLightStatus.RED: {
        'level': 'Needs Attention',
        'message': 'Significant Improvements Required',
        'description': 'Your profile needs significant improvements before employer consideration.',
    },
}

PRIORITY_ORDER = {'high': 0, 'medium': 1, 'low': 2}


def _round_half_up(value: float) -> int:
    # round() would send 9.5 to 9; scores round .5 upwards.
    return int(math.floor(value + 0.5))


def classify_status(total: int) -> TrafficLightStatus:
    if total >= GREEN_THRESHOLD:
        return TrafficLightStatus.GREEN
    if total >= YELLOW_THRESHOLD:
        return TrafficLightStatus.YELLOW
    return TrafficLightStatus.RED


def status_details(status: TrafficLightStatus) -> Dict[str, str]:
    return dict(STATUS_DETAILS[TrafficLightStatus(status)], status=TrafficLightStatus(status).value)


### Components ###

def identity_score(facts: ProfileFacts) -> int:
    score = 0
    confidence = facts.id_extraction_confidence or 0.0
    if confidence >= 0.95:
        score += 15
    elif confidence >= 0.80:
        score += 10
    elif confidence >= 0.60:
        score += 5

    if facts.email_verified:
        hours = facts.email_verification_hours
        if hours is None:
            score += 1  # verified, but how long it took is unknown: lowest bonus
        elif hours <= 24:
            score += 5
        elif hours <= 72:
            score += 3
        else:
            score += 1
    return score


def language_score(facts: ProfileFacts) -> int:
    languages = facts.languages
    if not languages:
        return 0
    verified = [claim for claim in languages if claim.is_verified]
    score = _round_half_up(len(verified) / len(languages) * 15)

    # German is the only language that must be backed by a certificate.
    if any(claim.language.lower() == 'german' and claim.verification_method == 'certificate'
           for claim in verified):
        score += 10
    return score


def certificate_score(facts: ProfileFacts) -> int:
    certificates = facts.certificates
    if not certificates:
        return 0
    count = len(certificates)
    accredited = sum(1 for cert in certificates if cert.is_accredited)
    average_authenticity = sum(cert.authenticity_score or 0 for cert in certificates) / count
    relevant = sum(1 for cert in certificates if cert.type in RELEVANT_CERTIFICATE_TYPES)
    return (
        _round_half_up(accredited / count * 10)
        + _round_half_up(average_authenticity / 100 * 10)
        + _round_half_up(relevant / count * 10)
    )


def _is_filled(value) -> bool:
    return bool(value and str(value).strip())


def completeness_score(facts: ProfileFacts) -> int:
    filled = sum(1 for name in REQUIRED_PROFILE_FIELDS if _is_filled(getattr(facts, name)))
    score = _round_half_up(filled / len(REQUIRED_PROFILE_FIELDS) * 8)
    if _is_filled(facts.profile_picture_url):
        score += 4
    if _is_filled(facts.video_intro_url):
        score += 3
    return score


def name_mismatches(facts: ProfileFacts) -> int:
    """
    Certificates whose holder name does not contain the applicant's first name.
    Only the first name is compared; a wrong surname goes unnoticed.
    """
    if not _is_filled(facts.first_name):
        return 0
    first_name = facts.first_name.strip().lower()
    return sum(
        1 for cert in facts.certificates
        if cert.holder_name and first_name not in cert.holder_name.lower()
    )


def consistency_score(facts: ProfileFacts) -> int:
    return max(0, 8 - min(4, 2 * name_mismatches(facts)))


def compute_breakdown(facts: ProfileFacts) -> ScoreBreakdown:
    return ScoreBreakdown(
        identity=identity_score(facts),
        language=language_score(facts),
        certificate=certificate_score(facts),
        completeness=completeness_score(facts),
        consistency=consistency_score(facts),
    )


### Suggestions ###

def generate_suggestions(breakdown: ScoreBreakdown, facts: Optional[ProfileFacts] = None) -> List[Suggestion]:
    """Improvement hints derived from the breakdown, high priority first (stable within a priority)."""
    suggestions = []

    if breakdown.identity < 15:
        if breakdown.identity < 10:
            suggestions.append(Suggestion(
                'identity', 'high', 'Verify your email address immediately',
                'Check your email and click the verification link'))
        suggestions.append(Suggestion(
            'identity', 'medium', 'Upload a clearer ID document',
            'Ensure your ID is well-lit and all text is readable'))

    if breakdown.language < 20:
        suggestions.append(Suggestion(
            'language', 'high', 'Upload certificates for claimed languages',
            'Provide official language certificates from recognized institutions'))

    if breakdown.certificate < 25:
        suggestions.append(Suggestion(
            'certificate', 'high', 'Upload certificates from accredited institutions',
            'Ensure your certificates are from recognized, accredited institutions'))

    if breakdown.completeness < 12:
        if facts is None or not _is_filled(facts.profile_picture_url):
            suggestions.append(Suggestion(
                'completeness', 'medium', 'Upload a professional profile picture',
                'Add a clear, professional headshot photo'))
        if facts is None or not _is_filled(facts.video_intro_url):
            suggestions.append(Suggestion(
                'completeness', 'medium', 'Record a video introduction',
                'Create a short video introducing yourself professionally'))

    if breakdown.consistency < 8:
        suggestions.append(Suggestion(
            'consistency', 'high', 'Ensure all information is consistent',
            'Check that names and details match across all documents'))

    return sorted(suggestions, key=lambda s: PRIORITY_ORDER.get(s.priority, len(PRIORITY_ORDER)))


def score_profile(facts: ProfileFacts) -> TrafficLightResult:
    breakdown = compute_breakdown(facts)
    total = breakdown.total
    status = classify_status(total)
    logger.info("Traffic light %s (%d/100): %s", status.value, total, breakdown.to_dict())
    return TrafficLightResult(
        breakdown=breakdown,
        total=total,
        status=status,
        suggestions=generate_suggestions(breakdown, facts),
    )
