# models.py
# Value objects passed between the extraction, authenticity and scoring stages.
# Every record is a frozen dataclass: callers persist them, the pipeline never mutates them.

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

# Fields an ID-document extraction is expected to recover.
CORE_ID_FIELDS = ('id_number', 'surname', 'first_name')


@dataclass(frozen=True)
class RecognitionResult:
    text: str
    confidence: float


@dataclass(frozen=True)
class IDNumberBreakdown:
    """Decoded view of an 11-digit national ID number (YYMMDD + serial + check digit)."""
    raw_digits: str
    is_valid: bool
    date_of_birth: Optional[str] = None  # ISO "YYYY-MM-DD"
    age_years: Optional[int] = None


@dataclass(frozen=True)
class ExtractionResult:
    """
    Outcome of one ID-document extraction.

    `confidence` is the recognizer's value passed through untouched; `coverage` reports
    separately how many of the core fields were actually recovered. `sources` names the
    pattern rule that produced each field.
    """
    success: bool
    fields: Dict[str, Any] = field(default_factory=dict)
    confidence: float = 0.0
    error_reason: Optional[str] = None
    sources: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def failed(cls, reason: str, confidence: float = 0.0) -> 'ExtractionResult':
        return cls(success=False, fields={}, confidence=confidence, error_reason=reason)

    @property
    def requires_manual_entry(self) -> bool:
        return not self.success

    @property
    def coverage(self) -> float:
        found = sum(1 for name in CORE_ID_FIELDS if self.fields.get(name))
        return found / len(CORE_ID_FIELDS)

    def needs_manual_review(self, threshold: float) -> bool:
        """True when the caller should ask the user to type the data in."""
        return self.requires_manual_entry or self.confidence < threshold

    def to_dict(self) -> Dict[str, Any]:
        return {
            'success': self.success,
            'fields': dict(self.fields),
            'confidence': self.confidence,
            'error_reason': self.error_reason,
            'requires_manual_entry': self.requires_manual_entry,
            'coverage': round(self.coverage, 2),
            'sources': dict(self.sources),
        }


class CertificateType(str, Enum):
    ACADEMIC = 'academic'
    PROFESSIONAL = 'professional'
    REFERENCE = 'reference'
    UNKNOWN = 'unknown'


@dataclass(frozen=True)
class VerificationFlags:
    institution_found: bool = False
    date_format_valid: bool = False
    grade_present: bool = False
    certificate_structure_valid: bool = False


@dataclass(frozen=True)
class CertificateRecord:
    type: CertificateType = CertificateType.UNKNOWN
    classification: str = ''  # e.g. "Bachelor's Degree"
    institution: Optional[str] = None
    subject: Optional[str] = None
    date_issued: Optional[str] = None
    date_issued_iso: Optional[str] = None
    grade: Optional[str] = None
    holder_name: Optional[str] = None
    is_accredited: bool = False
    authenticity_score: int = 0
    verification_flags: VerificationFlags = field(default_factory=VerificationFlags)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CertificateRecord':
        """Builds a record from a persisted/plain mapping; unknown keys are ignored."""
        raw_type = data.get('type') or data.get('certificate_type') or CertificateType.UNKNOWN.value
        try:
            cert_type = CertificateType(raw_type)
        except ValueError:
            cert_type = CertificateType.UNKNOWN
        flags = data.get('verification_flags') or {}
        return cls(
            type=cert_type,
            classification=data.get('classification') or '',
            institution=data.get('institution'),
            subject=data.get('subject'),
            date_issued=data.get('date_issued'),
            date_issued_iso=data.get('date_issued_iso'),
            grade=data.get('grade'),
            holder_name=data.get('holder_name') or data.get('name'),
            is_accredited=bool(data.get('is_accredited', False)),
            authenticity_score=int(data.get('authenticity_score') or 0),
            verification_flags=VerificationFlags(**{
                k: bool(flags.get(k, False)) for k in VerificationFlags.__dataclass_fields__
            }),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['type'] = self.type.value
        return data


@dataclass(frozen=True)
class AuthenticityReport:
    score: int
    flags: VerificationFlags
    reasons: Tuple[str, ...] = ()


@dataclass(frozen=True)
class NameMatch:
    matches: bool
    confidence: float


@dataclass(frozen=True)
class GermanVerification:
    is_valid: bool
    level: Optional[str] = None
    institution: Optional[str] = None
    reason: Optional[str] = None


@dataclass(frozen=True)
class CertificateOutcome:
    record: CertificateRecord
    confidence: float
    raw_text: str
    file_hash: Optional[str] = None


@dataclass(frozen=True)
class BatchItemResult:
    """One entry per uploaded file in a certificate batch: either a record or an error."""
    filename: str
    file_path: str
    record: Optional[CertificateRecord] = None
    confidence: Optional[float] = None
    error: Optional[str] = None
    file_hash: Optional[str] = None
    name_match: Optional[NameMatch] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.record is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'filename': self.filename,
            'ok': self.ok,
            'record': self.record.to_dict() if self.record else None,
            'confidence': self.confidence,
            'error': self.error,
            'file_hash': self.file_hash,
            'name_match': asdict(self.name_match) if self.name_match else None,
        }


# --- Traffic Light ---

class TrafficLightStatus(str, Enum):
    RED = 'red'
    YELLOW = 'yellow'
    GREEN = 'green'


@dataclass(frozen=True)
class LanguageClaim:
    language: str
    is_verified: bool = False
    verification_method: Optional[str] = None  # e.g. 'certificate', 'native', 'interview'


@dataclass(frozen=True)
class ProfileFacts:
    """
    Everything the Traffic Light scorer needs about one applicant, supplied by the caller.
    Any fact left at its default contributes nothing to the score.
    """
    id_extraction_confidence: Optional[float] = None
    email_verified: bool = False
    email_verification_hours: Optional[float] = None
    languages: Tuple[LanguageClaim, ...] = ()
    certificates: Tuple[CertificateRecord, ...] = ()
    first_name: Optional[str] = None
    surname: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    country: Optional[str] = None
    profile_picture_url: Optional[str] = None
    video_intro_url: Optional[str] = None
    completion_percentage: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ProfileFacts':
        languages = tuple(
            LanguageClaim(
                language=str(item.get('language', '')),
                is_verified=bool(item.get('is_verified', False)),
                verification_method=item.get('verification_method'),
            )
            for item in data.get('languages') or []
        )
        certificates = tuple(CertificateRecord.from_dict(item) for item in data.get('certificates') or [])
        return cls(
            id_extraction_confidence=data.get('id_extraction_confidence'),
            email_verified=bool(data.get('email_verified', False)),
            email_verification_hours=data.get('email_verification_hours'),
            languages=languages,
            certificates=certificates,
            first_name=data.get('first_name'),
            surname=data.get('surname'),
            email=data.get('email'),
            phone=data.get('phone'),
            country=data.get('country'),
            profile_picture_url=data.get('profile_picture_url'),
            video_intro_url=data.get('video_intro_url'),
            completion_percentage=data.get('completion_percentage'),
        )


@dataclass(frozen=True)
class ScoreBreakdown:
    identity: int = 0
    language: int = 0
    certificate: int = 0
    completeness: int = 0
    consistency: int = 0

    MAXIMA = {'identity': 20, 'language': 25, 'certificate': 30, 'completeness': 15, 'consistency': 10}

    @property
    def total(self) -> int:
        raw = self.identity + self.language + self.certificate + self.completeness + self.consistency
        return max(0, min(100, raw))

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


@dataclass(frozen=True)
class Suggestion:
    category: str
    priority: str  # 'high' | 'medium' | 'low'
    message: str
    action: str


@dataclass(frozen=True)
class TrafficLightResult:
    breakdown: ScoreBreakdown
    total: int
    status: TrafficLightStatus
    suggestions: List[Suggestion] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'breakdown': self.breakdown.to_dict(),
            'total': self.total,
            'max_score': 100,
            'status': self.status.value,
            'suggestions': [asdict(s) for s in self.suggestions],
        }
