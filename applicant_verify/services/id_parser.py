# applicant_verify/services/id_parser.py
"""
Recovers structured fields from the OCR text of a national ID card.

Three independent cascades run over the cleaned text, in this order:

1. ID number: OCR-error-shaped patterns first ("O21 1 15 OO3O 5"), plain digit runs last.
   A candidate is accepted only if its embedded YYMMDD date validates; if nothing does,
   a permissive "smart" pass regroups O/0 runs before giving up.
2. Surname: "SURNAME"/"FAMILY NAME" labels, else the first capitalised word (4+ letters)
   that is not card boilerplate.
3. First name: "FIRST NAME(S)"/"GIVEN NAME(S)"/"NAME(S)" labels, else the second
   capitalised word (3+ letters); the first one is taken to be the surname.

Gender is never derived from the ID number; the applicant selects it.
"""

import logging
import re
from datetime import date
from typing import Dict, Optional

from applicant_verify.config import Config
from applicant_verify.models import ExtractionResult, IDNumberBreakdown
from applicant_verify.services.pattern_rules import first_match, group, rule

logger = logging.getLogger(__name__)

BOILERPLATE_WORDS = frozenset({
    'REPUBLIC', 'NAMIBIA', 'NATIONAL', 'IDENTITY', 'CARD',
    'FIRST', 'NAME', 'NAMES', 'SURNAME', 'GIVEN', 'FAMILY',
})
TITLES = frozenset({'MR', 'MS', 'MRS', 'DR', 'SR'})
# Other field captions printed on the card. A label capture ends at any of these.
CARD_FIELD_LABELS = frozenset({
    'SEX', 'DATE', 'BIRTH', 'PLACE', 'ISSUE', 'EXPIRY', 'NUMBER', 'SIGNATURE', 'NATIONALITY', 'COUNTRY',
})
STOP_WORDS = BOILERPLATE_WORDS | CARD_FIELD_LABELS

_ALLOWED_CHARS = re.compile(r'[^A-Z0-9 .()/\-]')
_SPACES = re.compile(r'[ \t\f\v]+')


def clean_ocr_text(text: str) -> str:
    """
    Uppercases, maps '|' and '\\' to 'I', strips characters outside [A-Z0-9 .()/-] and
    collapses runs of spaces. Line breaks are kept; the name patterns stop at them.
    O/0 confusions are left alone: only the ID-number stage rewrites them, and only
    inside digit runs.
    """
    if not text:
        return ''
    text = text.upper().replace('|', 'I').replace('\\', 'I')
    lines = []
    for line in text.splitlines():
        line = _SPACES.sub(' ', _ALLOWED_CHARS.sub(' ', line)).strip()
        if line:
            lines.append(line)
    return '\n'.join(lines)


### ID number ###

def decode_id_number(digits: str, century_cutoff: int = Config.ID_CENTURY_CUTOFF,
                     today: Optional[date] = None) -> IDNumberBreakdown:
    """Decodes the YYMMDD prefix of an 11-digit ID number. Anything else is invalid."""
    if not re.fullmatch(r'\d{11}', digits or ''):
        return IDNumberBreakdown(raw_digits=digits or '', is_valid=False)

    yy, month, day = int(digits[0:2]), int(digits[2:4]), int(digits[4:6])
    full_year = 2000 + yy if yy <= century_cutoff else 1900 + yy
    if not 1 <= month <= 12 or not 1 <= day <= 31:
        return IDNumberBreakdown(raw_digits=digits, is_valid=False)

    today = today or date.today()
    return IDNumberBreakdown(
        raw_digits=digits,
        is_valid=True,
        date_of_birth=f"{full_year:04d}-{month:02d}-{day:02d}",
        age_years=today.year - full_year,
    )


def format_id_number(digits: str) -> str:
    """'02111500305' -> '02 1115 0030 5'"""
    return f"{digits[0:2]} {digits[2:6]} {digits[6:10]} {digits[10:11]}"


def _to_digits(fragment: str) -> str:
    return re.sub(r'[^0-9]', '', re.sub(r'\s', '', fragment).replace('O', '0'))


def _candidate_windows(digits: str):
    if len(digits) < 11:
        return []
    return [digits[i:i + 11] for i in range(len(digits) - 10)]


def _id_extractor(century_cutoff, today, smart=False):
    def _extract(match):
        groups = [g for g in match.groups() if g]
        digits = _to_digits(''.join(groups) if groups else match.group(0))
        # The smart pass only ever considers the leading 11 digits.
        candidates = [digits[:11]] if smart else _candidate_windows(digits)
        for candidate in candidates:
            if decode_id_number(candidate, century_cutoff, today).is_valid:
                return candidate
        return None
    return _extract


def _id_rules(century_cutoff, today):
    extract = _id_extractor(century_cutoff, today)
    smart = _id_extractor(century_cutoff, today, smart=True)
    return (
        # "O21 1 15 O123O 5": O read for 0 at both ends of the serial block
        rule('id_ocr_grouped', r'([O0])(\d{2})\s+(\d)\s+(\d{2})\s+([O0])(\d{3})([O0])\s+(\d)', extract, re.I, first_only=False),
        rule('id_ocr_blocks', r'([O0]\d{2})\s+(\d)\s+(\d{2})\s+([O0]\d{3}[O0])\s+(\d)', extract, re.I, first_only=False),
        rule('id_ocr_loose', r'([O0]\d{2}\s*\d\s*\d{2}\s*[O0]\d{3}[O0]\s*\d)', extract, re.I, first_only=False),
        rule('id_labelled', r'NO\.?\s*(\d{2}\s*\d{4}\s*\d{4}\s*\d)', extract, re.I, first_only=False),
        rule('id_spaced_digits', r'(\d{2}\s*\d{4}\s*\d{4}\s*\d)', extract, first_only=False),
        rule('id_digit_run', r'(\d{11,})', extract, first_only=False),
    ), (
        # Smart pass: serial block read as "OO3O" instead of "0030"
        rule('id_smart_grouped', r'([O0])(\d{2})\s+(\d)\s+(\d{2})\s+([O0])([O0])(\d)([O0])\s+(\d)', smart, re.I, first_only=False),
        rule('id_smart_blocks', r'([O0]\d{2})\s+(\d)\s+(\d{2})\s+([O0]{2}\d[O0])\s+(\d)', smart, re.I, first_only=False),
    )


### Names ###

def _label_tokens(value: str):
    """Words after a label, up to the next boilerplate word or field caption."""
    tokens = []
    for token in value.split():
        if token in STOP_WORDS:
            break
        tokens.append(token)
    return tokens


def _surname_from_label(match):
    value = ' '.join(_label_tokens(match.group(1)))
    return value if len(value) > 2 else None


def _not_boilerplate(match):
    word = match.group(1)
    return None if word in STOP_WORDS else word


def _names_from_label(match):
    tokens = [re.sub(r'[^A-Z]', '', t) for t in _label_tokens(match.group(1))]
    tokens = [t for t in tokens if len(t) > 1]
    names = [t for t in tokens if t not in TITLES]
    value = ' '.join(names)
    return value if len(value) > 2 else None


_NAME_VALUE = r'([A-Z][A-Z ]*)'  # same line only: no newline in the class
_EXCLUDED_NAME_WORDS = '|'.join(sorted(STOP_WORDS | TITLES))
_NAME_WORD = rf'\b(?!(?:{_EXCLUDED_NAME_WORDS})\b)[A-Z]{{3,}}\b'

SURNAME_RULES = (
    rule('surname_label', rf'\bSURNAME\s+{_NAME_VALUE}', _surname_from_label, re.I),
    rule('family_name_label', rf'\bFAMILY NAME\s+{_NAME_VALUE}', _surname_from_label, re.I),
    rule('surname_capitalised_word', r'\b([A-Z]{4,})\b', _not_boilerplate, first_only=False),
)

FIRST_NAME_RULES = (
    rule('first_name_label', rf'\bFIRST NAME(?:S|\(S\))?(?![A-Z])\s+{_NAME_VALUE}', _names_from_label, re.I),
    rule('given_name_label', rf'\bGIVEN NAME(?:S|\(S\))?(?![A-Z])\s+{_NAME_VALUE}', _names_from_label, re.I),
    rule('name_label', rf'\bNAME(?:S|\(S\))?(?![A-Z])\s+{_NAME_VALUE}', _names_from_label, re.I),
    # Second qualifying capitalised word anywhere in the text
    rule('second_capitalised_word', rf'{_NAME_WORD}[\s\S]*?({_NAME_WORD})', group(1)),
)

_COUNTRY = re.compile(r'\bREPUBLIC OF ([A-Z]{3,})\b')


def extract_fields(clean_text: str, settings=Config, today: Optional[date] = None):
    """Runs the three cascades. Returns (fields, sources)."""
    fields: Dict[str, object] = {}
    sources: Dict[str, str] = {}

    primary, smart = _id_rules(settings.ID_CENTURY_CUTOFF, today)
    hit = first_match(primary, clean_text) or first_match(smart, clean_text)
    if hit:
        breakdown = decode_id_number(hit.value, settings.ID_CENTURY_CUTOFF, today)
        fields['id_number'] = format_id_number(hit.value)
        fields['date_of_birth'] = breakdown.date_of_birth
        fields['age'] = breakdown.age_years
        sources['id_number'] = hit.rule_name

    hit = first_match(SURNAME_RULES, clean_text)
    if hit:
        fields['surname'] = hit.value
        sources['surname'] = hit.rule_name

    hit = first_match(FIRST_NAME_RULES, clean_text)
    if hit:
        fields['names'] = hit.value
        fields['first_name'] = hit.value.split()[0]
        sources['first_name'] = hit.rule_name

    country = _COUNTRY.search(clean_text)
    fields['country'] = f"REPUBLIC OF {country.group(1)}" if country else settings.DEFAULT_COUNTRY
    return fields, sources


def parse_id_text(raw_text: str, confidence: float, settings=Config,
                  today: Optional[date] = None) -> ExtractionResult:
    """
    Parses raw OCR text into an ExtractionResult. `confidence` is passed through untouched;
    success means a date-valid ID number was recovered.
    """
    clean_text = clean_ocr_text(raw_text)
    logger.debug("Cleaned ID text:\n%s", clean_text)

    fields, sources = extract_fields(clean_text, settings, today)
    logger.info("ID extraction recovered %s (sources: %s)",
                ', '.join(sorted(k for k in ('id_number', 'surname', 'first_name') if k in fields)) or 'nothing',
                sources)

    if 'id_number' not in fields:
        return ExtractionResult(
            success=False, fields=fields, confidence=confidence,
            error_reason='No valid ID number could be read from the document.', sources=sources,
        )
    return ExtractionResult(success=True, fields=fields, confidence=confidence, sources=sources)
