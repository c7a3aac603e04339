# institutions.py
# The accredited-institutions reference list. Read-only input to the certificate parser.

import logging
import os
from functools import lru_cache
from typing import Optional, Tuple

logger = logging.getLogger(__name__)

DEFAULT_ACCREDITED_INSTITUTIONS = (
    'University of Cape Town',
    'University of the Witwatersrand',
    'Stellenbosch University',
    'University of Pretoria',
    'Rhodes University',
    'Goethe Institute',
    'TestDaF Institute',
    'TELC',
    'Cambridge Assessment English',
    'British Council',
)


@lru_cache(maxsize=8)
def load_accredited_institutions(path: Optional[str] = None) -> Tuple[str, ...]:
    """
    Returns the accredited institutions as an immutable tuple.
    With a `path`, the file is read one name per line; blank lines and '#' comments are skipped.
    """
    if not path:
        return DEFAULT_ACCREDITED_INSTITUTIONS

    if not os.path.exists(path):
        raise FileNotFoundError(f"Accredited institutions file not found: {path}")

    with open(path, encoding='utf-8') as handle:
        names = tuple(
            line.strip() for line in handle
            if line.strip() and not line.lstrip().startswith('#')
        )
    logger.info("Loaded %d accredited institutions from %s", len(names), path)
    return names


def institutions_for(settings) -> Tuple[str, ...]:
    return load_accredited_institutions(getattr(settings, 'ACCREDITED_INSTITUTIONS_FILE', None))
