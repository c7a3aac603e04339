# services/hash_service.py
"""
SHA-256 fingerprints for uploaded files and parsed records, used to recognise
re-uploads and to check that re-processing is idempotent.
"""
import hashlib
import json
import logging
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

CHUNK_SIZE = 8192


def sha256_of_file(path: str) -> Optional[str]:
    """Hex digest of the file contents, or None if it cannot be read."""
    digest = hashlib.sha256()
    try:
        with open(path, "rb") as upload:
            for chunk in iter(lambda: upload.read(CHUNK_SIZE), b""):
                digest.update(chunk)
    except FileNotFoundError:
        logger.error("Cannot fingerprint '%s': file not found.", path)
        return None
    except OSError as e:
        logger.error("Cannot fingerprint '%s': %s", path, e)
        return None
    return digest.hexdigest()


def sha256_of_data(data: Dict[str, Any]) -> str:
    """Digest of a JSON-serialisable mapping; key order does not matter."""
    canonical = json.dumps(data, sort_keys=True, separators=(',', ':'), ensure_ascii=False)
    return hashlib.sha256(canonical.encode('utf-8')).hexdigest()


def fingerprint_record(record) -> str:
    """Fingerprint of a scored record (anything with to_dict()). Equal records hash equally."""
    return sha256_of_data(record.to_dict())
