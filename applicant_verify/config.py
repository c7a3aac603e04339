# config.py
# Manages pipeline configuration for different environments using python-dotenv.

import os
from dotenv import load_dotenv

# 'basedir' is the applicant_verify package directory, 'PROJECT_ROOT' the repository root.
basedir = os.path.abspath(os.path.dirname(__file__))
PROJECT_ROOT = os.path.dirname(basedir)

load_dotenv(os.path.join(PROJECT_ROOT, '.env'))  # Load .env from the project root


def _env_float(name, default):
    value = os.environ.get(name)
    return float(value) if value not in (None, '') else default


def _env_int(name, default):
    value = os.environ.get(name)
    return int(value) if value not in (None, '') else default


class Config:
    """Base configuration class with settings common to all environments."""
    DEBUG = False
    TESTING = False

    LOG_LEVEL = os.environ.get('LOG_LEVEL') or 'INFO'
    LOG_DIR = os.environ.get('LOG_DIR') or os.path.join(PROJECT_ROOT, 'logs')

    # --- Text recognition ---
    TESSERACT_CMD = os.environ.get('TESSERACT_CMD')  # None means "tesseract" on PATH
    OCR_LANGUAGE = os.environ.get('OCR_LANGUAGE') or 'eng'
    # Number of concurrent recognize() calls allowed on the shared engine.
    OCR_POOL_SIZE = _env_int('OCR_POOL_SIZE', 1)
    OCR_TIMEOUT = _env_int('OCR_TIMEOUT', 0)

    # --- Image preprocessing ---
    PREPROCESS_MAX_SIZE = (1600, 1200)
    PREPROCESS_GAMMA = 1.2
    PREPROCESS_SHARPEN_SIGMA = 1.5
    PREPROCESS_THRESHOLD = 128
    PREPROCESS_MEDIAN_KERNEL = 3

    # --- ID document parsing ---
    # Two-digit birth years <= cutoff decode to 20yy, the rest to 19yy.
    # Expires: anyone born in 2042 or later decodes into the wrong century; revisit before then.
    ID_CENTURY_CUTOFF = _env_int('ID_CENTURY_CUTOFF', 21)
    DEFAULT_COUNTRY = os.environ.get('DEFAULT_COUNTRY') or 'REPUBLIC OF NAMIBIA'
    MANUAL_ENTRY_CONFIDENCE = _env_float('MANUAL_ENTRY_CONFIDENCE', 0.60)
    ID_FILE_DELETE_DELAY = _env_float('ID_FILE_DELETE_DELAY', 2.0)
    ID_DOCUMENT_EXTENSIONS = ('.jpg', '.jpeg')

    # --- Certificates ---
    ACCREDITED_INSTITUTIONS_FILE = os.environ.get('ACCREDITED_INSTITUTIONS_FILE')
    CERTIFICATE_BATCH_WORKERS = _env_int('CERTIFICATE_BATCH_WORKERS', 4)
    CERTIFICATE_EXTENSIONS = ('.jpg', '.jpeg', '.png', '.pdf')
    PDF_TEXT_CONFIDENCE = 0.95

    @classmethod
    def validate(cls):
        if not 0 <= cls.ID_CENTURY_CUTOFF <= 99:
            raise ValueError(f"ID_CENTURY_CUTOFF must be between 0 and 99, got {cls.ID_CENTURY_CUTOFF}.")
        if cls.OCR_POOL_SIZE < 1:
            raise ValueError("OCR_POOL_SIZE must be at least 1.")
        if cls.CERTIFICATE_BATCH_WORKERS < 1:
            raise ValueError("CERTIFICATE_BATCH_WORKERS must be at least 1.")
        if not 0.0 <= cls.MANUAL_ENTRY_CONFIDENCE <= 1.0:
            raise ValueError("MANUAL_ENTRY_CONFIDENCE must be within [0, 1].")
        return cls


class DevelopmentConfig(Config):
    """Configuration for the development environment."""
    DEBUG = True
    LOG_LEVEL = os.environ.get('LOG_LEVEL') or 'DEBUG'


class TestingConfig(Config):
    """Configuration for the testing environment."""
    TESTING = True
    LOG_LEVEL = 'WARNING'
    ID_FILE_DELETE_DELAY = 0.05
    CERTIFICATE_BATCH_WORKERS = 2


class ProductionConfig(Config):
    """Configuration for the production environment."""
    DEBUG = False

    @classmethod
    def validate(cls):
        super().validate()
        if not cls.ACCREDITED_INSTITUTIONS_FILE:
            raise ValueError("ACCREDITED_INSTITUTIONS_FILE is not set for the production environment.")
        return cls


config = {
    'development': DevelopmentConfig,
    'testing': TestingConfig,
    'production': ProductionConfig,
    'default': DevelopmentConfig
}


def get_config(name=None):
    """Returns the validated configuration class for `name` (or $APPLICANT_VERIFY_CONFIG)."""
    if name is None:
        name = os.getenv('APPLICANT_VERIFY_CONFIG', 'default')
    try:
        settings = config[name]
    except KeyError:
        raise ValueError(f"Unknown configuration '{name}'. Choose from: {', '.join(sorted(config))}.")
    return settings.validate()
