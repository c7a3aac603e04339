# exceptions.py


class VerificationError(Exception):
    """Base class for every error raised by the extraction and scoring pipeline."""


class UnsupportedFormat(VerificationError):
    """The file type cannot be processed by the requested stage (e.g. a PDF sent to OCR)."""


class ExtractionFailure(VerificationError):
    """The OCR engine could not produce text for a document."""


class CertificateProcessingFailure(VerificationError):
    """Parsing or scoring one certificate failed. Carries the offending filename."""

    def __init__(self, filename, reason):
        self.filename = filename
        self.reason = reason
        super().__init__(f"{filename}: {reason}")
