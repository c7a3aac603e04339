# applicant_verify/services/ocr_service.py

import logging
import os
import threading
from dataclasses import dataclass
from typing import Optional, Tuple

import cv2
import numpy as np
import pandas as pd
import pytesseract

from applicant_verify.config import Config
from applicant_verify.exceptions import ExtractionFailure, UnsupportedFormat
from applicant_verify.models import RecognitionResult

logger = logging.getLogger(__name__)

ID_CHAR_WHITELIST = 'ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789 .()/'


### Image preprocessing ###
# Every step runs unconditionally, in this order. Tuned for photographed ID cards.

def _resize_to_fit(image: np.ndarray, max_size: Tuple[int, int]) -> np.ndarray:
    max_w, max_h = max_size
    h, w = image.shape[:2]
    scale = min(max_w / w, max_h / h)
    if scale == 1:
        return image
    interpolation = cv2.INTER_AREA if scale < 1 else cv2.INTER_CUBIC
    return cv2.resize(image, (max(1, int(round(w * scale))), max(1, int(round(h * scale)))),
                      interpolation=interpolation)


def _adjust_gamma(gray: np.ndarray, gamma: float) -> np.ndarray:
    inv = 1.0 / gamma
    table = np.array([((i / 255.0) ** inv) * 255 for i in range(256)]).astype('uint8')
    return cv2.LUT(gray, table)


def _sharpen(gray: np.ndarray, sigma: float) -> np.ndarray:
    # Unsharp mask
    blurred = cv2.GaussianBlur(gray, (0, 0), sigma)
    return cv2.addWeighted(gray, 1.5, blurred, -0.5, 0)


def processed_path_for(image_path: str) -> str:
    base, _ = os.path.splitext(image_path)
    return f"{base}_processed.png"


def preprocess_image(image_path: str, settings=Config) -> Optional[str]:
    """
    Normalizes a photographed document and writes it as a lossless PNG beside the source.

    Returns the processed path, None for PDFs (OCR cannot read them; callers use the PDF
    text extractor instead), or the original path if anything goes wrong so that OCR is
    still attempted on the raw image. The caller owns cleanup of both files.
    """
    if os.path.splitext(image_path)[1].lower() == '.pdf':
        logger.info("Skipping preprocessing for PDF '%s'.", os.path.basename(image_path))
        return None

    try:
        image = cv2.imread(image_path)
        if image is None:
            raise ValueError("Could not read the image file. It may be corrupted.")

        image = _resize_to_fit(image, settings.PREPROCESS_MAX_SIZE)
        gray = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
        gray = cv2.normalize(gray, None, 0, 255, cv2.NORM_MINMAX)
        gray = _adjust_gamma(gray, settings.PREPROCESS_GAMMA)
        gray = _sharpen(gray, settings.PREPROCESS_SHARPEN_SIGMA)
        _, binary = cv2.threshold(gray, settings.PREPROCESS_THRESHOLD, 255, cv2.THRESH_BINARY)
        denoised = cv2.medianBlur(binary, settings.PREPROCESS_MEDIAN_KERNEL)

        output_path = processed_path_for(image_path)
        if not cv2.imwrite(output_path, denoised, [cv2.IMWRITE_PNG_COMPRESSION, 0]):
            raise IOError(f"Could not write processed image to '{output_path}'.")
        return output_path
    except Exception as e:
        logger.warning("Image preprocessing failed for '%s', using the original: %s", image_path, e)
        return image_path


### Text recognition ###

@dataclass(frozen=True)
class OcrProfile:
    name: str
    psm: int
    oem: int
    whitelist: Optional[str] = None
    preserve_interword_spaces: bool = False
    disable_dictionaries: bool = False


# ID cards are proper nouns and numeric codes: general dictionaries would "correct" them.
ID_DOCUMENT_PROFILE = OcrProfile(
    name='id_document', psm=6, oem=1, whitelist=ID_CHAR_WHITELIST,
    preserve_interword_spaces=True, disable_dictionaries=True,
)
CERTIFICATE_PROFILE = OcrProfile(name='certificate', psm=3, oem=1)


def build_tesseract_config(profile: OcrProfile) -> str:
    parts = [f'--oem {profile.oem}', f'--psm {profile.psm}']
    if profile.whitelist:
        parts.append(f'-c tessedit_char_whitelist="{profile.whitelist}"')
    if profile.preserve_interword_spaces:
        parts.append('-c preserve_interword_spaces=1')
    if profile.disable_dictionaries:
        for dawg in ('load_system_dawg', 'load_freq_dawg', 'load_unambig_dawg',
                     'load_punc_dawg', 'load_bigram_dawg'):
            parts.append(f'-c {dawg}=0')
        parts.append('-c load_number_dawg=1')
    return ' '.join(parts)


def _text_and_confidence(data: pd.DataFrame) -> Tuple[str, float]:
    """Rebuilds line-ordered text and the mean word confidence (0-1) from image_to_data output."""
    if data is None or data.empty:
        return '', 0.0

    data = data.copy()
    data['conf'] = pd.to_numeric(data['conf'], errors='coerce').fillna(-1)
    data['level'] = pd.to_numeric(data['level'], errors='coerce')
    data['text'] = data['text'].fillna('').astype(str).str.strip()
    words = data[(data['level'] == 5) & (data['text'] != '')]
    if words.empty:
        return '', 0.0

    lines = [
        ' '.join(line['text'])
        for _, line in words.groupby(['block_num', 'par_num', 'line_num'], sort=False)
    ]
    scored = words[words['conf'] >= 0]
    confidence = float(scored['conf'].mean()) / 100 if not scored.empty else 0.0
    return '\n'.join(lines), max(0.0, min(1.0, confidence))


class TextRecognizer:
    """
    Handle on the Tesseract engine with an explicit lifecycle: start(), recognize(), shutdown().

    Concurrent recognize() calls are limited by a semaphore of settings.OCR_POOL_SIZE slots
    (one by default, i.e. calls are serialized).
    """

    def __init__(self, settings=Config):
        self.settings = settings
        self.engine_version = None
        self._started = False
        self._start_lock = threading.Lock()
        self._slots = threading.BoundedSemaphore(max(1, settings.OCR_POOL_SIZE))

    @property
    def started(self) -> bool:
        return self._started

    def start(self) -> 'TextRecognizer':
        if self._started:
            return self
        with self._start_lock:
            if self._started:
                return self
            if self.settings.TESSERACT_CMD:
                pytesseract.pytesseract.tesseract_cmd = self.settings.TESSERACT_CMD
            try:
                self.engine_version = pytesseract.get_tesseract_version()
            except pytesseract.TesseractNotFoundError as e:
                raise ExtractionFailure("TESSERACT ERROR: 'tesseract' is not installed or not in your PATH.") from e
            logger.info("Text recognizer started (tesseract %s, %d slot(s)).",
                        self.engine_version, self.settings.OCR_POOL_SIZE)
            self._started = True
        return self

    def recognize(self, image_path: str, profile: OcrProfile = ID_DOCUMENT_PROFILE) -> RecognitionResult:
        if os.path.splitext(image_path)[1].lower() == '.pdf':
            raise UnsupportedFormat("PDF files cannot be sent to the image recognizer; extract their text layer instead.")
        if not os.path.exists(image_path):
            raise ExtractionFailure(f"Image not found: {image_path}")

        self.start()
        config = build_tesseract_config(profile)
        with self._slots:
            try:
                data = pytesseract.image_to_data(
                    image_path,
                    lang=self.settings.OCR_LANGUAGE,
                    config=config,
                    timeout=self.settings.OCR_TIMEOUT,
                    output_type=pytesseract.Output.DATAFRAME,
                    pandas_config={'keep_default_na': False, 'dtype': {'text': str}},
                )
            except (pytesseract.TesseractError, RuntimeError, OSError) as e:
                raise ExtractionFailure(f"Failed to extract text from image: {e}") from e

        text, confidence = _text_and_confidence(data)
        logger.info("OCR (%s) on '%s': %d chars, confidence %.2f",
                    profile.name, os.path.basename(image_path), len(text), confidence)
        return RecognitionResult(text=text, confidence=confidence)

    def shutdown(self):
        # Tesseract runs as a subprocess per call; nothing is held between calls.
        with self._start_lock:
            if self._started:
                logger.info("Text recognizer shut down.")
            self._started = False

    def __enter__(self):
        return self.start()

    def __exit__(self, exc_type, exc, tb):
        self.shutdown()
        return False


_default_recognizer = None
_default_lock = threading.Lock()


def get_default_recognizer(settings=None) -> TextRecognizer:
    """Process-wide recognizer for callers that do not inject their own. Started lazily on first use."""
    global _default_recognizer
    if _default_recognizer is None:
        with _default_lock:
            if _default_recognizer is None:
                _default_recognizer = TextRecognizer(settings or Config)
    return _default_recognizer
