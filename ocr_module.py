"""Text extraction (OCR) with Tesseract.

A ``TesseractWorker`` is created for one request and terminated when the
request is done with it. ``extract_text`` owns that lifecycle: the worker is
released exactly once whether recognition succeeds, finds no text, or fails.

Tesseract itself is a system binary (``apt-get install tesseract-ocr`` plus
the language pack); ``pytesseract`` only drives it.
"""
import logging
from typing import Callable, List, Optional

import pytesseract
from PIL import Image, UnidentifiedImageError

import config
from errors import NoTextExtractedError, OcrTimeoutError, ProcessingError
from schemas import ExtractedText

logger = logging.getLogger(__name__)


def installed_languages() -> List[str]:
    try:
        return pytesseract.get_languages(config="")
    except pytesseract.TesseractNotFoundError as e:
        raise ProcessingError("Tesseract is not installed", details=str(e)) from e


class TesseractWorker:
    def __init__(self, language: str = "eng", timeout: float = 0):
        self.language = language
        self.timeout = timeout
        self._image: Optional[Image.Image] = None
        self.terminated = False

    @classmethod
    def create(cls, language: Optional[str] = None, timeout: Optional[float] = None) -> "TesseractWorker":
        language = language or config.OCR_LANGUAGE
        available = installed_languages()
        missing = [code for code in language.split("+") if code not in available]
        if missing:
            raise ProcessingError(
                "OCR language data not installed",
                details=f"Missing Tesseract language(s): {', '.join(missing)}",
            )
        return cls(language, config.OCR_TIMEOUT_SECONDS if timeout is None else timeout)

    def recognize(self, image_path: str) -> str:
        if self.terminated:
            raise ProcessingError("OCR worker already terminated")
        try:
            self._image = Image.open(image_path)
            self._image.load()
            return pytesseract.image_to_string(self._image, lang=self.language, timeout=self.timeout)
        except UnidentifiedImageError as e:
            raise ProcessingError("Image could not be decoded", details=str(e)) from e
        except pytesseract.TesseractError as e:
            raise ProcessingError("OCR engine failed", details=str(e)) from e
        except RuntimeError as e:
            # pytesseract signals a killed run with RuntimeError('Tesseract process timeout')
            if "timeout" in str(e).lower():
                raise OcrTimeoutError(details=f"OCR exceeded {self.timeout}s") from e
            raise
        finally:
            self._close_image()

    def terminate(self) -> None:
        self._close_image()
        self.terminated = True

    def _close_image(self) -> None:
        if self._image is not None:
            self._image.close()
            self._image = None


WorkerFactory = Callable[[], TesseractWorker]


def extract_text(image_path: str, worker_factory: Optional[WorkerFactory] = None) -> ExtractedText:
    factory = worker_factory or TesseractWorker.create
    worker = None
    try:
        logger.info("Initializing Tesseract...")
        worker = factory()
        text = worker.recognize(image_path)
        logger.info("OCR completed. Text length: %d", len(text))
        if not text.strip():
            raise NoTextExtractedError()
        return ExtractedText.from_raw(text)
    finally:
        if worker is not None:
            worker.terminate()
