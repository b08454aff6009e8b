"""Text recognition client used by receipt scanning."""
from __future__ import annotations

import logging
from typing import Optional

import requests

from .config import AppConfig

logger = logging.getLogger(__name__)


class OcrService:
    """Send receipt images to the OCR.space API and return the recognised text."""

    def __init__(self, config: AppConfig) -> None:
        self._config = config

    @property
    def configured(self) -> bool:
        return bool(self._config.ocr_api_key)

    def recognise_text(self, image: bytes, filename: str = "receipt.jpg") -> Optional[str]:
        """Return the text found in ``image``.

        The function degrades to ``None`` when the API key is not configured
        or when the service does not return the expected payload structure.
        Transport errors are raised to the caller.
        """

        if not self._config.ocr_api_key:
            return None

        response = requests.post(
            self._config.ocr_endpoint,
            files={"file": (filename, image)},
            data={
                "apikey": self._config.ocr_api_key,
                "language": "eng",
                "OCREngine": "2",
            },
            timeout=60,
        )
        response.raise_for_status()
        payload = response.json()
        if not isinstance(payload, dict):
            logger.warning("OCR service returned an unexpected payload for %s: %r", filename, payload)
            return None
        if payload.get("IsErroredOnProcessing"):
            logger.warning("OCR service rejected %s: %s", filename, payload.get("ErrorMessage"))
            return None

        results = payload.get("ParsedResults") or []
        texts = [result.get("ParsedText", "") for result in results if isinstance(result, dict)]
        text = "\n".join(part for part in texts if part)
        return text or None
