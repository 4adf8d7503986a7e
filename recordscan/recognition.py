"""
Text-source boundary.

Recognition (image → text) belongs to an external collaborator. This module
defines the shape that collaborator must have, turns its failures into
``RecognitionFailed`` and only hands a complete ``TextDocument`` to the engine.
"""
from __future__ import annotations

import logging
from typing import Protocol

from recordscan.pipeline import analyze
from recordscan.schemas import ExtractionResult, TextDocument

logger = logging.getLogger(__name__)


class RecognitionFailed(Exception):
    """The text-recognition step could not produce a document."""


class TextRecognizer(Protocol):
    async def recognize(self, image: bytes) -> TextDocument:
        ...


async def recognize_document(recognizer: TextRecognizer, image: bytes) -> TextDocument:
    """Await *recognizer* and return its document, or raise ``RecognitionFailed``."""
    if not image:
        raise RecognitionFailed("No image data")
    try:
        doc = await recognizer.recognize(image)
    except RecognitionFailed:
        raise
    except Exception as exc:
        logger.warning("Text recognition failed: %s", exc)
        raise RecognitionFailed(str(exc) or type(exc).__name__) from exc

    if not isinstance(doc, TextDocument):
        raise RecognitionFailed(
            f"Recognizer returned {type(doc).__name__}, expected TextDocument"
        )
    return doc


async def scan_image(recognizer: TextRecognizer, image: bytes) -> ExtractionResult:
    """Recognize *image* and run the extraction engine on the result."""
    doc = await recognize_document(recognizer, image)
    logger.info("Recognized %d lines in %d blocks", len(doc.lines), len(doc.blocks))
    return analyze(doc)
