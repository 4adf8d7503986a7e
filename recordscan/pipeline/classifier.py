"""
Rule‑based receipt‑type classifier.

Scores the text against three weighted keyword vocabularies plus two
layout patterns and returns one category.
"""
from __future__ import annotations

import logging
import re

from recordscan.schemas import CategoryScores, ReceiptCategory, TextDocument

logger = logging.getLogger(__name__)

# phrase -> weight; a phrase counts once no matter how often it occurs
PHYSICAL_KEYWORDS: dict[str, int] = {
    "cash memo": 3,
    "bill": 2,
    "invoice": 2,
    "receipt": 2,
    "store": 1,
    "gst": 3,
    "tax invoice": 3,
    "cash counter": 3,
    "customer": 1,
    "thank you": 1,
    "total": 1,
    "subtotal": 2,
    "qty": 2,
    "price": 1,
}

DIGITAL_KEYWORDS: dict[str, int] = {
    "transaction": 3,
    "payment successful": 3,
    "payment complete": 3,
    "digital receipt": 3,
    "confirmation": 2,
    "reference": 2,
    "transaction id": 3,
    "paid to": 3,
    "payment mode": 3,
    "date & time": 2,
    "paid from": 2,
}

UPI_KEYWORDS: dict[str, int] = {
    "upi": 3,
    "upi id": 3,
    "upi ref": 3,
    "upi reference": 3,
    "bhim": 3,
    "gpay": 3,
    "google pay": 3,
    "phonepe": 3,
    "paytm": 3,
    "vpa": 3,
    "upi transaction": 3,
}

# Every UPI hit also counts toward the digital score.
UPI_DIGITAL_BONUS = 1
ITEM_LINE_BONUS = 2
PAYMENT_ID_BONUS = 2
MIN_UPI_SCORE = 3

_ITEM_LINE = re.compile(r"(?<!\d)\d+\s*x\s*\d+")
_PAYMENT_ID = re.compile(r"payment\s+id\s*:\s*[a-zA-Z0-9]+", re.IGNORECASE)


def _vocabulary_score(text: str, vocabulary: dict[str, int]) -> tuple[int, int]:
    """Return ``(score, hits)`` for one vocabulary against lower‑cased *text*."""
    score = 0
    hits = 0
    for phrase, weight in vocabulary.items():
        if phrase in text:
            score += weight
            hits += 1
    return score, hits


def score_document(doc: TextDocument) -> CategoryScores:
    """Compute the raw physical / digital / UPI scores for *doc*."""
    text = doc.full_text.lower()

    physical, _ = _vocabulary_score(text, PHYSICAL_KEYWORDS)
    digital, _ = _vocabulary_score(text, DIGITAL_KEYWORDS)
    upi, upi_hits = _vocabulary_score(text, UPI_KEYWORDS)
    digital += upi_hits * UPI_DIGITAL_BONUS

    if any(_ITEM_LINE.search(line) for line in doc.lines):
        physical += ITEM_LINE_BONUS
    if _PAYMENT_ID.search(doc.full_text):
        digital += PAYMENT_ID_BONUS

    return CategoryScores(physical=physical, digital=digital, upi=upi)


def decide(scores: CategoryScores) -> ReceiptCategory:
    # UPI is checked first: its vocabulary also feeds the digital score.
    if scores.upi >= MIN_UPI_SCORE and scores.upi >= scores.digital:
        return ReceiptCategory.UPI_PAYMENT
    if scores.digital > scores.physical:
        return ReceiptCategory.DIGITAL_PAYMENT
    if scores.physical > 0:
        return ReceiptCategory.PHYSICAL_RECEIPT
    return ReceiptCategory.UNKNOWN


def classify(doc: TextDocument) -> ReceiptCategory:
    """Return the receipt category of *doc*. Never raises."""
    scores = score_document(doc)
    category = decide(scores)
    logger.debug(
        "Scores physical=%d digital=%d upi=%d -> %s",
        scores.physical, scores.digital, scores.upi, category.name,
    )
    return category
