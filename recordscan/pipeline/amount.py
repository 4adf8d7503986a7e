"""
Amount extractor with confidence scoring.

Candidates are harvested by generic currency patterns (scored by context)
and by category-specific heuristics (fixed scores), then one is selected:
highest confidence, with near-ties resolved toward the larger amount.
"""
from __future__ import annotations

import logging
import math
import re
from typing import Iterable, Optional

from recordscan.schemas import AmountCandidate, ReceiptCategory, TextDocument

logger = logging.getLogger(__name__)

_CURRENCY = r"(?:₹|Rs\.?|INR)"
# A number never starts inside another number or right after a minus sign,
# so "-450" is no match at all rather than a 450 candidate.
_UNSIGNED = r"(?<![-\d,])"
_NUMBER = rf"{_UNSIGNED}(\d+(?:,\d+)*(?:\.\d+)?)"
_GROUPED = rf"{_UNSIGNED}([\d,]+(?:\.\d+)?)"
_TOTAL_WORDS = r"(?:total|grand total|amount|sum|net amount)"

# Patterns 1-2 are case-sensitive on purpose: "rs" is common inside words.
CURRENCY_PATTERNS: list[re.Pattern[str]] = [
    re.compile(rf"{_CURRENCY}\s*{_NUMBER}"),
    re.compile(rf"{_NUMBER}\s*{_CURRENCY}"),
    re.compile(rf"{_TOTAL_WORDS}[\s:]*(?:{_CURRENCY}\s*)?{_NUMBER}", re.IGNORECASE),
    re.compile(rf"{_TOTAL_WORDS}[\s:]*(?:₹|Rs\.?|INR|Rupees)\s*{_NUMBER}", re.IGNORECASE),
    re.compile(rf"{_NUMBER}\s*(?:₹|Rs\.?|INR|Rupees)\s*(?:total|only)", re.IGNORECASE),
    re.compile(rf"{_CURRENCY}\s*{_GROUPED}", re.IGNORECASE),
    re.compile(rf"{_GROUPED}\s*{_CURRENCY}", re.IGNORECASE),
    re.compile(rf"(?:rupees|rs)\s+{_GROUPED}", re.IGNORECASE),
]

DIGITAL_PATTERNS: list[re.Pattern[str]] = [
    re.compile(rf"(?:amount|transaction amount)[\s:]*(?:{_CURRENCY}\s*)?{_NUMBER}", re.IGNORECASE),
    re.compile(rf"paid[\s:]*(?:{_CURRENCY}\s*)?{_NUMBER}", re.IGNORECASE),
]

LOOSE_PATTERNS: list[re.Pattern[str]] = [
    re.compile(rf"(?:amount|total|price)[.:]?\s*(?:(?:rs|inr|₹|rupees)\s*)?{_NUMBER}", re.IGNORECASE),
    re.compile(rf"(?:(?:rs|inr|₹|rupees)\s*)?{_NUMBER}\s*(?:/-|rs|only)", re.IGNORECASE),
]

FALLBACK_PATTERN = re.compile(rf"(?:₹|\brs\b\.?|\binr\b)[\s:./]*{_NUMBER}", re.IGNORECASE)

TOTAL_LINE_KEYWORDS = ("grand total", "total amount", "net amount", "total payable", "amount payable")
_TAIL_LINE = re.compile(r"total|amount|pay|paid", re.IGNORECASE)
_CONTEXT_TOTAL = re.compile(r"total|\bsum\b|\bnet\b", re.IGNORECASE)
_FIRST_NUMBER = re.compile(_NUMBER)

# Scoring constants
BASE_CONFIDENCE = 0.5
TOTAL_CONTEXT_BOOST = 0.3
TAIL_POSITION_BOOST = 0.1
LARGE_VALUE_BOOST = 0.1
TAIL_POSITION = 0.7
LARGE_VALUE = 100
CONTEXT_RADIUS = 20

TOTAL_LINE_CONFIDENCE = 0.9
TAIL_LINE_CONFIDENCE = 0.8
TAIL_LINES = 5
DIGITAL_CONFIDENCE = 0.8
LOOSE_CONFIDENCE = 0.5
FALLBACK_CONFIDENCE = 0.3

TIE_WINDOW = 0.1
_EPSILON = 1e-9


def parse_amount(raw: str) -> Optional[float]:
    """Parse a matched number, dropping thousands separators.

    Returns ``None`` when the text is not a usable positive amount.
    """
    try:
        value = float(raw.replace(",", ""))
    except ValueError:
        logger.debug("Dropping unparsable amount %r", raw)
        return None
    if value <= 0 or not math.isfinite(value):
        return None
    return value


def _window(text: str, start: int, end: int, radius: int = CONTEXT_RADIUS) -> str:
    return text[max(0, start - radius): min(len(text), end + radius)]


def _score(text: str, match: re.Match[str], value: float) -> float:
    confidence = BASE_CONFIDENCE
    if _CONTEXT_TOTAL.search(_window(text, match.start(), match.end())):
        confidence += TOTAL_CONTEXT_BOOST
    if match.end() > len(text) * TAIL_POSITION:
        confidence += TAIL_POSITION_BOOST
    if value > LARGE_VALUE:
        confidence += LARGE_VALUE_BOOST
    return min(confidence, 1.0)


def _scored_matches(text: str) -> list[AmountCandidate]:
    found: list[AmountCandidate] = []
    for pattern in CURRENCY_PATTERNS:
        for m in pattern.finditer(text):
            value = parse_amount(m.group(1))
            if value is None:
                continue
            found.append(
                AmountCandidate(
                    value=value,
                    confidence=_score(text, m, value),
                    context=_window(text, m.start(), m.end()),
                )
            )
    return found


def _fixed_matches(
    text: str, patterns: Iterable[re.Pattern[str]], confidence: float
) -> list[AmountCandidate]:
    found: list[AmountCandidate] = []
    for pattern in patterns:
        for m in pattern.finditer(text):
            value = parse_amount(m.group(1))
            if value is not None:
                found.append(
                    AmountCandidate(
                        value=value,
                        confidence=confidence,
                        context=_window(text, m.start(), m.end(), radius=10),
                    )
                )
    return found


def _line_number(line: str, confidence: float) -> Optional[AmountCandidate]:
    m = _FIRST_NUMBER.search(line)
    if not m:
        return None
    value = parse_amount(m.group(1))
    if value is None:
        return None
    return AmountCandidate(value=value, confidence=confidence, context=line)


def _physical_matches(lines: tuple[str, ...]) -> list[AmountCandidate]:
    found: list[AmountCandidate] = []
    for line in lines:
        lowered = line.lower()
        if any(kw in lowered for kw in TOTAL_LINE_KEYWORDS):
            cand = _line_number(line, TOTAL_LINE_CONFIDENCE)
            if cand:
                found.append(cand)

    # the grand total usually sits near the bottom
    for line in lines[-TAIL_LINES:]:
        if _TAIL_LINE.search(line):
            cand = _line_number(line, TAIL_LINE_CONFIDENCE)
            if cand:
                found.append(cand)
    return found


def harvest_candidates(
    doc: TextDocument, category: ReceiptCategory
) -> list[AmountCandidate]:
    """Collect every amount candidate for *doc* (generic + category-specific)."""
    text = doc.full_text.replace("\n", " ")
    candidates = _scored_matches(text)

    if category == ReceiptCategory.PHYSICAL_RECEIPT:
        candidates.extend(_physical_matches(doc.lines))
    elif category in (ReceiptCategory.DIGITAL_PAYMENT, ReceiptCategory.UPI_PAYMENT):
        candidates.extend(_fixed_matches(text, DIGITAL_PATTERNS, DIGITAL_CONFIDENCE))
    else:
        candidates.extend(_fixed_matches(text, LOOSE_PATTERNS, LOOSE_CONFIDENCE))
    return candidates


def select_candidate(
    candidates: list[AmountCandidate],
) -> Optional[AmountCandidate]:
    """Pick the most confident candidate.

    Candidates within ``TIE_WINDOW`` of the best confidence are treated as
    tied and the largest value among them wins.
    """
    if not candidates:
        return None
    best = max(candidates, key=lambda c: c.rank)
    close = [
        c for c in candidates
        if best.confidence - c.confidence <= TIE_WINDOW + _EPSILON
    ]
    return max(close, key=lambda c: (c.value, c.confidence))


def _fallback(text: str) -> Optional[AmountCandidate]:
    for m in FALLBACK_PATTERN.finditer(text):
        value = parse_amount(m.group(1))
        if value is not None:
            return AmountCandidate(value=value, confidence=FALLBACK_CONFIDENCE, context=m.group(0))
    return None


def extract_amount(
    doc: TextDocument, category: ReceiptCategory
) -> tuple[float, float]:
    """Return ``(amount, confidence)``; ``(0.0, 0.0)`` when nothing is found."""
    candidates = harvest_candidates(doc, category)
    logger.debug("Harvested %d amount candidates", len(candidates))

    chosen = select_candidate(candidates)
    if chosen is None:
        chosen = _fallback(doc.full_text.replace("\n", " "))
    if chosen is None:
        return 0.0, 0.0
    logger.debug("Selected amount %.2f (confidence %.2f)", chosen.value, chosen.confidence)
    return chosen.value, chosen.confidence
