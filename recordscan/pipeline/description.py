"""
Description extractor — merchant / payee name or a representative text.
"""
from __future__ import annotations

import logging
import re
from typing import Optional

from recordscan.pipeline.cleanup import cleanup
from recordscan.schemas import ReceiptCategory, TextDocument

logger = logging.getLogger(__name__)

PAYEE_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"paid to[:\s]*(\w.*?)(?=$|paid from|upi id|date)", re.IGNORECASE),
    re.compile(
        r"\b(?:recipient|merchant|to|payee)\s*:\s*(\w.*?)(?=$|transaction|\bid\b|date)",
        re.IGNORECASE,
    ),
    re.compile(r"\bpaid\s*to\s*(\w.*?)(?=$|\bon\b|\bat\b)", re.IGNORECASE),
]
MAX_PAYEE_LENGTH = 50
# "Paid to" on its own line, with the name on the next line
_PAYEE_LABEL = re.compile(r"(?:paid\s+to|to|payee|merchant|recipient)\s*:?", re.IGNORECASE)

_UPI_LINE = re.compile(r"@|upi id|vpa", re.IGNORECASE)
_UPI_HANDLE = re.compile(r"(?<![A-Za-z._-])([A-Za-z][A-Za-z._-]*)@")
_HANDLE_SEPARATORS = re.compile(r"[._-]+")
MIN_HANDLE_NAME = 3

STORE_NAME_LINES = 3
MIN_STORE_NAME = 4
_NOT_STORE_NAME = re.compile(r"bill|invoice|receipt|#|date|time", re.IGNORECASE)

_ITEMS_START = re.compile(r"\b(?:item|description|qty|quantity|product)\b", re.IGNORECASE)
_ITEMS_END = re.compile(r"\b(?:total|subtotal|sum|amount|tax|gst)\b", re.IGNORECASE)
_NOT_ITEM = re.compile(r"\b(?:date|time|payment|card|cash)\b", re.IGNORECASE)
MAX_ITEM_LENGTH = 50
ITEMS_IN_DESCRIPTION = 2

MAX_BLOCK_LENGTH = 100


# ---------------------------------------------------------------------------
# Per-category strategies
# ---------------------------------------------------------------------------

def _payee(lines: tuple[str, ...]) -> Optional[str]:
    for idx, line in enumerate(lines):
        for pattern in PAYEE_PATTERNS:
            m = pattern.search(line)
            if not m:
                continue
            name = m.group(1).strip()
            if name and len(name) < MAX_PAYEE_LENGTH:
                return name
        if _PAYEE_LABEL.fullmatch(line.strip()) and idx + 1 < len(lines):
            name = lines[idx + 1].strip()
            if name and len(name) < MAX_PAYEE_LENGTH:
                return name

    upi_line = next((l for l in lines if _UPI_LINE.search(l)), None)
    if upi_line is None:
        return None
    m = _UPI_HANDLE.search(upi_line)
    if m:
        name = _HANDLE_SEPARATORS.sub(" ", m.group(1)).strip()
        if len(name) >= MIN_HANDLE_NAME:
            return name
    return upi_line


def _collect_items(lines: tuple[str, ...]) -> list[str]:
    items: list[str] = []
    collecting = False
    for line in lines:
        stripped = line.strip()
        if not collecting:
            if _ITEMS_START.search(stripped):
                collecting = True
            continue
        if _ITEMS_END.search(stripped):
            break
        if stripped and len(stripped) < MAX_ITEM_LENGTH and not _NOT_ITEM.search(stripped):
            items.append(stripped)
    return items


def _store_name(lines: tuple[str, ...]) -> Optional[str]:
    for line in lines[:STORE_NAME_LINES]:
        line = line.strip()
        if len(line) >= MIN_STORE_NAME and not _NOT_STORE_NAME.search(line):
            return line

    items = _collect_items(lines)
    if items:
        return ", ".join(items[:ITEMS_IN_DESCRIPTION])
    return None


def _largest_block(blocks: tuple[str, ...]) -> Optional[str]:
    if not blocks:
        return None
    largest = max(blocks, key=len)
    if len(largest) > MAX_BLOCK_LENGTH:
        return largest[:MAX_BLOCK_LENGTH] + "..."
    return largest


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def find_description(doc: TextDocument, category: ReceiptCategory) -> Optional[str]:
    if category in (ReceiptCategory.DIGITAL_PAYMENT, ReceiptCategory.UPI_PAYMENT):
        found = _payee(doc.lines)
    elif category == ReceiptCategory.PHYSICAL_RECEIPT:
        found = _store_name(doc.lines)
    else:
        found = _largest_block(doc.blocks)

    cleaned = cleanup(found) if found else ""
    if cleaned:
        return cleaned

    first_line = next((l for l in doc.lines if l.strip()), None)
    if first_line is None:
        return None
    logger.debug("Description falls back to first line")
    return cleanup(first_line) or None


def extract_description(doc: TextDocument, category: ReceiptCategory) -> str:
    """Return a cleaned merchant / payee label, or ``""`` when none is found."""
    return find_description(doc, category) or ""
