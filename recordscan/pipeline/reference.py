"""
Reference-number extractor.

Each category has an ordered cascade of ``(rule_name, pattern)`` pairs.
Rules are tried in declared order against the newline-flattened text and
the first match wins; broader rules sit at the end of each list.
"""
from __future__ import annotations

import logging
import re
from typing import Optional

from recordscan.schemas import ReceiptCategory, TextDocument

logger = logging.getLogger(__name__)

_SEP = r"[\s.:#_-]*"
# optional "no"/"number" after a label; one separator run on either side
# of the word, never two in a row, keeps a long run of blanks linear
_NUMBER_WORD = rf"(?:{_SEP}(?:no|num|number)\b)?"
# alphanumeric run of 6+, or hyphenated groups like "AB-12-CD"
_DIGITAL_TOKEN = r"(\w{6,}|\w{2,}-\w{2,}-\w{2,})"
_PHYSICAL_TOKEN = r"([A-Za-z0-9][-A-Za-z0-9/]{3,})"
# generic prefixes are loose, so the token must carry at least one digit
_GENERIC_TOKEN = r"((?=[-A-Za-z0-9]*\d)[A-Za-z0-9][-A-Za-z0-9]{3,})"

Rule = tuple[str, re.Pattern[str]]


def _rule(name: str, pattern: str) -> Rule:
    return name, re.compile(pattern, re.IGNORECASE)


DIGITAL_RULES: list[Rule] = [
    _rule("payment_id", rf"\b(?:order|txn|transaction|payment){_SEP}id{_SEP}{_DIGITAL_TOKEN}"),
    _rule("reference_no", rf"\b(?:reference|ref|utr){_NUMBER_WORD}{_SEP}{_DIGITAL_TOKEN}"),
    _rule("upi_ref", rf"\b(?:upi|payment){_SEP}ref(?:{_SEP}no\b)?{_SEP}{_DIGITAL_TOKEN}"),
    _rule("bare_id", rf"\b(?:id|txnid){_SEP}{_DIGITAL_TOKEN}"),
    _rule("txn_ref", rf"\b(?:txn|transaction){_SEP}(?:id|ref){_SEP}([A-Za-z0-9][-A-Za-z0-9]{{5,}})"),
]

PHYSICAL_RULES: list[Rule] = [
    _rule("hash_bill_no", rf"\b(?:bill|invoice)(?:\s+\w+)?{_NUMBER_WORD}\s*#\s*{_PHYSICAL_TOKEN}"),
    _rule("bill_no", rf"\b(?:bill|invoice|receipt){_NUMBER_WORD}{_SEP}{_PHYSICAL_TOKEN}"),
    _rule("serial_no", rf"\b(?:serial|s[/.]?n)\b{_NUMBER_WORD}{_SEP}{_PHYSICAL_TOKEN}"),
    _rule("hash_before_bill", rf"#\s*{_PHYSICAL_TOKEN}\s*(?=bill|invoice)"),
    _rule("tax_id", rf"\b(?:gst|cin|tin)(?:in)?{_SEP}{_PHYSICAL_TOKEN}"),
]

GENERIC_RULES: list[Rule] = [
    _rule("serial", rf"\b(?:serial|s[/.]?n)\b[\s.:#]*{_GENERIC_TOKEN}"),
    _rule("bill", rf"\b(?:bill|invoice)\b[\s.:#]*{_GENERIC_TOKEN}"),
    _rule("receipt", rf"\breceipt\b[\s.:#]*{_GENERIC_TOKEN}"),
    _rule("transaction", rf"\btransaction\b[\s.:#]*{_GENERIC_TOKEN}"),
]

DIGITAL_FALLBACK_LINES = 5
PHYSICAL_FALLBACK_LINES = 4
MIN_STANDALONE_ID = 6
MAX_STANDALONE_ID = 20

_NON_ALNUM = re.compile(r"[^A-Za-z0-9]")
_MONEY_WORDS = re.compile(r"total|amount|rs|inr|rupee", re.IGNORECASE)
_HEADER_NUMBER = re.compile(r"^#?\s*(?:no[.:]?\s*)?(\w{4,})$", re.IGNORECASE)


def first_match(rules: list[Rule], text: str) -> Optional[str]:
    """Return the token captured by the first rule that matches *text*."""
    for name, pattern in rules:
        m = pattern.search(text)
        if m:
            logger.debug("Reference rule %s matched %r", name, m.group(0))
            return m.group(1).strip()
    return None


def _standalone_id(lines: tuple[str, ...]) -> Optional[str]:
    """A single-token line near the top that looks like an identifier."""
    for line in lines[:DIGITAL_FALLBACK_LINES]:
        if len(line.split()) != 1 or _MONEY_WORDS.search(line):
            continue
        token = _NON_ALNUM.sub("", line)
        if MIN_STANDALONE_ID <= len(token) <= MAX_STANDALONE_ID and not token.isdigit():
            return token
    return None


def _header_number(lines: tuple[str, ...]) -> Optional[str]:
    for line in lines[:PHYSICAL_FALLBACK_LINES]:
        m = _HEADER_NUMBER.match(line.strip())
        if m:
            return m.group(1).strip()
    return None


def find_reference(doc: TextDocument, category: ReceiptCategory) -> Optional[str]:
    text = doc.full_text.replace("\n", " ")

    if category in (ReceiptCategory.DIGITAL_PAYMENT, ReceiptCategory.UPI_PAYMENT):
        return first_match(DIGITAL_RULES, text) or _standalone_id(doc.lines)
    if category == ReceiptCategory.PHYSICAL_RECEIPT:
        return first_match(PHYSICAL_RULES, text) or _header_number(doc.lines)
    return first_match(GENERIC_RULES, text)


def extract_reference(doc: TextDocument, category: ReceiptCategory) -> str:
    """Return the bill / transaction identifier, or ``""`` when none is found."""
    return find_reference(doc, category) or ""
