"""
recordscan contracts — pydantic v2 models shared by the pipeline and the API.
"""
from __future__ import annotations

import re
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

_BLANK_LINE = re.compile(r"\n\s*\n")


# ---------------------------------------------------------------------------
# Input
# ---------------------------------------------------------------------------

class TextDocument(BaseModel):
    """Recognized text of one image, in reading order."""
    model_config = ConfigDict(frozen=True)

    full_text: str = ""
    lines: tuple[str, ...] = ()
    blocks: tuple[str, ...] = Field(
        default=(), description="Larger text groupings, each covering one or more lines"
    )

    @classmethod
    def empty(cls) -> TextDocument:
        return cls()

    @classmethod
    def from_text(cls, text: str) -> TextDocument:
        """Build a document from plain text.

        Lines are the non-blank lines; blocks are runs of lines separated
        by at least one blank line.
        """
        lines = tuple(l.strip() for l in text.splitlines() if l.strip())
        blocks = tuple(
            "\n".join(l.strip() for l in chunk.splitlines() if l.strip())
            for chunk in _BLANK_LINE.split(text)
            if chunk.strip()
        )
        return cls(full_text=text, lines=lines, blocks=blocks)

    @classmethod
    def from_lines(cls, lines: list[str]) -> TextDocument:
        joined = "\n".join(lines)
        return cls(
            full_text=joined,
            lines=tuple(lines),
            blocks=(joined,) if joined.strip() else (),
        )


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

class ReceiptCategory(str, Enum):
    """Provenance of a payment record. Values equal names for serialization."""
    PHYSICAL_RECEIPT = "PHYSICAL_RECEIPT"
    DIGITAL_PAYMENT = "DIGITAL_PAYMENT"
    UPI_PAYMENT = "UPI_PAYMENT"
    UNKNOWN = "UNKNOWN"


class CategoryScores(BaseModel):
    model_config = ConfigDict(frozen=True)

    physical: int = 0
    digital: int = 0
    upi: int = 0


# ---------------------------------------------------------------------------
# Amount scoring
# ---------------------------------------------------------------------------

class AmountCandidate(BaseModel):
    """A provisionally matched monetary value awaiting selection."""
    model_config = ConfigDict(frozen=True)

    value: float = Field(..., ge=0)
    confidence: float = Field(..., ge=0, le=1)
    context: str = Field("", description="Text surrounding the match")

    @property
    def rank(self) -> tuple[float, float]:
        return (self.confidence, self.value)


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------

class ExtractionResult(BaseModel):
    """Fields extracted from one document.

    Empty string and ``0.0`` mean "not found".
    """
    model_config = ConfigDict(frozen=True)

    full_text: str = ""
    reference_number: str = ""
    amount: float = Field(0.0, ge=0)
    description: str = ""
    category: ReceiptCategory = ReceiptCategory.UNKNOWN

    @property
    def has_reference(self) -> bool:
        return bool(self.reference_number)

    @property
    def has_amount(self) -> bool:
        return self.amount > 0

    @property
    def has_description(self) -> bool:
        return bool(self.description)

    def with_overrides(self, **changes) -> ExtractionResult:
        """Return a copy with caller-supplied values replacing extracted ones."""
        unknown = set(changes) - set(type(self).model_fields)
        if unknown:
            raise ValueError(f"Unknown result fields: {', '.join(sorted(unknown))}")
        return type(self).model_validate({**self.model_dump(), **changes})


# ---------------------------------------------------------------------------
# API request / response envelopes
# ---------------------------------------------------------------------------

class AnalyzeRequest(BaseModel):
    raw_text: str = ""
    lines: Optional[list[str]] = None
    blocks: Optional[list[str]] = None

    def to_document(self) -> TextDocument:
        if self.lines is None:
            return TextDocument.from_text(self.raw_text)
        full_text = self.raw_text or "\n".join(self.lines)
        if self.blocks is not None:
            blocks = tuple(self.blocks)
        else:
            blocks = (full_text,) if full_text.strip() else ()
        return TextDocument(full_text=full_text, lines=tuple(self.lines), blocks=blocks)

    def is_blank(self) -> bool:
        if self.raw_text.strip():
            return False
        return not any(l.strip() for l in (self.lines or []))


class AnalyzeResponse(BaseModel):
    result: ExtractionResult


class ClassifyResponse(BaseModel):
    category: ReceiptCategory
    scores: CategoryScores
