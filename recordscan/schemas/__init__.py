from recordscan.schemas.base import (
    AmountCandidate,
    AnalyzeRequest,
    AnalyzeResponse,
    CategoryScores,
    ClassifyResponse,
    ExtractionResult,
    ReceiptCategory,
    TextDocument,
)

__all__ = [
    "AmountCandidate",
    "AnalyzeRequest",
    "AnalyzeResponse",
    "CategoryScores",
    "ClassifyResponse",
    "ExtractionResult",
    "ReceiptCategory",
    "TextDocument",
]
