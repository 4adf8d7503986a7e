"""
recordscan API endpoints.

POST /api/analyze         — recognized text → extraction result
POST /api/analyze/batch   — several documents, results in input order
POST /api/classify        — category + raw vocabulary scores
"""
from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException

from recordscan.config import settings
from recordscan.pipeline import analyze
from recordscan.pipeline.classifier import decide, score_document
from recordscan.schemas import (
    AnalyzeRequest,
    AnalyzeResponse,
    ClassifyResponse,
    TextDocument,
)

logger = logging.getLogger(__name__)
router = APIRouter()


def _document(req: AnalyzeRequest) -> TextDocument:
    if req.is_blank():
        raise HTTPException(status_code=400, detail="raw_text or lines must not be empty")
    doc = req.to_document()
    if len(doc.full_text) > settings.MAX_TEXT_LENGTH:
        raise HTTPException(
            status_code=413,
            detail=f"text exceeds {settings.MAX_TEXT_LENGTH} characters",
        )
    return doc


# ── POST /api/analyze ────────────────────────────────────────────────────
@router.post("/analyze", response_model=AnalyzeResponse)
def analyze_text(req: AnalyzeRequest):
    doc = _document(req)
    logger.info("Analyze: lines=%d  len=%d", len(doc.lines), len(doc.full_text))
    return AnalyzeResponse(result=analyze(doc))


# ── POST /api/analyze/batch ──────────────────────────────────────────────
@router.post("/analyze/batch", response_model=list[AnalyzeResponse])
def analyze_batch(reqs: list[AnalyzeRequest]):
    docs = [_document(r) for r in reqs]
    logger.info("Batch analyze: %d documents", len(docs))
    return [AnalyzeResponse(result=analyze(doc)) for doc in docs]


# ── POST /api/classify ───────────────────────────────────────────────────
@router.post("/classify", response_model=ClassifyResponse)
def classify_text(req: AnalyzeRequest):
    doc = _document(req)
    scores = score_document(doc)
    return ClassifyResponse(category=decide(scores), scores=scores)
