"""
recordscan extraction engine.

Orchestrates: classify → reference → amount → description → result.
"""
import logging

from recordscan.pipeline.amount import extract_amount
from recordscan.pipeline.classifier import classify
from recordscan.pipeline.description import extract_description
from recordscan.pipeline.reference import extract_reference
from recordscan.schemas import ExtractionResult, TextDocument

logger = logging.getLogger(__name__)


def analyze(doc: TextDocument) -> ExtractionResult:
    """Extract category, reference, amount and description from *doc*.

    Pure and stateless; safe to call concurrently from worker threads.
    """
    category = classify(doc)
    logger.info("Classified as: %s", category.name)

    reference = extract_reference(doc, category)
    amount, confidence = extract_amount(doc, category)
    description = extract_description(doc, category)
    logger.info(
        "Extracted reference=%r amount=%.2f (confidence %.2f) description=%r",
        reference, amount, confidence, description,
    )

    return ExtractionResult(
        full_text=doc.full_text,
        reference_number=reference,
        amount=amount,
        description=description,
        category=category,
    )
