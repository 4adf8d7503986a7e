"""
recordscan — heuristic field extraction for photographed payment records.
"""
from recordscan.pipeline import analyze
from recordscan.schemas import ExtractionResult, ReceiptCategory, TextDocument

__all__ = ["analyze", "ExtractionResult", "ReceiptCategory", "TextDocument"]
