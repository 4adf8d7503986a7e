"""
Unit tests for the recordscan engine — classifier, reference, amount, description, full pipeline.
"""
import pathlib
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from recordscan.config import settings
from recordscan.pipeline import analyze
from recordscan.pipeline.amount import (
    extract_amount,
    harvest_candidates,
    parse_amount,
    select_candidate,
)
from recordscan.pipeline.classifier import classify, decide, score_document
from recordscan.pipeline.cleanup import cleanup
from recordscan.pipeline.description import extract_description
from recordscan.pipeline.reference import extract_reference
from recordscan.schemas import (
    AmountCandidate,
    CategoryScores,
    ExtractionResult,
    ReceiptCategory,
    TextDocument,
)

FIXTURES = pathlib.Path(__file__).resolve().parent.parent / "fixtures"

PHYSICAL = ReceiptCategory.PHYSICAL_RECEIPT
DIGITAL = ReceiptCategory.DIGITAL_PAYMENT
UPI = ReceiptCategory.UPI_PAYMENT
UNKNOWN = ReceiptCategory.UNKNOWN

SUPERMART = TextDocument.from_lines(
    ["SuperMart", "Bill No: INV-2024-117", "2 x 150", "Grand Total Rs. 450"]
)
RAJ_TRADERS = TextDocument.from_lines(
    ["Paid to Raj Traders", "UPI Ref No 400881234567", "Amount: Rs 1200"]
)

# longest text the service accepts; every rule must stay linear up to it
LONGEST_TEXT = settings.MAX_TEXT_LENGTH
TIME_LIMIT = 1.0


def timed(fn, *args):
    started = time.perf_counter()
    result = fn(*args)
    return result, time.perf_counter() - started


# =====================================================================
# Text document
# =====================================================================
class TestTextDocument:
    def test_from_text_lines_and_blocks(self):
        doc = TextDocument.from_text("Shop\n  Main Road \n\nTotal 40\n")
        assert doc.lines == ("Shop", "Main Road", "Total 40")
        assert doc.blocks == ("Shop\nMain Road", "Total 40")
        assert doc.full_text == "Shop\n  Main Road \n\nTotal 40\n"

    def test_from_lines(self):
        doc = TextDocument.from_lines(["a", "b"])
        assert doc.full_text == "a\nb"
        assert doc.blocks == ("a\nb",)

    def test_empty(self):
        doc = TextDocument.empty()
        assert doc.full_text == ""
        assert doc.lines == ()
        assert doc.blocks == ()


# =====================================================================
# Classifier
# =====================================================================
class TestClassifier:
    def test_physical(self):
        assert classify(SUPERMART) == PHYSICAL

    def test_upi(self):
        assert classify(RAJ_TRADERS) == UPI

    def test_upi_alone_wins_tie_break(self):
        doc = TextDocument.from_text("upi")
        scores = score_document(doc)
        assert scores.upi == 3
        assert scores.digital == 1
        assert classify(doc) == UPI

    def test_digital(self):
        doc = TextDocument.from_text("Payment successful\nTransaction ID: ABC123456")
        assert classify(doc) == DIGITAL

    def test_unknown(self):
        assert classify(TextDocument.from_text("random unrelated text")) == UNKNOWN
        assert classify(TextDocument.empty()) == UNKNOWN

    def test_repeated_phrase_counts_once(self):
        scores = score_document(TextDocument.from_text("bill bill bill"))
        assert scores.physical == 2

    def test_item_line_bonus(self):
        scores = score_document(TextDocument.from_text("3 x 40"))
        assert scores.physical == 2
        assert classify(TextDocument.from_text("3 x 40")) == PHYSICAL

    def test_payment_id_bonus(self):
        doc = TextDocument.from_text("Payment ID: AB12CD")
        assert score_document(doc).digital == 2
        assert classify(doc) == DIGITAL

    def test_decide_order(self):
        assert decide(CategoryScores(physical=9, digital=2, upi=3)) == UPI
        assert decide(CategoryScores(physical=1, digital=5, upi=3)) == DIGITAL
        assert decide(CategoryScores(physical=4, digital=4, upi=0)) == PHYSICAL
        assert decide(CategoryScores(physical=0, digital=0, upi=2)) == UNKNOWN


# =====================================================================
# Reference extractor
# =====================================================================
class TestReference:
    def test_specific_rule_beats_generic_id(self):
        doc = TextDocument.from_text("id: ABC123\ntransaction id: XYZ789")
        assert extract_reference(doc, DIGITAL) == "XYZ789"

    def test_upi_ref_number(self):
        assert extract_reference(RAJ_TRADERS, UPI) == "400881234567"

    def test_hyphenated_digital_id(self):
        doc = TextDocument.from_text("Reference Number: TXN-88-4521")
        assert extract_reference(doc, DIGITAL) == "TXN-88-4521"

    def test_digital_standalone_fallback(self):
        doc = TextDocument.from_lines(["Payment successful", "AXB12345Q", "Amount: Rs 99"])
        assert extract_reference(doc, DIGITAL) == "AXB12345Q"

    def test_standalone_skips_numbers_and_money_lines(self):
        doc = TextDocument.from_lines(["123456789", "Rs1200000", "Done"])
        assert extract_reference(doc, DIGITAL) == ""

    def test_bill_number(self):
        assert extract_reference(SUPERMART, PHYSICAL) == "INV-2024-117"

    def test_serial_number(self):
        doc = TextDocument.from_text("Fresh Mart\nS/N: 00-4471\nTotal 120")
        assert extract_reference(doc, PHYSICAL) == "00-4471"

    def test_gstin(self):
        doc = TextDocument.from_text("Fresh Mart\nGSTIN: 29ABCDE1234F1Z5")
        assert extract_reference(doc, PHYSICAL) == "29ABCDE1234F1Z5"

    def test_hash_after_label_beats_following_word(self):
        doc = TextDocument.from_text("Fresh Mart\nInvoice Copy #A-5512\nTotal 120")
        assert extract_reference(doc, PHYSICAL) == "A-5512"

    def test_hash_with_number_word(self):
        doc = TextDocument.from_text("Fresh Mart\nBill No #1234")
        assert extract_reference(doc, PHYSICAL) == "1234"

    def test_hash_before_invoice(self):
        doc = TextDocument.from_text("Fresh Mart\n#A4521 Invoice")
        assert extract_reference(doc, PHYSICAL) == "A4521"

    @pytest.mark.parametrize(
        "prefix, category",
        [
            ("ref", DIGITAL),
            ("UPI Ref No", UPI),
            ("txn id", DIGITAL),
            ("Bill No", PHYSICAL),
            ("S/N", PHYSICAL),
            ("receipt", UNKNOWN),
        ],
    )
    def test_long_separator_run_is_fast(self, prefix, category):
        doc = TextDocument.from_text(prefix + " " * LONGEST_TEXT)
        reference, elapsed = timed(extract_reference, doc, category)
        assert reference == ""
        assert elapsed < TIME_LIMIT

    def test_physical_header_fallback(self):
        doc = TextDocument.from_lines(["#B7781", "Fresh Mart", "Total 120"])
        assert extract_reference(doc, PHYSICAL) == "B7781"

    def test_generic_requires_digit(self):
        assert extract_reference(TextDocument.from_text("Receipt 88231"), UNKNOWN) == "88231"
        assert extract_reference(TextDocument.from_text("receipt for you"), UNKNOWN) == ""

    def test_not_found(self):
        doc = TextDocument.from_text("random unrelated text with no numbers")
        assert extract_reference(doc, UNKNOWN) == ""


# =====================================================================
# Amount extractor
# =====================================================================
class TestAmount:
    def test_near_tie_prefers_larger_amount(self):
        chosen = select_candidate([
            AmountCandidate(value=500, confidence=0.85),
            AmountCandidate(value=1200, confidence=0.80),
        ])
        assert chosen.value == 1200

    def test_clear_winner_kept(self):
        chosen = select_candidate([
            AmountCandidate(value=450, confidence=0.9),
            AmountCandidate(value=2024, confidence=0.5),
        ])
        assert chosen.value == 450

    def test_select_empty(self):
        assert select_candidate([]) is None

    def test_parse_amount(self):
        assert parse_amount("1,20,000") == 120000.0
        assert parse_amount("2,340.50") == 2340.5
        assert parse_amount(",") is None
        assert parse_amount("0") is None

    def test_grand_total_line(self):
        amount, confidence = extract_amount(SUPERMART, PHYSICAL)
        assert amount == 450.0
        assert confidence >= 0.9

    def test_subtotal_loses_to_grand_total(self):
        doc = TextDocument.from_lines(
            ["Fresh Mart", "Subtotal Rs. 400", "Tax Rs. 20", "Grand Total Rs. 420"]
        )
        assert extract_amount(doc, PHYSICAL)[0] == 420.0

    def test_digital_amount(self):
        assert extract_amount(RAJ_TRADERS, UPI) == (1200.0, 0.8)

    def test_candidates_carry_context(self):
        candidates = harvest_candidates(RAJ_TRADERS, UPI)
        assert candidates
        assert all("1200" in c.context for c in candidates)

    def test_unknown_loose_pattern(self):
        doc = TextDocument.from_text("Sharma & Sons\nReceived 750/- only")
        assert extract_amount(doc, UNKNOWN)[0] == 750.0

    def test_permissive_fallback(self):
        doc = TextDocument.from_text("Paid Rs:275 to shop")
        assert extract_amount(doc, UNKNOWN) == (275.0, 0.3)

    def test_negative_total_is_not_a_candidate(self):
        doc = TextDocument.from_lines(["Fresh Mart", "Bill No: 4471", "Grand Total: -450"])
        assert harvest_candidates(doc, PHYSICAL) == []
        assert analyze(doc).amount == 0.0

    def test_negative_after_currency_rejected(self):
        doc = TextDocument.from_text("Refund Rs -200")
        assert extract_amount(doc, UNKNOWN) == (0.0, 0.0)
        doc = TextDocument.from_text("Amount: Rs -1200")
        assert extract_amount(doc, DIGITAL) == (0.0, 0.0)

    @pytest.mark.parametrize(
        "text, category",
        [
            ("Total" + " " * LONGEST_TEXT, PHYSICAL),
            ("Amount" + " " * LONGEST_TEXT, DIGITAL),
            ("Rs" + " " * LONGEST_TEXT, UNKNOWN),
            ("1" * LONGEST_TEXT, UNKNOWN),
        ],
    )
    def test_long_runs_are_fast(self, text, category):
        doc = TextDocument.from_text(text)
        found, elapsed = timed(extract_amount, doc, category)
        assert found == (0.0, 0.0)
        assert elapsed < TIME_LIMIT

    def test_unparsable_candidates_dropped(self):
        doc = TextDocument.from_text("Rs ,,, INR ,")
        assert extract_amount(doc, UNKNOWN) == (0.0, 0.0)

    def test_not_found(self):
        doc = TextDocument.from_text("random unrelated text with no numbers")
        assert extract_amount(doc, UNKNOWN) == (0.0, 0.0)


# =====================================================================
# Description extractor
# =====================================================================
class TestDescription:
    def test_paid_to(self):
        assert extract_description(RAJ_TRADERS, UPI) == "Raj Traders"

    def test_merchant_label(self):
        doc = TextDocument.from_lines(["Merchant: Fresh Basket Foods", "Amount: INR 20"])
        assert extract_description(doc, DIGITAL) == "Fresh Basket Foods"

    def test_label_on_own_line(self):
        doc = TextDocument.from_lines(["Paid to", "RAJ KIRANA STORE", "Rs 350"])
        assert extract_description(doc, UPI) == "RAJ KIRANA STORE"

    def test_label_with_colon_on_own_line(self):
        doc = TextDocument.from_lines(["Paid to:", "RAJ KIRANA STORE", "Amount: Rs 350"])
        assert extract_description(doc, UPI) == "RAJ KIRANA STORE"
        doc = TextDocument.from_lines(["Merchant:", "Fresh Basket Foods", "Amount: INR 20"])
        assert extract_description(doc, DIGITAL) == "Fresh Basket Foods"

    def test_long_handle_line_is_fast(self):
        doc = TextDocument.from_lines(["UPI payment", "vpa " + "a" * LONGEST_TEXT])
        description, elapsed = timed(extract_description, doc, UPI)
        assert description.startswith("vpa a")
        assert elapsed < TIME_LIMIT

    def test_upi_handle(self):
        doc = TextDocument.from_lines(["UPI payment", "vpa: ravi_kumar@oksbi"])
        assert extract_description(doc, UPI) == "ravi kumar"

    def test_store_name(self):
        assert extract_description(SUPERMART, PHYSICAL) == "SuperMart"

    def test_item_list(self):
        doc = TextDocument.from_lines([
            "Bill No 12", "Date 1/1", "Invoice",
            "Item Qty", "Milk 2", "Bread 1", "Eggs 12", "Total 50",
        ])
        assert extract_description(doc, PHYSICAL) == "Milk 2, Bread 1"

    def test_largest_block_truncated(self):
        doc = TextDocument(full_text="", lines=("x",), blocks=("short", "a" * 150))
        assert extract_description(doc, UNKNOWN) == "a" * 100 + "..."

    def test_first_line_fallback(self):
        doc = TextDocument.from_lines(["Bill No 12", "Date 1/1", "Invoice"])
        assert extract_description(doc, PHYSICAL) == "Bill No 12"

    def test_empty(self):
        assert extract_description(TextDocument.empty(), UNKNOWN) == ""


# =====================================================================
# Cleanup
# =====================================================================
class TestCleanup:
    def test_strips_symbols_and_collapses_whitespace(self):
        assert cleanup("  Hello\t\tWorld ₹ 50  ") == "Hello World 50"

    def test_drops_control_characters(self):
        assert cleanup("A\x00B\nC") == "AB C"

    @pytest.mark.parametrize(
        "text",
        ["", "   ", "Raj  Traders ✓", "a\x07\tb\r\nc", "Sharma & Sons — 500/-", "…₹…"],
    )
    def test_idempotent(self, text):
        once = cleanup(text)
        assert cleanup(once) == once


# =====================================================================
# Full pipeline
# =====================================================================
class TestFullPipeline:
    def test_physical_receipt(self):
        result = analyze(SUPERMART)
        assert result.category == PHYSICAL
        assert result.reference_number == "INV-2024-117"
        assert result.amount == 450.0
        assert result.description == "SuperMart"
        assert result.has_reference
        assert result.has_amount
        assert result.has_description

    def test_upi_payment(self):
        result = analyze(RAJ_TRADERS)
        assert result.category == UPI
        assert result.reference_number == "400881234567"
        assert result.amount == 1200.0
        assert result.description == "Raj Traders"

    def test_nothing_extractable(self):
        text = "random unrelated text with no numbers"
        result = analyze(TextDocument.from_text(text))
        assert result.category == UNKNOWN
        assert result.amount == 0.0
        assert result.reference_number == ""
        assert result.description == text
        assert not result.has_amount
        assert not result.has_reference
        assert result.has_description

    def test_empty_document(self):
        result = analyze(TextDocument.empty())
        assert result == ExtractionResult()
        assert not (result.has_reference or result.has_amount or result.has_description)

    def test_deterministic(self):
        assert analyze(SUPERMART) == analyze(SUPERMART)

    def test_category_serializes_as_name(self):
        assert analyze(RAJ_TRADERS).model_dump(mode="json")["category"] == "UPI_PAYMENT"

    def test_with_overrides(self):
        result = analyze(SUPERMART)
        edited = result.with_overrides(amount=455.0, description="SuperMart Ltd")
        assert edited.amount == 455.0
        assert edited.description == "SuperMart Ltd"
        assert edited.reference_number == result.reference_number
        assert result.amount == 450.0

    def test_with_overrides_rejects_unknown_field(self):
        with pytest.raises(ValueError):
            analyze(SUPERMART).with_overrides(merchant="x")

    def test_concurrent_calls_match_sequential(self):
        docs = [SUPERMART, RAJ_TRADERS] * 8
        with ThreadPoolExecutor(max_workers=4) as pool:
            parallel = list(pool.map(analyze, docs))
        assert parallel == [analyze(d) for d in docs]


# =====================================================================
# Fixtures
# =====================================================================
EXPECTED = {
    "sample_physical_restaurant": (PHYSICAL, "4521", 231.0, "Hotel Saravana Bhavan"),
    "sample_gpay_upi": (DIGITAL, "412345678901", 1499.0, "Sharma Electronics"),
    "sample_phonepe_upi": (UPI, "406512348877", 350.0, "RAJ KIRANA STORE"),
    "sample_card_slip": (DIGITAL, "TXN-88-4521", 2340.5, "Fresh Basket Foods"),
    "sample_handwritten_memo": (
        UNKNOWN, "", 500.0, "Sharma & Sons Received with thanks Rs 500/- only"
    ),
}


@pytest.mark.parametrize(
    "fixture",
    sorted(FIXTURES.glob("sample_*.txt")),
    ids=lambda p: p.stem,
)
def test_fixture_extraction(fixture: pathlib.Path):
    text = fixture.read_text(encoding="utf-8")
    result = analyze(TextDocument.from_text(text))
    category, reference, amount, description = EXPECTED[fixture.stem]
    assert result.category == category
    assert result.reference_number == reference
    assert result.amount == amount
    assert result.description == description
