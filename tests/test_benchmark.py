"""Tests for the golden-set benchmarking system."""

import json
from datetime import date
from pathlib import Path

import pytest

from src.benchmark.evaluator import (
    FIELD_WEIGHTS,
    BenchmarkResult,
    DocumentScore,
    FieldMetrics,
    GoldenEvaluator,
    GoldenRecord,
    field_matches,
    load_golden_set,
)
from src.extraction.invoice import Invoice

RAW_INVOICE = (
    "Bereket Gıda Ltd. Şti.\n"
    "VKN: 1234567890\n"
    "Fatura Tarihi: 02.05.2024\n"
    "Ödenecek Tutar 59,00\n"
)
EXPECTED = {
    "vendor_name": "Bereket Gıda",
    "total_amount": 59.0,
    "tax_id": "1234567890",
    "date": "02.05.2024",
}


def _invoice() -> Invoice:
    return Invoice(
        vendor_name="BEREKET GIDA LTD. ŞTİ.",
        vendor_tax_id="1234567890",
        invoice_date=date(2024, 5, 2),
        total_amount=59.0,
    )


class TestFieldMetrics:
    """Tests for the FieldMetrics data class."""

    def test_accuracy_perfect(self) -> None:
        assert FieldMetrics("date", matches=5, total=5).accuracy == 1.0

    def test_accuracy_partial(self) -> None:
        assert FieldMetrics("date", matches=3, total=5).accuracy == 0.6

    def test_accuracy_zero_total(self) -> None:
        assert FieldMetrics("date").accuracy == 0.0


class TestBenchmarkResult:
    """Tests for aggregated results."""

    def test_rates(self) -> None:
        result = BenchmarkResult(
            total_documents=2,
            documents=[DocumentScore("a", 100.0, []), DocumentScore("b", 70.0, [])],
            field_metrics={},
        )
        assert result.average_score == 85.0
        assert result.success_rate == 50.0

    def test_threshold_is_exclusive(self) -> None:
        assert not DocumentScore("a", 80.0, []).is_success
        assert DocumentScore("a", 90.0, []).is_success

    def test_empty(self) -> None:
        result = BenchmarkResult(total_documents=0, documents=[], field_metrics={})
        assert result.average_score == 0.0
        assert result.success_rate == 0.0


class TestFieldMatches:
    """Tests for per-field comparison rules."""

    def test_total_within_a_cent(self) -> None:
        assert field_matches("total_amount", 59.005, _invoice())
        assert not field_matches("total_amount", 59.5, _invoice())

    def test_vendor_name_folded_containment(self) -> None:
        assert field_matches("vendor_name", "Bereket Gıda", _invoice())
        assert not field_matches("vendor_name", "Başka Firma", _invoice())
        assert not field_matches("vendor_name", "", _invoice())

    def test_tax_id_exact(self) -> None:
        assert field_matches("tax_id", "1234567890", _invoice())
        assert not field_matches("tax_id", "1234567891", _invoice())

    @pytest.mark.parametrize("value", ["02.05.2024", "2024-05-02", "02/05/2024"])
    def test_date_formats(self, value: str) -> None:
        assert field_matches("date", value, _invoice())

    def test_unknown_field(self) -> None:
        with pytest.raises(ValueError):
            field_matches("iban", "TR00", _invoice())


class TestGoldenEvaluator:
    """Tests for document scoring and evaluation."""

    def setup_method(self) -> None:
        self.evaluator = GoldenEvaluator()

    def test_weights_sum_to_hundred(self) -> None:
        assert sum(FIELD_WEIGHTS.values()) == 100.0

    def test_score_document_full(self) -> None:
        score, matched = self.evaluator.score_document(EXPECTED, _invoice())
        assert score == 100.0
        assert set(matched) == set(FIELD_WEIGHTS)

    def test_score_document_partial(self) -> None:
        expected = dict(EXPECTED, total_amount=60.0)
        score, matched = self.evaluator.score_document(expected, _invoice())
        assert score == 60.0
        assert "total_amount" not in matched

    def test_evaluate(self) -> None:
        records = [
            GoldenRecord("good", EXPECTED, raw_text=RAW_INVOICE, today=date(2024, 6, 1)),
            GoldenRecord("empty", EXPECTED),
        ]
        result = self.evaluator.evaluate(records)
        assert result.total_documents == 2
        assert result.documents[0].score == 100.0
        assert result.documents[1].score == 0.0
        assert len(result.errors) == 1
        assert result.success_rate == 50.0
        assert result.field_metrics["total_amount"].matches == 1
        assert result.field_metrics["total_amount"].total == 2

    def test_evaluate_fragments(self, full_invoice_fragments) -> None:
        payload = [
            {
                "text": f.text,
                "x": f.rect.x,
                "y": f.rect.y,
                "width": f.rect.width,
                "height": f.rect.height,
            }
            for f in full_invoice_fragments
        ]
        record = GoldenRecord(
            "fragments",
            {"total_amount": 59.0, "tax_id": "1234567890", "vendor_name": "ABC FIRMA"},
            fragments_payload=payload,
        )
        result = self.evaluator.evaluate([record])
        assert result.documents[0].score == 90.0
        assert result.success_rate == 100.0

    def test_generate_report(self, tmp_path: Path) -> None:
        result = self.evaluator.evaluate(
            [GoldenRecord("good", EXPECTED, raw_text=RAW_INVOICE, today=date(2024, 6, 1))]
        )
        output = tmp_path / "reports" / "benchmark.txt"
        report = self.evaluator.generate_report(result, output)
        assert "BENCHMARK REPORT" in report
        assert "[PASS] good" in report
        assert output.read_text(encoding="utf-8") == report

    def test_report_lists_errors(self) -> None:
        result = self.evaluator.evaluate([GoldenRecord("empty", EXPECTED)])
        report = self.evaluator.generate_report(result)
        assert "Errors:" in report
        assert "[FAIL] empty" in report


class TestLoadGoldenSet:
    """Tests for golden set loading."""

    def test_load(self, tmp_path: Path) -> None:
        path = tmp_path / "golden.json"
        path.write_text(
            json.dumps(
                [
                    {
                        "id": "doc-1",
                        "expected": EXPECTED,
                        "raw_text": RAW_INVOICE,
                        "today": "2024-06-01",
                    },
                    {"expected": {}, "fragments": []},
                ]
            ),
            encoding="utf-8",
        )
        records = load_golden_set(path)
        assert [r.record_id for r in records] == ["doc-1", "1"]
        assert records[0].today == date(2024, 6, 1)
        assert records[0].raw_text == RAW_INVOICE
        assert records[1].today is None

    def test_not_a_list(self, tmp_path: Path) -> None:
        path = tmp_path / "golden.json"
        path.write_text(json.dumps({"id": "x"}), encoding="utf-8")
        with pytest.raises(ValueError):
            load_golden_set(path)
