"""Golden-set benchmarking for the invoice parser.

Parses each labeled document, compares the result with the expected
vendor name, total, tax id and date, and scores every document on a
100-point scale (total 40, tax id 30, vendor name 20, date 10). A
document counts as a success above 80 points.
"""

import json
import time
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Any

from src.extraction.invoice import Invoice
from src.extraction.parser import InvoiceParser
from src.extraction.patterns import fold_text
from src.ocr.adapters import document_from_payload
from src.utils.exceptions import InvoiceEngineError
from src.utils.logger import get_logger

logger = get_logger(__name__)

FIELD_WEIGHTS: dict[str, float] = {
    "total_amount": 40.0,
    "tax_id": 30.0,
    "vendor_name": 20.0,
    "date": 10.0,
}
SUCCESS_THRESHOLD = 80.0

_DATE_FORMATS = ("%d.%m.%Y", "%Y-%m-%d", "%d/%m/%Y", "%d-%m-%Y")


@dataclass
class GoldenRecord:
    """One labeled document.

    Args:
        record_id: Identifier shown in reports.
        expected: Expected ``vendor_name``, ``total_amount``, ``tax_id``
            and ``date`` values.
        fragments_payload: Fragment records, or ``None`` for raw text.
        raw_text: Raw text fallback.
        today: Reference day for the parse; defaults to the run day.
    """

    record_id: str
    expected: dict[str, Any]
    fragments_payload: Any = None
    raw_text: str | None = None
    today: date | None = None


@dataclass
class FieldMetrics:
    """Match counts for a single field.

    Args:
        field_name: Name of the field being measured.
    """

    field_name: str
    matches: int = 0
    total: int = 0

    @property
    def accuracy(self) -> float:
        """Fraction of documents where the field matched."""
        if self.total == 0:
            return 0.0
        return self.matches / self.total


@dataclass
class DocumentScore:
    """Score of one document."""

    record_id: str
    score: float
    matched_fields: list[str]
    details: str = ""

    @property
    def is_success(self) -> bool:
        return self.score > SUCCESS_THRESHOLD


@dataclass
class BenchmarkResult:
    """Aggregated benchmark results across all documents.

    Args:
        total_documents: Number of golden records.
        documents: Per-document scores.
        field_metrics: Per-field match counts.
        avg_processing_time_ms: Average parse time in milliseconds.
        errors: Error messages for documents that failed to parse.
    """

    total_documents: int
    documents: list[DocumentScore]
    field_metrics: dict[str, FieldMetrics]
    avg_processing_time_ms: float = 0.0
    errors: list[str] = field(default_factory=list)

    @property
    def average_score(self) -> float:
        if not self.documents:
            return 0.0
        return sum(d.score for d in self.documents) / len(self.documents)

    @property
    def success_rate(self) -> float:
        """Percentage of documents scoring above the success threshold."""
        if not self.documents:
            return 0.0
        successes = sum(1 for d in self.documents if d.is_success)
        return 100.0 * successes / len(self.documents)


def _parse_expected_date(value: str) -> date | None:
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    return None


def field_matches(field_name: str, expected: Any, invoice: Invoice) -> bool:
    """Compare one expected value with the parsed invoice.

    Totals match within one cent, vendor names when the parsed name
    contains the expected one (case and diacritics folded), tax ids and
    dates exactly.
    """
    if field_name == "total_amount":
        return abs(float(expected) - invoice.total_amount) < 0.01
    if field_name == "tax_id":
        return str(expected) == invoice.vendor_tax_id
    if field_name == "vendor_name":
        return bool(expected) and fold_text(str(expected)) in fold_text(invoice.vendor_name)
    if field_name == "date":
        return _parse_expected_date(str(expected)) == invoice.invoice_date
    raise ValueError(f"Unknown golden field: {field_name}")


class GoldenEvaluator:
    """Scores an :class:`InvoiceParser` on labeled documents.

    Args:
        parser: Parser under test.
    """

    def __init__(self, parser: InvoiceParser | None = None) -> None:
        self.parser = parser or InvoiceParser()

    def score_document(self, expected: dict[str, Any], invoice: Invoice) -> tuple[float, list[str]]:
        """Weighted score of one parsed invoice.

        Args:
            expected: Expected field values; absent fields score zero.
            invoice: Parsed invoice.

        Returns:
            Tuple of (score out of 100, matched field names).
        """
        score = 0.0
        matched: list[str] = []
        for field_name, weight in FIELD_WEIGHTS.items():
            if field_name in expected and field_matches(field_name, expected[field_name], invoice):
                score += weight
                matched.append(field_name)
        return score, matched

    def evaluate(self, records: list[GoldenRecord]) -> BenchmarkResult:
        """Parse and score every record.

        Args:
            records: Golden records.

        Returns:
            Aggregated results with per-field metrics.
        """
        metrics = {name: FieldMetrics(name) for name in FIELD_WEIGHTS}
        documents: list[DocumentScore] = []
        errors: list[str] = []
        elapsed_ms = 0.0

        for record in records:
            start_time = time.time()
            try:
                fragments, raw_text = document_from_payload(
                    {"fragments": record.fragments_payload or [], "raw_text": record.raw_text}
                )
                invoice = self.parser.parse(fragments, raw_text, today=record.today)
            except (InvoiceEngineError, ValueError, KeyError) as exc:
                errors.append(f"{record.record_id}: {exc}")
                documents.append(DocumentScore(record.record_id, 0.0, [], str(exc)))
                for name in FIELD_WEIGHTS:
                    if name in record.expected:
                        metrics[name].total += 1
                continue
            elapsed_ms += (time.time() - start_time) * 1000

            score, matched = self.score_document(record.expected, invoice)
            for name in FIELD_WEIGHTS:
                if name in record.expected:
                    metrics[name].total += 1
                    if name in matched:
                        metrics[name].matches += 1

            details = (
                f"expected total {record.expected.get('total_amount')}, "
                f"found {invoice.total_amount:.2f}"
            )
            documents.append(DocumentScore(record.record_id, score, matched, details))
            logger.debug("Scored %s: %.0f", record.record_id, score)

        parsed = len(documents) - len(errors)
        return BenchmarkResult(
            total_documents=len(records),
            documents=documents,
            field_metrics=metrics,
            avg_processing_time_ms=elapsed_ms / parsed if parsed else 0.0,
            errors=errors,
        )

    def generate_report(
        self, result: BenchmarkResult, output_path: Path | None = None
    ) -> str:
        """Generate a human-readable benchmark report.

        Args:
            result: Benchmark results to format.
            output_path: Optional path to write the report file.

        Returns:
            Formatted report string.
        """
        lines = [
            "=" * 60,
            "BENCHMARK REPORT",
            "=" * 60,
            f"Total Documents:      {result.total_documents}",
            f"Average Score:        {result.average_score:.1f}",
            f"Success Rate:         {result.success_rate:.1f}%",
            f"Avg Processing Time:  {result.avg_processing_time_ms:.1f}ms",
            "",
            "Field-Level Accuracy:",
            "-" * 60,
            f"{'Field':<20} {'Weight':>10} {'Matches':>10} {'Accuracy':>10}",
            "-" * 60,
        ]

        for name, metrics in result.field_metrics.items():
            lines.append(
                f"{name:<20} {FIELD_WEIGHTS[name]:>10.0f} "
                f"{metrics.matches:>4}/{metrics.total:<5} {metrics.accuracy:>10.2%}"
            )

        lines.extend(["-" * 60, "", "Documents:"])
        for doc in result.documents:
            status = "PASS" if doc.is_success else "FAIL"
            lines.append(f"  [{status}] {doc.record_id:<24} {doc.score:>5.0f}  {doc.details}")

        if result.errors:
            lines.append("")
            lines.append("Errors:")
            for error in result.errors:
                lines.append(f"  - {error}")
        lines.append("=" * 60)

        report = "\n".join(lines)

        if output_path:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            with open(output_path, "w", encoding="utf-8") as f:
                f.write(report)
            logger.info("Report written to %s", output_path)

        return report


def load_golden_set(path: Path) -> list[GoldenRecord]:
    """Load golden records from a JSON file.

    Format: a list of objects with ``id``, ``expected`` and either
    ``fragments`` (records as accepted by the CLI) or ``raw_text``; an
    optional ``today`` (ISO date) pins the reference day.

    Args:
        path: Path to the golden set.

    Returns:
        Golden records in file order.

    Raises:
        ValueError: If the file is not a JSON list.
    """
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise ValueError(f"Golden set must be a JSON list: {path}")

    records: list[GoldenRecord] = []
    for i, item in enumerate(data):
        today = item.get("today")
        records.append(
            GoldenRecord(
                record_id=str(item.get("id", i)),
                expected=item.get("expected", {}),
                fragments_payload=item.get("fragments"),
                raw_text=item.get("raw_text"),
                today=date.fromisoformat(today) if today else None,
            )
        )
    logger.info("Loaded %d golden records from %s", len(records), path)
    return records
