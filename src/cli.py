"""Command-line interface for parsing invoices from OCR fragments.

Provides subcommands to parse one document, parse a folder of
documents to JSON Lines, and score the engine against a golden set.

Input files are either ``.json`` (a list of fragment records, or an
object with ``fragments`` and/or ``raw_text``) or ``.txt`` (raw text).
"""

import argparse
import json
import sys
import time
from pathlib import Path

from src.benchmark.evaluator import GoldenEvaluator, load_golden_set
from src.extraction.parser import InvoiceParser
from src.layout.geometry import Fragment
from src.ocr.adapters import document_from_payload
from src.utils.config import load_config
from src.utils.exceptions import InvoiceEngineError
from src.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)

_SUPPORTED_EXTENSIONS = ("*.json", "*.txt")


def _find_documents(input_dir: Path) -> list[Path]:
    """Find all supported input files in a directory.

    Args:
        input_dir: Directory to scan.

    Returns:
        Sorted list of file paths.
    """
    files: list[Path] = []
    for ext in _SUPPORTED_EXTENSIONS:
        files.extend(input_dir.glob(ext))
        files.extend(input_dir.glob(ext.upper()))
    return sorted(set(files))


def load_document(path: Path, origin: str = "top-left") -> tuple[list[Fragment], str | None]:
    """Read one input file.

    Args:
        path: ``.json`` fragments file or ``.txt`` raw text file.
        origin: Coordinate origin of JSON records.

    Returns:
        Tuple of (fragments, raw_text).
    """
    if path.suffix.lower() == ".txt":
        return [], path.read_text(encoding="utf-8")
    with open(path, encoding="utf-8") as f:
        return document_from_payload(json.load(f), origin)


def parse_single(
    file_path: Path,
    parser: InvoiceParser | None = None,
    include_debug_regions: bool = False,
    origin: str = "top-left",
) -> dict[str, object]:
    """Parse one document and return the invoice as a dictionary.

    Args:
        file_path: Input file.
        parser: Parser to use; built from the loaded config if omitted.
        include_debug_regions: Whether to report debug regions.
        origin: Coordinate origin of JSON records.

    Returns:
        Dictionary with the filename and invoice fields.
    """
    parser = parser or InvoiceParser(load_config())
    fragments, raw_text = load_document(file_path, origin)
    invoice = parser.parse(fragments, raw_text, include_debug_regions=include_debug_regions)
    result: dict[str, object] = {"filename": file_path.name}
    result.update(invoice.to_dict())
    return result


def process_folder(
    input_dir: Path,
    output_path: Path,
    verbose: bool = False,
) -> dict[str, int]:
    """Parse every document in a folder and write JSON Lines.

    Args:
        input_dir: Directory containing input files.
        output_path: Path for the output ``.jsonl`` file.
        verbose: Whether to print per-file progress.

    Returns:
        Summary dict with total, successful, and failed counts.
    """
    parser = InvoiceParser(load_config())

    files = _find_documents(input_dir)
    if not files:
        logger.warning("No documents found in %s", input_dir)
        return {"total": 0, "successful": 0, "failed": 0}

    logger.info("Found %d documents to process", len(files))

    results: list[dict[str, object]] = []
    successful = 0
    failed = 0

    for i, file_path in enumerate(files, 1):
        if verbose:
            print(f"Processing [{i}/{len(files)}]: {file_path.name}")

        start_time = time.time()
        try:
            result = parse_single(file_path, parser)
            result["status"] = "success"
            result["processing_time_s"] = round(time.time() - start_time, 4)
            results.append(result)
            successful += 1
        except (InvoiceEngineError, ValueError, KeyError) as exc:
            logger.error("Failed to process %s: %s", file_path.name, exc)
            results.append(
                {
                    "filename": file_path.name,
                    "status": "failed",
                    "error": str(exc),
                }
            )
            failed += 1

    _write_jsonl(results, output_path)
    logger.info("Results written to %s", output_path)

    summary = {"total": len(files), "successful": successful, "failed": failed}
    _print_summary(summary, output_path)
    return summary


def _write_jsonl(results: list[dict[str, object]], output_path: Path) -> None:
    """Write one JSON object per line.

    Args:
        results: List of result dictionaries.
        output_path: Path for the output file.
    """
    if not results:
        return

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as f:
        for result in results:
            f.write(json.dumps(result, ensure_ascii=False) + "\n")


def _print_summary(summary: dict[str, int], output_path: Path) -> None:
    """Print batch processing summary to stdout.

    Args:
        summary: Counts of total, successful, and failed documents.
        output_path: Path to the output file.
    """
    print(f"\n{'=' * 50}")
    print("Batch Processing Complete")
    print(f"{'=' * 50}")
    print(f"Total:      {summary['total']}")
    print(f"Successful: {summary['successful']}")
    print(f"Failed:     {summary['failed']}")
    print(f"Output:     {output_path}")


def run_benchmark(golden_path: Path, report_path: Path | None = None) -> float:
    """Score the parser on a golden set and print the report.

    Args:
        golden_path: Labeled JSON golden set.
        report_path: Optional file for the report text.

    Returns:
        Success rate in percent.
    """
    evaluator = GoldenEvaluator(InvoiceParser(load_config()))
    result = evaluator.evaluate(load_golden_set(golden_path))
    print(evaluator.generate_report(result, report_path))
    return result.success_rate


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and dispatch to the appropriate command.

    Args:
        argv: Command-line arguments (defaults to sys.argv).
    """
    parser = argparse.ArgumentParser(
        description="Invoice Layout Engine",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    parse_parser = subparsers.add_parser("parse", help="Parse a single document")
    parse_parser.add_argument("file", type=Path, help="Fragments JSON or raw text file")
    parse_parser.add_argument("-o", "--output", type=Path, help="Output JSON file")
    parse_parser.add_argument(
        "--debug-regions", action="store_true", help="Include debug regions"
    )
    parse_parser.add_argument(
        "--origin",
        choices=["top-left", "bottom-left"],
        default="top-left",
        help="Coordinate origin of the fragment records (default: top-left)",
    )

    batch_parser = subparsers.add_parser("batch", help="Parse a folder of documents")
    batch_parser.add_argument("input_dir", type=Path, help="Input directory")
    batch_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=Path("results.jsonl"),
        help="Output JSON Lines file (default: results.jsonl)",
    )
    batch_parser.add_argument(
        "-v", "--verbose", action="store_true", help="Verbose output"
    )

    bench_parser = subparsers.add_parser("benchmark", help="Score against a golden set")
    bench_parser.add_argument("golden", type=Path, help="Golden set JSON file")
    bench_parser.add_argument("-o", "--output", type=Path, help="Report output file")

    args = parser.parse_args(argv)

    setup_logging(load_config().log_level)

    if args.command == "parse":
        if not args.file.exists():
            print(f"Error: {args.file} does not exist", file=sys.stderr)
            sys.exit(1)
        try:
            result = parse_single(
                args.file, include_debug_regions=args.debug_regions, origin=args.origin
            )
        except (InvoiceEngineError, ValueError, KeyError) as exc:
            print(f"Error: {exc}", file=sys.stderr)
            sys.exit(1)
        output_str = json.dumps(result, indent=2, ensure_ascii=False)
        if args.output:
            args.output.parent.mkdir(parents=True, exist_ok=True)
            args.output.write_text(output_str, encoding="utf-8")
            print(f"Output written to {args.output}")
        else:
            print(output_str)
    elif args.command == "batch":
        if not args.input_dir.is_dir():
            print(f"Error: {args.input_dir} is not a directory", file=sys.stderr)
            sys.exit(1)
        process_folder(args.input_dir, args.output, args.verbose)
    elif args.command == "benchmark":
        if not args.golden.exists():
            print(f"Error: {args.golden} does not exist", file=sys.stderr)
            sys.exit(1)
        run_benchmark(args.golden, args.output)
    else:
        parser.print_help()
        sys.exit(0)


if __name__ == "__main__":
    main()
