"""Command-line interface for the workspace tools.

Subcommands:
    batch: Read every ID card scan in a folder and export a CSV.
    extract: Read a single scan and print the record as JSON.
    benchmark: Score extraction of a folder against ground truth.
    docs-server: Run the online documentation MCP server.
"""

import argparse
import csv
import json
import math
import sys
import time
from pathlib import Path

from workspace_tools.benchmark.evaluator import (
    Evaluator,
    load_ground_truth,
    predictions_from_records,
)
from workspace_tools.docs.server import run_server
from workspace_tools.models import ExtractedData
from workspace_tools.service import (
    CardAnalysis,
    IDCardService,
    UnsupportedFileError,
    guess_content_type,
    validate_upload,
)
from workspace_tools.utils.config import AppConfig, load_config
from workspace_tools.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)

_SUPPORTED_EXTENSIONS = (".png", ".jpg", ".jpeg", ".pdf")
CSV_COLUMNS = [
    "#",
    "File Name",
    "Name",
    "CNP",
    "Date of Birth",
    "Address",
    "Place of Issue",
    "Confidence %",
    "Field Confidence %",
    "Status",
    "Errors",
    "Validation Passed",
]


def _find_documents(input_dir: Path) -> list[Path]:
    """Find all supported scan files in a directory, sorted by name."""
    return sorted(
        path
        for path in input_dir.iterdir()
        if path.is_file() and path.suffix.lower() in _SUPPORTED_EXTENSIONS
    )


def _analyze_files(
    files: list[Path], service: IDCardService, config: AppConfig
) -> list[CardAnalysis]:
    """Check upload limits, then process the accepted files in parallel.

    Rejected files get an error record in their original position.
    """
    analyses: list[CardAnalysis | None] = []
    accepted: list[tuple[int, Path]] = []

    for index, path in enumerate(files):
        try:
            validate_upload(
                path.name,
                guess_content_type(path.name),
                path.stat().st_size,
                config.upload,
            )
        except UnsupportedFileError as exc:
            logger.warning("Skipping %s: %s", path.name, exc)
            analyses.append(CardAnalysis(record=ExtractedData.failed(path.name, str(exc))))
            continue
        analyses.append(None)
        accepted.append((index, path))

    processed = service.analyze_batch((path, path.name) for _, path in accepted)
    for (index, _), analysis in zip(accepted, processed):
        analyses[index] = analysis
    return [analysis for analysis in analyses if analysis is not None]


def _csv_row(index: int, analysis: CardAnalysis) -> dict[str, object]:
    record = analysis.record
    overall = analysis.overall_confidence
    return {
        "#": index,
        "File Name": record.file_name,
        "Name": record.name,
        "CNP": record.cnp,
        "Date of Birth": record.date_of_birth,
        "Address": record.address,
        "Place of Issue": record.place_of_issue,
        "Confidence %": record.confidence,
        "Field Confidence %": (
            "" if overall is None else int(math.floor(overall * 100 + 0.5))
        ),
        "Status": record.status.value,
        "Errors": ", ".join(record.errors),
        "Validation Passed": (
            "" if analysis.validation is None else analysis.validation.all_valid
        ),
    }


def write_csv(analyses: list[CardAnalysis], output_path: Path) -> None:
    """Write one CSV row per processed card.

    Args:
        analyses: Processed cards, in display order.
        output_path: Path for the output CSV file.
    """
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=CSV_COLUMNS)
        writer.writeheader()
        writer.writerows(_csv_row(i, a) for i, a in enumerate(analyses, 1))


def process_folder(
    input_dir: Path,
    output_csv: Path,
    config: AppConfig | None = None,
    verbose: bool = False,
) -> dict[str, int]:
    """Process every scan in a folder and export the records to CSV.

    Args:
        input_dir: Directory containing scans.
        output_csv: Path for the output CSV file.
        config: Application configuration; loaded from disk when omitted.
        verbose: Whether to print one line per card.

    Returns:
        Summary dict with total, successful and failed counts.
    """
    config = config or load_config()
    files = _find_documents(input_dir)
    if not files:
        logger.warning("No scans found in %s", input_dir)
        return {"total": 0, "successful": 0, "failed": 0}

    logger.info("Found %d scans to process", len(files))
    analyses = _analyze_files(files, IDCardService(config), config)

    if verbose:
        for i, analysis in enumerate(analyses, 1):
            record = analysis.record
            print(
                f"[{i}/{len(analyses)}] {record.file_name}: "
                f"{record.status.value} ({record.confidence}%)"
            )

    write_csv(analyses, output_csv)
    logger.info("Results written to %s", output_csv)

    successful = sum(1 for a in analyses if a.record.status == "completed")
    summary = {
        "total": len(analyses),
        "successful": successful,
        "failed": len(analyses) - successful,
    }
    _print_summary(summary, output_csv)
    return summary


def _print_summary(summary: dict[str, int], output_csv: Path) -> None:
    print(f"\n{'=' * 50}")
    print("Batch Processing Complete")
    print(f"{'=' * 50}")
    print(f"Total:      {summary['total']}")
    print(f"Successful: {summary['successful']}")
    print(f"Failed:     {summary['failed']}")
    print(f"Output:     {output_csv}")


def extract_single(file_path: Path, config: AppConfig | None = None) -> dict[str, object]:
    """Process one scan and return its record as a JSON-ready dict.

    Raises:
        UnsupportedFileError: If the file type or size is not accepted.
    """
    config = config or load_config()
    validate_upload(
        file_path.name,
        guess_content_type(file_path.name),
        file_path.stat().st_size,
        config.upload,
    )
    analysis = IDCardService(config).analyze(file_path, file_path.name)
    result = analysis.record.to_dict()
    result["validationPassed"] = (
        analysis.validation.all_valid if analysis.validation else None
    )
    result["fieldConfidences"] = analysis.field_confidences
    result["rawText"] = analysis.raw_text
    return result


def run_benchmark(
    input_dir: Path,
    ground_truth_path: Path,
    report_path: Path | None = None,
    config: AppConfig | None = None,
) -> str:
    """Process a folder of scans and score it against ground truth.

    Returns:
        The formatted benchmark report.
    """
    config = config or load_config()
    ground_truth = load_ground_truth(ground_truth_path)
    files = _find_documents(input_dir)

    start = time.time()
    analyses = _analyze_files(files, IDCardService(config), config)
    elapsed_ms = (time.time() - start) * 1000

    evaluator = Evaluator()
    result = evaluator.evaluate(
        predictions_from_records(a.record for a in analyses), ground_truth
    )
    result.avg_processing_time_ms = elapsed_ms / len(analyses) if analyses else 0.0
    return evaluator.generate_report(result, report_path)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="workspace-tools",
        description="Romanian ID card OCR and online documentation tools",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-c", "--config", type=Path, help="YAML configuration file"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    batch_parser = subparsers.add_parser("batch", help="Process a folder of scans")
    batch_parser.add_argument("input_dir", type=Path, help="Directory with scans")
    batch_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=Path("romanian-id-data.csv"),
        help="Output CSV file (default: romanian-id-data.csv)",
    )
    batch_parser.add_argument(
        "-v", "--verbose", action="store_true", help="Verbose output"
    )

    single_parser = subparsers.add_parser("extract", help="Process a single scan")
    single_parser.add_argument("file", type=Path, help="Scan to process")
    single_parser.add_argument("-o", "--output", type=Path, help="Output JSON file")

    bench_parser = subparsers.add_parser(
        "benchmark", help="Score extraction against ground truth"
    )
    bench_parser.add_argument("input_dir", type=Path, help="Directory with scans")
    bench_parser.add_argument(
        "ground_truth", type=Path, help="Ground truth JSON or CSV file"
    )
    bench_parser.add_argument("-o", "--output", type=Path, help="Report file")

    docs_parser = subparsers.add_parser(
        "docs-server", help="Run the online documentation MCP server"
    )
    docs_parser.add_argument(
        "--transport",
        choices=["stdio", "sse", "streamable-http"],
        default="stdio",
        help="MCP transport (default: stdio)",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and dispatch to the appropriate command.

    Args:
        argv: Command-line arguments (defaults to sys.argv).
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    config = load_config(args.config)

    if args.command == "docs-server":
        run_server(args.transport, config)
        return

    setup_logging(config.log_level)

    if args.command == "batch":
        if not args.input_dir.is_dir():
            print(f"Error: {args.input_dir} is not a directory", file=sys.stderr)
            sys.exit(1)
        process_folder(args.input_dir, args.output, config, args.verbose)
    elif args.command == "extract":
        if not args.file.exists():
            print(f"Error: {args.file} does not exist", file=sys.stderr)
            sys.exit(1)
        try:
            result = extract_single(args.file, config)
        except UnsupportedFileError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            sys.exit(1)
        output_str = json.dumps(result, indent=2, ensure_ascii=False)
        if args.output:
            args.output.parent.mkdir(parents=True, exist_ok=True)
            args.output.write_text(output_str, encoding="utf-8")
            print(f"Output written to {args.output}")
        else:
            print(output_str)
    elif args.command == "benchmark":
        for path in (args.input_dir, args.ground_truth):
            if not path.exists():
                print(f"Error: {path} does not exist", file=sys.stderr)
                sys.exit(1)
        print(run_benchmark(args.input_dir, args.ground_truth, args.output, config))


if __name__ == "__main__":
    main()
