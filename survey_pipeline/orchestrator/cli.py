"""CLI entrypoint for pipeline orchestrator."""

import argparse
import logging
import sys

import setproctitle

from survey_pipeline.orchestrator.core import ReportPipelineOrchestrator
from survey_pipeline.orchestrator.log_config import setup_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Parse survey report PDFs and spreadsheets")
    parser.add_argument(
        "--data-dir", type=str, default=None, help="Directory to scan (default: DATA_MOUNT_PATH)"
    )
    parser.add_argument(
        "--output-dir",
        type=str,
        default=None,
        help="Directory for JSON output (default: PARSE_OUTPUT_DIR)",
    )
    parser.add_argument("--workers", type=int, default=1, help="Parallel workers")
    parser.add_argument(
        "--num-records", type=int, default=None, help="Max docs (default: all)"
    )
    parser.add_argument("--recent-first", action="store_true")
    parser.add_argument("--partition", type=str, default=None, help="Process slice M/N")
    parser.add_argument(
        "--report",
        "--file",
        type=str,
        default=None,
        dest="report",
        help="Only documents whose path contains this string",
    )
    parser.add_argument("--year", type=int, default=None, help="Filter by sidecar year")
    parser.add_argument(
        "--category",
        type=str,
        default=None,
        choices=["children", "parents"],
        help="Filter by report category",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    return parser


def main(argv=None) -> None:
    """Parse CLI arguments and run the pipeline orchestrator."""
    args = build_parser().parse_args(argv)

    log_level = logging.DEBUG if args.verbose else logging.INFO
    setup_logging(level=log_level)
    setproctitle.setproctitle("SurveyPipeline-Orchestrator")

    orchestrator = ReportPipelineOrchestrator(
        data_dir=args.data_dir,
        output_dir=args.output_dir,
        workers=args.workers,
        num_records=args.num_records,
        recent_first=args.recent_first,
        partition=args.partition,
        report=args.report,
        year=args.year,
        category=args.category,
        log_level=log_level,
    )

    stats = orchestrator.run()
    sys.exit(0 if stats["failed"] == 0 else 1)


if __name__ == "__main__":
    main()
