"""Pipeline orchestration logic."""

import logging
import time
from typing import Any, Dict, List, Optional

from survey_pipeline import config
from survey_pipeline.orchestrator.core_docs import parse_partition, select_documents
from survey_pipeline.orchestrator.core_processing import new_stats, run_processing
from survey_pipeline.processors import ScanProcessor

logger = logging.getLogger(__name__)


class ReportPipelineOrchestrator:
    """
    Scan a report directory and parse every selected document.
    Uses a spawn multiprocessing pool for parallel execution.
    """

    def __init__(
        self,
        data_dir: Optional[str] = None,
        output_dir: Optional[str] = None,
        workers: int = 1,
        num_records: Optional[int] = None,
        recent_first: bool = False,
        partition: Optional[str] = None,
        report: Optional[str] = None,
        year: Optional[int] = None,
        category: Optional[str] = None,
        max_tasks_per_child: int = 20,
        log_level: int = logging.INFO,
    ):
        self.data_dir = data_dir or config.DATA_MOUNT_PATH
        self.output_dir = output_dir or config.PARSE_OUTPUT_DIR
        self.workers = max(1, workers)
        self.num_records = num_records
        self.recent_first = recent_first
        self.partition = partition
        self.report = report
        self.year = year
        self.category = category
        self.max_tasks_per_child = max_tasks_per_child
        self.log_level = log_level

        self.partition_num, self.partition_total = parse_partition(partition)
        self._scanner: Optional[ScanProcessor] = None

    def run_scan(self) -> List[Dict[str, Any]]:
        """Scan the data directory for report files."""
        logger.info("\n" + "=" * 60)
        logger.info("STEP: Scan %s", self.data_dir)
        logger.info("=" * 60)

        self._scanner = ScanProcessor(base_dir=self.data_dir)
        with self._scanner:
            return self._scanner.scan()

    def select(self, docs: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        return select_documents(
            docs,
            report=self.report,
            year=self.year,
            category=self.category,
            recent_first=self.recent_first,
            partition_num=self.partition_num,
            partition_total=self.partition_total,
            limit=self.num_records,
        )

    def run(self) -> Dict[str, Any]:
        """
        Run scan and parse.

        Returns:
            Stats dict with processed/success/failed counts and failed_ids
        """
        start_time = time.time()

        logger.info("\n" + "=" * 60)
        logger.info("SURVEY REPORT PARSING PIPELINE")
        logger.info("=" * 60)
        logger.info("Data directory: %s", self.data_dir)
        logger.info("Output directory: %s", self.output_dir)
        logger.info("Workers: %s", self.workers)

        try:
            docs = self.select(self.run_scan())
        except OSError as exc:
            logger.error("❌ Scan failed: %s", exc)
            stats = new_stats()
            stats["failed"] = 1
            return stats

        stats = run_processing(self, docs)

        elapsed = time.time() - start_time
        logger.info("\n" + "=" * 60)
        logger.info("PIPELINE COMPLETE")
        logger.info("=" * 60)
        logger.info("Total time: %.1fs", elapsed)
        if stats["failed_ids"]:
            logger.warning("⚠ Failed documents: %s", ", ".join(map(str, stats["failed_ids"])))

        return stats
