"""
Migration orchestrator for coordinating the complete migration pipeline.

This module provides the central coordinator that sequences the run:
Read → Select → Export (per record, in parallel) → Report.
"""

import logging
import sys
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

try:
    from tqdm import tqdm
    HAS_TQDM = True
except ImportError:
    HAS_TQDM = False

from config_loader import get_nested
from exporters import ImageLocalizer, MdxExporter
from fetchers import ImageFetcher, WordPressExportReader
from logger import ProgressTracker, log_section
from models import ContentRecord, ConversionResult, ConversionStatus
from orchestrator.migration_report import MigrationReport
from orchestrator.record_sampler import describe_selection, select_records

REPORT_FILE_NAME = 'conversion-report.json'


class MigrationOrchestrator:
    """Central coordinator sequencing all run phases: Read → Select → Export → Report."""

    def __init__(
        self,
        config: Dict[str, Any],
        output_dir: Optional[str] = None,
        logger: Optional[logging.Logger] = None,
        reader: Optional[WordPressExportReader] = None,
        fetcher: Optional[ImageFetcher] = None
    ):
        """
        Initialize migration orchestrator.

        Args:
            config: Configuration dictionary
            output_dir: Output directory (defaults to ``export.output_directory``)
            logger: Optional logger instance
            reader: Export reader (built from config when omitted)
            fetcher: Image fetcher (built from config when omitted)
        """
        self.config = config
        self.logger = logger or logging.getLogger('wordpress_mdx_migrator.orchestrator')
        self.output_dir = Path(output_dir or get_nested(config, 'export.output_directory', 'out'))

        self.reader = reader or WordPressExportReader(config, self.logger)
        self.fetcher = fetcher or ImageFetcher(config, self.logger)
        self.localizer = ImageLocalizer(self.fetcher, self.logger)
        self.exporter = MdxExporter(config, self.output_dir, self.localizer, self.logger)

        self.max_workers = get_nested(config, 'export.max_workers', 4)
        self.limit = get_nested(config, 'export.limit')

        self.logger.debug(
            f"MigrationOrchestrator initialized: output={self.output_dir}, workers={self.max_workers}"
        )

    def orchestrate_migration(self, export_path: str) -> Dict[str, Any]:
        """
        Run the complete migration.

        Args:
            export_path: Path to the WXR export file

        Returns:
            Migration report dictionary

        Raises:
            ExportReadError: If the export cannot be read
        """
        self.logger.info("Starting migration orchestration")
        start_time = time.time()

        try:
            log_section("Phase 1: Read Export")
            records = self.reader.fetch(export_path)
            self.logger.info(f"Loaded {len(records)} record(s) from {export_path}")

            log_section("Phase 2: Select Records")
            selected = select_records(records, self.limit)
            selection = describe_selection(records, selected)
            collisions = self.find_slug_collisions(selected)

            log_section("Phase 3: Export Records")
            results = self._execute_export(selected)
        finally:
            self.fetcher.close()

        migration_duration = time.time() - start_time
        report = self._generate_report(results, selection, migration_duration, collisions)
        self.logger.info(f"Migration orchestration complete in {migration_duration:.2f}s")
        return report

    def find_slug_collisions(self, records: Sequence[ContentRecord]) -> Dict[str, List[str]]:
        """
        Find slugs shared by several records.

        Colliding records overwrite each other's output; this only warns.
        """
        titles_by_slug: Dict[str, List[str]] = {}
        for record in records:
            titles_by_slug.setdefault(record.slug, []).append(record.title)

        collisions = {slug: titles for slug, titles in titles_by_slug.items() if len(titles) > 1}
        for slug, titles in collisions.items():
            self.logger.warning(
                f"Slug collision: {len(titles)} records map to '{slug}.mdx' "
                f"({'; '.join(titles)}); the last one written wins"
            )
        return collisions

    def _execute_export(self, records: Sequence[ContentRecord]) -> List[ConversionResult]:
        """
        Export records on a bounded worker pool and wait for all of them.

        Args:
            records: Selected records

        Returns:
            Conversion results in completion order
        """
        results: List[ConversionResult] = []
        if not records:
            self.logger.warning("No records to export")
            return results

        self.logger.info(f"Processing {len(records)} record(s) with {self.max_workers} worker(s)")

        use_progress_bar = (
            HAS_TQDM
            and get_nested(self.config, 'export.progress_bars', True)
            and sys.stdout.isatty()
        )
        progress_bar = tqdm(total=len(records), desc="Converting", unit="post") if use_progress_bar else None

        try:
            with ProgressTracker(total_items=len(records), item_type='records') as tracker:
                with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                    future_to_record = {
                        executor.submit(self.exporter.export, record): record
                        for record in records
                    }

                    for future in as_completed(future_to_record):
                        record = future_to_record[future]
                        try:
                            result = future.result()
                        except Exception as e:
                            self.logger.error(
                                f"Unexpected error exporting '{record.title}': {str(e)}", exc_info=True
                            )
                            result = ConversionResult(
                                slug=record.slug,
                                title=record.title,
                                status=ConversionStatus.FAILED,
                                error=str(e)
                            )

                        results.append(result)
                        tracker.increment(success=result.succeeded)
                        if progress_bar is not None:
                            progress_bar.update(1)
        finally:
            if progress_bar is not None:
                progress_bar.close()

        self.logger.info(f"Processed {len(results)} record(s)")
        return results

    def _generate_report(
        self,
        results: List[ConversionResult],
        selection: Dict[str, Any],
        migration_duration: float,
        collisions: Dict[str, List[str]]
    ) -> Dict[str, Any]:
        report_generator = MigrationReport(self.logger)
        report = report_generator.generate_report(
            results, selection, migration_duration, str(self.output_dir), collisions
        )

        if get_nested(self.config, 'export.write_report', True) and self.output_dir.is_dir():
            report_generator.export_json_report(report, str(self.output_dir / REPORT_FILE_NAME))

        return report
