"""
Migration report generator for aggregating per-record outcomes.

This module builds the run report from conversion results, formats it for
console display and exports it as JSON next to the converted documents.
"""

import json
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from models import ConversionResult, ConversionStatus

logger = logging.getLogger('wordpress_mdx_migrator.orchestrator.report')


class MigrationReport:
    """Generates migration reports from per-record conversion results."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        """
        Initialize migration report generator.

        Args:
            logger: Optional logger instance
        """
        self.logger = logger or logging.getLogger('wordpress_mdx_migrator.orchestrator.report')

    def generate_report(
        self,
        results: Sequence[ConversionResult],
        selection: Dict[str, Any],
        migration_duration: float,
        output_dir: str,
        slug_collisions: Optional[Dict[str, List[str]]] = None
    ) -> Dict[str, Any]:
        """
        Generate the migration report.

        Args:
            results: Conversion results in completion order
            selection: Sampling statistics from ``describe_selection``
            migration_duration: Total run duration in seconds
            output_dir: Output directory of the run
            slug_collisions: Slugs shared by more than one record

        Returns:
            Migration report dictionary
        """
        report = {
            'summary': self._build_summary(results, selection, migration_duration),
            'records': [result.to_dict() for result in sorted(results, key=lambda r: r.slug)],
            'errors': self._build_error_summary(results),
            'slug_collisions': dict(slug_collisions or {}),
            'output_directory': output_dir,
            'timestamp': datetime.now().isoformat()
        }

        self.logger.debug(
            f"Report generated: {report['summary']['completed']} records, "
            f"{report['summary']['failed']} failed"
        )
        return report

    def _build_summary(
        self,
        results: Sequence[ConversionResult],
        selection: Dict[str, Any],
        duration: float
    ) -> Dict[str, Any]:
        """Build high-level summary section."""
        counts = {status: 0 for status in ConversionStatus}
        for result in results:
            counts[result.status] += 1

        completed = len(results)
        succeeded = counts[ConversionStatus.SUCCESS] + counts[ConversionStatus.PARTIAL]

        return {
            'records_total': selection.get('total', completed),
            'records_selected': selection.get('selected', completed),
            'buckets': selection.get('buckets', 0),
            'completed': completed,
            'success': counts[ConversionStatus.SUCCESS],
            'partial': counts[ConversionStatus.PARTIAL],
            'failed': counts[ConversionStatus.FAILED],
            'images': sum(len(result.images) for result in results),
            'total_warnings': sum(len(result.warnings) for result in results),
            'success_rate': succeeded / completed if completed else 0.0,
            'duration_seconds': duration,
            'duration_formatted': self._format_duration(duration)
        }

    @staticmethod
    def _build_error_summary(results: Sequence[ConversionResult]) -> List[Dict[str, Any]]:
        return [
            {'slug': result.slug, 'title': result.title, 'error': result.error}
            for result in results
            if result.status == ConversionStatus.FAILED
        ]

    def _format_duration(self, seconds: float) -> str:
        """Format duration in human-readable format."""
        if seconds < 60:
            return f"{seconds:.1f}s"
        elif seconds < 3600:
            minutes = int(seconds // 60)
            secs = int(seconds % 60)
            return f"{minutes}m {secs}s"
        else:
            hours = int(seconds // 3600)
            minutes = int((seconds % 3600) // 60)
            secs = int(seconds % 60)
            return f"{hours}h {minutes}m {secs}s"

    def format_console_report(self, report: Dict[str, Any]) -> str:
        """
        Format report for console display.

        Args:
            report: Migration report dictionary

        Returns:
            Formatted console string
        """
        summary = report.get('summary', {})
        sections = [
            "=" * 60,
            "MIGRATION REPORT",
            "=" * 60,
            "",
            "Summary:",
            f"  Records:     {summary.get('records_selected', 0)} of {summary.get('records_total', 0)} selected",
            f"  Completed:   {summary.get('completed', 0)}",
            f"  Success:     {summary.get('success', 0)}",
            f"  Partial:     {summary.get('partial', 0)}",
            f"  Failed:      {summary.get('failed', 0)}",
            f"  Images:      {summary.get('images', 0)}",
            f"  Duration:    {summary.get('duration_formatted', '0s')}",
        ]

        if summary.get('total_warnings', 0) > 0:
            sections.append(f"  Warnings:    {summary['total_warnings']}")

        collisions = report.get('slug_collisions') or {}
        if collisions:
            sections.append("")
            sections.append("Slug Collisions (last write wins):")
            for slug, titles in sorted(collisions.items()):
                sections.append(f"  {slug}: {', '.join(titles)}")

        errors = report.get('errors') or []
        if errors:
            sections.append("")
            sections.append("Failed Records:")
            sections.append("-" * 60)
            for error in errors[:20]:
                sections.append(f"  {error['slug']}: {error['error']}")
            if len(errors) > 20:
                sections.append(f"  ... and {len(errors) - 20} more")

        sections.append("")
        sections.append(f"Output: {report.get('output_directory', '')}")
        sections.append("=" * 60)

        return "\n".join(sections)

    def export_json_report(self, report: Dict[str, Any], filepath: str) -> None:
        """
        Export report to JSON file.

        Args:
            report: Migration report dictionary
            filepath: Output file path
        """
        try:
            with open(filepath, 'w', encoding='utf-8') as f:
                json.dump(report, f, indent=2, ensure_ascii=False, default=str)

            self.logger.info(f"JSON report exported to {filepath}")

        except OSError as e:
            self.logger.error(f"Failed to export JSON report: {str(e)}")
