"""
Orchestration package for coordinating migration run phases.

This package sequences the run: read the export, select records, export
each selected record on a worker pool and report the outcomes.
"""

from .migration_orchestrator import MigrationOrchestrator
from .migration_report import MigrationReport
from .record_sampler import describe_selection, parse_limit, select_records

__all__ = [
    'MigrationOrchestrator',
    'MigrationReport',
    'describe_selection',
    'parse_limit',
    'select_records'
]
