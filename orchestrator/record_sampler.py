"""Distributed sampling of records across title initials."""

import logging
from typing import Any, Dict, List, Optional, Sequence

from models import ContentRecord

logger = logging.getLogger('wordpress_mdx_migrator.orchestrator.sampler')


def parse_limit(value: Any) -> Optional[int]:
    """
    Interpret a record cap.

    Returns None (no cap) for missing, non-numeric or non-positive values.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        limit = int(str(value).strip())
    except (TypeError, ValueError):
        return None
    return limit if limit > 0 else None


def _bucket_key(record: ContentRecord) -> str:
    return (record.title or '').strip()[:1].lower()


def group_by_initial(records: Sequence[ContentRecord]) -> Dict[str, List[ContentRecord]]:
    """Group records by the lowercase first character of the stripped title."""
    buckets: Dict[str, List[ContentRecord]] = {}
    for record in records:
        buckets.setdefault(_bucket_key(record), []).append(record)
    return buckets


def select_records(records: Sequence[ContentRecord], cap: Any = None) -> List[ContentRecord]:
    """
    Select up to ``cap`` records spread across title initials.

    Without a usable cap, or when the cap covers every record, all records
    are returned in their original order. Otherwise buckets are visited
    largest first, taking one record per non-empty bucket per pass until
    the cap is reached or every bucket is exhausted.

    Args:
        records: Records in export order
        cap: Maximum number of records to return

    Returns:
        Selected records in round-robin order
    """
    limit = parse_limit(cap)
    if limit is None or limit >= len(records):
        return list(records)

    grouped = group_by_initial(records)
    # sorted() is stable, so equal-size buckets keep first-seen order
    buckets = [list(bucket) for bucket in sorted(grouped.values(), key=len, reverse=True)]

    selected: List[ContentRecord] = []
    while len(selected) < limit:
        taken = 0
        for bucket in buckets:
            if len(selected) >= limit:
                break
            if bucket:
                selected.append(bucket.pop(0))
                taken += 1
        if taken == 0:
            break

    logger.info(
        f"Selected {len(selected)} of {len(records)} records from {len(buckets)} title groups"
    )
    return selected


def describe_selection(records: Sequence[ContentRecord], selected: Sequence[ContentRecord]) -> Dict[str, int]:
    """Summary counts for logging a selection."""
    return {
        'total': len(records),
        'selected': len(selected),
        'buckets': len(group_by_initial(records)),
        'buckets_used': len(group_by_initial(selected)),
    }
