"""Document metadata comparison."""
from __future__ import annotations

from typing import Dict, Mapping, Optional

from comparison.models import MetadataDifference
from utils.logging import logger


def diff_metadata(
    base: Optional[Mapping[str, str]],
    compare: Optional[Mapping[str, str]],
) -> Dict[str, MetadataDifference]:
    """
    Compare two document metadata maps key by key.

    Returns:
        Differences keyed by metadata key, in sorted key order. Keys with equal
        values on both sides are omitted.
    """
    base = base or {}
    compare = compare or {}
    diffs: Dict[str, MetadataDifference] = {}

    for key in sorted(set(base) | set(compare)):
        in_base = key in base
        in_compare = key in compare
        if in_base and in_compare:
            if base[key] == compare[key]:
                continue
            diffs[key] = MetadataDifference(
                change_type="modified",
                key=key,
                base_value=base[key],
                compare_value=compare[key],
                value_different=True,
            )
        elif in_base:
            diffs[key] = MetadataDifference(
                change_type="deleted",
                key=key,
                base_value=base[key],
                only_in_base=True,
            )
        else:
            diffs[key] = MetadataDifference(
                change_type="added",
                key=key,
                compare_value=compare[key],
                only_in_compare=True,
            )

    logger.debug("Metadata diff: %d differing keys", len(diffs))
    return diffs
