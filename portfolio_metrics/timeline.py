"""Project timeline envelope.

The timeline of an epic is drawn as three segments over the visible sprint
list (all indices inclusive):

* Segment A, the minimum execution block: ``[earliest start, earliest start + delivery min]``
* Segment B, the start slack: ``[end of A, latest start]``
* Segment C, the maximum execution block: ``[latest start, latest start + delivery max]``
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional

from .models import Bounds

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Segment:
    start_idx: int
    end_idx: int


@dataclass(frozen=True)
class TimelineSections:
    segment_a: Segment
    segment_b: Segment
    segment_c: Segment
    min_end: int
    max_end: int
    max_idx: int


def clamp_int(value, low, high) -> int:
    """Truncate `value` toward zero and clamp it into ``[low, high]``.
    Non-finite values map to `low`.
    """
    try:
        value = float(value)
    except (TypeError, ValueError):
        return low
    if not math.isfinite(value):
        return low
    return min(high, max(low, int(value)))


def compute_project_timeline_sections(
    sprint_count,
    expected_start_min_idx,
    expected_start_max_idx,
    expected_sprints: Optional[Bounds],
    is_high_confidence=False,
) -> Optional[TimelineSections]:
    """Compute the three timeline segments for an epic.

    Args:
        sprint_count: Number of sprints in the visible sprint list
        expected_start_min_idx: Index of the earliest expected start
        expected_start_max_idx: Index of the latest expected start, or None
            to use the earliest start
        expected_sprints: Delivery length range, or None when no teams are
            assigned
        is_high_confidence: Collapse every segment to the earliest start

    Returns:
        TimelineSections, or None when there is no delivery estimate to draw.
    """
    max_idx = max(0, (sprint_count or 0) - 1)
    if expected_sprints is None or expected_sprints.max is None:
        return None
    if not math.isfinite(expected_sprints.max):
        return None

    s_min = clamp_int(0 if expected_start_min_idx is None else expected_start_min_idx, 0, max_idx)
    s_max_raw = s_min if expected_start_max_idx is None else expected_start_max_idx
    s_max = clamp_int(max(s_min, s_max_raw), 0, max_idx)

    delivery_min = clamp_int(
        0 if expected_sprints.min is None else expected_sprints.min, 0, max_idx
    )
    delivery_max = clamp_int(expected_sprints.max, 0, max_idx)

    min_end = clamp_int(s_min + delivery_min, 0, max_idx)
    max_end = clamp_int(s_max + delivery_max, 0, max_idx)

    if s_max < min_end:
        logger.warning(
            "Latest start (%d) is before the end of the minimum execution block (%d); "
            "start slack has zero width",
            s_max,
            min_end,
        )

    if is_high_confidence:
        point = Segment(s_min, s_min)
        return TimelineSections(point, point, point, min_end, max_end, max_idx)

    return TimelineSections(
        segment_a=Segment(s_min, min_end),
        segment_b=Segment(min_end, max(min_end, s_max)),
        segment_c=Segment(s_max, max_end),
        min_end=min_end,
        max_end=max_end,
        max_idx=max_idx,
    )
