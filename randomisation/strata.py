"""
Combining per-stratum schedules into one identified schedule.
"""

import warnings
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import pandas as pd

from .blocks import (
    RandomisationRequest, RandomisationSchedule, SCHEDULE_COLUMNS, _is_int,
    generate_schedule
)
from .exceptions import EmptyInput, InvalidParameter


COMBINED_COLUMNS = ['id', 'position'] + SCHEDULE_COLUMNS


@dataclass
class CombinedSchedule:
    """
    Concatenated schedules of all strata.

    ``table`` holds one row per allocated unit, in stratum input order, then
    block order, then within-block order. ``requests`` keeps the seeds that
    produced each stratum so the schedule can be regenerated for audit.
    """
    table: pd.DataFrame
    schedules: List[RandomisationSchedule] = field(default_factory=list)
    requests: List[RandomisationRequest] = field(default_factory=list)
    id_width: int = 1

    def __len__(self) -> int:
        return len(self.table)

    def ids(self) -> List[str]:
        return self.table['id'].tolist()

    def strata(self) -> List[str]:
        return [s.stratum for s in self.schedules]

    def seeds(self) -> Dict[str, int]:
        return {r.stratum: r.seed for r in self.requests}

    def stratum_table(self, stratum: str) -> pd.DataFrame:
        return self.table[self.table['stratum'] == stratum].reset_index(drop=True)


def format_identifiers(prefixes: Sequence[str], width: Optional[int] = None) -> List[str]:
    """
    Build sequential identifiers with one padding width for every row.

    The width defaults to the digit count of the total number of rows and is
    fixed before any identifier is formatted, so "HOSP001" and "HOSP150"
    share the same width.

    Args:
        prefixes: Prefix for each row, in order
        width: Optional explicit width (must fit the row count)

    Returns:
        List of identifiers, counter starting at 1
    """
    total = len(prefixes)
    needed = len(str(total))
    if width is None:
        width = needed
    elif not _is_int(width) or width < needed:
        raise InvalidParameter(
            f"id_width {width!r} cannot hold {total} identifiers (needs {needed})"
        )
    return [f"{prefix}{i:0{width}d}" for i, prefix in enumerate(prefixes, start=1)]


def _check_requests(requests: Sequence[RandomisationRequest]) -> None:
    labels = Counter(r.stratum for r in requests)
    duplicated = sorted(label for label, count in labels.items() if count > 1)
    if duplicated:
        raise InvalidParameter(f"stratum labels must be unique, duplicated: {duplicated}")

    seeds = Counter(r.seed for r in requests)
    shared = sorted(seed for seed, count in seeds.items() if count > 1)
    if shared:
        warnings.warn(
            f"Seeds {shared} are shared by more than one stratum; "
            "their allocation sequences will be correlated",
            UserWarning,
            stacklevel=3
        )


def combine(stratum_requests: Sequence[RandomisationRequest],
            id_width: Optional[int] = None) -> CombinedSchedule:
    """
    Randomise every stratum and concatenate the results.

    Each request is generated with its own seed, in the order given. Rows
    are then numbered 1..M across all strata and identified as
    ``prefix + zero-padded position``.

    Args:
        stratum_requests: One request per stratum
        id_width: Optional identifier padding width

    Returns:
        CombinedSchedule

    Raises:
        EmptyInput: If no requests are given
        InvalidParameter: If a request is malformed or stratum labels repeat
    """
    requests = list(stratum_requests)
    if not requests:
        raise EmptyInput("at least one stratum request is required")

    _check_requests(requests)

    schedules = [generate_schedule(request) for request in requests]

    frames = []
    prefixes = []
    for request, schedule in zip(requests, schedules):
        frames.append(schedule.to_frame())
        prefixes.extend([request.prefix] * schedule.n_units)

    table = pd.concat(frames, ignore_index=True)
    width = len(str(len(table))) if id_width is None else id_width
    ids = format_identifiers(prefixes, width)

    table.insert(0, 'position', range(1, len(table) + 1))
    table.insert(0, 'id', ids)

    return CombinedSchedule(
        table=table[COMBINED_COLUMNS],
        schedules=schedules,
        requests=requests,
        id_width=width
    )
