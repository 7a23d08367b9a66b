"""
Relational helpers for rebuilding analysis datasets from normalised tables.
"""

from typing import Sequence, Tuple

import pandas as pd


def outer_join(left: pd.DataFrame,
               right: pd.DataFrame,
               keys: Sequence[str],
               suffixes: Tuple[str, str] = ('_left', '_right'),
               indicator: bool = False) -> pd.DataFrame:
    """
    Full outer join of two tables on an explicit key tuple.

    Rows without a match on the other side are kept, with the other side's
    columns left null, so no record is lost because one table lacks it.

    Args:
        left: Left table
        right: Right table
        keys: Key columns present in both tables
        suffixes: Suffixes for overlapping non-key columns
        indicator: If True, add a 'source' column with values 'both',
            'left_only' or 'right_only'

    Returns:
        Joined DataFrame with one row per matched pair or unmatched row

    Raises:
        ValueError: If keys is empty or a key column is missing
    """
    keys = list(keys)
    if not keys:
        raise ValueError("keys must name at least one column")

    for name, table in (('left', left), ('right', right)):
        missing = [k for k in keys if k not in table.columns]
        if missing:
            raise ValueError(f"{name} table is missing key columns: {missing}")

    joined = left.merge(
        right,
        on=keys,
        how='outer',
        sort=False,
        suffixes=suffixes,
        indicator='source' if indicator else False
    )

    if indicator:
        joined['source'] = joined['source'].astype(str)
    return joined
