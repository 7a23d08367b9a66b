"""
Post-hoc balance checks for randomisation schedules.
"""

from typing import Dict, List, Optional, Tuple, Union

import numpy as np
import pandas as pd
from scipy import stats

from randomisation.blocks import RandomisationSchedule
from randomisation.strata import CombinedSchedule


ScheduleLike = Union[CombinedSchedule, RandomisationSchedule, pd.DataFrame]


def _as_table(schedule: ScheduleLike) -> Tuple[pd.DataFrame, Dict[str, Tuple[str, ...]]]:
    """Return the flat table and the declared levels of each stratum."""
    if isinstance(schedule, CombinedSchedule):
        levels = {s.stratum: s.levels for s in schedule.schedules}
        return schedule.table, levels

    if isinstance(schedule, RandomisationSchedule):
        return schedule.to_frame(), {schedule.stratum: schedule.levels}

    if isinstance(schedule, pd.DataFrame):
        missing = {'stratum', 'treatment'} - set(schedule.columns)
        if missing:
            raise ValueError(f"schedule table is missing columns: {sorted(missing)}")
        levels = {
            stratum: tuple(pd.unique(group['treatment']))
            for stratum, group in schedule.groupby('stratum', sort=False)
        }
        return schedule, levels

    raise TypeError(f"cannot audit object of type {type(schedule).__name__}")


def tally(schedule: ScheduleLike) -> Dict[Tuple[str, str], int]:
    """
    Count allocations per (stratum, treatment level).

    For schedule objects every declared level is present, with zero counts
    kept. For a bare DataFrame only observed levels are known.

    Args:
        schedule: Combined schedule, single-stratum schedule, or schedule table

    Returns:
        Mapping of (stratum, level) to count
    """
    table, levels = _as_table(schedule)
    observed = table.groupby(['stratum', 'treatment'], sort=False).size()

    counts = {}
    for stratum, stratum_levels in levels.items():
        for level in stratum_levels:
            counts[(stratum, level)] = int(observed.get((stratum, level), 0))
    return counts


def tally_frame(schedule: ScheduleLike) -> pd.DataFrame:
    """Stratum x level table of allocation counts."""
    counts = tally(schedule)
    _, levels = _as_table(schedule)

    all_levels = []
    for stratum_levels in levels.values():
        for level in stratum_levels:
            if level not in all_levels:
                all_levels.append(level)

    frame = pd.DataFrame(0, index=list(levels.keys()), columns=all_levels)
    for (stratum, level), count in counts.items():
        frame.loc[stratum, level] = count
    frame.index.name = 'stratum'
    return frame


def block_balance(schedule: ScheduleLike) -> pd.DataFrame:
    """
    Check the balance of every block.

    Returns:
        DataFrame with columns ['stratum', 'block', 'block_size', 'min_count',
        'max_count', 'balanced'], one row per block
    """
    table, levels = _as_table(schedule)
    if 'block' not in table.columns:
        raise ValueError("schedule table is missing columns: ['block']")

    records = []
    for (stratum, block), block_rows in table.groupby(['stratum', 'block'], sort=False):
        counts = block_rows['treatment'].value_counts()
        per_level = [int(counts.get(level, 0)) for level in levels[stratum]]
        records.append({
            'stratum': stratum,
            'block': block,
            'block_size': len(block_rows),
            'min_count': min(per_level),
            'max_count': max(per_level),
            'balanced': max(per_level) - min(per_level) <= 1
        })

    return pd.DataFrame(records, columns=[
        'stratum', 'block', 'block_size', 'min_count', 'max_count', 'balanced'
    ])


def _balance_row(label: str, counts: List[int], expected: Optional[List[float]] = None) -> Dict:
    counts = np.asarray(counts, dtype=float)
    n_units = int(counts.sum())
    if len(counts) > 1 and n_units > 0:
        chi2, p_value = stats.chisquare(counts, f_exp=expected)
    else:
        chi2, p_value = 0.0, 1.0
    return {
        'stratum': label,
        'n_units': n_units,
        'max_imbalance': int(counts.max() - counts.min()) if len(counts) else 0,
        'chi2': float(chi2),
        'p_value': float(p_value)
    }


def evaluate_allocation_balance(schedule: ScheduleLike) -> pd.DataFrame:
    """
    Test allocation counts against equal allocation.

    A chi-square goodness-of-fit test is run per stratum and once over the
    whole schedule. With permuted blocks the counts are equal by
    construction, so a small p-value points at a faulty schedule.

    Strata may use different level sets. The overall test compares each
    level's total with its expected share, the sum of n / K over the strata
    that use it. The overall max_imbalance is the largest stratum value.

    Returns:
        DataFrame with columns ['stratum', 'n_units', 'max_imbalance', 'chi2',
        'p_value']; the last row is labelled 'Overall'
    """
    counts = tally_frame(schedule)
    _, levels = _as_table(schedule)

    rows = []
    expected = pd.Series(0.0, index=counts.columns)
    for stratum, stratum_counts in counts.iterrows():
        stratum_levels = list(levels[stratum])
        observed = [stratum_counts[level] for level in stratum_levels]
        rows.append(_balance_row(stratum, observed))
        expected[stratum_levels] += sum(observed) / len(stratum_levels)

    overall = _balance_row('Overall', counts.sum(axis=0).tolist(), expected.tolist())
    overall['max_imbalance'] = max(row['max_imbalance'] for row in rows) if rows else 0
    rows.append(overall)
    return pd.DataFrame(rows)


def print_balance_summary(balance_df: pd.DataFrame, alpha: float = 0.05):
    """
    Print a summary of allocation balance.

    Args:
        balance_df: DataFrame from evaluate_allocation_balance()
        alpha: Significance level flagging a departure from equal allocation
    """
    print("🔍 Allocation Balance Summary:")
    print("=" * 50)

    strata = balance_df[balance_df['stratum'] != 'Overall']
    for _, row in strata.iterrows():
        status = "✅" if row['p_value'] >= alpha else "⚠️"
        print(f"  {status} {row['stratum']}: n = {row['n_units']}, "
              f"max imbalance = {row['max_imbalance']}, p = {row['p_value']:.3f}")

    overall = balance_df[balance_df['stratum'] == 'Overall']
    if len(overall) > 0:
        row = overall.iloc[0]
        status = "✅" if row['p_value'] >= alpha else "⚠️"
        print(f"\n📊 Overall: {status} n = {row['n_units']}, "
              f"max imbalance = {row['max_imbalance']}, p = {row['p_value']:.3f}")

    print(f"\n📝 Note: p < {alpha} indicates allocation departs from 1:1")
