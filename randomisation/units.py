"""
Allocation of enrolled clusters to schedule rows.

In a cluster-randomised trial the unit that receives a treatment is a site
or clinician. Units are matched to the pre-generated schedule of their
stratum in enrolment order.
"""

from typing import Union

import pandas as pd

from .exceptions import EmptyInput, InvalidParameter
from .strata import CombinedSchedule


ALLOCATION_COLUMNS = ['id', 'block', 'block_position', 'treatment']


def assign_units(units: pd.DataFrame,
                 schedule: Union[CombinedSchedule, pd.DataFrame],
                 unit_col: str = 'unit',
                 stratum_col: str = 'stratum') -> pd.DataFrame:
    """
    Give each enrolled unit the next unused row of its stratum's schedule.

    Args:
        units: DataFrame of enrolled units, one row each, in enrolment order
        schedule: Combined schedule (or its table)
        unit_col: Column holding the unit label
        stratum_col: Column holding the unit's stratum

    Returns:
        Copy of units with columns ['id', 'block', 'block_position',
        'treatment'] appended, in the original row order with a fresh
        RangeIndex

    Raises:
        InvalidParameter: If columns are missing or would be overwritten, unit
            labels repeat, a stratum
            has no schedule, or a stratum has more units than schedule rows
        EmptyInput: If units is empty
    """
    table = schedule.table if isinstance(schedule, CombinedSchedule) else schedule
    if units.empty:
        raise EmptyInput("units must contain at least one row")
    units = units.reset_index(drop=True)

    for col in (unit_col, stratum_col):
        if col not in units.columns:
            raise InvalidParameter(f"units must contain '{col}' column")

    clashing = [col for col in ALLOCATION_COLUMNS if col in units.columns]
    if clashing:
        raise InvalidParameter(f"units already contain allocation columns: {clashing}")

    if units[unit_col].duplicated().any():
        duplicated = units.loc[units[unit_col].duplicated(), unit_col].tolist()
        raise InvalidParameter(f"unit labels must be unique, duplicated: {duplicated}")

    known_strata = set(table['stratum'])
    unknown = sorted(set(units[stratum_col]) - known_strata, key=str)
    if unknown:
        raise InvalidParameter(f"no schedule for strata: {unknown}")

    allocated = []
    for stratum, stratum_units in units.groupby(stratum_col, sort=False):
        rows = table[table['stratum'] == stratum]
        if len(stratum_units) > len(rows):
            raise InvalidParameter(
                f"stratum '{stratum}' has {len(stratum_units)} units but only "
                f"{len(rows)} schedule rows"
            )

        # Units take rows in enrolment order
        rows = rows.iloc[:len(stratum_units)]
        allocated.append(pd.DataFrame({
            '_row': stratum_units.index,
            'id': rows['id'].to_numpy(),
            'block': rows['block'].to_numpy(),
            'block_position': rows['block_position'].to_numpy(),
            'treatment': rows['treatment'].to_numpy()
        }))

    allocation = pd.concat(allocated, ignore_index=True).set_index('_row')
    return units.join(allocation)
