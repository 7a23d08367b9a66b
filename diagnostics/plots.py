"""
Plotting functions for randomisation schedules.
"""

import matplotlib.pyplot as plt
import seaborn as sns
import pandas as pd
import numpy as np
from typing import Optional, Tuple, Union

from randomisation.blocks import RandomisationSchedule
from randomisation.strata import CombinedSchedule


def _schedule_table(schedule: Union[CombinedSchedule, RandomisationSchedule, pd.DataFrame]) -> pd.DataFrame:
    if isinstance(schedule, CombinedSchedule):
        return schedule.table
    if isinstance(schedule, RandomisationSchedule):
        return schedule.to_frame()
    return schedule


class SchedulePlotter:
    """
    Utility class for the sanity plots reviewed before a schedule is released.
    """

    def __init__(self, style: str = 'whitegrid', figsize: Tuple[int, int] = (10, 6)):
        """
        Initialize the plotter.

        Args:
            style: Seaborn style to use
            figsize: Default figure size
        """
        sns.set_style(style)
        self.default_figsize = figsize

    def plot_allocation_counts(self, schedule,
                               figsize: Optional[Tuple[int, int]] = None) -> plt.Figure:
        """
        Plot the number of units allocated to each treatment, by stratum.

        Args:
            schedule: Combined schedule, single-stratum schedule, or table
            figsize: Figure size override

        Returns:
            Matplotlib figure
        """
        table = _schedule_table(schedule)
        if len(table) == 0:
            raise ValueError("Schedule has no rows to plot")

        figsize = figsize or self.default_figsize
        fig, ax = plt.subplots(figsize=figsize)

        sns.countplot(data=table, x='stratum', hue='treatment', ax=ax)
        ax.set_xlabel('Stratum')
        ax.set_ylabel('Allocated units')
        ax.set_title('Allocation by Stratum')
        ax.tick_params(axis='x', rotation=45)

        plt.tight_layout()
        return fig

    def plot_block_sizes(self, schedule,
                         figsize: Optional[Tuple[int, int]] = None) -> plt.Figure:
        """
        Plot the distribution of block lengths in each stratum.

        Args:
            schedule: Combined schedule, single-stratum schedule, or table
            figsize: Figure size override

        Returns:
            Matplotlib figure
        """
        table = _schedule_table(schedule)
        blocks = table.drop_duplicates(['stratum', 'block'])[['stratum', 'block', 'block_size']]

        figsize = figsize or self.default_figsize
        fig, ax = plt.subplots(figsize=figsize)

        sns.countplot(data=blocks, x='block_size', hue='stratum', ax=ax)
        ax.set_xlabel('Block size')
        ax.set_ylabel('Number of blocks')
        ax.set_title('Block Size Distribution')

        plt.tight_layout()
        return fig

    def plot_cumulative_imbalance(self, schedule,
                                  figsize: Optional[Tuple[int, int]] = None) -> plt.Figure:
        """
        Plot the running spread between the most and least allocated levels.

        The line returns to zero at every block boundary; the height between
        boundaries shows how predictable the next allocation is.

        Args:
            schedule: Combined schedule, single-stratum schedule, or table
            figsize: Figure size override

        Returns:
            Matplotlib figure
        """
        table = _schedule_table(schedule)

        figsize = figsize or self.default_figsize
        fig, ax = plt.subplots(figsize=figsize)

        for stratum, rows in table.groupby('stratum', sort=False):
            dummies = pd.get_dummies(rows['treatment']).astype(int)
            running = dummies.cumsum()
            spread = running.max(axis=1) - running.min(axis=1)
            positions = np.arange(1, len(rows) + 1)
            ax.step(positions, spread.to_numpy(), where='post', label=str(stratum), linewidth=2)

        ax.set_xlabel('Position within stratum')
        ax.set_ylabel('Max - min allocations')
        ax.set_title('Cumulative Allocation Imbalance')
        ax.legend(title='Stratum')

        plt.tight_layout()
        return fig
