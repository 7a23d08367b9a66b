"""
Main runner for stratified schedule generation.
"""

import os
from datetime import datetime
from typing import Any, Dict, Optional

import matplotlib.pyplot as plt
import pandas as pd

from randomisation.strata import CombinedSchedule, combine
from evaluation.balance import (
    tally, block_balance, evaluate_allocation_balance, print_balance_summary
)
from diagnostics.plots import SchedulePlotter
from .config import TrialConfig
from .export import export_schedule


class ScheduleRunner:
    """
    High-level runner for generating, auditing and exporting a schedule.

    This class orchestrates the steps taken at trial setup: generate every
    stratum, check balance, draw the sanity plots and write the schedule
    together with its seeds.
    """

    def __init__(self, config: Optional[TrialConfig] = None):
        """
        Initialize the schedule runner.

        Args:
            config: Trial configuration. If None, uses defaults.
        """
        self.config = config or TrialConfig()
        self.plotter = SchedulePlotter()

    def generate(self) -> CombinedSchedule:
        """Generate the combined schedule for the configured strata."""
        return combine(self.config.to_requests(), id_width=self.config.id_width)

    def audit(self, schedule: CombinedSchedule) -> Dict[str, Any]:
        """
        Run the balance checks on a schedule.

        Returns:
            Dictionary with 'tally', 'block_balance', 'unbalanced_blocks'
            and 'balance' entries
        """
        blocks = block_balance(schedule)
        return {
            'tally': tally(schedule),
            'block_balance': blocks,
            'unbalanced_blocks': int((~blocks['balanced']).sum()),
            'balance': evaluate_allocation_balance(schedule)
        }

    def plot(self, schedule: CombinedSchedule) -> Dict[str, plt.Figure]:
        """Draw the allocation sanity plots."""
        return {
            'allocation': self.plotter.plot_allocation_counts(schedule),
            'block_sizes': self.plotter.plot_block_sizes(schedule),
            'imbalance': self.plotter.plot_cumulative_imbalance(schedule)
        }

    def run(self,
            verbose: bool = True,
            save_csv: bool = False,
            save_plots: bool = False,
            show_plots: bool = False,
            output_dir: Optional[str] = None) -> Dict[str, Any]:
        """
        Generate, audit and optionally export a schedule.

        Args:
            verbose: Whether to print progress and summary
            save_csv: Whether to write the schedule CSV and audit record
            save_plots: Whether to save plots as image files
            show_plots: Whether to display plots
            output_dir: Directory for outputs. If None, uses config.output_dir.

        Returns:
            Dictionary with the schedule, its table, audit results and any
            written file paths
        """
        output_dir = output_dir or self.config.output_dir

        if verbose:
            print(f"Generating schedule for {len(self.config.strata)} strata...")
            print(f"Default treatment levels: {list(self.config.levels)}")

        schedule = self.generate()
        audit = self.audit(schedule)

        results = {
            'schedule': schedule,
            'table': schedule.table,
            'seeds': schedule.seeds(),
            **audit
        }

        if verbose:
            print("\n" + "=" * 60)
            print("SCHEDULE SUMMARY")
            print("=" * 60)
            print(self._strata_summary(schedule).to_string(index=False))
            print(f"\nTotal rows: {len(schedule)}  "
                  f"(ids {schedule.ids()[0]} .. {schedule.ids()[-1]})")
            print(f"Unbalanced blocks: {audit['unbalanced_blocks']}\n")
            print_balance_summary(audit['balance'])

        if save_csv or save_plots:
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")

            if not os.path.exists(output_dir):
                os.makedirs(output_dir)
                if verbose:
                    print(f"\n📁 Created output directory: {output_dir}")

            if save_csv:
                paths = export_schedule(schedule, output_dir, timestamp=timestamp)
                results['csv_path'] = paths['csv']
                results['audit_path'] = paths['audit']
                if verbose:
                    print(f"💾 Saved schedule files:")
                    print(f"  - Schedule: {paths['csv']}")
                    print(f"  - Audit record: {paths['audit']}")

        if save_plots or show_plots:
            figures = self.plot(schedule)
            plot_paths = {}
            for name, fig in figures.items():
                if save_plots:
                    path = os.path.join(output_dir, f"{name}_plot_{timestamp}.png")
                    fig.savefig(path, dpi=150, bbox_inches='tight')
                    plot_paths[name] = path
                if not show_plots:
                    plt.close(fig)
            if show_plots:
                plt.show()
            if save_plots:
                results['plot_paths'] = plot_paths
                if verbose:
                    print(f"📊 Saved {len(plot_paths)} plot files to {output_dir}")

        return results

    def _strata_summary(self, schedule: CombinedSchedule) -> pd.DataFrame:
        rows = []
        for request, stratum_schedule in zip(schedule.requests, schedule.schedules):
            rows.append({
                'stratum': request.stratum,
                'levels': ', '.join(str(level) for level in request.levels),
                'requested': request.n,
                'allocated': stratum_schedule.n_units,
                'blocks': len(stratum_schedule.blocks),
                'block_policy': request.block_policy.describe(),
                'seed': request.seed
            })
        return pd.DataFrame(rows)
