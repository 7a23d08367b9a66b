"""
Tests for evaluation module.
"""

import pytest
import pandas as pd

from randomisation.blocks import BlockSizePolicy, RandomisationRequest, generate_blocks
from randomisation.strata import combine
from evaluation.balance import (
    tally, tally_frame, block_balance, evaluate_allocation_balance, print_balance_summary
)


@pytest.fixture
def combined():
    """Two strata with different level sets."""
    return combine([
        RandomisationRequest(80, ('Treatment', 'Control'), BlockSizePolicy.fixed(4),
                             seed=1, stratum='Small', prefix='HOSP'),
        RandomisationRequest(30, ('Treatment', 'Control', 'Placebo'), BlockSizePolicy.up_to(6),
                             seed=2, stratum='Large', prefix='HOSP'),
    ])


@pytest.fixture
def unbalanced_table():
    """Hand-built schedule table with a skewed block."""
    return pd.DataFrame({
        'stratum': ['S'] * 8,
        'block': [1, 1, 1, 1, 2, 2, 2, 2],
        'treatment': ['A', 'A', 'A', 'B', 'A', 'B', 'B', 'A']
    })


class TestTally:
    """Test cases for allocation counts."""

    def test_combined_schedule(self, combined):
        """Permuted blocks give equal counts per stratum."""
        counts = tally(combined)

        assert counts[('Small', 'Treatment')] == 40
        assert counts[('Small', 'Control')] == 40
        assert ('Small', 'Placebo') not in counts

        large_total = len(combined.stratum_table('Large'))
        for level in ('Treatment', 'Control', 'Placebo'):
            assert counts[('Large', level)] == large_total // 3

        assert sum(counts.values()) == len(combined)

    def test_single_schedule(self):
        """A single-stratum schedule is tallied under its stratum label."""
        schedule = generate_blocks(10, ['Case', 'Control'], BlockSizePolicy.fixed(4), seed=42, stratum='All')
        assert tally(schedule) == {('All', 'Case'): 6, ('All', 'Control'): 6}

    def test_table_input(self, unbalanced_table):
        """A bare table is tallied on observed levels."""
        assert tally(unbalanced_table) == {('S', 'A'): 5, ('S', 'B'): 3}

    def test_tally_frame(self, combined):
        """Counts table has one row per stratum and zero-filled levels."""
        frame = tally_frame(combined)

        assert list(frame.index) == ['Small', 'Large']
        assert list(frame.columns) == ['Treatment', 'Control', 'Placebo']
        assert frame.loc['Small', 'Placebo'] == 0
        assert frame.loc['Small', 'Treatment'] == 40

    def test_error_handling(self):
        """Test error handling for invalid inputs."""
        with pytest.raises(ValueError, match="missing columns"):
            tally(pd.DataFrame({'stratum': ['S']}))

        with pytest.raises(TypeError):
            tally([('S', 'A')])


class TestBlockBalance:
    """Test cases for per-block balance checks."""

    def test_generated_blocks_are_balanced(self, combined):
        """Every generated block is exactly balanced."""
        blocks = block_balance(combined)

        n_blocks = sum(len(s.blocks) for s in combined.schedules)
        assert len(blocks) == n_blocks
        assert blocks['balanced'].all()
        assert (blocks['min_count'] == blocks['max_count']).all()

    def test_detects_unbalanced_block(self, unbalanced_table):
        """A 3:1 block is flagged."""
        blocks = block_balance(unbalanced_table)

        assert blocks['balanced'].tolist() == [False, True]
        assert blocks.loc[0, 'min_count'] == 1
        assert blocks.loc[0, 'max_count'] == 3
        assert blocks.loc[0, 'block_size'] == 4


class TestAllocationBalance:
    """Test cases for the chi-square balance summary."""

    def test_balanced_schedule(self, combined):
        """Equal counts give a p-value of one."""
        balance = evaluate_allocation_balance(combined)

        assert balance['stratum'].tolist() == ['Small', 'Large', 'Overall']
        strata = balance[balance['stratum'] != 'Overall']
        assert (strata['max_imbalance'] == 0).all()
        assert strata['p_value'].tolist() == pytest.approx([1.0, 1.0])
        assert balance['n_units'].iloc[-1] == len(combined)

    def test_overall_with_mixed_level_sets(self, combined):
        """Strata with different arms are balanced overall when each stratum is."""
        balance = evaluate_allocation_balance(combined)
        overall = balance[balance['stratum'] == 'Overall'].iloc[0]

        assert overall['chi2'] == pytest.approx(0.0)
        assert overall['p_value'] == pytest.approx(1.0)
        assert overall['max_imbalance'] == 0

    def test_overall_detects_skew_across_level_sets(self):
        """A skewed stratum still shows up in the overall row."""
        table = pd.DataFrame({
            'stratum': ['Small'] * 40 + ['Large'] * 30,
            'block': list(range(70)),
            'treatment': ['A'] * 30 + ['B'] * 10 + ['A', 'B', 'C'] * 10
        })
        balance = evaluate_allocation_balance(table)
        overall = balance[balance['stratum'] == 'Overall'].iloc[0]

        assert overall['max_imbalance'] == 20
        assert overall['p_value'] < 0.05

    def test_skewed_allocation(self):
        """A 30:10 split is flagged as departing from 1:1."""
        table = pd.DataFrame({
            'stratum': ['S'] * 40,
            'block': list(range(40)),
            'treatment': ['A'] * 30 + ['B'] * 10
        })
        balance = evaluate_allocation_balance(table)
        row = balance.iloc[0]

        assert row['max_imbalance'] == 20
        assert row['chi2'] == pytest.approx(10.0)
        assert row['p_value'] < 0.05

    def test_print_summary(self, combined, capsys):
        """Summary printing lists strata and the overall row."""
        print_balance_summary(evaluate_allocation_balance(combined))
        output = capsys.readouterr().out

        assert "Small" in output
        assert "Large" in output
        assert "Overall" in output
