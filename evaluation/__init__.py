"""
Evaluation library for randomisation schedules.

This module provides post-hoc checks that realised allocations stay
balanced within each block and each stratum.
"""

from .balance import tally, tally_frame, block_balance, evaluate_allocation_balance, print_balance_summary

__all__ = [
    'tally',
    'tally_frame',
    'block_balance',
    'evaluate_allocation_balance',
    'print_balance_summary'
]
