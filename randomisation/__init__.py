"""
Stratified block randomisation for cluster-randomised trials.

This module generates permuted block schedules per stratum, combines them
into one identified schedule, and hands schedule rows to enrolled units.
"""

from .blocks import BlockSizePolicy, RandomisationRequest, Block, RandomisationSchedule, generate_blocks, generate_schedule
from .strata import CombinedSchedule, combine, format_identifiers
from .units import assign_units
from .exceptions import RandomisationError, InvalidParameter, EmptyInput

__all__ = [
    'BlockSizePolicy',
    'RandomisationRequest',
    'Block',
    'RandomisationSchedule',
    'generate_blocks',
    'generate_schedule',
    'CombinedSchedule',
    'combine',
    'format_identifiers',
    'assign_units',
    'RandomisationError',
    'InvalidParameter',
    'EmptyInput'
]
