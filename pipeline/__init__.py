"""
Pipeline orchestration for stratified randomisation schedules.

This module provides high-level interfaces for generating a schedule from
a trial configuration, auditing it and exporting it with its seeds.
"""

from .runner import ScheduleRunner
from .config import TrialConfig, StratumConfig
from .export import export_schedule, load_audit_record, regenerate_from_audit
from .tables import outer_join

__all__ = [
    'ScheduleRunner',
    'TrialConfig',
    'StratumConfig',
    'export_schedule',
    'load_audit_record',
    'regenerate_from_audit',
    'outer_join'
]
