"""
Diagnostics and visualization library for randomisation schedules.

This module provides plots of the allocation distribution.
"""

from .plots import SchedulePlotter

__all__ = ['SchedulePlotter']
