"""
Data simulation library for cluster-randomised trials.

This module provides synthetic site registers for exercising schedule
generation and unit allocation.
"""

from .generators import SiteRegisterGenerator, SiteConfig

__all__ = ['SiteRegisterGenerator', 'SiteConfig']
