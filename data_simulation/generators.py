"""
Synthetic cluster registers for cluster-randomised trial simulations.
"""

import numpy as np
import pandas as pd
from typing import Optional, Sequence
from dataclasses import dataclass


@dataclass
class SiteConfig:
    """Configuration for site register generation."""
    n_sites: int = 40
    strata: Sequence[str] = ('Small', 'Large')
    size_mean: float = 120
    size_std: float = 40
    min_size: int = 10
    seed: Optional[int] = None


class SiteRegisterGenerator:
    """
    Simple generator of enrolling sites (clusters).

    Generates a register with:
    - Sequential site labels
    - A stratum per site, drawn uniformly from the configured strata
    - A cluster size (participants per site), normal and truncated below
    - A random enrolment order
    """

    def __init__(self, config: Optional[SiteConfig] = None):
        """
        Initialize the generator.

        Args:
            config: Configuration object. If None, uses defaults.
        """
        self.config = config or SiteConfig()

    def generate(self) -> pd.DataFrame:
        """
        Generate a synthetic site register.

        Returns:
            DataFrame with columns ['unit', 'stratum', 'cluster_size',
            'enrolment_order'], sorted by enrolment order
        """
        if self.config.n_sites <= 0:
            raise ValueError("n_sites must be positive")
        if len(self.config.strata) == 0:
            raise ValueError("at least one stratum is required")

        rng = np.random.default_rng(self.config.seed)
        n = self.config.n_sites

        units = [f"site_{i:03d}" for i in range(n)]
        strata = rng.choice(np.asarray(self.config.strata, dtype=object), size=n)

        sizes = rng.normal(self.config.size_mean, self.config.size_std, n)
        sizes = np.maximum(np.round(sizes), self.config.min_size).astype(int)

        order = rng.permutation(n) + 1

        register = pd.DataFrame({
            'unit': units,
            'stratum': strata.astype(str),
            'cluster_size': sizes,
            'enrolment_order': order
        })

        return register.sort_values('enrolment_order').reset_index(drop=True)

    def validate_register(self, register: pd.DataFrame) -> bool:
        """
        Validate a generated register meets expected properties.

        Args:
            register: Generated site register

        Returns:
            True if the register is valid
        """
        expected = {'unit', 'stratum', 'cluster_size', 'enrolment_order'}
        if not expected.issubset(register.columns):
            return False
        if len(register) != self.config.n_sites:
            return False
        if register['unit'].duplicated().any():
            return False
        if not set(register['stratum']).issubset(set(self.config.strata)):
            return False
        if (register['cluster_size'] < self.config.min_size).any():
            return False
        return sorted(register['enrolment_order']) == list(range(1, self.config.n_sites + 1))
