"""
Configuration classes for schedule generation.
"""

from dataclasses import dataclass, field, replace
from typing import Optional, Dict, Any, List, Sequence, Union

import yaml

from randomisation.blocks import BlockSizePolicy, RandomisationRequest
from randomisation.exceptions import EmptyInput, InvalidParameter


BLOCK_POLICIES = ('fixed', 'max', 'multiples')


@dataclass
class StratumConfig:
    """
    Configuration for one stratum.

    ``block_size`` is the block length for the 'fixed' policy, the maximum
    length for 'max', and the multiplier(s) of the level count for
    'multiples'. Fields left as None inherit from the trial.
    """
    name: str
    n: int
    block_size: Union[int, List[int]] = 4
    block_policy: str = 'fixed'
    seed: Optional[int] = None
    prefix: Optional[str] = None
    levels: Optional[List[str]] = None

    def to_policy(self) -> BlockSizePolicy:
        """Convert block settings to a BlockSizePolicy."""
        if self.block_policy not in BLOCK_POLICIES:
            raise InvalidParameter(
                f"block_policy must be one of {BLOCK_POLICIES}, got {self.block_policy!r}"
            )

        if self.block_policy == 'multiples':
            sizes = self.block_size if isinstance(self.block_size, (list, tuple)) else [self.block_size]
            return BlockSizePolicy.multiples(*sizes)

        if isinstance(self.block_size, (list, tuple)):
            raise InvalidParameter(
                f"block_policy '{self.block_policy}' takes a single block_size, got {self.block_size!r}"
            )
        if self.block_policy == 'max':
            return BlockSizePolicy.up_to(self.block_size)
        return BlockSizePolicy.fixed(self.block_size)


@dataclass
class TrialConfig:
    """
    Configuration for a complete stratified schedule.

    The seeds used are part of the trial record; a stratum without its own
    seed uses ``seed + stratum index``.
    """

    # Allocation
    levels: Sequence[str] = ('Treatment', 'Control')
    strata: List[StratumConfig] = field(default_factory=list)

    # Identifiers
    prefix: str = 'ID'
    id_width: Optional[int] = None

    # Random seed
    seed: Optional[int] = None

    # Outputs
    output_dir: str = 'schedule_output'

    def to_requests(self) -> List[RandomisationRequest]:
        """
        Build one RandomisationRequest per stratum, in configured order.

        Raises:
            EmptyInput: If no strata are configured
            InvalidParameter: If a stratum ends up without a seed
        """
        if not self.strata:
            raise EmptyInput("at least one stratum must be configured")

        requests = []
        for index, stratum in enumerate(self.strata):
            if stratum.seed is not None:
                seed = stratum.seed
            elif self.seed is not None:
                seed = self.seed + index
            else:
                raise InvalidParameter(
                    f"stratum '{stratum.name}' has no seed and the trial has no base seed"
                )

            requests.append(RandomisationRequest(
                n=stratum.n,
                levels=tuple(stratum.levels or self.levels),
                block_policy=stratum.to_policy(),
                seed=seed,
                stratum=stratum.name,
                prefix=self.prefix if stratum.prefix is None else stratum.prefix
            ))
        return requests

    def update(self, **kwargs) -> 'TrialConfig':
        """
        Create a new config with updated parameters.

        Args:
            **kwargs: Parameters to update

        Returns:
            New TrialConfig instance with updated parameters
        """
        return replace(self, **kwargs)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'levels': list(self.levels),
            'prefix': self.prefix,
            'id_width': self.id_width,
            'seed': self.seed,
            'output_dir': self.output_dir,
            'strata': [
                {
                    'name': s.name,
                    'n': s.n,
                    'block_size': s.block_size,
                    'block_policy': s.block_policy,
                    'seed': s.seed,
                    'prefix': s.prefix,
                    'levels': s.levels
                }
                for s in self.strata
            ]
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TrialConfig':
        """
        Build a config from a plain dictionary (e.g. parsed YAML).

        Raises:
            InvalidParameter: If the data is not a mapping, unknown keys are
                present or levels is not a list
        """
        if not isinstance(data, dict):
            raise InvalidParameter(f"trial config must be a mapping, got {type(data).__name__}")
        data = dict(data)
        strata_data = data.pop('strata', []) or []

        known = {'levels', 'prefix', 'id_width', 'seed', 'output_dir'}
        unknown = set(data) - known
        if unknown:
            raise InvalidParameter(f"unknown trial config keys: {sorted(unknown)}")

        strata = []
        for item in strata_data:
            try:
                strata.append(StratumConfig(**item))
            except TypeError as e:
                raise InvalidParameter(f"invalid stratum config {item!r}: {e}") from e

        if 'levels' in data:
            if not isinstance(data['levels'], (list, tuple)):
                raise InvalidParameter(
                    f"levels must be a list of labels, got {data['levels']!r}"
                )
            data['levels'] = tuple(data['levels'])
        return cls(strata=strata, **data)

    @classmethod
    def from_yaml(cls, path: str) -> 'TrialConfig':
        """Load a config from a YAML file."""
        with open(path, 'r') as f:
            data = yaml.safe_load(f) or {}
        return cls.from_dict(data)
