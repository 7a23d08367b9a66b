"""
Permuted block randomisation for a single stratum.

A schedule is built block by block from a private, seeded numpy Generator.
Every block length is a multiple of the number of treatment levels, so each
block holds exactly the same number of units per level.
"""

from collections import Counter
from dataclasses import dataclass, field
from numbers import Integral
from typing import Dict, List, Sequence, Tuple

import numpy as np
import pandas as pd

from .exceptions import InvalidParameter


SCHEDULE_COLUMNS = [
    'stratum', 'stratum_position', 'block', 'block_size',
    'block_position', 'treatment'
]


def _is_int(value) -> bool:
    return isinstance(value, Integral) and not isinstance(value, bool)


@dataclass(frozen=True)
class BlockSizePolicy:
    """
    Rule for choosing the length of each block.

    Use one of the constructors rather than building the dataclass directly:

    - ``BlockSizePolicy.fixed(4)``: every block has 4 units
    - ``BlockSizePolicy.up_to(8)``: lengths drawn uniformly from the
      multiples of the level count not exceeding 8
    - ``BlockSizePolicy.multiples(1, 2)``: lengths of 1x or 2x the level
      count, drawn uniformly
    """
    kind: str
    sizes: Tuple[int, ...]

    @classmethod
    def fixed(cls, length: int) -> 'BlockSizePolicy':
        return cls('fixed', (length,))

    @classmethod
    def up_to(cls, max_length: int) -> 'BlockSizePolicy':
        return cls('max', (max_length,))

    @classmethod
    def multiples(cls, *multipliers: int) -> 'BlockSizePolicy':
        return cls('multiples', tuple(multipliers))

    def candidate_lengths(self, n_levels: int) -> List[int]:
        """
        Resolve the policy to the achievable block lengths.

        Args:
            n_levels: Number of treatment levels

        Returns:
            Sorted list of block lengths, each a multiple of n_levels

        Raises:
            InvalidParameter: If the policy admits no balanced block
        """
        if not self.sizes or not all(_is_int(s) for s in self.sizes):
            raise InvalidParameter(f"block sizes must be integers, got {self.sizes!r}")
        if any(s <= 0 for s in self.sizes):
            raise InvalidParameter(f"block sizes must be positive, got {self.sizes!r}")

        if self.kind == 'fixed':
            length = self.sizes[0]
            if length % n_levels != 0:
                raise InvalidParameter(
                    f"fixed block length {length} is not divisible by "
                    f"the number of levels ({n_levels})"
                )
            return [length]

        if self.kind == 'max':
            max_length = self.sizes[0]
            if max_length < n_levels:
                raise InvalidParameter(
                    f"maximum block length {max_length} is smaller than "
                    f"the number of levels ({n_levels})"
                )
            return list(range(n_levels, max_length + 1, n_levels))

        if self.kind == 'multiples':
            return sorted({m * n_levels for m in self.sizes})

        raise InvalidParameter(f"unknown block size policy {self.kind!r}")

    def describe(self) -> str:
        if self.kind == 'fixed':
            return f"fixed({self.sizes[0]})"
        if self.kind == 'max':
            return f"up_to({self.sizes[0]})"
        return f"multiples({', '.join(str(s) for s in self.sizes)})"


@dataclass(frozen=True)
class RandomisationRequest:
    """Everything needed to (re)generate the schedule of one stratum."""
    n: int
    levels: Tuple[str, ...]
    block_policy: BlockSizePolicy
    seed: int
    stratum: str = ''
    prefix: str = ''

    def __post_init__(self):
        # Accept any sequence for levels but store it immutably; a bare
        # string is left as is so validate() rejects it
        if not isinstance(self.levels, str):
            object.__setattr__(self, 'levels', tuple(self.levels))

    def validate(self) -> List[int]:
        """
        Check the request and return its candidate block lengths.

        Raises:
            InvalidParameter: If any field is malformed
        """
        return _validate(self.n, self.levels, self.block_policy, self.seed)


@dataclass(frozen=True)
class Block:
    """One permuted block of treatment assignments."""
    number: int
    treatments: Tuple[str, ...]

    @property
    def length(self) -> int:
        return len(self.treatments)

    def counts(self) -> Dict[str, int]:
        return dict(Counter(self.treatments))

    def is_balanced(self, levels: Sequence[str]) -> bool:
        counts = Counter(self.treatments)
        per_level = [counts.get(level, 0) for level in levels]
        return max(per_level) - min(per_level) <= 1


@dataclass
class RandomisationSchedule:
    """Ordered blocks for a single stratum."""
    stratum: str
    levels: Tuple[str, ...]
    seed: int
    blocks: List[Block] = field(default_factory=list)

    @property
    def n_units(self) -> int:
        return sum(block.length for block in self.blocks)

    def treatments(self) -> List[str]:
        return [t for block in self.blocks for t in block.treatments]

    def to_frame(self) -> pd.DataFrame:
        """
        Flatten the schedule to one row per allocated unit.

        Returns:
            DataFrame with columns ['stratum', 'stratum_position', 'block',
            'block_size', 'block_position', 'treatment']
        """
        records = []
        position = 0
        for block in self.blocks:
            for block_position, treatment in enumerate(block.treatments, start=1):
                position += 1
                records.append({
                    'stratum': self.stratum,
                    'stratum_position': position,
                    'block': block.number,
                    'block_size': block.length,
                    'block_position': block_position,
                    'treatment': treatment
                })
        return pd.DataFrame(records, columns=SCHEDULE_COLUMNS)


def _validate(n, levels: Sequence[str], policy: BlockSizePolicy, seed) -> List[int]:
    if not _is_int(n) or n <= 0:
        raise InvalidParameter(f"n must be a positive integer, got {n!r}")

    if isinstance(levels, str):
        raise InvalidParameter(f"levels must be a sequence of labels, not the string {levels!r}")
    levels = tuple(levels)
    if len(set(levels)) < 2:
        raise InvalidParameter("levels must contain at least 2 distinct labels")
    if len(set(levels)) != len(levels):
        raise InvalidParameter(f"levels must not contain duplicates, got {levels!r}")

    if not _is_int(seed):
        raise InvalidParameter(f"seed must be an integer, got {seed!r}")

    if not isinstance(policy, BlockSizePolicy):
        raise InvalidParameter(f"block_size_policy must be a BlockSizePolicy, got {policy!r}")

    return policy.candidate_lengths(len(levels))


def generate_blocks(n: int,
                    levels: Sequence[str],
                    block_size_policy: BlockSizePolicy,
                    seed: int,
                    stratum: str = '') -> RandomisationSchedule:
    """
    Generate a permuted block schedule covering at least n units.

    Blocks are appended until the total number of units reaches n. The last
    block is always completed, so the schedule may hold more than n units.

    Args:
        n: Minimum number of units to allocate
        levels: Treatment labels (at least 2, distinct)
        block_size_policy: Rule for the length of each block
        seed: Seed for the private random generator
        stratum: Label stored on the resulting schedule

    Returns:
        RandomisationSchedule for the stratum

    Raises:
        InvalidParameter: If n, levels, policy or seed are malformed
    """
    lengths = _validate(n, levels, block_size_policy, seed)
    levels = tuple(levels)
    n_levels = len(levels)

    rng = np.random.default_rng(seed)
    schedule = RandomisationSchedule(stratum=stratum, levels=levels, seed=seed)

    total = 0
    while total < n:
        if len(lengths) == 1:
            length = lengths[0]
        else:
            length = lengths[int(rng.integers(len(lengths)))]

        pool = np.repeat(np.arange(n_levels), length // n_levels)
        order = rng.permutation(pool)

        schedule.blocks.append(Block(
            number=len(schedule.blocks) + 1,
            treatments=tuple(levels[i] for i in order)
        ))
        total += length

    return schedule


def generate_schedule(request: RandomisationRequest) -> RandomisationSchedule:
    """Generate the schedule described by a single request."""
    return generate_blocks(
        request.n,
        request.levels,
        request.block_policy,
        request.seed,
        stratum=request.stratum
    )
