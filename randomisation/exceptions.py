"""
Exceptions raised by the randomisation routines.
"""


class RandomisationError(ValueError):
    """Base class for malformed randomisation input."""


class InvalidParameter(RandomisationError):
    """A request parameter is out of range or inconsistent."""


class EmptyInput(RandomisationError):
    """No strata were supplied to the combiner."""
