"""Exceptions raised by the normalization core."""


class ConfigurationError(ValueError):
    """Fatal setup problem (e.g. the reference month is not in the price index)."""


class UnparseableDateError(ValueError):
    """A record's begin date could not be turned into (year, month)."""
