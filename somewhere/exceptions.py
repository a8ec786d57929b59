"""
Exception types raised by the somewhere package.

All of them are raised before or outside the round loop; disagreement
between a strategy and the oracle is measured, never raised.
"""


class ConfigurationError(ValueError):
    """Raised when strategy or scenario parameters are invalid"""
    pass


class DataLoadError(Exception):
    """Raised when data loading or validation fails"""
    pass


class TopologyError(KeyError):
    """Raised when a round or topology refers to an unknown device"""
    pass
