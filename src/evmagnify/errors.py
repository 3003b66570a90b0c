"""Exception types raised by the magnification engine."""


class EvmError(Exception):
    """Base class for all evmagnify errors."""


class ConfigurationError(EvmError):
    """Invalid construction parameters (cutoffs, depth, sample rate, gain).

    Deliberately not a ValueError subclass so it propagates unwrapped out of
    pydantic validators.
    """


class DimensionMismatchError(EvmError):
    """A frame or pyramid does not match the shape the filter was seeded with."""


class FilterStateError(EvmError, RuntimeError):
    """Filter state was requested before the filter was seeded."""
