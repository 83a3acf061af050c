class RemediqError(Exception):
    """Base class for all errors raised by the engine."""


class ConfigurationError(RemediqError, ValueError):
    """
    Raised when the engine is constructed with settings that make no sense
    (negative trial budget, learning rate outside (0, 1], duplicate actions...).

    This is the only error tier allowed to stop the engine from starting.
    """


class PersistenceError(RemediqError):
    """Raised when a persisted artifact cannot be read back in strict mode."""
