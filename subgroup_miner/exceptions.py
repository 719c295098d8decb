"""
Error taxonomy for mining runs.

All errors derive from MiningError so a caller can recover a whole run at
one boundary while still telling the four kinds apart.
"""


class MiningError(Exception):
    """Base class of every error raised by a mining run."""


class ConfigurationError(MiningError, ValueError):
    """Invalid column type, empty transaction set or out-of-range parameter."""


class CancellationError(MiningError):
    """The caller requested the run to abort."""


class ResourceExhausted(MiningError):
    """Candidate growth or memory use exceeded the configured budget."""

    def __init__(self, message: str, hint: str = None):
        self.hint = hint or ("Raise min_support or lower max_itemset_length "
                             "to shrink the candidate space.")
        super().__init__(f"{message} {self.hint}")


class InternalInvariantViolation(MiningError, RuntimeError):
    """A downward-closure or store lookup invariant failed."""
