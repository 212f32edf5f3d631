"""Exception types raised by the analysis pipeline."""


class CrimeRegError(Exception):
    """Base class for all analysis errors."""


class ConfigurationError(CrimeRegError, ValueError):
    """Configuration does not match the loaded data."""


class PruningError(CrimeRegError):
    """Feature pruning reached a state where no model can be fitted."""


class DegenerateModelError(CrimeRegError):
    """A fit-quality metric is undefined for the given model and data."""
