class UltraspecError(Exception):
    """Base class for all errors raised by ultraspec_setup."""


class GeometryError(UltraspecError, ValueError):
    """Window geometry that cannot be read out (overlap, bad size, bad drift height, bin mismatch)."""


class TimingDomainError(UltraspecError, ArithmeticError):
    """Timing model evaluated on degenerate values (non-positive cycle time)."""


class EstimationUnavailable(UltraspecError):
    """Signal-to-noise inputs missing or out of range. Caught inside the estimator."""


class ApplicationFormatError(UltraspecError, ValueError):
    """Application parameter table is missing a required entry or holds an unreadable value."""
