from dataclasses import dataclass
from enum import Enum


class GeometryRule(Enum):
    """Which validation rule rejected a setup."""
    BIN_FACTOR = "bin factor"
    NUM_WINDOWS = "number of windows"
    POSITION = "position"
    SIZE = "size"
    BOUNDS = "bounds"
    BINNING = "binning mismatch"
    OVERLAP = "overlap"
    DRIFT_HEIGHT = "illegal drift height"
    PAIR_COLUMNS = "pair columns"
    EXPOSURE = "exposure"
    GAIN = "gain"
    CLEAR = "clear"


@dataclass(frozen=True)
class Validity:
    ok: bool
    reason: str | None = None
    rule: GeometryRule | None = None

    @classmethod
    def valid(cls) -> "Validity":
        return cls(ok=True)

    @classmethod
    def invalid(cls, rule: GeometryRule, reason: str) -> "Validity":
        return cls(ok=False, reason=f"{rule.value}: {reason}", rule=rule)

    def __bool__(self) -> bool:
        return self.ok


@dataclass(frozen=True)
class WindowTiming:
    """Per-window contributions to the cycle time, in seconds."""
    yshift: float
    line_clear: float
    line_read: float
    readout: float

    @property
    def total(self) -> float:
        return self.yshift + self.line_clear + self.readout


@dataclass(frozen=True)
class TimingResult:
    """
    Attributes:
        cycle_time (float): Time between successive frames [s].
        frame_rate (float): 1 / cycle_time [Hz].
        exposure_time (float): Time on source per cycle [s].
        duty_cycle (float): 100 * exposure_time / cycle_time [%].
        bytes_per_frame (int): Header plus 16-bit binned pixels.
        dead_time (float): cycle_time - exposure_time [s].
        frame_transfer_time (float): [s].
        clear_time (float): [s], zero unless clear is active.
        windows (tuple[WindowTiming, ...]): Per window (one entry in drift mode).
        pipe_windows (int | None): Drift mode only, windows held in the storage area.
        pipe_shift (float | None): Drift mode only, extra rows shifted per cycle.
    """
    cycle_time: float
    frame_rate: float
    exposure_time: float
    duty_cycle: float
    bytes_per_frame: int
    dead_time: float
    frame_transfer_time: float
    clear_time: float
    windows: tuple[WindowTiming, ...] = ()
    pipe_windows: int | None = None
    pipe_shift: float | None = None


class SaturationLevel(Enum):
    OK = 0
    WARNING = 1
    SATURATED = 2


@dataclass(frozen=True)
class SnrResult:
    """
    Signal-to-noise estimate. When available is False every numeric field is
    None and reason says which input was unusable.
    """
    total_counts: float | None
    peak_counts: float | None
    signal_to_noise_per_frame: float | None
    signal_to_noise_3hr: float | None
    saturation: SaturationLevel | None
    available: bool = True
    reason: str | None = None

    @property
    def saturation_flag(self) -> bool:
        return self.saturation is SaturationLevel.SATURATED

    @classmethod
    def unavailable(cls, reason: str) -> "SnrResult":
        return cls(
            total_counts=None,
            peak_counts=None,
            signal_to_noise_per_frame=None,
            signal_to_noise_3hr=None,
            saturation=None,
            available=False,
            reason=reason,
        )


class DiskUsageLevel(Enum):
    OK = 0
    WARN = 1
    DANGER = 2


@dataclass(frozen=True)
class RunEstimate:
    """
    Duration and data volume of a run. For runs without a fixed number of
    exposures the totals are None.
    """
    seconds_per_frame: float
    megabytes_per_frame: float
    duration: float | None
    megabytes: float | None
    disk_usage: DiskUsageLevel
