from dataclasses import dataclass, field

from ultraspec_setup.detector.detector_constants import ReadoutMode, ReadoutSpeed
from ultraspec_setup.detector.telescope import SkyClass
from ultraspec_setup.my_dataclasses.windows import Window, WindowPair

RUN_UNTIL_STOPPED = -1


@dataclass(frozen=True)
class ExposureSpec:
    """
    Attributes:
        delay_ticks (int): Exposure delay in units of 0.1 ms (DWELL).
        num_exposures (int): Number of frames, RUN_UNTIL_STOPPED (-1) for an open-ended run.
    """
    delay_ticks: int = 5000
    num_exposures: int = RUN_UNTIL_STOPPED

    @property
    def delay_seconds(self) -> float:
        return self.delay_ticks * 1.0e-4

    @classmethod
    def from_milliseconds(cls, milliseconds: int, tenths: int = 0, num_exposures: int = RUN_UNTIL_STOPPED,
                          expert: bool = False) -> "ExposureSpec":
        """
        Builds the tick count from a millisecond part and a 0.1 ms part.
        Outside expert mode the delay is at least one tick.
        """
        ticks = 10 * milliseconds + tenths
        if not expert:
            ticks = max(1, ticks)
        return cls(delay_ticks=ticks, num_exposures=num_exposures)


@dataclass(frozen=True)
class CameraSetup:
    """
    A committed readout configuration. Recreated (dataclasses.replace) on every change.

    In window mode only the first num_active entries of windows are used; in
    drift mode window_pair is used and clear_enabled must be False.
    """
    windows: tuple[Window, ...] = ()
    window_pair: WindowPair | None = None
    bin_x: int = 1
    bin_y: int = 1
    mode: ReadoutMode = ReadoutMode.NORMAL
    speed: ReadoutSpeed = ReadoutSpeed.SLOW
    clear_enabled: bool = False
    drift_mode: bool = False
    num_active: int = 1
    exposure: ExposureSpec = field(default_factory=ExposureSpec)
    hv_gain: int = 0
    led_intensity: int = 0

    @property
    def active_windows(self) -> tuple[Window, ...]:
        return self.windows[:self.num_active]

    @property
    def clear_active(self) -> bool:
        """Clear only operates outside drift mode."""
        return self.clear_enabled and not self.drift_mode


@dataclass(frozen=True)
class TargetSpec:
    """
    Inputs to the signal-to-noise estimate. Values come straight from operator
    fields, so any of them may be missing or non-numeric.
    """
    magnitude: float | str | None = 18.0
    seeing_arcsec: float | str | None = 1.0
    sky_class: SkyClass | str | None = SkyClass.DARK
    airmass: float | str | None = 1.5
    filter_index: int | str | None = 1
    telescope: str = "NTT"
