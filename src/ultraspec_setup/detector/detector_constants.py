from dataclasses import dataclass
from enum import Enum


class ReadoutMode(Enum):
    """CCD output amplifier. The value is what the camera server expects for OUTPUT."""
    NORMAL = 0
    AVALANCHE = 1

    @property
    def label(self) -> str:
        return self.name.capitalize()


class ReadoutSpeed(Enum):
    """Pixel readout speed. The value is what the camera server expects for SPEED."""
    SLOW = 0
    MEDIUM = 1
    FAST = 2

    @property
    def label(self) -> str:
        return self.name.capitalize()


@dataclass(frozen=True)
class DetectorConstants:
    """
    Clocking, geometry and noise characteristics of the detector.

    Per-speed tables are ordered (slow, medium, fast) so they can be indexed
    with ReadoutSpeed.value.

    Attributes:
        vclock (float): Vertical clock period [s/row].
        hclock_normal (float): Horizontal clock period through the normal output [s/pixel].
        hclock_avalanche (float): Horizontal clock period through the avalanche output [s/pixel].
        video_normal / video_avalanche (tuple[float, float, float]): Video (sampling) period per pixel [s].
        frame_width / frame_height (int): Full frame size including overscan [pixels].
        overscan_columns (int): Serial overscan skipped by the device-independent coordinates.
        avalanche_pixels (int): Extra length of the avalanche register [pixels].
        untransferred_rows (int): Rows that are not shifted on a full frame transfer.
        clear_overhead (float): Fixed overhead per half of a chip clear [s].
        clear_avalanche_hclocks (int): Avalanche-register hclocks spent in a chip clear.
        frame_transfer_overhead (float): Fixed overhead of a frame transfer [s].
        header_bytes (int): Timing bytes written ahead of every frame.
        gain_normal / gain_avalanche (tuple): Electrons per count.
        read_noise_normal / read_noise_avalanche (tuple): Read noise [e-/pixel].
        dark_current (float): [e-/pixel/s].
        clock_induced_charge (float): [e-/pixel], avalanche output only.
        avalanche_gain (float): Multiplication of the avalanche register (HV gain 9).
        avalanche_saturation (float): Register saturation [e-].
        drift_heights (frozenset[int]): Window heights the drift pipeline supports.
    """
    vclock: float = 14.4e-6
    hclock_normal: float = 0.48e-6
    hclock_avalanche: float = 0.96e-6
    video_normal: tuple[float, float, float] = (11.20e-6, 6.24e-6, 3.20e-6)
    video_avalanche: tuple[float, float, float] = (11.20e-6, 6.24e-6, 3.20e-6)

    frame_width: int = 1072
    frame_height: int = 1072
    overscan_columns: int = 16
    avalanche_pixels: int = 1072
    untransferred_rows: int = 35

    clear_overhead: float = 39.0e-6
    clear_avalanche_hclocks: int = 2162
    frame_transfer_overhead: float = 49.0e-6
    header_bytes: int = 24

    gain_normal: tuple[float, float, float] = (0.8, 0.7, 0.8)
    gain_avalanche: tuple[float, float, float] = (0.0016, 0.0013, 0.0034)
    read_noise_normal: tuple[float, float, float] = (2.2, 2.8, 4.8)
    read_noise_avalanche: tuple[float, float, float] = (5.6, 7.8, 16.5)
    dark_current: float = 0.001
    clock_induced_charge: float = 0.010
    avalanche_gain: float = 1200.0
    avalanche_saturation: float = 80000.0

    normal_warn_counts: float = 25000.0
    normal_saturate_counts: float = 60000.0
    avalanche_warn_divisor: float = 3.0
    avalanche_saturate_divisor: float = 5.0

    bin_factors: tuple[int, ...] = (1, 2, 3, 4, 5, 6, 8)
    drift_heights: frozenset[int] = frozenset(
        {15, 17, 22, 23, 24, 28, 45, 61, 69, 94, 115, 148, 207, 344, 345}
    )
    max_windows: int = 4
    max_hv_gain: int = 9
    max_led_intensity: int = 4095
    max_delay_ticks: int = 167772079

    @property
    def imaging_width(self) -> int:
        """Width of the device-independent coordinate system (overscan excluded)."""
        return self.frame_width - self.overscan_columns

    @property
    def pipeline_rows(self) -> int:
        """Rows shifted by a full frame transfer."""
        return self.frame_height - self.untransferred_rows

    @property
    def mirror_offset(self) -> int:
        """Avalanche mirroring constant: native = mirror_offset - xstart - nx."""
        return self.frame_width + 2

    def hclock(self, mode: ReadoutMode) -> float:
        return self.hclock_normal if mode is ReadoutMode.NORMAL else self.hclock_avalanche

    def video_period(self, mode: ReadoutMode, speed: ReadoutSpeed) -> float:
        table = self.video_normal if mode is ReadoutMode.NORMAL else self.video_avalanche
        return table[speed.value]

    def gain(self, mode: ReadoutMode, speed: ReadoutSpeed) -> float:
        table = self.gain_normal if mode is ReadoutMode.NORMAL else self.gain_avalanche
        return table[speed.value]

    def read_noise(self, mode: ReadoutMode, speed: ReadoutSpeed) -> float:
        table = self.read_noise_normal if mode is ReadoutMode.NORMAL else self.read_noise_avalanche
        return table[speed.value]


ULTRASPEC = DetectorConstants()
