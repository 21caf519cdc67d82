"""
Readout timing model.

Works out how long one cycle (exposure delay + clear + frame transfer + shift
and readout of every window) takes, and from that the frame rate, exposure
time, dead time, duty cycle and data volume. Callers must only pass setups
that passed validation.
"""
from ultraspec_setup.detector.detector_constants import DetectorConstants, ReadoutMode, ULTRASPEC
from ultraspec_setup.errors import TimingDomainError
from ultraspec_setup.geometry.coordinate_transform import pair_to_native, to_native
from ultraspec_setup.my_dataclasses.camera_setup import CameraSetup, ExposureSpec, RUN_UNTIL_STOPPED
from ultraspec_setup.my_dataclasses.results import DiskUsageLevel, RunEstimate, TimingResult, WindowTiming

DISK_SPACE_WARN_MB = 1500
DISK_SPACE_DANGER_MB = 1800


def clear_time(setup: CameraSetup, constants: DetectorConstants = ULTRASPEC) -> float:
    """Time to clear the chip by vclocking image and storage areas, zero when clear is off or in drift mode."""
    if not setup.clear_active:
        return 0.0
    c = constants
    return (2.0 * (c.frame_height * c.vclock + c.clear_overhead)
            + c.frame_width * c.hclock_normal
            + c.clear_avalanche_hclocks * c.hclock_avalanche)


def frame_transfer_time(setup: CameraSetup, constants: DetectorConstants = ULTRASPEC) -> float:
    """Full frame: shift the whole image area into storage. Drift: shift only the window."""
    c = constants
    if setup.drift_mode:
        pair = setup.window_pair
        return (pair.ny + pair.ystart - 1) * c.vclock + c.frame_transfer_overhead
    return c.pipeline_rows * c.vclock + c.frame_transfer_overhead


def drift_pipeline(ny: int, constants: DetectorConstants = ULTRASPEC) -> tuple[int, float]:
    """
    Number of windows held in the storage area and the pipe shift (rows) needed
    to keep them stepping through it.
    """
    rows = constants.pipeline_rows
    pipe_windows = int(((rows / ny) + 1.0) / 2.0)
    pipe_shift = rows - (2.0 * pipe_windows - 1.0) * ny
    return pipe_windows, pipe_shift


def _window_timing(yshift_rows: float, nx_read: int, ny: int, setup: CameraSetup,
                   constants: DetectorConstants) -> WindowTiming:
    c = constants
    hclock = c.hclock(setup.mode)
    video = c.video_period(setup.mode, setup.speed)
    avalanche = setup.mode is ReadoutMode.AVALANCHE

    yshift = yshift_rows * c.vclock

    # register is cleared by clocking it out fully once the window sits next to it
    hclock_factor = 2.0 if avalanche else 1.0
    line_clear = hclock_factor * c.frame_width * hclock if yshift != 0 else 0.0

    num_hclocks = c.frame_width + (c.avalanche_pixels if avalanche else 0)
    line_read = c.vclock * setup.bin_y + num_hclocks * hclock + video * nx_read / setup.bin_x
    readout = (ny / setup.bin_y) * line_read
    return WindowTiming(yshift=yshift, line_clear=line_clear, line_read=line_read, readout=readout)


def bytes_per_frame(setup: CameraSetup, constants: DetectorConstants = ULTRASPEC) -> int:
    """Timing header plus 2 bytes per binned pixel. A drift pair counts as two windows."""
    n = constants.header_bytes
    if setup.drift_mode:
        pair = setup.window_pair
        n += 2 * 2 * (pair.nx // setup.bin_x) * (pair.ny // setup.bin_y)
    else:
        for w in setup.active_windows:
            n += 2 * (w.nx // setup.bin_x) * (w.ny // setup.bin_y)
    return n


def compute_timing(setup: CameraSetup, constants: DetectorConstants = ULTRASPEC) -> TimingResult:
    """
    Timing of one readout cycle for a validated setup.

    Raises:
        TimingDomainError: if the cycle time comes out non-positive.
    """
    c = constants
    expose_delay = setup.exposure.delay_seconds
    t_clear = clear_time(setup, c)
    t_transfer = frame_transfer_time(setup, c)

    pipe_windows = None
    pipe_shift = None
    if setup.drift_mode:
        native = pair_to_native(setup.window_pair, setup.mode, setup.bin_x, c)
        window_timings = [
            _window_timing(native.ystart - 1.0, 2 * native.nx, native.ny, setup, c)
        ]
        pipe_windows, pipe_shift = drift_pipeline(native.ny, c)
    else:
        natives = sorted(
            (to_native(w, setup.mode, setup.bin_x, c) for w in setup.active_windows),
            key=lambda w: w.ystart,
        )
        window_timings = []
        previous_end = 1
        for native in natives:
            # rows between the previous window (or the register) and this one
            window_timings.append(
                _window_timing(native.ystart - previous_end, native.nx, native.ny, setup, c)
            )
            previous_end = native.ystart + native.ny

    cycle_time = expose_delay + t_clear + t_transfer + sum(w.total for w in window_timings)
    if pipe_shift is not None:
        cycle_time += pipe_shift * c.vclock

    if not cycle_time > 0.0:
        raise TimingDomainError(f"cycle time {cycle_time!r} s is not positive")

    exposure_time = expose_delay if setup.clear_active else cycle_time - t_transfer
    return TimingResult(
        cycle_time=cycle_time,
        frame_rate=1.0 / cycle_time,
        exposure_time=exposure_time,
        duty_cycle=100.0 * exposure_time / cycle_time,
        bytes_per_frame=bytes_per_frame(setup, c),
        dead_time=cycle_time - exposure_time,
        frame_transfer_time=t_transfer,
        clear_time=t_clear,
        windows=tuple(window_timings),
        pipe_windows=pipe_windows,
        pipe_shift=pipe_shift,
    )


def estimate_run(timing: TimingResult, exposure: ExposureSpec) -> RunEstimate:
    """Duration and disk usage of a run; open-ended runs get no totals and an OK disk level."""
    mb_per_frame = timing.bytes_per_frame / 1024.0 / 1024.0
    if exposure.num_exposures == RUN_UNTIL_STOPPED:
        return RunEstimate(
            seconds_per_frame=timing.cycle_time,
            megabytes_per_frame=mb_per_frame,
            duration=None,
            megabytes=None,
            disk_usage=DiskUsageLevel.OK,
        )

    megabytes = mb_per_frame * exposure.num_exposures
    if megabytes >= DISK_SPACE_DANGER_MB:
        level = DiskUsageLevel.DANGER
    elif megabytes >= DISK_SPACE_WARN_MB:
        level = DiskUsageLevel.WARN
    else:
        level = DiskUsageLevel.OK
    return RunEstimate(
        seconds_per_frame=timing.cycle_time,
        megabytes_per_frame=mb_per_frame,
        duration=timing.cycle_time * exposure.num_exposures,
        megabytes=megabytes,
        disk_usage=level,
    )
