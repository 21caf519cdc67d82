"""
Evaluation pipeline: validate -> to native -> timing -> run estimate -> signal-to-noise.

Nothing downstream of validation runs for an invalid setup, and a failed
signal-to-noise estimate never hides the timing numbers.
"""
from dataclasses import dataclass

from ultraspec_setup.application.app_parameters import AppParameters, build_app_parameters
from ultraspec_setup.detector.detector_constants import DetectorConstants, ULTRASPEC
from ultraspec_setup.detector.telescope import DEFAULT_SKY, DEFAULT_TELESCOPES, SkyTable, TelescopeTable
from ultraspec_setup.geometry.coordinate_transform import pair_to_native, to_native
from ultraspec_setup.geometry.window_validity import validate_setup
from ultraspec_setup.logging_utils.logging_setup import get_logger
from ultraspec_setup.my_dataclasses.camera_setup import CameraSetup, TargetSpec
from ultraspec_setup.my_dataclasses.results import (DiskUsageLevel, RunEstimate, SaturationLevel, SnrResult,
                                                    TimingResult, Validity)
from ultraspec_setup.my_dataclasses.windows import NativeWindow, NativeWindowPair
from ultraspec_setup.snr.snr_estimator import estimate_snr
from ultraspec_setup.timing.speed import compute_timing, estimate_run

log = get_logger(__name__)


@dataclass(frozen=True)
class SetupReport:
    """Everything known about one setup. All fields except validity are None when the setup is invalid."""
    validity: Validity
    native_windows: tuple[NativeWindow, ...] | None = None
    native_pair: NativeWindowPair | None = None
    timing: TimingResult | None = None
    run: RunEstimate | None = None
    snr: SnrResult | None = None
    parameters: AppParameters | None = None

    @property
    def ok(self) -> bool:
        return self.validity.ok


def evaluate_setup(setup: CameraSetup,
                   target: TargetSpec | None = None,
                   constants: DetectorConstants = ULTRASPEC,
                   telescopes: TelescopeTable = DEFAULT_TELESCOPES,
                   sky: SkyTable = DEFAULT_SKY) -> SetupReport:
    """
    Raises:
        TimingDomainError: if a valid setup still gives a non-positive cycle time
            (only possible with altered constants).
    """
    validity = validate_setup(setup, constants)
    if not validity:
        log.warning(f"Setup rejected: {validity.reason}")
        return SetupReport(validity=validity)

    native_windows = None
    native_pair = None
    if setup.drift_mode:
        native_pair = pair_to_native(setup.window_pair, setup.mode, setup.bin_x, constants)
    else:
        native_windows = tuple(to_native(w, setup.mode, setup.bin_x, constants) for w in setup.active_windows)

    timing = compute_timing(setup, constants)
    run = estimate_run(timing, setup.exposure)
    log.info(f"Cycle time {timing.cycle_time:.6f} s, frame rate {timing.frame_rate:.4f} Hz, "
             f"duty cycle {timing.duty_cycle:.1f} %")
    if run.disk_usage is not DiskUsageLevel.OK:
        log.warning(f"Run of {setup.exposure.num_exposures} frames needs {run.megabytes:.1f} MB "
                    f"({run.disk_usage.name})")

    snr = None
    if target is not None:
        snr = estimate_snr(timing, setup, target, constants, telescopes, sky)
        if not snr.available:
            log.warning(f"Signal-to-noise unavailable: {snr.reason}")
        elif snr.saturation is not SaturationLevel.OK:
            log.warning(f"Peak of {snr.peak_counts:.0f} counts: {snr.saturation.name}")

    return SetupReport(
        validity=validity,
        native_windows=native_windows,
        native_pair=native_pair,
        timing=timing,
        run=run,
        snr=snr,
        parameters=build_app_parameters(setup, constants),
    )
