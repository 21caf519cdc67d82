"""
Geometry checks for window-mode and drift-mode setups.

Every check is a pure predicate: it returns a Validity carrying the first
violated rule and never corrects the input. Windows past num_active are not
looked at.
"""
from typing import Sequence

from ultraspec_setup.detector.detector_constants import DetectorConstants, ULTRASPEC
from ultraspec_setup.errors import GeometryError
from ultraspec_setup.my_dataclasses.camera_setup import CameraSetup, RUN_UNTIL_STOPPED
from ultraspec_setup.my_dataclasses.results import GeometryRule, Validity
from ultraspec_setup.my_dataclasses.windows import Window, WindowPair


def validate(windows_or_pair: Sequence[Window] | WindowPair,
             bin_x: int,
             bin_y: int,
             drift_mode: bool,
             num_active: int = 1,
             constants: DetectorConstants = ULTRASPEC) -> Validity:
    """
    Check that a window set (or drift pair) can be read out with the given binning.

    Args:
        windows_or_pair: Sequence of Window in window mode, a WindowPair in drift mode.
        bin_x, bin_y: Binning factors, applied to all windows.
        drift_mode: Selects which rule set applies.
        num_active: Number of windows in use (window mode only).
        constants: Detector geometry.

    Returns:
        Validity.valid() or Validity.invalid(rule, reason) for the first rule broken.
    """
    for axis, factor in (("X", bin_x), ("Y", bin_y)):
        if factor not in constants.bin_factors:
            return Validity.invalid(
                GeometryRule.BIN_FACTOR,
                f"{axis} bin factor {factor} is not one of {list(constants.bin_factors)}",
            )

    if drift_mode:
        if not isinstance(windows_or_pair, WindowPair):
            return Validity.invalid(GeometryRule.NUM_WINDOWS, "drift mode needs exactly one window pair")
        return _validate_pair(windows_or_pair, bin_x, bin_y, constants)

    if isinstance(windows_or_pair, WindowPair):
        return Validity.invalid(GeometryRule.NUM_WINDOWS, "window mode needs a sequence of windows, not a pair")
    return _validate_windows(windows_or_pair, bin_x, bin_y, num_active, constants)


def validate_setup(setup: CameraSetup, constants: DetectorConstants = ULTRASPEC) -> Validity:
    """Geometry checks followed by the non-geometric limits of a setup (exposure, gain, LED, clear)."""
    windows_or_pair = setup.window_pair if setup.drift_mode else setup.windows
    result = validate(windows_or_pair, setup.bin_x, setup.bin_y, setup.drift_mode,
                      setup.num_active, constants)
    if not result:
        return result

    delay = setup.exposure.delay_ticks
    if not 0 <= delay <= constants.max_delay_ticks:
        return Validity.invalid(
            GeometryRule.EXPOSURE,
            f"exposure delay {delay} ticks outside 0..{constants.max_delay_ticks}",
        )
    if setup.exposure.num_exposures < RUN_UNTIL_STOPPED:
        return Validity.invalid(
            GeometryRule.EXPOSURE,
            f"number of exposures {setup.exposure.num_exposures} must be >= {RUN_UNTIL_STOPPED}",
        )
    if not 0 <= setup.hv_gain <= constants.max_hv_gain:
        return Validity.invalid(
            GeometryRule.GAIN, f"avalanche gain {setup.hv_gain} outside 0..{constants.max_hv_gain}"
        )
    if not 0 <= setup.led_intensity <= constants.max_led_intensity:
        return Validity.invalid(
            GeometryRule.GAIN, f"LED setting {setup.led_intensity} outside 0..{constants.max_led_intensity}"
        )
    if setup.drift_mode and setup.clear_enabled:
        return Validity.invalid(GeometryRule.CLEAR, "clear cannot be enabled in drift mode")
    return Validity.valid()


def require_valid(setup: CameraSetup, constants: DetectorConstants = ULTRASPEC) -> None:
    """Raise GeometryError with the first violated rule if the setup is not valid."""
    result = validate_setup(setup, constants)
    if not result:
        raise GeometryError(result.reason)


def _validate_windows(windows: Sequence[Window], bin_x: int, bin_y: int, num_active: int,
                      constants: DetectorConstants) -> Validity:
    if not 1 <= num_active <= constants.max_windows:
        return Validity.invalid(
            GeometryRule.NUM_WINDOWS, f"{num_active} windows requested, allowed 1..{constants.max_windows}"
        )
    if num_active > len(windows):
        return Validity.invalid(
            GeometryRule.NUM_WINDOWS, f"{num_active} windows requested but only {len(windows)} defined"
        )

    active = list(windows[:num_active])
    for n, window in enumerate(active, start=1):
        result = _check_span(f"window {n}", "xstart", window.xstart, window.nx, "nx",
                             constants.imaging_width, bin_x)
        if not result:
            return result
        result = _check_span(f"window {n}", "ystart", window.ystart, window.ny, "ny",
                             constants.frame_height, bin_y)
        if not result:
            return result

    for i in range(len(active)):
        for j in range(i + 1, len(active)):
            if active[i].overlaps(active[j]):
                return Validity.invalid(GeometryRule.OVERLAP, f"window {i + 1} overlaps window {j + 1}")
    return Validity.valid()


def _validate_pair(pair: WindowPair, bin_x: int, bin_y: int, constants: DetectorConstants) -> Validity:
    if pair.ystart < 1:
        return Validity.invalid(GeometryRule.POSITION, f"pair ystart = {pair.ystart} must be >= 1")
    if pair.nx <= 0:
        return Validity.invalid(GeometryRule.SIZE, f"pair nx = {pair.nx} must be > 0")
    if pair.ny not in constants.drift_heights:
        return Validity.invalid(
            GeometryRule.DRIFT_HEIGHT,
            f"ny = {pair.ny} is not a supported drift height {sorted(constants.drift_heights)}",
        )

    for name, xstart in (("xleft", pair.xleft), ("xright", pair.xright)):
        result = _check_span("pair", name, xstart, pair.nx, "nx", constants.imaging_width, bin_x)
        if not result:
            return result
    result = _check_span("pair", "ystart", pair.ystart, pair.ny, "ny", constants.frame_height, bin_y)
    if not result:
        return result

    if pair.xleft == pair.xright:
        return Validity.invalid(GeometryRule.PAIR_COLUMNS, f"xleft and xright are both {pair.xleft}")
    return Validity.valid()


def _check_span(label: str, start_name: str, start: int, size: int, size_name: str,
                limit: int, binning: int) -> Validity:
    if start < 1:
        return Validity.invalid(GeometryRule.POSITION, f"{label} {start_name} = {start} must be >= 1")
    if size <= 0:
        return Validity.invalid(GeometryRule.SIZE, f"{label} {size_name} = {size} must be > 0")
    if start + size - 1 > limit:
        return Validity.invalid(
            GeometryRule.BOUNDS,
            f"{label} {start_name} + {size_name} - 1 = {start + size - 1} exceeds {limit}",
        )
    if size % binning != 0:
        return Validity.invalid(
            GeometryRule.BINNING,
            f"{label} {size_name} = {size} is not a multiple of the bin factor {binning}",
        )
    return Validity.valid()
