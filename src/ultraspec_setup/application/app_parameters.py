"""
Parameter table written into (and read back from) the camera application document.

The document itself is handled elsewhere; this module only supplies the exact
`ref -> value` strings of its <set_parameter> entries. Values are in native
coordinates with binned sizes. Each group of parameters is a dataclass, so a
table that builds is complete by construction.
"""
from dataclasses import dataclass, fields
from typing import Mapping

from ultraspec_setup.detector.detector_constants import DetectorConstants, ReadoutMode, ReadoutSpeed, ULTRASPEC
from ultraspec_setup.errors import ApplicationFormatError
from ultraspec_setup.geometry.coordinate_transform import (from_native, pair_from_native, pair_to_native,
                                                           to_native)
from ultraspec_setup.geometry.window_validity import require_valid
from ultraspec_setup.my_dataclasses.camera_setup import CameraSetup, ExposureSpec
from ultraspec_setup.my_dataclasses.windows import NativeWindow, NativeWindowPair, Window

# field name -> parameter ref
_COMMON_REFS = {
    "x_bin": "X_BIN",
    "y_bin": "Y_BIN",
    "output": "OUTPUT",
    "speed": "SPEED",
    "dwell": "DWELL",
    "num_exps": "NUM_EXPS",
    "hv_gain": "HV_GAIN",
    "led_flsh": "LED_FLSH",
    "x_size": "X_SIZE",
    "y_size": "Y_SIZE",
}
_DRIFT_REFS = {
    "x1_start": "X1_START",
    "x2_start": "X2_START",
    "y1_start": "Y1_START",
    "x1_size": "X1_SIZE",
    "y1_size": "Y1_SIZE",
    "x2_size": "X2_SIZE",
}
EN_CLR = "EN_CLR"


def _window_ref(name: str, n: int) -> str:
    return f"{name[0].upper()}{n}_{name.split('_')[1].upper()}"


@dataclass(frozen=True)
class WindowParameters:
    """X{n}_START, Y{n}_START, X{n}_SIZE, Y{n}_SIZE of one window. Unused windows carry zero sizes and no starts."""
    n: int
    x_start: int | None
    y_start: int | None
    x_size: int
    y_size: int

    def as_dict(self) -> dict[str, str]:
        out = {}
        for name in ("x_start", "y_start", "x_size", "y_size"):
            value = getattr(self, name)
            if value is not None:
                out[_window_ref(name, self.n)] = str(value)
        return out


@dataclass(frozen=True)
class DriftParameters:
    x1_start: int
    x2_start: int
    y1_start: int
    x1_size: int
    y1_size: int
    x2_size: int

    def as_dict(self) -> dict[str, str]:
        return {ref: str(getattr(self, name)) for name, ref in _DRIFT_REFS.items()}


@dataclass(frozen=True)
class AppParameters:
    x_bin: int
    y_bin: int
    output: int
    speed: int
    dwell: int
    num_exps: int
    hv_gain: int
    led_flsh: int
    x_size: int
    y_size: int
    en_clr: int | None = None
    windows: tuple[WindowParameters, ...] = ()
    drift: DriftParameters | None = None

    def as_dict(self) -> dict[str, str]:
        out = {ref: str(getattr(self, name)) for name, ref in _COMMON_REFS.items()}
        if self.en_clr is not None:
            out[EN_CLR] = str(self.en_clr)
        if self.drift is not None:
            out.update(self.drift.as_dict())
        for window in self.windows:
            out.update(window.as_dict())
        return out


def build_app_parameters(setup: CameraSetup, constants: DetectorConstants = ULTRASPEC) -> AppParameters:
    """
    Parameter table for a setup.

    Raises:
        GeometryError: if the setup is not valid.
    """
    require_valid(setup, constants)
    bx, by = setup.bin_x, setup.bin_y

    drift = None
    windows = []
    if setup.drift_mode:
        native = pair_to_native(setup.window_pair, setup.mode, bx, constants)
        drift = DriftParameters(
            x1_start=native.xleft,
            x2_start=native.xright,
            y1_start=native.ystart,
            x1_size=native.nx // bx,
            y1_size=native.ny // by,
            x2_size=native.nx // bx,
        )
        total_pixels = 2 * drift.x1_size * drift.y1_size
    else:
        total_pixels = 0
        for n in range(1, constants.max_windows + 1):
            if n <= setup.num_active:
                native = to_native(setup.windows[n - 1], setup.mode, bx, constants)
                params = WindowParameters(n, native.xstart, native.ystart, native.nx // bx, native.ny // by)
                total_pixels += params.x_size * params.y_size
            else:
                params = WindowParameters(n, None, None, 0, 0)
            windows.append(params)

    return AppParameters(
        x_bin=bx,
        y_bin=by,
        output=setup.mode.value,
        speed=setup.speed.value,
        dwell=setup.exposure.delay_ticks,
        num_exps=setup.exposure.num_exposures,
        hv_gain=setup.hv_gain if setup.mode is ReadoutMode.AVALANCHE else 0,
        led_flsh=setup.led_intensity,
        x_size=total_pixels,
        y_size=1,
        en_clr=None if setup.drift_mode else int(setup.clear_enabled),
        windows=tuple(windows),
        drift=drift,
    )


def _get_int(values: Mapping[str, str], ref: str) -> int:
    if ref not in values:
        raise ApplicationFormatError(f"Failed to find {ref}")
    try:
        return int(str(values[ref]).strip())
    except ValueError as e:
        raise ApplicationFormatError(f"{ref} = {values[ref]!r} is not an integer") from e


def _get_choice(values: Mapping[str, str], ref: str, choices: dict):
    value = _get_int(values, ref)
    if value not in choices:
        raise ApplicationFormatError(f"{ref} has an unrecognised value {value}")
    return choices[value]


def parse_app_parameters(values: Mapping[str, str], drift_mode: bool,
                         constants: DetectorConstants = ULTRASPEC) -> CameraSetup:
    """
    Rebuild a setup from a parameter table (the import direction of build_app_parameters).

    Sizes are un-binned, native X is converted back to device-independent
    coordinates, and windows with a zero size are dropped.

    Raises:
        ApplicationFormatError: on a missing or unreadable entry.
    """
    bx = _get_int(values, "X_BIN")
    by = _get_int(values, "Y_BIN")
    if bx < 1 or by < 1:
        raise ApplicationFormatError(f"bin factors must be positive, got X_BIN={bx} Y_BIN={by}")
    mode = _get_choice(values, "OUTPUT", {m.value: m for m in ReadoutMode})
    speed = _get_choice(values, "SPEED", {s.value: s for s in ReadoutSpeed})
    clear_enabled = False if drift_mode else _get_choice(values, EN_CLR, {0: False, 1: True})
    exposure = ExposureSpec(delay_ticks=_get_int(values, "DWELL"), num_exposures=_get_int(values, "NUM_EXPS"))
    hv_gain = _get_int(values, "HV_GAIN")
    led = _get_int(values, "LED_FLSH")

    common = dict(bin_x=bx, bin_y=by, mode=mode, speed=speed, clear_enabled=clear_enabled,
                  drift_mode=drift_mode, exposure=exposure, hv_gain=hv_gain, led_intensity=led)

    if drift_mode:
        native = NativeWindowPair(
            xleft=_get_int(values, "X1_START"),
            xright=_get_int(values, "X2_START"),
            ystart=_get_int(values, "Y1_START"),
            nx=_get_int(values, "X1_SIZE") * bx,
            ny=_get_int(values, "Y1_SIZE") * by,
        )
        pair = pair_from_native(native, mode, bx, constants)
        return CameraSetup(window_pair=pair, num_active=1, **common)

    windows: list[Window] = []
    for n in range(1, constants.max_windows + 1):
        nx = _get_int(values, f"X{n}_SIZE")
        ny = _get_int(values, f"Y{n}_SIZE")
        if nx <= 0 or ny <= 0:
            continue
        native = NativeWindow(
            xstart=_get_int(values, f"X{n}_START"),
            ystart=_get_int(values, f"Y{n}_START"),
            nx=nx * bx,
            ny=ny * by,
        )
        windows.append(from_native(native, mode, bx, constants))
    return CameraSetup(windows=tuple(windows), num_active=len(windows), **common)


def required_refs(setup: CameraSetup, constants: DetectorConstants = ULTRASPEC) -> list[str]:
    """Every ref the application document must contain for this setup."""
    refs = list(_COMMON_REFS.values())
    if setup.drift_mode:
        refs += list(_DRIFT_REFS.values())
    else:
        refs.append(EN_CLR)
        for n in range(1, constants.max_windows + 1):
            names = [f.name for f in fields(WindowParameters) if f.name != "n"]
            if n > setup.num_active:
                names = ["x_size", "y_size"]
            refs += [_window_ref(name, n) for name in names]
    return refs
