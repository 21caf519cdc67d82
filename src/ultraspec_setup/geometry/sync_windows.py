"""
Window synchronisation.

A binned full-frame bias can only be used to correct a windowed frame if the
binned pixels of both line up. Synchronising moves each window start so its
binned pixels register with the reference pixel (column 529, row 3 in
device-independent coordinates) while staying as close as possible to where
the operator put it.
"""
import math
from dataclasses import replace

from ultraspec_setup.detector.detector_constants import DetectorConstants, ULTRASPEC
from ultraspec_setup.geometry.window_validity import require_valid
from ultraspec_setup.my_dataclasses.camera_setup import CameraSetup

SYNC_X_REF = 528
SYNC_Y_REF = 2


def sync_start(start: int, binning: int, lo: int, hi: int, ref: int) -> int:
    """Nearest start to `start` for which binned pixels end at ref and begin at ref + 1, kept within [lo, hi]."""
    n = math.floor((ref + 1 - start) / binning + 0.5)
    start = ref + 1 - binning * n
    if start < lo:
        start += binning
    if start > hi:
        start -= binning
    return start


def _last_start(limit: int, size: int) -> int:
    return limit - size + 1


def is_synced(start: int, binning: int, ref: int) -> bool:
    return (ref + 1 - start) % binning == 0


def sync_windows(setup: CameraSetup, align_columns: bool = True,
                 constants: DetectorConstants = ULTRASPEC) -> CameraSetup:
    """
    Return a new setup with synchronised window starts.

    Args:
        setup: A valid setup.
        align_columns: Also give every window the xstart and nx of the first one
            (window mode only).

    Raises:
        GeometryError: if the setup is not valid.
    """
    require_valid(setup, constants)

    if setup.drift_mode:
        pair = setup.window_pair
        pair = replace(
            pair,
            xleft=sync_start(pair.xleft, setup.bin_x, 1, _last_start(constants.imaging_width, pair.nx), SYNC_X_REF),
            xright=sync_start(pair.xright, setup.bin_x, 1, _last_start(constants.imaging_width, pair.nx),
                              SYNC_X_REF),
            ystart=sync_start(pair.ystart, setup.bin_y, 1, _last_start(constants.frame_height, pair.ny),
                              SYNC_Y_REF),
        )
        return replace(setup, window_pair=pair)

    windows = [
        replace(w,
                xstart=sync_start(w.xstart, setup.bin_x, 1, _last_start(constants.imaging_width, w.nx), SYNC_X_REF),
                ystart=sync_start(w.ystart, setup.bin_y, 1, _last_start(constants.frame_height, w.ny), SYNC_Y_REF))
        for w in setup.active_windows
    ]
    if align_columns:
        first = windows[0]
        windows = [first] + [replace(w, xstart=first.xstart, nx=first.nx) for w in windows[1:]]
    return replace(setup, windows=tuple(windows) + setup.windows[setup.num_active:])


def are_synchronised(setup: CameraSetup, align_columns: bool = True) -> bool:
    if setup.drift_mode:
        pair = setup.window_pair
        return (is_synced(pair.xleft, setup.bin_x, SYNC_X_REF)
                and is_synced(pair.xright, setup.bin_x, SYNC_X_REF)
                and is_synced(pair.ystart, setup.bin_y, SYNC_Y_REF))

    windows = setup.active_windows
    for w in windows:
        if not is_synced(w.xstart, setup.bin_x, SYNC_X_REF):
            return False
        if not is_synced(w.ystart, setup.bin_y, SYNC_Y_REF):
            return False
    if align_columns:
        first = windows[0]
        return all(w.xstart == first.xstart and w.nx == first.nx for w in windows[1:])
    return True
