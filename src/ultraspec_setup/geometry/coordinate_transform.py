"""
Conversion between device-independent window coordinates and the native
coordinates used by the detector controller.

Device-independent coordinates are defined so that the same window reads out
the same region of sky whichever output is used. The 16 overscan columns are
ignored because they cannot be read out consistently through both outputs.

    Normal:     x_native = x + 16
    Avalanche:  x_native = 1074 - x - nx

In avalanche mode the register is read from the other end, so the native start
is the mirror of the window's last unbinned column. Only X depends on the output.
"""
from dataclasses import replace

from ultraspec_setup.detector.detector_constants import DetectorConstants, ReadoutMode, ULTRASPEC
from ultraspec_setup.errors import GeometryError
from ultraspec_setup.my_dataclasses.windows import NativeWindow, NativeWindowPair, Window, WindowPair


def overscan_chop(native_xstart: int, bin_x: int, constants: DetectorConstants = ULTRASPEC) -> int:
    """
    Number of columns to drop from the low end of a native window so that no
    binned pixel straddles the overscan boundary. Always a multiple of bin_x.
    """
    nchop = max(0, constants.overscan_columns + 1 - native_xstart)
    if nchop % bin_x != 0:
        nchop = bin_x * (nchop // bin_x + 1)
    return nchop


def chop_overscan(native: NativeWindow | NativeWindowPair, bin_x: int,
                  constants: DetectorConstants = ULTRASPEC) -> NativeWindow | NativeWindowPair:
    """
    Advance the native start past the overscan and shrink nx to match.

    A pair is chopped on its left (smaller) start and both columns move by the
    same amount. Applying this twice gives the same result as applying it once.

    Raises:
        GeometryError: if nothing of the window is left after the chop.
    """
    if isinstance(native, NativeWindowPair):
        nchop = overscan_chop(native.xleft, bin_x, constants)
        if nchop == 0:
            return native
        if native.nx - nchop <= 0:
            raise GeometryError(f"window pair lies entirely in the overscan (nx = {native.nx}, chop = {nchop})")
        return replace(native, xleft=native.xleft + nchop, xright=native.xright + nchop, nx=native.nx - nchop)

    nchop = overscan_chop(native.xstart, bin_x, constants)
    if nchop == 0:
        return native
    if native.nx - nchop <= 0:
        raise GeometryError(f"window lies entirely in the overscan (nx = {native.nx}, chop = {nchop})")
    return replace(native, xstart=native.xstart + nchop, nx=native.nx - nchop)


def _x_to_native(xstart: int, nx: int, mode: ReadoutMode, constants: DetectorConstants) -> int:
    if mode is ReadoutMode.NORMAL:
        return xstart + constants.overscan_columns
    return constants.mirror_offset - xstart - nx


def _x_from_native(xstart: int, nx: int, mode: ReadoutMode, constants: DetectorConstants) -> int:
    if mode is ReadoutMode.NORMAL:
        return max(1, xstart - constants.overscan_columns)
    return max(1, constants.mirror_offset - xstart - nx)


def to_native(window: Window, mode: ReadoutMode, bin_x: int = 1,
              constants: DetectorConstants = ULTRASPEC) -> NativeWindow:
    """Device-independent window -> native window for the chosen output."""
    native = NativeWindow(
        xstart=_x_to_native(window.xstart, window.nx, mode, constants),
        ystart=window.ystart,
        nx=window.nx,
        ny=window.ny,
    )
    return chop_overscan(native, bin_x, constants)


def from_native(native: NativeWindow, mode: ReadoutMode, bin_x: int = 1,
                constants: DetectorConstants = ULTRASPEC) -> Window:
    """Native window (e.g. read from a saved application) -> device-independent window."""
    chopped = chop_overscan(native, bin_x, constants)
    return Window(
        xstart=_x_from_native(chopped.xstart, chopped.nx, mode, constants),
        ystart=chopped.ystart,
        nx=chopped.nx,
        ny=chopped.ny,
    )


def pair_to_native(pair: WindowPair, mode: ReadoutMode, bin_x: int = 1,
                   constants: DetectorConstants = ULTRASPEC) -> NativeWindowPair:
    """Drift pair -> native pair. Mirroring can swap the columns; left is re-established as the smaller one."""
    xleft = _x_to_native(pair.xleft, pair.nx, mode, constants)
    xright = _x_to_native(pair.xright, pair.nx, mode, constants)
    if xleft > xright:
        xleft, xright = xright, xleft
    native = NativeWindowPair(xleft=xleft, xright=xright, ystart=pair.ystart, nx=pair.nx, ny=pair.ny)
    return chop_overscan(native, bin_x, constants)


def pair_from_native(native: NativeWindowPair, mode: ReadoutMode, bin_x: int = 1,
                     constants: DetectorConstants = ULTRASPEC) -> WindowPair:
    """Native pair -> drift pair, ordered so that xleft < xright in device-independent coordinates."""
    if native.xleft > native.xright:
        native = replace(native, xleft=native.xright, xright=native.xleft)
    chopped = chop_overscan(native, bin_x, constants)
    xleft = _x_from_native(chopped.xleft, chopped.nx, mode, constants)
    xright = _x_from_native(chopped.xright, chopped.nx, mode, constants)
    if xleft > xright:
        xleft, xright = xright, xleft
    return WindowPair(xleft=xleft, xright=xright, ystart=chopped.ystart, nx=chopped.nx, ny=chopped.ny)
