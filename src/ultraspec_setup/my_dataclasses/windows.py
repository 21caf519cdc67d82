from dataclasses import dataclass


@dataclass(frozen=True)
class Window:
    """
    A readout window in device-independent, unbinned pixels.

    Attributes:
        xstart (int): First column (1-based), overscan excluded.
        ystart (int): First row (1-based).
        nx (int): Width in unbinned pixels.
        ny (int): Height in unbinned pixels.
    """
    xstart: int
    ystart: int
    nx: int
    ny: int

    @property
    def xend(self) -> int:
        """Last column of the window (inclusive)."""
        return self.xstart + self.nx - 1

    @property
    def yend(self) -> int:
        """Last row of the window (inclusive)."""
        return self.ystart + self.ny - 1

    def overlaps(self, other: "Window") -> bool:
        """Axis-aligned overlap test on half-open rectangles. Touching edges do not overlap."""
        return (self.xstart < other.xstart + other.nx and other.xstart < self.xstart + self.nx
                and self.ystart < other.ystart + other.ny and other.ystart < self.ystart + self.ny)


@dataclass(frozen=True)
class WindowPair:
    """
    Drift-mode window pair in device-independent, unbinned pixels.
    Both windows share ystart, nx and ny; only their columns differ.
    """
    xleft: int
    xright: int
    ystart: int
    nx: int
    ny: int


@dataclass(frozen=True)
class NativeWindow:
    """Window in the amplifier-dependent coordinates sent to the detector controller (unbinned)."""
    xstart: int
    ystart: int
    nx: int
    ny: int


@dataclass(frozen=True)
class NativeWindowPair:
    """Drift pair in native coordinates. xleft is always the smaller native column."""
    xleft: int
    xright: int
    ystart: int
    nx: int
    ny: int
