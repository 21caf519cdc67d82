from dataclasses import dataclass, field
from enum import Enum

FILTER_NAMES = ("u", "g", "r", "i", "z")


class SkyClass(Enum):
    DARK = 0
    GREY = 1
    BRIGHT = 2


@dataclass(frozen=True)
class Telescope:
    """
    Photometric data for one telescope.

    zero_points are in magnitudes giving 1 e-/s, ordered as FILTER_NAMES.
    plate_scale is in arcsec per unbinned pixel.
    align_columns decides whether window synchronisation also lines all
    windows up on the first window's columns.
    """
    name: str
    zero_points: tuple[float, float, float, float, float]
    plate_scale: float
    application: str
    align_columns: bool = True


@dataclass(frozen=True)
class TelescopeTable:
    telescopes: tuple[Telescope, ...]

    def get(self, name: str) -> Telescope:
        for telescope in self.telescopes:
            if telescope.name == name:
                return telescope
        raise KeyError(
            f"Telescope '{name}' not found. Available: {', '.join(self.names())}"
        )

    def names(self) -> list[str]:
        return [t.name for t in self.telescopes]


@dataclass(frozen=True)
class SkyTable:
    """
    extinction: mags per unit airmass, per filter.
    brightness: mags per arcsec^2, indexed [SkyClass.value][filter].
    """
    extinction: tuple[float, ...] = (0.50, 0.19, 0.09, 0.05, 0.04)
    brightness: tuple[tuple[float, ...], ...] = field(default_factory=lambda: (
        (22.4, 22.2, 21.4, 20.7, 20.3),
        (21.4, 21.2, 20.4, 20.1, 19.9),
        (18.4, 18.2, 17.4, 17.9, 18.3),
    ))

    def sky_brightness(self, sky_class: SkyClass, filter_index: int) -> float:
        return self.brightness[sky_class.value][filter_index]


DEFAULT_TELESCOPES = TelescopeTable(telescopes=(
    Telescope("ESO3.6", (23.53, 26.07, 25.83, 25.51, 24.63), 0.1055, "eso3.6.xml"),
    Telescope("NTT", (23.53, 26.07, 25.83, 25.51, 24.63), 0.1055, "ntt.xml"),
    Telescope("TNO", (22.71, 25.25, 25.01, 24.69, 23.81), 0.45, "tno.xml", align_columns=False),
))

DEFAULT_SKY = SkyTable()
