"""
Signal-to-noise estimate for a point source observed with a given setup.

The estimate is advisory: any unusable input gives an "unavailable" result
instead of an exception, so it can never block the timing numbers.
"""
import numpy as np

from ultraspec_setup.detector.detector_constants import DetectorConstants, ReadoutMode, ULTRASPEC
from ultraspec_setup.detector.telescope import (DEFAULT_SKY, DEFAULT_TELESCOPES, FILTER_NAMES, SkyClass,
                                                SkyTable, TelescopeTable)
from ultraspec_setup.errors import EstimationUnavailable
from ultraspec_setup.my_dataclasses.camera_setup import CameraSetup, TargetSpec
from ultraspec_setup.my_dataclasses.results import SaturationLevel, SnrResult, TimingResult

# aperture radius in units of the seeing FWHM
AP_SCALE = 1.5
FWHM_TO_SIGMA = 2.3548
RUN_SECONDS = 3 * 3600.0

MAGNITUDE_RANGE = (5.0, 35.0)
SEEING_RANGE = (0.2, 20.0)
AIRMASS_RANGE = (1.0, 5.0)


def _number(value, name: str, lo: float, hi: float) -> float:
    if value is None or isinstance(value, bool):
        raise EstimationUnavailable(f"{name} is missing")
    try:
        number = float(value)
    except (TypeError, ValueError) as e:
        raise EstimationUnavailable(f"{name} = {value!r} is not a number") from e
    if not np.isfinite(number) or not lo <= number <= hi:
        raise EstimationUnavailable(f"{name} = {number} outside {lo}..{hi}")
    return number


def _sky_class(value) -> SkyClass:
    if isinstance(value, SkyClass):
        return value
    if isinstance(value, str):
        try:
            return SkyClass[value.strip().upper()]
        except KeyError as e:
            raise EstimationUnavailable(f"sky class {value!r} not recognised") from e
    if isinstance(value, int) and not isinstance(value, bool):
        try:
            return SkyClass(value)
        except ValueError as e:
            raise EstimationUnavailable(f"sky class {value!r} not recognised") from e
    raise EstimationUnavailable("sky class is missing")


def _filter_index(value) -> int:
    if isinstance(value, str):
        name = value.strip()
        if name in FILTER_NAMES:
            return FILTER_NAMES.index(name)
        if not name.isdigit():
            raise EstimationUnavailable(f"filter {value!r} not recognised")
        value = int(name)
    if not isinstance(value, int) or isinstance(value, bool):
        raise EstimationUnavailable("filter is missing")
    if not 0 <= value < len(FILTER_NAMES):
        raise EstimationUnavailable(f"filter index {value} outside 0..{len(FILTER_NAMES) - 1}")
    return value


def saturation_thresholds(setup: CameraSetup, constants: DetectorConstants = ULTRASPEC) -> tuple[float, float]:
    """
    (warn, saturate) peak levels in counts.

    In avalanche mode a single electron is multiplied with an exponential
    distribution of mean avalanche_gain, so the chance of an amplification n
    times the mean is e^-n. Warn at n = 3 and saturate at n = 5 below the
    register's full well.
    """
    c = constants
    if setup.mode is ReadoutMode.NORMAL:
        return c.normal_warn_counts, c.normal_saturate_counts
    gain = c.gain(setup.mode, setup.speed)
    per_electron = c.avalanche_saturation / c.avalanche_gain
    return per_electron / c.avalanche_warn_divisor / gain, per_electron / c.avalanche_saturate_divisor / gain


def _estimate(timing: TimingResult, setup: CameraSetup, target: TargetSpec, constants: DetectorConstants,
              telescopes: TelescopeTable, sky: SkyTable) -> SnrResult:
    c = constants
    magnitude = _number(target.magnitude, "magnitude", *MAGNITUDE_RANGE)
    seeing = _number(target.seeing_arcsec, "seeing", *SEEING_RANGE)
    airmass = _number(target.airmass, "airmass", *AIRMASS_RANGE)
    sky_class = _sky_class(target.sky_class)
    ifilter = _filter_index(target.filter_index)
    try:
        telescope = telescopes.get(target.telescope)
    except KeyError as e:
        raise EstimationUnavailable(str(e)) from e

    zero = telescope.zero_points[ifilter]
    plate_scale = telescope.plate_scale
    sky_brightness = sky.sky_brightness(sky_class, ifilter)
    gain = c.gain(setup.mode, setup.speed)
    read = c.read_noise(setup.mode, setup.speed)
    exp_time = timing.exposure_time
    nbin = setup.bin_x * setup.bin_y

    # electrons from the target, and in the peak binned pixel of a gaussian PSF
    total = np.power(10.0, (zero - magnitude - airmass * sky.extinction[ifilter]) / 2.5) * exp_time
    peak = total * nbin * (plate_scale / (seeing / FWHM_TO_SIGMA)) ** 2 / (2.0 * np.pi)

    # fraction of the flux inside a radius of AP_SCALE * seeing
    correct = 1.0 - np.exp(-((FWHM_TO_SIGMA * AP_SCALE) ** 2) / 2.0)

    sky_per_arcsec = np.power(10.0, (zero - sky_brightness) / 2.5) * exp_time
    narcsec = np.pi * (AP_SCALE * seeing) ** 2
    npix = np.pi * (AP_SCALE * seeing / plate_scale) ** 2 / nbin

    signal = correct * total
    sky_total = sky_per_arcsec * narcsec
    dark_total = npix * c.dark_current * exp_time
    read_total = npix * read ** 2

    if setup.mode is ReadoutMode.NORMAL:
        noise = np.sqrt(read_total + dark_total + sky_total + signal)
    else:
        # high gain, proportional mode: excess noise factor 2 on all shot noise
        noise = np.sqrt(read_total / c.avalanche_gain ** 2
                        + 2.0 * (dark_total + sky_total + signal)
                        + c.clock_induced_charge)

    if not noise > 0.0:
        raise EstimationUnavailable("noise estimate is zero")

    snr = signal / noise
    total_counts = total / gain
    peak_counts = peak / gain

    warn, saturate = saturation_thresholds(setup, c)
    if peak_counts > saturate:
        level = SaturationLevel.SATURATED
    elif peak_counts > warn:
        level = SaturationLevel.WARNING
    else:
        level = SaturationLevel.OK

    return SnrResult(
        total_counts=float(total_counts),
        peak_counts=float(peak_counts),
        signal_to_noise_per_frame=float(snr),
        signal_to_noise_3hr=float(snr * np.sqrt(RUN_SECONDS / timing.cycle_time)),
        saturation=level,
    )


def estimate_snr(timing: TimingResult,
                 setup: CameraSetup,
                 target: TargetSpec,
                 constants: DetectorConstants = ULTRASPEC,
                 telescopes: TelescopeTable = DEFAULT_TELESCOPES,
                 sky: SkyTable = DEFAULT_SKY) -> SnrResult:
    """
    Expected counts and signal-to-noise of `target` for the timing of `setup`.

    Returns SnrResult.unavailable(reason) when an input is missing, non-numeric
    or out of range.
    """
    try:
        return _estimate(timing, setup, target, constants, telescopes, sky)
    except EstimationUnavailable as e:
        return SnrResult.unavailable(str(e))
