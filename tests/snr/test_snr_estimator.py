from dataclasses import replace

import pytest

from ultraspec_setup.detector.detector_constants import ReadoutMode
from ultraspec_setup.detector.telescope import SkyClass
from ultraspec_setup.my_dataclasses.camera_setup import CameraSetup, ExposureSpec, TargetSpec
from ultraspec_setup.my_dataclasses.results import SaturationLevel
from ultraspec_setup.my_dataclasses.windows import Window
from ultraspec_setup.snr.snr_estimator import estimate_snr, saturation_thresholds
from ultraspec_setup.timing.speed import compute_timing


@pytest.fixture
def setup():
    return CameraSetup(windows=(Window(100, 100, 200, 200),), exposure=ExposureSpec(delay_ticks=5000))


@pytest.fixture
def timing(setup):
    return compute_timing(setup)


def test_default_target_is_available(setup, timing):
    result = estimate_snr(timing, setup, TargetSpec())
    assert result.available
    assert result.reason is None
    assert result.signal_to_noise_per_frame > 0
    assert result.total_counts > result.peak_counts > 0
    # a 3 hour run is many frames of about a second each
    assert result.signal_to_noise_3hr > result.signal_to_noise_per_frame


def test_fainter_target_lower_snr(setup, timing):
    bright = estimate_snr(timing, setup, TargetSpec(magnitude=16.0))
    faint = estimate_snr(timing, setup, TargetSpec(magnitude=20.0))
    assert faint.signal_to_noise_per_frame < bright.signal_to_noise_per_frame
    assert faint.total_counts == pytest.approx(bright.total_counts / 10 ** (4 / 2.5))


def test_bright_sky_lower_snr(setup, timing):
    dark = estimate_snr(timing, setup, TargetSpec(magnitude=21.0, sky_class=SkyClass.DARK))
    bright = estimate_snr(timing, setup, TargetSpec(magnitude=21.0, sky_class="bright"))
    assert bright.signal_to_noise_per_frame < dark.signal_to_noise_per_frame


def test_filter_by_name_or_index(setup, timing):
    by_index = estimate_snr(timing, setup, TargetSpec(filter_index=1))
    by_name = estimate_snr(timing, setup, TargetSpec(filter_index="g"))
    by_digit = estimate_snr(timing, setup, TargetSpec(filter_index="1"))
    assert by_index == by_name == by_digit


def test_numeric_strings_accepted(setup, timing):
    numbers = estimate_snr(timing, setup, TargetSpec(magnitude=18.0, seeing_arcsec=1.0, airmass=1.5))
    strings = estimate_snr(timing, setup, TargetSpec(magnitude="18", seeing_arcsec=" 1.0", airmass="1.5"))
    assert strings == numbers


@pytest.mark.parametrize("target, word", [
    (TargetSpec(magnitude=None), "magnitude"),
    (TargetSpec(magnitude="abc"), "magnitude"),
    (TargetSpec(magnitude=40.0), "magnitude"),
    (TargetSpec(seeing_arcsec=0.0), "seeing"),
    (TargetSpec(airmass=0.5), "airmass"),
    (TargetSpec(airmass=float("nan")), "airmass"),
    (TargetSpec(sky_class="cloudy"), "sky"),
    (TargetSpec(sky_class=None), "sky"),
    (TargetSpec(filter_index=7), "filter"),
    (TargetSpec(filter_index="H"), "filter"),
    (TargetSpec(telescope="Keck"), "Keck"),
])
def test_unusable_inputs_give_unavailable(setup, timing, target, word):
    result = estimate_snr(timing, setup, target)
    assert not result.available
    assert word in result.reason
    assert result.signal_to_noise_per_frame is None
    assert result.saturation is None
    assert not result.saturation_flag


def test_saturation_levels(setup, timing):
    assert estimate_snr(timing, setup, TargetSpec(magnitude=5.0)).saturation is SaturationLevel.SATURATED
    assert estimate_snr(timing, setup, TargetSpec(magnitude=5.0)).saturation_flag
    assert estimate_snr(timing, setup, TargetSpec(magnitude=25.0)).saturation is SaturationLevel.OK


def test_saturation_thresholds(setup):
    assert saturation_thresholds(setup) == (25000.0, 60000.0)

    avalanche = replace(setup, mode=ReadoutMode.AVALANCHE)
    warn, saturate = saturation_thresholds(avalanche)
    assert warn == pytest.approx(80000.0 / 1200.0 / 3.0 / 0.0016)
    assert saturate == pytest.approx(80000.0 / 1200.0 / 5.0 / 0.0016)
    assert saturate < warn


def test_avalanche_estimate(setup):
    avalanche = replace(setup, mode=ReadoutMode.AVALANCHE, hv_gain=9)
    timing = compute_timing(avalanche)
    result = estimate_snr(timing, avalanche, TargetSpec(magnitude=22.0))
    assert result.available
    assert result.signal_to_noise_per_frame > 0
    # counts are in units of the much smaller avalanche gain
    normal = estimate_snr(compute_timing(setup), setup, TargetSpec(magnitude=22.0))
    assert result.total_counts > normal.total_counts


def test_binning_keeps_total_counts(setup, timing):
    binned = replace(setup, bin_x=2, bin_y=2)
    unbinned_result = estimate_snr(timing, setup, TargetSpec())
    binned_result = estimate_snr(timing, binned, TargetSpec())
    assert binned_result.total_counts == pytest.approx(unbinned_result.total_counts)
    assert binned_result.peak_counts == pytest.approx(4 * unbinned_result.peak_counts)
