import pytest

from ultraspec_setup.application.app_parameters import build_app_parameters, parse_app_parameters, required_refs
from ultraspec_setup.detector.detector_constants import ReadoutMode, ReadoutSpeed
from ultraspec_setup.errors import ApplicationFormatError, GeometryError
from ultraspec_setup.my_dataclasses.camera_setup import CameraSetup, ExposureSpec
from ultraspec_setup.my_dataclasses.windows import Window, WindowPair


def _window_setup(**kwargs) -> CameraSetup:
    defaults = dict(
        windows=(Window(100, 100, 200, 200),),
        bin_x=2, bin_y=2,
        exposure=ExposureSpec(delay_ticks=5000, num_exposures=100),
    )
    defaults.update(kwargs)
    return CameraSetup(**defaults)


def _drift_setup(**kwargs) -> CameraSetup:
    defaults = dict(
        window_pair=WindowPair(100, 700, 1, 100, 24),
        drift_mode=True,
        mode=ReadoutMode.AVALANCHE,
        hv_gain=6,
    )
    defaults.update(kwargs)
    return CameraSetup(**defaults)


def test_window_mode_table():
    values = build_app_parameters(_window_setup()).as_dict()

    assert values["X1_START"] == "116"
    assert values["Y1_START"] == "100"
    # sizes are binned
    assert values["X1_SIZE"] == "100"
    assert values["Y1_SIZE"] == "100"
    for n in (2, 3, 4):
        assert values[f"X{n}_SIZE"] == "0"
        assert values[f"Y{n}_SIZE"] == "0"
        assert f"X{n}_START" not in values

    assert values["X_BIN"] == "2"
    assert values["Y_BIN"] == "2"
    assert values["OUTPUT"] == "0"
    assert values["SPEED"] == "0"
    assert values["DWELL"] == "5000"
    assert values["NUM_EXPS"] == "100"
    assert values["EN_CLR"] == "0"
    assert values["HV_GAIN"] == "0"
    assert values["LED_FLSH"] == "0"
    assert values["X_SIZE"] == "10000"
    assert values["Y_SIZE"] == "1"


def test_avalanche_table():
    setup = _window_setup(mode=ReadoutMode.AVALANCHE, speed=ReadoutSpeed.FAST, bin_x=1, bin_y=1, hv_gain=5,
                          clear_enabled=True)
    values = build_app_parameters(setup).as_dict()
    assert values["X1_START"] == "774"
    assert values["OUTPUT"] == "1"
    assert values["SPEED"] == "2"
    assert values["HV_GAIN"] == "5"
    assert values["EN_CLR"] == "1"


def test_hv_gain_only_sent_for_avalanche():
    values = build_app_parameters(_window_setup(hv_gain=7)).as_dict()
    assert values["HV_GAIN"] == "0"


def test_drift_table():
    values = build_app_parameters(_drift_setup()).as_dict()
    assert values["X1_START"] == "274"
    assert values["X2_START"] == "874"
    assert values["Y1_START"] == "1"
    assert values["X1_SIZE"] == "100"
    assert values["X2_SIZE"] == "100"
    assert values["Y1_SIZE"] == "24"
    assert values["X_SIZE"] == str(2 * 100 * 24)
    assert values["HV_GAIN"] == "6"
    assert "EN_CLR" not in values
    assert "Y2_START" not in values


def test_window_mode_round_trip():
    setup = _window_setup(
        windows=(Window(1, 1, 100, 100), Window(201, 301, 50, 60)),
        num_active=2,
        mode=ReadoutMode.AVALANCHE,
        speed=ReadoutSpeed.MEDIUM,
        hv_gain=3,
        led_intensity=100,
        clear_enabled=True,
    )
    values = build_app_parameters(setup).as_dict()
    assert parse_app_parameters(values, drift_mode=False) == setup


def test_drift_round_trip():
    setup = _drift_setup(bin_x=4, exposure=ExposureSpec(delay_ticks=1, num_exposures=-1))
    values = build_app_parameters(setup).as_dict()
    assert parse_app_parameters(values, drift_mode=True) == setup


def test_parse_drops_empty_windows():
    values = build_app_parameters(_window_setup()).as_dict()
    parsed = parse_app_parameters(values, drift_mode=False)
    assert parsed.num_active == 1
    assert parsed.windows == (Window(100, 100, 200, 200),)


def test_parse_missing_entry():
    values = build_app_parameters(_window_setup()).as_dict()
    del values["DWELL"]
    with pytest.raises(ApplicationFormatError, match="DWELL"):
        parse_app_parameters(values, drift_mode=False)


def test_parse_bad_values():
    values = build_app_parameters(_window_setup()).as_dict()
    with pytest.raises(ApplicationFormatError):
        parse_app_parameters({**values, "X_BIN": "two"}, drift_mode=False)
    with pytest.raises(ApplicationFormatError):
        parse_app_parameters({**values, "OUTPUT": "3"}, drift_mode=False)
    with pytest.raises(ApplicationFormatError):
        parse_app_parameters({**values, "Y_BIN": "0"}, drift_mode=False)


def test_required_refs_match_table():
    for setup in (_window_setup(), _drift_setup()):
        values = build_app_parameters(setup).as_dict()
        assert set(required_refs(setup)) == set(values)


def test_invalid_setup_not_written():
    w = Window(1, 1, 100, 100)
    with pytest.raises(GeometryError):
        build_app_parameters(CameraSetup(windows=(w, w), num_active=2))
