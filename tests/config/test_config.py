import shutil
from dataclasses import replace

import pytest

from ultraspec_setup.config.config import (CONFIG_TOML_PATH, load_setup, load_setup_config, load_target,
                                           load_telescope_name, load_telescope_table, save_setup,
                                           setup_from_dict, setup_to_dict)
from ultraspec_setup.detector.detector_constants import ReadoutMode, ReadoutSpeed
from ultraspec_setup.geometry.window_validity import validate_setup
from ultraspec_setup.helpers.thread_safe_config import ThreadSafeConfig
from ultraspec_setup.my_dataclasses.camera_setup import CameraSetup, ExposureSpec
from ultraspec_setup.my_dataclasses.windows import Window, WindowPair


@pytest.fixture
def config_path(tmp_path):
    path = tmp_path / "config.toml"
    shutil.copy(CONFIG_TOML_PATH, path)
    return path


def test_bundled_setup_is_valid():
    setup = load_setup()
    assert setup.num_active == 2
    assert setup.mode is ReadoutMode.NORMAL
    assert setup.speed is ReadoutSpeed.SLOW
    assert setup.exposure == ExposureSpec(delay_ticks=5007, num_exposures=-1)
    assert validate_setup(setup).ok


def test_telescopes():
    table = load_telescope_table()
    assert table.names() == ["ESO3.6", "NTT", "TNO"]
    assert not table.get("TNO").align_columns
    assert load_telescope_name() in table.names()


def test_target():
    target = load_target()
    assert target.filter_index == "g"
    assert target.telescope == load_telescope_name()


def test_dict_round_trip():
    setup = CameraSetup(
        windows=(Window(1, 1, 100, 100), Window(300, 300, 64, 32)),
        window_pair=WindowPair(100, 700, 5, 50, 45),
        bin_x=2, bin_y=2,
        mode=ReadoutMode.AVALANCHE,
        speed=ReadoutSpeed.FAST,
        num_active=2,
        hv_gain=9,
    )
    assert setup_from_dict(setup_to_dict(setup)) == setup


def test_save_and_reload(config_path):
    config = load_setup_config(config_path)
    assert isinstance(config, ThreadSafeConfig)

    config.update(bin_x=2, speed=ReadoutSpeed.MEDIUM)
    config.set("exposure", ExposureSpec(delay_ticks=10, num_exposures=500))
    save_setup(config_path, config)

    reloaded = load_setup(config_path)
    assert reloaded == config.get()
    assert reloaded.bin_x == 2
    assert reloaded.exposure.num_exposures == 500
    # other sections survive the write
    assert load_telescope_table(config_path).names() == ["ESO3.6", "NTT", "TNO"]


def test_thread_safe_config_replaces_value():
    first = CameraSetup(windows=(Window(1, 1, 10, 10),))
    config = ThreadSafeConfig(first)
    second = config.update(num_active=1, bin_y=2)

    assert second is config.get()
    assert second is not first
    assert first.bin_y == 1
    assert config.get_field("bin_y") == 2

    config.replace_all(replace(first, hv_gain=4))
    assert config.asdict()["hv_gain"] == 4
