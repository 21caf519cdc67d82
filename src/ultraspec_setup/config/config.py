from pathlib import Path

import tomli
import tomli_w

from ultraspec_setup.detector.detector_constants import ReadoutMode, ReadoutSpeed
from ultraspec_setup.detector.telescope import Telescope, TelescopeTable
from ultraspec_setup.helpers.thread_safe_config import ThreadSafeConfig
from ultraspec_setup.logging_utils.logging_setup import get_logger
from ultraspec_setup.my_dataclasses.camera_setup import CameraSetup, ExposureSpec, TargetSpec
from ultraspec_setup.my_dataclasses.windows import Window, WindowPair

log = get_logger(__name__)

CONFIG_TOML_PATH = Path(__file__).parent.resolve() / "config.toml"


# ---------- Load helpers ----------

def _read(path: Path) -> dict:
    with path.open("rb") as f:
        return tomli.load(f)


def load_telescope_name(path: Path = CONFIG_TOML_PATH) -> str:
    return _read(path)["telescope"]["name"]


def load_telescope_table(path: Path = CONFIG_TOML_PATH) -> TelescopeTable:
    raw = _read(path)["telescopes"]
    return TelescopeTable(telescopes=tuple(
        Telescope(
            name=row["name"],
            zero_points=tuple(row["zero_points"]),
            plate_scale=row["plate_scale"],
            application=row["application"],
            align_columns=row.get("align_columns", True),
        )
        for row in raw
    ))


def setup_from_dict(raw: dict) -> CameraSetup:
    pair = raw.get("window_pair")
    return CameraSetup(
        windows=tuple(Window(**w) for w in raw.get("windows", [])),
        window_pair=WindowPair(**pair) if pair else None,
        bin_x=raw["bin_x"],
        bin_y=raw["bin_y"],
        mode=ReadoutMode[raw["mode"].upper()],
        speed=ReadoutSpeed[raw["speed"].upper()],
        clear_enabled=raw["clear_enabled"],
        drift_mode=raw["drift_mode"],
        num_active=raw["num_active"],
        exposure=ExposureSpec(delay_ticks=raw["delay_ticks"], num_exposures=raw["num_exposures"]),
        hv_gain=raw.get("hv_gain", 0),
        led_intensity=raw.get("led_intensity", 0),
    )


def setup_to_dict(setup: CameraSetup) -> dict:
    data = {
        "bin_x": setup.bin_x,
        "bin_y": setup.bin_y,
        "mode": setup.mode.name.lower(),
        "speed": setup.speed.name.lower(),
        "clear_enabled": setup.clear_enabled,
        "drift_mode": setup.drift_mode,
        "num_active": setup.num_active,
        "delay_ticks": setup.exposure.delay_ticks,
        "num_exposures": setup.exposure.num_exposures,
        "hv_gain": setup.hv_gain,
        "led_intensity": setup.led_intensity,
        "windows": [
            {"xstart": w.xstart, "ystart": w.ystart, "nx": w.nx, "ny": w.ny} for w in setup.windows
        ],
    }
    if setup.window_pair is not None:
        p = setup.window_pair
        data["window_pair"] = {"xleft": p.xleft, "xright": p.xright, "ystart": p.ystart, "nx": p.nx, "ny": p.ny}
    return data


def load_setup(path: Path = CONFIG_TOML_PATH) -> CameraSetup:
    return setup_from_dict(_read(path)["setup"])


def load_target(path: Path = CONFIG_TOML_PATH) -> TargetSpec:
    raw = _read(path)["target"]
    return TargetSpec(
        magnitude=raw.get("magnitude"),
        seeing_arcsec=raw.get("seeing_arcsec"),
        sky_class=raw.get("sky_class"),
        airmass=raw.get("airmass"),
        filter_index=raw.get("filter"),
        telescope=load_telescope_name(path),
    )


# ---------- Save helpers ----------

def save_setup(path: Path, config: ThreadSafeConfig):
    data = _read(path)
    data["setup"] = setup_to_dict(config.get())

    with path.open("wb") as f:
        tomli_w.dump(data, f)
    log.info(f"Setup saved to {path}")


def load_setup_config(path: Path = CONFIG_TOML_PATH) -> ThreadSafeConfig:
    """Current operator setup, initialised from the TOML file."""
    setup = load_setup(path)
    log.info(f"Setup loaded from {path} ({'drift' if setup.drift_mode else f'{setup.num_active} windows'})")
    return ThreadSafeConfig(setup)
