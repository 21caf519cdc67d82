from dataclasses import replace

import pytest

from ultraspec_setup.config.config import CONFIG_TOML_PATH
from ultraspec_setup.detector.detector_constants import ULTRASPEC, ReadoutMode
from ultraspec_setup.errors import TimingDomainError
from ultraspec_setup.main import build_report
from ultraspec_setup.my_dataclasses.camera_setup import CameraSetup, ExposureSpec, TargetSpec
from ultraspec_setup.my_dataclasses.results import GeometryRule
from ultraspec_setup.my_dataclasses.windows import NativeWindow, Window, WindowPair
from ultraspec_setup.setup_evaluator import evaluate_setup


def test_valid_setup_report():
    setup = CameraSetup(windows=(Window(100, 100, 200, 200),), exposure=ExposureSpec(delay_ticks=5000))
    report = evaluate_setup(setup, TargetSpec())

    assert report.ok
    assert report.native_windows == (NativeWindow(116, 100, 200, 200),)
    assert report.native_pair is None
    assert report.timing.cycle_time == pytest.approx(1.07071396)
    assert report.run.duration is None
    assert report.snr.available
    assert report.parameters.as_dict()["X1_START"] == "116"


def test_invalid_setup_stops_pipeline():
    w = Window(1, 1, 100, 100)
    report = evaluate_setup(CameraSetup(windows=(w, w), num_active=2), TargetSpec())

    assert not report.ok
    assert report.validity.rule is GeometryRule.OVERLAP
    assert report.timing is None
    assert report.native_windows is None
    assert report.snr is None
    assert report.parameters is None


def test_drift_report():
    setup = CameraSetup(window_pair=WindowPair(100, 700, 1, 100, 24), drift_mode=True,
                        mode=ReadoutMode.AVALANCHE)
    report = evaluate_setup(setup)
    assert report.ok
    assert report.native_pair.xleft == 274
    assert report.timing.pipe_windows == 22
    # no target, no estimate
    assert report.snr is None


def test_unavailable_snr_keeps_timing():
    setup = CameraSetup(windows=(Window(100, 100, 200, 200),), exposure=ExposureSpec(delay_ticks=5000))
    report = evaluate_setup(setup, TargetSpec(magnitude="bright"))
    assert report.ok
    assert not report.snr.available
    assert report.timing.cycle_time == pytest.approx(1.07071396)


def test_timing_error_propagates():
    frozen_clock = replace(ULTRASPEC, vclock=0.0, hclock_normal=0.0, frame_transfer_overhead=0.0,
                           video_normal=(0.0, 0.0, 0.0))
    setup = CameraSetup(windows=(Window(1, 1, 10, 10),), exposure=ExposureSpec(delay_ticks=0))
    with pytest.raises(TimingDomainError):
        evaluate_setup(setup, constants=frozen_clock)


def test_build_report_from_bundled_config():
    lines = build_report(CONFIG_TOML_PATH)
    text = "\n".join(lines)
    print(text)
    assert "Cycle time" in text
    assert "S/N per frame" in text
    assert "  X1_START = 17" in lines
    assert "  X2_START = 17" in lines


def test_build_report_invalid(tmp_path):
    path = tmp_path / "config.toml"
    text = CONFIG_TOML_PATH.read_text(encoding="utf-8").replace("ystart = 201", "ystart = 51")
    path.write_text(text, encoding="utf-8")
    lines = build_report(path)
    assert len(lines) == 1
    assert lines[0].startswith("Invalid setup: overlap")
