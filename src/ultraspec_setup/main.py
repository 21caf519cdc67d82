import sys
from pathlib import Path

from ultraspec_setup.config.config import (CONFIG_TOML_PATH, load_setup, load_target, load_telescope_name,
                                           load_telescope_table)
from ultraspec_setup.logging_utils.logging_setup import get_logger, install_crash_hooks, shutdown_logging, \
    start_logging
from ultraspec_setup.setup_evaluator import SetupReport, evaluate_setup

log = get_logger(__name__)


def _format_report(report: SetupReport, telescope: str) -> list[str]:
    if not report.ok:
        return [f"Invalid setup: {report.validity.reason}"]

    t = report.timing
    lines = [
        f"Telescope          : {telescope}",
        f"Cycle time         : {t.cycle_time:.6f} s",
        f"Frame rate         : {t.frame_rate:.4f} Hz",
        f"Exposure time      : {t.exposure_time:.6f} s",
        f"Dead time          : {t.dead_time:.6f} s",
        f"Duty cycle         : {t.duty_cycle:.2f} %",
        f"Bytes per frame    : {t.bytes_per_frame}",
    ]
    if t.pipe_windows is not None:
        lines.append(f"Pipeline           : {t.pipe_windows} windows, shift {t.pipe_shift:.0f} rows")

    run = report.run
    if run.duration is None:
        lines.append(f"Run                : until stopped, {run.megabytes_per_frame:.4f} MB/frame")
    else:
        lines.append(f"Run                : {run.duration:.1f} s, {run.megabytes:.1f} MB ({run.disk_usage.name})")

    snr = report.snr
    if snr is not None:
        if snr.available:
            lines += [
                f"Total counts       : {snr.total_counts:.0f}",
                f"Peak counts        : {snr.peak_counts:.0f} ({snr.saturation.name})",
                f"S/N per frame      : {snr.signal_to_noise_per_frame:.2f}",
                f"S/N in 3 hours     : {snr.signal_to_noise_3hr:.1f}",
            ]
        else:
            lines.append(f"S/N                : unavailable ({snr.reason})")

    lines.append("Parameters:")
    lines += [f"  {ref} = {value}" for ref, value in report.parameters.as_dict().items()]
    return lines


def build_report(config_path: Path = CONFIG_TOML_PATH) -> list[str]:
    """Evaluate the setup and target stored in a config file and return printable lines."""
    config_path = Path(config_path)
    telescope = load_telescope_name(config_path)
    report = evaluate_setup(
        load_setup(config_path),
        load_target(config_path),
        telescopes=load_telescope_table(config_path),
    )
    return _format_report(report, telescope)


def main():
    start_logging()
    install_crash_hooks()
    config_path = Path(sys.argv[1]) if len(sys.argv) > 1 else CONFIG_TOML_PATH
    log.info(f"Evaluating {config_path}")
    try:
        for line in build_report(config_path):
            print(line)
    finally:
        shutdown_logging()


if __name__ == "__main__":
    main()
