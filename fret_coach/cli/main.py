"""Main entry point for the Fret Coach CLI."""

import argparse
import json
import sys
from typing import List, Optional, Tuple

from ..core.config import ConfigManager
from ..core.context import AppContext
from ..core.errors import AudioUnavailable
from ..logger import get_logger
from ..logging_config import setup_logging
from ..note_types import ExpectedNote, TuningStatus, TuningUpdate
from ..note_utils import note_identity
from .console import ConsoleDisplay

logger = get_logger(__name__)


def load_timeline(path: str) -> Tuple[List[ExpectedNote], float]:
    """Read an expected-note timeline from a JSON file.

    The file holds ``{"total_duration_ms": ..., "notes": [...]}``; each note
    has ``time_ms`` and either ``midi`` or an SPN ``note`` name, plus optional
    ``duration_ms``, ``string``, ``fret``, ``measure`` and ``beat``.

    Returns:
        (notes sorted by time, total duration in ms)
    """
    with open(path, "r") as f:
        data = json.load(f)

    notes = []
    for entry in data.get("notes", []):
        if "midi" in entry:
            midi = int(entry["midi"])
        else:
            midi = note_identity(entry["note"]).midi
        notes.append(
            ExpectedNote.of(
                float(entry["time_ms"]),
                float(entry.get("duration_ms", 0.0)),
                midi,
                string=int(entry.get("string", 0)),
                fret=int(entry.get("fret", 0)),
                measure_index=int(entry.get("measure", 0)),
                beat_index=int(entry.get("beat", 0)),
            )
        )
    notes.sort(key=lambda note: note.time_ms)
    return notes, float(data.get("total_duration_ms", 0.0))


def _pitch_source(context: AppContext, args, config_overrides: dict):
    """Open the input named on the command line (None means a sound card)."""
    from ..core.factory import ComponentFactory

    factory = ComponentFactory(context)
    config = context.config_manager.tuner_config(**config_overrides)
    if args.wav:
        return factory.create_pitch_source("wav", config=config, file_path=args.wav)
    return factory.create_pitch_source("device", config=config, device_id=args.device)


def run_presets(context: AppContext, _args) -> int:
    for preset in context.presets.values():
        notes = " ".join(s.note_name for s in preset.strings)
        print(f"{preset.name:<14} {notes}")
    return 0


def run_devices(_context: AppContext, _args) -> int:
    from ..audio.audio_input import list_input_devices

    for device in list_input_devices():
        print(
            f"Device {device['id']}: {device['name']} "
            f"({device['channels']} ch, {device['default_samplerate']:.0f} Hz)"
        )
    return 0


def run_tune(context: AppContext, args) -> int:
    from ..services.tuner_service import TunerService

    overrides = {}
    if args.tolerance is not None:
        overrides["cents_tolerance"] = args.tolerance
    if args.hold_ms is not None:
        overrides["hold_duration_ms"] = args.hold_ms

    preset = context.get_preset(args.preset)
    source = _pitch_source(context, args, overrides)
    service = TunerService(context)
    display = ConsoleDisplay()
    session = service.start(preset.name, source=source, **overrides)
    print(f"Tuning to {preset.name}. Play each string until it reads IN TUNE.")

    def render(update: TuningUpdate) -> None:
        display.on_tuning_update(update)
        # Only act on updates for the string still being tuned
        if (
            update.status is TuningStatus.IN_TUNE
            and update.current_string_index == session.current_index
            and not session.completed
        ):
            display.newline()
            session.confirm_current_and_advance()

    try:
        display.watch(
            service.cell,
            render,
            duration_s=args.duration,
            done=lambda: session.completed or not service.is_running(),
        )
    except KeyboardInterrupt:
        display.newline()
    finally:
        service.stop()

    print(f"Tuned {session.strings_tuned()}/{session.total_strings} strings")
    return 0


def run_practice(context: AppContext, args) -> int:
    from ..services.practice_service import PracticeService

    timeline, total_duration_ms = load_timeline(args.timeline)
    overrides = {}
    if args.speed is not None:
        overrides["speed_factor"] = args.speed
    if args.window_ms is not None:
        overrides["match_window_ms"] = args.window_ms
    if args.latency_ms is not None:
        overrides["latency_compensation_ms"] = args.latency_ms

    source = _pitch_source(context, args, {})
    service = PracticeService(context)
    display = ConsoleDisplay()
    session = service.start(timeline, total_duration_ms, source=source, **overrides)
    print(f"Playing along to {len(timeline)} notes. Ctrl-C to stop.")

    duration_s = args.duration
    if duration_s is None and session.total_duration_ms:
        duration_s = (session.total_duration_ms + session.config.match_window_ms) / 1000.0

    try:
        display.watch(
            service.cell,
            display.on_score_update,
            duration_s=duration_s,
            done=lambda: not service.is_running(),
        )
    except KeyboardInterrupt:
        display.newline()
    report = service.stop()
    print(report.summary())
    return 0


def main(args: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI.

    Args:
        args: Command line arguments, or None to use sys.argv

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    parser = argparse.ArgumentParser(description="Fret Coach - Guitar Tuner and Practice Scorer")
    parser.add_argument(
        "--config-dir", default=None, help="Directory with tuner.json / practice.json overrides"
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    subparsers.add_parser("presets", help="List tuning presets")
    subparsers.add_parser("devices", help="List audio input devices")

    tune_parser = subparsers.add_parser("tune", help="Tune string by string")
    tune_parser.add_argument("--preset", default="Standard", help="Tuning preset name")
    tune_parser.add_argument("--device", type=int, default=None, help="Audio input device ID")
    tune_parser.add_argument("--wav", default=None, help="Read audio from a file instead")
    tune_parser.add_argument(
        "--tolerance", type=float, default=None, help="In-tune tolerance in cents"
    )
    tune_parser.add_argument(
        "--hold-ms", type=float, default=None, help="Time to hold in tune, in ms"
    )
    tune_parser.add_argument(
        "--duration", type=float, default=None, help="Give up after this many seconds"
    )

    practice_parser = subparsers.add_parser("practice", help="Play along and get scored")
    practice_parser.add_argument("--timeline", required=True, help="Expected notes JSON file")
    practice_parser.add_argument("--device", type=int, default=None, help="Audio input device ID")
    practice_parser.add_argument("--wav", default=None, help="Read audio from a file instead")
    practice_parser.add_argument(
        "--speed", type=float, default=None, help="Playback speed factor (0.25-2.0)"
    )
    practice_parser.add_argument(
        "--window-ms", type=float, default=None, help="Timing window around each note"
    )
    practice_parser.add_argument(
        "--latency-ms", type=float, default=None, help="Input latency to compensate"
    )
    practice_parser.add_argument(
        "--duration", type=float, default=None, help="Stop after this many seconds"
    )

    parsed_args = parser.parse_args(args)
    setup_logging("DEBUG" if parsed_args.debug else None)

    commands = {
        "presets": run_presets,
        "devices": run_devices,
        "tune": run_tune,
        "practice": run_practice,
    }
    command = commands.get(parsed_args.command)
    if command is None:
        parser.print_help()
        return 1

    context = AppContext(config_manager=ConfigManager(parsed_args.config_dir))
    try:
        return command(context, parsed_args)
    except AudioUnavailable as e:
        logger.error(f"Audio unavailable: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 2
    except (KeyError, ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
