# src/room_mode_eq/cli/__main__.py

"""
Command line entry point: simulate a room, generate the corrective EQ and
print or export the band set.
"""

import argparse
import logging
import sys

from .. import config
from ..core.pipeline import RoomScenario, run_room_eq
from ..eq_control.presets import EQPreset
from ..models import Point, RoomDimensions
from ..optimization.optimizer import EQGenerationOptions
from ..simulation.acoustics import SurfaceAbsorption


def _triple(text):
    try:
        values = [float(v) for v in text.split(",")]
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected three comma separated numbers, got '{text}'")
    if len(values) != 3:
        raise argparse.ArgumentTypeError(f"expected three comma separated numbers, got '{text}'")
    return values


def build_parser():
    parser = argparse.ArgumentParser(
        prog="room-mode-eq",
        description="Simulate room modes between a subwoofer and a listener and compute a corrective EQ.")
    parser.add_argument("--room", type=_triple, default=list(config.DEFAULT_ROOM),
                        help="Room L,W,H in meters")
    parser.add_argument("--source", type=_triple, default=list(config.DEFAULT_SOURCE),
                        help="Subwoofer x,y,z in meters")
    parser.add_argument("--listener", type=_triple, default=list(config.DEFAULT_LISTENER),
                        help="Listener x,y,z in meters")
    parser.add_argument("--max-mode-order", type=int, default=config.DEFAULT_MAX_MODE_ORDER)
    parser.add_argument("--q-factor", type=float, default=None,
                        help="Base modal Q (default: estimated from --absorption)")
    parser.add_argument("--absorption", type=float, default=config.DEFAULT_SURFACE_ABSORPTION,
                        help="Absorption coefficient used for every surface")
    parser.add_argument("--furniture", type=float, default=config.DEFAULT_FURNITURE_FACTOR,
                        help="Furnishing factor, 0 (empty) .. 1 (heavily furnished)")
    parser.add_argument("--tilt", type=float, default=config.DEFAULT_SPECTRAL_TILT_DB_PER_OCT,
                        help="Spectral tilt in dB/octave")
    parser.add_argument("--lf-cutoff", type=float, default=config.DEFAULT_LF_CUTOFF_HZ,
                        help="Subwoofer high-pass corner in Hz (0 disables)")
    parser.add_argument("--target-rolloff", type=float, default=None,
                        help="Target bass roll-off frequency in Hz")
    parser.add_argument("--bands", type=int, default=config.DEFAULT_NUM_BANDS)
    parser.add_argument("--max-boost", type=float, default=config.DEFAULT_MAX_BOOST_DB)
    parser.add_argument("--max-cut", type=float, default=config.DEFAULT_MAX_CUT_DB)
    parser.add_argument("--smoothing", type=float, default=config.DEFAULT_SMOOTHING)
    parser.add_argument("--schroeder", type=float, default=None,
                        help="Schroeder frequency in Hz (default: from the Sabine estimate)")
    parser.add_argument("--export", default=None, help="Write the filters to this file")
    parser.add_argument("--format", choices=EQPreset.FORMATS, default="rew")
    parser.add_argument("--plot", default=None, help="Save a response plot (PNG) to this path")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def main(argv=None):
    """Run one simulation + EQ generation from command line arguments."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format='%(asctime)s - %(levelname)s - %(message)s')

    absorption = SurfaceAbsorption(*([args.absorption] * 6))
    scenario = RoomScenario(
        room=RoomDimensions(*args.room),
        source=Point(*args.source),
        listener=Point(*args.listener),
        max_mode_order=args.max_mode_order,
        base_q_factor=args.q_factor,
        absorption=absorption,
        furniture_factor=args.furniture,
        spectral_tilt_db_per_oct=args.tilt,
        lf_cutoff_hz=args.lf_cutoff or None,
        target_rolloff_freq=args.target_rolloff,
        schroeder_freq=args.schroeder,
    )
    try:
        options = EQGenerationOptions(
            num_bands=args.bands,
            max_boost=args.max_boost,
            max_cut=args.max_cut,
            smoothing=args.smoothing,
            schroeder_freq=scenario.resolved_schroeder_freq(),
        ).validate()
    except ValueError as e:
        print(f"Invalid EQ options: {e}", file=sys.stderr)
        return 2

    print("Simulating room response...")
    result = run_room_eq(scenario, options)

    for pass_result in result.passes:
        print(f"Pass {pass_result.number} ({pass_result.name}): "
              f"{len(pass_result.new_bands)} new bands, RMS error {pass_result.rms_error:.2f} dB")

    preset = EQPreset.from_settings(result.settings)
    print(f"Target offset: {result.target_offset:.1f} dB")
    print(preset.to_text_table())
    print(f"RMS error: {result.initial_error.rms_error:.2f} dB -> {result.final_error.rms_error:.2f} dB")

    if args.export:
        try:
            preset.write_to_file(args.export, args.format)
        except OSError as e:
            print(f"Failed to write filters to {args.export}: {e}", file=sys.stderr)
            return 1
        print(f"Filters written to {args.export}")

    if args.plot:
        from ..plot.response_plot import plot_eq_result
        plot_eq_result(result, args.plot)
        print(f"Plot saved to {args.plot}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
