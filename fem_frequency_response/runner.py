#!/usr/bin/env python3
"""
Command-line runner for the FEM frequency response evaluation.

Loads the structural model from the FEM model directory (``FEM_REPO``),
evaluates the transfer functions between the selected input and output
channel groups and writes them to a pkl, mat, json or csv file.

Usage:
    python -m fem_frequency_response.runner \\
        -i OSS_ElDrive_Torque -o OSS_ElEncoder_Angle \\
        -z 0.02 -f el_drive.pkl logspace -l 0.1 -u 100 -n 1000

    python -m fem_frequency_response.runner -i M1_actuators -o M1_edge_sensors \\
        set -v 1 10 100
"""

import argparse
import sys
import traceback
from pathlib import Path
from typing import List, Optional

from .core.config import DEFAULT_RESULT_FILENAME, DEFAULT_STRUCTURAL_DAMPING
from .core.errors import FrequencyResponseError
from .core.structural import FEMLoader, LoaderConfig, ModelHandle
from .core.frequency_response import (
    EvaluatorConfig,
    ExplicitFrequencies,
    FrequencyResponsePlotter,
    LogSpaceRange,
    LoggerConfig,
    PlotConfig,
    SamplingPolicy,
    TransferFunctionData,
    compute_frequency_response,
    export_format,
    sample_frequencies,
)


def sampling_policy(args: argparse.Namespace) -> SamplingPolicy:
    """Sampling policy of the ``set`` / ``logspace`` sub-command."""
    if args.sampling == 'set':
        return ExplicitFrequencies(args.values)
    return LogSpaceRange(args.lower, args.upper, args.n)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='fem-frequency-response',
        description="FEM structural model transfer functions",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )

    parser.add_argument(
        "-i", "--inputs",
        action="extend",
        nargs="+",
        default=[],
        metavar="NAME",
        help="FEM input channel group names (repeatable)"
    )
    parser.add_argument(
        "-o", "--outputs",
        action="extend",
        nargs="+",
        default=[],
        metavar="NAME",
        help="FEM output channel group names (repeatable)"
    )
    parser.add_argument(
        "-z", "--structural-damping",
        type=float,
        default=DEFAULT_STRUCTURAL_DAMPING,
        help="Uniform modal damping ratio overriding the FEM damping"
    )
    parser.add_argument(
        "--fem-damping",
        action="store_true",
        help="Keep the per-mode damping of the FEM (ignores --structural-damping)"
    )
    parser.add_argument(
        "--eigen-frequency-min",
        type=float,
        default=None,
        help="Remove the modes below this frequency [Hz]"
    )
    parser.add_argument(
        "--eigen-frequency-max",
        type=float,
        default=None,
        help="Remove the modes above this frequency [Hz]"
    )
    parser.add_argument(
        "-f", "--filename",
        type=Path,
        default=Path(DEFAULT_RESULT_FILENAME),
        help="Result file (.pkl, .mat, .json or .csv)"
    )
    parser.add_argument(
        "--fem-repo",
        type=Path,
        default=None,
        help="FEM model directory (default: FEM_REPO environment variable)"
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Worker threads (default: number of CPUs)"
    )
    parser.add_argument(
        "--derivative",
        type=int,
        default=0,
        choices=[0, 1, 2],
        help="Output derivative: 0 displacement, 1 velocity, 2 acceleration"
    )
    parser.add_argument(
        "--plot",
        type=Path,
        nargs="?",
        const=Path("figures_bode"),
        default=None,
        metavar="DIR",
        help="Save Bode plots to DIR"
    )
    parser.add_argument(
        "--list-channels",
        action="store_true",
        help="Print the model channel groups and exit"
    )
    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Only print errors and the result file name"
    )

    sampling = parser.add_subparsers(
        dest="sampling",
        title="Transfer functions sampling frequencies [Hz]",
        metavar="SAMPLING"
    )
    freq_set = sampling.add_parser("set", help="a given set of frequencies")
    freq_set.add_argument("-v", "--values", type=float, nargs="+", required=True)
    freq_log = sampling.add_parser(
        "logspace",
        help="logarithmic (log base 10) sampling of [lower,upper] with n samples"
    )
    freq_log.add_argument("-l", "--lower", type=float, required=True)
    freq_log.add_argument("-u", "--upper", type=float, required=True)
    freq_log.add_argument("-n", type=int, required=True)

    return parser


def list_channels(model: ModelHandle) -> None:
    print(model)
    for role, catalog in (('Inputs', model.input_catalog), ('Outputs', model.output_catalog)):
        print(f"\n{role}:")
        for group in catalog.values():
            unit = f" [{group.unit}]" if group.unit else ""
            print(f"  {group.name:<40s} {group.size:5d} channels{unit}")


def run(args: argparse.Namespace) -> Path:
    """Execute a parsed command line; returns the result file path."""
    verbose = not args.quiet

    # Validate everything that does not need the model before loading it
    grid = sample_frequencies(sampling_policy(args))
    export_format(args.filename)

    damping = None if args.fem_damping else args.structural_damping
    model = FEMLoader(LoaderConfig(
        fem_repo=args.fem_repo,
        structural_damping=damping,
        eigen_frequency_min=args.eigen_frequency_min,
        eigen_frequency_max=args.eigen_frequency_max,
        verbose=verbose,
    )).load()

    response = compute_frequency_response(
        model, args.inputs, args.outputs, grid,
        EvaluatorConfig(
            n_workers=args.workers,
            output_derivative=args.derivative,
            verbose=verbose,
        )
    )
    if verbose:
        print(response)

    data = TransferFunctionData.from_response(
        response, model,
        modal_damping_coefficient=damping,
        config=LoggerConfig(verbose=verbose),
    )
    path = data.dump(args.filename)
    print(f"Frequency response written to {path}")

    if args.plot is not None:
        plotter = FrequencyResponsePlotter(PlotConfig(output_dir=args.plot, verbose=verbose))
        plotter.plot_bode(response, natural_frequencies_hz=model.eigen_frequencies_hz)
        if min(response.shape) > 1:
            plotter.plot_singular_values(response)
        plotter.save_all_figures()
        plotter.close()
    return path


def main(argv: Optional[List[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        if args.list_channels:
            list_channels(FEMLoader(LoaderConfig(fem_repo=args.fem_repo, verbose=False)).load())
            return
        if args.sampling is None:
            parser.error("a sampling sub-command is required: set or logspace")
        run(args)
    except KeyboardInterrupt:
        print("\nEvaluation interrupted by user.", file=sys.stderr)
        sys.exit(130)
    except (FrequencyResponseError, OSError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(f"\nCRITICAL FAILURE: {e}", file=sys.stderr)
        traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
