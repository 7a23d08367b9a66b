"""
Command-line entry point for generating a stratified block schedule.

Example:
    python -m pipeline.cli --config trial.yaml --output_dir schedules
"""

import argparse
import sys

import matplotlib
import yaml

from randomisation.exceptions import RandomisationError
from .config import TrialConfig
from .runner import ScheduleRunner


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate a stratified permuted-block randomisation schedule"
    )
    parser.add_argument("--config", type=str, required=True,
                        help="YAML trial configuration file")
    parser.add_argument("--output_dir", type=str, default=None,
                        help="Output directory (overrides the config file)")
    parser.add_argument("--seed", type=int, default=None,
                        help="Base seed (overrides the config file)")
    parser.add_argument("--prefix", type=str, default=None,
                        help="Identifier prefix (overrides the config file)")
    parser.add_argument("--no-plots", dest="plots", action="store_false",
                        help="Skip the allocation plots")
    parser.add_argument("--quiet", action="store_true",
                        help="Only print errors")
    return parser


def main(argv=None) -> int:
    """Main function for command-line usage."""
    args = build_parser().parse_args(argv)

    # Plots are only ever written to disk here
    matplotlib.use("Agg")

    overrides = {}
    if args.output_dir is not None:
        overrides['output_dir'] = args.output_dir
    if args.seed is not None:
        overrides['seed'] = args.seed
    if args.prefix is not None:
        overrides['prefix'] = args.prefix
    try:
        config = TrialConfig.from_yaml(args.config)
        if overrides:
            config = config.update(**overrides)
        runner = ScheduleRunner(config)
        runner.run(verbose=not args.quiet, save_csv=True, save_plots=args.plots)
    except (RandomisationError, OSError, yaml.YAMLError) as e:
        print(f"❌ Schedule not generated: {e}", file=sys.stderr)
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
