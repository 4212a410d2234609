"""
Command-line interface for the purple-reaction package.

With ``--run-once`` the engine runs a single pass without prompts and
reports through its exit code and the ``--json-out`` record; this is how the
control panel invokes it. Without it the interactive console menu starts.
"""

import argparse
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from .core.config import load_config
from .core.logger import get_logger, setup_logging
from .engine.errors import ConfigurationError, ExitCode
from .engine.models import RunParameters

logger = get_logger(__name__)


class EngineArgumentParser(argparse.ArgumentParser):
    """Argument parser that reports usage errors as configuration errors."""

    def error(self, message):
        self.print_usage(sys.stderr)
        raise ConfigurationError(message)


def create_parser() -> argparse.ArgumentParser:
    """Create the main argument parser."""
    parser = EngineArgumentParser(
        prog='purple-reaction',
        description='Reaction-time tester: black screen, random delay, white screen, press as fast as you can.',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  purple-reaction                                   # Interactive menu
  purple-reaction --run-once --trials 5 --json-out result.json
  purple-reaction --run-once --simulate --seed 1 --json-out result.json

Exit codes:
  0 success, 1 invalid parameters, 2 output write failed,
  3 run aborted, 4 window closed, 5 unexpected error
        """
    )

    parser.add_argument('--version', action='version', version=f'purple-reaction {get_version()}')

    run_group = parser.add_argument_group('run parameters')
    run_group.add_argument('--min-delay', type=float, metavar='SECONDS', help='Minimum random delay (default 2.0)')
    run_group.add_argument('--max-delay', type=float, metavar='SECONDS', help='Maximum random delay (default 5.0)')
    run_group.add_argument('--trials', type=int, metavar='COUNT', help='Number of trials (default 10)')
    run_group.add_argument('--run-once', action='store_true', help='Run a single pass without prompts, then exit')
    run_group.add_argument('--json-out', type=str, metavar='PATH', help='Write the result record to PATH')
    run_group.add_argument('--csv-out', type=str, metavar='PATH', help='Also export the trials as CSV')
    run_group.add_argument('--seed', type=int, help='Seed for reproducible delays')

    display_group = parser.add_argument_group('display')
    display_group.add_argument('--simulate', action='store_true',
                               help='Use a simulated participant instead of the stimulus window')
    display_group.add_argument('--windowed', action='store_true', help='Open a window instead of going fullscreen')

    parser.add_argument('--config', type=str, help='Path to configuration file')
    parser.add_argument('--log-level', choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        help='Set logging level')
    parser.add_argument('--log-file', type=str, help='Path to log file')

    return parser


def get_version() -> str:
    """Get package version."""
    from . import __version__
    return __version__


def build_run_parameters(args: argparse.Namespace, config: Dict[str, Any]) -> RunParameters:
    """Combine command-line arguments with configured defaults. Arguments win."""
    run_config = config.get('run', {})
    policy_config = config.get('policy', {})

    def pick(cli_value, key):
        return cli_value if cli_value is not None else run_config.get(key)

    return RunParameters(
        min_delay=pick(args.min_delay, 'min_delay'),
        max_delay=pick(args.max_delay, 'max_delay'),
        trial_count=pick(args.trials, 'trial_count'),
        json_out=Path(args.json_out) if args.json_out else None,
        csv_out=Path(args.csv_out) if args.csv_out else None,
        seed=pick(args.seed, 'seed'),
        false_start_grace_ms=policy_config.get('false_start_grace_ms', 0.0),
    )


def cmd_run_once(args: argparse.Namespace, config: Dict[str, Any], params: RunParameters) -> int:
    """Single pass for the control panel."""
    from .display import create_backend
    from .engine.controller import RunController

    try:
        backend = create_backend(config, simulate=args.simulate, fullscreen=False if args.windowed else None,
                                 seed=params.seed)
    except ImportError as e:
        logger.error(f"Failed to load the stimulus window backend: {e}")
        logger.error("Make sure pygame is installed: pip install pygame")
        return ExitCode.INTERNAL_ERROR

    controller = RunController(params, backend, csv_precision=config.get('output', {}).get('csv_precision', 6))
    return controller.execute()


def cmd_menu(args: argparse.Namespace, config: Dict[str, Any], params: RunParameters) -> int:
    """Interactive console menu."""
    from .menu import ConsoleMenu

    if params.json_out or params.csv_out:
        logger.warning("--json-out/--csv-out only apply with --run-once; use the post-run export instead")

    menu = ConsoleMenu(config, params, simulate=args.simulate, fullscreen=False if args.windowed else None)
    return menu.run()


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv)

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    parser = create_parser()
    try:
        args = parser.parse_args(argv)
    except ConfigurationError as e:
        print(f"purple-reaction: error: {e}", file=sys.stderr)
        return ExitCode.CONFIG_ERROR

    config = load_config(args.config)
    global_config = config.get('global', {})
    setup_logging(
        log_file=args.log_file or global_config.get('log_file'),
        log_level=args.log_level or global_config.get('log_level', 'INFO'),
        force_reconfigure=True,
    )

    params = build_run_parameters(args, config)
    try:
        params.validate()
    except ConfigurationError as e:
        logger.error(str(e))
        return ExitCode.CONFIG_ERROR

    try:
        if args.run_once:
            return int(cmd_run_once(args, config, params))
        return int(cmd_menu(args, config, params))
    except KeyboardInterrupt:
        logger.warning("Interrupted")
        return ExitCode.ABORTED


if __name__ == '__main__':
    sys.exit(main())
