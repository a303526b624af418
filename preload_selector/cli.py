#!/usr/bin/env python3
"""
CLI Module

Command-line interface for selecting and preloading a library build.
"""

import argparse
import sys
from pathlib import Path

from .config import SelectorConfig
from .exceptions import PreloadSelectorError
from .manager import PreloadManager


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='preload-exec',
        description='Run a command with the best library build for this machine preloaded',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run a program with the best libtensorflow build preloaded
  preload-exec exec -- python3 train.py --epochs 10

  # Show what would be run without running it
  preload-exec exec --dry-run -- python3 train.py

  # Show the detected CPU generation and GPUs
  preload-exec host

  # Rank all compatible builds
  preload-exec --library-dir /opt/lib list

  # Ignore GPUs while ranking
  PRELOAD_DISABLE_GPU=true preload-exec select
        """
    )

    parser.add_argument('--library-dir', help='Directory holding the library builds')
    parser.add_argument('--log-level', help='Logging level (DEBUG, INFO, WARNING, ERROR)')
    parser.add_argument('--no-gpu', action='store_true', help='Skip GPU detection')

    subparsers = parser.add_subparsers(dest='command', help='Command to execute')

    subparsers.add_parser('host', help='Show the detected host profile')
    subparsers.add_parser('list', help='List compatible builds, best first')
    subparsers.add_parser('select', help='Print the selected build')

    exec_parser = subparsers.add_parser('exec', help='Run a command with the selected build preloaded')
    exec_parser.add_argument('--dry-run', action='store_true', help='Print the command instead of running it')
    exec_parser.add_argument('argv', nargs=argparse.REMAINDER, help='Command and arguments')

    return parser


def print_host(manager: PreloadManager):
    host = manager.host
    arch = host.architecture
    print(f"CPU:      {host.cpu.model}")
    print(f"Arch:     {arch.name}" + (f" ({arch.alias})" if arch.alias else ""))
    print(f"Bundles:  {', '.join(host.bundles()) or '-'}")
    print(f"Features: {' '.join(host.capabilities.feature_names())}")
    if not host.gpus:
        print("GPUs:     none")
    for gpu in host.gpus:
        print(f"{gpu.label}:     {gpu.name} (compute {gpu.compute_capability})")


def print_ranking(manager: PreloadManager):
    print(f"{'CPU':>4} {'GPU':>4}  ARTIFACT")
    for ranked in manager.rank():
        print(f"{ranked.cpu_priority:>4} {ranked.gpu_priority:>4}  {ranked.artifact.path}")


def main(argv=None):
    """Main entry point for CLI"""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    # Load configuration
    try:
        config = SelectorConfig()
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    # Override with CLI arguments
    if args.library_dir:
        config.library_dir = Path(args.library_dir)
    if args.log_level:
        config.log_level = args.log_level.upper()
    if args.no_gpu:
        config.disable_gpu = True
    if getattr(args, 'dry_run', False):
        config.dry_run = True

    # Validate configuration
    errors = config.validate()
    if errors:
        print("Configuration errors:", file=sys.stderr)
        for error in errors:
            print(f"  - {error}", file=sys.stderr)
        return 1

    manager = PreloadManager(config)

    try:
        if args.command == 'host':
            print_host(manager)
            return 0

        elif args.command == 'list':
            print_ranking(manager)
            return 0

        elif args.command == 'select':
            print(manager.select().path)
            return 0

        elif args.command == 'exec':
            command = args.argv
            if command and command[0] == '--':
                command = command[1:]
            if not command:
                exec_usage = "usage: preload-exec exec [--dry-run] -- <command> [args...]"
                print(exec_usage, file=sys.stderr)
                return 2
            described = manager.run(command)
            if described is not None:
                print(described)
            return 0

        else:
            parser.print_help()
            return 1

    except PreloadSelectorError as e:
        manager.logger.error(str(e))
        return e.exit_code
    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        return 130


if __name__ == '__main__':
    sys.exit(main())
