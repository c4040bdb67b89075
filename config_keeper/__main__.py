"""CLI entry point for Config Keeper.

Usage:
    python -m config_keeper [--config FILE | --config-dir DIR --name NAME ...] recover [--json]
    python -m config_keeper [...] status [--json]
    python -m config_keeper [...] backup NAME
    python -m config_keeper [...] commit NAME
    python -m config_keeper seal PATH
    python -m config_keeper verify PATH

Commands:
    recover   Run the recovery pass over every managed config (boot time)
    status    Show snapshot validity and pending work without changing anything
    backup    Take the backup before modifying a config in place
    commit    Seal a modified config and drop its backup
    seal      Write the checksum sidecar of any file
    verify    Check any file against its checksum sidecar
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from config_keeper import __version__
from config_keeper.config import MergeStrategyName, StoreConfig
from config_keeper.errors import ConfigKeeperError
from config_keeper.manager import ConfigStore
from config_keeper.recovery.ledger import ChecksumLedger
from config_keeper.utils.hashing import ALGORITHMS
from config_keeper.utils.logging import configure_root_logger

logger = logging.getLogger("config_keeper.cli")


def load_config(args: argparse.Namespace) -> StoreConfig:
    """Build the StoreConfig from --config or the individual options.

    Raises:
        ValueError: If neither --config nor --config-dir is given
    """
    if args.config:
        config = StoreConfig.from_file(Path(args.config))
    elif args.config_dir:
        config = StoreConfig(
            config_dir=Path(args.config_dir),
            readonly_root=Path(args.readonly_root) if args.readonly_root else None,
            names=list(args.names or []),
        )
    else:
        raise ValueError("either --config or --config-dir is required")

    if args.names and args.config:
        config.names = list(args.names)
    if args.strategy:
        config.merge_strategy = MergeStrategyName(args.strategy)
    if args.algorithm:
        config.algorithm = args.algorithm
    if args.suffix:
        config.checksum_suffix = args.suffix
    return config


def _ledger_from_args(args: argparse.Namespace) -> ChecksumLedger:
    if args.config:
        config = StoreConfig.from_file(Path(args.config))
        suffix, algorithm = config.checksum_suffix, config.algorithm
    else:
        suffix, algorithm = ".md5", "md5"
    return ChecksumLedger(args.suffix or suffix, args.algorithm or algorithm)


def cmd_recover(args: argparse.Namespace) -> int:
    """Handle the 'recover' command.

    Returns:
        Exit code (0 if every config ended valid, 1 otherwise)
    """
    store = ConfigStore(load_config(args))
    summary = store.recover()

    if args.json:
        print(json.dumps(summary.to_dict(), indent=2))
    else:
        for result in summary.results:
            line = f"  {result.name}: {result.action.value}"
            if result.merge_outcome is not None:
                line += f" ({result.merge_outcome.value})"
            if result.error:
                line += f" - {result.error}"
            print(line)
        if not summary.success:
            print(f"Unresolved: {', '.join(summary.failed)}", file=sys.stderr)

    return 0 if summary.success else 1


def cmd_status(args: argparse.Namespace) -> int:
    """Handle the 'status' command."""
    store = ConfigStore(load_config(args))
    status = store.status()

    if args.json:
        print(json.dumps(status, indent=2))
        return 0

    print(f"Config dir: {status['config_dir']}")
    print(f"Read-only root: {status['readonly_root']}")
    print(f"Merge strategy: {status['merge_strategy']}"
          f"{'' if status['merge_strategy_available'] else ' (unavailable)'}")
    print()

    if not status["configs"]:
        print("  No configs managed.")
        return 0

    for name, info in status["configs"].items():
        print(f"  [{name}]")
        print(f"    Next action: {info['next_action']}")
        print(f"    Upgrade pending: {info['upgrade_pending']}")
        for snapshot in ("orig", "base", "conf", "back"):
            print(f"    {snapshot}: {info['snapshots'][snapshot]['status']}")
        print()
    return 0


def cmd_backup(args: argparse.Namespace) -> int:
    """Handle the 'backup' command."""
    store = ConfigStore(load_config(args))
    conf_path = store.writer.begin(args.name)
    print(f"Backup taken; modify {conf_path} then run 'commit {args.name}'")
    return 0


def cmd_commit(args: argparse.Namespace) -> int:
    """Handle the 'commit' command."""
    store = ConfigStore(load_config(args))
    store.writer.commit(args.name)
    print(f"'{args.name}' committed")
    return 0


def cmd_seal(args: argparse.Namespace) -> int:
    """Handle the 'seal' command."""
    sidecar = _ledger_from_args(args).compute_sidecar(Path(args.path))
    print(f"Sealed: {sidecar}")
    return 0


def cmd_verify(args: argparse.Namespace) -> int:
    """Handle the 'verify' command.

    Returns:
        Exit code (0 if valid, 1 otherwise)
    """
    check = _ledger_from_args(args).verify(Path(args.path))
    print(f"{check.path}: {check.status.value}")
    return 0 if check.is_valid else 1


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="config-keeper",
        description="Config Keeper - crash-consistent configuration files",
    )
    parser.add_argument(
        "--version", action="version",
        version=f"%(prog)s {__version__}"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose output")
    parser.add_argument("--json-logs", action="store_true", help="Log as JSON lines")
    parser.add_argument("--log-file", help="Also log to this file")

    parser.add_argument("--config", help="JSON file with the store configuration")
    parser.add_argument("--config-dir", help="Writable directory holding the snapshots")
    parser.add_argument("--readonly-root", help="Read-only directory with <name>.orig files")
    parser.add_argument(
        "--name", dest="names", action="append",
        help="Managed config name (repeatable)"
    )
    parser.add_argument(
        "--strategy", choices=[s.value for s in MergeStrategyName],
        help="Merge strategy (default: python)"
    )
    parser.add_argument(
        "--algorithm", choices=[a for a in ALGORITHMS if a != "auto"],
        help="Checksum algorithm (default: md5)"
    )
    parser.add_argument("--suffix", help="Checksum sidecar suffix (default: .md5)")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    recover_parser = subparsers.add_parser("recover", help="Run the recovery pass")
    recover_parser.add_argument("--json", action="store_true", help="Output as JSON")

    status_parser = subparsers.add_parser("status", help="Show snapshot status")
    status_parser.add_argument("--json", action="store_true", help="Output as JSON")

    backup_parser = subparsers.add_parser("backup", help="Back up a config before modifying it")
    backup_parser.add_argument("name", help="Managed config name")

    commit_parser = subparsers.add_parser("commit", help="Seal a modified config")
    commit_parser.add_argument("name", help="Managed config name")

    seal_parser = subparsers.add_parser("seal", help="Write a file's checksum sidecar")
    seal_parser.add_argument("path", help="File to seal")

    verify_parser = subparsers.add_parser("verify", help="Check a file against its sidecar")
    verify_parser.add_argument("path", help="File to verify")

    return parser


def main(argv=None) -> int:
    """Main entry point for the CLI.

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    json_logs = args.json_logs
    log_file = Path(args.log_file) if args.log_file else None
    if args.config:
        try:
            file_config = StoreConfig.from_file(Path(args.config))
        except (OSError, ValueError) as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        json_logs = json_logs or file_config.json_logs
        log_file = log_file or file_config.log_file

    configure_root_logger(
        level=logging.DEBUG if args.verbose else logging.INFO,
        json_output=json_logs,
        log_file=log_file,
    )

    commands = {
        "recover": cmd_recover,
        "status": cmd_status,
        "backup": cmd_backup,
        "commit": cmd_commit,
        "seal": cmd_seal,
        "verify": cmd_verify,
    }

    try:
        return commands[args.command](args)
    except (OSError, ValueError, KeyError, ConfigKeeperError) as e:
        logger.debug("Command failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
