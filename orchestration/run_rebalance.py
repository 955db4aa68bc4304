"""run_rebalance

Move folders off a set of source disks onto a set of destination disks,
round after round, until either the sources have nothing eligible left or no
destination has room for another folder.

Each round picks, per source root, the first child folder whose name starts
with the configured prefix and whose size is in [min_size, max_size), gives
each picked folder its own destination with more than max_size free, and
moves all of them in parallel. Folders that fail to move are remembered and
never retried during this run; they are listed at the end.

Usage:
    python -m orchestration.run_rebalance \
        --config config.yaml \
        --source /mnt/a1 --source /mnt/a2 \
        --destination /mnt/b1 --destination /mnt/b2 \
        --min-size 10GiB --max-size 50GiB --prefix vol_ \
        --method rsync \
        --log-level INFO

Exit codes: 0 finished, 1 configuration problem, 2 aborted because a folder
size could not be computed.
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Iterable, Optional, TextIO

from common.cli import add_config_arg, add_log_level_arg, setup_logging, parse_args_with_config
from common.config import Config
from common.logging import CountingHandler
from common.parse import ParseError, format_size, parse_size
from common.text import path_lines
from exceptions.exceptions import ConfigError, SubtreeSizeError
from folder_rebalancing.domain.ledger import FailureLedger
from folder_rebalancing.domain.model import RoundStatus, SizeFilter
from folder_rebalancing.entrypoints.rebalance import TRANSFER_METHODS, build_transfer_operation, rebalance
from validation.validate_config import validate_config
from validation.validation_helpers import log_issues

EXIT_OK = 0
EXIT_CONFIG_ERROR = 1
EXIT_ABORTED = 2

FAILURE_REPORT_HEADER = "Folders that could not be moved:"

TERMINAL_MESSAGES = {
    RoundStatus.SOURCES_EXHAUSTED: "Sources exhausted: no eligible folders left, swap the source disks.",
    RoundStatus.DESTINATIONS_EXHAUSTED: "Destinations exhausted: no destination has room left, done.",
    RoundStatus.ROUND_LIMIT: "Round limit reached.",
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Rebalance folders from source roots onto destination roots")
    add_config_arg(parser); add_log_level_arg(parser)
    parser.add_argument("--source", action="append", help="Source root (repeatable; replaces paths.sources)")
    parser.add_argument("--destination", action="append", help="Destination root (repeatable; replaces paths.destinations)")
    parser.add_argument("--min-size", help="Smallest eligible folder size, inclusive (e.g. 10GiB)")
    parser.add_argument("--max-size", help="Largest eligible folder size, exclusive (e.g. 50GiB)")
    parser.add_argument("--prefix", help="Required folder name prefix")
    parser.add_argument("--method", choices=TRANSFER_METHODS, help="Transfer mechanism")
    parser.add_argument("--max-parallel", type=int, help="Cap on simultaneous transfers per round")
    parser.add_argument("--max-rounds", type=int, help="Stop after this many rounds")
    return parser


def _defaults_from_cfg(cfg: Config) -> dict:
    return dict(
        log_level=cfg.logging.level,
        min_size=cfg.filter.min_size,
        max_size=cfg.filter.max_size,
        prefix=cfg.filter.prefix,
        method=cfg.transfer.method,
        max_parallel=cfg.transfer.max_parallel_transfers,
        max_rounds=cfg.transfer.max_rounds,
    )


def apply_cli_overrides(cfg: Config, args: argparse.Namespace) -> Config:
    """Fold CLI values (already defaulted from the config) back into a Config."""
    try:
        flt = replace(
            cfg.filter,
            min_size=parse_size(args.min_size),
            max_size=parse_size(args.max_size),
            prefix=args.prefix or "",
        )
    except ParseError as e:
        raise ConfigError("CLI_BAD_SIZE", str(e), context="cli") from e

    for name in ("max_parallel", "max_rounds"):
        value = getattr(args, name)
        if value is not None and value < 1:
            raise ConfigError("CLI_BAD_VALUE", f"--{name.replace('_', '-')} must be at least 1", context="cli")

    paths = replace(
        cfg.paths,
        sources=tuple(args.source) if args.source else cfg.paths.sources,
        destinations=tuple(args.destination) if args.destination else cfg.paths.destinations,
    )
    transfer = replace(
        cfg.transfer,
        method=args.method,
        max_parallel_transfers=args.max_parallel,
        max_rounds=args.max_rounds,
    )
    return replace(cfg, paths=paths, filter=flt, transfer=transfer)


def report_failures(paths: Iterable[Path], out: Optional[TextIO] = None) -> None:
    """Print the failed sources, one per line, under a header. Silent when empty."""
    lines = path_lines(paths)
    if not lines:
        return
    out = out or sys.stdout
    out.write(FAILURE_REPORT_HEADER + "\n")
    for line in lines:
        out.write(line + "\n")
    out.flush()


def run(cfg: Config, ledger: FailureLedger) -> RoundStatus:
    logging.info("Sources: %s", ", ".join(cfg.paths.sources))
    logging.info("Destinations: %s", ", ".join(cfg.paths.destinations) or "-")
    logging.info("Filter: prefix=%r, size in [%s, %s)", cfg.filter.prefix,
                 format_size(cfg.filter.min_size), format_size(cfg.filter.max_size))

    operation = build_transfer_operation(
        cfg.transfer.method,
        rsync_binary=cfg.transfer.rsync_binary,
        rsync_args=cfg.transfer.rsync_args,
    )
    summary = rebalance(
        source_roots=[Path(p) for p in cfg.paths.sources],
        destination_roots=[Path(p) for p in cfg.paths.destinations],
        size_filter=SizeFilter(
            min_size=cfg.filter.min_size,
            max_size=cfg.filter.max_size,
            prefix=cfg.filter.prefix,
        ),
        operation=operation,
        ledger=ledger,
        max_parallel_transfers=cfg.transfer.max_parallel_transfers,
        max_rounds=cfg.transfer.max_rounds,
    )
    logging.info("Finished after %d round(s): %d folder(s) moved, %d failed",
                 summary.rounds, len(summary.transferred), len(summary.failed))
    return summary.status


def main(argv: Optional[list] = None) -> int:
    try:
        args, cfg = parse_args_with_config(build_parser, _defaults_from_cfg, argv)
        cfg = apply_cli_overrides(cfg, args)
    except ConfigError as e:
        setup_logging("INFO")
        logging.error("❌ %s: %s", e.code, e)
        return EXIT_CONFIG_ERROR

    setup_logging(args.log_level)

    issues = validate_config(cfg)
    if log_issues(issues, "error"):
        logging.info("❌ Fix configuration errors before running")
        return EXIT_CONFIG_ERROR

    counter = CountingHandler()
    logging.getLogger().addHandler(counter)
    ledger = FailureLedger()
    try:
        status = run(cfg, ledger)
    except SubtreeSizeError as e:
        logging.error("❌ %s: %s. Aborting.", e.code, e)
        report_failures(ledger.paths())
        return EXIT_ABORTED
    finally:
        logging.getLogger().removeHandler(counter)

    logging.info("Warnings: %d, Errors: %d", counter.warnings, counter.errors)
    print(TERMINAL_MESSAGES[status])
    report_failures(ledger.paths())
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
