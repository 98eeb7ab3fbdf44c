# jjdag: Chord-Driven Terminal Dashboard for the Jujutsu Change Graph
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
jjdag CLI entry point.

Design:
- CLI owns process startup: config, logging, repository validation.
- Kernel is the session engine (runner, view model, editor injected).
- UI is a full-screen prompt_toolkit Application driving the kernel.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from collections.abc import Sequence

import yaml

from . import __version__, config
from .editor import EditorInput
from .executor import CommandFailed, JjRunner, ensure_repository
from .jj import JjSettings
from .kernel import Kernel, write_crash_log
from .log_tree import JjLog
from .ui import DashboardUI, PromptToolkitTerminal

logger = logging.getLogger("jjdag")

DEFAULT_REVSET_FALLBACK = "@"


def build_parser(default_revset: str) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="jjdag",
        description="Chord-driven terminal dashboard for the jj change graph.",
    )
    parser.add_argument(
        "-R",
        "--repository",
        default=".",
        help="path to the jj repository (default: current directory)",
    )
    parser.add_argument(
        "-r",
        "--revisions",
        default=default_revset,
        help=f"revset to show (default: {default_revset})",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def configure_logging() -> None:
    """File logging when JJDAG_LOG names a level; silent otherwise."""
    level_name = os.environ.get("JJDAG_LOG", "").strip().upper()
    if not level_name:
        logger.addHandler(logging.NullHandler())
        return

    log_dir = config.logs_dir(config.get_data_root())
    log_dir.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_dir / "jjdag.log", encoding="utf-8")
    handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
    )
    logger.addHandler(handler)
    logger.setLevel(getattr(logging, level_name, logging.INFO))
    logger.propagate = False


def _fail(message: str) -> int:
    print(f"jjdag: {message}", file=sys.stderr)
    return 1


def run(argv: Sequence[str] | None = None) -> int:
    try:
        cfg = config.load_system_config()
    except (ValueError, yaml.YAMLError) as e:
        return _fail(str(e))

    default_revset = str(
        cfg.get_path("log.default_revset", DEFAULT_REVSET_FALLBACK)
    )
    args = build_parser(default_revset).parse_args(argv)
    configure_logging()

    settings = JjSettings.from_config(cfg)
    terminal = PromptToolkitTerminal()
    runner = JjRunner(settings, terminal=terminal)

    try:
        repository = ensure_repository(runner, args.repository)
    except CommandFailed as e:
        return _fail(e.stderr.strip() or f"not a jj repository: {args.repository}")
    except OSError as e:
        return _fail(str(e))

    kernel = Kernel(
        view_model=JjLog(runner, settings),
        runner=runner,
        config=cfg,
        repository=repository,
        revset=args.revisions,
        input_service=EditorInput.from_config(cfg, terminal=terminal),
    )
    logger.info("starting in %s with revset %r", repository, args.revisions)

    try:
        kernel.start()
        DashboardUI(kernel, terminal).run()
    except CommandFailed as e:
        return _fail(e.stderr.strip())
    except Exception as e:
        write_crash_log(
            e,
            repository=kernel.repository,
            revset=kernel.revset,
            chord=kernel.chord_text(),
        )
        return _fail(f"{type(e).__name__}: {e}")

    return 0


def main() -> None:
    """Main entry point for jjdag."""
    sys.exit(run())
