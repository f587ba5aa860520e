#!/usr/bin/env python3
"""
SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
SPDX-License-Identifier: Apache-2.0

Buildbot History Browser - Standalone Tool

Browse a Buildbot master's build history from the terminal:
branch -> revision -> build -> step -> log.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Callable, List, Optional

from common_buildbot import BuildbotAPIError, ConfigError
from common_buildbot.config import load_config
from common_buildbot.navigation import Navigator, View
from common_buildbot.render import RenderUnit
from common_buildbot.session import Session

HELP_LINE = "[number] open  r reload  b back  q quit"


def _setup_logging(verbose: bool, debug: bool) -> logging.Logger:
    """Setup logging configuration for this script and the common_buildbot package"""
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING

    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))

    logger = logging.getLogger('BuildbotHistory')
    logger.setLevel(level)
    if not logger.handlers:
        logger.addHandler(handler)

    pkg_logger = logging.getLogger('common_buildbot')
    pkg_logger.setLevel(level)
    if not pkg_logger.handlers:
        pkg_logger.addHandler(handler)
    return logger


def format_view(view: View) -> List[str]:
    """Number the tagged lines so the user can pick one."""
    lines = []
    n = 0
    for unit in view.units:
        if unit.tag is not None:
            n += 1
            lines.append(f"[{n:>3}] {unit.text}")
        else:
            lines.append(f"      {unit.text}")
    return lines


def print_view(view: View, write: Callable[[str], None] = print) -> None:
    write("")
    for line in format_view(view):
        write(line)
    write("")


class InteractiveBrowser:
    """Minimal line-oriented front end over the Navigator."""

    def __init__(self, navigator: Navigator, logger: logging.Logger,
                 read_input: Callable[[str], str] = input, write: Callable[[str], None] = print):
        self.navigator = navigator
        self.logger = logger
        self.read_input = read_input
        self.write = write
        self.history: List[View] = []

    def _pick(self, view: View, choice: str) -> Optional[RenderUnit]:
        try:
            idx = int(choice)
        except ValueError:
            return None
        tagged = view.tagged_units()
        if 1 <= idx <= len(tagged):
            return tagged[idx - 1]
        return None

    def _show(self, view: View) -> None:
        print_view(view, self.write)

    def run(self, view: View) -> int:
        current = view
        self._show(current)
        while True:
            try:
                choice = self.read_input(f"{current.kind.value}> ").strip().lower()
            except EOFError:
                return 0
            if choice in ("q", "quit"):
                return 0
            if choice in ("", "h", "?"):
                self.write(HELP_LINE)
                continue
            try:
                if choice == "r":
                    current = self.navigator.reload(current)
                elif choice == "b":
                    if not self.history:
                        self.write("Already at the first view.")
                        continue
                    current = self.history.pop()
                else:
                    unit = self._pick(current, choice)
                    if unit is None:
                        self.write(f"Unknown choice {choice!r}. {HELP_LINE}")
                        continue
                    child = self.navigator.drill_down(current, unit.tag)
                    self.history.append(current)
                    current = child
            except (BuildbotAPIError, ValueError) as e:
                # The previous view is still intact; report and stay on it.
                self.logger.debug("action %r failed", choice, exc_info=True)
                self.write(f"Error: {e}")
                continue
            self._show(current)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the Buildbot history browser"""
    parser = argparse.ArgumentParser(
        description='Browse Buildbot build history by branch, revision, build, step and log',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Recent changes on main and their builds
  %(prog)s --host https://buildbot.example.com --branch main

  # All builds of one revision, filtered server-side
  %(prog)s --revision deadbeef --direct-filter

  # Jump straight to a build by id, print it and exit
  %(prog)s --build 4410 --no-interactive
        """
    )

    target = parser.add_mutually_exclusive_group(required=True)
    target.add_argument('--branch', help='Open the branch view for BRANCH')
    target.add_argument('--revision', help='Open the revision view for REVISION')
    target.add_argument('--build', type=int, help='Open the build view for build id BUILD')
    target.add_argument('--builder', help='List recent builds of builder BUILDER')

    parser.add_argument('--host', help='Buildbot master URL (default: BUILDBOT_HOST or config file)')
    parser.add_argument(
        '--config',
        type=Path,
        help='Path to YAML config file (default: ~/.config/buildbot-history.yaml)'
    )
    parser.add_argument('--changes-fetch-limit', type=int, help='Window size for client-side filtering')
    parser.add_argument('--branch-changes-limit', type=int, help='Maximum changes shown in a branch view')
    parser.add_argument('--builder-build-limit', type=int, help='Maximum builds listed for --builder')
    parser.add_argument(
        '--direct-filter',
        action='store_true',
        default=None,
        help='Let the server filter changes by revision/branch instead of filtering a recent window locally'
    )
    parser.add_argument(
        '--no-interactive',
        action='store_true',
        help='Print the first view and exit'
    )
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable verbose output (INFO level logging)'
    )
    parser.add_argument(
        '--debug',
        action='store_true',
        help='Enable debug output (DEBUG level logging, shows all API calls)'
    )

    args = parser.parse_args(argv)
    logger = _setup_logging(args.verbose, args.debug)

    try:
        config = load_config(
            args.config,
            overrides={
                'host': args.host,
                'changes_fetch_limit': args.changes_fetch_limit,
                'branch_changes_limit': args.branch_changes_limit,
                'builder_build_limit': args.builder_build_limit,
                'use_direct_filter': args.direct_filter,
            },
        )
    except ConfigError as e:
        print(f"Error: {e}")
        return 2

    session = Session(config)
    navigator = Navigator(session)
    try:
        session.load_builders()
        if args.builder:
            changes = navigator.resolver.builder_changes(args.builder)
            if not changes:
                print(f"No builds found for builder {args.builder!r}")
            for change in changes:
                for build in change.builds or []:
                    print(f"{build.id:>8}  {(change.revision or '-')[:12]:<12}  {change.branch or '-':<20}  {build.state_string}")
            return 0
        if args.branch:
            view = navigator.open_branch(args.branch)
        elif args.revision:
            view = navigator.open_revision(args.revision)
        else:
            view = navigator.open_build(args.build)
    except BuildbotAPIError as e:
        logger.error("%s", e)
        print(f"Error: {e}")
        return 1
    finally:
        logger.debug("REST stats: %s", session.client.get_rest_call_stats())

    if args.no_interactive:
        print_view(view)
        return 0
    return InteractiveBrowser(navigator, logger).run(view)


if __name__ == '__main__':
    sys.exit(main())
