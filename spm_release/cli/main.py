# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
CLI entrypoint for spm-release.

Usage:
    spm-release publish                         # GitHub Actions: inputs from INPUT_*
    spm-release publish --config release.yaml --tag v1.2.0
    spm-release publish --config release.yaml --dry-run --output-dir dist/
    spm-release inspect --config release.yaml
    spm-release verify --checksums checksums.txt --dir downloads/

The global options (--config, --log-level, --dry-run) are accepted both before
and after the subcommand name.
"""

import argparse
import sys
from collections.abc import Sequence

from spm_release import __version__
from spm_release.cli.commands import handle_inspect, handle_publish, handle_verify
from spm_release.cli.exit_codes import USER_ERROR


def _build_global_parser(for_subcommand: bool = False) -> argparse.ArgumentParser:
    """
    Build the parent parser with global options.

    add_help=False so help text doesn't collide between the parent and the
    subcommand parsers. The subcommand copy has SUPPRESS defaults so options
    given before the subcommand name are not reset by the subparser.
    """
    parent = argparse.ArgumentParser(add_help=False)
    parent.add_argument(
        "--config",
        type=str,
        default=argparse.SUPPRESS if for_subcommand else None,
        help="Path to a YAML release config. Without it, GitHub Actions inputs are used.",
    )
    parent.add_argument(
        "--log-level",
        type=str,
        default=argparse.SUPPRESS if for_subcommand else None,
        dest="log_level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Set the logging verbosity level (overrides the config).",
    )
    parent.add_argument(
        "--dry-run",
        action="store_true",
        default=argparse.SUPPRESS if for_subcommand else False,
        dest="dry_run",
        help="Write assets to a local directory instead of uploading them.",
    )
    return parent


def _add_release_target_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--repository",
        type=str,
        default=None,
        help="owner/name of the repository (default: $GITHUB_REPOSITORY).",
    )
    parser.add_argument(
        "--tag",
        type=str,
        default=None,
        help="Release tag (default: derived from $GITHUB_REF).",
    )


def _register_subcommands(
    subparsers: argparse._SubParsersAction,  # type: ignore[type-arg]
    parent: argparse.ArgumentParser,
) -> None:
    publish = subparsers.add_parser(
        "publish", parents=[parent], help="Package, upload and publish the manifest."
    )
    _add_release_target_options(publish)
    publish.add_argument(
        "--output-dir",
        type=str,
        default=None,
        dest="output_dir",
        help="Where --dry-run writes assets (default: dist/spm-release).",
    )
    publish.set_defaults(func=handle_publish)

    inspect = subparsers.add_parser(
        "inspect", parents=[parent], help="Show the archives a publish would upload."
    )
    _add_release_target_options(inspect)
    inspect.set_defaults(func=handle_inspect)

    verify = subparsers.add_parser(
        "verify", parents=[parent], help="Check downloaded assets against checksum output."
    )
    verify.add_argument("--checksums", type=str, default=None, help="File with checksum lines.")
    verify.add_argument("--dir", type=str, default=None, help="Directory holding the assets.")
    verify.set_defaults(func=handle_verify)


def build_parser() -> argparse.ArgumentParser:
    root_parser = argparse.ArgumentParser(
        prog="spm-release",
        description="Package per-platform binaries and publish them to a GitHub release.",
        parents=[_build_global_parser()],
    )
    root_parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = root_parser.add_subparsers(dest="command")
    _register_subcommands(subparsers, _build_global_parser(for_subcommand=True))
    return root_parser


def main(argv: Sequence[str] | None = None) -> None:
    """
    Main CLI entrypoint, referenced by [project.scripts] in pyproject.toml.

    If no subcommand is given, we show help and exit with USER_ERROR.
    """
    root_parser = build_parser()
    args = root_parser.parse_args(argv)

    if not hasattr(args, "func") or args.func is None:
        root_parser.print_help()
        sys.exit(USER_ERROR)

    exit_code = args.func(args)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
