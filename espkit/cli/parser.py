"""
Command-line interface of espkit.

Global flags control logging and the configuration file; each subcommand
lives in its own module under espkit.cli.commands and exposes run(args).
"""

import argparse
import importlib
import logging
import sys
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import List, Optional

try:
    __version__ = version("espkit")
except PackageNotFoundError:
    from espkit import __version__

logger = logging.getLogger(__name__)

# Subcommand name -> implementing module
COMMANDS = {
    "install": "espkit.cli.commands.install",
}

_LOG_FORMATS = {
    logging.DEBUG: "%(levelname)s [%(name)s] %(message)s",
    logging.INFO: "%(message)s",
    logging.ERROR: "%(levelname)s: %(message)s",
}


class CLI:
    """espkit command-line interface."""

    def __init__(self):
        self.parser = self._build_parser()

    def _build_parser(self) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(
            prog="espkit",
            description="espkit - Espressif toolchain and ESP-IDF installer",
            epilog='Run "espkit install --help" for installation options',
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )
        parser.add_argument(
            "--version", action="version", version=f"espkit {__version__}"
        )

        verbosity = parser.add_mutually_exclusive_group()
        verbosity.add_argument(
            "--verbose", "-v", action="store_true", help="Show debug messages"
        )
        verbosity.add_argument(
            "--quiet", "-q", action="store_true", help="Only show errors"
        )
        parser.add_argument(
            "--config",
            type=Path,
            metavar="PATH",
            help="Configuration file (default: ./espkit.yaml if present)",
        )

        subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
        self._add_install_parser(subparsers)
        return parser

    def _add_install_parser(self, subparsers):
        # Every option defaults to None so that espkit.yaml values survive
        install = subparsers.add_parser(
            "install",
            help="Install toolchains and ESP-IDF",
            description=(
                "Install the Xtensa LLVM toolchain, then either ESP-IDF with its "
                "tools or the GCC toolchain of every target, and write an export file."
            ),
        )
        install.add_argument(
            "--targets",
            "-t",
            metavar="TARGETS",
            help="Comma or space separated chips, or 'all' (default: all)",
        )
        install.add_argument(
            "--espidf-version",
            "-e",
            dest="espidf_version",
            metavar="VERSION",
            help="ESP-IDF release, branch, 'tag:<name>' or 'commit:<sha>'",
        )
        install.add_argument(
            "--llvm-version",
            "-x",
            dest="llvm_version",
            metavar="VERSION",
            help="Xtensa LLVM major version (default: 14)",
        )
        install.add_argument(
            "--minified-espidf",
            "-m",
            dest="minified_espidf",
            action=argparse.BooleanOptionalAction,
            default=None,
            help="Delete docs and examples from the ESP-IDF checkout",
        )
        install.add_argument(
            "--export-file",
            "-f",
            dest="export_file",
            metavar="PATH",
            help="Where to write environment exports (default: export-esp.sh)",
        )
        install.add_argument(
            "--tools-path",
            dest="tools_path",
            metavar="PATH",
            help="Tools root (default: $IDF_TOOLS_PATH or ~/.espressif)",
        )

    def parse_args(self, args: Optional[List[str]] = None) -> argparse.Namespace:
        return self.parser.parse_args(args)

    def run(self, args: Optional[List[str]] = None) -> int:
        """
        Parse arguments and run the selected subcommand.

        Args:
            args: Command line without the program name (sys.argv if None)

        Returns:
            Process exit code
        """
        parsed = self.parse_args(args)
        configure_logging(parsed.verbose, parsed.quiet)

        if parsed.command is None:
            self.parser.print_help()
            return 1

        try:
            module = importlib.import_module(COMMANDS[parsed.command])
            return module.run(parsed)
        except KeyboardInterrupt:
            logger.info("Interrupted")
            return 130


def configure_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Set up root logging for a CLI run."""
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    else:
        level = logging.INFO
    logging.basicConfig(level=level, format=_LOG_FORMATS[level], force=True)


def main():
    """Console script entry point."""
    sys.exit(CLI().run())


if __name__ == "__main__":
    main()
