"""
Main Entry Point for the trait-variant CLI.

This module handles argument parsing and dispatches to specific command
handlers defined in `trait_variant.cli.commands`.
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from trait_variant import __version__
from trait_variant.cli import commands
from trait_variant.config import parse_cli_key_values
from trait_variant.utils.console import set_verbose


def main(argv: Optional[List[str]] = None) -> int:
  """
  Main CLI entry point.

  Parses arguments via argparse and calls the appropriate handler function.

  Args:
      argv: Optional list of command line arguments (defaults to sys.argv).

  Returns:
      int: Exit code (0 for success, non-zero for failure).
  """
  parser = argparse.ArgumentParser(description="trait-variant: Send-bounded variants of async Rust traits")
  parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
  parser.add_argument("-v", "--verbose", action="store_true", help="Show debug logging")

  subparsers = parser.add_subparsers(dest="command", required=True)

  # --- Command: EXPAND ---
  cmd_exp = subparsers.add_parser("expand", help="Expand every annotated trait in a Rust file or directory")
  cmd_exp.add_argument("path", type=Path, help="Input .rs file or directory")
  cmd_exp.add_argument("--out", type=Path, help="Output destination (file or dir)")
  cmd_exp.add_argument(
    "--json-trace", type=Path, default=None, help="Dump the execution trace (phases, rewrites) to a JSON file."
  )
  cmd_exp.add_argument(
    "--config",
    nargs="*",
    help="Configuration overrides in key=value format (e.g. self_alias=__this lint_exempt_bounds=Send,Sync)",
  )

  # --- Command: MAKE ---
  cmd_make = subparsers.add_parser("make", help="Expand a file holding one trait with the given directive")
  cmd_make.add_argument("directive", help="Attribute arguments, e.g. 'LocalFactory: Send' or 'Send'")
  cmd_make.add_argument("path", type=Path, help="File containing exactly one trait declaration")
  cmd_make.add_argument("--out", type=Path, help="Output file")

  args = parser.parse_args(argv)
  set_verbose(args.verbose)

  if args.command == "expand":
    overrides = parse_cli_key_values(args.config)
    return commands.handle_expand(args.path, args.out, overrides, args.json_trace)

  elif args.command == "make":
    return commands.handle_make(args.directive, args.path, args.out)

  return 0


if __name__ == "__main__":
  sys.exit(main())
