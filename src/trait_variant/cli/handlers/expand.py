"""
Expand Command Handlers.

This module implements the logic for the `trait-variant expand` and
`trait-variant make` commands. It orchestrates:
1. Configuration loading (pyproject.toml plus `--config` overrides).
2. Scanning Rust files for annotated traits and expanding them via the Engine.
3. Output writing, diagnostic reporting and trace logging.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError
from rich.table import Table

from trait_variant.config import RuntimeConfig
from trait_variant.core.engine import TransformEngine
from trait_variant.core.errors import Diagnostic, RustSyntaxError
from trait_variant.core.expansion_result import ExpansionResult
from trait_variant.core.scanner import SourceExpansion, expand_source
from trait_variant.utils.console import console, log_error, log_info, log_success, log_warning


def handle_expand(
  input_path: Path,
  output_path: Optional[Path],
  overrides: Dict[str, Any],
  json_trace_path: Optional[Path] = None,
) -> int:
  """
  Handles the 'expand' command execution.

  Args:
      input_path: A Rust source file, or a directory searched for `*.rs` files.
      output_path: Destination file (or directory, for directory input). Without it,
          a single file's expansion is printed to stdout.
      overrides: Configuration values from `--config key=value`.
      json_trace_path: Optional path to dump the execution trace JSON.

  Returns:
      int: Exit code (0 for success, 1 if any file failed or reported diagnostics).
  """
  if not input_path.exists():
    log_error(f"Input not found: {input_path}")
    return 1

  config = _load_config(input_path, overrides)
  if config is None:
    return 1
  engine = TransformEngine(config)
  batch_results: Dict[str, Optional[SourceExpansion]] = {}

  if input_path.is_file():
    batch_results[input_path.name] = _expand_single_file(input_path, output_path, engine, json_trace_path)
  else:
    if not output_path:
      log_error("Directory expansion requires --out destination directory.")
      return 1

    rs_files = sorted(input_path.rglob("*.rs"))
    if not rs_files:
      log_warning(f"No .rs files found in {input_path}")
      return 0

    log_info(f"Processing {len(rs_files)} files from {input_path}...")
    for src_file in rs_files:
      rel_path = src_file.relative_to(input_path)
      batch_trace = (output_path / rel_path).with_suffix(".trace.json") if json_trace_path else None
      batch_results[str(rel_path)] = _expand_single_file(src_file, output_path / rel_path, engine, batch_trace)

  _print_batch_summary(batch_results)
  return 1 if any(r is None or r.has_errors for r in batch_results.values()) else 0


def handle_make(directive: str, input_path: Path, output_path: Optional[Path]) -> int:
  """
  Handles the 'make' command: expands a file holding exactly one trait declaration.

  Args:
      directive: Attribute arguments, e.g. `LocalIntFactory: Send`.
      input_path: The file containing the trait.
      output_path: Where to write the result; stdout when omitted.

  Returns:
      int: Exit code.
  """
  if not input_path.is_file():
    log_error(f"Input not found: {input_path}")
    return 1

  config = _load_config(input_path, {})
  if config is None:
    return 1

  result = TransformEngine(config).run(directive, input_path.read_text(encoding="utf-8"))
  _report_diagnostics(input_path, result.diagnostics)
  if not result.success:
    return 1

  _write_output(result.code, input_path, output_path)
  return 1 if result.has_errors else 0


def _load_config(input_path: Path, overrides: Dict[str, Any]) -> Optional[RuntimeConfig]:
  try:
    return RuntimeConfig.load(overrides, search_path=input_path if input_path.is_dir() else input_path.parent)
  except ValidationError as e:
    log_error(f"Invalid configuration: {e}")
    return None


def _expand_single_file(
  input_path: Path,
  output_path: Optional[Path],
  engine: TransformEngine,
  json_trace_path: Optional[Path] = None,
) -> Optional[SourceExpansion]:
  """
  Expands one file.

  Args:
      input_path: Source file path.
      output_path: Destination file path.
      engine: Configured engine.
      json_trace_path: Path to save trace event logs.

  Returns:
      Optional[SourceExpansion]: The expansion, or None if the file could not be read or scanned.
  """
  try:
    source = input_path.read_text(encoding="utf-8")
    expansion = expand_source(source, engine)
  except (OSError, UnicodeDecodeError, RustSyntaxError) as e:
    log_error(f"Failed to expand {input_path}: {e}")
    return None

  if json_trace_path and expansion.results:
    try:
      json_trace_path.parent.mkdir(parents=True, exist_ok=True)
      with open(json_trace_path, "wt", encoding="utf-8") as f:
        json.dump([r.trace_events for r in expansion.results], f, indent=2)
      log_info(f"Trace saved to [path]{json_trace_path}[/path]")
    except OSError as e:
      log_error(f"Failed to write trace: {e}")

  for result in expansion.results:
    _report_diagnostics(input_path, result.diagnostics)

  if not expansion.results:
    log_warning(f"No annotated traits in [path]{input_path}[/path]")
  _write_output(expansion.code, input_path, output_path)
  return expansion


def _write_output(code: str, input_path: Path, output_path: Optional[Path]) -> None:
  if output_path:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(code, encoding="utf-8")
    log_success(f"Expanded: [path]{input_path}[/path] -> [path]{output_path}[/path]")
  else:
    print(code)


def _report_diagnostics(input_path: Path, diagnostics: List[Diagnostic]) -> None:
  for diagnostic in diagnostics:
    log_error(f"{input_path}:{diagnostic.line}:{diagnostic.column}: {diagnostic.message}")


def _print_batch_summary(results: Dict[str, Optional[SourceExpansion]]) -> None:
  """
  Renders a summary table of expansion results to the console.

  Args:
      results: Dictionary mapping filenames to expansions (None if the file failed).
  """
  total = len(results)
  failures = {name: r for name, r in results.items() if r is None or r.has_errors}
  successes = total - len(failures)

  if not failures:
    traits = sum(len(r.results) for r in results.values() if r is not None)
    log_success(f"Batch Complete: {successes}/{total} files, {traits} traits expanded.")
    return

  table = Table(title="Expansion Report")
  table.add_column("File", style="cyan")
  table.add_column("Status", justify="center")
  table.add_column("Issues", style="red")

  for filename, expansion in failures.items():
    if expansion is None:
      table.add_row(filename, "❌ Failed", "Could not read or scan file")
      continue
    fatal = any(not r.success for r in expansion.results)
    status = "❌ Failed" if fatal else "⚠️ Diagnostics"
    table.add_row(filename, status, "; ".join(_issues(expansion.results)))

  console.print(table)
  console.print(f"\n[bold]Summary:[/bold] {successes} Passed, {len(failures)} with Issues.")


def _issues(results: List[ExpansionResult]) -> List[str]:
  return [error for r in results for error in r.errors]
