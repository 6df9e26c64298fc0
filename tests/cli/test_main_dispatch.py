"""
Tests for CLI argument parsing and dispatch.
"""

from pathlib import Path
from unittest.mock import patch

import pytest

from trait_variant import __version__
from trait_variant.cli.__main__ import main


@patch("trait_variant.cli.commands.handle_expand", return_value=0)
def test_expand_dispatch(mock_handle):
  rc = main(["expand", "lib.rs", "--config", "self_alias=this", "lint_exempt_bounds=Send,Sync"])

  assert rc == 0
  mock_handle.assert_called_once()
  args = mock_handle.call_args[0]
  assert args[0] == Path("lib.rs")
  assert args[1] is None
  assert args[2] == {"self_alias": "this", "lint_exempt_bounds": "Send,Sync"}
  assert args[3] is None


@patch("trait_variant.cli.commands.handle_expand", return_value=1)
def test_expand_dispatch_with_outputs(mock_handle):
  rc = main(["expand", "src", "--out", "out", "--json-trace", "trace.json"])

  assert rc == 1
  args = mock_handle.call_args[0]
  assert args[1] == Path("out")
  assert args[2] == {}
  assert args[3] == Path("trace.json")


@patch("trait_variant.cli.commands.handle_make", return_value=0)
def test_make_dispatch(mock_handle):
  main(["make", "Local: Send", "trait.rs", "--out", "gen.rs"])
  mock_handle.assert_called_once_with("Local: Send", Path("trait.rs"), Path("gen.rs"))


def test_version(capsys):
  with pytest.raises(SystemExit) as excinfo:
    main(["--version"])
  assert excinfo.value.code == 0
  assert __version__ in capsys.readouterr().out


def test_command_required():
  with pytest.raises(SystemExit):
    main([])
