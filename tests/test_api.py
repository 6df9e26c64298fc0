"""
Tests for the public package API.
"""

import pytest

import trait_variant
from trait_variant import RuntimeConfig, TransformEngine, expand_source, make


def test_make_returns_code(factory_src):
  code = make("Fast: Send", factory_src)
  assert code.count("trait ") == 2
  assert "impl<TraitVariantBlanketType: Fast> Factory" in code


def test_make_raises_on_fatal_errors():
  with pytest.raises(ValueError, match="expected `trait`"):
    make("Send", "struct S;")


def test_make_returns_placeholders_for_diagnostics():
  code = make("V: Send", "trait A { m!(); }")
  assert '::core::compile_error! { "unsupported item type" }' in code


def test_make_with_config(defaulted_src):
  code = make("V: Send", defaulted_src, RuntimeConfig(self_alias="this", self_lifetime="life"))
  assert "let this = self;" in code
  assert "&'life self" in code


def test_exports():
  assert trait_variant.__version__ == "0.1.0"
  assert isinstance(TransformEngine().run("Send", "trait A {}"), trait_variant.ExpansionResult)
  assert expand_source("fn main() {}").code == "fn main() {}"
  assert callable(trait_variant.transform)
