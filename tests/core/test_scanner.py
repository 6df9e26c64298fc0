"""
Tests for the source scanner.

Verifies:
1. Only real attributes with a configured path are matched (not comments).
2. Expansions are spliced in place; all other text is kept byte for byte.
3. Diagnostics and directive errors carry positions in the scanned file.
"""

import pytest

from trait_variant.config import RuntimeConfig
from trait_variant.core.engine import TransformEngine
from trait_variant.core.errors import RustSyntaxError
from trait_variant.core.scanner import AttributeScanner, expand_source

SOURCE = """use std::future::Future;

// #[trait_variant::make(Ignored: Send)]
#[trait_variant::make(SendFactory: Send)]
pub trait Factory {
    async fn make(&self) -> i32;
}

#[derive(Debug)]
struct Untouched<T>(T);

#[make(Send)]
trait Local {
    fn it(&self) -> impl Iterator<Item = u8>;
}
"""


def test_scan_finds_annotated_traits():
  found = AttributeScanner().scan(SOURCE)
  assert [a.attribute_path for a in found] == ["trait_variant::make", "make"]
  assert [t.text for t in found[0].directive] == ["SendFactory", ":", "Send"]
  assert found[0].span.line == 4
  assert found[1].item[0].text == "trait"


def test_expand_source_splices_in_place():
  expansion = expand_source(SOURCE)
  assert len(expansion.results) == 2
  assert not expansion.has_errors
  assert expansion.code.startswith(
    "use std::future::Future;\n\n// #[trait_variant::make(Ignored: Send)]\n"
    "#[allow(async_fn_in_trait)]\npub trait Factory {"
  )
  assert "pub trait SendFactory: Send {" in expansion.code
  assert "#[derive(Debug)]\nstruct Untouched<T>(T);\n\n" in expansion.code
  assert expansion.code.endswith("trait Local: Send {\n    fn it(&self) -> impl Iterator<Item = u8> + Send;\n}\n")


def test_source_without_attributes_is_unchanged():
  source = "// nothing here\nfn main() {}\n"
  expansion = expand_source(source)
  assert expansion.code == source
  assert expansion.results == []


def test_diagnostics_use_file_positions():
  source = "\n\n#[make(V: Send)]\ntrait A {\n    m!();\n}\n"
  expansion = expand_source(source)
  assert expansion.has_errors
  diagnostic = expansion.results[0].diagnostics[0]
  assert (diagnostic.line, diagnostic.column) == (5, 5)


def test_directive_error_is_anchored_at_attribute():
  source = "fn a() {}\n#[make()]\ntrait A { fn f(&self); }\n"
  expansion = expand_source(source)
  result = expansion.results[0]
  assert not result.success
  assert result.diagnostics[0].line == 2
  assert expansion.code == 'fn a() {}\n::core::compile_error! { "expected at least one bound" }\n'


def test_configured_attribute_paths():
  engine = TransformEngine(RuntimeConfig(attribute_paths="variant"))
  source = "#[variant(Send)]\ntrait A { async fn f(&self); }\n#[make(Send)]\ntrait B {}\n"
  expansion = expand_source(source, engine)
  assert len(expansion.results) == 1
  assert "#[make(Send)]\ntrait B {}" in expansion.code


def test_unlexable_source_raises():
  with pytest.raises(RustSyntaxError):
    expand_source("fn a() { § }")
