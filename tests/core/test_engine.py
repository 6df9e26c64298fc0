"""
Integration tests for the TransformEngine.

Verifies:
1. CreateNamed emits original, variant and bridge in that order.
2. RewriteInPlace emits only the rewritten trait.
3. A variant name equal to the trait name falls back to an in-place rewrite.
4. Non-fatal diagnostics keep the expansion going; fatal errors abort it.
5. Output is identical across runs.
"""

import logging

import pytest

from trait_variant.core.engine import TransformEngine, transform
from trait_variant.core.errors import UNSUPPORTED_ITEM, UNSUPPORTED_PATTERN
from trait_variant.core.model import CreateNamed, ImplBlock, RewriteInPlace, TraitDeclaration
from trait_variant.core.tracer import TraceEventType

FACTORY_ORIGINAL = """#[allow(async_fn_in_trait)]
trait Factory {
    async fn make(&self) -> i32;
    fn call(&self) -> u32;
}"""

FACTORY_VARIANT = """trait Fast: Send {
    fn make(&self) -> impl ::core::future::Future<Output = i32> + Send;
    fn call(&self) -> u32;
}"""

FACTORY_BRIDGE = """impl<TraitVariantBlanketType: Fast> Factory for TraitVariantBlanketType {
    async fn make(&self) -> i32 { <Self as Fast>::make(self).await }
    fn call(&self) -> u32 { <Self as Fast>::call(self) }
}"""


@pytest.fixture
def engine():
  return TransformEngine()


def test_create_named_emits_three_artifacts(engine, factory_src):
  result = engine.run("Fast: Send", factory_src)
  assert result.success
  assert not result.has_errors
  assert result.code == "\n\n".join([FACTORY_ORIGINAL, FACTORY_VARIANT, FACTORY_BRIDGE])


def test_rewrite_in_place_emits_one_artifact(engine, factory_src):
  result = engine.run("Send", factory_src)
  assert result.code == FACTORY_VARIANT.replace("trait Fast", "trait Factory")


def test_transform_artifact_kinds(engine, factory_src):
  decl = engine.parse_interface(factory_src)
  named = engine.transform(engine.parse_directive("Fast: Send"), decl)
  assert [type(item) for item in named.items] == [TraitDeclaration, TraitDeclaration, ImplBlock]
  in_place = engine.transform(engine.parse_directive("Send"), decl)
  assert [type(item) for item in in_place.items] == [TraitDeclaration]


def test_same_name_falls_back_to_in_place(engine, factory_src, caplog):
  with caplog.at_level(logging.WARNING, logger="trait_variant.core.engine"):
    result = engine.run("Factory: Send", factory_src)
  assert result.code == engine.run("Send", factory_src).code
  assert "equals the trait name" in caplog.text


def test_async_default_method(engine, defaulted_src):
  result = engine.run("SendCounter: Send", defaulted_src)
  original, variant, bridge = result.code.split("\n\n")
  assert original.startswith("#[allow(async_fn_in_trait)]\ntrait Counter {")
  assert variant.splitlines()[1] == (
    "    fn bump<'the_self_lt>(&'the_self_lt self, x: u32, mut y: String)"
    " -> impl ::core::future::Future<Output = u32> + Send where &'the_self_lt Self: Send"
    " { let __self = self; let x = x; let mut y = y; async move {"
  )
  assert "__self.base() + x" in variant
  assert " where for<'s> &'s TraitVariantBlanketType: Send {" in bridge.splitlines()[0]


def test_forwarding_passes_every_argument(engine):
  result = engine.run("V: Send", "trait A { fn f(&self, a: u8, mut b: u8, c: &str); fn g(x: u8) -> u8; }")
  assert "{ <Self as V>::f(self, a, b, c) }" in result.code
  assert "fn g(x: u8) -> u8 { <Self as V>::g(x) }" in result.code


def test_diagnostics_do_not_abort(engine):
  code = "trait Mixed {\n    m!();\n    async fn f(&self, (a, b): (u8, u8)) {}\n    fn g(&self);\n}"
  result = engine.run("V: Send", code)
  assert result.success
  assert [d.message for d in result.diagnostics] == [UNSUPPORTED_PATTERN, UNSUPPORTED_ITEM, UNSUPPORTED_PATTERN]
  assert result.errors[1] == "2:5: unsupported item type"
  assert "fn g(&self) { <Self as V>::g(self) }" in result.code
  assert result.code.count("::core::compile_error!") == 3


def test_unsupported_member_in_place_has_no_diagnostic(engine):
  result = engine.run("Send", "trait A { m!(); }")
  assert not result.has_errors
  assert "m!();" in result.code


@pytest.mark.parametrize(
  "attr, item, fragment",
  [
    ("Fast: Send", "struct S;", "expected `trait`"),
    ("Fast Send", "trait A {}", "expected end of input"),
    ("'static", "trait A {}", "trait bound"),
  ],
)
def test_fatal_errors(engine, attr, item, fragment):
  result = engine.run(attr, item)
  assert not result.success
  assert len(result.diagnostics) == 1 and result.diagnostics[0].fatal
  assert fragment in result.diagnostics[0].message
  assert result.code.startswith("::core::compile_error! {")


def test_output_is_deterministic(engine, defaulted_src):
  assert engine.run("V: Send", defaulted_src).code == TransformEngine().run("V: Send", defaulted_src).code


def test_module_level_transform(generic_src):
  engine = TransformEngine()
  decl = engine.parse_interface(generic_src)
  emitted = transform(CreateNamed("SendStore", engine.parse_directive("Send").bounds), decl)
  assert emitted.items[1].name == "SendStore"
  assert emitted.items[2].trait_path.to_text() == "Store<'a, T, N>"
  assert not emitted.has_errors


def test_in_place_mode_constructed_directly(factory_src):
  engine = TransformEngine()
  bounds = engine.parse_directive("Send + Sync").bounds
  emitted = transform(RewriteInPlace(bounds), engine.parse_interface(factory_src))
  assert emitted.items[0].to_text().startswith("trait Factory: Send + Sync {")


def test_modes_reject_empty_bounds():
  with pytest.raises(ValueError):
    CreateNamed("V", ())
  with pytest.raises(ValueError):
    RewriteInPlace(())


def test_trace_covers_phases(engine, factory_src):
  result = engine.run("Fast: Send", factory_src)
  phases = [e["description"] for e in result.trace_events if e["type"] == TraceEventType.PHASE_START]
  assert phases == ["Expansion", "Directive", "Parse", "Rewrite", "Variant", "Bridge"]


def test_block_doc_comments_survive_in_place(engine):
  result = engine.run("Send", "trait A {\n    /** Makes one. */\n    async fn make(&self) -> i32;\n}")
  assert result.code == (
    "trait A: Send {\n"
    "    /** Makes one. */\n"
    "    fn make(&self) -> impl ::core::future::Future<Output = i32> + Send;\n"
    "}"
  )
