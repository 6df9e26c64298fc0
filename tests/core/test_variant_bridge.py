"""
Tests for the variant and bridge synthesizers.
"""

from trait_variant.config import RuntimeConfig
from trait_variant.core.bridge import BridgeSynthesizer
from trait_variant.core.directive import parse_directive
from trait_variant.core.errors import UNSUPPORTED_ITEM, UNSUPPORTED_PATTERN, DiagnosticSink
from trait_variant.core.hygiene import HygieneScope
from trait_variant.core.model import ImplPlaceholder
from trait_variant.core.parser import parse_interface
from trait_variant.core.rewriter import SignatureRewriter
from trait_variant.core.variant import VariantSynthesizer


def build(code, directive, config=None):
  decl = parse_interface(code)
  mode = parse_directive(directive)
  scope = HygieneScope.for_declaration(decl)
  sink = DiagnosticSink()
  rewritten = SignatureRewriter(mode.bounds, scope, sink, config).rewrite_all(decl.members)
  synthesizer = VariantSynthesizer(config)
  variant = synthesizer.synthesize(decl, mode.new_name, mode.bounds, rewritten)
  bridge = BridgeSynthesizer(scope, sink, config).synthesize(
    decl, mode.new_name, mode.bounds, rewritten.receiver_requirements
  )
  original = synthesizer.annotate_original(decl, mode.bounds)
  return original, variant, bridge, sink


def test_variant_keeps_header_and_extends_supertraits(generic_src):
  _, variant, _, _ = build(generic_src, "SendStore: Send")
  assert variant.to_text() == (
    "pub trait SendStore<'a, T: Clone, const N: usize = 4>: Send where T: 'a {\n"
    "    const CAP: usize;\n"
    "    type Item<'x>: Send where Self: 'x;\n"
    "    fn get(&self, key: &'a T) -> impl ::core::future::Future<Output = Option<T>> + Send;\n"
    "}"
  )


def test_existing_supertrait_is_not_repeated():
  _, variant, _, _ = build("trait A: Send + Clone { fn f(&self); }", "B: Send + Sync")
  assert [b.to_text() for b in variant.supertraits] == ["Send", "Clone", "Sync"]


def test_bridge_threads_generics(generic_src):
  _, _, bridge, sink = build(generic_src, "SendStore: Send")
  assert bridge.to_text() == (
    "impl<'a, T: Clone, const N: usize, TraitVariantBlanketType: SendStore<'a, T, N>> Store<'a, T, N>"
    " for TraitVariantBlanketType where T: 'a {\n"
    "    const CAP: usize = <Self as SendStore<'a, T, N>>::CAP;\n"
    "    type Item<'x> = <Self as SendStore<'a, T, N>>::Item<'x> where Self: 'x;\n"
    "    async fn get(&self, key: &'a T) -> Option<T> { <Self as SendStore<'a, T, N>>::get(self, key).await }\n"
    "}"
  )
  assert len(sink) == 0


def test_bridge_requires_borrowed_receiver_bounds(defaulted_src):
  _, _, bridge, _ = build(defaulted_src, "SendCounter: Send")
  assert bridge.to_text() == (
    "impl<TraitVariantBlanketType: SendCounter> Counter for TraitVariantBlanketType"
    " where for<'s> &'s TraitVariantBlanketType: Send {\n"
    "    async fn bump(&self, x: u32, mut y: String) -> u32 { <Self as SendCounter>::bump(self, x, y).await }\n"
    "    fn base(&self) -> u32 { <Self as SendCounter>::base(self) }\n"
    "}"
  )


def test_bridge_blanket_name_is_hygienic():
  _, _, bridge, _ = build("trait A<TraitVariantBlanketType> { fn f(&self); }", "B: Send")
  assert bridge.self_type.to_text() == "TraitVariantBlanketType2"


def test_bridge_for_unsafe_trait_is_unsafe():
  _, _, bridge, _ = build("unsafe trait A { fn f(&self); }", "B: Send")
  assert bridge.to_text().startswith("unsafe impl<")


def test_unsupported_members_become_placeholders():
  code = "trait Mixed {\n    my_macro!();\n    fn f(&self, (a, b): (u8, u8));\n}"
  _, variant, bridge, sink = build(code, "V: Send")
  assert "    my_macro!();" in variant.to_text()
  assert isinstance(bridge.items[0], ImplPlaceholder)
  assert [(d.message, d.line) for d in sink] == [(UNSUPPORTED_ITEM, 2), (UNSUPPORTED_PATTERN, 3)]
  assert 'fn f(&self, (a, b): (u8, u8)) { <Self as V>::f(self, ::core::compile_error! { "' in bridge.to_text()


def test_lint_attribute_added_for_exempt_bound():
  original, _, _, _ = build("trait A { async fn f(&self); }", "B: core::marker::Send")
  assert original.to_text().startswith("#[allow(async_fn_in_trait)]\ntrait A {")


def test_lint_attribute_not_added_for_other_bounds():
  original, _, _, _ = build("trait A { async fn f(&self); }", "B: Sync")
  assert original.attributes == ()


def test_lint_attribute_not_duplicated():
  original, _, _, _ = build("#[allow(async_fn_in_trait)]\ntrait A { async fn f(&self); }", "B: Send")
  assert [a.to_text() for a in original.attributes] == ["#[allow(async_fn_in_trait)]"]


def test_configured_lint_exemptions():
  config = RuntimeConfig(lint_exempt_bounds=["Sync"], suppressed_lint="custom_lint")
  original, _, _, _ = build("trait A { async fn f(&self); }", "B: Sync", config)
  assert [a.to_text() for a in original.attributes] == ["#[allow(custom_lint)]"]


def test_bridge_requires_typed_borrowed_receiver_bounds():
  code = "trait A { async fn f(self: &Self, x: u8) -> u8 { self.g(x) } fn g(&self, x: u8) -> u8; }"
  _, _, bridge, _ = build(code, "V: Send")
  assert bridge.to_text().splitlines()[0] == (
    "impl<TraitVariantBlanketType: V> A for TraitVariantBlanketType where for<'s> &'s TraitVariantBlanketType: Send {"
  )
  assert "async fn f(self: &Self, x: u8) -> u8 { <Self as V>::f(self, x).await }" in bridge.to_text()
