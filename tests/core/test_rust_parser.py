"""
Tests for the Rust trait parser and the node printers.

Verifies:
1. Canonical trait text round-trips through parse -> to_text.
2. Member kinds (constants, associated types, methods, macro invocations).
3. Receiver shapes and parameter patterns.
4. Types: references, qualified paths, Fn sugar, function pointers, tuples.
5. Syntax errors carry locations.
"""

import pytest

from trait_variant.core.errors import RustSyntaxError
from trait_variant.core.model import (
  AssociatedTypeMember,
  ConstantMember,
  IdentPattern,
  MethodMember,
  OtherPattern,
  UnsupportedMember,
)
from trait_variant.core.parser import RustParser, parse_interface, parse_path, parse_type
from trait_variant.core.syntax import ConstParam, ImplTraitType, LifetimeParam, TraitBound, TypeParam
from trait_variant.enums import ReceiverKind


@pytest.mark.parametrize(
  "code",
  [
    "trait Empty {}",
    "pub trait Factory: Sync {\n    async fn make(&self) -> i32;\n}",
    "pub(crate) unsafe trait Raw<T: ?Sized> where T: Send {\n    unsafe fn raw(&mut self, ptr: *const T);\n}",
    '#[doc = "x"]\n/// More docs\ntrait A {\n    const NAME: &\'static str = "a";\n}',
    "trait B {\n    type Item<'x>: Iterator<Item = u8> + 'x where Self: 'x;\n}",
    "trait C {\n    fn boxed(self: Box<Self>) -> impl for<'a> Fn(&'a u8) -> bool + Send;\n}",
    "trait D {\n    extern \"C\" fn cb(ptr: fn(u8) -> u8, arr: [u8; 4], t: (u8,), unit: ());\n}",
  ],
)
def test_canonical_round_trip(code):
  assert parse_interface(code).to_text() == code


def test_method_body_keeps_source_formatting(defaulted_src):
  decl = parse_interface(defaulted_src)
  assert decl.to_text() == defaulted_src


def test_member_kinds():
  decl = parse_interface(
    """trait Mixed {
    const N: usize;
    type Out;
    fn go(&self);
    my_macro!(x);
    other! { y }
}"""
  )
  kinds = [type(m) for m in decl.members]
  assert kinds == [ConstantMember, AssociatedTypeMember, MethodMember, UnsupportedMember, UnsupportedMember]
  assert decl.members[3].text == "my_macro!(x);"
  assert decl.members[3].span.line == 5


def test_generics_and_supertraits(generic_src):
  decl = parse_interface(generic_src)
  params = decl.generics.params
  assert isinstance(params[0], LifetimeParam)
  assert isinstance(params[1], TypeParam) and params[1].bounds[0].to_text() == "Clone"
  assert isinstance(params[2], ConstParam) and params[2].default == "4"
  assert decl.generics.where_text() == " where T: 'a"
  assert decl.visibility == "pub"
  assert decl.generics.type_arguments().to_text() == "<'a, T, N>"
  assert decl.generics.for_impl().to_text() == "<'a, T: Clone, const N: usize>"


def test_receivers():
  decl = parse_interface(
    "trait R { fn a(); fn b(self); fn c(mut self); fn d(&self); "
    "fn e(&'x self); fn f(&mut self); fn g(self: Box<Self>); }"
  )
  kinds = [m.receiver_kind for m in decl.members]
  assert kinds == [
    ReceiverKind.NONE,
    ReceiverKind.VALUE,
    ReceiverKind.VALUE,
    ReceiverKind.REF,
    ReceiverKind.REF,
    ReceiverKind.MUT_REF,
    ReceiverKind.TYPED,
  ]
  assert decl.members[2].signature.receiver.mutable
  assert decl.members[4].signature.receiver.lifetime.to_text() == "'x"


def test_parameter_patterns():
  method = parse_interface("trait P { fn f(&self, a: u8, mut b: u8, (c, d): (u8, u8), _: u8, ref e: u8); }").members[0]
  patterns = [p.pattern for p in method.signature.params[1:]]
  assert patterns[0] == IdentPattern("a")
  assert patterns[1] == IdentPattern("b", mutable=True)
  assert patterns[2] == OtherPattern("(c, d)")
  assert patterns[3] == OtherPattern("_")
  assert patterns[4] == OtherPattern("ref e")


@pytest.mark.parametrize(
  "code",
  [
    "&'a mut [u8]",
    "<T as Iterator>::Item",
    "<Self>::Assoc<'b>",
    "Option<Box<dyn Fn(&str) -> bool + Send + 'static>>",
    "*mut u8",
    "!",
    "HashMap<K, V, { N + 1 }>",
    "impl Future<Output = ()> + Send",
    "Self::Item",
  ],
)
def test_type_round_trip(code):
  assert parse_type(code).to_text() == code


def test_opaque_return_is_structured():
  ty = parse_type("impl Iterator<Item = i32> + Send")
  assert isinstance(ty, ImplTraitType)
  assert [b.path.last_ident for b in ty.bounds] == ["Iterator", "Send"]


def test_global_path():
  path = parse_path("::core::future::Future")
  assert path.leading_colon
  assert path.last_ident == "Future"


def test_bound_modifiers():
  decl = parse_interface("trait M<T: ?Sized + for<'a> Fn(&'a u8)> {}")
  bounds = decl.generics.params[0].bounds
  assert isinstance(bounds[0], TraitBound) and bounds[0].modifier == "?"
  assert bounds[1].to_text() == "for<'a> Fn(&'a u8)"


def test_attempt_restores_cursor():
  parser = RustParser.from_text("Send + Sync")

  def failing():
    parser.expect_identifier()
    parser.expect_punct(":")

  assert parser.attempt(failing) is None
  assert parser.pos == 0


@pytest.mark.parametrize(
  "code, fragment",
  [
    ("struct S;", "expected `trait`"),
    ("trait A { fn f() }", "expected `;`"),
    ("trait A { fn f(); ", "expected `}`"),
    ("trait A {} trait B {}", "expected end of input"),
    ("trait A { let x = 1; }", "expected a trait item"),
  ],
)
def test_syntax_errors(code, fragment):
  with pytest.raises(RustSyntaxError) as excinfo:
    parse_interface(code)
  assert fragment in excinfo.value.reason
