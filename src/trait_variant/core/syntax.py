"""
Rust Syntax Nodes.

Immutable data structures for the subset of Rust syntax that appears in trait
declarations: paths, types, bounds, generic parameters, where-clauses, attributes
and raw token streams (method bodies, constant expressions).

Every node renders itself back to Rust via `to_text()` in a canonical, single-line
form. Nodes are frozen; derived nodes are built with `with_changes(**overrides)`
so every synthesis step stays a pure function of its inputs.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from typing import Iterable, Optional, Tuple, TypeVar, Union

from trait_variant.core.errors import Span
from trait_variant.core.tokens import RustLexer, Token, TokenKind

N = TypeVar("N", bound="SyntaxNode")


class SyntaxNode(ABC):
  """Abstract base class for all syntax nodes."""

  @abstractmethod
  def to_text(self) -> str:
    pass

  def with_changes(self: N, **changes) -> N:
    """Returns a copy of this node with the given fields replaced."""
    return replace(self, **changes)

  def __str__(self) -> str:
    return self.to_text()


# --- Token Streams ---


@dataclass(frozen=True)
class TokenStream(SyntaxNode):
  """
  A verbatim run of tokens (an expression, a block, an attribute).

  The first token is emitted without its leading trivia; every following token keeps
  the whitespace and comments that preceded it in the source.
  """

  tokens: Tuple[Token, ...] = ()

  @classmethod
  def quote(cls, text: str):
    """Lexes `text` into a stream, in the spirit of `parse_quote!`."""
    return cls(tuple(RustLexer(text).tokenize()[:-1]))

  def to_text(self) -> str:
    if not self.tokens:
      return ""
    return self.tokens[0].text + "".join(t.leading + t.text for t in self.tokens[1:])

  def rename_receiver(self, alias: str):
    """
    Replaces every `self` receiver token with `alias`.

    A `self` that begins a module path (`self::item`) is not the receiver and is kept.
    """
    out = []
    for index, tok in enumerate(self.tokens):
      if tok.is_ident("self"):
        following = self.tokens[index + 1] if index + 1 < len(self.tokens) else None
        if following is None or not following.is_punct("::"):
          tok = replace(tok, text=alias)
      out.append(tok)
    return self.with_changes(tokens=tuple(out))


@dataclass(frozen=True)
class Block(TokenStream):
  """A brace-delimited token stream used as a function body."""


@dataclass(frozen=True)
class Attribute(SyntaxNode):
  """An outer attribute (`#[...]`) or doc comment, kept verbatim."""

  text: str

  @classmethod
  def allow(cls, lint: str) -> "Attribute":
    return cls(f"#[allow({lint})]")

  def to_text(self) -> str:
    return self.text


# --- Paths ---


@dataclass(frozen=True)
class Lifetime(SyntaxNode):
  """A lifetime such as `'a` or `'static`. `name` includes the apostrophe."""

  name: str

  def to_text(self) -> str:
    return self.name


@dataclass(frozen=True)
class PathSegment(SyntaxNode):
  ident: str
  arguments: Optional[Union["AngleArguments", "ParenArguments"]] = None

  def to_text(self) -> str:
    return self.ident + (self.arguments.to_text() if self.arguments else "")


@dataclass(frozen=True)
class Path(SyntaxNode):
  """A (possibly global) path such as `::core::future::Future<Output = T>`."""

  segments: Tuple[PathSegment, ...]
  leading_colon: bool = False

  @classmethod
  def from_ident(cls, ident: str, arguments: Optional["AngleArguments"] = None) -> "Path":
    return cls((PathSegment(ident, arguments),))

  @property
  def last_ident(self) -> str:
    return self.segments[-1].ident

  def to_text(self) -> str:
    return ("::" if self.leading_colon else "") + "::".join(s.to_text() for s in self.segments)


@dataclass(frozen=True)
class AngleArguments(SyntaxNode):
  """Generic arguments in angle brackets: `<'a, T, N, Item = U>`."""

  args: Tuple["GenericArgument", ...] = ()

  def to_text(self) -> str:
    return "<" + ", ".join(a.to_text() for a in self.args) + ">"


@dataclass(frozen=True)
class ParenArguments(SyntaxNode):
  """Parenthesized sugar of the `Fn` traits: `(A, B) -> C`."""

  inputs: Tuple["Type", ...] = ()
  output: Optional["Type"] = None

  def to_text(self) -> str:
    text = "(" + ", ".join(t.to_text() for t in self.inputs) + ")"
    if self.output is not None:
      text += " -> " + self.output.to_text()
    return text


@dataclass(frozen=True)
class AssocBinding(SyntaxNode):
  """An associated type binding: `Item = T`."""

  ident: str
  type: "Type"
  generics: Optional[AngleArguments] = None

  def to_text(self) -> str:
    generics = self.generics.to_text() if self.generics else ""
    return f"{self.ident}{generics} = {self.type.to_text()}"


@dataclass(frozen=True)
class AssocConstraint(SyntaxNode):
  """An associated type constraint: `Item: Bound`."""

  ident: str
  bounds: Tuple["Bound", ...]
  generics: Optional[AngleArguments] = None

  def to_text(self) -> str:
    generics = self.generics.to_text() if self.generics else ""
    return f"{self.ident}{generics}: {render_bounds(self.bounds)}"


@dataclass(frozen=True)
class ConstArgument(SyntaxNode):
  """A const generic argument kept verbatim (`3`, `{ N + 1 }`)."""

  text: str

  def to_text(self) -> str:
    return self.text


# --- Types ---


@dataclass(frozen=True)
class PathType(SyntaxNode):
  path: Path

  @classmethod
  def named(cls, ident: str) -> "PathType":
    return cls(Path.from_ident(ident))

  def to_text(self) -> str:
    return self.path.to_text()


@dataclass(frozen=True)
class QualifiedPathType(SyntaxNode):
  """A qualified path: `<T as Trait>::Assoc`."""

  self_type: "Type"
  trait_path: Optional[Path]
  rest: Tuple[PathSegment, ...]

  def to_text(self) -> str:
    qualifier = self.self_type.to_text()
    if self.trait_path is not None:
      qualifier += " as " + self.trait_path.to_text()
    return f"<{qualifier}>::" + "::".join(s.to_text() for s in self.rest)


@dataclass(frozen=True)
class ReferenceType(SyntaxNode):
  elem: "Type"
  lifetime: Optional[Lifetime] = None
  mutable: bool = False

  def to_text(self) -> str:
    text = "&"
    if self.lifetime is not None:
      text += self.lifetime.to_text() + " "
    if self.mutable:
      text += "mut "
    return text + self.elem.to_text()


@dataclass(frozen=True)
class PointerType(SyntaxNode):
  elem: "Type"
  mutable: bool = False

  def to_text(self) -> str:
    return ("*mut " if self.mutable else "*const ") + self.elem.to_text()


@dataclass(frozen=True)
class TupleType(SyntaxNode):
  elems: Tuple["Type", ...] = ()

  def to_text(self) -> str:
    if len(self.elems) == 1:
      return f"({self.elems[0].to_text()},)"
    return "(" + ", ".join(e.to_text() for e in self.elems) + ")"


@dataclass(frozen=True)
class ParenType(SyntaxNode):
  elem: "Type"

  def to_text(self) -> str:
    return f"({self.elem.to_text()})"


@dataclass(frozen=True)
class SliceType(SyntaxNode):
  elem: "Type"

  def to_text(self) -> str:
    return f"[{self.elem.to_text()}]"


@dataclass(frozen=True)
class ArrayType(SyntaxNode):
  elem: "Type"
  length: str

  def to_text(self) -> str:
    return f"[{self.elem.to_text()}; {self.length}]"


@dataclass(frozen=True)
class ImplTraitType(SyntaxNode):
  """An opaque type: `impl Iterator<Item = i32> + Send`."""

  bounds: Tuple["Bound", ...]

  def to_text(self) -> str:
    return "impl " + render_bounds(self.bounds)


@dataclass(frozen=True)
class TraitObjectType(SyntaxNode):
  bounds: Tuple["Bound", ...]

  def to_text(self) -> str:
    return "dyn " + render_bounds(self.bounds)


@dataclass(frozen=True)
class NeverType(SyntaxNode):
  def to_text(self) -> str:
    return "!"


@dataclass(frozen=True)
class InferType(SyntaxNode):
  def to_text(self) -> str:
    return "_"


@dataclass(frozen=True)
class VerbatimType(SyntaxNode):
  """A type the engine never looks into (function pointers, type macros)."""

  text: str

  def to_text(self) -> str:
    return self.text


Type = Union[
  PathType,
  QualifiedPathType,
  ReferenceType,
  PointerType,
  TupleType,
  ParenType,
  SliceType,
  ArrayType,
  ImplTraitType,
  TraitObjectType,
  NeverType,
  InferType,
  VerbatimType,
]

UNIT = TupleType(())
SELF_TYPE = PathType.named("Self")

# --- Bounds & Generics ---


@dataclass(frozen=True)
class LifetimeParam(SyntaxNode):
  lifetime: Lifetime
  bounds: Tuple[Lifetime, ...] = ()

  @property
  def name(self) -> str:
    return self.lifetime.name

  def as_argument(self) -> Lifetime:
    return self.lifetime

  def without_default(self) -> "LifetimeParam":
    return self

  def to_text(self) -> str:
    if not self.bounds:
      return self.lifetime.to_text()
    return self.lifetime.to_text() + ": " + " + ".join(b.to_text() for b in self.bounds)


@dataclass(frozen=True)
class TraitBound(SyntaxNode):
  """
  A trait used as a bound, e.g. `Send`, `?Sized`, `for<'a> Fn(&'a u8)`.

  Attributes:
      path (Path): The trait path.
      modifier (str): `"?"`, `"~const "` or empty.
      lifetimes (Tuple[LifetimeParam]): Higher-ranked `for<...>` lifetimes.
      parenthesized (bool): True if written as `(Bound)`.
  """

  path: Path
  modifier: str = ""
  lifetimes: Tuple[LifetimeParam, ...] = ()
  parenthesized: bool = False

  def to_text(self) -> str:
    text = self.modifier + render_for(self.lifetimes) + self.path.to_text()
    return f"({text})" if self.parenthesized else text


Bound = Union[TraitBound, Lifetime]


@dataclass(frozen=True)
class TypeParam(SyntaxNode):
  ident: str
  bounds: Tuple[Bound, ...] = ()
  default: Optional[Type] = None

  @property
  def name(self) -> str:
    return self.ident

  def as_argument(self) -> PathType:
    return PathType.named(self.ident)

  def without_default(self) -> "TypeParam":
    return self.with_changes(default=None)

  def to_text(self) -> str:
    text = self.ident
    if self.bounds:
      text += ": " + render_bounds(self.bounds)
    if self.default is not None:
      text += " = " + self.default.to_text()
    return text


@dataclass(frozen=True)
class ConstParam(SyntaxNode):
  ident: str
  type: Type
  default: Optional[str] = None

  @property
  def name(self) -> str:
    return self.ident

  def as_argument(self) -> ConstArgument:
    return ConstArgument(self.ident)

  def without_default(self) -> "ConstParam":
    return self.with_changes(default=None)

  def to_text(self) -> str:
    text = f"const {self.ident}: {self.type.to_text()}"
    if self.default is not None:
      text += " = " + self.default
    return text


GenericParam = Union[LifetimeParam, TypeParam, ConstParam]


@dataclass(frozen=True)
class BoundPredicate(SyntaxNode):
  """A where-predicate bounding a type: `for<'s> &'s T: Send`."""

  bounded_type: Type
  bounds: Tuple[Bound, ...] = ()
  lifetimes: Tuple[LifetimeParam, ...] = ()

  def to_text(self) -> str:
    text = render_for(self.lifetimes) + self.bounded_type.to_text() + ":"
    if self.bounds:
      text += " " + render_bounds(self.bounds)
    return text


@dataclass(frozen=True)
class LifetimePredicate(SyntaxNode):
  """A where-predicate between lifetimes: `'a: 'b`."""

  lifetime: Lifetime
  bounds: Tuple[Lifetime, ...] = ()

  def to_text(self) -> str:
    return self.lifetime.to_text() + ": " + " + ".join(b.to_text() for b in self.bounds)


WherePredicate = Union[BoundPredicate, LifetimePredicate]


@dataclass(frozen=True)
class Generics(SyntaxNode):
  """
  Generic parameters plus the where-clause that constrains them.

  `to_text()` renders only the parameter list; the where-clause is rendered
  separately with `where_text()` because its position differs per item kind.
  """

  params: Tuple[GenericParam, ...] = ()
  where_clause: Tuple[WherePredicate, ...] = ()

  def to_text(self) -> str:
    if not self.params:
      return ""
    return "<" + ", ".join(p.to_text() for p in self.params) + ">"

  def where_text(self) -> str:
    if not self.where_clause:
      return ""
    return " where " + ", ".join(p.to_text() for p in self.where_clause)

  def for_impl(self) -> "Generics":
    """The parameter list usable on an `impl` (defaults removed)."""
    return self.with_changes(params=tuple(p.without_default() for p in self.params))

  def type_arguments(self) -> Optional[AngleArguments]:
    """The arguments naming each parameter in order, e.g. `<'x, S, N>`."""
    if not self.params:
      return None
    return AngleArguments(tuple(p.as_argument() for p in self.params))

  def with_predicate(self, predicate: WherePredicate) -> "Generics":
    return self.with_changes(where_clause=self.where_clause + (predicate,))


# --- Rendering helpers ---


def render_bounds(bounds: Iterable[Bound]) -> str:
  return " + ".join(b.to_text() for b in bounds)


def render_for(lifetimes: Tuple[LifetimeParam, ...]) -> str:
  if not lifetimes:
    return ""
  return "for<" + ", ".join(lt.to_text() for lt in lifetimes) + "> "


def merge_bounds(existing: Iterable[Bound], extra: Iterable[Bound]) -> Tuple[Bound, ...]:
  """
  Ordered union of two bound lists. Equality is by rendered text.

  Args:
      existing: Bounds already present; they keep their positions.
      extra: Bounds appended when not already present.

  Returns:
      Tuple of bounds without duplicates.
  """
  merged = []
  seen = set()
  for bound in (*existing, *extra):
    key = bound.to_text()
    if key not in seen:
      seen.add(key)
      merged.append(bound)
  return tuple(merged)


def token_span(tokens: Tuple[Token, ...]) -> Span:
  """Span covering a non-empty run of tokens."""
  tokens = tuple(t for t in tokens if t.kind != TokenKind.EOF) or tokens
  return tokens[0].span.join(tokens[-1].span)
