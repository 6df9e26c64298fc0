"""
Interface Model.

The normalized in-memory representation of a trait declaration, the bridge
implementation built from it, and the `EmitSet` returned by the engine.

Member kinds form a closed set (`ConstantMember`, `AssociatedTypeMember`,
`MethodMember`, `UnsupportedMember`); consumers dispatch over them with
`isinstance` chains that end in an explicit fallthrough.
"""

from dataclasses import dataclass, field
from typing import Optional, Tuple, Union

from trait_variant.core.errors import Diagnostic, Span
from trait_variant.core.syntax import (
  Attribute,
  Block,
  Bound,
  Generics,
  Lifetime,
  Path,
  ReferenceType,
  SELF_TYPE,
  SyntaxNode,
  TokenStream,
  TraitBound,
  Type,
  render_bounds,
)
from trait_variant.enums import ReceiverKind

INDENT = "    "


# --- Parameters ---


@dataclass(frozen=True)
class Receiver(SyntaxNode):
  """
  The `self` parameter of a method.

  Attributes:
      kind (ReceiverKind): VALUE, REF, MUT_REF or TYPED.
      lifetime (Optional[Lifetime]): Explicit borrow lifetime (`&'a self`).
      mutable (bool): True for a `mut self` binding.
      explicit_type (Optional[Type]): The type of a `self: Type` receiver.
  """

  kind: ReceiverKind
  lifetime: Optional[Lifetime] = None
  mutable: bool = False
  explicit_type: Optional[Type] = None
  span: Span = field(default=Span(), compare=False)

  @property
  def is_shared_borrow(self) -> bool:
    """True for `&self`, `&'a self`, `self: &Self` and `self: &'a Self`."""
    if self.kind == ReceiverKind.REF:
      return True
    ty = self.explicit_type
    return isinstance(ty, ReferenceType) and not ty.mutable and ty.elem == SELF_TYPE

  @property
  def borrow_lifetime(self) -> Optional[Lifetime]:
    if self.kind == ReceiverKind.TYPED and isinstance(self.explicit_type, ReferenceType):
      return self.explicit_type.lifetime
    return self.lifetime

  def with_borrow_lifetime(self, lifetime: Lifetime) -> "Receiver":
    """Attaches `lifetime` to the borrow, in whichever form the receiver was written."""
    if self.kind == ReceiverKind.TYPED:
      return self.with_changes(explicit_type=self.explicit_type.with_changes(lifetime=lifetime))
    return self.with_changes(lifetime=lifetime)

  def to_text(self) -> str:
    if self.kind in (ReceiverKind.REF, ReceiverKind.MUT_REF):
      text = "&"
      if self.lifetime is not None:
        text += self.lifetime.to_text() + " "
      return text + ("mut self" if self.kind == ReceiverKind.MUT_REF else "self")
    text = "mut self" if self.mutable else "self"
    if self.explicit_type is not None:
      text += ": " + self.explicit_type.to_text()
    return text


@dataclass(frozen=True)
class IdentPattern(SyntaxNode):
  """A plain binding pattern: `x` or `mut x`."""

  name: str
  mutable: bool = False

  def to_text(self) -> str:
    return ("mut " if self.mutable else "") + self.name


@dataclass(frozen=True)
class OtherPattern(SyntaxNode):
  """Any pattern that is not a plain identifier binding (`_`, `(a, b)`, `ref x`)."""

  text: str

  def to_text(self) -> str:
    return self.text


Pattern = Union[IdentPattern, OtherPattern]


@dataclass(frozen=True)
class TypedParam(SyntaxNode):
  pattern: Pattern
  type: Type
  attributes: Tuple[Attribute, ...] = ()
  span: Span = field(default=Span(), compare=False)

  def to_text(self) -> str:
    attrs = "".join(a.to_text() + " " for a in self.attributes)
    return f"{attrs}{self.pattern.to_text()}: {self.type.to_text()}"


Param = Union[Receiver, TypedParam]


# --- Signature ---


@dataclass(frozen=True)
class Signature(SyntaxNode):
  """
  A method signature.

  Attributes:
      name (str): The method identifier.
      generics (Generics): Own generic parameters and where-predicates.
      params (Tuple[Param]): Receiver (first only) and typed parameters, in order.
      output (Optional[Type]): Declared return type; None means unit.
      is_async (bool): True for `async fn`.
  """

  name: str
  generics: Generics = Generics()
  params: Tuple[Param, ...] = ()
  output: Optional[Type] = None
  is_async: bool = False
  is_const: bool = False
  is_unsafe: bool = False
  abi: Optional[str] = None
  span: Span = field(default=Span(), compare=False)

  @property
  def receiver(self) -> Optional[Receiver]:
    if self.params and isinstance(self.params[0], Receiver):
      return self.params[0]
    return None

  @property
  def receiver_kind(self) -> ReceiverKind:
    receiver = self.receiver
    return receiver.kind if receiver is not None else ReceiverKind.NONE

  def to_text(self) -> str:
    qualifiers = ""
    if self.is_const:
      qualifiers += "const "
    if self.is_async:
      qualifiers += "async "
    if self.is_unsafe:
      qualifiers += "unsafe "
    if self.abi is not None:
      qualifiers += f"extern {self.abi} " if self.abi else "extern "
    params = ", ".join(p.to_text() for p in self.params)
    text = f"{qualifiers}fn {self.name}{self.generics.to_text()}({params})"
    if self.output is not None:
      text += " -> " + self.output.to_text()
    return text + self.generics.where_text()


# --- Members ---


class Member(SyntaxNode):
  """Base of the trait and impl item kinds; renders attributes on their own lines."""

  attributes: Tuple[Attribute, ...]

  def render(self, indent: str = "") -> str:
    prefix = "".join(f"{indent}{a.to_text()}\n" for a in self.attributes)
    return prefix + indent + self.render_item()

  def render_item(self) -> str:
    raise NotImplementedError

  def to_text(self) -> str:
    return self.render()


@dataclass(frozen=True)
class ConstantMember(Member):
  name: str
  type: Type
  generics: Generics = Generics()
  default: Optional[TokenStream] = None
  attributes: Tuple[Attribute, ...] = ()
  span: Span = field(default=Span(), compare=False)

  def render_item(self) -> str:
    text = f"const {self.name}{self.generics.to_text()}: {self.type.to_text()}"
    if self.default is not None:
      text += " = " + self.default.to_text()
    return text + self.generics.where_text() + ";"


@dataclass(frozen=True)
class AssociatedTypeMember(Member):
  name: str
  generics: Generics = Generics()
  bounds: Tuple[Bound, ...] = ()
  default: Optional[Type] = None
  attributes: Tuple[Attribute, ...] = ()
  span: Span = field(default=Span(), compare=False)

  def render_item(self) -> str:
    text = f"type {self.name}{self.generics.to_text()}"
    if self.bounds:
      text += ": " + render_bounds(self.bounds)
    text += self.generics.where_text()
    if self.default is not None:
      text += " = " + self.default.to_text()
    return text + ";"


@dataclass(frozen=True)
class MethodMember(Member):
  signature: Signature
  default_body: Optional[Block] = None
  attributes: Tuple[Attribute, ...] = ()
  span: Span = field(default=Span(), compare=False)

  @property
  def name(self) -> str:
    return self.signature.name

  @property
  def is_asynchronous(self) -> bool:
    return self.signature.is_async

  @property
  def receiver_kind(self) -> ReceiverKind:
    return self.signature.receiver_kind

  def render_item(self) -> str:
    if self.default_body is None:
      return self.signature.to_text() + ";"
    return self.signature.to_text() + " " + self.default_body.to_text()


@dataclass(frozen=True)
class UnsupportedMember(Member):
  """A trait item the engine cannot model (e.g. a macro invocation), kept verbatim."""

  text: str
  attributes: Tuple[Attribute, ...] = ()
  span: Span = field(default=Span(), compare=False)

  @property
  def name(self) -> str:
    return self.text.split("!", 1)[0].strip()

  def render_item(self) -> str:
    return self.text


TraitMember = Union[ConstantMember, AssociatedTypeMember, MethodMember, UnsupportedMember]


@dataclass(frozen=True)
class TraitDeclaration(SyntaxNode):
  """
  A trait declaration: the engine's input and the shape of the emitted variant.
  """

  name: str
  generics: Generics = Generics()
  supertraits: Tuple[Bound, ...] = ()
  members: Tuple[TraitMember, ...] = ()
  attributes: Tuple[Attribute, ...] = ()
  visibility: str = ""
  is_unsafe: bool = False
  span: Span = field(default=Span(), compare=False)

  def to_text(self) -> str:
    lines = [a.to_text() for a in self.attributes]
    header = f"{self.visibility} " if self.visibility else ""
    if self.is_unsafe:
      header += "unsafe "
    header += f"trait {self.name}{self.generics.to_text()}"
    if self.supertraits:
      header += ": " + render_bounds(self.supertraits)
    header += self.generics.where_text()
    if not self.members:
      lines.append(header + " {}")
    else:
      lines.append(header + " {")
      lines.extend(m.render(INDENT) for m in self.members)
      lines.append("}")
    return "\n".join(lines)


# --- Bridge implementation ---


@dataclass(frozen=True)
class ImplConstant(Member):
  name: str
  type: Type
  value: SyntaxNode
  generics: Generics = Generics()
  attributes: Tuple[Attribute, ...] = ()

  def render_item(self) -> str:
    return f"const {self.name}{self.generics.to_text()}: {self.type.to_text()} = {self.value.to_text()};"


@dataclass(frozen=True)
class ImplType(Member):
  name: str
  type: Type
  generics: Generics = Generics()
  attributes: Tuple[Attribute, ...] = ()

  def render_item(self) -> str:
    return f"type {self.name}{self.generics.to_text()} = {self.type.to_text()}{self.generics.where_text()};"


@dataclass(frozen=True)
class ImplMethod(Member):
  signature: Signature
  body: Block
  attributes: Tuple[Attribute, ...] = ()

  def render_item(self) -> str:
    return self.signature.to_text() + " " + self.body.to_text()


@dataclass(frozen=True)
class ImplPlaceholder(Member):
  """Stands in for an item that could not be forwarded."""

  text: str
  attributes: Tuple[Attribute, ...] = ()

  def render_item(self) -> str:
    return self.text


ImplMember = Union[ImplConstant, ImplType, ImplMethod, ImplPlaceholder]


@dataclass(frozen=True)
class ImplBlock(SyntaxNode):
  """`impl<G> Trait<A> for SelfType where ... { items }`."""

  trait_path: Path
  self_type: Type
  generics: Generics = Generics()
  items: Tuple[ImplMember, ...] = ()
  is_unsafe: bool = False

  def to_text(self) -> str:
    header = "unsafe impl" if self.is_unsafe else "impl"
    header += f"{self.generics.to_text()} {self.trait_path.to_text()} for {self.self_type.to_text()}"
    header += self.generics.where_text()
    if not self.items:
      return header + " {}"
    lines = [header + " {"]
    lines.extend(item.render(INDENT) for item in self.items)
    lines.append("}")
    return "\n".join(lines)


# --- Engine input & output ---


@dataclass(frozen=True)
class CreateNamed:
  """Keep the original trait and add a bounded variant named `new_name` plus a bridge."""

  new_name: str
  bounds: Tuple[TraitBound, ...]

  def __post_init__(self) -> None:
    if not self.bounds:
      raise ValueError("a transform needs at least one bound")


@dataclass(frozen=True)
class RewriteInPlace:
  """Replace the original trait with its bounded version."""

  bounds: Tuple[TraitBound, ...]

  def __post_init__(self) -> None:
    if not self.bounds:
      raise ValueError("a transform needs at least one bound")


TransformMode = Union[CreateNamed, RewriteInPlace]

Artifact = Union[TraitDeclaration, ImplBlock]


@dataclass(frozen=True)
class EmitSet:
  """
  The ordered declarations produced by one expansion, plus its diagnostics.
  """

  items: Tuple[Artifact, ...] = ()
  diagnostics: Tuple[Diagnostic, ...] = ()

  @property
  def has_errors(self) -> bool:
    return len(self.diagnostics) > 0

  def to_text(self) -> str:
    return "\n\n".join(item.to_text() for item in self.items)
