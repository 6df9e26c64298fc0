"""
Rust Trait Parser.

This module provides the `RustParser`, a recursive descent parser that converts a
token list (from `RustLexer`) into the interface model defined in `model.py`.

Capabilities:
- Trait headers: attributes, visibility, `unsafe`, generics, supertraits, where-clauses.
- Trait items: constants, associated types (including GATs) and methods with
  optional default bodies. Macro invocations become `UnsupportedMember`s.
- Types: paths with generic arguments, qualified paths, references, pointers, tuples,
  slices, arrays, `impl Trait`, `dyn Trait`, `!`, `_`; function pointer and macro
  types are kept verbatim.
- Backtracking: `attempt()` snapshots the cursor, runs a rule and rolls back on failure.
  The cursor position is the only mutable parse state, so a rollback is complete.

Method bodies and constant expressions are not parsed; they are kept as token
streams with their original trivia.
"""

from typing import Callable, List, Optional, Sequence, Set, Tuple, TypeVar

from trait_variant.core.errors import RustSyntaxError, Span
from trait_variant.core.model import (
  AssociatedTypeMember,
  ConstantMember,
  IdentPattern,
  MethodMember,
  OtherPattern,
  Param,
  Receiver,
  Signature,
  TraitDeclaration,
  TraitMember,
  TypedParam,
  UnsupportedMember,
)
from trait_variant.core.syntax import (
  UNIT,
  AngleArguments,
  ArrayType,
  AssocBinding,
  AssocConstraint,
  Attribute,
  Block,
  Bound,
  BoundPredicate,
  ConstArgument,
  ConstParam,
  GenericParam,
  Generics,
  ImplTraitType,
  InferType,
  Lifetime,
  LifetimeParam,
  LifetimePredicate,
  NeverType,
  ParenArguments,
  ParenType,
  Path,
  PathSegment,
  PathType,
  PointerType,
  QualifiedPathType,
  ReferenceType,
  SliceType,
  TokenStream,
  TraitBound,
  TraitObjectType,
  TupleType,
  TypeParam,
  Type,
  VerbatimType,
  WherePredicate,
  render_for,
)
from trait_variant.core.tokens import CLOSERS, OPENERS, RustLexer, Token, TokenKind
from trait_variant.enums import ReceiverKind

T = TypeVar("T")

KEYWORDS = {
  "as",
  "async",
  "await",
  "break",
  "const",
  "continue",
  "crate",
  "dyn",
  "else",
  "enum",
  "extern",
  "false",
  "fn",
  "for",
  "if",
  "impl",
  "in",
  "let",
  "loop",
  "match",
  "mod",
  "move",
  "mut",
  "pub",
  "ref",
  "return",
  "self",
  "Self",
  "static",
  "struct",
  "super",
  "trait",
  "true",
  "type",
  "unsafe",
  "use",
  "where",
  "while",
}

METHOD_QUALIFIERS = {"const", "async", "unsafe", "extern", "fn"}


class RustParser:
  """
  Recursive descent parser for Rust trait declarations.
  """

  def __init__(self, tokens: Sequence[Token]):
    """
    Initialize the parser.

    Args:
        tokens: Tokens from `RustLexer`. An EOF token is appended if missing.
    """
    self.tokens: List[Token] = list(tokens)
    if not self.tokens or self.tokens[-1].kind != TokenKind.EOF:
      end = self.tokens[-1].span if self.tokens else Span()
      self.tokens.append(Token(TokenKind.EOF, "", Span(end.line, end.column, end.end, end.end)))
    self.pos = 0

  @classmethod
  def from_text(cls, text: str) -> "RustParser":
    return cls(RustLexer(text).tokenize())

  # --- Cursor ---

  def peek(self, offset: int = 0) -> Token:
    idx = self.pos + offset
    if idx >= len(self.tokens):
      return self.tokens[-1]
    return self.tokens[idx]

  def consume(self) -> Token:
    token = self.peek()
    if token.kind != TokenKind.EOF:
      self.pos += 1
    return token

  def at_eof(self) -> bool:
    return self.peek().kind == TokenKind.EOF

  def match_punct(self, text: str, offset: int = 0) -> bool:
    return self.peek(offset).is_punct(text)

  def match_ident(self, text: str, offset: int = 0) -> bool:
    return self.peek(offset).is_ident(text)

  def error(self, message: str, token: Optional[Token] = None) -> RustSyntaxError:
    return RustSyntaxError(message, (token or self.peek()).span)

  def expect_punct(self, text: str) -> Token:
    if not self.match_punct(text):
      raise self.error(f"expected `{text}`, found {self._describe(self.peek())}")
    return self.consume()

  def expect_ident(self, text: Optional[str] = None) -> Token:
    tok = self.peek()
    if tok.kind != TokenKind.IDENT or (text is not None and tok.text != text):
      raise self.error(f"expected `{text or 'identifier'}`, found {self._describe(tok)}")
    return self.consume()

  def expect_identifier(self) -> str:
    """Consumes a non-keyword identifier and returns its text."""
    tok = self.peek()
    if tok.kind != TokenKind.IDENT or tok.text in KEYWORDS or tok.text == "_":
      raise self.error(f"expected identifier, found {self._describe(tok)}")
    return self.consume().text

  def expect_eof(self) -> None:
    if not self.at_eof():
      raise self.error(f"expected end of input, found {self._describe(self.peek())}")

  def attempt(self, rule: Callable[[], T]) -> Optional[T]:
    """
    Runs `rule` speculatively.

    Args:
        rule: A parse method taking no arguments.

    Returns:
        The rule's result, or None if it raised `RustSyntaxError`. On failure the
        cursor is restored to where it was before the attempt.
    """
    mark = self.pos
    try:
      return rule()
    except RustSyntaxError:
      self.pos = mark
      return None

  def _previous(self) -> Token:
    return self.tokens[self.pos - 1] if self.pos > 0 else self.tokens[0]

  def _span_from(self, start: Token) -> Span:
    return start.span.join(self._previous().span)

  @staticmethod
  def _describe(tok: Token) -> str:
    return "end of input" if tok.kind == TokenKind.EOF else f"`{tok.text}`"

  # --- Token groups ---

  def collect_group(self) -> Tuple[Token, ...]:
    """Consumes a balanced `()`, `[]` or `{}` group, delimiters included."""
    opener = self.peek()
    if opener.kind != TokenKind.PUNCT or opener.text not in OPENERS:
      raise self.error(f"expected a delimited group, found {self._describe(opener)}")
    expected: List[str] = []
    out: List[Token] = []
    while True:
      tok = self.peek()
      if tok.kind == TokenKind.EOF:
        raise self.error(f"unclosed delimiter `{opener.text}`", opener)
      self.consume()
      out.append(tok)
      if tok.kind == TokenKind.PUNCT and tok.text in OPENERS:
        expected.append(OPENERS[tok.text])
      elif tok.kind == TokenKind.PUNCT and tok.text in CLOSERS:
        if tok.text != expected.pop():
          raise self.error(f"mismatched closing delimiter `{tok.text}`", tok)
        if not expected:
          return tuple(out)

  def collect_until(self, stops: Set[str]) -> Tuple[Token, ...]:
    """Consumes tokens up to (not including) a top-level punctuation in `stops`."""
    out: List[Token] = []
    while True:
      tok = self.peek()
      if tok.kind == TokenKind.EOF or (tok.kind == TokenKind.PUNCT and tok.text in stops):
        return tuple(out)
      if tok.kind == TokenKind.PUNCT and tok.text in OPENERS:
        out.extend(self.collect_group())
      elif tok.kind == TokenKind.PUNCT and tok.text in CLOSERS:
        raise self.error(f"unexpected closing delimiter `{tok.text}`")
      else:
        out.append(self.consume())

  # --- Declarations ---

  def parse_trait(self) -> TraitDeclaration:
    """
    Parses a complete trait declaration; the whole input must be consumed.

    Returns:
        TraitDeclaration: The interface model.

    Raises:
        RustSyntaxError: If the input is not a single trait declaration.
    """
    start = self.peek()
    attributes = self.parse_attributes()
    visibility = self.parse_visibility()
    is_unsafe = False
    if self.match_ident("unsafe"):
      self.consume()
      is_unsafe = True
    self.expect_ident("trait")
    name = self.expect_identifier()
    params = self.parse_generic_params()

    supertraits: Tuple[Bound, ...] = ()
    if self.match_punct(":"):
      self.consume()
      supertraits = self.parse_bounds(allow_empty=True)
    where_clause = self.parse_where_clause()

    self.expect_punct("{")
    members: List[TraitMember] = []
    while not self.match_punct("}"):
      if self.at_eof():
        raise self.error("expected `}` closing the trait body")
      members.append(self.parse_member())
    self.expect_punct("}")
    span = self._span_from(start)
    self.expect_eof()

    return TraitDeclaration(
      name=name,
      generics=Generics(params, where_clause),
      supertraits=supertraits,
      members=tuple(members),
      attributes=attributes,
      visibility=visibility,
      is_unsafe=is_unsafe,
      span=span,
    )

  def parse_attributes(self) -> Tuple[Attribute, ...]:
    attributes = []
    while True:
      tok = self.peek()
      if tok.kind == TokenKind.DOC_COMMENT:
        self.consume()
        attributes.append(Attribute(tok.text.rstrip()))
      elif tok.is_punct("#") and self.match_punct("[", 1):
        pound = self.consume()
        group = self.collect_group()
        attributes.append(Attribute(TokenStream((pound, *group)).to_text()))
      else:
        return tuple(attributes)

  def parse_visibility(self) -> str:
    if not self.match_ident("pub"):
      return ""
    self.consume()
    if self.match_punct("("):
      return "pub" + TokenStream(self.collect_group()).to_text()
    return "pub"

  # --- Members ---

  def parse_member(self) -> TraitMember:
    start = self.peek()
    attributes = self.parse_attributes()
    tok = self.peek()

    if tok.is_ident("const") and self.peek(1).kind == TokenKind.IDENT and self.peek(1).text not in METHOD_QUALIFIERS:
      return self.parse_constant(start, attributes)
    if tok.is_ident("type"):
      return self.parse_associated_type(start, attributes)
    if tok.kind == TokenKind.IDENT and tok.text in METHOD_QUALIFIERS:
      return self.parse_method(start, attributes)

    invocation = self.attempt(self._parse_macro_invocation)
    if invocation is not None:
      return UnsupportedMember(text=invocation.to_text(), attributes=attributes, span=self._span_from(start))
    raise self.error(f"expected a trait item, found {self._describe(tok)}")

  def _parse_macro_invocation(self) -> TokenStream:
    first = self.pos
    self.parse_path()
    self.expect_punct("!")
    group = self.collect_group()
    if not group[0].is_punct("{"):
      self.expect_punct(";")
    return TokenStream(tuple(self.tokens[first : self.pos]))

  def parse_constant(self, start: Token, attributes: Tuple[Attribute, ...]) -> ConstantMember:
    self.expect_ident("const")
    name = self.expect_identifier()
    params = self.parse_generic_params()
    self.expect_punct(":")
    ty = self.parse_type()
    default = None
    if self.match_punct("="):
      self.consume()
      default = TokenStream(self.collect_until({";"}))
    self.expect_punct(";")
    return ConstantMember(
      name=name,
      type=ty,
      generics=Generics(params),
      default=default,
      attributes=attributes,
      span=self._span_from(start),
    )

  def parse_associated_type(self, start: Token, attributes: Tuple[Attribute, ...]) -> AssociatedTypeMember:
    self.expect_ident("type")
    name = self.expect_identifier()
    params = self.parse_generic_params()
    bounds: Tuple[Bound, ...] = ()
    if self.match_punct(":"):
      self.consume()
      bounds = self.parse_bounds(allow_empty=True)
    where_clause = self.parse_where_clause()
    default = None
    if self.match_punct("="):
      self.consume()
      default = self.parse_type()
      where_clause += self.parse_where_clause()
    self.expect_punct(";")
    return AssociatedTypeMember(
      name=name,
      generics=Generics(params, where_clause),
      bounds=bounds,
      default=default,
      attributes=attributes,
      span=self._span_from(start),
    )

  def parse_method(self, start: Token, attributes: Tuple[Attribute, ...]) -> MethodMember:
    signature = self.parse_signature()
    body = None
    if self.match_punct("{"):
      body = Block(self.collect_group())
    else:
      self.expect_punct(";")
    return MethodMember(signature=signature, default_body=body, attributes=attributes, span=self._span_from(start))

  def parse_signature(self) -> Signature:
    start = self.peek()
    is_const = is_async = is_unsafe = False
    abi = None
    if self.match_ident("const"):
      self.consume()
      is_const = True
    if self.match_ident("async"):
      self.consume()
      is_async = True
    if self.match_ident("unsafe"):
      self.consume()
      is_unsafe = True
    if self.match_ident("extern"):
      self.consume()
      abi = self.consume().text if self.peek().kind == TokenKind.LITERAL else ""
    self.expect_ident("fn")
    name = self.expect_identifier()
    params = self.parse_generic_params()
    inputs = self.parse_fn_params()
    output = None
    if self.match_punct("->"):
      self.consume()
      output = self.parse_type()
    where_clause = self.parse_where_clause()
    return Signature(
      name=name,
      generics=Generics(params, where_clause),
      params=inputs,
      output=output,
      is_async=is_async,
      is_const=is_const,
      is_unsafe=is_unsafe,
      abi=abi,
      span=self._span_from(start),
    )

  def parse_fn_params(self) -> Tuple[Param, ...]:
    self.expect_punct("(")
    params: List[Param] = []
    while not self.match_punct(")"):
      start = self.peek()
      attributes = self.parse_attributes()
      receiver = self.attempt(self._parse_receiver) if not params else None
      if receiver is not None:
        params.append(receiver)
      else:
        params.append(self._parse_typed_param(start, attributes))
      if not self.match_punct(","):
        break
      self.consume()
    self.expect_punct(")")
    return tuple(params)

  def _parse_receiver(self) -> Receiver:
    start = self.peek()
    if self.match_punct("&"):
      self.consume()
      lifetime = None
      if self.peek().kind == TokenKind.LIFETIME:
        lifetime = Lifetime(self.consume().text)
      kind = ReceiverKind.REF
      if self.match_ident("mut"):
        self.consume()
        kind = ReceiverKind.MUT_REF
      self.expect_ident("self")
      return Receiver(kind, lifetime=lifetime, span=self._span_from(start))

    mutable = False
    if self.match_ident("mut"):
      self.consume()
      mutable = True
    self.expect_ident("self")
    if self.match_punct(":"):
      self.consume()
      explicit_type = self.parse_type()
      return Receiver(ReceiverKind.TYPED, mutable=mutable, explicit_type=explicit_type, span=self._span_from(start))
    return Receiver(ReceiverKind.VALUE, mutable=mutable, span=self._span_from(start))

  def _parse_typed_param(self, start: Token, attributes: Tuple[Attribute, ...]) -> TypedParam:
    pattern = self.attempt(self._parse_ident_pattern)
    if pattern is None:
      tokens = self.collect_until({":", ",", ")"})
      if not tokens:
        raise self.error(f"expected a parameter, found {self._describe(self.peek())}")
      pattern = OtherPattern(TokenStream(tokens).to_text())
    self.expect_punct(":")
    ty = self.parse_type()
    return TypedParam(pattern, ty, attributes=attributes, span=self._span_from(start))

  def _parse_ident_pattern(self) -> IdentPattern:
    mutable = False
    if self.match_ident("mut"):
      self.consume()
      mutable = True
    name = self.expect_identifier()
    if not self.match_punct(":"):
      raise self.error(f"expected `:`, found {self._describe(self.peek())}")
    return IdentPattern(name, mutable)

  # --- Generics ---

  def parse_generic_params(self) -> Tuple[GenericParam, ...]:
    if not self.match_punct("<"):
      return ()
    self.consume()
    params: List[GenericParam] = []
    while not self.match_punct(">"):
      self.parse_attributes()
      tok = self.peek()
      if tok.kind == TokenKind.LIFETIME:
        lifetime = Lifetime(self.consume().text)
        bounds: Tuple[Lifetime, ...] = ()
        if self.match_punct(":"):
          self.consume()
          bounds = self.parse_lifetime_bounds()
        params.append(LifetimeParam(lifetime, bounds))
      elif tok.is_ident("const"):
        self.consume()
        ident = self.expect_identifier()
        self.expect_punct(":")
        ty = self.parse_type()
        default = None
        if self.match_punct("="):
          self.consume()
          default = self.parse_const_argument().text
        params.append(ConstParam(ident, ty, default))
      else:
        ident = self.expect_identifier()
        type_bounds: Tuple[Bound, ...] = ()
        if self.match_punct(":"):
          self.consume()
          type_bounds = self.parse_bounds(allow_empty=True)
        type_default = None
        if self.match_punct("="):
          self.consume()
          type_default = self.parse_type()
        params.append(TypeParam(ident, type_bounds, type_default))
      if not self.match_punct(","):
        break
      self.consume()
    self.expect_punct(">")
    return tuple(params)

  def parse_lifetime_bounds(self) -> Tuple[Lifetime, ...]:
    bounds = []
    while self.peek().kind == TokenKind.LIFETIME:
      bounds.append(Lifetime(self.consume().text))
      if not self.match_punct("+"):
        break
      self.consume()
    return tuple(bounds)

  def parse_for_lifetimes(self) -> Tuple[LifetimeParam, ...]:
    if not (self.match_ident("for") and self.match_punct("<", 1)):
      return ()
    self.consume()
    self.consume()
    lifetimes = []
    while self.peek().kind == TokenKind.LIFETIME:
      lifetime = Lifetime(self.consume().text)
      bounds: Tuple[Lifetime, ...] = ()
      if self.match_punct(":"):
        self.consume()
        bounds = self.parse_lifetime_bounds()
      lifetimes.append(LifetimeParam(lifetime, bounds))
      if not self.match_punct(","):
        break
      self.consume()
    self.expect_punct(">")
    return tuple(lifetimes)

  def parse_where_clause(self) -> Tuple[WherePredicate, ...]:
    if not self.match_ident("where"):
      return ()
    self.consume()
    predicates: List[WherePredicate] = []
    while not (self.at_eof() or self.match_punct("{") or self.match_punct(";") or self.match_punct("=")):
      predicates.append(self.parse_where_predicate())
      if not self.match_punct(","):
        break
      self.consume()
    return tuple(predicates)

  def parse_where_predicate(self) -> WherePredicate:
    lifetimes = self.parse_for_lifetimes()
    if not lifetimes and self.peek().kind == TokenKind.LIFETIME:
      lifetime = Lifetime(self.consume().text)
      self.expect_punct(":")
      return LifetimePredicate(lifetime, self.parse_lifetime_bounds())
    bounded = self.parse_type()
    self.expect_punct(":")
    return BoundPredicate(bounded, self.parse_bounds(allow_empty=True), lifetimes)

  # --- Bounds ---

  def parse_bounds(self, allow_plus: bool = True, allow_empty: bool = False) -> Tuple[Bound, ...]:
    """
    Parses `Bound + Bound + ...`; a trailing `+` is accepted.

    Args:
        allow_plus: If False, stops after one bound (e.g. `&impl Trait`).
        allow_empty: If True, an empty list is accepted (`T:` in a where-clause).
    """
    if not self._starts_bound():
      if allow_empty:
        return ()
      raise self.error(f"expected a bound, found {self._describe(self.peek())}")
    bounds = [self.parse_bound()]
    while allow_plus and self.match_punct("+"):
      self.consume()
      if not self._starts_bound():
        break
      bounds.append(self.parse_bound())
    return tuple(bounds)

  def _starts_bound(self) -> bool:
    tok = self.peek()
    if tok.kind == TokenKind.LIFETIME:
      return True
    if tok.kind == TokenKind.PUNCT:
      return tok.text in ("?", "~", "(", "::")
    return tok.kind == TokenKind.IDENT and tok.text != "where"

  def parse_bound(self) -> Bound:
    tok = self.peek()
    if tok.kind == TokenKind.LIFETIME:
      return Lifetime(self.consume().text)
    if tok.is_punct("("):
      self.consume()
      bound = self.parse_trait_bound()
      self.expect_punct(")")
      return bound.with_changes(parenthesized=True)
    return self.parse_trait_bound()

  def parse_trait_bound(self) -> TraitBound:
    modifier = ""
    if self.match_punct("?"):
      self.consume()
      modifier = "?"
    elif self.match_punct("~") and self.match_ident("const", 1):
      self.consume()
      self.consume()
      modifier = "~const "
    lifetimes = self.parse_for_lifetimes()
    return TraitBound(self.parse_path(), modifier, lifetimes)

  # --- Paths ---

  def parse_path(self) -> Path:
    leading_colon = False
    if self.match_punct("::"):
      self.consume()
      leading_colon = True
    segments = [self.parse_path_segment()]
    while self.match_punct("::") and self.peek(1).kind == TokenKind.IDENT:
      self.consume()
      segments.append(self.parse_path_segment())
    return Path(tuple(segments), leading_colon)

  def parse_path_segment(self) -> PathSegment:
    ident = self.expect_ident().text
    if self.match_punct("::") and self.match_punct("<", 1):
      self.consume()
      return PathSegment(ident, self.parse_angle_arguments())
    if self.match_punct("<"):
      return PathSegment(ident, self.parse_angle_arguments())
    if self.match_punct("("):
      return PathSegment(ident, self.parse_paren_arguments())
    return PathSegment(ident)

  def parse_angle_arguments(self) -> AngleArguments:
    self.expect_punct("<")
    args = []
    while not self.match_punct(">"):
      args.append(self.parse_generic_argument())
      if not self.match_punct(","):
        break
      self.consume()
    self.expect_punct(">")
    return AngleArguments(tuple(args))

  def parse_paren_arguments(self) -> ParenArguments:
    self.expect_punct("(")
    inputs = []
    while not self.match_punct(")"):
      inputs.append(self.parse_type())
      if not self.match_punct(","):
        break
      self.consume()
    self.expect_punct(")")
    output = None
    if self.match_punct("->"):
      self.consume()
      output = self.parse_type(allow_plus=False)
    return ParenArguments(tuple(inputs), output)

  def parse_generic_argument(self):
    tok = self.peek()
    if tok.kind == TokenKind.LIFETIME:
      return Lifetime(self.consume().text)
    if tok.kind == TokenKind.LITERAL or tok.is_punct("{") or tok.is_punct("-"):
      return self.parse_const_argument()
    if tok.kind == TokenKind.IDENT:
      if self.match_punct("=", 1):
        name = self.consume().text
        self.consume()
        return AssocBinding(name, self.parse_type())
      if self.match_punct(":", 1):
        name = self.consume().text
        self.consume()
        return AssocConstraint(name, self.parse_bounds())
      if self.match_punct("<", 1):
        assoc = self.attempt(self._parse_generic_assoc)
        if assoc is not None:
          return assoc
    return self.parse_type()

  def _parse_generic_assoc(self):
    name = self.expect_identifier()
    generics = self.parse_angle_arguments()
    if self.match_punct("="):
      self.consume()
      return AssocBinding(name, self.parse_type(), generics)
    self.expect_punct(":")
    return AssocConstraint(name, self.parse_bounds(), generics)

  def parse_const_argument(self) -> ConstArgument:
    tok = self.peek()
    if tok.is_punct("{"):
      return ConstArgument(TokenStream(self.collect_group()).to_text())
    if tok.is_punct("-") and self.peek(1).kind == TokenKind.LITERAL:
      self.consume()
      return ConstArgument("-" + self.consume().text)
    if tok.kind in (TokenKind.LITERAL, TokenKind.IDENT):
      return ConstArgument(self.consume().text)
    raise self.error(f"expected a const argument, found {self._describe(tok)}")

  # --- Types ---

  def parse_type(self, allow_plus: bool = True) -> Type:
    """
    Parses one type.

    Args:
        allow_plus: Whether `impl A + B` / `dyn A + B` may take more than one bound here.
    """
    tok = self.peek()
    if tok.is_punct("("):
      return self._parse_tuple_type()
    if tok.is_punct("["):
      self.consume()
      elem = self.parse_type()
      if self.match_punct(";"):
        self.consume()
        length = TokenStream(self.collect_until({"]"})).to_text()
        self.expect_punct("]")
        return ArrayType(elem, length)
      self.expect_punct("]")
      return SliceType(elem)
    if tok.is_punct("&"):
      self.consume()
      lifetime = None
      if self.peek().kind == TokenKind.LIFETIME:
        lifetime = Lifetime(self.consume().text)
      mutable = False
      if self.match_ident("mut"):
        self.consume()
        mutable = True
      return ReferenceType(self.parse_type(allow_plus=False), lifetime, mutable)
    if tok.is_punct("*"):
      self.consume()
      qualifier = self.expect_ident()
      if qualifier.text not in ("mut", "const"):
        raise self.error("expected `mut` or `const` after `*`", qualifier)
      return PointerType(self.parse_type(allow_plus=False), qualifier.text == "mut")
    if tok.is_punct("!"):
      self.consume()
      return NeverType()
    if tok.is_punct("<"):
      return self._parse_qualified_path()
    if tok.is_ident("_"):
      self.consume()
      return InferType()
    if tok.is_ident("impl"):
      self.consume()
      return ImplTraitType(self.parse_bounds(allow_plus=allow_plus))
    if tok.is_ident("dyn"):
      self.consume()
      return TraitObjectType(self.parse_bounds(allow_plus=allow_plus))
    if tok.kind == TokenKind.IDENT and tok.text in ("fn", "unsafe", "extern", "for"):
      return self._parse_bare_fn()
    if tok.kind == TokenKind.IDENT or tok.is_punct("::"):
      path = self.parse_path()
      if self.match_punct("!"):
        self.consume()
        return VerbatimType(path.to_text() + "!" + TokenStream(self.collect_group()).to_text())
      return PathType(path)
    raise self.error(f"expected a type, found {self._describe(tok)}")

  def _parse_tuple_type(self) -> Type:
    self.expect_punct("(")
    if self.match_punct(")"):
      self.consume()
      return UNIT
    elems = [self.parse_type()]
    trailing = False
    while self.match_punct(","):
      self.consume()
      trailing = True
      if self.match_punct(")"):
        break
      elems.append(self.parse_type())
      trailing = False
    self.expect_punct(")")
    if len(elems) == 1 and not trailing:
      return ParenType(elems[0])
    return TupleType(tuple(elems))

  def _parse_qualified_path(self) -> QualifiedPathType:
    self.expect_punct("<")
    self_type = self.parse_type()
    trait_path = None
    if self.match_ident("as"):
      self.consume()
      trait_path = self.parse_path()
    self.expect_punct(">")
    self.expect_punct("::")
    rest = [self.parse_path_segment()]
    while self.match_punct("::") and self.peek(1).kind == TokenKind.IDENT:
      self.consume()
      rest.append(self.parse_path_segment())
    return QualifiedPathType(self_type, trait_path, tuple(rest))

  def _parse_bare_fn(self) -> VerbatimType:
    prefix = render_for(self.parse_for_lifetimes())
    if self.match_ident("unsafe"):
      self.consume()
      prefix += "unsafe "
    if self.match_ident("extern"):
      self.consume()
      prefix += "extern "
      if self.peek().kind == TokenKind.LITERAL:
        prefix += self.consume().text + " "
    self.expect_ident("fn")
    if not self.match_punct("("):
      raise self.error(f"expected `(`, found {self._describe(self.peek())}")
    text = prefix + "fn" + TokenStream(self.collect_group()).to_text()
    if self.match_punct("->"):
      self.consume()
      text += " -> " + self.parse_type(allow_plus=False).to_text()
    return VerbatimType(text)


# --- Text entry points ---


def parse_interface(text: str) -> TraitDeclaration:
  """
  Parses the source text of one trait declaration.

  Args:
      text (str): Rust source containing exactly one `trait` item.

  Returns:
      TraitDeclaration: The interface model.

  Raises:
      RustSyntaxError: If the text is not a single well-formed trait.
  """
  return RustParser.from_text(text).parse_trait()


def parse_type(text: str) -> Type:
  parser = RustParser.from_text(text)
  ty = parser.parse_type()
  parser.expect_eof()
  return ty


def parse_path(text: str) -> Path:
  parser = RustParser.from_text(text)
  path = parser.parse_path()
  parser.expect_eof()
  return path
