"""
Source Scanner.

Finds traits annotated with a variant attribute (by default
`#[trait_variant::make(...)]` or `#[make(...)]`) inside a Rust source file and
splices each expansion into the file in place of the attribute and the trait.

Scanning works on tokens, so attributes inside comments, strings and doc
comments are never matched. Token runs are handed to the engine as-is, so
diagnostics carry positions in the scanned file.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from trait_variant.core.engine import TransformEngine
from trait_variant.core.errors import Span
from trait_variant.core.expansion_result import ExpansionResult
from trait_variant.core.parser import RustParser
from trait_variant.core.tokens import OPENERS, RustLexer, Token, TokenKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnnotatedTrait:
  """
  One annotated item found in a source file.

  Attributes:
      attribute_path (str): The matched attribute path, e.g. `trait_variant::make`.
      directive (Tuple[Token]): Tokens between the attribute's parentheses.
      item (Tuple[Token]): Tokens of the annotated item.
      span (Span): Location of the attribute.
      start (int): Offset of the attribute's `#`.
      end (int): Offset one past the item's last character.
  """

  attribute_path: str
  directive: Tuple[Token, ...]
  item: Tuple[Token, ...]
  span: Span
  start: int
  end: int


@dataclass
class SourceExpansion:
  code: str
  results: List[ExpansionResult] = field(default_factory=list)

  @property
  def has_errors(self) -> bool:
    return any(r.has_errors for r in self.results)


class AttributeScanner:
  def __init__(self, attribute_paths: Sequence[str] = ("trait_variant::make", "make")):
    self.attribute_paths = set(attribute_paths)

  def scan(self, source: str) -> List[AnnotatedTrait]:
    """
    Lists the annotated items of `source` in file order.

    Raises:
        RustSyntaxError: If the file cannot be tokenized or has unbalanced delimiters.
    """
    parser = RustParser(RustLexer(source).tokenize())
    found: List[AnnotatedTrait] = []
    while not parser.at_eof():
      pound = parser.peek()
      match = parser.attempt(lambda: self._match_attribute(parser))
      if match is None:
        parser.consume()
        continue
      path, directive, closing = match
      item = self._collect_item(parser)
      end = item[-1].span.end if item else closing.span.end
      found.append(AnnotatedTrait(path, directive, item, pound.span.join(closing.span), pound.span.start, end))
      logger.debug("Found #[%s] at line %d", path, pound.span.line)
    return found

  def _match_attribute(self, parser: RustParser) -> Tuple[str, Tuple[Token, ...], Token]:
    parser.expect_punct("#")
    parser.expect_punct("[")
    if parser.match_punct("::"):
      parser.consume()
    segments = [parser.expect_ident().text]
    while parser.match_punct("::"):
      parser.consume()
      segments.append(parser.expect_ident().text)
    path = "::".join(segments)
    if path not in self.attribute_paths:
      raise parser.error(f"`{path}` is not a variant attribute")
    if not parser.match_punct("("):
      raise parser.error("expected `(`")
    group = parser.collect_group()
    closing = parser.expect_punct("]")
    return path, group[1:-1], closing

  @staticmethod
  def _collect_item(parser: RustParser) -> Tuple[Token, ...]:
    """Consumes the next item: everything up to and including its body or `;`."""
    first = parser.pos
    while not parser.at_eof():
      tok = parser.peek()
      if tok.is_punct("{"):
        parser.collect_group()
        break
      if tok.is_punct(";"):
        parser.consume()
        break
      if tok.kind == TokenKind.PUNCT and tok.text in OPENERS:
        parser.collect_group()
      else:
        parser.consume()
    return tuple(parser.tokens[first : parser.pos])


def expand_source(source: str, engine: Optional[TransformEngine] = None) -> SourceExpansion:
  """
  Expands every annotated trait in a Rust source file.

  Args:
      source (str): The file contents.
      engine (Optional[TransformEngine]): Engine to use; its config supplies the
          attribute paths.

  Returns:
      SourceExpansion: The rewritten file and one result per annotated trait, in
      file order. Text outside the annotated items is preserved exactly.
  """
  engine = engine or TransformEngine()
  found = AttributeScanner(engine.config.attribute_paths).scan(source)
  results = [engine.run_tokens(t.directive, t.item, t.span) for t in found]

  code = source
  for annotated, result in reversed(list(zip(found, results))):
    code = code[: annotated.start] + result.code + code[annotated.end :]
  return SourceExpansion(code, results)
