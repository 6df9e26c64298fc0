"""
Directive Parser.

Parses the argument list of a `#[trait_variant::make(...)]` attribute:

    [Name ':'] Bound ('+' Bound)*

A leading `Name:` selects `CreateNamed`; a bare bound list selects
`RewriteInPlace`. The named form is always tried first from a cursor snapshot;
if any part of it fails (including leftover input after the bound list), the
cursor is restored and the text is parsed again as a bare list. Failures are
reported as `DirectiveSyntaxError`, using the named form's error when `Name:`
itself matched.
"""

import logging
from typing import Optional, Tuple

from trait_variant.core.errors import DirectiveSyntaxError, RustSyntaxError, Span
from trait_variant.core.model import CreateNamed, RewriteInPlace, TransformMode
from trait_variant.core.parser import RustParser
from trait_variant.core.syntax import TraitBound, merge_bounds
from trait_variant.core.tokens import RustLexer, Token

logger = logging.getLogger(__name__)


class DirectiveParser:
  """
  Parses one directive into a `TransformMode`.
  """

  def __init__(self, parser: RustParser, span: Optional[Span] = None):
    """
    Args:
        parser (RustParser): Cursor over the directive tokens only.
        span (Optional[Span]): Location of the directive in the host file. Errors are
            anchored here when given, otherwise at the offending token.
    """
    self.parser = parser
    self.span = span

  @classmethod
  def from_text(cls, text: str, span: Optional[Span] = None) -> "DirectiveParser":
    try:
      tokens = RustLexer(text).tokenize()
    except RustSyntaxError as e:
      raise DirectiveSyntaxError(e.reason, span or e.span) from e
    return cls(RustParser(tokens), span)

  @classmethod
  def from_tokens(cls, tokens: Tuple[Token, ...], span: Optional[Span] = None) -> "DirectiveParser":
    return cls(RustParser(tokens), span)

  def parse(self) -> TransformMode:
    """
    Returns:
        TransformMode: `CreateNamed` or `RewriteInPlace`.

    Raises:
        DirectiveSyntaxError: If the text is neither form. Once `Name:` has matched,
            the named form's error is reported, since a bare list cannot start that way.
    """
    mark = self.parser.pos
    named_error: Optional[RustSyntaxError] = None
    name = self.parser.attempt(self._parse_name)
    if name is not None:
      try:
        named = CreateNamed(name, self._parse_bound_list())
        logger.debug("Directive selects a named variant '%s'", named.new_name)
        return named
      except RustSyntaxError as e:
        named_error = e
        self.parser.pos = mark
    try:
      return RewriteInPlace(self._parse_bound_list())
    except RustSyntaxError as e:
      reported = named_error or e
      raise DirectiveSyntaxError(reported.reason, self.span or reported.span) from reported

  def _parse_name(self) -> str:
    name = self.parser.expect_identifier()
    self.parser.expect_punct(":")
    return name

  def _parse_bound_list(self) -> Tuple[TraitBound, ...]:
    start = self.parser.peek()
    bounds = self.parser.parse_bounds(allow_empty=True)
    self.parser.expect_eof()
    if not bounds:
      raise self.parser.error("expected at least one bound", start)
    for bound in bounds:
      if not isinstance(bound, TraitBound):
        raise self.parser.error(f"expected a trait bound, found `{bound.to_text()}`", start)
    return merge_bounds((), bounds)


def parse_directive(text: str, span: Optional[Span] = None) -> TransformMode:
  """
  Parses directive text such as `LocalIntFactory: Send` or `Send + Sync`.

  Args:
      text (str): The attribute arguments.
      span (Optional[Span]): Location used for error reporting.

  Returns:
      TransformMode: The selected mode.
  """
  return DirectiveParser.from_text(text, span).parse()
