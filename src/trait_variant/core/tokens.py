"""
Rust Tokenizer.

Provides a Regex-based Lexer (`RustLexer`) that decomposes Rust source text into a
list of typed `Token` objects.

Whitespace and ordinary comments never become tokens. They are attached to the
following token as `leading` trivia, which lets token runs such as method bodies be
re-emitted byte-for-byte. Doc comments (`///`, `//!`, `/** */`, `/*! */`) are real
tokens because they are attributes in disguise.

Only `::`, `->`, `=>`, `==`, `!=` and the range operators are lexed as multi-character
punctuation. Angle brackets are always single characters so that `Vec<Vec<u8>>`
closes two generic argument lists.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import List

from trait_variant.core.errors import RustSyntaxError, Span


class TokenKind(str, Enum):
  """Enumeration of Lexer Token Types."""

  IDENT = "IDENT"
  LIFETIME = "LIFETIME"
  LITERAL = "LITERAL"
  DOC_COMMENT = "DOC_COMMENT"
  PUNCT = "PUNCT"
  EOF = "EOF"


class Symbol(str, Enum):
  """Enumeration of Punctuation Symbols used by the parsers."""

  LBRACE = "{"
  RBRACE = "}"
  LPAREN = "("
  RPAREN = ")"
  LBRACKET = "["
  RBRACKET = "]"
  LT = "<"
  GT = ">"
  COMMA = ","
  SEMI = ";"
  COLON = ":"
  PATH_SEP = "::"
  ARROW = "->"
  EQ = "="
  PLUS = "+"
  AMP = "&"
  STAR = "*"
  BANG = "!"
  QUESTION = "?"
  TILDE = "~"
  POUND = "#"
  MINUS = "-"


OPENERS = {"(": ")", "[": "]", "{": "}"}
CLOSERS = {")", "]", "}"}


@dataclass(frozen=True)
class Token:
  """
  A lexical unit.

  Attributes:
      kind (TokenKind): The token category.
      text (str): The exact source text.
      span (Span): Source location. Excluded from equality.
      leading (str): Whitespace and comments preceding the token.
  """

  kind: TokenKind
  text: str
  span: Span = field(default=Span(), compare=False)
  leading: str = ""

  def is_punct(self, text: str) -> bool:
    return self.kind == TokenKind.PUNCT and self.text == text

  def is_ident(self, text: str) -> bool:
    return self.kind == TokenKind.IDENT and self.text == text


class RustLexer:
  """
  Regex-based Lexer for Rust source text.
  """

  # Order matters: raw strings and char literals before identifiers and lifetimes.
  PATTERNS = [
    (TokenKind.DOC_COMMENT, r"///(?!/)[^\n]*|//![^\n]*"),
    (None, r"//[^\n]*"),
    (TokenKind.LITERAL, r'b?r(#*)"[\s\S]*?"\1'),
    (TokenKind.LITERAL, r'b?"(?:[^"\\]|\\[\s\S])*"'),
    (TokenKind.LITERAL, r"b?'(?:[^'\\\n]|\\(?:x[0-9a-fA-F]{2}|u\{[0-9a-fA-F_]+\}|.))'"),
    (TokenKind.LIFETIME, r"'(?:r#)?[^\W\d]\w*"),
    (TokenKind.LITERAL, r"0[xob][0-9a-fA-F_]+(?:[iu](?:8|16|32|64|128|size))?"),
    (TokenKind.LITERAL, r"\d[\d_]*(?:\.\d[\d_]*)?(?:[eE][+-]?\d[\d_]*)?(?:[a-z]\w*)?"),
    (TokenKind.IDENT, r"(?:r#)?[^\W\d]\w*"),
    (TokenKind.PUNCT, r"::|->|=>|==|!=|\.\.=|\.\.\.|\.\."),
    (TokenKind.PUNCT, r"[{}()\[\];:,.+\-*/%^!&|<>=@#$?~]"),
  ]

  _WHITESPACE = re.compile(r"\s+")

  def __init__(self, text: str):
    """
    Initializes the lexer.

    Args:
        text (str): Raw Rust source code.
    """
    self.text = text
    self._regex_pairs = [(kind, re.compile(pattern)) for kind, pattern in self.PATTERNS]

  def tokenize(self) -> List[Token]:
    """
    Tokenizes the input string.

    Returns:
        List[Token]: The tokens, terminated by an EOF token carrying trailing trivia.

    Raises:
        RustSyntaxError: If an unrecognized character or unterminated comment is found.
    """
    text = self.text
    tokens: List[Token] = []
    pos = 0
    line = 1
    line_start = 0
    trivia_start = 0
    length = len(text)

    while pos < length:
      match_ws = self._WHITESPACE.match(text, pos)
      if match_ws:
        chunk = match_ws.group(0)
        if "\n" in chunk:
          line += chunk.count("\n")
          line_start = pos + chunk.rfind("\n") + 1
        pos = match_ws.end()
        continue

      if text.startswith("/*", pos):
        end = self._block_comment_end(pos, line, pos - line_start + 1)
        chunk = text[pos:end]
        if self._is_block_doc(chunk):
          span = Span(line, pos - line_start + 1, pos, end)
          tokens.append(Token(TokenKind.DOC_COMMENT, chunk, span, text[trivia_start:pos]))
          trivia_start = end
        if "\n" in chunk:
          line += chunk.count("\n")
          line_start = pos + chunk.rfind("\n") + 1
        pos = end
        continue

      for kind, regex in self._regex_pairs:
        match = regex.match(text, pos)
        if match:
          break
      else:
        snippet = text[pos : min(pos + 10, length)]
        raise RustSyntaxError(f"Illegal character: '{snippet}'", Span(line, pos - line_start + 1, pos, pos + 1))

      value = match.group(0)
      if kind is None:
        pos = match.end()
        continue

      span = Span(line, pos - line_start + 1, pos, match.end())
      tokens.append(Token(kind, value, span, text[trivia_start:pos]))
      if "\n" in value:
        line += value.count("\n")
        line_start = pos + value.rfind("\n") + 1
      pos = match.end()
      trivia_start = pos

    eof_span = Span(line, pos - line_start + 1, pos, pos)
    tokens.append(Token(TokenKind.EOF, "", eof_span, text[trivia_start:pos]))
    return tokens

  @staticmethod
  def _is_block_doc(chunk: str) -> bool:
    """`/** ... */` and `/*! ... */` are docs; `/**/` and `/*** ... */` are not."""
    if chunk.startswith("/*!"):
      return True
    return chunk.startswith("/**") and not chunk.startswith("/***") and chunk != "/**/"

  def _block_comment_end(self, pos: int, line: int, column: int) -> int:
    """Finds the end of a (possibly nested) block comment starting at `pos`."""
    depth = 0
    i = pos
    while i < len(self.text):
      if self.text.startswith("/*", i):
        depth += 1
        i += 2
      elif self.text.startswith("*/", i):
        depth -= 1
        i += 2
        if depth == 0:
          return i
      else:
        i += 1
    raise RustSyntaxError("Unterminated block comment", Span(line, column, pos, pos + 2))
