"""
Diagnostics and Error Types.

Two classes of failure exist during an expansion:

1.  **Fatal syntax errors** (`RustSyntaxError`, `DirectiveSyntaxError`): raised by the
    lexer/parsers. They abort the whole expansion and nothing but a placeholder is emitted.
2.  **Non-fatal diagnostics** (`Diagnostic`): collected by a `DiagnosticSink` while
    synthesizing code. The offending construct is replaced by a placeholder that is
    valid Rust in expression, statement and item position, so the remaining members
    are still processed and reported in the same pass.
"""

from dataclasses import dataclass
from typing import Iterator, List, Tuple

from pydantic import BaseModel, ConfigDict, Field

UNSUPPORTED_ITEM = "unsupported item type"
UNSUPPORTED_PATTERN = "patterns are not supported in arguments"


@dataclass(frozen=True)
class Span:
  """
  A source location.

  Attributes:
      line (int): 1-based line number of the first character.
      column (int): 1-based column of the first character.
      start (int): Character offset of the first character.
      end (int): Character offset one past the last character.
  """

  line: int = 1
  column: int = 1
  start: int = 0
  end: int = 0

  def join(self, other: "Span") -> "Span":
    """Returns a span starting here and ending where `other` ends."""
    return Span(self.line, self.column, self.start, max(self.end, other.end))


class RustSyntaxError(SyntaxError):
  """
  Raised when the input text is not a well-formed declaration.

  Attributes:
      reason (str): The message without location information.
      span (Span): Where the problem was detected.
  """

  def __init__(self, reason: str, span: Span = Span()):
    self.reason = reason
    self.span = span
    super().__init__(f"{reason} (line {span.line}, column {span.column})")


class DirectiveSyntaxError(RustSyntaxError):
  """Raised when the `[Name:] Bound + ...` directive is malformed."""


def compile_error(message: str) -> str:
  """
  Builds the placeholder substituted for code that could not be generated.

  Args:
      message (str): Human-readable explanation shown by the host compiler.

  Returns:
      str: A `::core::compile_error!` invocation.
  """
  escaped = message.replace("\\", "\\\\").replace('"', '\\"')
  return f'::core::compile_error! {{ "{escaped}" }}'


class Diagnostic(BaseModel):
  """
  A compile-time error attached to a source location.
  """

  model_config = ConfigDict(frozen=True)

  message: str = Field(..., description="Explanation of the problem.")
  line: int = Field(1, description="1-based line of the offending construct.")
  column: int = Field(1, description="1-based column of the offending construct.")
  fatal: bool = Field(False, description="True if the expansion was aborted.")

  @classmethod
  def at(cls, span: Span, message: str, fatal: bool = False) -> "Diagnostic":
    return cls(message=message, line=span.line, column=span.column, fatal=fatal)

  @property
  def placeholder(self) -> str:
    return compile_error(self.message)


class DiagnosticSink:
  """
  Collects non-fatal diagnostics for one expansion.
  """

  def __init__(self) -> None:
    self._items: List[Diagnostic] = []

  def report(self, span: Span, message: str) -> str:
    """
    Records a diagnostic and returns the placeholder to emit in its place.

    Args:
        span (Span): Location of the offending member or parameter.
        message (str): Explanation of the problem.

    Returns:
        str: Placeholder source text.
    """
    diagnostic = Diagnostic.at(span, message)
    self._items.append(diagnostic)
    return diagnostic.placeholder

  @property
  def diagnostics(self) -> Tuple[Diagnostic, ...]:
    return tuple(self._items)

  def __len__(self) -> int:
    return len(self._items)

  def __iter__(self) -> Iterator[Diagnostic]:
    return iter(self._items)
