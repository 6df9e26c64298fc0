"""
Data structures representing the output of one expansion.

This module defines the `ExpansionResult` Pydantic model, which encapsulates
the generated Rust code, the diagnostics reported, and the execution trace logs.
"""

from typing import Any, Dict, List

from pydantic import BaseModel, Field

from trait_variant.core.errors import Diagnostic


class ExpansionResult(BaseModel):
  """
  Container for the results of expanding one annotated trait.
  """

  code: str = Field(default="", description="The generated Rust source code.")
  diagnostics: List[Diagnostic] = Field(default_factory=list, description="Diagnostics reported during expansion.")
  success: bool = Field(
    default=True,
    description="False if a fatal syntax error aborted the expansion.",
  )
  trace_events: List[Dict[str, Any]] = Field(default_factory=list, description="Execution trace log data.")

  @property
  def has_errors(self) -> bool:
    """
    Check if the result carries any diagnostic.

    Returns:
        True if one or more diagnostics are present.
    """
    return len(self.diagnostics) > 0

  @property
  def errors(self) -> List[str]:
    return [f"{d.line}:{d.column}: {d.message}" for d in self.diagnostics]
