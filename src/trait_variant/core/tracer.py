"""
Expansion Trace Logger.

This module records the step-by-step execution of one expansion. It captures:
1. Lifecycle Phases (directive, parse, rewrite, variant, bridge).
2. Member Rewrites (which rule applied to a method, before and after).
3. Diagnostics raised while synthesizing code.
4. Inspections (decision points where nothing changed).

The output is a structured list of event dictionaries suitable for JSON serialization.
A logger is created per expansion and passed down explicitly.
"""

import time
import uuid
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class TraceEventType(str, Enum):
  PHASE_START = "phase_start"
  PHASE_END = "phase_end"
  MEMBER_REWRITE = "member_rewrite"
  DIAGNOSTIC = "diagnostic"
  INSPECTION = "inspection"


@dataclass
class TraceEvent:
  id: str
  type: TraceEventType
  timestamp: float
  description: str
  parent_id: Optional[str] = None
  metadata: Dict[str, Any] = field(default_factory=dict)


class TraceLogger:
  """
  Records expansion events for debugging and the `--json-trace` output.
  """

  def __init__(self) -> None:
    self._events: List[TraceEvent] = []
    self._active_phases: List[str] = []  # Stack of phase IDs

  def start_phase(self, name: str, description: str = "") -> str:
    """Starts a nested phase. Returns the phase ID."""
    phase_id = str(uuid.uuid4())
    parent = self._active_phases[-1] if self._active_phases else None
    self._events.append(
      TraceEvent(
        id=phase_id,
        type=TraceEventType.PHASE_START,
        timestamp=time.time(),
        description=name,
        parent_id=parent,
        metadata={"detail": description},
      )
    )
    self._active_phases.append(phase_id)
    return phase_id

  def end_phase(self) -> None:
    """Ends the current active phase."""
    if not self._active_phases:
      return
    phase_id = self._active_phases.pop()
    self._events.append(
      TraceEvent(
        id=str(uuid.uuid4()),
        type=TraceEventType.PHASE_END,
        timestamp=time.time(),
        description="End Phase",
        parent_id=phase_id,
      )
    )

  def log_rewrite(self, member: str, rule: str, before: str, after: str) -> None:
    self._log_simple(
      TraceEventType.MEMBER_REWRITE,
      f"Rewrote {member} ({rule})",
      {"member": member, "rule": rule, "before": before, "after": after},
    )

  def log_diagnostic(self, message: str, line: int, column: int) -> None:
    self._log_simple(TraceEventType.DIAGNOSTIC, message, {"line": line, "column": column})

  def log_inspection(self, node_str: str, outcome: str, detail: str = "") -> None:
    """Logs a decision point where no change occurred."""
    self._log_simple(TraceEventType.INSPECTION, f"Inspecting '{node_str}'", {"outcome": outcome, "detail": detail})

  def _log_simple(self, evt_type: TraceEventType, desc: str, meta: Dict[str, Any]) -> None:
    parent = self._active_phases[-1] if self._active_phases else None
    self._events.append(
      TraceEvent(
        id=str(uuid.uuid4()), type=evt_type, timestamp=time.time(), description=desc, parent_id=parent, metadata=meta
      )
    )

  @property
  def events(self) -> List[TraceEvent]:
    return list(self._events)

  def export(self) -> List[Dict[str, Any]]:
    """Returns list of dicts for JSON serialization."""
    return [asdict(e) for e in self._events]
