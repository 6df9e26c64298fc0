"""
Tests for the Tracing System.
"""

import json

from trait_variant.core.tracer import TraceEventType, TraceLogger


def test_phase_nesting():
  logger = TraceLogger()

  p1 = logger.start_phase("Parent")
  logger.start_phase("Child")
  logger.end_phase()  # End Child
  logger.end_phase()  # End Parent

  events = logger.export()

  # 4 events: Start P, Start C, End C, End P
  assert len(events) == 4
  assert events[0]["type"] == TraceEventType.PHASE_START
  assert events[1]["parent_id"] == p1
  assert events[2]["type"] == TraceEventType.PHASE_END


def test_end_phase_without_start_is_ignored():
  logger = TraceLogger()
  logger.end_phase()
  assert logger.export() == []


def test_rewrite_logging_records_metadata():
  logger = TraceLogger()
  phase = logger.start_phase("Rewrite")
  logger.log_rewrite("make", "async", "async fn make(&self)", "fn make(&self) -> impl Future")

  event = logger.export()[1]
  assert event["type"] == TraceEventType.MEMBER_REWRITE
  assert event["parent_id"] == phase
  assert event["metadata"]["member"] == "make"
  assert event["metadata"]["before"] == "async fn make(&self)"


def test_diagnostic_logging():
  logger = TraceLogger()
  logger.log_diagnostic("unsupported item type", 3, 5)
  events = logger.export()
  assert events[0]["type"] == TraceEventType.DIAGNOSTIC
  assert events[0]["metadata"] == {"line": 3, "column": 5}


def test_export_is_json_serializable():
  logger = TraceLogger()
  logger.start_phase("Expansion", "trait_variant::make")
  logger.log_inspection("call", "verbatim")
  logger.end_phase()
  decoded = json.loads(json.dumps(logger.export()))
  assert [e["type"] for e in decoded] == ["phase_start", "inspection", "phase_end"]
