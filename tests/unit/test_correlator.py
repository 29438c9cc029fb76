"""Tests for trace/span id discovery and hierarchy construction."""

from logtrace_mcp.tracing.correlator import (
    FIELD_RULES,
    FieldRule,
    correlate,
    find_ids,
)


class TestFindIds:
    def test_field_aliases(self):
        record = {"Trace-Id": "t1", "SPAN_ID": "s1", "parent_id": "p1"}
        assert find_ids(record) == {
            "traceId": "t1",
            "spanId": "s1",
            "parentSpanId": "p1",
        }

    def test_dotted_keys(self):
        assert find_ids({"trace.id": "t1", "span.id": "s1"}) == {
            "traceId": "t1",
            "spanId": "s1",
        }

    def test_message_ids(self):
        record = {
            "message": 'call done trace_id="abc-1", span-id: s9, parentSpanId=s8'
        }
        assert find_ids(record) == {
            "traceId": "abc-1",
            "spanId": "s9",
            "parentSpanId": "s8",
        }

    def test_field_beats_message(self):
        record = {"traceId": "from-field", "message": "traceId=from-message spanId=s1"}
        ids = find_ids(record)
        assert ids["traceId"] == "from-field"
        assert ids["spanId"] == "s1"

    def test_non_string_values_ignored(self):
        assert find_ids({"trace_id": 12345}) == {}

    def test_nothing_found(self):
        assert find_ids({"message": "plain message"}) == {}

    def test_rules_are_data(self):
        """A new alias only needs a rule entry."""
        rule = FieldRule("traceId", frozenset({"x-request-trace"}))
        assert rule.matches("X-Request-Trace")
        assert all(isinstance(r, FieldRule) for r in FIELD_RULES)


class TestCorrelate:
    def test_hierarchy_with_dangling_parent(self):
        records = [
            {"traceId": "t1", "spanId": "s1"},
            {"traceId": "t1", "spanId": "s2", "parentSpanId": "s1"},
            {"traceId": "t1", "spanId": "s3", "parentSpanId": "missing"},
        ]
        traces = correlate(records)

        structure = traces["t1"]
        assert structure.root_spans == ["s1", "s3"]
        assert structure.span_hierarchy == {"s1": ["s2"]}
        summary = records[0]["_trace_structure"]
        assert summary == {
            "trace_id": "t1",
            "root_spans": ["s1", "s3"],
            "span_hierarchy": {"s1": ["s2"]},
            "total_spans": 3,
            "total_logs": 3,
        }
        assert all(r["_trace_structure"] == summary for r in records)

    def test_records_without_trace_left_alone(self):
        records = [{"message": "hello"}, {"trace_id": "t2", "span_id": "a"}]
        traces = correlate(records)
        assert list(traces) == ["t2"]
        assert "traceId" not in records[0]
        assert "_trace_structure" not in records[0]
        assert records[1]["traceId"] == "t2"

    def test_traces_kept_separate(self):
        records = [
            {"traceId": "t1", "spanId": "s1"},
            {"traceId": "t2", "spanId": "s1", "parentSpanId": "s0"},
        ]
        traces = correlate(records)
        assert traces["t1"].root_spans == ["s1"]
        assert traces["t2"].root_spans == ["s1"]
        assert records[1]["_trace_structure"]["trace_id"] == "t2"

    def test_records_without_span_counted(self):
        records = [
            {"traceId": "t1", "spanId": "s1"},
            {"traceId": "t1", "message": "no span here"},
        ]
        traces = correlate(records)
        assert traces["t1"].to_dict()["total_logs"] == 2
        assert traces["t1"].to_dict()["total_spans"] == 1
