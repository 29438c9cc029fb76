"""Pytest configuration and fixtures."""

import json
import os

import pytest

# Set test environment variables
os.environ["LOG_LEVEL"] = "DEBUG"


class CapturingMCP:
    """Stands in for FastMCP and keeps registered tools callable by name."""

    def __init__(self):
        self.tools = {}

    def tool(self):
        def decorator(func):
            self.tools[func.__name__] = func
            return func

        return decorator


@pytest.fixture
def mcp():
    return CapturingMCP()


@pytest.fixture
def json_log_file(tmp_path):
    path = tmp_path / "app.json"
    lines = [
        {
            "timestamp": "2024-01-01T10:00:00Z",
            "service": "gateway",
            "level": "INFO",
            "message": "received request",
            "trace_id": "t1",
            "span_id": "s1",
        },
        {
            "timestamp": "2024-01-01T10:00:00.250Z",
            "service": "orders",
            "level": "INFO",
            "message": "order lookup",
            "trace_id": "t1",
            "span_id": "s2",
            "parent_span_id": "s1",
        },
        {
            "timestamp": "2024-01-01T10:00:01Z",
            "service": "orders",
            "level": "ERROR",
            "message": "database timeout",
            "trace_id": "t1",
            "span_id": "s2",
        },
        {
            "timestamp": "2024-01-01T10:00:02Z",
            "service": "gateway",
            "level": "INFO",
            "message": "request completed",
            "trace_id": "t1",
            "span_id": "s1",
        },
    ]
    path.write_text("\n".join(json.dumps(line) for line in lines) + "\n")
    return path


@pytest.fixture
def text_log_file(tmp_path):
    path = tmp_path / "app.log"
    path.write_text(
        "2024-01-01T10:00:00Z [auth] INFO Starting request traceId=abc123 spanId=s1\n"
        "  extra detail\n"
        "2024-01-01 10:00:01 ERROR [billing] charge failed\n"
        "java.lang.IllegalStateException: boom\n"
        "    at com.example.Billing.charge(Billing.java:42)\n"
    )
    return path


@pytest.fixture
def xml_log_file(tmp_path):
    path = tmp_path / "app.xml"
    path.write_text(
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        "<logs>\n"
        "  <log><timestamp>2024-01-01T10:00:00Z</timestamp>"
        "<service>inventory</service><level>INFO</level>"
        "<message>stock checked</message><traceId>t9</traceId>"
        "<spanId>a</spanId></log>\n"
        "  <log><timestamp>2024-01-01T10:00:03Z</timestamp>"
        "<service>inventory</service><level>WARN</level>"
        "<message>low stock</message><traceId>t9</traceId>"
        "<spanId>a</spanId></log>\n"
        "</logs>\n"
    )
    return path
