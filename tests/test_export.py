"""Tests for flattening records and rendering CSV / JSON exports."""

import csv
import datetime as dt
import io
import json

import pytest

from conftest import NOW, make_record
from staffdesk.logs.export import (
    DEFAULT_EXPORT_FIELDS,
    EXPORT_FIELDS,
    export_filename,
    format_for_export,
    render_export,
    to_csv,
    to_json,
)
from staffdesk.logs.records import LogMetadata, ProviderCacheHit, ToolCall


class TestFormatForExport:
    def test_every_mapped_field_present(self):
        flat = format_for_export(make_record())
        assert set(flat) == set(EXPORT_FIELDS)

    def test_missing_values_substituted(self):
        flat = format_for_export(make_record(user_id=None, response=None, error_message=None))
        assert flat["user_id"] == ""
        assert flat["response"] == ""
        assert flat["error_message"] == ""
        assert flat["reasoning_tokens"] == 0

    def test_nested_values_flattened(self):
        record = make_record(
            tool_calls=[ToolCall(id="c1", name="lookup"), ToolCall(id="c2", name="lookup")],
            metadata=LogMetadata(
                feature="support-bot",
                request_id="req-9",
                cache=ProviderCacheHit(provider="openai", cached_tokens=64),
            ),
        )
        flat = format_for_export(record)
        assert flat["tool_call_count"] == 2
        assert flat["feature"] == "support-bot"
        assert flat["request_id"] == "req-9"
        assert flat["cache_source"] == "provider:openai"
        assert flat["cached_input_tokens"] == 64

    def test_created_at_iso(self):
        assert format_for_export(make_record(created_at=NOW))["created_at"] == "2026-03-15T12:00:00"


class TestToCsv:
    def test_header_uses_labels(self):
        content = to_csv([], ["id", "cost", "latency_ms"])
        assert content == "ID,Cost,Latency (ms)\n"

    def test_unmapped_field_uses_raw_name(self):
        content = to_csv([{"custom": 1}], ["custom"])
        assert content.splitlines() == ["custom", "1"]

    def test_quotes_commas_and_quotes(self):
        """A prompt with a comma and a quote survives a CSV round trip."""
        prompt = 'Say "hello", then stop'
        flat = format_for_export(make_record(prompt=prompt))
        content = to_csv([flat], ["id", "prompt"])

        assert '"Say ""hello"", then stop"' in content
        rows = list(csv.reader(io.StringIO(content)))
        assert rows[1] == ["log-1", prompt]

    def test_newlines_quoted(self):
        flat = format_for_export(make_record(response="line one\nline two"))
        rows = list(csv.reader(io.StringIO(to_csv([flat], ["response"]))))
        assert rows[1] == ["line one\nline two"]

    def test_booleans_lowercase(self):
        flat = format_for_export(make_record(success=False))
        assert to_csv([flat], ["success"]).splitlines()[1] == "false"

    def test_missing_key_is_empty(self):
        rows = list(csv.reader(io.StringIO(to_csv([{}], ["id", "cost"]))))
        assert rows[1] == ["", ""]


class TestToJson:
    def test_only_requested_fields_in_order(self):
        flat = format_for_export(make_record(cost=0.5))
        parsed = json.loads(to_json([flat], ["provider", "cost"]))
        assert parsed == [{"provider": "openai", "cost": 0.5}]
        assert list(parsed[0]) == ["provider", "cost"]

    def test_pretty_printed_unicode(self):
        flat = format_for_export(make_record(prompt="Grüße"))
        content = to_json([flat], ["prompt"])
        assert "Grüße" in content
        assert content.startswith("[\n  {")

    def test_empty(self):
        assert json.loads(to_json([], ["id"])) == []


class TestRenderExport:
    def test_filename(self):
        assert export_filename("csv", dt.date(2026, 3, 15)) == "ai-logs-2026-03-15.csv"

    def test_csv_default_fields(self):
        export = render_export([make_record()], "csv", today=dt.date(2026, 3, 15))
        header = next(csv.reader(io.StringIO(export.content)))

        assert export.filename == "ai-logs-2026-03-15.csv"
        assert export.media_type == "text/csv"
        assert header == [EXPORT_FIELDS[f][0] for f in DEFAULT_EXPORT_FIELDS]
        assert header[0] == "ID"

    def test_json_custom_fields(self):
        export = render_export([make_record(id="x")], "json", fields=["id", "model_id"])
        assert export.media_type == "application/json"
        assert json.loads(export.content) == [{"id": "x", "model_id": "gpt-4o"}]

    def test_unsupported_format(self):
        with pytest.raises(ValueError):
            render_export([], "xml")
