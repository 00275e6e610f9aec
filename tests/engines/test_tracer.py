"""Tests for the engine tracer decorator and input fingerprints."""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

import pytest

from studio_kernel.domain.budget import CalcMode
from studio_engines.tracer import compute_input_fingerprint, traced_engine


@dataclass(frozen=True)
class _Point:
    x: int
    mode: CalcMode


class TestFingerprint:

    def test_deterministic(self):
        kwargs = {"a": Decimal("1.5"), "b": [1, 2]}
        assert compute_input_fingerprint(("a", "b"), kwargs) == compute_input_fingerprint(("a", "b"), kwargs)

    def test_length(self):
        assert len(compute_input_fingerprint(("a",), {"a": 1})) == 16

    def test_dict_key_order_irrelevant(self):
        fp1 = compute_input_fingerprint(("t",), {"t": {"x": 1, "y": 2}})
        fp2 = compute_input_fingerprint(("t",), {"t": {"y": 2, "x": 1}})
        assert fp1 == fp2

    def test_different_inputs_differ(self):
        assert compute_input_fingerprint(("a",), {"a": 1}) != compute_input_fingerprint(("a",), {"a": 2})

    def test_dataclass_and_enum(self):
        fp1 = compute_input_fingerprint(("p",), {"p": _Point(1, CalcMode.AREA)})
        fp2 = compute_input_fingerprint(("p",), {"p": _Point(1, CalcMode.ROOM)})
        assert fp1 != fp2

    def test_missing_field_is_null(self):
        assert compute_input_fingerprint(("a",), {}) == compute_input_fingerprint(("a",), {"a": None})


class TestTracedEngine:

    def test_emits_trace(self, captured_logs):
        @traced_engine("demo", "2.1", fingerprint_fields=("start",))
        def run(*, start):
            return start

        assert run(start=date(2026, 1, 1)) == date(2026, 1, 1)

        traces = [r for r in captured_logs() if r["message"] == "STUDIO_ENGINE_TRACE"]
        assert len(traces) == 1
        assert traces[0]["trace_type"] == "STUDIO_ENGINE_TRACE"
        assert traces[0]["engine_name"] == "demo"
        assert traces[0]["engine_version"] == "2.1"
        assert traces[0]["function"].endswith("run")
        assert traces[0]["duration_ms"] >= 0

    def test_no_trace_on_failure(self, captured_logs):
        @traced_engine("demo", "1.0")
        def boom():
            raise RuntimeError("fail")

        with pytest.raises(RuntimeError):
            boom()

        assert not [r for r in captured_logs() if r["message"] == "STUDIO_ENGINE_TRACE"]

    def test_empty_fingerprint_without_fields(self, captured_logs):
        @traced_engine("demo", "1.0")
        def noop():
            return None

        noop()

        trace = next(r for r in captured_logs() if r["message"] == "STUDIO_ENGINE_TRACE")
        assert trace["input_fingerprint"] == ""
