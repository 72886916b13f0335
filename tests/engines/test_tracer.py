"""Tests for the engine invocation tracer."""

from decimal import Decimal

from shiftpay_engines.tracer import compute_input_fingerprint, traced_engine


@traced_engine("sample", "2.1", fingerprint_fields=("amount", "label"))
def _sample(amount, label=None):
    return amount * 2


class TestFingerprint:

    def test_deterministic(self):
        args = {"amount": Decimal("1.5"), "label": "x"}

        assert compute_input_fingerprint(("amount", "label"), args) == compute_input_fingerprint(
            ("amount", "label"), dict(reversed(list(args.items())))
        )

    def test_sensitive_to_values(self):
        fields = ("amount",)

        assert compute_input_fingerprint(fields, {"amount": 1}) != compute_input_fingerprint(
            fields, {"amount": 2}
        )

    def test_missing_field_is_null(self):
        assert compute_input_fingerprint(("amount",), {}) == compute_input_fingerprint(
            ("amount",), {"amount": None}
        )


class TestTracedEngine:

    def test_result_unchanged(self):
        assert _sample(Decimal("2")) == Decimal("4")

    def test_positional_and_keyword_calls_fingerprint_alike(self, captured_logs):
        _sample(Decimal("2"), "a")
        _sample(amount=Decimal("2"), label="a")

        traces = [r for r in captured_logs() if r.get("engine_name") == "sample"]
        assert len(traces) == 2
        assert traces[0]["input_fingerprint"] == traces[1]["input_fingerprint"]
        assert traces[0]["engine_version"] == "2.1"
