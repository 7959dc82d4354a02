"""Tests for value coercion helpers."""

from datetime import date

import pytest

from conftest import make_metrics
from values import coerce_scalar, effective_values, format_value, parse_literal, to_date, to_float, to_text


class TestCoerceScalar:
    @pytest.mark.parametrize("raw", [None, True, 0, 12.5, "Suite 200"])
    def test_scalars_pass_through(self, raw):
        assert coerce_scalar(raw) == raw

    def test_list_joined(self):
        assert coerce_scalar(["Anticipated date", None, "Check rent table"]) == "Anticipated date; Check rent table"

    def test_object_encoded(self):
        assert coerce_scalar({"year": 1, "rate": 38}) == '{"year":1,"rate":38}'


class TestParseLiteral:
    def test_keywords(self):
        assert parse_literal("null") is None
        assert parse_literal(" true ") is True
        assert parse_literal("false") is False

    def test_numbers(self):
        assert parse_literal("2497") == 2497
        assert isinstance(parse_literal("2497"), int)
        assert parse_literal("0.0181") == 0.0181

    def test_quoted_string_unescaped(self):
        assert parse_literal('"Acme \\"West\\""') == 'Acme "West"'

    def test_non_finite_kept_as_text(self):
        assert parse_literal("NaN") == "NaN"

    def test_bare_word(self):
        assert parse_literal("TBD") == "TBD"


class TestToFloat:
    def test_currency_text(self):
        assert to_float("$17,279.00") == 17279.0

    def test_bool_is_not_a_number(self):
        assert to_float(True) is None

    def test_text_is_none(self):
        assert to_float("see exhibit B") is None
        assert to_float("") is None

    @pytest.mark.parametrize("raw", ["NaN", "nan", "inf", "-Infinity", "1e999", float("nan"), float("inf")])
    def test_non_finite_is_none(self, raw):
        assert to_float(raw) is None


class TestToText:
    def test_blank_is_none(self):
        assert to_text("   ") is None

    def test_bool(self):
        assert to_text(False) == "false"


class TestToDate:
    @pytest.mark.parametrize("raw", ["2024-09-01", "2024-09-01T00:00:00", "09/01/2024", "September 1, 2024", "Sep 1, 2024"])
    def test_formats(self, raw):
        assert to_date(raw) == date(2024, 9, 1)

    def test_unparseable(self):
        assert to_date("upon substantial completion") is None
        assert to_date(None) is None


class TestFormatValue:
    def test_formats(self):
        assert format_value(None) == "(null)"
        assert format_value(True) == "Yes"
        assert format_value(False) == "No"
        assert format_value(7907.17) == "7907.17"


class TestEffectiveValues:
    def test_override_wins(self):
        metrics = make_metrics({"lease_type": "FSG", "suite": "200"})
        metrics[0] = metrics[0].model_copy(update={"override": "NNN"})

        values = effective_values(metrics)

        assert values["lease_type"] == "NNN"
        assert values["suite"] == "200"

    def test_read_only(self):
        values = effective_values(make_metrics({"suite": "200"}))
        with pytest.raises(TypeError):
            values["suite"] = "300"  # type: ignore[index]
