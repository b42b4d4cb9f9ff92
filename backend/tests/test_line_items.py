"""Unit tests for line-item aggregation and sanitisation."""
from decimal import Decimal

import pytest
from pharma_erp.schemas.requests import LineItemIn
from pharma_erp.services.line_items import (
    CGST_SGST,
    IGST,
    aggregate_quantities,
    compute_line,
    compute_totals,
    normalize_tax_type,
    sanitize_line_items,
)


def _line(item_id="p1", quantity=1, rate=0, tax_type="CGST/SGST", tax=0, **kw):
    return LineItemIn(
        catalog_item_id=item_id, quantity=quantity, rate=rate, tax_type=tax_type, tax=tax, **kw
    )


class TestComputeLine:
    def test_base_tax_and_total(self):
        amounts = compute_line(_line(quantity=10, rate=25, tax=12))
        assert amounts.base == 250
        assert amounts.tax_amount == pytest.approx(30)
        assert amounts.total == pytest.approx(280)

    def test_cgst_sgst_split_is_presentation_only(self):
        split = compute_line(_line(quantity=4, rate=50, tax=18, tax_type=CGST_SGST))
        single = compute_line(_line(quantity=4, rate=50, tax=18, tax_type=IGST))
        assert split.cgst_percent == 9 and split.sgst_percent == 9 and split.igst_percent == 0
        assert single.igst_percent == 18 and single.cgst_percent == 0
        assert split.tax_amount == single.tax_amount
        assert split.cgst_amount + split.sgst_amount == pytest.approx(single.igst_amount)

    def test_unparseable_fields_count_as_zero(self):
        amounts = compute_line(_line(quantity="abc", rate="", tax=None))
        assert (amounts.base, amounts.tax_amount, amounts.total) == (0, 0, 0)

    def test_text_numbers(self):
        amounts = compute_line(_line(quantity="2.5", rate="100", tax="5"))
        assert amounts.base == 250
        assert amounts.tax_amount == pytest.approx(12.5)


class TestComputeTotals:
    def test_itemised_totals(self):
        items = [_line(quantity=2, rate=100, tax=5), _line("p2", quantity=1, rate=50, tax=18, tax_type=IGST)]
        totals = compute_totals(items, manual_subtotal="9999", manual_tax_percent="50")
        assert totals.itemised
        assert totals.subtotal == 250
        assert totals.tax == pytest.approx(10 + 9)
        assert totals.total == pytest.approx(269)
        assert totals.tax_percent == 0

    def test_manual_mode_without_items(self):
        totals = compute_totals([], manual_subtotal="1000", manual_tax_percent="12")
        assert not totals.itemised
        assert totals.subtotal == 1000
        assert totals.tax == pytest.approx(120)
        assert totals.total == pytest.approx(1120)
        assert totals.tax_percent == 12

    def test_manual_subtotal_taken_verbatim(self):
        assert compute_totals([], manual_subtotal="1234.56").subtotal == 1234.56

    def test_total_floored_at_zero(self):
        totals = compute_totals([_line(quantity=1, rate=-500)])
        assert totals.total == 0

    def test_same_input_same_output(self):
        items = [_line(quantity=3, rate=7.3, tax=12), _line("p2", quantity="1.5", rate="40", tax="5")]
        assert compute_totals(items) == compute_totals(items)


class TestSanitize:
    def test_drops_blank_reference_and_non_positive_quantity(self):
        raw = [
            _line("p1", quantity=5, rate=10),
            _line("", quantity=5, rate=10),
            _line("p2", quantity=0, rate=10),
            _line("p3", quantity=-1, rate=10),
            _line("p4", quantity="abc", rate=10),
        ]
        assert [l.catalog_item_id for l in sanitize_line_items(raw)] == ["p1"]

    def test_clamps_tax_and_normalises_type(self):
        [line] = sanitize_line_items([_line(quantity=1, tax=-5, tax_type="CGST / SGST")])
        assert line.tax == 0
        assert line.tax_type == CGST_SGST

    def test_keeps_order_and_typed_values(self):
        lines = sanitize_line_items([_line("b", quantity="2"), _line("a", quantity=1, name=" Blend ")])
        assert [l.catalog_item_id for l in lines] == ["b", "a"]
        assert lines[0].quantity == 2.0
        assert lines[1].name == "Blend"

    def test_record_shape(self):
        [line] = sanitize_line_items([_line("p1", quantity=2, rate=3, tax=5, name="X", unit="kg")])
        assert line.to_record() == {
            "catalog_item_id": "p1",
            "name": "X",
            "unit": "kg",
            "quantity": 2.0,
            "rate": 3.0,
            "tax_type": CGST_SGST,
            "tax": 5.0,
        }


class TestAggregateQuantities:
    def test_duplicate_references_are_summed(self):
        lines = sanitize_line_items([_line("p1", quantity=3), _line("p2", quantity=1), _line("p1", quantity=4)])
        assert aggregate_quantities(lines) == {"p1": 7.0, "p2": 1.0}

    def test_fractional_quantities_sum_exactly(self):
        lines = sanitize_line_items([_line("p1", quantity="0.1"), _line("p1", quantity="0.2")])
        assert aggregate_quantities(lines) == {"p1": Decimal("0.3")}


@pytest.mark.parametrize(
    "raw,expected",
    [("IGST", IGST), ("igst", IGST), ("CGST / SGST", CGST_SGST), ("CGST/SGST", CGST_SGST), ("", CGST_SGST), (None, CGST_SGST)],
)
def test_normalize_tax_type(raw, expected):
    assert normalize_tax_type(raw) == expected
