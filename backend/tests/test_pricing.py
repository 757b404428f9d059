# Overview: Pytest coverage for checkout pricing (subtotal, discount, tax, total).

from decimal import Decimal

import pytest

from shopos.services.checkout_service import PriceLine, compute_totals
from shopos.validation import ValidationError


def _lines(*pairs):
    return [
        PriceLine(product_id=i + 1, unit_price=Decimal(str(price)), quantity=qty)
        for i, (price, qty) in enumerate(pairs)
    ]


class TestComputeTotals:

    def test_percentage_discount_then_tax(self):
        """1000 x 2, 10% off, 17% tax -> 2000 / 200 / 306 / 2106."""
        totals = compute_totals(
            _lines((1000, 2)),
            tax_percentage=Decimal("17"),
            discount_amount=Decimal("10"),
        )
        assert totals.subtotal == Decimal("2000")
        assert totals.discount_amount == Decimal("200")
        assert totals.tax_amount == Decimal("306")
        assert totals.total_amount == Decimal("2106")

    def test_fixed_discount(self):
        totals = compute_totals(
            _lines((1000, 1), (250, 2)),
            tax_percentage=Decimal("0"),
            discount_amount=Decimal("500"),
            discount_type="fixed",
        )
        assert totals.subtotal == Decimal("1500")
        assert totals.discount_amount == Decimal("500")
        assert totals.tax_amount == Decimal("0")
        assert totals.total_amount == Decimal("1000")

    def test_tax_rounds_half_up_to_whole_units(self):
        """17% of 50 is 8.5, which rounds to 9."""
        totals = compute_totals(_lines((50, 1)), tax_percentage=Decimal("17"))
        assert totals.tax_amount == Decimal("9")
        assert totals.total_amount == Decimal("59")

    def test_tax_rounds_to_nearest_unit(self):
        """169.83 -> 170, 169.32 -> 169."""
        assert compute_totals(_lines((999, 1)), tax_percentage=Decimal("17")).tax_amount == Decimal("170")
        assert compute_totals(_lines((996, 1)), tax_percentage=Decimal("17")).tax_amount == Decimal("169")

    def test_percentage_discount_rounds_half_up(self):
        """10% of 25 is 2.5, which rounds to 3; tax applies to 22."""
        totals = compute_totals(
            _lines((25, 1)),
            tax_percentage=Decimal("10"),
            discount_amount=Decimal("10"),
        )
        assert totals.discount_amount == Decimal("3")
        assert totals.tax_amount == Decimal("2")
        assert totals.total_amount == Decimal("24")

    def test_total_identity_holds(self):
        lines = _lines((1299, 3), (45, 7), (10, 1))
        totals = compute_totals(lines, tax_percentage=Decimal("17"), discount_amount=Decimal("7"))
        assert totals.subtotal == sum(line.total_price for line in lines)
        assert totals.total_amount == totals.subtotal - totals.discount_amount + totals.tax_amount

    def test_no_discount_no_tax(self):
        totals = compute_totals(_lines((300, 2)), tax_percentage=Decimal("0"))
        assert totals.subtotal == totals.total_amount == Decimal("600")
        assert totals.discount_amount == Decimal("0")

    def test_full_percentage_discount(self):
        totals = compute_totals(
            _lines((300, 2)),
            tax_percentage=Decimal("17"),
            discount_amount=Decimal("100"),
        )
        assert totals.discount_amount == Decimal("600")
        assert totals.tax_amount == Decimal("0")
        assert totals.total_amount == Decimal("0")


class TestComputeTotalsValidation:

    def test_percentage_over_100_rejected(self):
        with pytest.raises(ValidationError):
            compute_totals(_lines((100, 1)), tax_percentage=Decimal("0"), discount_amount=Decimal("101"))

    def test_fixed_discount_over_subtotal_rejected(self):
        with pytest.raises(ValidationError) as exc:
            compute_totals(
                _lines((100, 1)),
                tax_percentage=Decimal("0"),
                discount_amount=Decimal("150"),
                discount_type="fixed",
            )
        assert exc.value.details["subtotal"] == 100.0

    def test_negative_tax_rejected(self):
        with pytest.raises(ValidationError):
            compute_totals(_lines((100, 1)), tax_percentage=Decimal("-1"))

    def test_negative_discount_rejected(self):
        with pytest.raises(ValidationError):
            compute_totals(_lines((100, 1)), tax_percentage=Decimal("0"), discount_amount=Decimal("-5"))

    def test_unknown_discount_type_rejected(self):
        with pytest.raises(ValidationError):
            compute_totals(_lines((100, 1)), tax_percentage=Decimal("0"), discount_type="coupon")
