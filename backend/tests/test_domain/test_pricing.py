"""
Tests for order pricing, coupon discounts and product discount percent

Author: Water Junction
Date: 2025-06-30
"""
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from waterjunction.domain.coupon import Coupon
from waterjunction.domain.order import calculate_order_totals, generate_order_number
from waterjunction.domain.product import calculate_discount_percent


NOW = datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)


def make_coupon(**overrides) -> Coupon:
    data = {
        'id': 1,
        'code': ' save10 ',
        'discount_type': 'percentage',
        'value': Decimal('10'),
        'min_order_value': Decimal('500'),
        'max_discount': Decimal('200'),
        'valid_from': NOW - timedelta(days=1),
        'valid_until': NOW + timedelta(days=1),
    }
    data.update(overrides)
    return Coupon(**data)


class TestOrderTotals:

    def test_tax_is_18_percent_of_discounted_subtotal(self):
        totals = calculate_order_totals(
            [(Decimal('1000'), 2), (Decimal('499.50'), 1)],
            discount=Decimal('100')
        )

        assert totals.subtotal == Decimal('2499.50')
        assert totals.discount == Decimal('100')
        assert totals.shipping_cost == Decimal('0')
        # (2499.50 - 100) * 0.18 = 431.91 -> 432
        assert totals.tax == Decimal('432')
        assert totals.total == Decimal('2831.50')
        assert totals.amount_in_paise == 283150

    def test_tax_rounds_half_up(self):
        # 25 * 0.18 = 4.5
        totals = calculate_order_totals([(Decimal('25'), 1)])

        assert totals.tax == Decimal('5')
        assert totals.total == Decimal('30')

    def test_no_items(self):
        totals = calculate_order_totals([])

        assert totals.subtotal == Decimal('0')
        assert totals.total == Decimal('0')
        assert totals.amount_in_paise == 0


class TestOrderNumber:

    def test_format(self):
        number = generate_order_number(now_ms=1718000123456)

        assert number.startswith('WJ123456')
        assert len(number) == 11
        assert all(ch.isdigit() or ch.isupper() for ch in number[8:])

    def test_uses_current_time_by_default(self):
        number = generate_order_number()

        assert number.startswith('WJ')
        assert number[2:8].isdigit()


class TestCoupon:

    def test_code_is_uppercased(self):
        assert make_coupon().code == 'SAVE10'

    def test_percentage_discount(self):
        assert make_coupon().calculate_discount(Decimal('1000')) == Decimal('100.00')

    def test_percentage_discount_is_capped(self):
        assert make_coupon().calculate_discount(Decimal('3000')) == Decimal('200')

    def test_below_minimum_order_value(self):
        assert make_coupon().calculate_discount(Decimal('400')) == Decimal('0.00')

    def test_fixed_discount_never_exceeds_order_value(self):
        coupon = make_coupon(discount_type='fixed', value=Decimal('300'), min_order_value=Decimal('0'))

        assert coupon.calculate_discount(Decimal('250')) == Decimal('250.00')
        assert coupon.calculate_discount(Decimal('1000')) == Decimal('300.00')

    def test_valid_inside_window(self):
        assert make_coupon().is_valid(NOW) is True

    def test_invalid_when_inactive(self):
        assert make_coupon(is_active=False).is_valid(NOW) is False

    def test_invalid_outside_window(self):
        coupon = make_coupon()

        assert coupon.is_valid(NOW + timedelta(days=2)) is False
        assert coupon.is_valid(NOW - timedelta(days=2)) is False

    def test_invalid_when_used_up(self):
        assert make_coupon(usage_limit=5, used_count=5).is_valid(NOW) is False
        assert make_coupon(usage_limit=5, used_count=4).is_valid(NOW) is True

    def test_unlimited_usage(self):
        assert make_coupon(usage_limit=None, used_count=1000).is_valid(NOW) is True

    def test_naive_dates_are_treated_as_utc(self):
        coupon = make_coupon(
            valid_from=datetime(2025, 6, 1),
            valid_until=datetime(2025, 6, 30)
        )

        assert coupon.is_valid(NOW) is True

    def test_to_dict_exposes_type(self):
        data = make_coupon().to_dict()

        assert data['type'] == 'percentage'
        assert data['value'] == 10.0
        assert 'discount_type' not in data


class TestDiscountPercent:

    def test_rounded_to_whole_percent(self):
        assert calculate_discount_percent(Decimal('7999'), Decimal('9999')) == 20
        assert calculate_discount_percent(Decimal('850'), Decimal('1000')) == 15

    def test_half_rounds_up(self):
        assert calculate_discount_percent(Decimal('875'), Decimal('1000')) == 13

    def test_zero_without_mrp(self):
        assert calculate_discount_percent(Decimal('875'), None) == 0
        assert calculate_discount_percent(Decimal('875'), Decimal('0')) == 0
