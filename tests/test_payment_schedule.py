"""
Tests for down payment schedules and payment tracking.
"""

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from invoicing.engine.payment_schedule import (
    calculate_due_date,
    calculate_payment_schedule,
    generate_payment_schedule_warnings,
    is_schedule_complete,
    split_down_payment,
    update_payment_status,
)
from invoicing.errors import ErrorType
from invoicing.schemas.payment import PaymentScheduleOptions


@pytest.fixture
def schedule():
    """A 100,000 schedule with a 30% down payment."""
    result = calculate_payment_schedule(
        100000,
        PaymentScheduleOptions(down_payment_percentage=30, invoice_date=date(2026, 1, 15)),
    )
    assert result.success
    return result.payment_schedule


class TestCalculatePaymentSchedule:
    """Test splitting a grand total."""

    def test_thirty_percent_split(self, schedule):
        assert schedule.total_amount == 100000.0
        assert schedule.down_payment.amount == 30000.0
        assert schedule.remaining_balance.amount == 70000.0
        assert schedule.down_payment.status == "pending"
        assert schedule.payment_status.status == "pending"
        assert schedule.payment_status.total_paid == 0.0
        assert schedule.payment_status.remaining_amount == 100000.0

    def test_due_dates_from_invoice_date(self, schedule):
        assert schedule.down_payment.due_date == date(2026, 1, 30)
        assert schedule.remaining_balance.due_date == date(2026, 2, 14)

    def test_custom_day_offsets(self):
        result = calculate_payment_schedule(
            100000,
            {"downPaymentPercentage": 50, "downPaymentDays": 7, "finalPaymentDays": 60, "invoiceDate": "2026-03-01"},
        )

        assert result.payment_schedule.down_payment.due_date == date(2026, 3, 8)
        assert result.payment_schedule.remaining_balance.due_date == date(2026, 4, 30)

    def test_default_percentage(self):
        result = calculate_payment_schedule(200000)
        assert result.payment_schedule.down_payment.percentage == 30
        assert result.payment_schedule.down_payment.amount == 60000.0

    @pytest.mark.parametrize("percentage", [10, 30, 33.33, 50, 70])
    def test_parts_add_up_to_total_exactly(self, percentage):
        for cents in range(1, 3000):
            total = cents / 100
            down_payment, remaining = split_down_payment(total, percentage)
            assert down_payment + remaining == Decimal(str(total))

    def test_schedule_parts_add_up_to_total(self):
        schedule = calculate_payment_schedule(0.06, {"downPaymentPercentage": 10}).payment_schedule

        assert schedule.down_payment.amount == Decimal("0.01")
        assert schedule.remaining_balance.amount == Decimal("0.05")
        assert schedule.down_payment.amount + schedule.remaining_balance.amount == schedule.total_amount

    def test_percentage_above_100_fails(self):
        result = calculate_payment_schedule(100000, {"downPaymentPercentage": 150})

        assert result.success is False
        assert result.error == "Down payment percentage cannot exceed 100%"
        assert result.error_type == ErrorType.VALIDATION_ERROR

    def test_zero_total_fails(self):
        result = calculate_payment_schedule(0)

        assert result.success is False
        assert "grandTotal must be greater than 0" in result.error

    def test_invalid_total_fails(self):
        result = calculate_payment_schedule("abc")
        assert result.success is False
        assert result.validation.is_valid is False

    def test_warnings(self, config):
        assert generate_payment_schedule_warnings(5000, 95000, 100000, config) == [
            "Down payment is less than 10% of total - consider increasing for better cash flow",
        ]
        assert generate_payment_schedule_warnings(90000, 10000, 100000, config) == [
            "Down payment is more than 80% of total - consider reducing to improve customer experience",
            "Remaining balance is very small - consider requesting full payment upfront",
        ]
        assert generate_payment_schedule_warnings(300000, 700000, 1000000, config) == []

    def test_schedule_record(self, schedule):
        record = schedule.to_record()

        assert record["scheduleType"] == "down_payment"
        assert record["downPayment"]["dueDate"] == "2026-01-30"
        assert record["paymentStatus"]["paymentHistory"] == []


class TestUpdatePaymentStatus:
    """Test applying payments."""

    def test_partial_then_paid(self, schedule):
        first = update_payment_status(schedule, 60000)

        assert first.success is True
        assert first.updated_schedule.payment_status.status == "partial"
        assert first.updated_schedule.payment_status.total_paid == 60000.0
        assert first.updated_schedule.payment_status.remaining_amount == 40000.0
        assert first.updated_schedule.down_payment.status == "paid"
        assert first.updated_schedule.remaining_balance.status == "pending"

        second = update_payment_status(first.updated_schedule, 40000)

        status = second.updated_schedule.payment_status
        assert second.success is True
        assert status.status == "paid"
        assert status.remaining_amount == 0.0
        assert len(status.payment_history) == 2
        assert second.updated_schedule.remaining_balance.status == "paid"

    def test_input_schedule_not_modified(self, schedule):
        update_payment_status(schedule, 60000)

        assert schedule.payment_status.status == "pending"
        assert schedule.payment_status.payment_history == []

    def test_payment_below_down_payment(self, schedule):
        result = update_payment_status(schedule, 10000)

        assert result.updated_schedule.payment_status.status == "partial"
        assert result.updated_schedule.down_payment.status == "pending"

    def test_overpayment_rejected(self, schedule):
        first = update_payment_status(schedule, 60000).updated_schedule

        result = update_payment_status(first, 50000)

        assert result.success is False
        assert result.error == "Payment amount exceeds remaining balance"
        assert result.error_type == ErrorType.CALCULATION_ERROR
        assert first.payment_status.total_paid == 60000.0
        assert len(first.payment_status.payment_history) == 1

    def test_sub_cent_overpayment_rejected(self, schedule):
        result = update_payment_status(schedule, 100000.004)

        assert result.success is False
        assert result.error == "Payment amount exceeds remaining balance"

    def test_sub_cent_payment_recorded_rounded(self, schedule):
        result = update_payment_status(schedule, 30000.004)

        status = result.updated_schedule.payment_status
        assert status.payment_history[0].amount == Decimal("30000.00")
        assert status.total_paid == sum(record.amount for record in status.payment_history)
        assert status.total_paid + status.remaining_amount == schedule.total_amount

    def test_history_adds_up_to_total_paid(self, schedule):
        for amount in (0.1, 0.2, 33333.33, 0.3):
            schedule = update_payment_status(schedule, amount).updated_schedule

        status = schedule.payment_status
        assert status.total_paid == Decimal("33333.93")
        assert status.total_paid == sum(record.amount for record in status.payment_history)
        assert status.remaining_amount == Decimal("66666.07")

    def test_record_amounts_are_numbers(self, schedule):
        record = update_payment_status(schedule, 60000).updated_schedule.to_record()

        assert record["paymentStatus"]["totalPaid"] == 60000.0
        assert isinstance(record["paymentStatus"]["paymentHistory"][0]["amount"], float)

    @pytest.mark.parametrize("amount", [0, -100, "abc", None])
    def test_invalid_payment_rejected(self, schedule, amount):
        result = update_payment_status(schedule, amount)

        assert result.success is False
        assert result.error_type == ErrorType.VALIDATION_ERROR

    def test_payment_date_recorded(self, schedule):
        paid_at = datetime(2026, 1, 20, 9, 0, tzinfo=timezone.utc)

        result = update_payment_status(schedule, 30000, paid_at)

        status = result.updated_schedule.payment_status
        assert status.last_payment_date == paid_at
        assert status.payment_history[0].date == paid_at
        assert status.payment_history[0].type == "payment"

    def test_accepts_schedule_record(self, schedule):
        result = update_payment_status(schedule.to_record(), 100000)

        assert result.success is True
        assert result.updated_schedule.payment_status.status == "paid"

    def test_many_small_payments_reconcile(self):
        schedule = calculate_payment_schedule(100.0, {"downPaymentPercentage": 30}).payment_schedule

        for _ in range(10):
            result = update_payment_status(schedule, 10.0)
            assert result.success is True
            schedule = result.updated_schedule

        assert schedule.payment_status.status == "paid"
        assert schedule.payment_status.total_paid == 100.0
        assert schedule.payment_status.remaining_amount == 0.0


class TestScheduleHelpers:
    """Test schedule completeness and due dates."""

    def test_complete_schedule(self, schedule):
        assert is_schedule_complete(schedule.to_record()) is True

    def test_incomplete_schedule(self):
        assert is_schedule_complete({"downPayment": {"amount": 30000}}) is False
        assert is_schedule_complete({}) is False

    @pytest.mark.parametrize("terms, expected", [
        ("NET_15", date(2026, 1, 16)),
        ("NET_30", date(2026, 1, 31)),
        ("NET_60", date(2026, 3, 2)),
        ("DUE_ON_RECEIPT", date(2026, 1, 1)),
        ("SOMETIME", date(2026, 1, 31)),
    ])
    def test_due_date(self, terms, expected):
        assert calculate_due_date(date(2026, 1, 1), terms) == expected

    def test_due_date_from_string(self):
        assert calculate_due_date("2026-01-01T10:00:00Z", "NET_45") == date(2026, 2, 15)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
