"""Unit tests for the two-sided payment verification check."""

from decimal import Decimal

import pytest

from dispatch.domain.audit import MATCH_MESSAGE, MISMATCH_MESSAGE
from dispatch.domain.entities import Trip
from dispatch.domain.enums import AuditAction, TripStatus
from dispatch.domain.errors import ValidationError
from dispatch.domain.verification import evaluate, record_verification


def _trip(**kwargs) -> Trip:
    return Trip(id="trip-9", status=TripStatus.COMPLETED, **kwargs)


class TestEvaluate:
    def test_no_event_until_both_amounts_known(self):
        assert evaluate((None, None), (Decimal("5000"), None), "t") is None
        assert evaluate((None, None), (None, Decimal("5000")), "t") is None

    def test_no_event_when_nothing_changed(self):
        pair = (Decimal("5000"), Decimal("5000"))
        assert evaluate(pair, pair, "t") is None

    def test_exact_equality_ignores_scale(self):
        event = evaluate((None, None), (Decimal("5000"), Decimal("5000.00")), "t")
        assert event.action == AuditAction.VERIFICATION_MATCH


class TestRecordVerification:
    def test_second_report_triggers_match(self):
        first = record_verification(_trip(), customer_amount=5000)
        assert first.events == []
        assert first.after.customer_verified_amount == Decimal("5000.00")

        second = record_verification(first.after, driver_amount="5000")
        [event] = second.events
        assert event.action == AuditAction.VERIFICATION_MATCH
        assert event.message == MATCH_MESSAGE
        assert event.table_name == "trips"
        assert event.record_id == "trip-9"

    def test_mismatch_carries_both_amounts(self):
        update = record_verification(
            _trip(), customer_amount=5000, driver_amount=4500
        )
        [event] = update.events
        assert event.action == AuditAction.VERIFICATION_MISMATCH
        assert event.message == MISMATCH_MESSAGE
        assert event.new_data == {
            "customer_amount": Decimal("5000.00"),
            "driver_amount": Decimal("4500.00"),
        }

    def test_correcting_an_amount_re_evaluates(self):
        trip = _trip(
            customer_verified_amount=Decimal("5000.00"),
            driver_verified_amount=Decimal("4500.00"),
        )
        update = record_verification(trip, driver_amount=5000)
        assert update.events[0].action == AuditAction.VERIFICATION_MATCH

    def test_same_amount_again_fires_nothing(self):
        trip = _trip(
            customer_verified_amount=Decimal("5000.00"),
            driver_verified_amount=Decimal("5000.00"),
        )
        update = record_verification(trip, customer_amount="5000")
        assert update.events == []
        assert update.changes == {}

    def test_only_amount_fields_change(self):
        update = record_verification(_trip(), customer_amount=1, driver_amount=2)
        assert set(update.changes) == {
            "customer_verified_amount",
            "driver_verified_amount",
        }
        assert update.after.status == TripStatus.COMPLETED

    def test_at_least_one_amount_required(self):
        with pytest.raises(ValidationError, match="at least one"):
            record_verification(_trip())

    def test_negative_amount_rejected(self):
        with pytest.raises(ValidationError, match="customer_amount cannot be negative"):
            record_verification(_trip(), customer_amount=-1)

    def test_accepted_in_any_status(self):
        trip = Trip(id="trip-1", status=TripStatus.PENDING)
        update = record_verification(trip, customer_amount=10, driver_amount=10)
        assert update.events[0].action == AuditAction.VERIFICATION_MATCH

    def test_sub_cent_reports_are_rejected_not_rounded(self):
        with pytest.raises(ValidationError, match="two decimal places"):
            record_verification(
                _trip(), customer_amount="100.004", driver_amount="100.001"
            )

    def test_one_cent_difference_is_a_mismatch(self):
        update = record_verification(
            _trip(), customer_amount="100.01", driver_amount="100.00"
        )
        [event] = update.events
        assert event.action == AuditAction.VERIFICATION_MISMATCH
        assert event.new_data == {
            "customer_amount": Decimal("100.01"),
            "driver_amount": Decimal("100.00"),
        }

    def test_oversized_report_rejected(self):
        with pytest.raises(ValidationError, match="driver_amount must be less than"):
            record_verification(_trip(), driver_amount=Decimal("1e30"))
