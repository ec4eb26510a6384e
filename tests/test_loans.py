"""Tests for the Loan Amortizer and the home-purchase calculator built on it."""

from datetime import date

import pytest

from core.errors import NegativeQuantityError
from core.schema import CashFlowKind, LoanStatus
from engine.loans import (
    amortization_schedule,
    amortize_step,
    fast_forward,
    level_payment,
    loan_from_terms,
    split_payment,
    standard_payment,
)


class TestPayment:
    def test_standard_mortgage_payment(self):
        assert standard_payment(320_000, 0.065, 360) == 2022.62

    def test_zero_rate_is_straight_line(self):
        assert level_payment(12_000, 0.0, 12) == pytest.approx(1000.0)

    def test_override_replaces_pmt(self):
        assert standard_payment(320_000, 0.065, 360, payment_override=2500) == 2500.0

    def test_negative_principal_rejected(self):
        with pytest.raises(NegativeQuantityError):
            loan_from_terms("bad", -1.0, 0.05, 60)


class TestSchedule:
    def test_principal_portions_sum_to_principal(self, mortgage):
        schedule = amortization_schedule(mortgage)
        assert schedule["principal"].sum() == pytest.approx(320_000, rel=1e-6)
        assert schedule["balance"].iloc[-1] == 0.0

    def test_term_is_respected(self, mortgage):
        assert len(amortization_schedule(mortgage)) <= 360

    def test_extra_payment_pays_off_earlier(self, mortgage):
        base = len(amortization_schedule(mortgage))
        faster = len(amortization_schedule(loan_from_terms(
            "mortgage", 320_000, 0.065, 360, start_date=date(2025, 1, 1), extra_payment_monthly=200
        )))
        assert faster < base

    def test_zero_apr_has_no_interest(self):
        loan = loan_from_terms("zero", 12_000, 0.0, 12)
        schedule = amortization_schedule(loan)
        assert len(schedule) == 12
        assert schedule["interest"].sum() == 0.0

    def test_first_split(self, mortgage):
        interest, principal, payment = split_payment(mortgage)
        assert interest == pytest.approx(320_000 * 0.065 / 12)
        assert payment == mortgage.monthly_payment
        assert principal == pytest.approx(payment - interest)


class TestAmortizeStep:
    def test_step_emits_loan_payment(self, mortgage):
        new, event = amortize_step(mortgage, date(2025, 1, 1))
        assert event.kind is CashFlowKind.LOAN_PAYMENT
        assert event.amount == 2022.62
        assert new.remaining_balance < mortgage.remaining_balance
        assert new.payments_made == 1
        # the input state is never mutated
        assert mortgage.remaining_balance == 320_000

    def test_dormant_before_start(self, mortgage):
        new, event = amortize_step(mortgage, date(2024, 12, 1))
        assert new is mortgage
        assert event is None

    def test_final_payment_retires_balance(self):
        loan = loan_from_terms("short", 1000, 0.12, 1)
        new, event = amortize_step(loan, date(2025, 1, 1))
        assert new.status is LoanStatus.PAID_OFF
        assert new.remaining_balance == 0.0
        assert event.amount == pytest.approx(1010.0)

    def test_paid_off_loan_is_inert(self):
        loan = loan_from_terms("done", 0.0, 0.05, 12)
        assert loan.is_paid_off
        new, event = amortize_step(loan, date(2025, 1, 1))
        assert new is loan and event is None


class TestFastForward:
    def test_applies_one_payment_per_elapsed_month(self):
        loan = loan_from_terms("car", 24_000, 0.05, 48, start_date=date(2024, 1, 1))
        moved = fast_forward(loan, date(2025, 1, 1))
        schedule = amortization_schedule(loan)
        assert moved.payments_made == 12
        assert moved.remaining_balance == pytest.approx(schedule["balance"].iloc[11])

    def test_future_loan_unchanged(self):
        loan = loan_from_terms("car", 24_000, 0.05, 48, start_date=date(2026, 1, 1))
        assert fast_forward(loan, date(2025, 1, 1)) is loan
