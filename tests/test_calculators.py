"""Tests for the household planning calculators."""

import pytest

from calculators.insurance import disability_insurance_need, life_insurance_need
from calculators.irmaa import PART_B_BASE_PREMIUM, calculate_irmaa
from calculators.mortgage import home_purchase
from calculators.ratios import FAIR, GOOD, POOR, RatioInput, calculate_ratios, health_score, overall_rating
from core.errors import NegativeQuantityError, UnsupportedTaxJurisdiction
from core.schema import FilingStatus


class TestHomePurchase:
    def test_principal_and_payment(self):
        purchase = home_purchase(400_000, 80_000, 6.5, 30)
        assert purchase.principal == 320_000
        assert purchase.monthly_payment == pytest.approx(2022.62, abs=0.01)
        assert purchase.loan_to_value == pytest.approx(0.8)

    def test_schedule_retires_the_loan(self):
        purchase = home_purchase(400_000, 80_000, 6.5, 30)
        assert purchase.schedule["principal"].sum() == pytest.approx(320_000, rel=1e-6)
        assert purchase.total_interest == pytest.approx(2022.62 * 360 - 320_000, rel=1e-3)

    def test_negative_inputs_rejected(self):
        with pytest.raises(NegativeQuantityError):
            home_purchase(-1, 0, 6.5, 30)


class TestLifeInsurance:
    def test_income_replacement_method(self):
        need = life_insurance_need(
            annual_income=100_000,
            years_to_replace=10,
            outstanding_debts=200_000,
            education_per_child=100_000,
            number_of_children=2,
            final_expenses=15_000,
            existing_coverage=500_000,
        )
        assert need.income_replacement == 1_000_000
        assert need.total_recommended == 1_415_000
        assert need.coverage_gap == 915_000
        assert [label for label, _ in need.breakdown] == [
            "Income Replacement", "Debt Coverage", "Education Fund", "Final Expenses",
        ]

    def test_suggested_term_has_a_floor(self):
        need = life_insurance_need(50_000, 5, 0, 0, 0, 10_000, 0, current_age=55, retirement_age=65)
        assert need.suggested_term_years == 20


class TestDisabilityInsurance:
    def test_gap_and_ratio(self):
        need = disability_insurance_need(
            annual_income=120_000,
            monthly_essential_expenses=5000,
            employer_coverage_pct=40,
            existing_disability_coverage=0,
        )
        assert need.gross_monthly_income == pytest.approx(10_000)
        assert need.recommended_monthly_benefit == pytest.approx(6500)
        assert need.coverage_gap == pytest.approx(2500)
        assert need.coverage_ratio == pytest.approx(80.0)

    def test_no_expenses_means_zero_ratio(self):
        assert disability_insurance_need(120_000, 0, 40).coverage_ratio == 0.0


class TestIrmaa:
    def test_single_middle_bracket(self):
        result = calculate_irmaa(150_000, FilingStatus.SINGLE)
        assert result.part_b_surcharge == 174.70
        assert result.part_d_surcharge == 33.30
        assert result.total_monthly_surcharge == pytest.approx(208.0)
        assert result.total_annual_surcharge == pytest.approx(2496.0)
        assert result.total_part_b_monthly == pytest.approx(PART_B_BASE_PREMIUM + 174.70)
        assert result.description == "Income $129K - $161K"

    def test_lower_bound_is_inclusive(self):
        assert calculate_irmaa(129_000, "SINGLE").part_b_surcharge == 174.70
        assert calculate_irmaa(128_999.99, "SINGLE").part_b_surcharge == 69.90

    def test_standard_premium(self):
        result = calculate_irmaa(80_000, FilingStatus.MFJ)
        assert result.total_monthly_surcharge == 0.0
        assert result.description == "Standard premium"

    def test_top_bracket(self):
        assert calculate_irmaa(2_000_000, FilingStatus.MFJ).description == "Income over $750K"

    def test_filing_status_without_table(self):
        with pytest.raises(UnsupportedTaxJurisdiction):
            calculate_irmaa(150_000, FilingStatus.HOH)


class TestRatios:
    @pytest.fixture
    def healthy(self):
        return RatioInput(
            monthly_gross_income=10_000,
            monthly_expenses=6000,
            total_monthly_debt=2000,
            housing_expenses=2500,
            liquid_assets=40_000,
            annual_income=120_000,
            net_worth=300_000,
        )

    def test_ratings(self, healthy):
        ratios = calculate_ratios(healthy)
        assert ratios["debt_to_income"].value == pytest.approx(0.2)
        assert ratios["savings_rate"].value == pytest.approx(0.4)
        assert ratios["liquidity_ratio"].rating == GOOD
        assert ratios["housing_ratio"].rating == GOOD
        assert health_score(ratios) == 100.0
        assert overall_rating(health_score(ratios)) == GOOD

    def test_zero_income_is_guarded(self):
        ratios = calculate_ratios(RatioInput(0, 0, 0, 0, 0, 0, 0))
        assert all(r.value == 0.0 for r in ratios.values())
        assert ratios["savings_rate"].rating == POOR

    def test_overall_rating_thresholds(self):
        assert overall_rating(70) == GOOD
        assert overall_rating(40) == FAIR
        assert overall_rating(39.9) == POOR
