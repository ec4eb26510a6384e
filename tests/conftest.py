"""Pytest configuration and shared fixtures."""

import copy
from datetime import date

import pytest

from core.config import ProjectionOptions
from core.schema import ProjectionMode
from data_prep.loader import build_scenario, parse_input
from engine.loans import loan_from_terms


BASE_INPUT = {
    "scenarioId": "baseline",
    "household": {
        "anchorDate": "2025-01-01",
        "startDate": "2025-01-01",
        "endDate": "2027-01-01",
        "startingCash": 20000,
    },
    "assumptions": {
        "inflationRatePct": 3.0,
        "taxableInterestYieldPct": 1.0,
        "taxableDividendYieldPct": 1.5,
    },
    "taxProfile": {"stateCode": "CA", "filingStatus": "SINGLE", "taxYear": 2024},
    "incomes": [
        {"id": "salary", "name": "Salary", "amount": 9000, "frequency": "MONTHLY", "startDate": "2025-01-01"},
    ],
    "expenses": [
        {
            "id": "rent",
            "category": "Housing",
            "amount": 2500,
            "frequency": "MONTHLY",
            "startDate": "2025-01-01",
            "growthRule": "TRACK_INFLATION",
        },
        {"id": "vacation", "amount": 4000, "frequency": "ONE_TIME", "startDate": "2025-07-15"},
    ],
    "accounts": [
        {
            "id": "brokerage",
            "name": "Brokerage",
            "type": "TAXABLE",
            "expectedReturnPct": 6.0,
            "cashBalance": 1000,
            "holdings": [{"ticker": "vti", "shares": 100, "avgPrice": 200}],
        },
        {"id": "roth", "name": "Roth IRA", "type": "ROTH", "expectedReturnPct": 7.0, "cashBalance": 15000},
    ],
    "contributions": [
        {"accountId": "roth", "amountMonthly": 500, "startDate": "2025-01-01"},
    ],
    "loans": [
        {
            "id": "car",
            "type": "AUTO",
            "name": "Car loan",
            "principal": 12000,
            "aprPct": 4.0,
            "termMonths": 12,
            "startDate": "2025-01-01",
        },
    ],
    "goals": [
        {
            "id": "house",
            "type": "HOME_PURCHASE",
            "name": "Down payment",
            "targetAmountReal": 60000,
            "targetDate": "2026-12-01",
            "priority": 1,
        },
    ],
}


@pytest.fixture
def scenario_input():
    """A fresh, mutable copy of the baseline two-year household."""
    return copy.deepcopy(BASE_INPUT)


@pytest.fixture
def scenario(scenario_input):
    return build_scenario(parse_input(scenario_input))


@pytest.fixture
def deficit_input(scenario_input):
    """Spending outruns income from the first month with no cash cushion."""
    deficit = copy.deepcopy(scenario_input)
    deficit["household"]["startingCash"] = 0
    deficit["expenses"][0]["amount"] = 12000
    return deficit


@pytest.fixture
def mc_options():
    return ProjectionOptions(mode=ProjectionMode.MONTE_CARLO, trial_count=40, seed_base=7, max_workers=1)


@pytest.fixture
def mortgage():
    return loan_from_terms("mortgage", 320_000, 0.065, 360, start_date=date(2025, 1, 1))
