"""Tests for the Deterministic Projector."""

from datetime import date

import numpy as np
import pytest

from core.config import ProjectionOptions
from core.schema import MONTHLY_COLUMNS, WarningCode
from data_prep.loader import IMPLICIT_CASH_ACCOUNT_ID, build_scenario, parse_input
from distributions.prices import StaticPriceSource
from engine.projector import Projector, ProjectorState, project_deterministic


def _codes(run):
    return [w.code for w in run.warnings]


class TestStepping:
    def test_one_snapshot_per_month_dated_at_window_end(self, scenario):
        run = Projector(scenario).run()
        assert len(run.snapshots) == 24
        assert run.dates[0] == date(2025, 2, 1)
        assert run.dates[-1] == date(2027, 1, 1)
        assert run.dates == sorted(run.dates)

    def test_partial_first_month(self, scenario_input):
        scenario_input["household"]["startDate"] = "2025-01-15"
        run = Projector(build_scenario(parse_input(scenario_input))).run()
        assert run.dates[0] == date(2025, 2, 1)
        assert len(run.snapshots) == 24

    def test_net_worth_identity(self, scenario):
        for s in Projector(scenario).run().snapshots:
            assert s.net_worth == pytest.approx(s.total_assets - s.total_liabilities, abs=0.01)
            assert s.total_assets == pytest.approx(sum(s.per_account_balances.values()), abs=0.05)

    def test_contribution_lands_in_target_account(self, scenario):
        first = Projector(scenario).run().snapshots[0]
        assert first.per_account_balances["roth"] == pytest.approx(15_500 * 1.07 ** (1 / 12), abs=0.01)

    def test_holdings_keep_price_by_default(self, scenario):
        first = Projector(scenario).run().snapshots[0]
        brokerage_cash = 1000 * 1.06 ** (1 / 12)
        assert first.per_account_balances["brokerage"] == pytest.approx(20_000 + brokerage_cash, abs=0.01)

    def test_quoted_prices_revalue_holdings(self, scenario):
        first = Projector(scenario, price_source=StaticPriceSource({"VTI": 250})).run().snapshots[0]
        assert first.per_account_balances["brokerage"] > 25_000

    def test_monthly_breakdown(self, scenario):
        frame = Projector(scenario).run().monthly_frame()
        assert list(frame.columns) == list(MONTHLY_COLUMNS)
        assert len(frame) == 24
        july = frame[frame["date"] == date(2025, 8, 1)].iloc[0]
        # inflated rent plus the one-time vacation
        assert 6500 < july["expenses"] < 6600
        assert july["contributions"] == 500

    def test_annual_summary_groups_by_step_year(self, scenario):
        annual = Projector(scenario).run().annual_frame()
        assert annual["year"].tolist() == [2025, 2026]
        assert (annual["income"] == 108_000).all()

    def test_same_inputs_same_output(self, scenario):
        assert Projector(scenario).run() == Projector(scenario).run()


class TestLifecycle:
    def test_state_machine(self, scenario):
        projector = Projector(scenario)
        assert projector.state is ProjectorState.INITIALIZED
        projector.run()
        assert projector.state is ProjectorState.COMPLETE

    def test_cannot_run_twice(self, scenario):
        projector = Projector(scenario)
        projector.run()
        with pytest.raises(RuntimeError):
            projector.run()

    def test_scenario_not_mutated(self, scenario):
        before = scenario.accounts
        project_deterministic(scenario)
        assert scenario.accounts == before
        assert scenario.accounts[0].cash_balance == 20_000

    def test_return_path_shape_checked(self, scenario):
        with pytest.raises(ValueError):
            Projector(scenario, return_path=np.zeros((3, 3)))

    def test_return_path_drives_cash(self, scenario):
        path = np.zeros((24, len(scenario.accounts)))
        run = Projector(scenario, return_path=path).run()
        assert run.snapshots[0].per_account_balances["roth"] == pytest.approx(15_500)


class TestLoans:
    def test_loan_paid_off_inside_horizon(self, scenario):
        run = Projector(scenario).run()
        assert run.snapshots[-1].per_loan_balances["car"] == 0.0
        paid = [w for w in run.warnings if w.code is WarningCode.LOAN_PAID_OFF]
        assert len(paid) == 1
        assert paid[0].severity == "info"

    def test_payments_stop_after_payoff(self, scenario):
        frame = Projector(scenario).run().monthly_frame()
        assert (frame["loan_payments"].iloc[:12] > 0).all()
        assert (frame["loan_payments"].iloc[12:] == 0).all()

    def test_loan_starting_later_is_dormant(self, scenario_input):
        scenario_input["loans"][0]["startDate"] = "2026-01-01"
        frame = Projector(build_scenario(parse_input(scenario_input))).run().monthly_frame()
        assert (frame["loan_payments"].iloc[:12] == 0).all()
        assert (frame["loan_payments"].iloc[12:] > 0).all()


class TestTaxes:
    def test_calendar_years_settle_at_year_end(self, scenario):
        run = Projector(scenario).run()
        assert [t.tax_year for t in run.taxes] == [2025, 2026]
        frame = run.monthly_frame()
        assert (frame["taxes"] > 0).sum() == 2
        assert frame["taxes"].iloc[11] == run.taxes[0].total

    def test_fiscal_year_boundary(self, scenario):
        run = Projector(scenario, ProjectionOptions(tax_year_start_month=7)).run()
        assert [t.tax_year for t in run.taxes] == [2025, 2026, 2027]

    def test_partial_year_can_be_skipped(self, scenario):
        options = ProjectionOptions(tax_year_start_month=7, settle_partial_tax_year=False)
        assert len(Projector(scenario, options).run().taxes) == 2

    def test_yields_accrue_only_on_taxable_accounts(self, scenario_input):
        scenario_input["incomes"] = []
        scenario_input["accounts"] = [scenario_input["accounts"][1]]
        scenario_input["household"]["cashAccountId"] = "roth"
        run = Projector(build_scenario(parse_input(scenario_input))).run()
        assert all(t.gross_income == 0.0 for t in run.taxes)

    def test_interest_on_implicit_cash_is_taxed(self, scenario):
        run = Projector(scenario).run()
        assert run.taxes[0].gross_income > 108_000
        assert run.taxes[0].preferential_income > 0

    def test_high_tax_drag_warning(self, scenario):
        run = Projector(scenario, ProjectionOptions(high_tax_drag_threshold=0.10)).run()
        assert WarningCode.HIGH_TAX_DRAG in _codes(run)
        assert WarningCode.HIGH_TAX_DRAG not in _codes(Projector(scenario).run())


class TestWarnings:
    def test_deficit_floors_cash_and_warns(self, deficit_input):
        run = Projector(build_scenario(parse_input(deficit_input))).run()
        assert WarningCode.DEFICIT_MONTH in _codes(run)
        assert all(s.per_account_balances[IMPLICIT_CASH_ACCOUNT_ID] >= 0 for s in run.snapshots)

    def test_goal_met_raises_no_warning(self, scenario):
        assert WarningCode.GOAL_SHORTFALL not in _codes(Projector(scenario).run())

    def test_goal_shortfall_severity_follows_priority(self, scenario_input):
        scenario_input["goals"][0]["targetAmountReal"] = 10_000_000
        run = Projector(build_scenario(parse_input(scenario_input))).run()
        shortfalls = [w for w in run.warnings if w.code is WarningCode.GOAL_SHORTFALL]
        assert len(shortfalls) == 1
        assert shortfalls[0].severity == "error"

        scenario_input["goals"][0]["priority"] = 3
        run = Projector(build_scenario(parse_input(scenario_input))).run()
        assert [w.severity for w in run.warnings if w.code is WarningCode.GOAL_SHORTFALL] == ["warn"]


class TestShortfall:
    @pytest.fixture
    def lean_input(self, scenario_input):
        """No cushion, no yields and no tax, so every dollar is easy to follow."""
        scenario_input["household"].update(startingCash=0, endDate="2027-01-01")
        scenario_input["assumptions"] = {"inflationRatePct": 0.0}
        scenario_input["taxProfile"].update(stateCode="TX", includePayrollTaxes=False)
        scenario_input["incomes"] = []
        scenario_input["expenses"] = []
        scenario_input["loans"] = []
        scenario_input["goals"] = []
        scenario_input["accounts"] = [
            {"id": "roth", "name": "Roth IRA", "type": "ROTH", "expectedReturnPct": 0.0, "cashBalance": 0},
        ]
        return scenario_input

    def test_contribution_without_cash_is_not_funded(self, lean_input):
        run = Projector(build_scenario(parse_input(lean_input))).run()
        last = run.snapshots[-1]
        assert last.net_worth == 0.0
        assert last.per_account_balances["roth"] == 0.0
        frame = run.monthly_frame()
        assert (frame["contributions"] == 0).all()
        assert (frame["unfunded_contributions"] == 500).all()
        deficits = [w for w in run.warnings if w.code is WarningCode.DEFICIT_MONTH]
        assert len(deficits) == 24
        assert "$500.00 of contributions not funded" in deficits[0].message

    def test_contribution_capped_at_available_cash(self, lean_input):
        lean_input["incomes"] = [
            {"id": "gig", "amount": 300, "frequency": "MONTHLY", "startDate": "2025-01-01"},
        ]
        run = Projector(build_scenario(parse_input(lean_input))).run()
        first = run.monthly_frame().iloc[0]
        assert first["contributions"] == 300
        assert first["unfunded_contributions"] == 200
        assert run.snapshots[-1].per_account_balances["roth"] == pytest.approx(300 * 24)
        assert run.snapshots[-1].net_worth == pytest.approx(300 * 24)

    def test_unpaid_expenses_become_arrears(self, lean_input):
        lean_input["contributions"] = []
        lean_input["incomes"] = [
            {"id": "gig", "amount": 1000, "frequency": "MONTHLY", "startDate": "2025-01-01"},
        ]
        lean_input["expenses"] = [
            {"id": "rent", "amount": 3000, "frequency": "MONTHLY", "startDate": "2025-01-01"},
        ]
        run = Projector(build_scenario(parse_input(lean_input))).run()
        last = run.snapshots[-1]
        assert last.arrears == pytest.approx(48_000)
        assert last.total_liabilities == pytest.approx(48_000)
        assert last.net_worth == pytest.approx(-48_000)
        assert (run.monthly_frame()["shortfall"] == 2000).all()

    def test_loan_paid_without_cash_keeps_net_worth(self, lean_input):
        lean_input["contributions"] = []
        lean_input["loans"] = [
            {"id": "car", "principal": 12000, "aprPct": 0.0, "termMonths": 12, "startDate": "2025-01-01"},
        ]
        run = Projector(build_scenario(parse_input(lean_input))).run()
        for s in run.snapshots:
            assert s.net_worth == pytest.approx(-12_000, abs=0.05)
        assert run.snapshots[-1].per_loan_balances["car"] == 0.0
        assert run.snapshots[-1].arrears == pytest.approx(12_000, abs=0.05)

    def test_later_surplus_repays_arrears_first(self, lean_input):
        lean_input["contributions"] = []
        lean_input["household"]["endDate"] = "2025-04-01"
        lean_input["incomes"] = [
            {"id": "gig", "amount": 1000, "frequency": "MONTHLY", "startDate": "2025-01-01"},
        ]
        lean_input["expenses"] = [
            {"id": "repair", "amount": 2500, "frequency": "ONE_TIME", "startDate": "2025-01-01"},
        ]
        run = Projector(build_scenario(parse_input(lean_input))).run()
        assert [s.arrears for s in run.snapshots] == [1500, 500, 0]
        assert run.snapshots[-1].per_account_balances[IMPLICIT_CASH_ACCOUNT_ID] == 500
        assert [s.net_worth for s in run.snapshots] == [-1500, -500, 500]
