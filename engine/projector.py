"""
Deterministic Projector: the monthly time-stepping loop.

State machine: INITIALIZED -> STEPPING -> COMPLETE.

Per step (one calendar month, clipped to the horizon), in this fixed order:
  1. expand every definition inside the window
  2. amortize every active loan; payments leave the sweep account
  3. fund contributions from the sweep cash left after income, expenses,
     loan payments and arrears; the rest is reported as unfunded
  4. inject the net cash delta into the sweep account, accrue taxable
     yields, then grow every account
  5. settle tax if the step closes a tax year (or is the final step)
  6. emit a ProjectionSnapshot dated at the window end

Sweep cash never goes negative. Whatever it cannot pay is carried as
arrears, counted in total liabilities and repaid from later surpluses.

The projector owns no I/O. A Monte Carlo trial is the same loop fed a
sampled return path and a matching price source.
"""

from __future__ import annotations

import logging
from datetime import date
from enum import Enum
from typing import Dict, List, Optional, Tuple

import numpy as np

from core.config import ProjectionOptions
from core.schema import AccountType, CashFlowKind, LoanStatus, WarningCode
from core.types import AccountState, LoanState, ProjectionSnapshot, Scenario
from core.utils import closes_tax_year, round_money, step_windows, tax_year_of
from distributions.prices import PriceSource, StaticPriceSource

from .aggregate import funded_balance, goal_target_nominal, snapshot_at
from .cashflow import expand_all
from .events import CashFlowEvent, EngineWarning, TaxableCategory, TaxableEvent
from .growth import apply_growth, credit_cash
from .loans import MONTH_FRACTION, amortize_step
from .result import ProjectionRun
from .taxes import TaxLiability, check_jurisdiction, settle_year

logger = logging.getLogger(__name__)


class ProjectorState(str, Enum):
    INITIALIZED = "INITIALIZED"
    STEPPING = "STEPPING"
    COMPLETE = "COMPLETE"


class Projector:
    """
    One projection of one scenario.

    Usage:
        run = Projector(scenario, options).run()
        run.snapshots[-1].net_worth

    Parameters
    ----------
    scenario : Scenario
        Validated, normalized input. Never mutated.
    options : ProjectionOptions, optional
    price_source : PriceSource, optional
        Holding prices per step. Defaults to StaticPriceSource(), which holds
        every holding at its last known price.
    return_path : np.ndarray, optional
        (n_steps x n_accounts) sampled period returns, columns in
        ``scenario.accounts`` order. Replaces expected-return compounding.
    """

    def __init__(
        self,
        scenario: Scenario,
        options: Optional[ProjectionOptions] = None,
        price_source: Optional[PriceSource] = None,
        return_path: Optional[np.ndarray] = None,
    ):
        self.scenario = scenario
        self.options = options or ProjectionOptions()
        self.price_source = price_source or StaticPriceSource()
        self.windows = step_windows(scenario.start_date, scenario.end_date)
        if return_path is not None:
            return_path = np.asarray(return_path, dtype=float)
            expected = (len(self.windows), len(scenario.accounts))
            if return_path.shape != expected:
                raise ValueError(f"return_path must have shape {expected}, got {return_path.shape}")
        self.return_path = return_path
        self.state = ProjectorState.INITIALIZED

        self._accounts: Dict[str, AccountState] = {a.account_id: a for a in scenario.accounts}
        self._loans: Dict[str, LoanState] = {loan.loan_id: loan for loan in scenario.loans}
        self._other_income = {
            d.source_id
            for d in scenario.definitions
            if d.kind is CashFlowKind.INCOME and not d.is_wage
        }
        self._pending_tax: List[TaxableEvent] = []
        self._snapshots: List[ProjectionSnapshot] = []
        self._monthly: List[dict] = []
        self._taxes: List[TaxLiability] = []
        self._warnings: List[EngineWarning] = []
        self._arrears = 0.0

    # ------------------------------------------------------------------
    # public
    # ------------------------------------------------------------------

    def run(self) -> ProjectionRun:
        if self.state is not ProjectorState.INITIALIZED:
            raise RuntimeError(f"Projector already used (state={self.state.value})")
        check_jurisdiction(self.scenario.tax_profile, self.options.tax_tables)

        self.state = ProjectorState.STEPPING
        last = len(self.windows) - 1
        for k, (window_start, window_end, fraction) in enumerate(self.windows):
            self._step(k, window_start, window_end, fraction, is_final=(k == last))
        self.state = ProjectorState.COMPLETE

        self._check_goals()
        logger.debug(
            "Projected %s: %d steps, %d tax years, %d warnings",
            self.scenario.scenario_id, len(self._snapshots), len(self._taxes), len(self._warnings),
        )
        return ProjectionRun(
            snapshots=tuple(self._snapshots),
            monthly=tuple(self._monthly),
            taxes=tuple(self._taxes),
            warnings=tuple(self._warnings),
        )

    # ------------------------------------------------------------------
    # one step
    # ------------------------------------------------------------------

    def _step(self, k: int, window_start: date, window_end: date, fraction: float, is_final: bool) -> None:
        sc = self.scenario
        sweep = sc.sweep_account_id

        # 1. cash-flow deltas
        events = expand_all(sc.definitions, window_start, window_end, sc.assumptions.inflation_rate)
        income = expenses = 0.0
        transfers: List[CashFlowEvent] = []
        for ev in events:
            if ev.kind is CashFlowKind.INCOME:
                income += ev.amount
                self._pending_tax.append(self._income_tax_event(ev))
            elif ev.kind is CashFlowKind.EXPENSE:
                expenses += ev.amount
            elif ev.kind is CashFlowKind.CONTRIBUTION:
                transfers.append(ev)

        # 2. loan amortization
        loan_payments = 0.0
        for loan_id, loan in self._loans.items():
            new_loan, payment = amortize_step(loan, window_start, MONTH_FRACTION)
            if payment is not None:
                loan_payments += payment.amount
            if new_loan.status is LoanStatus.PAID_OFF and loan.status is not LoanStatus.PAID_OFF:
                self._warn(
                    WarningCode.LOAN_PAID_OFF, "info",
                    f"Loan {loan.name or loan_id} paid off", window_start,
                )
            self._loans[loan_id] = new_loan

        # 3. contributions draw on what the sweep holds after this month's flows
        available = self._accounts[sweep].cash_balance + income - expenses - loan_payments - self._arrears
        contributions = unfunded = 0.0
        for ev in transfers:
            funded = min(ev.amount, max(available, 0.0))
            available -= funded
            contributions += funded
            unfunded += ev.amount - funded
            if funded > 0:
                target = ev.account_id or sweep
                self._accounts[target] = credit_cash(self._accounts[target], funded)

        # 4. inject net delta, accrue yields, grow
        net_delta = income - expenses - contributions - loan_payments
        shortfall = self._debit_sweep(net_delta)
        if shortfall > 0 or unfunded > 0:
            self._warn_deficit(window_start, shortfall, unfunded)
        self._accrue_yields(window_end, fraction)

        assets_before = self._total_assets()
        for j, account in enumerate(sc.accounts):
            current = self._accounts[account.account_id]
            period_return = None if self.return_path is None else float(self.return_path[k, j])
            prices = self.price_source.prices_for(account.account_id, k)
            self._accounts[account.account_id] = apply_growth(current, fraction, period_return, prices)
        investment_returns = self._total_assets() - assets_before

        # 5. tax settlement
        taxes = 0.0
        start_month = self.options.tax_year_start_month
        if closes_tax_year(window_start, window_end, start_month) or (
            is_final and self.options.settle_partial_tax_year and self._pending_tax
        ):
            taxes, unpaid_tax = self._settle(tax_year_of(window_start, start_month), window_end)
            shortfall += unpaid_tax

        # 6. snapshot
        snapshot = self._snapshot(window_end)
        self._snapshots.append(snapshot)
        self._monthly.append(
            {
                "date": window_end,
                "income": round_money(income),
                "expenses": round_money(expenses),
                "taxes": round_money(taxes),
                "loan_payments": round_money(loan_payments),
                "contributions": round_money(contributions),
                "unfunded_contributions": round_money(unfunded),
                "shortfall": round_money(shortfall),
                "investment_returns": round_money(investment_returns),
                "net_cashflow": round_money(net_delta - taxes),
                "assets_end": snapshot.total_assets,
                "liabilities_end": snapshot.total_liabilities,
            }
        )

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------

    def _income_tax_event(self, ev: CashFlowEvent) -> TaxableEvent:
        category = TaxableCategory.OTHER_INCOME if ev.source_id in self._other_income else TaxableCategory.WAGES
        return TaxableEvent(date=ev.date, amount=ev.amount, category=category, source_id=ev.source_id)

    def _debit_sweep(self, delta: float) -> float:
        """Apply ``delta`` to the sweep cash and return the part it could not cover.

        Cash never goes below zero. The uncovered part is carried as arrears,
        a liability that later surpluses pay down before cash builds up again.
        """
        sweep = self.scenario.sweep_account_id
        account = self._accounts[sweep]
        cash = account.cash_balance + delta
        shortfall = 0.0
        if cash < 0:
            shortfall = -cash
            self._arrears += shortfall
            cash = 0.0
        elif self._arrears > 0:
            repaid = min(cash, self._arrears)
            self._arrears -= repaid
            cash -= repaid
        self._accounts[sweep] = credit_cash(account, cash - account.cash_balance)
        return shortfall

    def _warn_deficit(self, on: date, shortfall: float, unfunded: float) -> None:
        parts = []
        if shortfall > 0:
            parts.append(f"Projected deficit of ${shortfall:,.2f}")
        if unfunded > 0:
            parts.append(f"${unfunded:,.2f} of contributions not funded")
        self._warn(WarningCode.DEFICIT_MONTH, "warn", f"{'; '.join(parts)} in {on:%Y-%m}", on)

    def _accrue_yields(self, on: date, fraction: float) -> None:
        """Taxable yields on TAXABLE accounts; balances are not touched."""
        a = self.scenario.assumptions
        for account in self._accounts.values():
            if account.account_type is not AccountType.TAXABLE:
                continue
            held = account.holdings_value
            accruals = (
                (TaxableCategory.INTEREST, account.cash_balance * a.taxable_interest_yield),
                (TaxableCategory.DIVIDEND, held * a.taxable_dividend_yield),
                (TaxableCategory.ST_GAIN, held * a.realized_st_gain),
                (TaxableCategory.LT_GAIN, held * a.realized_lt_gain),
            )
            for category, annual in accruals:
                amount = annual * fraction
                if amount > 0:
                    self._pending_tax.append(
                        TaxableEvent(date=on, amount=amount, category=category, source_id=account.account_id)
                    )

    def _settle(self, tax_year: int, on: date) -> Tuple[float, float]:
        """Settle one tax year; returns the liability and the part cash could not pay."""
        liability = settle_year(self._pending_tax, self.scenario.tax_profile, self.options.tax_tables, tax_year)
        self._pending_tax = []
        self._taxes.append(liability)
        if liability.effective_rate > self.options.high_tax_drag_threshold:
            self._warn(
                WarningCode.HIGH_TAX_DRAG, "warn",
                f"Effective tax rate {liability.effective_rate:.1%} in {tax_year}", on,
            )
        unpaid = self._debit_sweep(-liability.total)
        if unpaid > 0:
            self._warn_deficit(on, unpaid, 0.0)
        return liability.total, unpaid

    def _total_assets(self) -> float:
        return sum(a.balance for a in self._accounts.values())

    def _snapshot(self, on: date) -> ProjectionSnapshot:
        accounts = {k: round_money(a.balance) for k, a in self._accounts.items()}
        loans = {k: round_money(loan.remaining_balance) for k, loan in self._loans.items()}
        assets = round_money(sum(a.balance for a in self._accounts.values()))
        liabilities = round_money(sum(loan.remaining_balance for loan in self._loans.values()) + self._arrears)
        return ProjectionSnapshot(
            date=on,
            net_worth=round_money(assets - liabilities),
            total_assets=assets,
            total_liabilities=liabilities,
            per_account_balances=accounts,
            per_loan_balances=loans,
            arrears=round_money(self._arrears),
        )

    def _check_goals(self) -> None:
        sc = self.scenario
        for goal in sc.goals:
            snap = snapshot_at(self._snapshots, goal.target_date)
            if snap is None:
                continue
            target = goal_target_nominal(goal, sc.start_date, sc.assumptions.inflation_rate)
            have = funded_balance(snap, goal)
            if have < target:
                self._warn(
                    WarningCode.GOAL_SHORTFALL,
                    "error" if goal.priority == 1 else "warn",
                    f'Goal "{goal.name}" may fall short by ${target - have:,.2f}',
                    goal.target_date,
                )

    def _warn(self, code: WarningCode, severity: str, message: str, on: Optional[date]) -> None:
        self._warnings.append(EngineWarning(code=code, severity=severity, message=message, at=on))


def project_deterministic(
    scenario: Scenario,
    options: Optional[ProjectionOptions] = None,
    price_source: Optional[PriceSource] = None,
) -> ProjectionRun:
    return Projector(scenario, options, price_source=price_source).run()

