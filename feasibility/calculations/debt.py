"""Loan amortization schedule for the project's senior facility."""

from dataclasses import dataclass, field
from typing import List

from ..models.inputs import LoanFacility
from ..models.lookups import RepaymentStyle


@dataclass
class LoanSchedule:
    """Period-indexed loan flows.

    All series share the timeline length; ``outstanding`` is the closing
    balance after each period's repayment.
    """

    drawn: List[float] = field(default_factory=list)
    interest: List[float] = field(default_factory=list)
    repayment: List[float] = field(default_factory=list)
    outstanding: List[float] = field(default_factory=list)
    maturity_period: int = -1  # 0-indexed; -1 when there is no timeline

    @property
    def total_interest(self) -> float:
        """Total interest paid over the schedule."""
        return sum(self.interest)

    @property
    def total_repayment(self) -> float:
        """Total principal repaid over the schedule."""
        return sum(self.repayment)


def calculate_interest_portion(
    balance: float,
    monthly_rate: float,
) -> float:
    """Calculate interest portion of a payment given current balance.

    Args:
        balance: Current loan balance.
        monthly_rate: Monthly interest rate.

    Returns:
        Interest amount for this period.
    """
    return balance * monthly_rate


def get_maturity_period(term_periods: int, period_count: int) -> int:
    """Last period of the loan (0-indexed).

    A zero term, or one longer than the timeline, matures on the final period.
    """
    if period_count <= 0:
        return -1
    if 0 < term_periods < period_count:
        return term_periods - 1
    return period_count - 1


def build_loan_schedule(facility: LoanFacility, period_count: int) -> LoanSchedule:
    """Build draw, interest, and repayment series for a loan facility.

    The full principal is drawn in period 0. Interest accrues monthly on the
    opening balance while anything is outstanding. Repayment starts once the
    grace period has elapsed:

    - bullet: full balance repaid at maturity.
    - equal_installment: balance / periods remaining (to maturity inclusive)
      repaid each period.
    - interest_only: nothing until maturity, then the full balance.

    Any balance left at maturity (e.g. a grace period running past it) is
    repaid in that period, so the closing balance at maturity is exactly zero.

    Args:
        facility: Loan facility terms.
        period_count: Number of periods in the timeline.

    Returns:
        LoanSchedule with per-period series.

    Example:
        >>> facility = LoanFacility(principal=1_000_000, annual_rate=0.08, term_periods=24,
        ...                         repayment_style=RepaymentStyle.BULLET, grace_periods=2)
        >>> schedule = build_loan_schedule(facility, 24)
        >>> schedule.repayment[23]
        1000000.0
    """
    n = max(period_count, 0)
    schedule = LoanSchedule(
        drawn=[0.0] * n,
        interest=[0.0] * n,
        repayment=[0.0] * n,
        outstanding=[0.0] * n,
        maturity_period=get_maturity_period(facility.term_periods, n),
    )
    if n == 0 or facility.principal <= 0:
        return schedule

    maturity = schedule.maturity_period
    monthly_rate = facility.monthly_rate
    style = facility.repayment_style

    outstanding = facility.principal
    schedule.drawn[0] = facility.principal

    for period in range(n):
        if outstanding > 0:
            schedule.interest[period] = calculate_interest_portion(outstanding, monthly_rate)

        if outstanding > 0 and period <= maturity:
            repayment = 0.0

            if period == maturity:
                # Every style clears the balance at maturity
                repayment = outstanding
            elif period >= facility.grace_periods and style == RepaymentStyle.EQUAL_INSTALLMENT:
                periods_remaining = maturity - period + 1
                repayment = outstanding / periods_remaining

            schedule.repayment[period] = repayment
            outstanding = 0.0 if period == maturity else outstanding - repayment

        schedule.outstanding[period] = outstanding

    return schedule
