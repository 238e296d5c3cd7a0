"""
Vanguard portfolio rebalancer.

Computes buy-only orders that move a brokerage account, a Roth IRA and a
traditional IRA toward their target stock/bond allocations across a fixed
catalog of Vanguard index funds, placing the riskiest funds in the Roth IRA.
"""

__version__ = "0.1.0"
