"""
Expense Tracker - Source Package

A personal expense tracker whose core is a budget analytics engine:
daily budget status, streaks, achievements, trends and a financial
health score, all derived from a plain log of expense records.

DESIGN PRINCIPLES:
1. The expense log and the profile are the only source of truth
2. Every derived view is recomputed from scratch, never patched in place
3. Time is always passed in explicitly (no hidden "now")
4. Reject malformed input at the boundary, never mid-computation
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Expense Tracker Team"
