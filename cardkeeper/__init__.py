"""
Card Keeper - Source Package

A personal credit card tracker for people juggling several cards:
limits, balances, bill statements and payment reminders in one place.

DESIGN PRINCIPLES:
1. The backend owns the data - we only ask for it and show it
2. Validate before anything leaves the browser
3. Every request carries an explicit user session
4. Fail visibly, never silently retry
5. Every user action is auditable
"""

__version__ = "1.0.0"
__author__ = "Card Keeper Team"
