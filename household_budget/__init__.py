"""
Household Budget - Source Package

A personal multi-currency household budgeting assistant for a family
that keeps costs in two regions with different currencies.

DESIGN PRINCIPLES:
1. The whole budget is one document, saved after every change
2. Secondary-currency amounts are converted by dividing by the rate
3. Bad input is rejected at the form, never coerced silently
4. Every mutation is logged
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Household Budget Team"
