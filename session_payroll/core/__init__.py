"""
Session Payroll core

Matches calendar event titles to clients and turns them into per-client
payroll with exact cent arithmetic.
"""

# Expose main classes for easy imports
from .text_normalizer import normalize, normalize_for_matching
from .client_matcher import ClientMatcher
from .payroll_calculator import PayrollCalculator, calculate_payroll
from .match_review import MatchReviewer

__all__ = [
    'normalize',
    'normalize_for_matching',
    'ClientMatcher',
    'PayrollCalculator',
    'calculate_payroll',
    'MatchReviewer',
]
