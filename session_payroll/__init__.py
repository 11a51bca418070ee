"""
Session Payroll

Computes therapist payroll from calendar appointments and a client price list.
"""

__version__ = "1.0.0"
