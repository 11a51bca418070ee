"""Command line tools (payroll-init, payroll-calc, payroll-review)"""
