"""Sublocation -- sub-leasing / outsourced service billing records.

Discount and net values are always derived server-side from the service
value and discount percentage.
"""
