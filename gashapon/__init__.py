"""
Gashapon.

Shop-scoped redemption codes ("tickets") and prize records over a
document store that only offers key equality and ordered range scans.
"""
__version__ = '1.0.0'
