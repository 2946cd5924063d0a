"""
Derived views over the working set: customer rollups, dashboard
statistics, overdue detection, visit numbering and invoice totals.
"""
