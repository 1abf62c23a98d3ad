"""
Case Disparity Audit

Disparity auditing for criminal-justice case outcomes: ingest a case table,
normalize it, filter it, and measure group disparities against thresholds.
"""

__version__ = "0.1.0"
