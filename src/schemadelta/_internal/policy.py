"""Scoring thresholds and report constants.

Changing a value here changes verdicts for every caller; keep the tests in
tests/test_aggregate.py and tests/test_impact.py in step.
"""

# More NonBreaking changes than this raise the impact level to medium.
IMPACT_NON_BREAKING_THRESHOLD = 2

# Migration complexity bands (operation counts, inclusive).
COMPLEXITY_LOW_MAX_OPERATIONS = 2
COMPLEXITY_MEDIUM_MAX_OPERATIONS = 6

REPORT_VERSION = "1.0"
