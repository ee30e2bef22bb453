"""
Domain: scoring weights and thresholds.

Every number the opportunity score depends on lives here so the rule set can be
reviewed and tested apart from the scoring control flow in `domain/scoring.py`.

All weights are integers; the score is built by integer addition from BASE_SCORE
and clamped once to [SCORE_MIN, SCORE_MAX].
"""

from __future__ import annotations

BASE_SCORE: int = 50
SCORE_MIN: int = 0
SCORE_MAX: int = 100

# Structured data and meta tags
SCHEMA_WEIGHT: int = 10
FAQ_WEIGHT: int = 8
ORG_WEIGHT: int = 7
META_TITLE_WEIGHT: int = 5
META_DESC_WEIGHT: int = 5

# Largest Contentful Paint (milliseconds)
LCP_GOOD_MS: int = 2500
LCP_FAIR_MS: int = 4000
LCP_GOOD_WEIGHT: int = 10
LCP_FAIR_WEIGHT: int = 5

# Traffic trend
TRAFFIC_GROWING_WEIGHT: int = 10
TRAFFIC_DECLINING_WEIGHT: int = -10

# Content freshness (months since last update)
FRESH_RECENT_MONTHS: int = 3
FRESH_RECENT_WEIGHT: int = 8
FRESH_OK_MONTHS: int = 6
FRESH_OK_WEIGHT: int = 4
STALE_MONTHS: int = 12
STALE_WEIGHT: int = -5

# Each recorded issue costs this many points
ISSUE_PENALTY: int = 2

# Meta tag length windows (inclusive, characters)
META_TITLE_MIN_LEN: int = 30
META_TITLE_MAX_LEN: int = 60
META_DESC_MIN_LEN: int = 120
META_DESC_MAX_LEN: int = 160

# Tier notes stored on the lead
STRONG_OPPORTUNITY_BELOW: int = 70
MODERATE_OPPORTUNITY_BELOW: int = 85

# Report/UI priority bands (deliberately different thresholds from the tier notes)
HIGH_PRIORITY_BELOW: int = 60
MEDIUM_PRIORITY_BELOW: int = 75
