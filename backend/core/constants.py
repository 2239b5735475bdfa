"""
Core constants — **Single Source of Truth** for workflow magic numbers.

Any rule that references one of these values imports it from here
instead of hardcoding it, so the lifecycle engine, serializers and
tests cannot drift apart.
"""

# ── Report progress checkpoints ─────────────────────────────────────
# Progress recorded when an admin assigns a pending report.
ASSIGNMENT_PROGRESS: int = 25

# Progress a report is reset to when an admin rejects its completion.
REJECTION_RESET_PROGRESS: int = 75

# Progress that marks a report as completed.
COMPLETION_PROGRESS: int = 100

MIN_PROGRESS: int = 0
MAX_PROGRESS: int = COMPLETION_PROGRESS

# ── Report text limits ──────────────────────────────────────────────
REPORT_TITLE_MAX_LENGTH: int = 100
REPORT_DESCRIPTION_MAX_LENGTH: int = 1000

# ── Engagement limits ───────────────────────────────────────────────
REPORT_COMMENT_MAX_LENGTH: int = 500
FEEDBACK_COMMENT_MAX_LENGTH: int = 500

# Inclusive bounds of a feedback star rating (overall and per aspect).
MIN_RATING: int = 1
MAX_RATING: int = 5
