"""Configuration constants.

This module contains truly constant values that should NOT be user-configurable.
For configurable values, see models.py (ProjectConfig, LanguageOverride, etc.).
"""

# =============================================================================
# Paths
# =============================================================================

CONFIG_DIR_NAME = ".docplane"
"""Per-project directory holding config.yaml."""

STATE_FILE_NAME = ".docplane-state.json"
"""Content hashes of parsed files, stored in the output directory."""

STATE_FORMAT_VERSION = 2
"""Bumped whenever the state file layout changes; mismatches force a rebuild."""

# =============================================================================
# Extraction Limits
# =============================================================================

MAX_TAB_LENGTH = 16
"""Upper bound for project.tab_length."""

DEEP_PATH_PARTS = 3
"""Default file titles keep this many trailing path parts, prefixed by '...'."""

# =============================================================================
# Reference Scoring
# =============================================================================
# Interpretation scores are spaced so that any enclosing-scope candidate beats
# every using-scope candidate, and every using-scope candidate beats the bare
# global one.  Plural-to-singular interpretations sit one band lower.

SCORE_SCOPE_STEP = 1000
"""Score gap between consecutive enclosing-scope depths."""

SCORE_USING_BASE = 500
"""Base score of using-scope interpretations (below any enclosing scope)."""

SCORE_SINGULAR_PENALTY = 100
"""Subtracted from interpretations derived from a plural link."""
