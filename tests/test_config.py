"""
Configuration Tests

Tests for environment-driven thresholds, cache TTL and timeouts.
"""

import os
from unittest.mock import patch

import pytest

from glaucoma_risk.config import (
    DEFAULT_THRESHOLDS,
    RiskLevel,
    advice_cache_ttl,
    assessment_timeout,
    load_thresholds,
)
from glaucoma_risk.shared.hashing import canonical_hash, canonicalize


class TestThresholds:
    """Tests for RISK_LOW_MAX / RISK_MODERATE_MAX."""

    def test_defaults(self):
        with patch.dict(os.environ, {"RISK_LOW_MAX": "", "RISK_MODERATE_MAX": ""}):
            thresholds = load_thresholds()

        assert thresholds == DEFAULT_THRESHOLDS
        assert thresholds.low_max == 2
        assert thresholds.moderate_max == 5

    def test_from_env(self):
        with patch.dict(os.environ, {"RISK_LOW_MAX": "3", "RISK_MODERATE_MAX": "7"}):
            thresholds = load_thresholds()

        assert thresholds.classify(3) == RiskLevel.LOW
        assert thresholds.classify(7) == RiskLevel.MODERATE
        assert thresholds.classify(8) == RiskLevel.HIGH

    def test_non_integer_rejected(self):
        with patch.dict(os.environ, {"RISK_LOW_MAX": "two"}):
            with pytest.raises(ValueError, match="RISK_LOW_MAX"):
                load_thresholds()

    def test_inverted_rejected(self):
        with patch.dict(os.environ, {"RISK_LOW_MAX": "6", "RISK_MODERATE_MAX": "5"}):
            with pytest.raises(ValueError):
                load_thresholds()


class TestTimeouts:
    """Tests for cache TTL and assessment timeout settings."""

    def test_cache_ttl(self):
        with patch.dict(os.environ, {"ADVICE_CACHE_TTL_SECONDS": "0"}):
            assert advice_cache_ttl() == 0.0

    def test_assessment_timeout_default(self):
        with patch.dict(os.environ, {"ASSESSMENT_TIMEOUT_SECONDS": ""}):
            assert assessment_timeout() == 15.0

    def test_assessment_timeout_disabled(self):
        with patch.dict(os.environ, {"ASSESSMENT_TIMEOUT_SECONDS": "0"}):
            assert assessment_timeout() is None


class TestCanonicalHash:
    """Tests for audit hashing."""

    def test_key_order_ignored(self):
        assert canonical_hash({"a": 1, "b": 2}) == canonical_hash({"b": 2, "a": 1})

    def test_volatile_fields_ignored(self):
        assert canonical_hash({"a": 1, "created_at": "x"}) == canonical_hash({"a": 1, "created_at": "y"})

    def test_models_dumped(self):
        assert canonicalize(DEFAULT_THRESHOLDS) == '{"low_max":2,"moderate_max":5}'


# Run tests
if __name__ == "__main__":
    pytest.main([__file__, "-v"])
