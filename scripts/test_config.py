#!/usr/bin/env python3
"""
Test script for configuration defaults and runtime secret loading.

Usage:
    python scripts/test_config.py
"""
import os
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.secrets import get_secret, load_secrets_into_config, secret_manager_enabled
from fakes import make_config


def test_defaults():
    print("\n=== Test 1: configuration defaults ===")
    cfg = make_config()
    assert cfg.duplicate_window_hours == 24
    assert cfg.recurring_lookback_days == 90
    assert cfg.sms_rate_limit_max == 100
    assert cfg.sms_rate_limit_window_s == 3600
    assert cfg.log_file == cfg.logs_dir / "app.log"
    assert not cfg.oracle_configured
    assert not cfg.elastic_configured
    print("✅ PASS: analysis and webhook defaults")


def test_log_level_normalized():
    assert make_config(log_level="debug").log_level == "DEBUG"
    assert make_config(log_level="chatty").log_level == "INFO"
    print("✅ PASS: log level upper-cased, unknown levels fall back to INFO")


def test_configured_flags():
    cfg = make_config(gcp_project_id="demo", oracle_enabled=True, elastic_cloud_endpoint="https://es", elastic_api_key="k")
    assert cfg.oracle_configured
    assert cfg.elastic_configured
    assert not make_config(gcp_project_id="demo", oracle_enabled=False).oracle_configured
    print("✅ PASS: oracle and elastic flags")


def test_secrets_from_environment():
    print("\n=== Test 2: secrets outside production ===")
    cfg = make_config()
    previous = os.environ.get("USE_SECRET_MANAGER")
    os.environ["USE_SECRET_MANAGER"] = "true"
    os.environ["SPENDWISE_TEST_SECRET"] = "from-env"
    try:
        assert not secret_manager_enabled(cfg)
        assert get_secret("SPENDWISE_TEST_SECRET", cfg=cfg) == "from-env"
        assert get_secret("SPENDWISE_MISSING_SECRET", default="fallback", cfg=cfg) == "fallback"
        assert load_secrets_into_config(cfg) == []
        assert cfg.sms_webhook_key == "test-key"
    finally:
        del os.environ["SPENDWISE_TEST_SECRET"]
        if previous is None:
            del os.environ["USE_SECRET_MANAGER"]
        else:
            os.environ["USE_SECRET_MANAGER"] = previous
    print("✅ PASS: environment variables used, config untouched")


def run_all_tests():
    print("=" * 60)
    print("CONFIG TESTS")
    print("=" * 60)
    test_defaults()
    test_log_level_normalized()
    test_configured_flags()
    test_secrets_from_environment()
    print("\n✅ ALL TESTS PASSED")


if __name__ == "__main__":
    try:
        run_all_tests()
    except AssertionError as e:
        print(f"\n❌ TEST FAILED: {e}")
        sys.exit(1)
