"""
Health module - Configuration-driven API health checks.

This module runs declarative checks against API controllers, summarizes the
failures of a run into an incident and hands it to Better Uptime.
"""

from api_tester.health.checks import check_missing_properties
from api_tester.health.config import load_config, load_test_configs
from api_tester.health.runner import run_api_tests
from api_tester.health.tester import APITester, summarize

__all__ = [
    "APITester",
    "check_missing_properties",
    "load_config",
    "load_test_configs",
    "run_api_tests",
    "summarize",
]
