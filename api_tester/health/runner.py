"""
Health runner - Runs every API test configuration and notifies.

This module coordinates loading configuration, testing and notifying.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from api_tester.health import checks, config, notify
from api_tester.health.tester import APITester

logger = logging.getLogger(__name__)

# Exit codes
EXIT_OK = 0
EXIT_FAIL = 3


def run_api_tests(
    config_path: Optional[str] = None,
    configs_dir: Optional[str] = None,
    dry_run: bool = False,
    transport: Callable[..., Any] = checks.fetch,
) -> int:
    """
    Run all API tests and return exit code.

    Args:
        config_path: Path to the global config file (optional)
        configs_dir: Directory with test configs (optional)
        dry_run: If True, don't notify Better Uptime, print incidents instead
        transport: GET function passed to every tester

    Returns:
        Exit code: 0 (no incidents), 3 (incidents or run failure)
    """
    betteruptime: Optional[notify.BetterUptime] = None
    global_config: Dict[str, Any] = {}
    incidents: List[Dict[str, Any]] = []
    exit_code = EXIT_OK

    try:
        global_config = config.load_config(config_path)

        if global_config.get("betteruptime") and not dry_run:
            betteruptime = notify.BetterUptime(global_config["betteruptime"])
        elif not dry_run:
            logger.error(
                "Missing configuration for betteruptime, "
                "falling back to local logging!"
            )

        incidents = _process(config.load_test_configs(configs_dir), transport)

    except Exception as e:
        logger.error("API tests failed: %s", e, exc_info=True)
        exit_code = EXIT_FAIL

    finally:
        if betteruptime:
            _notify(betteruptime, global_config["betteruptime"], incidents)
        elif dry_run:
            notify.print_incidents(incidents)
        else:
            logger.debug("Completed API checks")
            if incidents:
                logger.warning("Incidents found: %s", incidents)

    if incidents:
        exit_code = EXIT_FAIL

    return exit_code


def _process(
    test_configs: List[Any], transport: Callable[..., Any]
) -> List[Dict[str, Any]]:
    """
    Run one APITester per test configuration.

    Args:
        test_configs: List of (file name, test config)
        transport: GET function

    Returns:
        Incidents of all runs
    """
    incidents: List[Dict[str, Any]] = []

    for file_name, test_config in test_configs:
        logger.info("Starting tester for file %s", file_name)
        incident = APITester(test_config, transport=transport).test()
        if incident:
            incidents.append(incident)
        else:
            logger.debug("No incident for %s", file_name)

    return incidents


def _notify(
    betteruptime: notify.BetterUptime,
    betteruptime_config: Dict[str, Any],
    incidents: List[Dict[str, Any]],
) -> None:
    """
    Hand incidents to Better Uptime and send the heartbeat.

    Notifier failures are logged and never change the run result.
    """
    if incidents:
        if betteruptime_config.get("create_incident"):
            try:
                betteruptime.create_incidents(incidents)
            except Exception as e:
                logger.error("Failed to create incidents: %s", e, exc_info=True)
        else:
            logger.warning("Incidents found: %s", incidents)

    try:
        betteruptime.heartbeat()
    except Exception as e:
        logger.error("Failed to send heartbeat: %s", e, exc_info=True)
