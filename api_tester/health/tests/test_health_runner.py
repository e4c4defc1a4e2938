"""
Tests for health runner module.
"""

from unittest.mock import MagicMock, patch

from api_tester.health import runner

TEST_CONFIGS = [
    ("a.json", {"name": "A", "base_url": "https://a.test", "controllers": {}}),
    ("b.json", {"name": "B", "base_url": "https://b.test", "controllers": {}}),
]

BETTERUPTIME = {
    "token": "secret",
    "heartbeat": "hb-1",
    "create_incident": True,
    "create_grouped_incident": False,
    "incident_options": {},
}

INCIDENT = {"name": "A", "summary": "API test failed!", "description": "x"}


class TestRunApiTests:
    """Tests for run_api_tests function."""

    @patch("api_tester.health.runner.notify.BetterUptime")
    @patch("api_tester.health.runner.APITester")
    @patch("api_tester.health.runner.config.load_test_configs")
    @patch("api_tester.health.runner.config.load_config")
    def test_no_incidents(
        self, mock_config, mock_test_configs, mock_tester, mock_betteruptime
    ):
        """Test a clean run sends only the heartbeat."""
        mock_config.return_value = {"betteruptime": BETTERUPTIME}
        mock_test_configs.return_value = TEST_CONFIGS
        mock_tester.return_value.test.return_value = None

        exit_code = runner.run_api_tests()

        assert exit_code == 0
        assert mock_tester.call_count == 2
        client = mock_betteruptime.return_value
        client.create_incidents.assert_not_called()
        client.heartbeat.assert_called_once()

    @patch("api_tester.health.runner.notify.BetterUptime")
    @patch("api_tester.health.runner.APITester")
    @patch("api_tester.health.runner.config.load_test_configs")
    @patch("api_tester.health.runner.config.load_config")
    def test_incidents_created(
        self, mock_config, mock_test_configs, mock_tester, mock_betteruptime
    ):
        """Test incidents are handed to Better Uptime."""
        mock_config.return_value = {"betteruptime": BETTERUPTIME}
        mock_test_configs.return_value = TEST_CONFIGS
        mock_tester.return_value.test.side_effect = [INCIDENT, None]

        exit_code = runner.run_api_tests()

        assert exit_code == 3
        client = mock_betteruptime.return_value
        client.create_incidents.assert_called_once_with([INCIDENT])
        client.heartbeat.assert_called_once()

    @patch("api_tester.health.runner.notify.BetterUptime")
    @patch("api_tester.health.runner.APITester")
    @patch("api_tester.health.runner.config.load_test_configs")
    @patch("api_tester.health.runner.config.load_config")
    def test_incidents_not_created_when_disabled(
        self, mock_config, mock_test_configs, mock_tester, mock_betteruptime
    ):
        """Test create_incident false only logs incidents."""
        mock_config.return_value = {
            "betteruptime": {**BETTERUPTIME, "create_incident": False}
        }
        mock_test_configs.return_value = TEST_CONFIGS[:1]
        mock_tester.return_value.test.return_value = INCIDENT

        exit_code = runner.run_api_tests()

        assert exit_code == 3
        client = mock_betteruptime.return_value
        client.create_incidents.assert_not_called()
        client.heartbeat.assert_called_once()

    @patch("api_tester.health.runner.notify.BetterUptime")
    @patch("api_tester.health.runner.APITester")
    @patch("api_tester.health.runner.config.load_test_configs")
    @patch("api_tester.health.runner.config.load_config")
    def test_notifier_failure_does_not_propagate(
        self, mock_config, mock_test_configs, mock_tester, mock_betteruptime
    ):
        """Test notifier errors are logged and the heartbeat still runs."""
        mock_config.return_value = {"betteruptime": BETTERUPTIME}
        mock_test_configs.return_value = TEST_CONFIGS[:1]
        mock_tester.return_value.test.return_value = INCIDENT
        client = mock_betteruptime.return_value
        client.create_incidents.side_effect = ValueError("token is required!")

        exit_code = runner.run_api_tests()

        assert exit_code == 3
        client.heartbeat.assert_called_once()

    @patch("api_tester.health.runner.notify.BetterUptime")
    @patch("api_tester.health.runner.config.load_test_configs")
    @patch("api_tester.health.runner.config.load_config")
    def test_heartbeat_after_failed_run(
        self, mock_config, mock_test_configs, mock_betteruptime
    ):
        """Test heartbeat is sent even when loading test configs fails."""
        mock_config.return_value = {"betteruptime": BETTERUPTIME}
        mock_test_configs.side_effect = FileNotFoundError("configs")

        exit_code = runner.run_api_tests()

        assert exit_code == 3
        mock_betteruptime.return_value.heartbeat.assert_called_once()

    @patch("api_tester.health.runner.notify.print_incidents")
    @patch("api_tester.health.runner.notify.BetterUptime")
    @patch("api_tester.health.runner.APITester")
    @patch("api_tester.health.runner.config.load_test_configs")
    @patch("api_tester.health.runner.config.load_config")
    def test_dry_run(
        self,
        mock_config,
        mock_test_configs,
        mock_tester,
        mock_betteruptime,
        mock_print,
    ):
        """Test dry-run prints incidents instead of notifying."""
        mock_config.return_value = {"betteruptime": BETTERUPTIME}
        mock_test_configs.return_value = TEST_CONFIGS[:1]
        mock_tester.return_value.test.return_value = INCIDENT

        exit_code = runner.run_api_tests(dry_run=True)

        assert exit_code == 3
        mock_betteruptime.assert_not_called()
        mock_print.assert_called_once_with([INCIDENT])

    @patch("api_tester.health.runner.APITester")
    @patch("api_tester.health.runner.config.load_test_configs")
    @patch("api_tester.health.runner.config.load_config")
    def test_without_notifier(self, mock_config, mock_test_configs, mock_tester):
        """Test runs without betteruptime config."""
        mock_config.return_value = {}
        mock_test_configs.return_value = TEST_CONFIGS
        mock_tester.return_value.test.return_value = None

        assert runner.run_api_tests() == 0

    @patch("api_tester.health.runner.config.load_test_configs")
    @patch("api_tester.health.runner.config.load_config")
    def test_transport_passed_to_tester(self, mock_config, mock_test_configs):
        """Test the transport reaches every controller request."""
        mock_config.return_value = {}
        mock_test_configs.return_value = [
            (
                "a.json",
                {
                    "name": "A",
                    "base_url": "https://a.test",
                    "default_options": {},
                    "controllers": {"users": {"check_data": True}},
                },
            )
        ]
        transport = MagicMock()
        transport.return_value.json.return_value = {"data": []}

        exit_code = runner.run_api_tests(transport=transport)

        assert exit_code == 0
        transport.assert_called_once_with("https://a.test/users")
