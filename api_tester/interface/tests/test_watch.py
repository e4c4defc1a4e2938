"""
Tests for the API tester CLI.
"""

from unittest.mock import patch

from api_tester.interface import watch


class TestMain:
    """Tests for main function."""

    @patch("api_tester.interface.watch.run_api_tests")
    def test_arguments_forwarded(self, mock_run, monkeypatch):
        """Test CLI arguments reach the runner."""
        mock_run.return_value = 0
        monkeypatch.setattr(
            "sys.argv",
            ["api-tester", "--config", "c.json", "--configs-dir", "tests", "--dry-run"],
        )

        assert watch.main() == 0
        mock_run.assert_called_once_with(
            config_path="c.json", configs_dir="tests", dry_run=True
        )

    @patch("api_tester.interface.watch.run_api_tests")
    def test_incidents_exit_code(self, mock_run, monkeypatch):
        """Test the runner exit code is returned."""
        mock_run.return_value = 3
        monkeypatch.setattr("sys.argv", ["api-tester"])

        assert watch.main() == 3

    @patch("api_tester.interface.watch.run_api_tests")
    def test_interrupted(self, mock_run, monkeypatch):
        """Test KeyboardInterrupt exit code."""
        mock_run.side_effect = KeyboardInterrupt
        monkeypatch.setattr("sys.argv", ["api-tester"])

        assert watch.main() == 130

    @patch("api_tester.interface.watch.run_api_tests")
    def test_unexpected_error(self, mock_run, monkeypatch):
        """Test unexpected errors map to FAIL."""
        mock_run.side_effect = RuntimeError("boom")
        monkeypatch.setattr("sys.argv", ["api-tester"])

        assert watch.main() == 3


class TestBuildParser:
    """Tests for build_parser function."""

    def test_defaults(self):
        """Test defaults leave path resolution to the config loader."""
        args = watch.build_parser().parse_args([])

        assert args.config is None
        assert args.configs_dir is None
        assert args.dry_run is False
        assert args.verbose is False
