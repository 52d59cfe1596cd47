"""
Tests for the command-line entry point: exit codes, output formats and
signal handling. The verification run itself is mocked.
"""

import io
import json
import logging
import signal
import unittest
from contextlib import redirect_stderr, redirect_stdout
from typing import Any, Dict, List
from unittest.mock import MagicMock, patch

import run_infra_verifier
from src.infra_verifier.report import ResultAggregator
from src.infra_verifier.types import ScenarioResult


def aggregator_with(*results: ScenarioResult) -> ResultAggregator:
    aggregator = ResultAggregator()
    for result in results:
        aggregator.record(result)
    return aggregator


class TestRunInfraVerifierCli(unittest.TestCase):
    """Tests for run_infra_verifier.main()."""

    def setUp(self) -> None:
        logger = logging.getLogger("infra_verifier")
        self.addCleanup(logger.setLevel, logger.level)
        self.handlers: Dict[int, Any] = {}
        signal_patch = patch(
            "run_infra_verifier.signal.signal",
            side_effect=lambda signum, handler: self.handlers.__setitem__(signum, handler),
        )
        signal_patch.start()
        self.addCleanup(signal_patch.stop)

    def run_main(self, argv: List[str], env: Dict[str, str]) -> Any:
        stdout = io.StringIO()
        with patch("sys.argv", ["run_infra_verifier.py"] + argv), patch.dict(
            "os.environ", env, clear=True
        ), redirect_stdout(stdout), redirect_stderr(io.StringIO()):
            with self.assertRaises(SystemExit) as context:
                run_infra_verifier.main()
        return context.exception.code, stdout.getvalue()

    @patch("run_infra_verifier.run_verification")
    def test_all_passed_exits_zero(self, mock_run: MagicMock) -> None:
        mock_run.return_value = aggregator_with(ScenarioResult(name="a", passed=True))
        code, output = self.run_main(["--scenario", "plan_validation"], {"INFRA_DIR": "/infra"})
        self.assertEqual(code, 0)
        self.assertIn("INFRASTRUCTURE VERIFICATION REPORT", output)
        config, scenarios, _ = mock_run.call_args[0]
        self.assertEqual(config.infra_dir, "/infra")
        self.assertEqual([s.name for s in scenarios], ["plan_validation"])

    @patch("run_infra_verifier.run_verification")
    def test_any_failure_exits_one(self, mock_run: MagicMock) -> None:
        mock_run.return_value = aggregator_with(
            ScenarioResult(name="a", passed=True),
            ScenarioResult(name="b", passed=False, error="ProvisioningError: apply failed"),
        )
        code, output = self.run_main(["--output-format", "json"], {"INFRA_DIR": "/infra"})
        self.assertEqual(code, 1)
        report = json.loads(output)
        self.assertFalse(report["all_passed"])
        self.assertEqual(report["summary"]["failed"], 1)
        self.assertEqual(report["summary"]["failures"][0]["scenario"], "b")

    @patch("run_infra_verifier.run_verification")
    def test_configuration_error_exits_two(self, mock_run: MagicMock) -> None:
        code, _ = self.run_main([], {})
        self.assertEqual(code, 2)
        mock_run.assert_not_called()

    @patch("run_infra_verifier.run_verification")
    def test_unknown_scenario_exits_two(self, mock_run: MagicMock) -> None:
        code, _ = self.run_main(["--scenario", "nope"], {"INFRA_DIR": "/infra"})
        self.assertEqual(code, 2)
        mock_run.assert_not_called()

    @patch("run_infra_verifier.run_verification")
    def test_command_line_overrides_environment(self, mock_run: MagicMock) -> None:
        mock_run.return_value = aggregator_with(ScenarioResult(name="a", passed=True))
        self.run_main(
            ["--infra-dir", "/other", "--max-parallel", "2", "--log-level", "DEBUG"],
            {"INFRA_DIR": "/infra", "MAX_PARALLEL": "8"},
        )
        config = mock_run.call_args[0][0]
        self.assertEqual(config.infra_dir, "/other")
        self.assertEqual(config.max_parallel, 2)
        self.assertEqual(config.log_level, "DEBUG")
        self.assertEqual(logging.getLogger("infra_verifier").level, logging.DEBUG)

    @patch("run_infra_verifier.run_verification")
    def test_signals_set_the_cancel_event(self, mock_run: MagicMock) -> None:
        seen: Dict[str, bool] = {}

        def run(config: Any, scenarios: Any, cancel_event: Any) -> ResultAggregator:
            seen["before"] = cancel_event.is_set()
            self.handlers[signal.SIGINT](signal.SIGINT, None)
            seen["after"] = cancel_event.is_set()
            return aggregator_with(ScenarioResult(name="a", passed=True))

        mock_run.side_effect = run
        code, _ = self.run_main([], {"INFRA_DIR": "/infra"})
        self.assertIn(signal.SIGTERM, self.handlers)
        self.assertEqual(seen, {"before": False, "after": True})
        # a cancelled run never reports success
        self.assertEqual(code, 1)

    @patch("run_infra_verifier.run_verification")
    def test_list_scenarios(self, mock_run: MagicMock) -> None:
        code, output = self.run_main(["--list-scenarios"], {"INFRA_DIR": "/infra"})
        self.assertEqual(code, 0)
        self.assertIn("drift_detection (drift)", output)
        mock_run.assert_not_called()


if __name__ == "__main__":
    unittest.main()
