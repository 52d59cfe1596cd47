#!/usr/bin/env python3
"""
Command-line interface for running the Terraform Infrastructure Verifier.

This script provisions the Terraform configuration once per scenario, checks
the live AWS resources and destroys everything again. It requires Terraform
on the PATH and AWS credentials configured (via AWS CLI, environment
variables, or IAM roles).

Usage:
    python run_infra_verifier.py --infra-dir ../infra
    python run_infra_verifier.py --infra-dir ../infra --scenario security_groups --scenario drift_detection
    python run_infra_verifier.py --infra-dir ../infra --scenario-file scenarios.json --output-format json
"""

import argparse
import json
import signal
import sys
import threading
from typing import Any, Dict

from src.config import load_config
from src.errors import ConfigurationError
from src.infra_verifier import run_verification
from src.infra_verifier.core import resolve_scenarios
from src.infra_verifier.report import print_report
from src.utils import setup_logging


def main() -> None:
    """Main entry point for the command-line verifier."""
    parser = argparse.ArgumentParser(
        description="Provision Terraform infrastructure, verify it against AWS and tear it down",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python run_infra_verifier.py --infra-dir ../infra
  python run_infra_verifier.py --infra-dir ../infra --region us-west-2 --log-level DEBUG
  python run_infra_verifier.py --infra-dir ../infra --list-scenarios
        """
    )

    parser.add_argument(
        "--infra-dir",
        help="Terraform configuration directory (default: $INFRA_DIR)"
    )

    parser.add_argument(
        "--region",
        help="AWS region for API calls when a scenario sets none (default: $AWS_REGION or us-east-1)"
    )

    parser.add_argument(
        "--scenario-file",
        help="JSON scenario declaration file (default: built-in catalogue)"
    )

    parser.add_argument(
        "--scenario",
        action="append",
        dest="scenarios",
        help="Run only this scenario; may be repeated"
    )

    parser.add_argument(
        "--list-scenarios",
        action="store_true",
        help="Print the scenario names and exit"
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)"
    )

    parser.add_argument(
        "--max-parallel",
        type=int,
        help="Maximum number of scenarios provisioned at the same time (default: 4)"
    )

    parser.add_argument(
        "--max-retries",
        type=int,
        help="Maximum attempts per AWS read on throttling or network errors (default: 3)"
    )

    parser.add_argument(
        "--unique-id-variable",
        help="Terraform variable that receives a random suffix per scenario"
    )

    parser.add_argument(
        "--output-format",
        choices=["json", "pretty"],
        default="pretty",
        help="Output format for the verification report (default: pretty)"
    )

    args = parser.parse_args()

    overrides: Dict[str, Any] = {
        "infra_dir": args.infra_dir,
        "aws_region": args.region,
        "scenario_file": args.scenario_file,
        "log_level": args.log_level,
        "max_parallel": args.max_parallel,
        "max_retries": args.max_retries,
        "unique_id_variable": args.unique_id_variable,
    }

    try:
        config = load_config(overrides)
        scenarios = resolve_scenarios(config, args.scenarios)
    except ConfigurationError as e:
        print(f"ERROR: {str(e)}", file=sys.stderr)
        sys.exit(2)

    if args.list_scenarios:
        for scenario in scenarios:
            print(f"{scenario.name} ({scenario.mode.value})")
        sys.exit(0)

    # Set up logging
    logger = setup_logging(config.log_level)
    logger.info("Starting infrastructure verification from command line")

    cancel_event = threading.Event()

    def _cancel(signum: int, frame: Any) -> None:
        logger.warning(
            f"Received signal {signum}; cancelling scenarios. "
            f"Running environments will still be destroyed."
        )
        cancel_event.set()

    signal.signal(signal.SIGINT, _cancel)
    signal.signal(signal.SIGTERM, _cancel)

    try:
        aggregator = run_verification(config, scenarios, cancel_event)
    except Exception as e:
        logger.error(f"Error running verification: {str(e)}")
        print(f"ERROR: {str(e)}", file=sys.stderr)
        sys.exit(1)

    # Output results
    if args.output_format == "json":
        print(json.dumps(aggregator.to_dict(), indent=2, default=str))
    else:
        print_report(aggregator)

    # Exit with appropriate code
    if aggregator.all_passed and not cancel_event.is_set():
        logger.info("All scenarios passed. Exiting with code 0")
        sys.exit(0)
    else:
        logger.warning("Verification failed! Exiting with code 1")
        sys.exit(1)


if __name__ == "__main__":
    main()
