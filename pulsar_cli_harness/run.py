#!/usr/bin/env python3
"""
Scenario runner for the Pulsar CLI harness.

Runs the selected CLI scenarios against a running cluster, one after the
other, and prints a summary table. Cluster location comes from the
PULSAR_HARNESS_* environment variables (see config.py).

Usage:
    python -m pulsar_cli_harness                       # every scenario
    python -m pulsar_cli_harness -s schema-cli -s topic-termination
    python -m pulsar_cli_harness --list
"""

import argparse
import logging
import sys
import time
from typing import Dict, List

from colorama import Fore, Style, init
from tabulate import tabulate

from pulsar_cli_harness.cluster import ClusterHandle
from pulsar_cli_harness.config import HarnessConfig
from pulsar_cli_harness.errors import HarnessError
from pulsar_cli_harness.scenarios import SCENARIOS

logger = logging.getLogger("pulsar_cli_harness")


def _first_line(text: str) -> str:
    return text.strip().splitlines()[0] if text.strip() else ""


def run_scenario(name: str, cluster: ClusterHandle, config: HarnessConfig) -> Dict[str, str]:
    """Run one scenario and return its summary row"""
    logger.info(f"{Fore.CYAN}Running {name}...{Style.RESET_ALL}")
    start_time = time.time()
    try:
        SCENARIOS[name](cluster, config)
    except Exception as e:
        duration = time.time() - start_time
        logger.info(f"{Fore.RED}✗ {name} failed in {duration:.1f}s{Style.RESET_ALL}")
        logger.debug("%s failed:\n%s", name, e)
        details = f"{type(e).__name__}: {_first_line(str(e))}"
        return {
            'Scenario': name,
            'Status': f"{Fore.RED}FAILED{Style.RESET_ALL}",
            'Duration': f"{duration:.1f}s",
            'Details': details[:60] + '...' if len(details) > 60 else details,
        }
    duration = time.time() - start_time
    logger.info(f"{Fore.GREEN}✓ {name} passed in {duration:.1f}s{Style.RESET_ALL}")
    return {
        'Scenario': name,
        'Status': f"{Fore.GREEN}PASSED{Style.RESET_ALL}",
        'Duration': f"{duration:.1f}s",
        'Details': '',
    }


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description='Run Pulsar CLI scenarios against a cluster')
    parser.add_argument('--scenario', '-s', action='append', dest='scenarios',
                        choices=list(SCENARIOS.keys()) + ['all'],
                        help='Scenario to run (repeatable, default: all)')
    parser.add_argument('--list', action='store_true',
                        help='List available scenarios and exit')
    parser.add_argument('--skip-health-check', action='store_true',
                        help='Do not wait for the broker health endpoint')
    parser.add_argument('--health-timeout', type=float, default=60.0,
                        help='Seconds to wait for the cluster to become healthy')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Log every command and full failure output')
    return parser.parse_args(argv)


def selected_scenarios(requested: List[str]) -> List[str]:
    if not requested or 'all' in requested:
        return list(SCENARIOS.keys())
    # keep registry order, drop duplicates
    return [name for name in SCENARIOS if name in requested]


def main(argv=None) -> int:
    args = parse_args(argv)
    init()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(message)s'
    )

    if args.list:
        for name, check in SCENARIOS.items():
            print(f"{name:24} {check.__doc__}")
        return 0

    try:
        config = HarnessConfig.from_env()
    except ValueError as e:
        logger.error(f"{Fore.RED}✗ Invalid configuration: {e}{Style.RESET_ALL}")
        return 2

    cluster = ClusterHandle(config)
    logger.info(f"{Fore.GREEN}Pulsar CLI Scenario Runner{Style.RESET_ALL}")
    logger.info("=" * 50)
    logger.info(f"Brokers: {', '.join(config.broker_nodes)} (selection: {config.node_selection})")

    if not args.skip_health_check:
        try:
            cluster.wait_until_ready(timeout=args.health_timeout)
        except HarnessError as e:
            logger.error(f"{Fore.RED}✗ {e}{Style.RESET_ALL}")
            return 1

    results = []
    total_start = time.time()
    for name in selected_scenarios(args.scenarios):
        results.append(run_scenario(name, cluster, config))
    total_duration = time.time() - total_start

    print(f"\n{Fore.CYAN}Scenario Results Summary{Style.RESET_ALL}")
    print("=" * 80)
    print(tabulate(results, headers='keys', tablefmt='grid'))

    passed = sum(1 for r in results if 'PASSED' in r['Status'])
    failed = len(results) - passed
    print(f"\nTotal duration: {total_duration:.1f}s")
    print(f"Passed: {passed}, Failed: {failed}")

    if failed:
        print(f"\n{Fore.RED}Some scenarios failed!{Style.RESET_ALL}")
        return 1
    print(f"\n{Fore.GREEN}All scenarios passed!{Style.RESET_ALL}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
