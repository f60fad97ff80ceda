"""CLI entry point for Host Provisioner."""

import argparse
import sys
from pathlib import Path
from typing import List, NoReturn, Optional

from pydantic import ValidationError

from host_provisioner import __version__
from host_provisioner.config import ProvisionerConfig
from host_provisioner.exceptions import (
    ConfigurationError,
    PipelineHaltedError,
    ProvisionerError,
)
from host_provisioner.provisioner import MachineProvisioner, ProvisioningReport
from host_provisioner.types import FailurePolicy, StepStatus
from host_provisioner.utils.log import configure_logging, get_output

STATUS_ICONS = {
    StepStatus.SUCCEEDED: "✅",
    StepStatus.FAILED: "❌",
    StepStatus.SKIPPED: "⏭️ ",
}


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        description="Host Provisioner - prepare a new Linux machine for Ansible",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Provision this machine
  sudo host-provisioner

  # Show what would run
  sudo host-provisioner --dry-run

  # Stop at the first failed step
  sudo host-provisioner --halt-on-failure

Environment variables:
  ACCOUNT_USERNAME              - Automation account name (default: ansible)
  ACCOUNT_ALLOW_GROUP           - SSH allow-list group (default: ssh_allowed_users)
  NOTIFY_ENABLED                - Report the host to the orchestrator (true/false)
  NOTIFY_URL                    - Orchestrator collector URL
  PIPELINE_ON_SYSTEM_FAILURE    - continue/halt for update, install and service steps
  PIPELINE_ON_PROVISIONING_FAILURE - continue/halt for group, user, SSH and notify steps
  LOG_FILE                      - Log file path

See README.md for full documentation.
        """,
    )

    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Simulate changes without applying them",
    )

    parser.add_argument(
        "--skip-notify",
        action="store_true",
        help="Do not report the host to the orchestration server",
    )

    parser.add_argument(
        "--halt-on-failure",
        action="store_true",
        help="Stop the pipeline at the first failed step",
    )

    parser.add_argument(
        "--log-file",
        type=Path,
        help="Log file path (overrides config/env)",
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Suppress non-error output",
    )

    return parser.parse_args(argv)


def load_config(args: argparse.Namespace) -> ProvisionerConfig:
    """Load configuration from the environment and apply CLI overrides.

    Args:
        args: Parsed command-line arguments

    Returns:
        Configuration object

    Raises:
        ConfigurationError: If a setting fails validation
    """
    try:
        config = ProvisionerConfig.from_env()
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e

    if args.skip_notify:
        config.notify.enabled = False

    if args.halt_on_failure:
        config.pipeline.on_system_failure = FailurePolicy.HALT
        config.pipeline.on_provisioning_failure = FailurePolicy.HALT

    if args.log_file:
        config.logging.file = args.log_file

    return config


def print_summary(report: ProvisioningReport) -> None:
    """Print one line per step and the closing banner."""
    output = get_output()
    output.info(f"\n📋 Summary (distribution: {report.distro.value}):")
    for result in report.results:
        output.info(f"  {STATUS_ICONS[result.status]} {result.step}: {result.message}")

    if report.succeeded:
        output.info("\nConfiguration completed successfully.")
    else:
        output.info(f"\nConfiguration completed with {len(report.failed)} failed step(s).")


def main(argv: Optional[List[str]] = None) -> NoReturn:
    """Main entry point for CLI.

    Raises:
        SystemExit: Always exits with appropriate code
    """
    args = parse_args(argv)
    output = get_output()

    try:
        config = load_config(args)

        configure_logging(
            level=config.logging.level,
            log_file=config.logging.file,
            verbose=args.verbose,
            quiet=args.quiet,
        )

        if not args.quiet:
            output.info("╔══════════════════════════════════════╗")
            output.info("║  HOST PROVISIONER - NEW MACHINE     ║")
            output.info(f"║  Version {__version__:<26} ║")
            output.info("╚══════════════════════════════════════╝\n")

            if args.dry_run:
                output.info("🔍 DRY RUN MODE - No changes will be applied\n")

        provisioner = MachineProvisioner(config, dry_run=args.dry_run)
        report = provisioner.run()

        if not args.quiet:
            print_summary(report)

        sys.exit(0)

    except KeyboardInterrupt:
        output.error("\n\n⚠️  Interrupted by user")
        sys.exit(130)

    except PipelineHaltedError as e:
        output.error(f"\n❌ Pipeline halted: {e}")
        sys.exit(1)

    except ProvisionerError as e:
        output.error(f"\n❌ Error: {e}")
        sys.exit(1)

    except Exception as e:
        output.error(f"\n❌ Unexpected error: {e}")
        if args.verbose:
            import traceback

            traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
