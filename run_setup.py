"""CLI entry point for the host provisioning runner."""

import argparse
import sys

from dotenv import load_dotenv

from provisioner.host import create_local_host
from provisioner.logging_config import configure_logging
from provisioner.runner import Outcome, ProvisioningRunner, StepResult
from provisioner.settings import Settings
from provisioner.steps import build_default_steps

GLYPHS = {
    Outcome.SUCCESS: "✔",
    Outcome.SKIPPED: "↷",
    Outcome.FAILED: "✘",
}


def print_progress(result: StepResult) -> None:
    """Print one status line for a finished step."""
    line = f"{GLYPHS[result.outcome]} {result.name}: {result.outcome.value} ({result.duration_seconds}s)"
    if result.error:
        line += f" - {result.error}"
    print(line, flush=True)


def main(argv: list[str] | None = None) -> int:
    load_dotenv()

    parser = argparse.ArgumentParser(
        description="Bring a Debian/Ubuntu server to the baseline configuration"
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Set logging level (overrides LOG_LEVEL env var)",
    )
    parser.add_argument(
        "--timezone",
        default=None,
        help="System timezone to set, e.g. Europe/Oslo (overrides PROVISION_TIMEZONE)",
    )
    parser.add_argument(
        "--list-steps",
        action="store_true",
        help="Print the planned steps and exit without touching the host",
    )
    args = parser.parse_args(argv)
    configure_logging(level_override=args.log_level)

    try:
        settings = Settings.from_env()
    except ValueError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 2
    if args.timezone:
        settings.timezone = args.timezone

    steps = build_default_steps(settings)

    if args.list_steps:
        for position, step in enumerate(steps, start=1):
            flag = " [critical]" if step.critical else ""
            print(f"{position:2d}. {step.name}{flag}: {step.description}")
        return 0

    host = create_local_host(root=settings.root, timeout=settings.command_timeout)
    report = ProvisioningRunner(steps, host, progress=print_progress).run()

    if report.aborted:
        if report.failed_step:
            print(f"ERROR: critical step '{report.failed_step}' failed: {report.error}", file=sys.stderr)
        else:
            print(f"ERROR: {report.error}", file=sys.stderr)
        return report.exit_code

    print(
        f"\n✔ System setup complete: {report.count(Outcome.SUCCESS)} applied, "
        f"{report.count(Outcome.SKIPPED)} skipped, {report.count(Outcome.FAILED)} failed"
    )
    print(
        "ℹ NOTE: To clear the history of your CURRENT terminal session, "
        "run 'history -c' now."
    )
    return report.exit_code


if __name__ == "__main__":
    sys.exit(main())
