"""Entry point: python -m onboarding [--force]."""

import argparse
import asyncio
import sys
from pathlib import Path

from dotenv import load_dotenv

from core.logging_config import setup_logging
from core.settings import load_settings, resolve_paths
from onboarding.config_store import SetupConfigStore
from onboarding.constants import SETUP_ABANDONED, SETUP_FAILED, SETUP_SUCCESS
from onboarding.controller import WizardOptions
from onboarding.provisioner import BrowserProvisioner
from onboarding.session import OutcomeStatus
from onboarding.wizard import run_setup_wizard


def main(argv: list[str] | None = None) -> int:
    """Run the setup wizard. Returns the process exit code."""
    parser = argparse.ArgumentParser(prog="python -m onboarding", description="WebHere first-run setup")
    parser.add_argument(
        "--force",
        action="store_true",
        help="run the wizard even if setup was already completed",
    )
    args = parser.parse_args(argv)

    project_root = Path(__file__).resolve().parent.parent
    load_dotenv(project_root / ".env")
    settings = load_settings(project_root / "config")
    user_data_dir, downloads_dir, cache_dir = resolve_paths(settings)
    setup_logging(user_data_dir, settings)

    if not args.force and SetupConfigStore(user_data_dir).is_setup_complete():
        print("Setup already complete. Use --force to run it again.")
        return SETUP_SUCCESS

    options = WizardOptions(
        user_data_dir=user_data_dir,
        default_downloads_dir=downloads_dir,
        browser_cache_dir=cache_dir,
    )
    try:
        outcome = asyncio.run(
            run_setup_wizard(options, provisioner=BrowserProvisioner.from_settings(settings))
        )
    except KeyboardInterrupt:
        print("\n\nSetup cancelled.")
        return SETUP_ABANDONED

    if outcome.status is OutcomeStatus.COMPLETED:
        print("\n✅ Setup complete! Starting WebHere...\n")
        return SETUP_SUCCESS
    if outcome.status is OutcomeStatus.FAILED:
        print(f"\nSetup failed: {outcome.error}", file=sys.stderr)
        return SETUP_FAILED
    print("\nSetup cancelled.")
    return SETUP_ABANDONED


if __name__ == "__main__":
    sys.exit(main())
