"""First-run setup wizard."""

from onboarding.constants import SETUP_ABANDONED, SETUP_FAILED, SETUP_SUCCESS
from onboarding.controller import WizardOptions
from onboarding.session import OutcomeStatus, SetupResult, WizardOutcome
from onboarding.wizard import ensure_setup, run_setup_wizard

__all__ = [
    "SETUP_SUCCESS",
    "SETUP_ABANDONED",
    "SETUP_FAILED",
    "OutcomeStatus",
    "SetupResult",
    "WizardOptions",
    "WizardOutcome",
    "ensure_setup",
    "run_setup_wizard",
]
