"""Terminal pages of the setup wizard, one per step."""

from onboarding.steps.browser_step import run_browser_step
from onboarding.steps.credentials_step import run_credentials_step
from onboarding.steps.downloads_step import run_downloads_step
from onboarding.steps.integration_step import run_integration_step
from onboarding.steps.summary_step import run_summary_step
from onboarding.steps.welcome_step import run_welcome_step

__all__ = [
    "run_welcome_step",
    "run_downloads_step",
    "run_credentials_step",
    "run_integration_step",
    "run_browser_step",
    "run_summary_step",
]
