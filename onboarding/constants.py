"""Exit codes of `python -m onboarding`."""

SETUP_SUCCESS = 0  # Setup record written (or already present)
SETUP_ABANDONED = 1  # Wizard closed before completion
SETUP_FAILED = 2  # Wizard or final save crashed
