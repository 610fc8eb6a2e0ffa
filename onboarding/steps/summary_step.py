"""Read-only summary page."""

from onboarding.machine import StepMachine
from onboarding.ui import Nav, ask_nav


async def run_summary_step(machine: StepMachine) -> Nav:
    print("Everything is set:\n")
    for label, value in machine.view.summary:
        print(f"  ✓ {label:<12} {value}")
    print()
    return await ask_nav(machine.view)
