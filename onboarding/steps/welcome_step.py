"""Welcome page."""

from onboarding.machine import StepMachine
from onboarding.ui import Nav, ask_nav


async def run_welcome_step(machine: StepMachine) -> Nav:
    print("Welcome to WebHere!\n")
    print("This wizard prepares WebHere for first use:")
    print("  • where downloaded files are saved")
    print("  • the admin password for the web dashboard")
    print("  • optional webhook notifications")
    print("  • the browser WebHere automates\n")
    return await ask_nav(machine.view)
