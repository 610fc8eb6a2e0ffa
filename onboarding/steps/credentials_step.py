"""Admin password page.

Validation lives in the step machine, so this page only collects input;
a rejected password brings the user straight back here.
"""

import questionary

from onboarding.machine import MIN_PASSWORD_LENGTH, StepMachine
from onboarding.ui import STYLE, Nav, ask_nav


async def run_credentials_step(machine: StepMachine) -> Nav:
    form = machine.state.form
    if machine.state.password_set:
        print("Admin password already set.\n")
        return await ask_nav(machine.view)

    print(f"Choose a password for the dashboard (at least {MIN_PASSWORD_LENGTH} characters).\n")
    password = await questionary.password("Password:", style=STYLE).ask_async()
    if password is None:
        return Nav.QUIT
    confirm = await questionary.password("Confirm password:", style=STYLE).ask_async()
    if confirm is None:
        return Nav.QUIT
    form.password = password
    form.password_confirm = confirm
    return await ask_nav(machine.view)
