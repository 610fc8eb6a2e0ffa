"""Downloads directory page."""

import questionary
from questionary import Choice

from onboarding.machine import StepMachine
from onboarding.ui import STYLE, Nav

_CHANGE = "__change__"


async def run_downloads_step(machine: StepMachine) -> Nav:
    """Show the current directory; the picker runs on the controller side."""
    while True:
        print(f"Downloads will be saved to:\n  {machine.state.form.downloads_dir or '(not set)'}\n")
        choices = [
            Choice(machine.view.next_label, Nav.NEXT),
            Choice("Choose another directory...", _CHANGE),
            Choice("Back", Nav.BACK),
            Choice("Quit setup", Nav.QUIT),
        ]
        answer = await questionary.select(
            "Downloads directory:", choices=choices, style=STYLE
        ).ask_async()
        if answer is None:
            return Nav.QUIT
        if answer != _CHANGE:
            return answer
        await machine.pick_directory()
