"""Browser provisioning page."""

import questionary
from questionary import Choice

from onboarding.machine import BrowserPane, StepMachine
from onboarding.ui import STYLE, Nav, ask_nav, print_error

_DOWNLOAD = "__download__"


async def run_browser_step(machine: StepMachine) -> Nav:
    while True:
        view = machine.view
        if view.browser_pane is BrowserPane.READY:
            if machine.state.browser_skipped:
                print("✓ Browser already available. No download was needed.\n")
            else:
                print("✓ Browser ready.\n")
            return await ask_nav(view)

        if view.browser_pane is BrowserPane.FAILED:
            print_error(view.download_error or "Download failed.")
        else:
            print("WebHere needs a Chrome build (about 150 MB) to fetch pages.\n")

        choices = [Choice(view.download_label, _DOWNLOAD)]
        if view.back_visible:
            choices.append(Choice("Back", Nav.BACK))
        choices.append(Choice("Quit setup", Nav.QUIT))
        answer = await questionary.select("Browser:", choices=choices, style=STYLE).ask_async()
        if answer is None:
            return Nav.QUIT
        if answer != _DOWNLOAD:
            return answer

        result = await machine.download_browser()
        print()
        if result.fallback:
            print(f"Download failed, using the browser installed at {result.path}\n")
