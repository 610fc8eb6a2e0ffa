"""Optional webhook notifications page."""

import questionary

from onboarding.machine import StepMachine
from onboarding.ui import STYLE, Nav, ask_nav


async def run_integration_step(machine: StepMachine) -> Nav:
    form = machine.state.form
    print("WebHere can post a message to a webhook (e.g. Discord) when downloads finish.\n")
    enabled = await questionary.confirm(
        "Enable webhook notifications?",
        default=form.integration_enabled,
        style=STYLE,
    ).ask_async()
    if enabled is None:
        return Nav.QUIT
    form.integration_enabled = enabled
    if enabled:
        url = await questionary.text(
            "Webhook URL:",
            default=form.webhook_url,
            style=STYLE,
        ).ask_async()
        if url is None:
            return Nav.QUIT
        form.webhook_url = url.strip()
    return await ask_nav(machine.view)
