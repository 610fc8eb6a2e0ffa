"""Setup wizard orchestration: wires controller, channel and UI for one run."""

import logging
from typing import Awaitable, Callable

from onboarding.config_store import SetupConfigStore
from onboarding.controller import (
    CredentialStore,
    DirectoryPicker,
    IntegrationConfigStore,
    Provisioner,
    WizardController,
    WizardOptions,
    probe_browser,
)
from onboarding.machine import Step, StepMachine
from onboarding.protocol import SetupClient, WizardChannel
from onboarding.session import SetupResult, WizardOutcome
from onboarding.steps import (
    run_browser_step,
    run_credentials_step,
    run_downloads_step,
    run_integration_step,
    run_summary_step,
    run_welcome_step,
)
from onboarding.ui import Nav, ask_directory, print_error, print_header, render_progress
from onboarding.window import WizardWindow

logger = logging.getLogger(__name__)

SetupUI = Callable[[SetupClient], Awaitable[None]]

_PAGES = {
    Step.WELCOME: run_welcome_step,
    Step.DOWNLOADS: run_downloads_step,
    Step.CREDENTIALS: run_credentials_step,
    Step.INTEGRATION: run_integration_step,
    Step.BROWSER: run_browser_step,
    Step.SUMMARY: run_summary_step,
}


async def run_terminal_ui(client: SetupClient) -> None:
    """Drive the step machine with questionary prompts until completion or quit."""
    machine = StepMachine(client, on_render=render_progress)
    await machine.start()
    while not machine.state.completed:
        step = machine.state.current
        print_header(step)
        nav = await _PAGES[step](machine)
        if nav is Nav.QUIT:
            return
        if nav is Nav.BACK:
            machine.back()
            continue
        if not await machine.advance() and machine.view.error:
            print_error(machine.view.error)
    if machine.view.error:
        print_error(machine.view.error)


async def run_setup_wizard(
    options: WizardOptions,
    *,
    ui: SetupUI | None = None,
    directory_picker: DirectoryPicker | None = None,
    provisioner: Provisioner | None = None,
    credentials: CredentialStore | None = None,
    integrations: IntegrationConfigStore | None = None,
) -> WizardOutcome:
    """Run one wizard window to its end.

    Returns a completed outcome with the chosen directory and browser path,
    an abandoned outcome when the UI stopped before completion, or a failed
    outcome when the UI or the final save crashed.
    """
    window = WizardWindow()
    channel = WizardChannel()
    controller = WizardController(
        options,
        channel,
        window,
        directory_picker=directory_picker or ask_directory,
        provisioner=provisioner,
        credentials=credentials,
        integrations=integrations,
    )
    controller.register()
    run_ui = ui or run_terminal_ui
    try:
        await run_ui(SetupClient(channel))
    except Exception as e:
        logger.exception("Setup wizard failed: %s", e)
        window.resolve(WizardOutcome.failed(str(e) or type(e).__name__))
    finally:
        window.close()

    outcome = await window.wait()
    logger.info("Setup wizard finished: %s", outcome.status.value)
    return outcome


async def ensure_setup(options: WizardOptions, **kwargs) -> WizardOutcome:
    """Return the stored setup when first-run setup already completed, else run the wizard."""
    store = SetupConfigStore(options.user_data_dir)
    if not store.is_setup_complete():
        return await run_setup_wizard(options, **kwargs)

    browser_path = probe_browser(options.find_browser, options.browser_cache_dir) or probe_browser(
        options.find_browser
    )
    result = SetupResult(
        downloads_dir=store.get_downloads_dir(options.default_downloads_dir),
        browser_path=browser_path,
    )
    logger.info("Setup already complete, downloads dir %s", result.downloads_dir)
    return WizardOutcome.completed(result)
