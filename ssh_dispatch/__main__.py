"""Entry point for ssh-dispatch."""

import asyncio
import logging
import os
import signal
import sys
from collections.abc import Mapping
from contextlib import suppress

from ssh_dispatch.config import ActionInputs, LogSettings
from ssh_dispatch.errors import DispatchError
from ssh_dispatch.models import RunReport
from ssh_dispatch.services import FAILURE_REASON, dispatch
from ssh_dispatch.utils import configure_logging, workflow

logger = logging.getLogger("ssh_dispatch")


def _quiet_third_party_loggers() -> None:
    """Reduce noise from third-party libraries."""
    logging.getLogger("asyncssh").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)


async def _run(inputs: ActionInputs, environ: Mapping[str, str]) -> RunReport:
    """Run the dispatch, turning SIGTERM/SIGINT into task cancellation.

    Cancellation unwinds through the credential scope, so teardown runs.
    """
    loop = asyncio.get_running_loop()
    task = asyncio.current_task()
    if task is not None:
        for sig in (signal.SIGTERM, signal.SIGINT):
            # Not available on every platform/event loop
            with suppress(NotImplementedError, RuntimeError):
                loop.add_signal_handler(sig, task.cancel)
    return await dispatch(inputs, environ)


def run(environ: Mapping[str, str] | None = None) -> int:
    """Run one dispatch and report the result.

    Args:
        environ: Environment snapshot; defaults to ``os.environ``

    Returns:
        Process exit code (0 only if every host succeeded)
    """
    env = dict(os.environ if environ is None else environ)

    try:
        inputs = ActionInputs.from_env(env)
        report = asyncio.run(_run(inputs, env))
    except DispatchError as e:
        logger.debug("Fatal error", exc_info=True)
        workflow.error(e.format_message())
        return 1
    except asyncio.CancelledError:
        workflow.error("SSH execution was interrupted")
        return 1

    workflow.set_output("stdout", report.text, env.get("GITHUB_OUTPUT"))

    if not report.success:
        workflow.error(FAILURE_REASON)
        return 1

    workflow.notice("SSH commands completed successfully")
    return 0


def main() -> None:
    """Console script entry point."""
    settings = LogSettings.from_env()
    configure_logging(settings.log_level, settings.use_colors)
    _quiet_third_party_loggers()
    sys.exit(run())


if __name__ == "__main__":
    main()
