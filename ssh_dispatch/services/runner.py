"""Run orchestration: validate, prepare once, execute per host, aggregate."""

import logging
from collections.abc import Callable, Mapping
from contextlib import AsyncExitStack

from ssh_dispatch.config import ActionInputs, TransportOptions, build_transport_options
from ssh_dispatch.models import Credential, ExecutionContext, ProxyHop, RunReport
from ssh_dispatch.services.aggregator import aggregate
from ssh_dispatch.services.credentials import CredentialProvisioner
from ssh_dispatch.services.executors import OutputSink, run_on_hosts, stdout_sink
from ssh_dispatch.services.script import assemble_payload, resolve_script_body
from ssh_dispatch.utils import workflow
from ssh_dispatch.utils.parser import parse_hosts, parse_jump_spec

logger = logging.getLogger(__name__)

ProvisionerFactory = Callable[[Credential, ProxyHop | None], CredentialProvisioner]


def resolve_proxy(inputs: ActionInputs, transport: TransportOptions) -> ProxyHop | None:
    """Get the jump host the transport options ended up with.

    Extra arguments may replace or remove the configured jump host; a
    configured proxy key stays attached either way.
    """
    if transport.proxy_jump is None:
        return None

    user, host, port = parse_jump_spec(transport.proxy_jump, inputs.username)
    configured = inputs.proxy()
    return ProxyHop(
        host=host,
        username=user,
        port=port,
        credential=configured.credential if configured else None,
    )


async def dispatch(
    inputs: ActionInputs,
    environ: Mapping[str, str],
    sink: OutputSink = stdout_sink,
    provisioner_factory: ProvisionerFactory = CredentialProvisioner,
) -> RunReport:
    """Execute the configured script on every host.

    All configuration is validated and the payload assembled before any
    credential is loaded or host contacted.

    Args:
        inputs: Step inputs
        environ: Snapshot of the environment used for variable forwarding
        sink: Receives captured output chunks as they arrive
        provisioner_factory: Creates the credential provisioner

    Returns:
        RunReport covering every host

    Raises:
        ValidationError: If the configuration is invalid
        ScriptNotFoundError: If the script file is missing
        ScriptReadError: If the script file cannot be read
        AuthLoadError: If a key cannot be loaded
        MissingDependencyError: If a helper tool is unavailable
    """
    inputs.validate()
    transport = build_transport_options(inputs)
    proxy = resolve_proxy(inputs, transport)
    targets = parse_hosts(inputs.host, transport.port)

    body = resolve_script_body(inputs.script, inputs.script_file)
    if inputs.envs:
        with workflow.group("Forwarding environment variables"):
            payload = assemble_payload(body, inputs.envs, environ)
    else:
        payload = body

    async with AsyncExitStack() as stack:
        with workflow.group("Setting up SSH authentication"):
            provisioner = provisioner_factory(inputs.credential(), proxy)
            auth = await stack.enter_async_context(provisioner)
            workflow.notice(
                f"Host key verification: {transport.host_key_policy.describe()}"
            )

        context = ExecutionContext(
            username=inputs.username,
            auth=auth,
            transport=transport,
            proxy=proxy,
            command_timeout=inputs.command_timeout,
            remote_shell=inputs.remote_shell,
        )
        logger.info(
            "Running on %d host(s) with %s (command_timeout=%ds)",
            len(targets),
            context.remote_shell,
            context.command_timeout,
        )
        outcomes = await run_on_hosts(targets, context, payload, sink)

    report = aggregate(outcomes)
    logger.info(
        "Run completed: %d/%d host(s) succeeded",
        len(report.outcomes) - len(report.failed),
        len(report.outcomes),
    )
    return report
