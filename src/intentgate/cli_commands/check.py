"""``intentgate check`` — evaluate one intent against a policy file."""

from __future__ import annotations

import sys
from pathlib import Path

import click

from intentgate.cli_commands._output import console, print_decision
from intentgate.core.intent import ToolType


@click.command()
@click.argument("policy", type=click.Path(exists=True, dir_okay=False))
@click.option("--agent", "-a", required=True, help="Agent id making the request.")
@click.option(
    "--tool",
    "-t",
    required=True,
    type=click.Choice([t.value for t in ToolType]),
    help="Kind of action.",
)
@click.option("--target", required=True, help="Command, URL or path.")
@click.option("--dry-run", is_flag=True, help="Log the real decision but report allow.")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
def check(policy: str, agent: str, tool: str, target: str, dry_run: bool, as_json: bool) -> None:
    """Evaluate an intent against the rules in POLICY yaml file.

    Decisions are written to the policy's audit backend when one is
    configured.
    """
    from intentgate.core.intent import create_intent
    from intentgate.errors import IntentGateError
    from intentgate.policy.loader import PolicyLoader, build_audit_logger, build_gate

    try:
        spec = PolicyLoader(Path(policy)).load()
    except IntentGateError as exc:
        console.print(f"[red]Validation error:[/red] {exc}")
        sys.exit(1)

    if dry_run:
        spec.dry_run = True

    try:
        intent = create_intent(agent, tool, target)
    except IntentGateError as exc:
        console.print(f"[red]Invalid intent:[/red] {exc}")
        sys.exit(1)

    audit = build_audit_logger(spec.audit) if spec.audit else None
    gate = build_gate(spec, log_sink=audit.log if audit else None)
    print_decision(gate.evaluate(intent), as_json=as_json)
