"""
Click CLI for running cloudkeeper operations by hand.
"""

import json
import logging
import sys
from dataclasses import replace
from typing import Any, Dict, Optional

import click
from botocore.exceptions import BotoCoreError, ClientError

from .compliance import ComplianceEvaluator
from .config import ComplianceConfig, DnsConfig, LifecycleConfig
from .dns import DnsUpdater
from .errors import CloudkeeperError
from .gateways import Ec2Gateway, SnsNotifier
from .lifecycle import LifecycleEngine
from .models import TriggerEvent
from .tags import dict_to_tags, parse_user_tags
from .timecodec import format_timestamp
from .lifecycle.state import read_marker


def _print_result(ctx: click.Context, data: Dict[str, Any], indent: int = 0) -> None:
    if ctx.obj["json"]:
        click.echo(json.dumps(data, indent=2, default=str))
        return

    pad = "  " * indent
    for key, value in data.items():
        if isinstance(value, dict) and value:
            click.echo(f"{pad}{key}:")
            _print_result(ctx, value, indent + 1)
        else:
            click.echo(f"{pad}{key}: {value}")


def _fail(message: str) -> None:
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


def _engine(ctx: click.Context) -> LifecycleEngine:
    config = LifecycleConfig.from_env()
    overrides = {k: v for k, v in ctx.obj["lifecycle"].items() if v is not None}
    if overrides:
        config = replace(config, **overrides)
    region = ctx.obj["region"]
    return LifecycleEngine(
        resources=Ec2Gateway(region),
        notifier=SnsNotifier(region),
        config=config,
        account=ctx.obj["account"],
        region=region,
    )


def _run(operation):
    try:
        return operation()
    except CloudkeeperError as e:
        _fail(str(e))
    except (ClientError, BotoCoreError) as e:
        _fail(f"AWS request failed: {e}")


@click.group()
@click.option("--region", envvar="AWS_REGION", default="us-east-1", show_default=True, help="AWS region")
@click.option("--account", default="", help="Account id shown in notifications")
@click.option("--retention-days", type=int, help="Days from marking until deletion")
@click.option("--warning-days", type=int, help="Days before deletion to start warning")
@click.option("--dry-run", is_flag=True, help="Compute changes without applying them")
@click.option("--json", "output_json", is_flag=True, help="Output machine-readable JSON")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx, region, account, retention_days, warning_days, dry_run, output_json, verbose):
    """
    Cloudkeeper - detached volume lifecycle and tag compliance.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj["region"] = region
    ctx.obj["account"] = account
    ctx.obj["json"] = output_json
    ctx.obj["lifecycle"] = {
        "retention_days": retention_days,
        "warning_days": warning_days,
        "dry_run": True if dry_run else None,
    }


@main.command()
@click.pass_context
def mark(ctx):
    """
    Schedule deletion for detached volumes that are not yet marked.
    """
    result = _run(lambda: _engine(ctx).run_mark())
    _print_result(ctx, result.to_dict())


@main.command("notify-delete")
@click.pass_context
def notify_delete(ctx):
    """
    Warn about upcoming deletions and delete overdue volumes.
    """
    result = _run(lambda: _engine(ctx).run_notify_and_delete())
    _print_result(ctx, result.to_dict())


@main.command()
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def clear(ctx, yes):
    """
    Remove the deletion marker from every detached volume.
    """
    if not yes:
        click.confirm(f"Clear scheduled deletions on all detached volumes in {ctx.obj['region']}?", abort=True)
    result = _run(lambda: _engine(ctx).run_clear())
    _print_result(ctx, result.to_dict())


@main.command()
@click.pass_context
def state(ctx):
    """
    Show the lifecycle state of every detached volume.
    """
    def collect():
        engine = _engine(ctx)
        now = engine.now()
        rows = []
        for resource in engine.resources.list_detached():
            marker = read_marker(resource.tags, engine.config.marker_key)
            rows.append({
                "volume_id": resource.resource_id,
                "state": engine.state_of(resource, now).value,
                "delete_on": format_timestamp(marker) if marker else None,
                "tags": resource.tag_dict(),
            })
        return rows

    rows = _run(collect)

    if ctx.obj["json"]:
        click.echo(json.dumps(rows, indent=2))
        return

    if not rows:
        click.echo("No detached volumes found")
        return

    for row in rows:
        click.echo(f"{row['volume_id']}  {row['state']:<13}  {row['delete_on'] or '-'}")


@main.command("check-tags")
@click.argument("instance_id")
@click.option("--wait", "wait_seconds", type=float, help="Seconds to wait before checking")
@click.pass_context
def check_tags(ctx, instance_id, wait_seconds: Optional[float]):
    """
    Check an instance for required tags and alert if any are missing.
    """
    def check():
        config = ComplianceConfig.from_env()
        if wait_seconds is not None:
            config = replace(config, wait_seconds=wait_seconds)
        region = ctx.obj["region"]
        evaluator = ComplianceEvaluator(
            instances=Ec2Gateway(region),
            notifier=SnsNotifier(region),
            config=config,
        )
        event = TriggerEvent(region=region, account=ctx.obj["account"], detail={"instance-id": instance_id})
        return evaluator.check_instance(event)

    report = _run(check)
    _print_result(ctx, report.to_dict())
    if not report.compliant:
        sys.exit(3)


@main.command("evaluate-tags")
@click.option("--tag", "tags", multiple=True, help="Tag in format 'key=value' (repeatable)")
@click.pass_context
def evaluate_tags(ctx, tags: tuple):
    """
    Evaluate a set of tags against the compliance rules without calling AWS.
    """
    try:
        tag_dict = parse_user_tags(list(tags))
    except ValueError as e:
        _fail(str(e))

    violations = ComplianceEvaluator().evaluate(dict_to_tags(tag_dict))
    _print_result(ctx, {"compliant": not violations, "violations": violations})
    if violations:
        sys.exit(3)


def _dns(ctx, instance_id: str, remove: bool) -> Dict[str, Any]:
    instance = Ec2Gateway(ctx.obj["region"]).describe_instance(instance_id)
    updater = DnsUpdater(DnsConfig.from_env())
    return updater.remove(instance) if remove else updater.update(instance)


@main.command("dns-update")
@click.argument("instance_id")
@click.pass_context
def dns_update(ctx, instance_id):
    """
    Create or update the A record for an instance.
    """
    _print_result(ctx, _run(lambda: _dns(ctx, instance_id, remove=False)))


@main.command("dns-remove")
@click.argument("instance_id")
@click.pass_context
def dns_remove(ctx, instance_id):
    """
    Remove the A record for an instance.
    """
    _print_result(ctx, _run(lambda: _dns(ctx, instance_id, remove=True)))


@main.command()
@click.option("--host", default="127.0.0.1", show_default=True, help="Bind address")
@click.option("--port", default=8000, show_default=True, type=int, help="Bind port")
def serve(host, port):
    """
    Run the HTTP trigger API.
    """
    import uvicorn

    uvicorn.run("cloudkeeper.api.app:app", host=host, port=port)


if __name__ == "__main__":
    main()
