"""
CLI interface for plandeploy.

Provides commands to inspect and deploy plans.

Plans are defined as YAML/JSON files in the configured plans directory and
deployed to the endpoints defined in the configured endpoints file.
"""

import json

import click

from plandeploy import __version__


def _require_config(ctx):
    if "config" not in ctx.obj:
        click.echo(f"✗ Config not loaded: {ctx.obj.get('config_error', 'Unknown error')}", err=True)
        click.echo("Run 'plandeploy init' to create a configuration file.", err=True)
        raise SystemExit(1)
    return ctx.obj["config"]


def _load_plan(config, name: str):
    from plandeploy.errors import PlanNotFoundError, PlanValidationError
    from plandeploy.store import PlanStore

    store = PlanStore(config.plans_dir)
    try:
        return store.load(name)
    except PlanNotFoundError:
        click.echo(f"✗ Unknown plan: {name}", err=True)
        available = store.list_plans()
        if available:
            click.echo("\nAvailable plans:", err=True)
            for plan_name in available:
                click.echo(f"  {plan_name}", err=True)
        raise SystemExit(1)
    except PlanValidationError as e:
        click.echo(f"✗ Invalid plan {name}: {e}", err=True)
        raise SystemExit(1)


@click.group()
@click.version_option(version=__version__, prog_name="plandeploy")
@click.pass_context
def main(ctx):
    """
    plandeploy - Deploy content plans to remote endpoints.
    """
    from plandeploy.config import load_config

    ctx.ensure_object(dict)
    try:
        ctx.obj["config"] = load_config()
    except Exception as e:
        # 'init' runs without a config; other commands check via _require_config
        ctx.obj["config_error"] = str(e)


@main.command("init")
@click.option("--force", is_flag=True, help="Overwrite existing configuration")
def init(force: bool):
    """Initialize plandeploy configuration."""
    import yaml

    from plandeploy.config import default_config_data, get_plandeploy_home

    home = get_plandeploy_home()
    home.mkdir(parents=True, exist_ok=True)

    cfg_path = home / "config.yaml"
    if cfg_path.exists() and not force:
        click.echo(f"Config already exists at {cfg_path}. Use --force to overwrite.", err=True)
        raise SystemExit(1)

    cfg_path.write_text(yaml.safe_dump(default_config_data(), sort_keys=False))
    (home / "plans").mkdir(exist_ok=True)

    endpoints_path = home / "endpoints.yaml"
    if not endpoints_path.exists():
        endpoints_path.write_text("endpoints: {}\n")

    click.echo(f"Initialized plandeploy config at {cfg_path}")


@main.group("plans")
def plans_group():
    """Inspect plans."""
    pass


@plans_group.command("list")
@click.pass_context
def list_plans(ctx):
    """List available plans."""
    from plandeploy.store import PlanStore

    config = _require_config(ctx)
    names = PlanStore(config.plans_dir).list_plans()
    if not names:
        click.echo("No plans found.")
        return
    for name in names:
        click.echo(name)


@plans_group.command("show")
@click.argument("plan")
@click.pass_context
def show_plan(ctx, plan: str):
    """Show plan definition details."""
    config = _require_config(ctx)
    p = _load_plan(config, plan)

    click.echo(f"Plan: {p.name}")
    if p.title:
        click.echo(f"Title: {p.title}")
    if p.description:
        click.echo(f"Description: {p.description}")
    click.echo(f"Aggregator: {p.aggregator_plugin or '-'}")
    click.echo(f"Processor: {p.processor_plugin or '- (fetch-only)'}")
    click.echo(f"Endpoints: {json.dumps(p.endpoints)}")


@main.command("entities")
@click.argument("plan")
@click.option("--json", "as_json", is_flag=True, help="Print the raw entity mapping")
@click.pass_context
def entities(ctx, plan: str, as_json: bool):
    """List the entities a plan would deploy."""
    from plandeploy.utils import format_entity_tree

    config = _require_config(ctx)
    p = _load_plan(config, plan)

    try:
        tree = p.get_entities()
    except Exception as e:
        click.echo(f"✗ {plan}: {e}", err=True)
        raise SystemExit(1)

    if as_json:
        click.echo(json.dumps(tree, indent=2, sort_keys=True))
        return
    if not tree:
        click.echo("No entities.")
        return
    for line in format_entity_tree(tree):
        click.echo(line)


@main.command("deploy")
@click.argument("plan")
@click.pass_context
def deploy(ctx, plan: str):
    """
    Deploy a plan to all of its endpoints.

    PLAN is the plan name (filename without extension).

    Examples:

        plandeploy deploy site-sync
    """
    from plandeploy.runner import run_deploy
    from plandeploy.utils import setup_logging

    config = _require_config(ctx)
    _load_plan(config, plan)

    setup_logging(
        config.get_log_file_path(),
        log_level=config.get_log_level(),
        log_format=config.get_log_format(),
        console_output=config.should_log_to_console(),
    )

    try:
        deployment_id = run_deploy(plan, config)
    except Exception as e:
        click.echo(f"✗ {plan} failed: {e}", err=True)
        raise SystemExit(1)

    click.echo(f"✓ {plan} deployed (deployment {deployment_id})")


@main.command("log")
@click.option("--plan", "plan_name", help="Only show deployments of this plan")
@click.option("--limit", default=20, show_default=True, help="Number of deployments to show")
@click.pass_context
def show_log(ctx, plan_name: str, limit: int):
    """Show recent deployments."""
    from rich.table import Table

    from plandeploy.deploy_log import FileDeploymentLog
    from plandeploy.utils import console

    config = _require_config(ctx)
    records = FileDeploymentLog(config.log_dir).list(plan_name)[-limit:]
    if not records:
        click.echo("No deployments found.")
        return

    table = Table("Deployment", "Plan", "Started", "Status", "Error")
    for record in records:
        last = record.entries[-1] if record.entries else None
        table.add_row(
            record.deployment_id,
            record.plan_name,
            record.started_at.isoformat() if record.started_at else "",
            last.status.value if last else "",
            (last.error or "") if last else "",
        )
    console.print(table)


if __name__ == "__main__":
    main()
