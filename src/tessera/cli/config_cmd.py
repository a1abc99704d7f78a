"""CLI command for inspecting tenant configuration.

Usage:
    tessera config show acme.example.com
    tessera config show acme.example.com --all
"""

from __future__ import annotations

import asyncio
from typing import Any

import orjson
import typer

from tessera.config import Settings
from tessera.pipeline import ConfigurationPipeline, build_default_pipeline
from tessera.tenancy.config import VISIBILITY_WIRE_KEY
from tessera.tenancy.models import Tenant

app = typer.Typer(help="Inspect tenant configuration", no_args_is_help=True)


@app.callback()
def callback() -> None:
    """Inspect tenant configuration."""
    pass


def describe_config(
    tenant: Tenant,
    pipeline: ConfigurationPipeline,
    include_private: bool = False,
) -> dict[str, Any]:
    """Resolved configuration of a tenant with its visibility map.

    Without ``include_private`` this is exactly what the SSR edge
    receives. With it, the tenant's raw effective keys (private
    included) are listed as well.
    """
    resolved = pipeline.resolve_tenant(tenant)
    if not include_private:
        config = resolved.protected_wire()
    else:
        effective = tenant.effective_config()
        merged = effective.to_dict()["config"]
        visibility = effective.visibility_map()
        merged.update(resolved.values)
        visibility.update({key: value.value for key, value in resolved.visibility.items()})
        visibility.update({key: "private" for key in merged if key not in visibility})
        config = {**merged, VISIBILITY_WIRE_KEY: visibility}

    return {
        "id": tenant.public_id,
        "name": tenant.name,
        "domain": tenant.domain,
        "tier": resolved.tier,
        "config": config,
    }


async def _find_tenant(domain: str, settings: Settings) -> Tenant | None:
    from tessera.persistence import Database, DatabaseTenantLookup

    database = Database.from_settings(settings)
    try:
        return await DatabaseTenantLookup(database).find_by_domain(domain)
    finally:
        await database.close()


@app.command("show")
def show(
    domain: str = typer.Argument(..., help="Tenant domain"),
    include_private: bool = typer.Option(
        False,
        "--all",
        "-a",
        help="Include private keys",
    ),
) -> None:
    """Print the pipeline-resolved configuration for a tenant."""
    tenant = asyncio.run(_find_tenant(domain.lower(), Settings()))
    if tenant is None:
        typer.echo(f"No tenant for domain '{domain}'", err=True)
        raise typer.Exit(code=1)

    described = describe_config(tenant, build_default_pipeline(), include_private)
    output = orjson.dumps(described, option=orjson.OPT_INDENT_2 | orjson.OPT_SORT_KEYS)
    typer.echo(output.decode())
