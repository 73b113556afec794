"""
Command Line Interface for Competitor Intel
===========================================

Compare two websites, run owner-scoped competitor analyses, manage business
profiles and social connections, and maintain the metric cache.
"""

import asyncio
import json
import sys
from typing import Optional

import click
from loguru import logger
from rich.console import Console
from rich.table import Table

from competitor_intel import __version__
from competitor_intel.config import get_settings
from competitor_intel.core.analyzer import SingleSiteAnalyzer
from competitor_intel.core.cache import CacheGateway
from competitor_intel.core.errors import InvalidDomain
from competitor_intel.core.models import CompositeKey, SubjectType
from competitor_intel.core.orchestrator import CompetitiveOrchestrator
from competitor_intel.core.assembler import ResultAssembler
from competitor_intel.database import init_db
from competitor_intel.database.repository import ProfileRepository
from competitor_intel.database.store import SQLCacheStore
from competitor_intel.engine.comparison import ComparisonEngine
from competitor_intel.providers import default_providers
from competitor_intel.service import CompetitorAnalysisService
from competitor_intel.utils.helpers import normalize_domain

console = Console()

WINNER_STYLES = {
    "yours": "[green]yours[/green]",
    "competitor": "[red]competitor[/red]",
    "tie": "[yellow]tie[/yellow]",
    "unavailable": "[dim]unavailable[/dim]",
}


def setup_logging(verbose: bool = False) -> None:
    settings = get_settings()
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "WARNING", format=(
        "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
        "<level>{message}</level>"
    ))
    logger.add(
        settings.log_file,
        rotation="10 MB",
        retention="30 days",
        level=settings.log_level,
    )


def build_gateway() -> CacheGateway:
    return CacheGateway(SQLCacheStore())


def print_response(response: dict) -> None:
    if not response.get("success"):
        console.print(f"[bold red]Analysis failed:[/bold red] {response.get('error')}")
        return

    comparison = response["comparison"]
    your_domain = response["your_site"]["domain"]
    competitor_domain = response["competitor_site"]["domain"]

    table = Table(title=f"{your_domain} vs {competitor_domain}")
    table.add_column("Category", style="cyan")
    table.add_column(your_domain, justify="right")
    table.add_column(competitor_domain, justify="right")
    table.add_column("Winner")
    table.add_column("Gap", justify="right")

    for name, row in comparison.items():
        if name in ("market_share", "summary"):
            continue
        table.add_row(
            name,
            str(row["your_value"] if row["your_value"] is not None else "-"),
            str(row["competitor_value"] if row["competitor_value"] is not None else "-"),
            WINNER_STYLES.get(row["winner"], row["winner"]),
            str(row["gap"] if row["gap"] is not None else "-"),
        )
    console.print(table)

    share = comparison["market_share"]
    console.print(
        f"\n[bold]Market share:[/bold] yours {share['yours']}% / competitor {share['competitor']}%"
    )

    summary = comparison.get("summary") or {}
    for section, label, style in (
        ("strengths", "strength", "green"),
        ("weaknesses", "weakness", "red"),
        ("opportunities", "opportunity", "yellow"),
    ):
        for item in summary.get(section, []):
            console.print(f"  [{style}]{label}:[/{style}] {item}")

    if response.get("partial_failure"):
        console.print("\n[yellow]Some metrics could not be collected:[/yellow]")
        for failure in response["failed_metrics"]:
            console.print(
                f"  [{failure.get('site', '-')}] {failure['metric']}: "
                f"{failure['error_kind']} - {failure['error']}"
            )

    if response.get("cached"):
        console.print(f"\n[dim]Served from cache ({response.get('cache_age_minutes', 0)} min old)[/dim]")


def emit(response: dict, as_json: bool) -> None:
    if as_json:
        click.echo(json.dumps(response, indent=2, default=str))
    else:
        print_response(response)


@click.group()
@click.version_option(version=__version__, prog_name="Competitor Intel")
@click.option("--verbose", "-v", is_flag=True, help="Log debug output to stderr")
def main(verbose: bool):
    """
    Competitor Intel

    Compare your website with a competitor's across performance, SEO,
    content, technology, security, traffic, backlinks and social reach.
    """
    setup_logging(verbose)


@main.command("init-db")
def init_db_command():
    """Create database tables."""
    engine = init_db()
    console.print(f"[green]Database initialized at: {engine.url}[/green]")


@main.command()
@click.argument("your_domain")
@click.argument("competitor_domain")
@click.option("--owner", default="cli", help="Owner id the cached metrics belong to")
@click.option("--no-cache", is_flag=True, help="Run without the metric cache")
@click.option("--refresh", is_flag=True, help="Ignore cached metrics")
@click.option("--json", "as_json", is_flag=True, help="Print the raw JSON response")
def compare(your_domain: str, competitor_domain: str, owner: str, no_cache: bool, refresh: bool, as_json: bool):
    """Compare two domains directly, without a business profile."""
    try:
        your_domain = normalize_domain(your_domain)
        competitor_domain = normalize_domain(competitor_domain)
    except InvalidDomain as e:
        raise click.BadParameter(str(e))

    settings = get_settings()
    cache = None if no_cache else build_gateway()
    analyzer = SingleSiteAnalyzer(default_providers(settings, include_social=False), cache=cache)
    orchestrator = CompetitiveOrchestrator(
        analyzer,
        engine=ComparisonEngine(weights=settings.market_share_weights),
        settings=settings,
    )

    async def run() -> dict:
        result = await orchestrator.compare(
            your_domain, competitor_domain, owner_id=owner, force_refresh=refresh
        )
        return ResultAssembler().assemble(result)

    with console.status(f"[cyan]Comparing {your_domain} with {competitor_domain}..."):
        response = asyncio.run(run())
    emit(response, as_json)


@main.command()
@click.argument("owner_id")
@click.argument("competitor_domain")
@click.option("--your-domain", help="Override the profile's domain")
@click.option("--refresh", is_flag=True, help="Bypass cached metrics and reports")
@click.option("--json", "as_json", is_flag=True, help="Print the raw JSON response")
def analyze(owner_id: str, competitor_domain: str, your_domain: Optional[str], refresh: bool, as_json: bool):
    """Run a full competitor analysis for a business profile."""
    service = CompetitorAnalysisService.create(ProfileRepository(), cache=build_gateway())

    with console.status(f"[cyan]Analyzing {competitor_domain} for {owner_id}..."):
        response = asyncio.run(service.analyze(
            owner_id, competitor_domain, your_domain=your_domain, force_refresh=refresh
        ))
    emit(response, as_json)
    if not response.get("success"):
        sys.exit(1)


@main.group()
def profile():
    """Business profile and social connection commands."""
    pass


def _parse_handles(values: tuple[str, ...]) -> Optional[dict[str, str]]:
    if not values:
        return None
    handles = {}
    for value in values:
        platform, sep, username = value.partition("=")
        if not sep or not username:
            raise click.BadParameter(f"Expected platform=username, got {value!r}")
        handles[platform.strip().lower()] = username.strip()
    return handles


@profile.command("set")
@click.argument("owner_id")
@click.argument("domain")
@click.option("--name", default="", help="Business name")
@click.option("--handle", "handles", multiple=True, help="Declared handle as platform=username")
@click.option("--competitor", "competitors", multiple=True, help="Competitor domain to track")
def profile_set(owner_id: str, domain: str, name: str, handles: tuple[str, ...], competitors: tuple[str, ...]):
    """Create or update a business profile."""
    repo = ProfileRepository()
    repo.save_profile(owner_id, domain, name=name, declared_handles=_parse_handles(handles))
    for competitor in competitors:
        repo.add_competitor(owner_id, competitor)
    console.print(f"[green]Profile saved for {owner_id}[/green]")


@profile.command("competitor")
@click.argument("owner_id")
@click.argument("domain")
@click.option("--name", default="", help="Competitor name")
@click.option("--handle", "handles", multiple=True, help="Public handle as platform=username")
def profile_competitor(owner_id: str, domain: str, name: str, handles: tuple[str, ...]):
    """Add or update a tracked competitor."""
    try:
        ProfileRepository().add_competitor(owner_id, domain, name=name, handles=_parse_handles(handles))
    except LookupError as e:
        raise click.ClickException(str(e))
    console.print(f"[green]Competitor {domain} saved for {owner_id}[/green]")


@profile.command("connect")
@click.argument("owner_id")
@click.argument("platform", type=click.Choice(["facebook", "instagram", "linkedin"]))
@click.argument("username")
def profile_connect(owner_id: str, platform: str, username: str):
    """Record an OAuth-connected social account."""
    ProfileRepository().connect_account(owner_id, platform, username)
    console.print(f"[green]Connected {platform} account for {owner_id}[/green]")


@main.group()
def cache():
    """Metric cache maintenance."""
    pass


@cache.command("purge")
def cache_purge():
    """Delete expired cache entries."""
    removed = asyncio.run(build_gateway().purge_expired())
    console.print(f"[green]Removed {removed} expired entries[/green]")


@cache.command("invalidate")
@click.argument("owner_id")
@click.argument("domain")
@click.argument("metric_kind")
@click.option("--competitor", "subject", flag_value="competitor", help="Entry belongs to a competitor")
@click.option("--user", "subject", flag_value="user", default=True, help="Entry belongs to the owner")
def cache_invalidate(owner_id: str, domain: str, metric_kind: str, subject: str):
    """Evict one cached metric."""
    key = CompositeKey(
        subject_type=SubjectType(subject),
        owner_id=owner_id,
        domain=domain,
        metric_kind=metric_kind,
    )
    removed = asyncio.run(build_gateway().invalidate(key))
    if removed:
        console.print(f"[green]Evicted {metric_kind} for {domain}[/green]")
    else:
        console.print(f"[yellow]No cached {metric_kind} for {domain}[/yellow]")


if __name__ == "__main__":
    main()
