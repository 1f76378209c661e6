"""Command-line interface using Typer."""

from typing import Optional
from uuid import UUID

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from winning_formula import __version__
from winning_formula.logging import setup_logging

# Setup logging
setup_logging("cli")

app = typer.Typer(
    name="winning-formula",
    help="Winning Formula - content performance insights CLI",
    add_completion=False,
)

# Subcommand groups
analyze_app = typer.Typer(help="Video analysis commands")
insights_app = typer.Typer(help="Global insight commands")
sync_app = typer.Typer(help="External account sync commands")
db_app = typer.Typer(help="Database commands")
app.add_typer(analyze_app, name="analyze")
app.add_typer(insights_app, name="insights")
app.add_typer(sync_app, name="sync")
app.add_typer(db_app, name="db")

console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"Winning Formula v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="Override LOG_LEVEL for this command."
    ),
) -> None:
    """Winning Formula - find the creative patterns behind your best videos."""
    if log_level:
        setup_logging("cli", level=log_level)


@app.command()
def patterns(
    user_id: str = typer.Argument(..., help="User whose library to analyze"),
) -> None:
    """Compute a user's winning patterns and refresh their cache."""
    from winning_formula.db.session import get_session_context
    from winning_formula.domain.models import InsufficientData
    from winning_formula.services.patterns import PatternInsightService

    with get_session_context() as session:
        result = PatternInsightService(session).compute(user_id)

    if isinstance(result, InsufficientData):
        console.print(
            Panel.fit(
                f"{result.message}\n\n[dim]{result.current} / {result.threshold}[/dim]",
                title="Not enough data yet",
                border_style="yellow",
            )
        )
        return

    table = Table(title=f"Winning Patterns ({result.total_videos_analyzed} videos)")
    table.add_column("Category", style="cyan")
    table.add_column("Attribute")
    table.add_column("Value", style="bold")
    table.add_column("Avg Engagement", justify="right")
    table.add_column("Videos", justify="right")
    table.add_column("Confidence")

    for insight in result.insights:
        table.add_row(
            str(insight.category),
            insight.attribute,
            insight.value,
            f"{insight.avg_engagement:.2f}%",
            str(insight.video_count),
            str(insight.confidence_level),
        )

    console.print(table)
    for insight in result.insights:
        console.print(f"[dim]- {insight.recommendation}[/dim]")


@app.command()
def health() -> None:
    """Check the health of all services."""
    import httpx

    from winning_formula.config import settings

    url = f"http://{settings.api_host}:{settings.api_port}/health/ready"

    try:
        response = httpx.get(url, timeout=10)
        data = response.json()

        table = Table(title="Service Health")
        table.add_column("Component", style="cyan")
        table.add_column("Status")

        table.add_row("Database", "✓" if data.get("database") else "✗")
        table.add_row("Redis", "✓" if data.get("redis") else "✗")

        console.print(table)

        if data.get("ready"):
            console.print("[bold green]All services healthy![/bold green]")
        else:
            console.print("[bold yellow]Some services unhealthy[/bold yellow]")
            raise typer.Exit(code=1)

    except httpx.RequestError as e:
        console.print(f"[bold red]Cannot connect to API: {e}[/bold red]")
        console.print("[dim]Is the API server running?[/dim]")
        raise typer.Exit(code=1)


@app.command()
def worker() -> None:
    """Start a Celery worker with beat (for development)."""
    console.print("[bold blue]Starting Celery worker...[/bold blue]")

    import subprocess
    import sys

    subprocess.run(
        [
            sys.executable,
            "-m",
            "celery",
            "-A",
            "winning_formula.worker",
            "worker",
            "--beat",
            "--loglevel=info",
        ],
        check=True,
    )


# =============================================================================
# ANALYZE COMMANDS
# =============================================================================


@analyze_app.command("video")
def analyze_video(
    video_id: str = typer.Argument(..., help="Video ID"),
    force: bool = typer.Option(False, "--force", "-f", help="Replace an existing analysis"),
) -> None:
    """Analyze a single video now."""
    from winning_formula.db.session import get_session_context
    from winning_formula.domain.errors import WinningFormulaError
    from winning_formula.services.analyzer import VideoAnalyzer
    from winning_formula.utils import run_async

    try:
        video_uuid = UUID(video_id)
    except ValueError:
        console.print(f"[bold red]Invalid video ID: {video_id}[/bold red]")
        raise typer.Exit(code=1)

    with get_session_context() as session:
        try:
            outcome = run_async(VideoAnalyzer(session).analyze_video(video_uuid, force=force))
        except WinningFormulaError as e:
            console.print(f"[bold red]Error: {e}[/bold red]")
            raise typer.Exit(code=1)

    if not outcome.success:
        console.print(f"[bold red]✗ Analysis failed: {outcome.error}[/bold red]")
        raise typer.Exit(code=1)

    if outcome.already_analyzed:
        console.print(f"[yellow]Already analyzed: {outcome.analysis_id}[/yellow] (use --force)")
        return

    console.print(f"[bold green]✓ Analysis saved: {outcome.analysis_id}[/bold green]")
    if outcome.needs_review:
        console.print("[yellow]Low confidence - flagged for human review[/yellow]")


@analyze_app.command("batch")
def analyze_batch(
    limit: Optional[int] = typer.Option(None, "--limit", "-n", help="Videos to analyze"),
    delay: Optional[float] = typer.Option(None, "--delay", "-d", help="Seconds between calls"),
) -> None:
    """Analyze the next slice of pending videos."""
    from winning_formula.db.session import get_session_context
    from winning_formula.services.analyzer import VideoAnalyzer
    from winning_formula.utils import run_async

    with get_session_context() as session:
        result = run_async(VideoAnalyzer(session).batch_analyze(limit=limit, delay_seconds=delay))

    table = Table(title="Batch Analysis")
    table.add_column("Metric", style="cyan")
    table.add_column("Count", justify="right")
    for key, value in result.to_dict().items():
        table.add_row(key.replace("_", " ").title(), str(value))
    console.print(table)

    if result.failed:
        raise typer.Exit(code=1)


# =============================================================================
# INSIGHTS COMMANDS
# =============================================================================


@insights_app.command("generate")
def insights_generate() -> None:
    """Generate global content-type insights and best practices."""
    from winning_formula.db.session import get_session_context
    from winning_formula.services.global_insights import GlobalInsightGenerator

    with get_session_context() as session:
        result = GlobalInsightGenerator(session).generate()

    if result.count == 0:
        console.print("[dim]No videos with metrics yet.[/dim]")
        return

    console.print(
        Panel.fit(
            f"[cyan]Videos:[/cyan] {result.count}\n"
            f"[cyan]Global avg:[/cyan] {result.global_avg:.2f}%\n"
            f"[cyan]Insights:[/cyan] {result.insights_generated}\n"
            f"[cyan]Top performers:[/cyan] {result.top_performers}\n"
            f"[cyan]New best practices:[/cyan] {result.best_practices_created}",
            title="Global Insights",
            border_style="green",
        )
    )


# =============================================================================
# SYNC COMMANDS
# =============================================================================


@sync_app.command("tiktok")
def sync_tiktok() -> None:
    """Import videos and metrics from every linked TikTok account."""
    from winning_formula.db.session import get_session_context
    from winning_formula.services.tiktok_sync import TikTokSyncService
    from winning_formula.utils import run_async

    with get_session_context() as session:
        results = run_async(TikTokSyncService(session).sync_all())

    if not results:
        console.print("[dim]No linked TikTok accounts.[/dim]")
        return

    table = Table(title="TikTok Sync")
    table.add_column("User", style="cyan")
    table.add_column("Status")
    table.add_column("Details")

    styles = {"success": "green", "skipped": "yellow", "error": "red"}
    for r in results:
        details = str(r.count) if r.status == "success" else (r.reason or r.error or "")
        table.add_row(r.user_id, f"[{styles[r.status]}]{r.status}[/]", details[:60])

    console.print(table)


# =============================================================================
# DB COMMANDS
# =============================================================================


@db_app.command("init")
def db_init() -> None:
    """Create missing tables (development; use Alembic in production)."""
    from winning_formula.db.session import init_db

    try:
        init_db()
    except Exception as e:
        console.print(f"[bold red]Error: {e}[/bold red]")
        raise typer.Exit(code=1)

    console.print("[bold green]✓ Database ready[/bold green]")


if __name__ == "__main__":
    app()
