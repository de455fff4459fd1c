"""Command-line interface for Career Matcher."""

import asyncio
import json
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from career_matcher.config import settings
from career_matcher.core.errors import CareerMatcherError
from career_matcher.core.models import Document, JobPosting

app = typer.Typer(
    name="career-matcher",
    help="Career Matcher - match a résumé against job postings and track applications",
    add_completion=False,
)
console = Console()

FIT_STYLES = {
    "excellent": "bold green",
    "good": "green",
    "fair": "yellow",
    "poor": "red",
}


def load_postings(path: Optional[Path]) -> List[JobPosting]:
    """Postings from a JSON file (a list, or an object with a "postings" list), else the demo set."""
    if path is None:
        from career_matcher.demo import sample_postings
        return sample_postings()

    payload = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(payload, dict):
        payload = payload.get("postings", [])
    return [JobPosting.model_validate(item) for item in payload]


def read_document(path: Path) -> Document:
    """Wrap a résumé file; the media type is taken from its suffix."""
    return Document(filename=path.name, media_type=path.suffix.lstrip(".").lower(), data=path.read_bytes())


@app.command()
def serve(
    host: str = typer.Option(settings.host, help="Host to bind to"),
    port: int = typer.Option(settings.port, help="Port to bind to"),
    reload: bool = typer.Option(settings.reload, help="Enable auto-reload"),
) -> None:
    """Start the API server."""
    import uvicorn

    console.print(f"🚀 Starting Career Matcher on {host}:{port}")
    uvicorn.run(
        "career_matcher.api.main:app",
        host=host,
        port=port,
        reload=reload,
        log_config=None,
    )


@app.command()
def match(
    resume: Path = typer.Argument(..., exists=True, dir_okay=False, help="Résumé (PDF, DOC or DOCX)"),
    jobs: Optional[Path] = typer.Option(None, "--jobs", exists=True, dir_okay=False, help="JSON file of postings"),
    search: str = typer.Option("", "--search", help="Substring of title or company"),
    min_score: Optional[int] = typer.Option(None, "--min-score", min=0, max=100, help="Score floor"),
    high_match: bool = typer.Option(False, "--high-match", help="Only high matches"),
    sort: str = typer.Option("score", "--sort", help="score, company or posted_at"),
    explain: int = typer.Option(0, "--explain", min=0, help="Show reasons and gaps for the top N matches"),
) -> None:
    """Score a résumé against a set of job postings."""
    from career_matcher.session import CareerSession

    session = CareerSession.from_settings()
    session.add_postings(load_postings(jobs))

    score_floor = min_score
    if high_match:
        score_floor = max(score_floor or 0, settings.high_match_threshold)

    try:
        with console.status("Analyzing résumé..."):
            profile = asyncio.run(session.upload_resume(read_document(resume)))
        entries = session.catalog.query(search_text=search, score_floor=score_floor, sort_key=sort)
    except CareerMatcherError as e:
        console.print(f"[red]❌ {e.message}[/red] ({e.code})")
        raise typer.Exit(code=1)

    console.print(
        f"Profile: {len(profile.skills)} skills, {profile.experience_years:g} years, "
        f"{profile.education_level.label} education"
    )

    table = Table(title=f"Job Matches ({len(entries)})")
    table.add_column("ID", style="cyan")
    table.add_column("Title")
    table.add_column("Company")
    table.add_column("Score", justify="right")
    table.add_column("Fit")
    for entry in entries:
        fit = entry.result.fit_level.value
        table.add_row(
            entry.posting.id,
            entry.posting.title,
            entry.posting.company,
            str(entry.score),
            f"[{FIT_STYLES[fit]}]{fit}[/{FIT_STYLES[fit]}]",
        )
    console.print(table)

    for entry in entries[:explain]:
        console.print(f"\n[bold]{entry.posting.title}[/bold] at {entry.posting.company}: {entry.score}")
        for reason in entry.result.reasons:
            console.print(f"  ✅ {reason}")
        for gap in entry.result.gaps:
            console.print(f"  ⚠️  {gap}")


@app.command()
def config() -> None:
    """Show current configuration."""
    table = Table(title="Career Matcher Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    # Show non-sensitive settings
    table.add_row("Debug Mode", str(settings.debug))
    table.add_row("Log Level", settings.log_level)
    table.add_row("Extraction Model", settings.extraction_model)
    table.add_row("OpenAI Key", "configured" if settings.openai_api_key else "missing")
    table.add_row("Groq Key", "configured" if settings.groq_api_key else "missing")
    table.add_row("Max Upload Bytes", str(settings.max_upload_bytes))
    table.add_row("Storage Directory", settings.storage_dir)
    table.add_row("Collaborator Timeout", f"{settings.collaborator_timeout:g}s")
    table.add_row("High Match Threshold", str(settings.high_match_threshold))

    console.print(table)


@app.command()
def version() -> None:
    """Show version information."""
    from career_matcher import __version__
    console.print(f"Career Matcher v{__version__}")


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
