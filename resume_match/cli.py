"""
ResumeMatch Command Line Interface

Provides CLI commands for scoring resumes against job descriptions,
asking questions about indexed resumes, and database utilities.
"""

import asyncio
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from resume_match.utils.exceptions import MatchEngineError

app = typer.Typer(
    name="resume-match",
    help="Resume to Job Description Match Engine CLI",
    add_completion=False,
)
console = Console()

LEVEL_COLORS = {
    "excellent": "green",
    "good": "blue",
    "fair": "yellow",
    "poor": "red",
}


def _print_error(error: MatchEngineError) -> None:
    console.print(f"[red]Error: {error.message}[/red]")
    if error.details:
        details = ", ".join(f"{k}={v}" for k, v in error.details.items())
        console.print(f"[dim]{error.error_code}: {details}[/dim]")


@app.command()
def version():
    """Show application version."""
    from resume_match import __app_name__, __version__

    console.print(f"[bold blue]{__app_name__}[/bold blue] version [green]{__version__}[/green]")


@app.command()
def info():
    """Show system information and configuration."""
    from resume_match.utils.config import get_settings

    settings = get_settings()

    table = Table(title="ResumeMatch Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Environment", settings.environment)
    table.add_row("Debug Mode", str(settings.debug))
    table.add_row("Database Host", settings.database.host)
    table.add_row("Database Name", settings.database.name)
    table.add_row("Vector Store", settings.vector_store.provider)
    table.add_row("Embedding Model", settings.ml.embedding_model)
    table.add_row("ML Device", settings.ml.device)
    table.add_row(
        "Match Weights",
        f"semantic={settings.matching.weight_semantic}, "
        f"keyword={settings.matching.weight_keyword}, "
        f"years={settings.matching.weight_years}",
    )
    table.add_row("LLM Model", settings.llm.model)
    table.add_row("Log Level", settings.logging.level)

    console.print(table)


@app.command()
def init_db():
    """Create the indexes of the document collections."""
    from resume_match.data.database import get_database_manager

    console.print("[yellow]Initializing database...[/yellow]")
    db_manager = get_database_manager()

    async def _init() -> bool:
        console.print("  Checking database connection...")
        if not await db_manager.check_connection():
            return False
        console.print("  [green]✓[/green] Connected to MongoDB")
        console.print("  Creating indexes...")
        await db_manager.ensure_indexes()
        console.print("  [green]✓[/green] Indexes created")
        return True

    try:
        connected = asyncio.run(_init())
    finally:
        db_manager.close()

    if not connected:
        console.print("[red]Error: Could not connect to MongoDB.[/red]")
        console.print("[dim]Make sure MongoDB is running and connection settings are correct.[/dim]")
        raise typer.Exit(1)
    console.print("\n[green]Database initialized successfully![/green]")


@app.command()
def warmup():
    """Load the embedding model so the first match is not slowed down."""
    from rich.progress import Progress, SpinnerColumn, TextColumn

    from resume_match.ml.embeddings import get_embedding_model
    from resume_match.utils.config import get_settings

    settings = get_settings()
    console.print("[yellow]Warming up embedding model...[/yellow]")
    console.print(f"  Device: [cyan]{settings.ml.device}[/cyan]")
    console.print(f"  Embedding Model: [cyan]{settings.ml.embedding_model}[/cyan]")

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
    ) as progress:
        task = progress.add_task("Loading embedding model...", total=None)
        model = get_embedding_model()
        model.encode("test warmup sentence")
        progress.update(task, description=f"[green]✓[/green] Embedding model loaded ({model.dimension} dims)")

    console.print("\n[green]Model warmup completed![/green]")


@app.command()
def metric():
    """Show the similarity metric the vector index reports."""
    from resume_match.core.retrieval import MetricResolver
    from resume_match.ml.embeddings import get_chunk_store

    resolved = asyncio.run(MetricResolver(get_chunk_store()).resolve())
    console.print(f"Index metric: [cyan]{resolved.value}[/cyan]")


@app.command()
def match(
    resume_id: str = typer.Argument(..., help="Indexed resume document ID"),
    jd_id: str = typer.Argument(..., help="Indexed job description document ID"),
    semantic: Optional[float] = typer.Option(None, "--semantic", help="Semantic score weight"),
    keyword: Optional[float] = typer.Option(None, "--keyword", help="Skill score weight"),
    years: Optional[float] = typer.Option(None, "--years", help="Experience score weight"),
    show_skills: bool = typer.Option(False, "--skills", "-s", help="Show per-skill evidence"),
):
    """Score a resume against a job description."""
    from resume_match.core.matching import get_matching_engine
    from resume_match.data.database import get_database_manager

    weights = None
    if any(w is not None for w in (semantic, keyword, years)):
        defaults = get_matching_engine().weights
        weights = {
            "semantic": defaults.semantic if semantic is None else semantic,
            "keyword": defaults.keyword if keyword is None else keyword,
            "years": defaults.years if years is None else years,
        }

    console.print(f"[yellow]Matching resume {resume_id} against job description {jd_id}[/yellow]")

    try:
        result = asyncio.run(get_matching_engine().calculate_match(resume_id, jd_id, weights))
    except MatchEngineError as e:
        _print_error(e)
        raise typer.Exit(1)
    finally:
        get_database_manager().close()

    level = result.score_level.value
    color = LEVEL_COLORS[level]

    table = Table(title=f"Match {resume_id} / {jd_id}")
    table.add_column("Signal", style="cyan")
    table.add_column("Score", justify="right")
    table.add_column("Weight", justify="right", style="dim")

    table.add_row("Semantic", f"{result.semantic_score:.1%}", f"{result.weights.semantic:.2f}")
    table.add_row("Skills", f"{result.keyword_score:.1%}", f"{result.weights.keyword:.2f}")
    table.add_row("Experience", f"{result.years_score:.1%}", f"{result.weights.years:.2f}")
    table.add_row("[bold]Final[/bold]", f"[{color}]{result.final_percent}%[/{color}]", level.upper())
    console.print(table)

    years_found = "unknown" if result.resume_years is None else str(result.resume_years)
    years_required = "none" if result.required_years is None else str(result.required_years)
    console.print(f"  Experience: {years_found} years (required: {years_required})")

    if result.matched_skills:
        console.print(f"  [green]Matched:[/green] {', '.join(result.matched_skills)}")
    if result.missing_skills:
        console.print(f"  [yellow]Missing:[/yellow] {', '.join(result.missing_skills)}")

    console.print("\n[bold]Explanation:[/bold]")
    console.print(f"  {result.explanation}")

    if result.top_chunks:
        console.print("\n[bold]Top Evidence:[/bold]")
        for chunk in result.top_chunks:
            console.print(f"  • [dim]({chunk.score:.2f})[/dim] {chunk.snippet}")

    if show_skills and result.skill_evidence:
        skills_table = Table(title="Skill Evidence")
        skills_table.add_column("Skill", style="cyan")
        skills_table.add_column("Tier")
        skills_table.add_column("Matched", justify="center")
        skills_table.add_column("Agg", justify="right")
        skills_table.add_column("Top", justify="right")
        skills_table.add_column("Lexical")

        for evidence in result.skill_evidence:
            skills_table.add_row(
                evidence.skill,
                evidence.tier,
                "[green]✓[/green]" if evidence.matched else "[red]✗[/red]",
                f"{evidence.agg_score:.2f}",
                f"{evidence.top_score:.2f}",
                evidence.error or evidence.lexical_match or "-",
            )
        console.print(skills_table)


@app.command()
def ask(
    resume_id: str = typer.Argument(..., help="Indexed resume document ID"),
    question: Optional[str] = typer.Argument(None, help="Question; omit for an interactive chat"),
    show_evidence: bool = typer.Option(False, "--evidence", "-e", help="Show the resume evidence used"),
):
    """Ask questions about an indexed resume."""
    from resume_match.core.chat import get_qa_service
    from resume_match.data.database import get_database_manager
    from resume_match.data.models import ChatMessage

    service = get_qa_service()

    async def _ask(text: str, history: list[ChatMessage]) -> None:
        answer = await service.answer(resume_id, text, history)
        console.print(f"\n[bold blue]Answer:[/bold blue] {answer.answer}")
        if show_evidence:
            for chunk in answer.evidence:
                console.print(f"  • [dim]({chunk.score:.2f})[/dim] {chunk.snippet}")
        history.append(ChatMessage(role="user", content=text))
        history.append(ChatMessage(role="assistant", content=answer.answer))

    async def _chat() -> None:
        history: list[ChatMessage] = []
        if question:
            await _ask(question, history)
            return

        console.print("[dim]Type a question, or an empty line to quit.[/dim]")
        while True:
            text = typer.prompt("\nQuestion", default="", show_default=False).strip()
            if not text:
                break
            await _ask(text, history)

    try:
        asyncio.run(_chat())
    except MatchEngineError as e:
        _print_error(e)
        raise typer.Exit(1)
    finally:
        get_database_manager().close()


if __name__ == "__main__":
    app()
