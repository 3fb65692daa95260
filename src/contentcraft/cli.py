"""CLI entry point for ContentCraft Inspector."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import click
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table

console = Console()
logger = logging.getLogger(__name__)

KIND_CHOICES = [
    "authenticity-check",
    "quality-analysis",
    "outline-extraction",
    "originality-check",
    "rephrase",
]

session_token_option = click.option(
    "--session-token",
    envvar="CONTENTCRAFT_SESSION_TOKEN",
    default=None,
    help="Session secret from 'contentcraft login' (or CONTENTCRAFT_SESSION_TOKEN)",
)


@click.group()
@click.version_option(version="0.1.0")
def main() -> None:
    """ContentCraft Inspector: AI-assisted content analysis."""
    from contentcraft.config import get_settings
    from contentcraft.log import configure_logging

    configure_logging(get_settings().log_level)


# ---------------------------------------------------------------------------
# serve: HTTP API
# ---------------------------------------------------------------------------


@main.command()
@click.option("--host", default=None, help="Bind address (default from settings)")
@click.option("--port", default=None, type=int, help="Port (default from settings)")
@click.option("--reload", is_flag=True, help="Restart on code changes")
def serve(host: str | None, port: int | None, reload: bool) -> None:
    """Run the HTTP API."""
    import uvicorn

    from contentcraft.config import get_settings

    settings = get_settings()
    uvicorn.run(
        "contentcraft.api.app:create_app",
        factory=True,
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )


# ---------------------------------------------------------------------------
# generate: expert-guided content generation
# ---------------------------------------------------------------------------


@main.command()
@click.option("--title", "-t", required=True, help="Title or topic to write about")
@click.option("--keyword", "-k", "keywords", multiple=True, help="Keyword to include (repeatable)")
@click.option("--tone", default=None, help="Desired tone, e.g. casual or formal")
@click.option("--out", "-o", type=click.Path(dir_okay=False), default=None,
              help="Write the generated draft to this file")
@session_token_option
def generate(
    title: str,
    keywords: tuple[str, ...],
    tone: str | None,
    out: str | None,
    session_token: str | None,
) -> None:
    """Generate a draft for a title, written through a subject expert's lens."""
    from contentcraft.analysis.base import FeatureKind
    from contentcraft.config import get_settings

    settings = get_settings()
    _check_api_key(settings, FeatureKind.CONTENT_GENERATION)
    options = {"keywords": list(keywords), "tone": tone}

    with console.status("[bold green]Generating content..."):
        panel = asyncio.run(
            _run_panel(settings, FeatureKind.CONTENT_GENERATION, title, session_token, None, options)
        )

    if _report(panel) and out:
        Path(out).write_text(panel.result.content)
        console.print(f"[green]Saved to {out}[/green]")


# ---------------------------------------------------------------------------
# analyze: run one analysis panel on a draft
# ---------------------------------------------------------------------------


@main.command()
@click.argument("kind", type=click.Choice(KIND_CHOICES))
@click.option("--file", "-f", "file_path", type=click.Path(exists=True, dir_okay=False),
              help="Draft to analyze")
@click.option("--text", default=None, help="Text to analyze instead of a file")
@click.option("--document-id", default=None, help="Patch this history record instead of creating one")
@session_token_option
def analyze(
    kind: str,
    file_path: str | None,
    text: str | None,
    document_id: str | None,
    session_token: str | None,
) -> None:
    """Analyze a draft (quality, authenticity, outline, originality, rephrase)."""
    from contentcraft.analysis.base import FeatureKind
    from contentcraft.config import get_settings

    content = _read_input(file_path, text)
    if not content.strip():
        console.print("[yellow]Nothing to analyze: the input is empty.[/yellow]")
        return

    settings = get_settings()
    feature = FeatureKind(kind)
    _check_api_key(settings, feature)

    with console.status(f"[bold green]Running {kind}..."):
        panel = asyncio.run(_run_panel(settings, feature, content, session_token, document_id))

    console.print(f"[dim]{panel.word_count} words | {panel.reading_time} min read[/dim]")
    _report(panel)


# ---------------------------------------------------------------------------
# search: knowledge-gap lookup
# ---------------------------------------------------------------------------


@main.command()
@click.argument("topic", required=False)
@click.option("--file", "-f", "file_path", type=click.Path(exists=True, dir_okay=False),
              help="Derive the topic from this draft's opening words")
def search(topic: str | None, file_path: str | None) -> None:
    """Search the web for what a draft is missing."""
    from contentcraft.analysis.base import FeatureKind
    from contentcraft.analysis.metrics import extract_main_topic
    from contentcraft.config import get_settings

    if not topic and file_path:
        topic = extract_main_topic(Path(file_path).read_text())
    if not topic:
        raise click.UsageError("Give a TOPIC or --file.")

    settings = get_settings()
    _check_api_key(settings, FeatureKind.KNOWLEDGE_SEARCH)

    with console.status(f"[bold green]Searching: {topic}..."):
        panel = asyncio.run(_run_panel(settings, FeatureKind.KNOWLEDGE_SEARCH, topic, None, None))
    _report(panel)


# ---------------------------------------------------------------------------
# account: login / signup
# ---------------------------------------------------------------------------


@main.command()
@click.option("--email", prompt=True)
@click.option("--password", prompt=True, hide_input=True)
def login(email: str, password: str) -> None:
    """Log in and print a session token."""
    from contentcraft.config import get_settings
    from contentcraft.errors import ContentCraftError

    settings = get_settings()
    try:
        session = asyncio.run(_account_call(settings, "login", email, password))
    except ContentCraftError as e:
        console.print(f"[bold red]Login failed:[/bold red] {e}")
        raise SystemExit(1)
    _print_session(session)


@main.command()
@click.option("--email", prompt=True)
@click.option("--name", prompt=True)
@click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True)
def signup(email: str, name: str, password: str) -> None:
    """Create an account and print a session token."""
    from contentcraft.config import get_settings
    from contentcraft.errors import ContentCraftError

    settings = get_settings()
    try:
        session = asyncio.run(_account_call(settings, "signup", email, password, name))
    except ContentCraftError as e:
        console.print(f"[bold red]Signup failed:[/bold red] {e}")
        raise SystemExit(1)
    _print_session(session)


# ---------------------------------------------------------------------------
# history: list and delete saved sessions
# ---------------------------------------------------------------------------


@main.command()
@click.option("--page", "-p", default=1, type=click.IntRange(min=1), help="Page number")
@session_token_option
def history(page: int, session_token: str | None) -> None:
    """List your saved analysis sessions, newest first."""
    from contentcraft.config import get_settings
    from contentcraft.errors import ContentCraftError

    settings = get_settings()
    token = _require_token(session_token)
    try:
        result = asyncio.run(_history_call(settings, token, page))
    except ContentCraftError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise SystemExit(1)

    if not result.documents:
        console.print("[yellow]No saved content on this page.[/yellow]")
        return

    table = Table(title=f"History (page {page}, {result.total} total)")
    table.add_column("ID", width=32)
    table.add_column("Mode", width=20)
    table.add_column("Content", width=50)
    table.add_column("Created", width=12)
    for doc in result.documents:
        table.add_row(
            doc.get("$id", ""),
            doc.get("mode", ""),
            (doc.get("content") or "")[:50].replace("\n", " "),
            (doc.get("createdAt") or "")[:10],
        )
    console.print(table)


@main.command()
@click.argument("document_id")
@session_token_option
def forget(document_id: str, session_token: str | None) -> None:
    """Delete one saved session."""
    from contentcraft.config import get_settings
    from contentcraft.errors import ContentCraftError

    settings = get_settings()
    token = _require_token(session_token)
    try:
        asyncio.run(_delete_call(settings, token, document_id))
    except ContentCraftError as e:
        console.print(f"[bold red]Delete failed:[/bold red] {e}")
        raise SystemExit(1)
    console.print(f"[green]Deleted {document_id}[/green]")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _build_pipeline(settings: object):
    """Real provider clients; tests patch this."""
    from contentcraft.analysis.pipeline import AnalysisPipeline
    from contentcraft.llm.client import create_completion_client
    from contentcraft.search.client import SearchClient

    return AnalysisPipeline(create_completion_client(settings), SearchClient(settings))


def _build_backend(settings: object):
    """Account client and content store sharing one backend connection."""
    from contentcraft.backend.account import AccountClient
    from contentcraft.backend.appwrite import AppwriteHTTP
    from contentcraft.persistence import create_content_store

    http = AppwriteHTTP(settings)
    return AccountClient(http), create_content_store(settings, http)


async def _run_panel(
    settings: object,
    kind: object,
    text: str,
    session_token: str | None,
    document_id: str | None,
    options: dict | None = None,
):
    from contentcraft.errors import AuthRequiredError, ContentCraftError
    from contentcraft.panel import AnalysisPanel
    from contentcraft.persistence import PersistenceAdapter, SessionContext

    pipeline = accounts = store = panel = None
    try:
        pipeline = _build_pipeline(settings)
        persistence = context = None
        if session_token:
            accounts, store = _build_backend(settings)
            try:
                user = await accounts.get_user(session_token)
            except AuthRequiredError:
                # Expired token: analysis still runs, the save reports login_required.
                context = SessionContext(session=None, document_id=document_id)
            except ContentCraftError as exc:
                logger.warning("Content backend unavailable, skipping save: %s", exc)
                console.print("[yellow]Content backend unreachable; result will not be saved.[/yellow]")
            else:
                context = SessionContext(session=user, document_id=document_id)
            if context is not None:
                persistence = PersistenceAdapter(store)

        panel = AnalysisPanel(
            pipeline, kind, persistence=persistence, context=context, options=options
        )
        await panel.trigger(text)
    finally:
        if panel is not None:
            await panel.close()
        if pipeline is not None:
            await pipeline.aclose()
        if store is not None:
            await store.aclose()
        if accounts is not None:
            await accounts.aclose()
    return panel


async def _account_call(settings: object, action: str, *args: str):
    accounts, store = _build_backend(settings)
    try:
        return await getattr(accounts, action)(*args)
    finally:
        await store.aclose()
        await accounts.aclose()


async def _history_call(settings: object, token: str, page: int):
    accounts, store = _build_backend(settings)
    try:
        user = await accounts.get_user(token)
        return await store.list_history(user.user_id, page, settings.history_page_size)
    finally:
        await store.aclose()
        await accounts.aclose()


async def _delete_call(settings: object, token: str, document_id: str) -> None:
    from contentcraft.errors import BackendError

    accounts, store = _build_backend(settings)
    try:
        user = await accounts.get_user(token)
        document = await store.get(document_id)
        if document.get("userId") != user.user_id:
            raise BackendError(f"document {document_id} not found", status_code=404)
        await store.delete(document_id)
    finally:
        await store.aclose()
        await accounts.aclose()


def _report(panel: object) -> bool:
    """Render the panel's final state; True on success."""
    from contentcraft.panel import PanelState

    if panel.state != PanelState.SUCCESS:
        console.print(f"[bold red]Error:[/bold red] {panel.error}")
        return False

    _render_result(panel.result)
    if panel.document_id:
        console.print(f"\n[dim]Saved as {panel.document_id}[/dim]")
    if panel.login_required:
        console.print("\n[yellow]Session expired; log in again to save history.[/yellow]")
    elif panel.persist_errors:
        console.print(f"\n[yellow]Result not saved: {panel.persist_errors[-1]}[/yellow]")
    return True


def _render_result(result: object) -> None:
    from contentcraft.analysis.results import (
        AuthenticityResult,
        GeneratedContent,
        KnowledgeSearchResult,
        OriginalityResult,
        OutlineResult,
        QualityResult,
        RephraseResult,
    )

    if isinstance(result, QualityResult):
        table = Table(title="Content Quality")
        table.add_column("Metric")
        table.add_column("Value", justify="right")
        table.add_row("Content score", f"{result.content_score:.0f}/100")
        table.add_row("Readability", f"{result.readability:.0f}/100")
        table.add_row("Tone", result.tone)
        table.add_row("Words", str(result.word_count))
        table.add_row("Reading time", f"{result.reading_time} min")
        console.print(table)
        _print_list("Key insights", result.key_insights)
        _print_list("Improvements", result.improvements)
    elif isinstance(result, AuthenticityResult):
        console.print(
            Panel(
                f"AI: [bold]{result.ai_score:.0f}%[/bold]   Human: [bold]{result.human_score:.0f}%[/bold]",
                title="Authenticity",
            )
        )
        console.print(Markdown(result.analysis))
        console.print(Panel(Markdown(result.humanized_version), title="Humanized version"))
    elif isinstance(result, OutlineResult):
        console.print("[bold]Outline[/bold]")
        for item in result.outline:
            console.print("  " * item.level + f"- {item.text}")
        _print_list("Suggestions", result.suggestions)
        _print_list("Content gaps", result.content_gaps)
    elif isinstance(result, OriginalityResult):
        console.print(
            Panel(
                f"Plagiarism: [bold]{result.plagiarism_score:.0f}%[/bold]   "
                f"Uniqueness: [bold]{result.uniqueness_score:.0f}%[/bold]",
                title="Originality",
            )
        )
        console.print(Markdown(result.analysis))
        _print_list("Suggestions", result.suggestions)
        console.print(Panel(Markdown(result.improved_version), title="Improved version"))
    elif isinstance(result, RephraseResult):
        console.print(Panel(Markdown(result.text), title="Rephrased"))
    elif isinstance(result, KnowledgeSearchResult):
        console.print(Panel(result.answer or "[dim]No answer[/dim]", title="Answer"))
        table = Table(title="Sources")
        table.add_column("Title", width=40)
        table.add_column("URL", width=50)
        for hit in result.results:
            table.add_row(hit.title, hit.url)
        console.print(table)
    elif isinstance(result, GeneratedContent):
        console.print(Panel(result.expert, title="Expert"))
        console.print(Markdown(result.content))


def _print_list(title: str, items: list[str]) -> None:
    if not items:
        return
    console.print(f"\n[bold]{title}[/bold]")
    for item in items:
        console.print(f"  - {item}")


def _print_session(session: object) -> None:
    console.print(f"[green]Logged in as {session.name or session.email}[/green]")
    console.print(f"Session token: [bold]{session.token}[/bold]")
    console.print("[dim]Export it as CONTENTCRAFT_SESSION_TOKEN to save your history.[/dim]")


def _read_input(file_path: str | None, text: str | None) -> str:
    if file_path:
        return Path(file_path).read_text()
    if text is not None:
        return text
    raise click.UsageError("Give --file or --text.")


def _require_token(session_token: str | None) -> str:
    if not session_token:
        console.print(
            "[bold red]Error:[/bold red] not logged in.\n"
            "Run 'contentcraft login' and export CONTENTCRAFT_SESSION_TOKEN."
        )
        raise SystemExit(1)
    return session_token


def _check_api_key(settings: object, kind: object) -> None:
    """Exit with a helpful message if the provider key for ``kind`` is not set."""
    from contentcraft.analysis.base import FeatureKind

    if kind == FeatureKind.KNOWLEDGE_SEARCH:
        missing = "TAVILY_API_KEY" if not settings.tavily_api_key else None
    elif settings.completion_provider == "anthropic":
        missing = "ANTHROPIC_API_KEY" if not settings.anthropic_api_key else None
    else:
        missing = "OPENAI_API_KEY" if not settings.openai_api_key else None

    if missing:
        console.print(
            f"[bold red]Error:[/bold red] {missing} not set.\n"
            "Edit .env and add your key."
        )
        raise SystemExit(1)
