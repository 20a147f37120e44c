"""Memory CLI commands: ingest, query, context, profile, consolidate, status."""

import threading
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from cli.utils import get_components
from memory.errors import StoreUnavailable

console = Console()

KIND_CHOICES = ["fact", "preference", "emotion", "goal", "relationship", "skill", "question"]


def _user(c: dict, user: str | None) -> str:
    return user or c["config"].user_id


def _components(use_ai: bool = True) -> dict:
    try:
        return get_components(use_ai=use_ai)
    except (ValueError, StoreUnavailable) as e:
        raise click.ClickException(str(e))


@click.command("ingest")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--user", "-u", default=None, help="User id (defaults to config user_id)")
@click.option("--no-ai", is_flag=True, help="Rule-based extraction only")
@click.option("--dry-run", is_flag=True, help="Show what would be extracted without storing")
def ingest(path: Path, user: str | None, no_ai: bool, dry_run: bool):
    """Extract memories from a conversation export and rebuild the profile."""
    from memory.conversations import load_turns
    from observability import log_run_summary

    c = _components(use_ai=not no_ai)
    user_id = _user(c, user)

    try:
        turns = load_turns(path)
    except ValueError as e:
        raise click.ClickException(str(e))

    console.print(f"Found {len(turns)} conversation turns")

    if dry_run:
        items = c["coordinator"].extract_batch(turns)
        for item in items:
            console.print(
                escape(f"  [{item.kind.value}] {item.content} (importance={item.importance:.1f})")
            )
        console.print(f"\n[yellow]Dry run:[/] would store {len(items)} memories")
        return

    cancel = threading.Event()
    try:
        stats = c["pipeline"].ingest(user_id, turns, cancel_event=cancel)
    except KeyboardInterrupt:
        cancel.set()
        console.print("[yellow]Interrupted. Memories saved so far are kept.[/]")
        return
    except StoreUnavailable as e:
        raise click.ClickException(f"Memory store unavailable: {e}")

    console.print(f"Chunks processed: {stats['chunks']}")
    console.print(f"Memories stored: {stats['items_extracted']}")
    console.print(f"Interests: {stats.get('interests', 0)}")
    log_run_summary()


@click.command("query")
@click.argument("keywords", nargs=-1)
@click.option("--user", "-u", default=None, help="User id (defaults to config user_id)")
@click.option("--limit", "-n", default=None, type=int, help="Max results")
@click.option("--kind", "-k", "kinds", multiple=True, type=click.Choice(KIND_CHOICES))
@click.option("--min-importance", default=0.0, type=float)
def query(
    keywords: tuple[str, ...],
    user: str | None,
    limit: int | None,
    kinds: tuple[str, ...],
    min_importance: float,
):
    """Rank stored memories by relevance and recency."""
    from memory.models import MemoryKind, Query

    c = _components(use_ai=False)
    q = Query(
        keywords=list(keywords),
        kinds={MemoryKind(k) for k in kinds},
        min_importance=min_importance,
        limit=limit or c["config"].retrieval.default_limit,
    )
    results = c["retriever"].query(_user(c, user), q)

    if not results:
        console.print("No matching memories.")
        return

    table = Table(title="Memories")
    table.add_column("Kind", width=12)
    table.add_column("Memory")
    table.add_column("Rel", width=5)
    table.add_column("Rec", width=5)
    table.add_column("Score", width=5)
    for r in results:
        table.add_row(
            r.item.kind.value,
            escape(r.item.content[:80]),
            f"{r.relevance_score:.2f}",
            f"{r.recency_score:.2f}",
            f"{r.combined_score:.2f}",
        )
    console.print(table)


@click.command("context")
@click.argument("keywords", nargs=-1)
@click.option("--user", "-u", default=None, help="User id (defaults to config user_id)")
@click.option("--message", "-m", default=None, help="Derive keywords from a chat message")
def context(keywords: tuple[str, ...], user: str | None, message: str | None):
    """Print the prompt context (profile + relevant memories)."""
    c = _components(use_ai=False)
    user_id = _user(c, user)
    if message is not None:
        if keywords:
            raise click.UsageError("Pass KEYWORDS or --message, not both")
        text = c["pipeline"].context_for_message(user_id, message)
    else:
        text = c["pipeline"].build_prompt_context(user_id, list(keywords))
    if not text:
        console.print("No memory context available.")
        return
    click.echo(text)


@click.command("profile")
@click.option("--user", "-u", default=None, help="User id (defaults to config user_id)")
def profile(user: str | None):
    """Show the consolidated user profile."""
    c = _components(use_ai=False)
    user_id = _user(c, user)
    try:
        p = c["store"].load_profile(user_id)
    except StoreUnavailable as e:
        raise click.ClickException(f"Memory store unavailable: {e}")

    if p is None:
        console.print(f"No profile for {user_id} yet. Run [bold]ingest[/] first.")
        return

    console.print(f"[bold]{p.user_id}[/] (updated {p.last_updated:%Y-%m-%d %H:%M})\n")
    if p.is_empty():
        console.print("(empty profile)")
    else:
        click.echo(p.summary_text())
    emotions = p.emotional_profile.dominant_emotions
    if emotions:
        console.print("\nDominant emotions: " + ", ".join(e.value for e in emotions))
    patterns = p.conversation_patterns
    console.print(f"Avg memories per conversation: {patterns.average_conversation_length:.1f}")
    if patterns.question_types:
        console.print("Question types: " + ", ".join(patterns.question_types))


@click.command("consolidate")
@click.option("--user", "-u", default=None, help="User id (defaults to config user_id)")
def consolidate_cmd(user: str | None):
    """Rebuild the profile from all stored memories."""
    c = _components(use_ai=False)
    try:
        p = c["pipeline"].rebuild_profile(_user(c, user))
    except StoreUnavailable as e:
        raise click.ClickException(f"Memory store unavailable: {e}")
    console.print(
        f"Profile rebuilt: {len(p.core_facts)} facts, {len(p.preferences)} preferences, "
        f"{len(p.interests)} interests"
    )


@click.command("status")
@click.option("--user", "-u", default=None, help="User id (defaults to config user_id)")
def status(user: str | None):
    """Show memory counts by kind."""
    c = _components(use_ai=False)
    try:
        stats = c["store"].get_stats(_user(c, user))
    except StoreUnavailable as e:
        raise click.ClickException(f"Memory store unavailable: {e}")

    console.print(f"Memories: {stats['total']}")
    console.print(f"Conversations: {stats['conversations']}")
    if stats["by_kind"]:
        console.print("\nBy kind:")
        for kind, cnt in sorted(stats["by_kind"].items()):
            console.print(f"  {kind}: {cnt}")
