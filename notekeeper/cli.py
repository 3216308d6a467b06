from __future__ import annotations
from datetime import datetime
from pathlib import Path
from typing import List, Optional
import json
import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table
from rich.markdown import Markdown
from rich.markup import escape

from .config import get_settings
from .db import init_db
from .logs import setup_logging
from .models import DEFAULT_CATEGORY, DEFAULT_PRIORITY, DEFAULT_STATUS
from .schemas import NoteCreate, NoteImport, NoteSearch, NoteUpdate
from .services import note_service

app = typer.Typer(help="notekeeper: personal notes from the terminal")
console = Console()


@app.callback()
def _boot():
    setup_logging(get_settings().log_level)
    init_db()


def _fail(msg: str) -> None:
    console.print(f"[red]{msg}[/]")
    raise typer.Exit(1)


@app.command()
def add(
    title: str = typer.Option(..., "--title", "-t"),
    content: str = typer.Option(..., "--content", "-c"),
    tags: str = typer.Option("", "--tags", "-g", help="comma separated"),
    category: str = typer.Option(DEFAULT_CATEGORY, "--category"),
    priority: str = typer.Option(DEFAULT_PRIORITY, "--priority"),
    status: str = typer.Option(DEFAULT_STATUS, "--status"),
    pin: bool = typer.Option(False, "--pin"),
    favorite: bool = typer.Option(False, "--favorite"),
):
    try:
        payload = NoteCreate(
            title=title, content=content, tags=tags, category=category,
            priority=priority, status=status, is_pinned=pin, is_favorite=favorite,
        )
    except ValidationError as e:
        _fail(f"Invalid note: {escape(str(e))}")
    with note_service() as svc:
        n = svc.create_note(payload)
    console.print(f"[green]Created[/] #{n.id}: {n.title}")


@app.command("list")
def _list(
    keyword: Optional[str] = typer.Option(None, "--keyword", "-k"),
    tag: Optional[str] = typer.Option(None, "--tag"),
    category: Optional[str] = typer.Option(None, "--category"),
    priority: Optional[str] = typer.Option(None, "--priority"),
    status: Optional[str] = typer.Option(None, "--status"),
    pinned: Optional[bool] = typer.Option(None, "--pinned/--unpinned"),
    favorite: Optional[bool] = typer.Option(None, "--favorite/--not-favorite"),
    since: Optional[datetime] = typer.Option(None, "--since"),
    until: Optional[datetime] = typer.Option(None, "--until"),
    sort: str = typer.Option("created_at", "--sort", help="created_at|updated_at|title|priority"),
    order: str = typer.Option("desc", "--order", help="asc|desc"),
    page: int = typer.Option(1, "--page", min=1),
    page_size: int = typer.Option(20, "--page-size", min=1),
):
    criteria = NoteSearch(
        keyword=keyword, tag=tag, category=category, priority=priority, status=status,
        is_pinned=pinned, is_favorite=favorite, start_date=since, end_date=until,
        sort_by=sort, sort_order=order, page=page, page_size=page_size,
    )
    with note_service() as svc:
        result = svc.search_notes(criteria)

    table = Table(title=f"Notes (page {result.page}/{max(result.total_pages, 1)}, {result.total} total)")
    table.add_column("ID", justify="right", style="cyan")
    table.add_column("Title", style="bold")
    table.add_column("Tags", style="magenta")
    table.add_column("Category")
    table.add_column("Status")
    table.add_column("Flags")
    table.add_column("Created")
    for n in result.data:
        flags = ("P" if n.is_pinned else "") + ("F" if n.is_favorite else "")
        table.add_row(
            str(n.id), escape(n.title), escape(", ".join(n.tag_list)), n.category, n.status,
            flags, n.created_at.strftime("%Y-%m-%d"),
        )
    console.print(table)


@app.command()
def show(note_id: int):
    with note_service() as svc:
        n = svc.get_note(note_id)
    if not n:
        _fail(f"Not found: {note_id}")
    console.rule(f"#{n.id} {escape(n.title)}")
    console.print(f"[dim]{n.category} · {n.priority} · {n.status} · {n.character_count} chars[/]")
    if n.tag_list:
        console.print(f"[dim]tags:[/] {escape(', '.join(n.tag_list))}")
    console.print(Markdown(n.content))


@app.command()
def edit(
    note_id: int,
    title: Optional[str] = typer.Option(None, "--title", "-t"),
    content: Optional[str] = typer.Option(None, "--content", "-c"),
    tags: Optional[str] = typer.Option(None, "--tags", "-g"),
    category: Optional[str] = typer.Option(None, "--category"),
    priority: Optional[str] = typer.Option(None, "--priority"),
    status: Optional[str] = typer.Option(None, "--status"),
):
    # updates replace every field, so start from the stored values
    with note_service() as svc:
        current = svc.repo.get(note_id)
        if current is None:
            _fail(f"Not found: {note_id}")
        payload = NoteUpdate(
            title=current.title if title is None else title,
            content=current.content if content is None else content,
            tags=current.tags if tags is None else tags,
            category=current.category if category is None else category,
            priority=current.priority if priority is None else priority,
            status=current.status if status is None else status,
            is_pinned=current.is_pinned,
            is_favorite=current.is_favorite,
        )
        n = svc.update_note(note_id, payload)
    console.print(f"[green]Updated[/] #{n.id}: {n.title}")


@app.command()
def delete(note_ids: List[int]):
    with note_service() as svc:
        if len(note_ids) == 1:
            removed = 1 if svc.delete_note(note_ids[0]) else 0
        else:
            removed = svc.delete_notes(note_ids)
    if not removed:
        _fail("Nothing deleted")
    console.print(f"[yellow]Deleted[/] {removed} note(s)")


@app.command()
def pin(note_id: int):
    with note_service() as svc:
        state = svc.toggle_pin(note_id)
    if state is None:
        _fail(f"Not found: {note_id}")
    console.print(f"[green]Pinned[/] #{note_id}" if state else f"[yellow]Unpinned[/] #{note_id}")


@app.command()
def favorite(note_id: int):
    with note_service() as svc:
        state = svc.toggle_favorite(note_id)
    if state is None:
        _fail(f"Not found: {note_id}")
    console.print(f"[green]Favorited[/] #{note_id}" if state else f"[yellow]Unfavorited[/] #{note_id}")


@app.command()
def tags():
    with note_service() as svc:
        values = svc.all_tags()
    console.print(", ".join(values) if values else "[dim]no tags[/]")


@app.command()
def categories():
    with note_service() as svc:
        values = svc.all_categories()
    console.print(", ".join(values) if values else "[dim]no categories[/]")


@app.command()
def stats():
    with note_service() as svc:
        s = svc.statistics()
    console.print(f"total: {s.total}  pinned: {s.pinned}  favorites: {s.favorites}  drafts: {s.drafts}")
    for title, counts in (("Categories", s.categories), ("Priorities", s.priorities)):
        table = Table(title=title)
        table.add_column("Value")
        table.add_column("Count", justify="right")
        for k, v in counts.items():
            table.add_row(k, str(v))
        console.print(table)


@app.command()
def search(keyword: str, limit: int = typer.Option(10, "--limit", min=1)):
    with note_service() as svc:
        found = svc.quick_search(keyword, limit)
    for n in found:
        mark = "📌 " if n.is_pinned else ""
        console.print(f"{mark}#{n.id} [bold]{escape(n.title)}[/] [dim]{escape(n.content_preview)}[/]")
    if not found:
        console.print("[dim]no matches[/]")


@app.command()
def export(to: Path = typer.Option(..., "--to")):
    with note_service() as svc:
        notes = svc.repo.list_all()
    data = [
        {
            "title": n.title,
            "content": n.content,
            "tags": n.tags,
            "category": n.category,
            "priority": n.priority,
            "status": n.status,
            "isPinned": n.is_pinned,
            "isFavorite": n.is_favorite,
            "createdAt": n.created_at.isoformat(),
            "updatedAt": n.updated_at.isoformat(),
        }
        for n in notes
    ]
    to.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
    console.print(f"[green]Exported[/] {len(data)} notes → {to}")


@app.command("import")
def import_(from_: Path = typer.Option(..., "--from")):
    try:
        data = json.loads(from_.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        _fail(f"Cannot read {escape(str(from_))}: {escape(str(e))}")
    if not isinstance(data, list):
        _fail("Expected a JSON list of notes")

    # validate everything before writing anything
    payloads, problems = [], []
    for i, item in enumerate(data, start=1):
        try:
            payloads.append(NoteImport.model_validate(item))
        except ValidationError as e:
            problems.append(f"item {i}: {e.error_count()} error(s): {e.errors()[0]['msg']}")
    if problems:
        _fail("Nothing imported\n" + escape("\n".join(problems)))

    with note_service() as svc:
        count = svc.import_notes(payloads)
    console.print(f"[green]Imported[/] {count} notes")


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host"),
    port: int = typer.Option(8000, "--port"),
    reload: bool = typer.Option(False, "--reload"),
):
    import uvicorn

    uvicorn.run("notekeeper.app:app", host=host, port=port, reload=reload)


def main():
    app()


if __name__ == "__main__":
    main()
