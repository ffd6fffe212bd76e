"""CLI entry point for cursor-analysis."""

import logging

import click
import uvicorn

from . import __version__, analysis, mutations, trash
from .errors import CursorAnalysisError
from .export import analysis_to_json, analysis_to_markdown, to_json


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def main(verbose: bool):
    """Analyze and clean up Cursor's local chat history."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )


@main.command()
@click.option("--port", default=8080, help="Port to serve on.")
@click.option("--host", default="127.0.0.1", help="Host to bind to.")
def serve(port: int, host: str):
    """Start the JSON API server."""
    click.echo(f"Starting cursor-analysis on http://{host}:{port}")
    uvicorn.run("cursor_analysis.server:app", host=host, port=port, reload=False)


@main.command()
def version():
    """Print the version."""
    click.echo(__version__)


@main.command()
@click.option("--format", "fmt", type=click.Choice(["json", "md"]), default="json",
              help="Output format.")
def analyze(fmt: str):
    """Print a full analysis of storage, projects and workspaces."""
    result = analysis.get_full_analysis()
    if fmt == "md":
        click.echo(analysis_to_markdown(result))
    else:
        click.echo(analysis_to_json(result))


@main.command()
def projects():
    """List projects with chat sessions, most lines added first."""
    for p in analysis.get_all_projects():
        click.echo(f"{p.chat_count:5d} chats  +{p.lines_added:<8d} -{p.lines_removed:<8d} {p.path}")


@main.command()
def workspaces():
    """List workspaces with chat sessions."""
    for ws in analysis.get_workspaces():
        label = ", ".join(ws.projects) or "(unresolved)"
        kind = "multi" if ws.is_multi_project else "single"
        click.echo(f"{ws.id}  {kind:6s} {ws.chat_count:5d} chats  {label}")


@main.command("delete-chat")
@click.argument("project_path")
@click.argument("chat_ids", nargs=-1, required=True)
@click.confirmation_option(prompt="Move these chats to the trash?")
def delete_chat(project_path: str, chat_ids: tuple[str, ...]):
    """Delete chat sessions of a project, keeping a copy in the trash."""
    try:
        if len(chat_ids) == 1:
            removed = int(mutations.delete_chat(project_path, chat_ids[0]))
        else:
            removed = mutations.delete_chats_batch(project_path, chat_ids)
    except CursorAnalysisError as e:
        raise click.ClickException(str(e))
    click.echo(f"Moved {removed} chat(s) to the trash.")


@main.group("trash")
def trash_group():
    """Inspect and empty the trash."""
    pass


@trash_group.command("list")
@click.option("--json", "as_json", is_flag=True, help="Print the full records as JSON.")
def trash_list(as_json: bool):
    """List trashed chats, most recently deleted first."""
    items = trash.get_trash_items()
    if as_json:
        click.echo(to_json(items))
        return
    for item in items:
        deleted = item.deleted_at.strftime("%Y-%m-%d %H:%M") if item.deleted_at else "-"
        click.echo(f"{item.id:5d}  {deleted}  {item.chat_name}  ({item.project_path})")


@trash_group.command("delete")
@click.argument("trash_id", type=int)
def trash_delete(trash_id: int):
    """Permanently delete one trash item."""
    if not trash.delete_trash_item(trash_id):
        raise click.ClickException(f"No trash item with id {trash_id}")
    click.echo(f"Deleted trash item {trash_id}.")


@trash_group.command("clear")
@click.confirmation_option(prompt="Permanently delete everything in the trash?")
def trash_clear():
    """Permanently empty the trash."""
    click.echo(f"Removed {trash.clear_trash()} trash item(s).")
