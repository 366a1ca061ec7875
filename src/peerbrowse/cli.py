"""Command line front end: browse a peer and print its share as a tree."""

from __future__ import annotations

import argparse
import asyncio
import logging

from rich.console import Console
from rich.table import Table
from rich.text import Text
from rich.tree import Tree

from peerbrowse import __version__
from peerbrowse.browse import (
    BrowseSession,
    BrowseSnapshot,
    BrowseState,
    DirectoryNode,
    FileKeyValueStorage,
    SessionPersistence,
    UsersClient,
    find_node,
)
from peerbrowse.config import get_settings
from peerbrowse.logging_setup import setup_logging

logger = logging.getLogger(__name__)


def _node_label(node: DirectoryNode, selected: str | None) -> Text:
    label = Text()
    if node.locked:
        label.append("🔒 ")
    label.append(node.name or "", style="bold reverse" if node.name == selected else "")
    label.append(f" ({node.fileCount})", style="dim")
    return label


def _add_nodes(branch: Tree, nodes: list[DirectoryNode], selected: str | None) -> None:
    for node in nodes:
        _add_nodes(branch.add(_node_label(node, selected)), node.children, selected)


def render_tree(snapshot: BrowseSnapshot) -> Tree:
    selected = snapshot.selectedDirectory.name if snapshot.selectedDirectory else None
    header = Text.assemble(
        ("● ", "green"),
        (snapshot.username, "bold"),
        "\n",
        (snapshot.info.summary(), "dim"),
    )
    root = Tree(header, guide_style="dim")
    _add_nodes(root, snapshot.tree, selected)
    return root


def render_selected(session: BrowseSession) -> Table | None:
    selected = session.state.selectedDirectory
    if selected is None:
        return None
    title = f"🔒 {selected.name}" if selected.locked else selected.name
    table = Table(title=Text(title or ""), title_justify="left")
    table.add_column("File")
    table.add_column("Size", justify="right")
    for f in session.selected_files():
        table.add_row(Text(f.filename), f"{f.size:,}")
    return table


def render(session: BrowseSession, console: Console) -> None:
    """Print the session the way the browse view shows it."""
    snapshot = session.state
    if snapshot.browseState == BrowseState.ERROR:
        console.print(Text(session.failure_message() or "", style="red"))
        return
    if snapshot.empty_tree:
        console.print("[dim]No user share to display[/]")
        return
    console.print(render_tree(snapshot))
    table = render_selected(session)
    if table is not None:
        console.print(table)


def _select(session: BrowseSession, name: str, console: Console) -> bool:
    node = find_node(session.state.tree, name)
    if node is None:
        console.print(Text(f"No directory named {name!r} in this share", style="yellow"))
        return False
    session.select_directory(node)
    return True


async def _run(args: argparse.Namespace, console: Console) -> int:
    persistence = SessionPersistence(FileKeyValueStorage())
    client = UsersClient(api_url=args.api_url, api_key=args.api_key)

    async with client, BrowseSession(client, persistence) as session:
        if args.clear:
            session.clear()
            console.print("Browse session cleared")
            return 0

        if args.username:
            with console.status(f"Browsing {args.username}…") as status:

                def _progress(snapshot: BrowseSnapshot) -> None:
                    if snapshot.pending:
                        status.update(
                            f"Downloaded {round(snapshot.browseStatus)}% of Response"
                        )

                unsubscribe = session.subscribe(_progress)
                try:
                    await session.browse(args.username)
                finally:
                    unsubscribe()
        elif session.state.username:
            logger.debug("Showing stored browse of %s", session.state.username)
        else:
            console.print("Nothing to show; give a username to browse")
            return 1

        if args.select and not session.state.empty_tree:
            _select(session, args.select, console)
        elif args.deselect:
            session.deselect_directory()

        render(session, console)
        return 1 if session.state.browseState == BrowseState.ERROR else 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="peerbrowse",
        description="Browse the shared directories of a Soulseek peer",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  peerbrowse alice                        Browse alice and print the share
  peerbrowse alice --select 'Music\\Jazz'  Browse and list one directory
  peerbrowse                              Show the last browse again
  peerbrowse --clear                      Forget the last browse
""",
    )
    parser.add_argument("username", nargs="?", help="Peer to browse")
    parser.add_argument("--select", metavar="DIR", help="List the files of a directory")
    parser.add_argument("--deselect", action="store_true", help="Close the file listing")
    parser.add_argument("--clear", action="store_true", help="Reset the stored session")
    parser.add_argument("--api-url", default=None, help="Peer service URL")
    parser.add_argument("--api-key", default=None, help="Peer service API key")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    args = parser.parse_args(argv)

    setup_logging(level="DEBUG" if args.verbose else get_settings().log_level)
    console = Console()
    try:
        return asyncio.run(_run(args, console))
    except KeyboardInterrupt:
        return 130
