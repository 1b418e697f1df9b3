"""Rich rendering of the test tree and run outcomes."""

from __future__ import annotations

from typing import Any

from rich.console import Console
from rich.tree import Tree

from cargoscope.testing.models import TestNode, TestOutcome
from cargoscope.testing.run import TestRun
from cargoscope.testing.tree import TestTree

_STATUS_MARKERS = {
    "queued": "[dim]·[/dim]",
    "running": "[cyan]…[/cyan]",
    "passed": "[green]✓[/green]",
    "failed": "[red]✗[/red]",
    "ignored": "[yellow]-[/yellow]",
    "skipped": "[yellow]-[/yellow]",
}


class ConsoleOutput:
    """Output sink printing cargo's text straight to a Rich console."""

    def __init__(self, console: Console) -> None:
        self._console = console

    def append(self, text: str) -> None:
        self._console.out(text.replace("\r\n", "\n"), end="", highlight=False)


def _label(node: TestNode, outcome: TestOutcome | None) -> str:
    if outcome is None:
        return node.label
    marker = _STATUS_MARKERS.get(outcome.status, "")
    label = f"{marker} {node.label}"
    if outcome.duration_seconds is not None:
        label += f" [dim]({outcome.duration_seconds:.2f}s)[/dim]"
    return label


def render_tree(tree: TestTree, run: TestRun | None = None) -> Tree:
    """Build a Rich tree of every root, with outcome markers when ``run`` is given."""
    rendered = Tree("[bold]Cargo Tests[/bold]")

    def add(parent: Tree, node: TestNode) -> None:
        branch = parent.add(_label(node, run.outcome(node) if run else None))
        for child in node.children.values():
            add(branch, child)

    for root in tree.roots:
        add(rendered, root)
    return rendered


def tree_to_dict(tree: TestTree) -> list[dict[str, Any]]:
    """JSON-ready listing of every node."""
    entries = []
    for node in tree:
        item = tree.item(node)
        entries.append(
            {
                "uid": node.uid,
                "package": item.target.package,
                "kind": item.target.kind,
                "target": item.target.name,
                "name": item.test_name,
                "leaf": node.parent is not None and node.is_leaf,
            }
        )
    return entries


def run_to_dict(run: TestRun) -> dict[str, Any]:
    return {
        "run_id": run.run_id,
        "outcomes": {
            uid: {
                "status": o.status,
                "message": o.message,
                "duration_seconds": o.duration_seconds,
            }
            for uid, o in run.outcomes.items()
        },
    }
