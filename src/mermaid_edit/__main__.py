"""CLI entry point for mermaid-edit."""

import json
import logging
import sys

import click

from mermaid_edit.config import SerializerConfig
from mermaid_edit.errors import UnsupportedDiagramError
from mermaid_edit.ir.graph import GraphIR
from mermaid_edit.ir.model import FlowchartModel
from mermaid_edit.parsers import parse
from mermaid_edit.serializers import serialize
from mermaid_edit.types import Direction

logger = logging.getLogger(__name__)


def _summary(model: FlowchartModel) -> str:
    gir = GraphIR.from_model(model)
    lines = [
        f"direction: {model.direction.value}",
        f"nodes: {gir.node_count()}",
        f"edges: {gir.edge_count()}",
        f"subgraphs: {len(gir.subgraph_members)}",
        f"acyclic: {'yes' if gir.is_dag() else 'no'}",
    ]
    order = gir.topological_order()
    if order:
        lines.append(f"order: {', '.join(order)}")
    for node_id, successors in gir.adjacency_list():
        if successors:
            lines.append(f"{node_id} -> {', '.join(successors)}")
    return "\n".join(lines) + "\n"


@click.command()
@click.argument("input", required=False, type=click.Path(exists=True))
@click.option(
    "--format",
    "-f",
    "fmt",
    type=click.Choice(["mermaid", "json", "summary"]),
    default="mermaid",
    help="Output canonical Mermaid text, the JSON snapshot, or a graph summary",
)
@click.option("--direction", "-d", "direction", type=str, default=None, help="Override direction (TB, TD, BT, LR, RL)")
@click.option("--indent", "-i", "indent", type=int, default=4, help="Spaces per indent level in Mermaid output")
@click.option("--output", "-o", "output", type=str, default=None, help="Write output to this file instead of stdout")
@click.option("--verbose", "-v", is_flag=True, help="Log parser decisions to stderr")
def main(input: str | None, fmt: str, direction: str | None, indent: int, output: str | None, verbose: bool) -> None:
    """Mermaid flowchart to canonical Mermaid, JSON, or a summary."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    if input:
        try:
            with open(input) as f:
                text = f.read()
        except OSError as e:
            click.echo(f"error: cannot read '{input}': {e}", err=True)
            sys.exit(1)
    else:
        text = sys.stdin.read()

    try:
        model = parse(text, strict=True)
    except UnsupportedDiagramError as e:
        click.echo(f"error: {e}; only flowcharts can be edited", err=True)
        sys.exit(1)

    if direction is not None:
        parsed = Direction.from_token(direction)
        if parsed is None:
            click.echo(f"error: unknown direction '{direction}'; use TB, TD, BT, LR, or RL", err=True)
            sys.exit(1)
        model.direction = parsed

    if fmt == "json":
        rendered = json.dumps(model.to_data(), indent=2) + "\n"
    elif fmt == "summary":
        rendered = _summary(model)
    else:
        rendered = serialize(model, SerializerConfig(indent=" " * max(indent, 0)))
    logger.debug("%d nodes, %d edges", model.node_count, model.edge_count)

    if output:
        try:
            with open(output, "w") as f:
                f.write(rendered)
        except OSError as e:
            click.echo(f"error: cannot write '{output}': {e}", err=True)
            sys.exit(1)
    else:
        click.echo(rendered, nl=False)


if __name__ == "__main__":
    main()
