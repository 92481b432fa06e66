"""CLI entry point for erd-layout."""

import json
import logging
import sys

import click

from erd_layout.ir.schema import Schema
from erd_layout.layout.engine import compute_focus_layout, compute_layout, force_arrange_layout
from erd_layout.layout.types import TableNode

logger = logging.getLogger(__name__)


def _read_json(path: str | None) -> object:
    if path:
        try:
            with open(path) as f:
                text = f.read()
        except OSError as e:
            click.echo(f"error: cannot read '{path}': {e}", err=True)
            sys.exit(1)
    else:
        text = sys.stdin.read()
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        click.echo(f"error: invalid JSON in {path or '<stdin>'}: {e}", err=True)
        sys.exit(1)


def _load_existing(path: str | None) -> dict[str, TableNode]:
    if not path:
        return {}
    data = _read_json(path)
    if not isinstance(data, dict):
        click.echo("error: existing positions must be a JSON object keyed by table id", err=True)
        sys.exit(1)
    try:
        return {str(nid): TableNode.from_dict(node) for nid, node in data.items()}
    except ValueError as e:
        click.echo(f"error: bad existing positions: {e}", err=True)
        sys.exit(1)


@click.command()
@click.argument("input", required=False, type=click.Path(exists=True))
@click.option(
    "--mode",
    "-m",
    "mode",
    type=click.Choice(["incremental", "force", "focus"]),
    default="force",
    help="Layout mode",
)
@click.option("--center", "-c", "center", type=str, default=None, help="Center table id for focus mode")
@click.option("--existing", "-e", "existing", type=click.Path(exists=True), default=None, help="Current positions JSON")
@click.option("--collapsed", is_flag=True, help="Size tables as collapsed headers")
@click.option("--output", "-o", "output", type=str, default=None, help="Write output to this file instead of stdout")
@click.option("--log-level", "log_level", type=str, default="WARNING", help="Logging level (default: WARNING)")
def main(
    input: str | None,
    mode: str,
    center: str | None,
    existing: str | None,
    collapsed: bool,
    output: str | None,
    log_level: str,
) -> None:
    """ERD schema JSON to table positions JSON."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.WARNING),
        format="%(levelname)s:%(name)s:%(message)s",
    )

    if mode == "focus" and not center:
        click.echo("error: --mode focus requires --center", err=True)
        sys.exit(1)

    try:
        schema = Schema.from_dict(_read_json(input))
    except ValueError as e:
        click.echo(f"schema error:\n{e}", err=True)
        sys.exit(1)

    logger.info("Loaded %d table(s), %d ref(s)", len(schema.tables), len(schema.refs))

    payload: dict[str, object]
    if mode == "focus":
        focus = compute_focus_layout(schema, center, collapsed=collapsed)
        payload = {nid: node.to_dict() for nid, node in focus.nodes.items()}
        payload["focusTableIds"] = sorted(focus.table_ids)
    elif mode == "incremental":
        result = compute_layout(schema, _load_existing(existing), collapsed=collapsed)
        payload = {nid: node.to_dict() for nid, node in result.items()}
    else:
        result = force_arrange_layout(schema, collapsed=collapsed)
        payload = {nid: node.to_dict() for nid, node in result.items()}

    rendered = json.dumps(payload, indent=2) + "\n"
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
