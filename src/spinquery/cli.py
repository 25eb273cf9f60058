"""Command line interface for :mod:`spinquery`."""

import sys
from typing import Optional

import click

from .api import build_select, load_dataset, open_resource
from .errors import SpinQueryError
from .media import select_media_type, serialize
from .models import SelectBuildRequest

__all__ = [
    "main",
]


@click.group()
@click.version_option()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.pass_context
def main(ctx: click.Context, verbose: bool) -> None:
    r"""spinquery - SPARQL queries as RDF graphs.

    Build and edit SELECT queries in the SPIN RDF syntax, run queries
    lazily against RDF files or SPARQL endpoints, and serve the results
    over HTTP.


    Typical workflow: build > query > serve
    """
    import logging

    # Ensure context object exists
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose

    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            force=True,
        )
        logging.getLogger("spinquery").setLevel(logging.DEBUG)
    else:
        logging.basicConfig(level=logging.WARNING, format="%(levelname)s: %(message)s", force=True)


@main.command()
@click.argument("query")
@click.option("--base-uri", help="Base URI for relative IRIs in the query")
@click.option("--limit", type=click.IntRange(min=0), help="Replace the LIMIT")
@click.option("--offset", type=click.IntRange(min=0), help="Replace the OFFSET")
@click.option("--order-by", help="Order by this variable (replaces ORDER BY)")
@click.option("--desc", is_flag=True, help="Order descending (with --order-by)")
@click.option("--distinct/--no-distinct", default=None, help="Set or clear DISTINCT")
@click.option("--var", "variables", multiple=True, help="Projected variable (repeatable)")
@click.option("--spin", is_flag=True, help="Print the SPIN triples as Turtle too")
def build(
    query: str,
    base_uri: Optional[str],
    limit: Optional[int],
    offset: Optional[int],
    order_by: Optional[str],
    desc: bool,
    distinct: Optional[bool],
    variables: tuple[str, ...],
    spin: bool,
) -> None:
    """Translate a SELECT query to SPIN, apply edits and print it.

    QUERY is the SPARQL text, or ``-`` to read it from stdin.


    Example:
      spinquery build "SELECT ?x WHERE { ?x a <http://example.org/Thing> }" \\
        --limit 10 --offset 5 --order-by x --desc
    """
    if query == "-":
        query = sys.stdin.read()

    try:
        request = SelectBuildRequest(
            query=query,
            base_uri=base_uri,
            limit=limit,
            offset=offset,
            order_by=order_by,
            desc=desc,
            distinct=distinct,
            result_variables=list(variables) or None,
        )
        result = build_select(request)
    except (SpinQueryError, ValueError) as e:
        raise click.ClickException(str(e)) from e

    click.echo(result.query)
    if spin:
        click.echo()
        click.echo(result.spin)


@main.command()
@click.argument("query", required=False)
@click.option("--data", "data_file", type=click.Path(exists=True, dir_okay=False), help="RDF file to query")
@click.option("--endpoint", help="SPARQL endpoint URL to query")
@click.option("--describe", "uri", help="Describe this resource instead of running QUERY")
@click.option("--format", "media_type", help="Output media type (e.g. text/turtle)")
@click.option("--etag", is_flag=True, help="Print the entity tag to stderr")
def query(
    query: Optional[str],
    data_file: Optional[str],
    endpoint: Optional[str],
    uri: Optional[str],
    media_type: Optional[str],
    etag: bool,
) -> None:
    """Run QUERY against an RDF file or a SPARQL endpoint.

    RDF files accept CONSTRUCT and DESCRIBE queries; endpoints accept
    any query form.


    Example:
      spinquery query --data data.ttl --format text/turtle \\
        "CONSTRUCT { ?s ?p ?o } WHERE { ?s ?p ?o }"
    """
    if bool(data_file) == bool(endpoint):
        raise click.UsageError("Give exactly one of --data or --endpoint")
    if not query and not uri:
        raise click.UsageError("Give a QUERY or --describe URI")
    if query == "-":
        query = sys.stdin.read()

    source = load_dataset(data_file) if data_file else endpoint
    try:
        resource = open_resource(source, query, uri=uri)
        model = resource.get_model()
        chosen = select_media_type(media_type, model, default=resource.get_media_type())
        if chosen is None:
            raise click.UsageError(f"Cannot write this result as {media_type}")
        click.echo(serialize(model, chosen).decode("utf-8"))
        if etag:
            click.echo(f"ETag: {resource.get_entity_tag()}", err=True)
    except SpinQueryError as e:
        raise click.ClickException(str(e)) from e


@main.command()
@click.option("--host", default="127.0.0.1", help="Interface to bind")
@click.option("--port", default=5000, type=int, help="Port to listen on")
@click.option("--dataset", type=click.Path(exists=True, dir_okay=False), help="RDF file to serve")
@click.option("--debug", is_flag=True, help="Run the Flask debug server")
def serve(host: str, port: int, dataset: Optional[str], debug: bool) -> None:
    """Serve the HTTP API.

    Settings come from environment variables (see
    :class:`spinquery.backend.config.Config`); --dataset overrides
    SPINQUERY_DATASET.
    """
    from .backend.app import create_app
    from .backend.config import Config

    config_class = Config
    if dataset:
        config_class = type("CliConfig", (Config,), {"SPINQUERY_DATASET": dataset})

    app = create_app(config_class)
    click.echo(f"Serving spinquery on http://{host}:{port}/api")
    app.run(host=host, port=port, debug=debug)


if __name__ == "__main__":
    main()
