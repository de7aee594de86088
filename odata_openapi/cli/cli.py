import json
from pathlib import Path

import click
import yaml

from datetime import date
from rich import pretty
from rich.console import Console
from rich.table import Table

from odata_openapi.api.builders.service_builders import compile_service
from odata_openapi.api.gen_logging import configure_gen_logging
from odata_openapi.errors import OpenAPIConversionError
from odata_openapi.language import (
    build_document,
    get_container_children,
    get_document_namespaces,
    get_document_types,
    verify_document,
)

pretty.install()
console = Console()


class _DocumentDumper(yaml.SafeDumper):
    """Writes repeated objects in full instead of as anchors and aliases."""

    def ignore_aliases(self, data):
        return True


def today() -> str:
    return date.today().strftime('%Y-%m-%d')


def write_document(document, out_dir: Path, name: str, fmt: str) -> Path:
    """Write one OpenAPI document as <name>.openapi3.json or .yaml."""
    out_dir.mkdir(parents=True, exist_ok=True)
    if fmt == "yaml":
        out_file = out_dir / f"{name}.openapi3.yaml"
        with open(out_file, "w", encoding="utf-8") as f:
            yaml.dump(document, f, Dumper=_DocumentDumper, sort_keys=False, default_flow_style=False, allow_unicode=True)
    else:
        out_file = out_dir / f"{name}.openapi3.json"
        with open(out_file, "w", encoding="utf-8") as f:
            json.dump(document, f, indent=2, ensure_ascii=False)
            f.write("\n")
    return out_file


@click.group()
@click.pass_context
def cli(context):
    context.ensure_object(dict)


@cli.command("validate", help="Check names and the type hierarchy of a CSDL document.")
@click.pass_context
@click.argument("model_path")
def validate(context, model_path):
    try:
        document = build_document(model_path)
        warnings = verify_document(document)
        for warning in warnings:
            console.print(f"[{today()}] Warning: {warning}", style='yellow')
        console.print(f"[{today()}] Model validation success!", style='green')
    except OpenAPIConversionError as e:
        console.print(f"[{today()}] Validation failed with error(s): {e}", style='red')
        context.exit(1)
    else:
        context.exit(0)


@cli.command("inspect", help="Print the namespaces, types and container children of a CSDL document.")
@click.pass_context
@click.argument("model_path")
def inspect_cmd(context, model_path):
    try:
        document = build_document(model_path)
        console.print(f"[{today()}] Namespaces: {', '.join(get_document_namespaces(document))}", style='green')

        types = Table(title="Types")
        types.add_column("Name")
        types.add_column("Kind")
        types.add_column("Base type")
        for name, kind, base in get_document_types(document):
            types.add_row(name, kind, base)
        console.print(types)

        children = get_container_children(document)
        if children:
            container = Table(title=f"Entity container {document.get('$EntityContainer', '')}")
            container.add_column("Name")
            container.add_column("Kind")
            container.add_column("Type")
            for name, kind, target in children:
                container.add_row(name, kind, target)
            console.print(container)
    except OpenAPIConversionError as e:
        console.print(f"[{today()}] Inspect failed with error(s): {e}", style='red')
        context.exit(1)
    else:
        context.exit(0)


@cli.command("convert", help="Convert a CSDL JSON document into OpenAPI 3.0.2 documents.")
@click.pass_context
@click.argument("model_path")
@click.option("--out", "out_dir", default=".", help="Output directory (default: current directory)")
@click.option(
    "--format", "fmt",
    type=click.Choice(["json", "yaml"], case_sensitive=False),
    default="json",
    help="Output format (default: json)."
)
@click.option("--odata-version", default=None, help="OData version of the service (4.0 or 4.01).")
@click.option("--url", default=None, help="Service root URL; ${service-path} is replaced by the service path.")
@click.option("--servers", default=None, help="JSON array of Server Objects.")
@click.option("--max-levels", type=int, default=None, help="Maximum depth of navigation paths.")
@click.option("--diagram", is_flag=True, default=False, help="Add a yUML diagram to the description.")
@click.option("--config-file", default=None, help="JSON or YAML file with converter options.")
@click.option("--verbose", "-v", is_flag=True, default=False, help="Log every skipped element.")
@click.option("--quiet", "-q", is_flag=True, default=False, help="Log warnings only.")
def convert(context, model_path, out_dir, fmt, odata_version, url, servers, max_levels, diagram,
            config_file, verbose, quiet):
    configure_gen_logging(verbose=verbose, quiet=quiet)
    options = {
        "openapi:url": url,
        "openapi:servers": servers,
        "openapi:max-levels": max_levels,
        "openapi:config-file": config_file,
        "odata-version": odata_version,
    }
    if diagram:
        options["openapi:diagram"] = True
    options = {key: value for key, value in options.items() if value is not None}

    try:
        document = build_document(model_path)
        documents = compile_service(document, options)
        out_path = Path(out_dir).resolve()
        for name, openapi in documents.items():
            out_file = write_document(openapi, out_path, name or Path(model_path).stem, fmt.lower())
            console.print(f"[{today()}] OpenAPI document written to: {out_file}", style="green")
    except OpenAPIConversionError as e:
        console.print(f"[{today()}] Conversion failed with error(s): {e}", style="red")
        context.exit(1)
    else:
        context.exit(0)
