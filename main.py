#!/usr/bin/env python3
"""DSI Rule Engine - Entry point."""
import json
import logging
import sys

import click
from colorama import Fore, Style, init

from config import app_config
from dsi.builder.rule_compiler import RuleCompiler
from dsi.cli.interactive import InteractiveCLI
from dsi.evaluator.condition_evaluator import evaluate_condition, resolve_path, MISSING
from dsi.exporter.json_exporter import JsonExporter
from dsi.mapper.heuristic import HeuristicMapper
from dsi.parser.document_parser import DocumentParser
from dsi.renderer.rule_renderer import RuleRenderer
from dsi.schema.models import ParseFailure
from dsi.schema.skeleton import load_skeleton
from dsi.validator.mapping_validator import MappingValidator

# Initialize colorama
init(autoreset=True)


def print_banner():
    """Print application banner."""
    print(f"{Fore.CYAN}{'=' * 44}")
    print(f"{Fore.CYAN}║   {Fore.WHITE}DSI Rule Engine{Fore.CYAN}                      ║")
    print(f"{Fore.CYAN}║   {Fore.WHITE}Schema Mapping Compiler & Renderer{Fore.CYAN}   ║")
    print(f"{Fore.CYAN}{'=' * 44}{Style.RESET_ALL}")
    print()


def emit_json(data, output):
    """Write JSON to a file, or print it."""
    if output:
        JsonExporter().export_document(output, data)
        click.echo(f"{Fore.GREEN}✅ Written to {output}")
    else:
        click.echo(json.dumps(data, indent=2, ensure_ascii=False))


@click.group()
@click.version_option(version="0.1.0")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose):
    """DSI Rule Engine - Compile, render and parse schema mapping rules."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


@cli.command("compile")
@click.argument("mappings_file", type=click.Path(exists=True))
@click.option("--skeleton", type=click.Path(exists=True), help="Template skeleton JSON file")
@click.option("--output", "-o", type=click.Path(), help="Write the document to this file")
def compile_command(mappings_file, skeleton, output):
    """Compile a mapping set into a document."""
    mapping_set = JsonExporter().load_mappings(mappings_file)
    template = load_skeleton(skeleton or app_config.skeleton_path)

    result = RuleCompiler(app_config.engine).compile(mapping_set, template)

    for skip in result.skipped:
        click.echo(f"{Fore.YELLOW}⚠️  Skipped rule {skip.rule_id}: {skip.message}", err=True)

    emit_json(result.document, output)


@cli.command()
@click.argument("document_file", type=click.Path(exists=True))
@click.argument("data_file", type=click.Path(exists=True))
@click.option("--output", "-o", type=click.Path(), help="Write the rendered document to this file")
@click.option("--report", is_flag=True, help="List properties omitted during rendering")
def render(document_file, data_file, output, report):
    """Render a compiled document against a data record."""
    exporter = JsonExporter()
    document = exporter.read_json(document_file)
    data = exporter.read_json(data_file)

    rendered, render_report = RuleRenderer(app_config.engine).render_with_report(document, data)

    if report:
        for issue in render_report.issues:
            click.echo(f"{Fore.YELLOW}• {issue.path}: {issue.kind} {issue.detail}", err=True)

    emit_json(rendered, output)


@cli.command()
@click.argument("document_file", type=click.Path(exists=True))
@click.option("--output", "-o", type=click.Path(), help="Write the mapping set to this file")
def parse(document_file, output):
    """Parse a (hand-edited) document back into a mapping set."""
    with open(document_file, "r", encoding="utf-8") as f:
        text = f.read()

    result = DocumentParser(app_config.engine).parse(text)

    if isinstance(result, ParseFailure):
        click.echo(f"{Fore.RED}❌ Parse failed ({result.reason}): {result.message}", err=True)
        for carrier in result.failed_carriers:
            click.echo(f"{Fore.RED}   • {carrier}", err=True)
        sys.exit(1)

    if output:
        JsonExporter().export_mappings(output, result)
        click.echo(f"{Fore.GREEN}✅ {len(result)} mapping(s) written to {output}")
    else:
        click.echo(json.dumps(result.to_list(), indent=2, ensure_ascii=False))


@cli.command()
@click.argument("field")
@click.argument("operator")
@click.argument("value", required=False, default="")
@click.option("--data", "data_file", type=click.Path(exists=True), required=True,
              help="Data record JSON file")
def check(field, operator, value, data_file):
    """Evaluate one condition against a data record."""
    data = JsonExporter().read_json(data_file)
    actual = resolve_path(data, field)
    result = evaluate_condition(field, operator, value, data)

    shown = "<missing>" if actual is MISSING else json.dumps(actual)
    color = Fore.GREEN if result else Fore.RED
    click.echo(f"{color}{field} {operator} {value} → {str(result).lower()} (value: {shown})")

    sys.exit(0 if result else 1)


@cli.command()
@click.argument("mappings_file", type=click.Path(exists=True))
def validate(mappings_file):
    """Validate a mapping set."""
    mapping_set = JsonExporter().load_mappings(mappings_file)
    errors = MappingValidator(app_config.engine).validate(mapping_set)

    click.echo(f"{Fore.GREEN}✅ Validation complete")
    click.echo(f"   Mappings: {len(mapping_set)}")
    click.echo(f"   Issues: {len(errors)}")

    for error in errors:
        click.echo(f"{Fore.YELLOW}   • {error}")

    sys.exit(1 if errors else 0)


@cli.command()
@click.argument("sources", nargs=-1, required=True)
def suggest(sources):
    """Suggest target properties for source data paths."""
    mapping_set = HeuristicMapper().suggest_mappings(list(sources))

    for rule in mapping_set:
        icon = "✓" if rule.target else "✗"
        click.echo(f"{Fore.GREEN}{icon} {rule.source} → {rule.target or 'SKIP'} ({rule.kind.value})")


@cli.command()
@click.argument("mappings_file", required=False)
def edit(mappings_file):
    """Edit mappings interactively."""
    print_banner()

    cli_tool = InteractiveCLI(mappings_file)
    cli_tool.run()


if __name__ == "__main__":
    cli()
