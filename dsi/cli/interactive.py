"""Interactive mapping editor for the DSI rule engine."""
import json
from pathlib import Path
from typing import Optional

import click
from colorama import Fore, Style

from config import app_config
from dsi.builder.rule_compiler import RuleCompiler
from dsi.cli.condition_editor import ConditionEditor
from dsi.exporter.json_exporter import JsonExporter
from dsi.mapper.heuristic import HeuristicMapper
from dsi.parser.document_parser import DocumentParser
from dsi.schema.models import MappingKind, MappingSet, ParseFailure
from dsi.schema.skeleton import load_skeleton
from dsi.validator.mapping_validator import MappingValidator


class InteractiveCLI:
    """Interactive CLI interface."""

    def __init__(self, mappings_file: Optional[str] = None):
        """Initialize CLI."""
        self.exporter = JsonExporter()
        self.compiler = RuleCompiler(app_config.engine)
        self.parser = DocumentParser(app_config.engine)
        self.mapper = HeuristicMapper()
        self.mappings_file = Path(mappings_file) if mappings_file else None
        self.mapping_set = MappingSet()

        if self.mappings_file and self.mappings_file.exists():
            self.mapping_set = self.exporter.load_mappings(self.mappings_file)

    def print_header(self, title: str):
        """Print a section header."""
        print(f"\n{Fore.CYAN}{'━' * 45}")
        print(f"{Fore.CYAN}{title}")
        print(f"{Fore.CYAN}{'━' * 45}{Style.RESET_ALL}\n")

    def run(self):
        """Run interactive CLI."""
        while True:
            self.print_header("Main Menu")
            click.echo("1. List Mappings")
            click.echo("2. Add Mapping")
            click.echo("3. Edit Conditions")
            click.echo("4. Delete Mapping")
            click.echo("5. Preview Compiled Document")
            click.echo("6. Resync From Edited Document")
            click.echo("7. Save")
            click.echo("8. Exit\n")

            choice = click.prompt("Choose", type=int, default=1)

            if choice == 1:
                self.list_mappings()
            elif choice == 2:
                self.add_mapping()
            elif choice == 3:
                self.edit_conditions()
            elif choice == 4:
                self.delete_mapping()
            elif choice == 5:
                self.preview_document()
            elif choice == 6:
                self.resync_from_document()
            elif choice == 7:
                self.save()
            elif choice == 8:
                click.echo(f"{Fore.YELLOW}Goodbye!")
                break
            else:
                click.echo(f"{Fore.RED}Invalid choice")

    def list_mappings(self):
        """List the current mapping set."""
        self.print_header("Mappings")

        if not len(self.mapping_set):
            click.echo(f"{Fore.YELLOW}No mappings yet. Add one to begin.")
            return

        for rule in self.mapping_set:
            if rule.conditions:
                badge = f"{Fore.MAGENTA}CONDITIONAL ({len(rule.conditions)})"
            else:
                badge = f"{Fore.BLUE}{rule.kind.value.upper()}"
            source = rule.source or "-"
            target = rule.target or "-"
            click.echo(f"{rule.id:3d}. {source:40s} → {target:20s} {badge}{Style.RESET_ALL}")

    def add_mapping(self):
        """Add a mapping, suggesting a target for the source."""
        self.print_header("Add Mapping")

        source = click.prompt("Source data path", default="", type=str).strip()
        suggestion = self.mapper.suggest_target(source) or ""
        target = click.prompt("Target property", default=suggestion, type=str).strip()

        rule = self.mapping_set.add_rule(source=source, target=target)
        click.echo(f"{Fore.GREEN}✅ Added mapping {rule.id}")

        if self.mapper.suggest_kind(target) == MappingKind.CONDITIONAL:
            if click.confirm("This target is usually conditional. Add conditions now?", default=True):
                self._edit_rule_conditions(rule.id)

    def edit_conditions(self):
        """Edit the condition chain of a mapping."""
        self.print_header("Conditional Logic Editor")
        self.list_mappings()

        rule_id = click.prompt("Mapping id", type=int)
        self._edit_rule_conditions(rule_id)

    def _edit_rule_conditions(self, rule_id: int):
        rule = self.mapping_set.get_rule(rule_id)
        if rule is None:
            click.echo(f"{Fore.RED}Mapping {rule_id} not found")
            return

        editor = ConditionEditor(rule)
        conditions = editor.prompt_conditions()

        if conditions:
            self.mapping_set.set_conditions(rule_id, conditions)
        else:
            self.mapping_set.update_rule(rule_id, conditions=[], kind=MappingKind.PLAIN_TEXT)

        click.echo(f"{Fore.GREEN}✅ Applied {len(conditions)} condition(s) to mapping {rule_id}")

    def delete_mapping(self):
        """Delete a mapping."""
        self.print_header("Delete Mapping")
        rule_id = click.prompt("Mapping id", type=int)

        if self.mapping_set.remove_rule(rule_id):
            click.echo(f"{Fore.GREEN}✅ Deleted mapping {rule_id}")
        else:
            click.echo(f"{Fore.RED}Mapping {rule_id} not found")

    def preview_document(self):
        """Compile and show the document."""
        self.print_header("Compiled Document")

        for issue in MappingValidator(app_config.engine).validate(self.mapping_set):
            click.echo(f"{Fore.YELLOW}   • {issue}")

        result = self.compiler.compile(self.mapping_set, load_skeleton(app_config.skeleton_path))
        click.echo(json.dumps(result.document, indent=2, ensure_ascii=False))

        if result.skipped:
            click.echo(f"\n{Fore.YELLOW}Skipped {len(result.skipped)} mapping(s):")
            for skip in result.skipped:
                click.echo(f"{Fore.YELLOW}   • {skip.rule_id}: {skip.message}")

    def resync_from_document(self, document_file: Optional[str] = None):
        """Replace the mapping set with one parsed from an edited document."""
        self.print_header("Resync From Document")

        if document_file is None:
            document_file = click.prompt("Document file", type=click.Path(exists=True))

        with open(document_file, "r", encoding="utf-8") as f:
            text = f.read()

        result = self.parser.parse(text)

        if isinstance(result, ParseFailure):
            click.echo(f"{Fore.RED}❌ Could not parse document: {result.message}")
            click.echo(f"{Fore.YELLOW}Keeping the current {len(self.mapping_set)} mapping(s)")
            return

        if result.is_equivalent(self.mapping_set):
            click.echo(f"{Fore.GREEN}Document already matches the current mappings")
            return

        self.mapping_set = result
        click.echo(f"{Fore.GREEN}✅ Loaded {len(result)} mapping(s) from {document_file}")

    def save(self):
        """Save the mapping set and its compiled document."""
        self.print_header("Save")

        if self.mappings_file is None:
            default = str(Path(app_config.output_dir) / "mappings.json")
            self.mappings_file = Path(click.prompt("Mappings file", default=default))

        result = self.compiler.compile(self.mapping_set, load_skeleton(app_config.skeleton_path))
        document_file = self.mappings_file.with_name(f"{self.mappings_file.stem}.jsonld")

        self.exporter.export_mappings(self.mappings_file, self.mapping_set, result.skipped)
        self.exporter.export_document(document_file, result.document)

        click.echo(f"{Fore.GREEN}✅ Saved {len(self.mapping_set)} mapping(s) to {self.mappings_file}")
        click.echo(f"{Fore.GREEN}   Document: {document_file}")
