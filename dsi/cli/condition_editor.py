"""Interactive condition chain editing."""
from typing import List

import click
from colorama import Fore

from dsi.schema.models import (
    Condition,
    Join,
    MappingRule,
    Operator,
    append_condition,
    normalize_chain,
    remove_condition,
)

OPERATOR_CHOICES = [op.value for op in Operator]


class ConditionEditor:
    """Interactive editing of one rule's condition chain."""

    def __init__(self, rule: MappingRule):
        """Initialize editor with a copy of the rule's chain."""
        self.rule = rule
        self.conditions: List[Condition] = normalize_chain(rule.conditions)

    def display_chain(self) -> None:
        """Show the chain as IF / AND / OR rows."""
        click.echo(f"\n{Fore.CYAN}Conditions for '{self.rule.target}':")

        if not self.conditions:
            click.echo(f"{Fore.YELLOW}   (no conditions)")
            return

        for i, condition in enumerate(self.conditions):
            label = "IF" if i == 0 else Join(self.conditions[i - 1].join).value
            value = "" if condition.operator == Operator.IS_EMPTY.value else f" {condition.value}"
            click.echo(f"{i + 1:2d}. {label:3s} {condition.field} {condition.operator}{value}")

    def prompt_conditions(self) -> List[Condition]:
        """
        Prompt the user to edit the chain.

        Returns:
            List[Condition]: Edited chain, TERMINAL on the last element
        """
        while True:
            self.display_chain()

            click.echo(f"\n{Fore.YELLOW}a = add condition, r = remove condition, "
                       f"j = change join, d = done")
            action = click.prompt("Action", default="d", type=str).strip().lower()

            if action == "a":
                self._add_condition()
            elif action == "r":
                self._remove_condition()
            elif action == "j":
                self._change_join()
            elif action == "d":
                return normalize_chain(self.conditions)
            else:
                click.echo(f"{Fore.RED}Invalid action")

    def _add_condition(self) -> None:
        field_name = click.prompt("Field (data path)", default=self.rule.source or "", type=str).strip()
        operator = click.prompt("Operator", type=click.Choice(OPERATOR_CHOICES), default=">")

        value = ""
        if operator != Operator.IS_EMPTY.value:
            value = click.prompt("Value", default="", type=str)

        self.conditions = append_condition(self.conditions, Condition(field_name, operator, value))

    def _remove_condition(self) -> None:
        if not self.conditions:
            click.echo(f"{Fore.YELLOW}Nothing to remove")
            return

        index = click.prompt("Condition number", type=int)
        if 1 <= index <= len(self.conditions):
            self.conditions = remove_condition(self.conditions, index - 1)
        else:
            click.echo(f"{Fore.RED}Invalid condition number")

    def _change_join(self) -> None:
        if len(self.conditions) < 2:
            click.echo(f"{Fore.YELLOW}A join needs at least two conditions")
            return

        index = click.prompt("Join after condition number", type=int)
        if not 1 <= index < len(self.conditions):
            click.echo(f"{Fore.RED}Invalid condition number")
            return

        join = click.prompt("Join", type=click.Choice([Join.AND.value, Join.OR.value]), default="AND")
        current = self.conditions[index - 1]
        self.conditions[index - 1] = Condition(current.field, current.operator, current.value, Join(join))
