"""
scopewire CLI.

Commands:
    check   - Evaluate every injection point of a YAML bean graph
    scopes  - Show which scopes accept which

Graph file format::

    container:            # optional, same keys as ContainerConfig
      detect_mixed_scopes: true
    beans:
      - name: checkout
        scope: singleton
        refs:
          cart: cart      # attribute: bean name
      - name: cart
        scope: request
"""

import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import click
import yaml

from . import __version__
from .config import ConfigLoader, ContainerConfig
from .definitions import BeanDefinition
from .errors import ConfigError
from .manager import MixingOutcome, create_mixing_message, evaluate_mixing
from .scopes import SCOPES, Scope, resolve_scope_type

_OUTCOME_STYLE = {
    MixingOutcome.COMPATIBLE: ("ok", "green"),
    MixingOutcome.MEDIATE: ("proxy", "cyan"),
    MixingOutcome.REJECT_SILENT: ("skip", "yellow"),
    MixingOutcome.REJECT_FATAL: ("FAIL", "red"),
}


def load_graph(path: str) -> Tuple[Dict[str, Any], List[Dict[str, Any]]]:
    """
    Load a bean graph file.

    Returns:
        Tuple of (container section, bean entries)
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ConfigError(f"Graph file {path} must contain a mapping")

    beans = data.get("beans") or []
    if not isinstance(beans, list):
        raise ConfigError(f"'beans' in {path} must be a list")

    for entry in beans:
        if not isinstance(entry, dict) or not entry.get("name"):
            raise ConfigError(f"Every bean in {path} needs a 'name': {entry!r}")

    return data.get("container") or {}, beans


def build_definitions(beans: List[Dict[str, Any]], default_scope: str) -> Dict[str, BeanDefinition]:
    """Build definitions without importing bean classes; one scope instance per kind."""
    scopes: Dict[type, Scope] = {}
    definitions: Dict[str, BeanDefinition] = {}

    for entry in beans:
        scope_type = resolve_scope_type(entry.get("scope") or default_scope)
        scope = scopes.get(scope_type)
        if scope is None:
            scope = scopes[scope_type] = scope_type()

        definitions[entry["name"]] = BeanDefinition(
            name=entry["name"],
            type=object,
            scope=scope,
            refs=dict(entry.get("refs") or {}),
        )

    return definitions


def check_graph(
    definitions: Dict[str, BeanDefinition],
    config: ContainerConfig,
) -> List[Tuple[str, str, Optional[MixingOutcome], str]]:
    """
    Evaluate every injection point.

    Returns:
        List of (bean, attribute, outcome, message); outcome is ``None``
        for references to unknown beans
    """
    results = []
    for definition in definitions.values():
        for attribute, ref_name in definition.refs.items():
            ref_definition = definitions.get(ref_name)
            if ref_definition is None:
                results.append((definition.name, attribute, None, f"unknown bean '{ref_name}'"))
                continue

            outcome = evaluate_mixing(
                definition,
                ref_definition,
                detect_mixed_scopes=config.detect_mixed_scopes,
                wire_scoped_proxy=config.wire_scoped_proxy,
            )
            if outcome is MixingOutcome.COMPATIBLE:
                message = f"{ref_name}@{ref_definition.scope_kind}"
            else:
                message = create_mixing_message(definition, ref_definition)
            results.append((definition.name, attribute, outcome, message))

    return results


@click.group()
@click.version_option(version=__version__, prog_name="scopewire")
def cli():
    """Scope mixing checks for scopewire containers."""


@cli.command("check")
@click.argument("graph", type=click.Path(exists=True, dir_okay=False))
@click.option("--config", "config_path", type=click.Path(exists=True, dir_okay=False),
              help="Container config file (YAML or JSON)")
@click.option("--detect/--no-detect", default=None, help="Override detect_mixed_scopes")
@click.option("--proxy/--no-proxy", default=None, help="Override wire_scoped_proxy")
def check(graph: str, config_path: Optional[str], detect: Optional[bool], proxy: Optional[bool]):
    """
    Evaluate every injection point of GRAPH.

    Exits with status 1 if any injection would fail.

    \b
    Examples:
      scopewire check beans.yaml
      scopewire check beans.yaml --proxy
    """
    try:
        section, beans = load_graph(graph)

        overrides = dict(section)
        if detect is not None:
            overrides["detect_mixed_scopes"] = detect
        if proxy is not None:
            overrides["wire_scoped_proxy"] = proxy

        loader = ConfigLoader.load(
            paths=[config_path] if config_path else None,
            overrides=overrides,
        )
        config = loader.to_config()
        definitions = build_definitions(beans, config.default_scope)
    except (ConfigError, yaml.YAMLError) as e:
        click.echo(click.style(f"✗ {e}", fg="red"), err=True)
        sys.exit(2)

    click.echo(click.style(f"Scope check: {Path(graph).name}", fg="cyan", bold=True))
    click.echo("─" * 40)
    click.echo(f"  detect_mixed_scopes: {config.detect_mixed_scopes}")
    click.echo(f"  wire_scoped_proxy:   {config.wire_scoped_proxy}")
    click.echo()

    failed = 0
    for bean, attribute, outcome, message in check_graph(definitions, config):
        if outcome is None:
            label, color = "FAIL", "red"
        else:
            label, color = _OUTCOME_STYLE[outcome]
        if outcome is None or outcome is MixingOutcome.REJECT_FATAL:
            failed += 1
        click.echo(f"  {click.style(label.ljust(5), fg=color)} {bean}.{attribute}: {message}")

    click.echo()
    if failed:
        click.echo(click.style(f"✗ {failed} injection point(s) would fail", fg="red"))
        sys.exit(1)
    click.echo(click.style("✓ Wiring is valid", fg="green"))


@cli.command("scopes")
def scopes():
    """Show which reference scopes each scope accepts as-is."""
    instances = {name: scope_type() for name, scope_type in SCOPES.items()}
    width = max(len(name) for name in instances) + 2

    click.echo(" " * width + "".join(name.ljust(width) for name in instances))
    for target_name, target in instances.items():
        cells = []
        for ref in instances.values():
            mark = "✓" if target.accept(ref) else "✗"
            cells.append(click.style(mark.ljust(width), fg="green" if mark == "✓" else "red"))
        click.echo(target_name.ljust(width) + "".join(cells))


def main():
    cli()


if __name__ == "__main__":
    main()
