"""
SCORPIO command-line interface.

Usage:
    scorpio scan --target https://example.com
    scorpio scan --target http://localhost --module xss --module sqli --output report.json
    scorpio quick http://localhost
"""

import asyncio
import json
import sys
from pathlib import Path
from typing import Optional, Tuple

import click
from rich.console import Console
from rich.table import Table

from . import __version__
from .core import ConfigError, Orchestrator, ScanConfig, configure_logging
from .modules import MODULE_REGISTRY


console = Console()


@click.group()
@click.version_option(version=__version__, prog_name="SCORPIO")
def cli():
    """
    SCORPIO - Browser-driven web vulnerability scanner

    Runs XSS, SQL injection, TLS certificate, URL harvesting and DOM
    fingerprint modules against a single page.
    """
    pass


@cli.command()
@click.option('--target', required=True, help='Target URL to scan')
@click.option('--config', 'config_path', type=click.Path(exists=True, dir_okay=False), help='YAML configuration file')
@click.option('--module', 'modules', multiple=True, type=click.Choice(list(MODULE_REGISTRY)), help='Module to run (repeatable, default: all)')
@click.option('--headless/--no-headless', default=None, help='Run browser in headless mode')
@click.option('--settle-ms', type=int, help='Wait after each payload submission (default: 1000)')
@click.option('--response-timeout-ms', type=int, help='SQLi response wait (default: 5000)')
@click.option('--test-hidden-inputs', is_flag=True, help='Also inject into hidden inputs')
@click.option('--output', type=click.Path(), help='Save report to JSON file')
@click.option('--json-logs', is_flag=True, help='Emit logs as JSON lines')
@click.option('--log-level', default='INFO', type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR']), help='Log level')
def scan(
    target: str,
    config_path: Optional[str],
    modules: Tuple[str, ...],
    headless: Optional[bool],
    settle_ms: Optional[int],
    response_timeout_ms: Optional[int],
    test_hidden_inputs: bool,
    output: Optional[str],
    json_logs: bool,
    log_level: str,
):
    """
    Scan a target URL with the detection modules.

    Example:
        scorpio scan --target http://localhost --no-headless
    """
    configure_logging(json=json_logs, level=log_level)

    try:
        config = ScanConfig.from_yaml(config_path) if config_path else ScanConfig()
        config = config.merged(
            headless=headless,
            settle_interval_ms=settle_ms,
            response_timeout_ms=response_timeout_ms,
            test_hidden_inputs=test_hidden_inputs or None,
            modules=list(modules) or None,
        )
    except (ConfigError, ValueError) as e:
        raise click.BadParameter(str(e))

    console.print(f"[green]Target:[/green] {target}")
    console.print(f"[green]Modules:[/green] {', '.join(config.modules)}")
    console.print(f"[green]Headless:[/green] {config.headless}")
    console.print()

    run_scan(target, config, output)


@cli.command()
@click.argument('target')
def quick(target: str):
    """
    Quick scan with default settings.

    Example:
        scorpio quick http://localhost
    """
    configure_logging()
    console.print(f"\n[cyan]Running quick scan on {target}...[/cyan]\n")
    run_scan(target, ScanConfig(), None)


@cli.command(name='modules')
def list_modules():
    """List available detection modules"""
    table = Table(title="Detection Modules")
    table.add_column("Key", style="cyan", no_wrap=True)
    table.add_column("Module", style="green")

    config = ScanConfig()
    for key, factory in MODULE_REGISTRY.items():
        table.add_row(key, factory(config).name)

    console.print(table)


def run_scan(target: str, config: ScanConfig, output: Optional[str]):
    """Run the orchestrator and print/save its report"""
    orchestrator = Orchestrator(config=config)

    try:
        asyncio.run(orchestrator.attack(target))
    except KeyboardInterrupt:
        console.print("\n\n[yellow]Scan interrupted by user[/yellow]")
        sys.exit(1)

    report = orchestrator.get_report()
    print_report(report)

    if output:
        output_path = Path(output)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with open(output_path, 'w') as f:
            json.dump(report, f, indent=2)

        console.print(f"\n[green]Report saved to:[/green] {output_path}")


def print_report(report: dict):
    """Render module results as a table"""
    table = Table(title=f"Results for {report['target']}")
    table.add_column("Module", style="cyan", no_wrap=True)
    table.add_column("Positive")
    table.add_column("Result", overflow="fold")

    for result in report["results"]:
        positive = "[bold red]YES[/bold red]" if result["positive"] else "[green]no[/green]"
        payload = json.dumps(result["result"]) if result["result"] is not None else "-"
        if len(payload) > 200:
            payload = payload[:200] + "..."
        table.add_row(result["name"], positive, payload)

    console.print(table)

    if report["aborted"]:
        console.print("[yellow]Scan aborted early, results are partial[/yellow]")


if __name__ == '__main__':
    cli()
