"""CLI commands for Filler."""

import asyncio
import sys
from datetime import datetime
from pathlib import Path

import typer
from loguru import logger
from rich.console import Console
from rich.table import Table

from filler import __version__, __logo__
from filler.notifications import NoticeLevel, Notifier

app = typer.Typer(
    name="filler",
    help=f"{__logo__} Filler - fill document templates with an LLM",
    no_args_is_help=True,
)

console = Console()

# Path of an alternate config file, set by the --config option
_config_path: Path | None = None


class ConsoleNotifier(Notifier):
    """Prints notifications to the terminal."""
    
    STYLES = {
        NoticeLevel.INFO: "[cyan]•[/cyan]",
        NoticeLevel.SUCCESS: "[green]✓[/green]",
        NoticeLevel.WARNING: "[yellow]![/yellow]",
        NoticeLevel.ERROR: "[red]✗[/red]",
    }
    
    def notify(self, level: NoticeLevel, message: str) -> None:
        console.print(f"{self.STYLES[level]} {message}")


def version_callback(value: bool):
    if value:
        console.print(f"{__logo__} Filler v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None, "--version", "-v", callback=version_callback, is_eager=True
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Show debug logs"),
    config: Path = typer.Option(None, "--config", "-c", help="Path to config.json"),
):
    """Filler - fill document templates with an LLM."""
    global _config_path
    _config_path = config
    
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "WARNING")


def _load():
    from filler.config.loader import load_config
    return load_config(_config_path)


# ============================================================================
# Onboard / Status
# ============================================================================


SAMPLE_TEMPLATE = """---
tags: [meeting]
---
# Meeting Notes

## Attendees

## Agenda

## Decisions

## Action Items
"""


@app.command()
def onboard():
    """Initialize Filler configuration and workspace."""
    from filler.config.loader import get_config_path, save_config
    from filler.config.schema import Config
    
    config_path = _config_path or get_config_path()
    
    if config_path.exists():
        console.print(f"[yellow]Config already exists at {config_path}[/yellow]")
        if not typer.confirm("Overwrite?"):
            raise typer.Exit()
    
    config = Config()
    save_config(config, config_path)
    console.print(f"[green]✓[/green] Created config at {config_path}")
    
    templates_dir = config.workspace_path / config.paths.templates_path
    templates_dir.mkdir(parents=True, exist_ok=True)
    console.print(f"[green]✓[/green] Created workspace at {config.workspace_path}")
    
    sample = templates_dir / f"meeting-notes.{config.paths.template_extension}"
    if not sample.exists():
        sample.write_text(SAMPLE_TEMPLATE, encoding="utf-8")
        console.print(f"  [dim]Created {sample.name}[/dim]")
    
    console.print(f"\n{__logo__} Filler is ready!")
    console.print("\nNext steps:")
    console.print(f"  1. Add your API key to [cyan]{config_path}[/cyan] under llm.apiKey")
    console.print("     Get one at: https://openrouter.ai/keys")
    console.print("  2. Fill a template: [cyan]filler fill meeting-notes -m \"Weekly sync\"[/cyan]")


@app.command()
def status():
    """Show configuration status."""
    config = _load()
    
    table = Table(title="Filler Status")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")
    
    table.add_row("Provider", config.llm.provider)
    table.add_row("Model", config.llm.model)
    table.add_row("API key", config.llm.mask_api_key() or "[red]not set[/red]")
    table.add_row("Workspace", str(config.workspace_path))
    table.add_row("Templates", config.paths.templates_path or "/")
    table.add_row("Output", config.paths.output_path or "/")
    table.add_row(
        "Prompt optimization",
        "on" if config.processing.use_prompt_optimization else "off",
    )
    
    console.print(table)


# ============================================================================
# Templates
# ============================================================================


@app.command("templates")
def list_templates():
    """List available templates."""
    from filler.errors import FillerError
    from filler.storage.local import LocalStorage
    from filler.templates.repository import TemplateRepository
    
    config = _load()
    repository = TemplateRepository.from_config(LocalStorage(config.workspace_path), config)
    try:
        templates = asyncio.run(repository.get_templates())
    except FillerError as e:
        console.print(f"[red]Failed to load templates: {e}[/red]")
        raise typer.Exit(1)
    
    if not templates:
        console.print(f"No templates found in {config.paths.templates_path or '/'}.")
        return
    
    table = Table(title="Templates")
    table.add_column("Name", style="cyan")
    table.add_column("Path", style="yellow")
    table.add_column("Modified", style="dim")
    
    for template in templates:
        modified = datetime.fromtimestamp(template.last_modified).strftime("%Y-%m-%d %H:%M")
        table.add_row(template.display_name, template.path, modified)
    
    console.print(table)


@app.command()
def fill(
    template: str = typer.Argument(..., help="Template path or display name"),
    message: str = typer.Option(..., "--message", "-m", help="What the document should contain"),
    optimize: bool = typer.Option(
        None, "--optimize/--no-optimize", help="Override prompt optimization setting"
    ),
):
    """Fill a template and save the result."""
    from filler.pipeline.orchestrator import ProcessingState, create_session
    
    config = _load()
    if optimize is not None:
        config.processing.use_prompt_optimization = optimize
    
    session = create_session(config, notifier=ConsoleNotifier())
    
    async def run():
        templates = await session.open()
        selected = _match_template(templates, template)
        if selected is None:
            console.print(f"[red]Template not found: {template}[/red]")
            return None
        
        session.select_template(selected)
        session.set_instruction(message)
        
        with console.status(f"Generating from {selected.display_name}..."):
            result = await session.submit()
        session.close()
        return result
    
    result = asyncio.run(run())
    if result is None or result.state != ProcessingState.SUCCEEDED:
        raise typer.Exit(1)
    
    console.print(f"\n{__logo__} {result.output_path}")


def _match_template(templates, query: str):
    """Find a template by exact path, path without extension, or display name."""
    from filler.storage.base import normalize_path
    
    key = normalize_path(query)
    lowered = query.strip().lower()
    
    for t in templates:
        if t.path == key:
            return t
    for t in templates:
        stem = t.path.rsplit(".", 1)[0]
        if stem == key or stem.rsplit("/", 1)[-1] == key:
            return t
    for t in templates:
        if t.display_name.lower() == lowered:
            return t
    return None


# ============================================================================
# Provider Commands
# ============================================================================


provider_app = typer.Typer(help="Inspect the LLM provider")
app.add_typer(provider_app, name="provider")


@provider_app.command("test")
def provider_test():
    """Test the connection to the configured provider."""
    from filler.generation.service import GenerationService
    
    config = _load()
    service = GenerationService(config, notifier=ConsoleNotifier())
    
    if not asyncio.run(service.test_connection()):
        raise typer.Exit(1)


@provider_app.command("models")
def provider_models():
    """List models offered by the configured provider."""
    from filler.generation.service import GenerationService
    
    config = _load()
    service = GenerationService(config, notifier=ConsoleNotifier())
    models = service.get_available_models()
    
    if not models:
        console.print("No models available.")
        return
    
    table = Table(title=f"Models ({config.llm.provider})")
    table.add_column("Model", style="cyan")
    table.add_column("Active", style="green")
    for model in models:
        table.add_row(model, "✓" if model == config.llm.model else "")
    
    console.print(table)


if __name__ == "__main__":
    app()
