"""Click CLI: orchestrates config loading, adapter setup, the council run, and output."""

import asyncio
import json
import logging
import sys
from pathlib import Path

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn

from config.config_loader import AppConfig, load_config
from src.council import Council
from src.healthcheck import run_health_checks
from src.models import Answer, CouncilResult, EmptyRosterError
from src.output import print_final, print_scoreboard, print_transcripts, save_to_file
from src.providers.base import ProviderAdapter
from src.providers.factory import build_adapters

logger = logging.getLogger(__name__)

console = Console(legacy_windows=False)


def _setup_logging(verbose: bool, quiet: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.WARNING if quiet else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True, show_path=False)],
    )


def _empty_roster_payload(exc: EmptyRosterError) -> dict:
    return {"error": "no_answers", "message": str(exc), "modelsAttempted": exc.attempted}


def _check_members(config: AppConfig, adapters: dict[str, ProviderAdapter]) -> int:
    """Ping every roster member and print a status line each. Returns failure count."""
    console.print("\n[bold]Checking members...[/bold]")
    results = asyncio.run(run_health_checks(config.members, adapters))
    failures = 0
    for member in config.members:
        ok, err = results[member.label]
        if ok:
            console.print(f"  [green]OK  [/green] {member.label}")
        else:
            failures += 1
            short_err = err.splitlines()[0][:120] if err else "unknown error"
            console.print(f"  [red]FAIL[/red] {member.label}: {short_err}")
    console.print()
    return failures


async def _run_council(council: Council, prompt: str, show_progress: bool) -> CouncilResult:
    if not show_progress:
        return await council.run(prompt)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        TimeElapsedColumn(),
        console=console,
        transient=True,
    ) as progress:
        task = progress.add_task(f"Asking {len(council.roster)} members...", total=None)

        def on_answers(answers: list[Answer]) -> None:
            progress.print(f"[green]OK[/green] {len(answers)}/{len(council.roster)} members answered")
            progress.update(task, description="Ranking and synthesizing...")

        return await council.run(prompt, on_answers=on_answers)


@click.command()
@click.argument("prompt", required=False)
@click.option("--file", "prompt_file", type=click.Path(exists=True), help="Read the prompt from a file")
@click.option("--chairman", default=None, help="Member label that ranks and synthesizes (default: from config)")
@click.option("--concurrency", default=None, type=click.IntRange(min=1),
              help="Members asked at once (default: from config)")
@click.option("--json", "as_json", is_flag=True, help="Print the result payload as JSON")
@click.option("--output", "output_path", default=None, help="Output directory (default: from config)")
@click.option("--no-save", is_flag=True, help="Do not write a markdown report")
@click.option("--check", "check_only", is_flag=True, help="Ping every member and exit")
@click.option("--settings", "settings_path", type=click.Path(exists=True), default=None,
              help="Path to settings.yaml")
@click.option("--verbose", is_flag=True, help="Enable DEBUG-level logging")
def main(
    prompt: str | None,
    prompt_file: str | None,
    chairman: str | None,
    concurrency: int | None,
    as_json: bool,
    output_path: str | None,
    no_save: bool,
    check_only: bool,
    settings_path: str | None,
    verbose: bool,
) -> None:
    """Model Council -- ask many models, get one answer.

    \b
    Examples:
      python -m src.cli "Explain CRDTs in two paragraphs"
      python -m src.cli --file prompt.md --json
      python -m src.cli "Tabs or spaces?" --chairman "Gemini Flash 2.0"
      python -m src.cli --check
    """
    # Member labels and model output carry non-ASCII text; keep Windows consoles from choking on it.
    if sys.platform == "win32":
        if hasattr(sys.stdout, "reconfigure"):
            sys.stdout.reconfigure(encoding="utf-8", errors="replace")
        if hasattr(sys.stderr, "reconfigure"):
            sys.stderr.reconfigure(encoding="utf-8", errors="replace")

    load_dotenv()
    _setup_logging(verbose, quiet=as_json)

    try:
        config = load_config(Path(settings_path)) if settings_path else load_config()
    except (FileNotFoundError, ValueError) as exc:
        console.print(f"[bold red]Config error:[/bold red] {exc}")
        sys.exit(1)

    adapters = build_adapters(config)
    if not adapters:
        console.print("[bold red]Error:[/bold red] No providers available. Check API keys in .env.")
        sys.exit(1)

    if check_only:
        failures = _check_members(config, adapters)
        sys.exit(1 if failures == len(config.members) else 0)

    if prompt_file:
        prompt_text = Path(prompt_file).read_text(encoding="utf-8").strip()
    elif prompt:
        prompt_text = prompt
    else:
        console.print("[bold red]Error:[/bold red] Provide a PROMPT argument or --file.")
        sys.exit(1)

    try:
        council = Council.from_config(config, adapters, chairman_label=chairman, concurrency=concurrency)
    except (KeyError, ValueError) as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        sys.exit(1)

    if not as_json:
        console.print(
            f"\n[bold cyan]Model Council[/bold cyan]: {len(council.roster)} members, "
            f"chairman: {council.chairman.label}"
        )
        console.print(f"Prompt: [italic]{prompt_text[:80]}{'...' if len(prompt_text) > 80 else ''}[/italic]\n")

    try:
        result = asyncio.run(_run_council(council, prompt_text, show_progress=not as_json))
    except EmptyRosterError as exc:
        if as_json:
            click.echo(json.dumps(_empty_roster_payload(exc), ensure_ascii=False, indent=2))
        else:
            console.print(f"[bold red]Error:[/bold red] {exc}")
        sys.exit(1)
    except ValueError as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        sys.exit(1)

    if as_json:
        click.echo(json.dumps(result.to_payload(), ensure_ascii=False, indent=2))
    else:
        print_transcripts(result.answers)
        print_scoreboard(result)
        print_final(result)

    if not no_save:
        output_dir = Path(output_path) if output_path else config.council.output_dir
        saved_path = save_to_file(result, output_dir)
        if not as_json:
            console.print(f"\n[dim]Saved to: {saved_path}[/dim]")


if __name__ == "__main__":
    main()
