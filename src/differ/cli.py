"""differ CLI: Typer application with refs, diff, review, and init commands."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Tuple

import typer
from rich.console import Console
from rich.prompt import Prompt

from differ import __version__
from differ.config.loader import ConfigError, load_config
from differ.config.schema import OUTPUT_FORMATS, DifferConfig
from differ.git.adapter import GitError, NotFoundError, discover_repo
from differ.log import configure_logging
from differ.session import ReviewSession

app = typer.Typer(
    name="differ",
    help="Review a branch diff and relay line comments to a coding agent.",
    add_completion=False,
    no_args_is_help=True,
)

console = Console(stderr=True)


def _fail(label: str, exc: Exception) -> typer.Exit:
    console.print(f"[bold red]{label}:[/bold red] {exc}")
    return typer.Exit(code=2)


def _load(path: Optional[str], config: Optional[str]) -> Tuple[ReviewSession, DifferConfig, list]:
    """Open a session on *path* (default: cwd) with its config. Exits 2 on failure."""
    target = path or str(Path.cwd())
    try:
        repo = discover_repo(target)
    except NotFoundError as exc:
        raise _fail("Error", exc) from exc
    except GitError as exc:
        raise _fail("Git error", exc) from exc

    try:
        cfg = load_config(repo.work_tree or repo.git_dir, config)
    except ConfigError as exc:
        raise _fail("Config error", exc) from exc
    configure_logging(cfg.log.level, console)

    session = ReviewSession(git_timeout=cfg.git.timeout)
    try:
        refs = session.open(target)
    except GitError as exc:
        raise _fail("Git error", exc) from exc
    return session, cfg, refs


def _check_format(fmt: Optional[str], cfg: DifferConfig) -> str:
    if fmt is None:
        return cfg.output.format
    if fmt not in OUTPUT_FORMATS:
        console.print(f"[bold red]Invalid format:[/bold red] {fmt}")
        raise typer.Exit(code=2)
    return fmt


# ── refs ──────────────────────────────────────────────────────────────────────


@app.command()
def refs(
    path: Optional[str] = typer.Argument(None, help="Path inside the repository"),
    format: Optional[str] = typer.Option(None, "--format", "-f", help="Output format: terminal | json"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to .differ.toml"),
) -> None:
    """List local branches and tags."""
    from differ.output import json_report, terminal

    _, cfg, references = _load(path, config)
    fmt = _check_format(format, cfg)
    if fmt == "json":
        print(json_report.render_references(references))
    else:
        terminal.render_references(references, Console())


# ── diff ──────────────────────────────────────────────────────────────────────


@app.command()
def diff(
    base: str = typer.Argument(..., help="Base branch"),
    compare: str = typer.Argument(..., help="Branch to compare against base"),
    repo: Optional[str] = typer.Option(None, "--repo", "-r", help="Path inside the repository"),
    format: Optional[str] = typer.Option(None, "--format", "-f", help="Output format: terminal | json"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Write the JSON diff to a file"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to .differ.toml"),
) -> None:
    """Show the structural diff between two branches."""
    from differ.output import json_report, terminal

    session, cfg, _ = _load(repo, config)
    fmt = _check_format(format, cfg)

    try:
        result = session.diff(base, compare)
    except GitError as exc:
        raise _fail("Git error", exc) from exc

    if fmt == "json":
        print(json_report.render(result))
    else:
        terminal.render(result, Console(), show_summary=cfg.output.show_summary)

    if output:
        Path(output).write_text(json_report.render(result), encoding="utf-8")
        console.print(f"[dim]Diff written to {output}[/dim]")


# ── review ────────────────────────────────────────────────────────────────────

_REVIEW_HELP = """\
[bold]Commands[/bold]
  c <file> <start>[-<end>] <comment>   queue a comment for the agent
  v <file>                             toggle viewed
  s                                    queue and viewed status
  q                                    quit"""


def _parse_range(text: str) -> Tuple[int, int]:
    start, _, end = text.partition("-")
    first = int(start)
    last = int(end) if end else first
    return first, last


@app.command()
def review(
    base: str = typer.Argument(..., help="Base branch"),
    compare: str = typer.Argument(..., help="Branch to compare against base"),
    repo: Optional[str] = typer.Option(None, "--repo", "-r", help="Path inside the repository"),
    host: Optional[str] = typer.Option(None, "--host", help="Relay bind address"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Relay port"),
    no_relay: bool = typer.Option(False, "--no-relay", help="Do not start the MCP relay"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to .differ.toml"),
) -> None:
    """Review a diff interactively and relay comments to an agent over MCP."""
    from differ.output import terminal
    from differ.relay.server import RelayWorker
    from differ.review.viewed import ViewedTracker
    from differ.session import code_context

    session, cfg, _ = _load(repo, config)
    try:
        result = session.diff(base, compare)
    except GitError as exc:
        raise _fail("Git error", exc) from exc

    viewed = ViewedTracker()
    out = Console()
    terminal.render(result, out, show_summary=cfg.output.show_summary, viewed=viewed)

    worker: Optional[RelayWorker] = None
    if cfg.relay.enabled and not no_relay:
        worker = RelayWorker(
            session.queue,
            host=host or cfg.relay.host,
            port=port or cfg.relay.port,
            path=cfg.relay.path,
        )
        worker.start()
        console.print(f"[green]✓[/green] MCP relay at [cyan]{worker.url}[/cyan]")

    console.print(_REVIEW_HELP)
    try:
        while True:
            try:
                line = Prompt.ask("[bold]differ[/bold]", console=console, default="", show_default=False)
            except EOFError:
                break
            cmd, _, rest = line.strip().partition(" ")
            if not cmd:
                continue
            if cmd == "q":
                break
            if cmd == "s":
                seen, total = viewed.counts(result.files)
                console.print(f"Pending comments: {session.queue_length()}  Viewed: {seen}/{total}")
            elif cmd == "v":
                target = result.find_file(rest.strip())
                if target is None:
                    console.print(f"[yellow]⚠[/yellow]  Not in this diff: {rest.strip()}")
                    continue
                state = viewed.toggle(target)
                console.print(f"{target.path}: {'viewed' if state else 'not viewed'}")
            elif cmd == "c":
                parts = rest.split(None, 2)
                if len(parts) < 3:
                    console.print("[yellow]⚠[/yellow]  Usage: c <file> <start>[-<end>] <comment>")
                    continue
                file, span, text = parts
                try:
                    start, end = _parse_range(span)
                except ValueError:
                    console.print(f"[yellow]⚠[/yellow]  Bad line range: {span}")
                    continue
                snippet = code_context(result, file, start, end)
                comment_id = session.submit_comment(file, start, end, snippet, text)
                console.print(f"[green]✓[/green] Queued comment #{comment_id} on {file}:{start}-{end}")
            else:
                console.print(_REVIEW_HELP)
    finally:
        pending = session.queue_length()
        if pending:
            console.print(f"[yellow]⚠[/yellow]  {pending} comment(s) were never picked up")
        if worker is not None:
            worker.stop()


# ── init ──────────────────────────────────────────────────────────────────────


@app.command()
def init() -> None:
    """Generate a starter .differ.toml in the repository root."""
    from differ.config.defaults import DEFAULT_TOML
    from differ.config.loader import CONFIG_FILENAME

    try:
        repo = discover_repo(Path.cwd())
    except GitError as exc:
        raise _fail("Error", exc) from exc
    root = repo.work_tree or repo.git_dir
    config_path = root / CONFIG_FILENAME

    if config_path.exists():
        console.print(f"[yellow]⚠[/yellow]  {CONFIG_FILENAME} already exists at {config_path}")
        raise typer.Exit(code=1)

    config_path.write_text(DEFAULT_TOML, encoding="utf-8")
    console.print(f"[green]✓[/green] Created {config_path}")


# ── version ───────────────────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        print(f"differ {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", "-V", callback=_version_callback,
        is_eager=True, help="Show version and exit",
    ),
) -> None:
    """differ: review a branch diff and relay line comments to a coding agent."""
