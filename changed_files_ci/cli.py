from __future__ import annotations

from pathlib import Path
import typer

from changed_files_ci import __version__
from changed_files_ci.config import ConfigError, load_env_file, load_event_context, load_inputs
from changed_files_ci.reporters import ActionReporter
from changed_files_ci.runner import run_step

app = typer.Typer(help="changed-files-ci: classify the files changed by a push or pull request")


@app.callback()
def main() -> None:
    """changed-files-ci command group."""


@app.command()
def run(
    token: str | None = typer.Option(None, envvar=["INPUT_TOKEN", "GITHUB_TOKEN"], help="API token for the compare request"),
    fmt: str | None = typer.Option(None, "--format", envvar="INPUT_FORMAT", help="Output format: space-delimited|csv|json"),
    event_name: str | None = typer.Option(None, envvar="GITHUB_EVENT_NAME", help="Triggering event name"),
    event_path: str | None = typer.Option(None, envvar="GITHUB_EVENT_PATH", help="Path to the event payload JSON"),
    repository: str | None = typer.Option(None, envvar="GITHUB_REPOSITORY", help="Repository as owner/repo"),
    api_url: str | None = typer.Option(None, envvar="GITHUB_API_URL", help="REST API base URL"),
    output_path: str | None = typer.Option(None, envvar="GITHUB_OUTPUT", help="Step output file"),
    timeout_seconds: int | None = typer.Option(None, envvar="CHANGED_FILES_TIMEOUT_SECONDS", help="Compare request timeout"),
) -> None:
    load_env_file(Path.cwd() / ".env")

    reporter = ActionReporter(Path(output_path) if output_path else None)
    try:
        inputs = load_inputs(token, fmt, api_url=api_url, timeout_seconds=timeout_seconds)
        context = load_event_context(event_name, repository, event_path)
    except ConfigError as exc:
        reporter.set_failed(str(exc))
        raise typer.Exit(code=1)

    if not run_step(inputs, context, reporter):
        raise typer.Exit(code=1)


@app.command()
def version() -> None:
    typer.echo(__version__)


if __name__ == "__main__":
    app()
