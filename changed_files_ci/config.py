from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any
import json
import os

import typer

from changed_files_ci.github_api import DEFAULT_API_URL
from changed_files_ci.reporters import escape_data


class ConfigError(RuntimeError):
    pass


@dataclass
class ActionInputs:
    token: str
    format: str
    api_url: str = DEFAULT_API_URL
    timeout_seconds: int = 30


@dataclass
class EventContext:
    event_name: str
    owner: str
    repo: str
    payload: dict[str, Any] = field(default_factory=dict)


def load_env_file(path: Path) -> None:
    """Load simple KEY=VALUE pairs from a .env file without overriding existing env."""
    if not path.exists() or not path.is_file():
        return

    for raw in path.read_text(errors="ignore").splitlines():
        line = raw.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key and key not in os.environ:
            os.environ[key] = value


def require_input(name: str, value: str | None) -> str:
    value = (value or "").strip()
    if not value:
        raise ConfigError(f"Input required and not supplied: {name}")
    return value


def parse_repository(value: str | None) -> tuple[str, str]:
    owner, sep, repo = (value or "").strip().partition("/")
    if not sep or not owner or not repo or "/" in repo:
        raise ConfigError(f"Expected repository as 'owner/repo', got '{value or ''}'")
    return owner, repo


def load_event_payload(path: str | None) -> dict[str, Any]:
    if not path:
        return {}
    event_path = Path(path)
    if not event_path.exists():
        typer.echo(f"::warning::{escape_data(f'GITHUB_EVENT_PATH {event_path} does not exist')}")
        return {}
    try:
        data = json.loads(event_path.read_text())
    except ValueError as exc:
        raise ConfigError(f"Invalid event payload in {event_path}: {exc}") from exc
    return data if isinstance(data, dict) else {}


def load_inputs(
    token: str | None,
    fmt: str | None,
    api_url: str | None = None,
    timeout_seconds: int | None = None,
) -> ActionInputs:
    if timeout_seconds is None:
        timeout_seconds = int(os.getenv("CHANGED_FILES_TIMEOUT_SECONDS", "30") or "30")
    return ActionInputs(
        token=require_input("token", token or os.getenv("INPUT_TOKEN") or os.getenv("GITHUB_TOKEN")),
        format=require_input("format", fmt or os.getenv("INPUT_FORMAT")),
        api_url=(api_url or os.getenv("GITHUB_API_URL") or DEFAULT_API_URL).strip(),
        timeout_seconds=timeout_seconds,
    )


def load_event_context(
    event_name: str | None,
    repository: str | None,
    event_path: str | None,
) -> EventContext:
    owner, repo = parse_repository(repository or os.getenv("GITHUB_REPOSITORY"))
    return EventContext(
        event_name=(event_name or os.getenv("GITHUB_EVENT_NAME") or "").strip(),
        owner=owner,
        repo=repo,
        payload=load_event_payload(event_path or os.getenv("GITHUB_EVENT_PATH")),
    )
