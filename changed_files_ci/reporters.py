from __future__ import annotations

from pathlib import Path
import uuid

import typer


def escape_data(value: str) -> str:
    return value.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def escape_property(value: str) -> str:
    return escape_data(value).replace(":", "%3A").replace(",", "%2C")


def build_output_block(name: str, value: str, delimiter: str | None = None) -> str:
    """Render a multiline-safe ``name<<delimiter`` block for the GITHUB_OUTPUT file."""
    delimiter = delimiter or f"ghadelimiter_{uuid.uuid4()}"
    if delimiter in name:
        raise ValueError(f"Unexpected input: name should not contain the delimiter \"{delimiter}\"")
    if delimiter in value:
        raise ValueError(f"Unexpected input: value should not contain the delimiter \"{delimiter}\"")
    return f"{name}<<{delimiter}\n{value}\n{delimiter}\n"


class ActionReporter:
    """Workflow-command sink for step logs, failures and outputs."""

    def __init__(self, output_path: Path | None = None) -> None:
        self.output_path = output_path
        self.failed = False
        self.failures: list[str] = []
        self.outputs: dict[str, str] = {}

    def info(self, message: str) -> None:
        typer.echo(message)

    def debug(self, message: str) -> None:
        typer.echo(f"::debug::{escape_data(message)}")

    def set_failed(self, message: str) -> None:
        # Reported, not raised: the step keeps going.
        self.failed = True
        self.failures.append(message)
        typer.echo(f"::error::{escape_data(message)}")

    def set_output(self, name: str, value: str) -> None:
        self.outputs[name] = value
        if self.output_path:
            with self.output_path.open("a", encoding="utf-8") as fh:
                fh.write(build_output_block(name, value))
            return
        typer.echo(f"::set-output name={escape_property(name)}::{escape_data(value)}")
