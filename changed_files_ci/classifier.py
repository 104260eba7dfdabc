from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable
import json

from changed_files_ci.models import (
    ChangeEvent,
    ChangedFile,
    ClassificationResult,
    CompareResult,
    Failure,
    FailureKind,
    FileStatus,
    OutputFormat,
)

REPORT_HINT = "Please submit an issue on this action's GitHub repo."

SEPARATORS = {
    OutputFormat.SPACE_DELIMITED: " ",
    OutputFormat.CSV: ",",
}

CompareFn = Callable[[str, str], CompareResult]
RefsHook = Callable[[ChangeEvent], None]
FailureHook = Callable[[Failure], None]


@dataclass
class ClassifierOutcome:
    failures: list[Failure] = field(default_factory=list)
    outputs: dict[str, str] | None = None


def _dig(payload: Any, *keys: str) -> Any:
    node = payload
    for key in keys:
        if not isinstance(node, dict):
            return None
        node = node.get(key)
    return node


def extract_refs(event_name: str, payload: dict[str, Any] | None) -> tuple[ChangeEvent, list[Failure]]:
    """Resolve the base/head commits for a pull_request or push event.

    The event keeps the refs as found in the payload; absent ones are
    reported and ``ChangeEvent.refs`` falls back to empty placeholders so
    the caller can still attempt the comparison.
    """
    payload = payload or {}
    failures: list[Failure] = []
    base: str | None = None
    head: str | None = None

    if event_name == "pull_request":
        base = _dig(payload, "pull_request", "base", "sha")
        head = _dig(payload, "pull_request", "head", "sha")
    elif event_name == "push":
        base = _dig(payload, "before")
        head = _dig(payload, "after")
    else:
        failures.append(
            Failure(
                FailureKind.UNSUPPORTED_EVENT,
                f"This action only supports pull requests and pushes, {event_name} events are not supported. "
                "Please submit an issue on this action's GitHub repo if you believe this is incorrect.",
            )
        )

    event = ChangeEvent(name=event_name, base=base, head=head, payload=payload)
    if not event.resolved:
        failures.append(
            Failure(
                FailureKind.MISSING_REFS,
                f"The base and head commits are missing from the payload for this {event_name} event. {REPORT_HINT}",
            )
        )

    return event, failures


def check_comparison(event_name: str, result: CompareResult) -> list[Failure]:
    failures: list[Failure] = []
    if result.http_status != 200:
        failures.append(
            Failure(
                FailureKind.COMPARISON_FAILED,
                f"The GitHub API for comparing the base and head commits for this {event_name} event "
                f"returned {result.http_status}, expected 200. {REPORT_HINT}",
            )
        )
    if result.status != "ahead":
        failures.append(
            Failure(
                FailureKind.NOT_AHEAD,
                f"The head commit for this {event_name} event is not ahead of the base commit. {REPORT_HINT}",
            )
        )
    return failures


def classify_files(
    files: list[ChangedFile],
    fmt: OutputFormat | None,
) -> tuple[ClassificationResult, list[Failure]]:
    result = ClassificationResult()
    failures: list[Failure] = []

    for changed in files:
        filename = changed.filename
        result.all.append(filename)

        if fmt is OutputFormat.SPACE_DELIMITED and " " in filename:
            failures.append(
                Failure(
                    FailureKind.SPACE_IN_FILENAME,
                    "One of your files includes a space. Consider using a different output format "
                    f"or removing spaces from your filenames. {REPORT_HINT}",
                )
            )

        status = FileStatus.parse(changed.status)
        if status is FileStatus.ADDED:
            result.added.append(filename)
            result.added_modified.append(filename)
        elif status is FileStatus.MODIFIED:
            result.modified.append(filename)
            result.added_modified.append(filename)
        elif status is FileStatus.REMOVED:
            result.removed.append(filename)
        elif status is FileStatus.RENAMED:
            result.renamed.append(filename)
        else:
            failures.append(
                Failure(
                    FailureKind.UNSUPPORTED_STATUS,
                    f"One of your files includes an unsupported file status '{changed.status}', "
                    "expected 'added', 'modified', 'removed', or 'renamed'.",
                )
            )

    return result, failures


def format_group(filenames: list[str], fmt: OutputFormat | None) -> str:
    if fmt is OutputFormat.JSON:
        return json.dumps(filenames, separators=(",", ":"), ensure_ascii=False)
    if fmt in SEPARATORS:
        return SEPARATORS[fmt].join(filenames)
    # Unrecognized format: nothing to render.
    return ""


def format_result(result: ClassificationResult, fmt: OutputFormat | None) -> dict[str, str]:
    outputs = {name: format_group(filenames, fmt) for name, filenames in result.groups().items()}
    outputs["deleted"] = outputs["removed"]
    return outputs


def classify_response(event_name: str, response: CompareResult, fmt: OutputFormat | None) -> ClassifierOutcome:
    """Validate a comparison response and partition its changed files.

    Every reported condition is accumulated on the outcome and processing
    continues, except a response without a file list, which stops before
    any output is produced.
    """
    outcome = ClassifierOutcome(failures=check_comparison(event_name, response))

    if response.files is None:
        outcome.failures.append(
            Failure(
                FailureKind.NO_CHANGES,
                f"The GitHub API response does not contain any files for this {event_name} event. {REPORT_HINT}",
            )
        )
        return outcome

    result, classify_failures = classify_files(response.files, fmt)
    outcome.failures.extend(classify_failures)
    outcome.outputs = format_result(result, fmt)
    return outcome


def classify(
    event_name: str,
    payload: dict[str, Any] | None,
    fmt: OutputFormat | None,
    compare: CompareFn,
    on_refs: RefsHook | None = None,
    on_failure: FailureHook | None = None,
) -> ClassifierOutcome:
    """Resolve the event's refs, compare them and partition the changed files.

    ``on_failure`` sees each failure as soon as it is known and ``on_refs``
    runs before the compare call, so a caller still gets both when
    ``compare`` raises.
    """
    event, failures = extract_refs(event_name, payload)
    if on_failure is not None:
        for failure in failures:
            on_failure(failure)
    if on_refs is not None:
        on_refs(event)

    base, head = event.refs
    outcome = classify_response(event_name, compare(base, head), fmt)
    if on_failure is not None:
        for failure in outcome.failures:
            on_failure(failure)
    outcome.failures[:0] = failures
    return outcome
