from __future__ import annotations

from changed_files_ci.classifier import CompareFn, classify
from changed_files_ci.config import ActionInputs, EventContext
from changed_files_ci.github_api import compare_commits
from changed_files_ci.models import ChangeEvent, CompareResult, Failure, FailureKind, OutputFormat
from changed_files_ci.reporters import ActionReporter

UNEXPECTED_ERROR = "An unexpected error occurred"

OUTPUT_LABELS = {
    "all": "All",
    "added": "Added",
    "modified": "Modified",
    "removed": "Removed",
    "renamed": "Renamed",
    "added_modified": "Added or modified",
}


def _github_compare(inputs: ActionInputs, context: EventContext) -> CompareFn:
    def compare(base: str, head: str) -> CompareResult:
        return compare_commits(
            context.owner,
            context.repo,
            base,
            head,
            token=inputs.token,
            api_url=inputs.api_url,
            timeout=inputs.timeout_seconds,
        )

    return compare


def invalid_format_message(raw: str) -> str:
    return f"Format must be one of 'space-delimited', 'csv', or 'json', got '{raw}'."


def _report(reporter: ActionReporter, failures: list[Failure]) -> None:
    for failure in failures:
        reporter.set_failed(failure.message)


def run_step(
    inputs: ActionInputs,
    context: EventContext,
    reporter: ActionReporter,
    compare: CompareFn | None = None,
) -> bool:
    """Classify the event's changed files and publish them as step outputs.

    Returns True when no failure was reported. Outputs may still have been
    set on a failed run; only a missing file list suppresses them.
    """
    try:
        fmt = OutputFormat.parse(inputs.format)
        if fmt is None:
            _report(reporter, [Failure(FailureKind.INVALID_FORMAT, invalid_format_message(inputs.format))])

        reporter.debug(f"Payload keys: {','.join(context.payload.keys())}")

        def log_refs(event: ChangeEvent) -> None:
            reporter.info(f"Base commit: {event.base}")
            reporter.info(f"Head commit: {event.head}")

        outcome = classify(
            context.event_name,
            context.payload,
            fmt,
            compare or _github_compare(inputs, context),
            on_refs=log_refs,
            on_failure=lambda failure: reporter.set_failed(failure.message),
        )
        if outcome.outputs is None:
            return not reporter.failed

        for name, label in OUTPUT_LABELS.items():
            reporter.info(f"{label}: {outcome.outputs[name]}")
        for name, value in outcome.outputs.items():
            reporter.set_output(name, value)
    except Exception as exc:
        _report(reporter, [Failure(FailureKind.UNEXPECTED, str(exc) or UNEXPECTED_ERROR)])

    return not reporter.failed
