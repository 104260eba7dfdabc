import json
from unittest.mock import patch

import requests

from changed_files_ci.config import ActionInputs, EventContext
from changed_files_ci.models import ChangedFile, CompareResult
from changed_files_ci.reporters import ActionReporter
from changed_files_ci.runner import run_step

PUSH_PAYLOAD = {"before": "aaa", "after": "bbb"}
PR_PAYLOAD = {"pull_request": {"base": {"sha": "base1"}, "head": {"sha": "head1"}}}


def _inputs(fmt: str) -> ActionInputs:
    return ActionInputs(token="t0ken", format=fmt)


def _context(event_name="push", payload=None) -> EventContext:
    if payload is None:
        payload = dict(PUSH_PAYLOAD)
    return EventContext(event_name=event_name, owner="octo", repo="hello", payload=payload)


def _compare(files, status="ahead", http_status=200):
    def compare(base, head):
        return CompareResult(http_status=http_status, status=status, files=files)

    return compare


SCENARIO_FILES = [ChangedFile("a.txt", "added"), ChangedFile("b.txt", "removed")]


def test_push_csv_outputs():
    reporter = ActionReporter()
    ok = run_step(_inputs("csv"), _context(), reporter, compare=_compare(SCENARIO_FILES))

    assert ok
    assert reporter.failures == []
    assert reporter.outputs == {
        "all": "a.txt,b.txt",
        "added": "a.txt",
        "modified": "",
        "removed": "b.txt",
        "renamed": "",
        "added_modified": "a.txt",
        "deleted": "b.txt",
    }


def test_push_json_outputs():
    reporter = ActionReporter()
    assert run_step(_inputs("json"), _context(), reporter, compare=_compare(SCENARIO_FILES))

    assert json.loads(reporter.outputs["all"]) == ["a.txt", "b.txt"]
    assert json.loads(reporter.outputs["added"]) == ["a.txt"]
    assert reporter.outputs["modified"] == "[]"
    assert reporter.outputs["deleted"] == reporter.outputs["removed"] == '["b.txt"]'


def test_space_in_filename_fails_but_still_sets_outputs():
    reporter = ActionReporter()
    compare = _compare([ChangedFile("my file.txt", "modified")])
    ok = run_step(_inputs("space-delimited"), _context("pull_request", PR_PAYLOAD), reporter, compare=compare)

    assert not ok
    assert len(reporter.failures) == 1
    assert "includes a space" in reporter.failures[0]
    assert reporter.outputs["modified"] == "my file.txt"


def test_missing_file_list_sets_no_outputs():
    reporter = ActionReporter()
    ok = run_step(_inputs("csv"), _context(), reporter, compare=_compare(None))

    assert not ok
    assert reporter.outputs == {}
    assert len(reporter.failures) == 1
    assert "does not contain any files" in reporter.failures[0]


def test_not_ahead_still_classifies():
    reporter = ActionReporter()
    ok = run_step(_inputs("csv"), _context(), reporter, compare=_compare(SCENARIO_FILES, status="behind"))

    assert not ok
    assert len(reporter.failures) == 1
    assert "not ahead" in reporter.failures[0]
    assert reporter.outputs["all"] == "a.txt,b.txt"


def test_invalid_format_reports_and_sets_empty_outputs():
    reporter = ActionReporter()
    ok = run_step(_inputs("yaml"), _context(), reporter, compare=_compare(SCENARIO_FILES))

    assert not ok
    assert reporter.failures[0].startswith("Format must be one of")
    assert "'yaml'" in reporter.failures[0]
    assert set(reporter.outputs.values()) == {""}


def test_unsupported_event_reports_multiple_failures():
    calls = []

    def compare(base, head):
        calls.append((base, head))
        return CompareResult(http_status=404, status=None, files=None)

    reporter = ActionReporter()
    ok = run_step(_inputs("csv"), _context("release", {}), reporter, compare=compare)

    assert not ok
    assert calls == [("", "")]
    assert len(reporter.failures) == 5
    assert "release events are not supported" in reporter.failures[0]
    assert "missing from the payload" in reporter.failures[1]
    assert "returned 404" in reporter.failures[2]
    assert reporter.outputs == {}


def test_unexpected_exception_is_reported(capsys):
    def compare(base, head):
        raise requests.ConnectionError("connection refused")

    reporter = ActionReporter()
    ok = run_step(_inputs("csv"), _context(), reporter, compare=compare)

    assert not ok
    assert reporter.failures == ["connection refused"]
    assert reporter.outputs == {}
    assert "::error::connection refused" in capsys.readouterr().out


def test_exception_without_message_gets_generic_failure():
    def compare(base, head):
        raise RuntimeError()

    reporter = ActionReporter()
    run_step(_inputs("csv"), _context(), reporter, compare=compare)
    assert reporter.failures == ["An unexpected error occurred"]


def test_logs_refs_and_formatted_groups(capsys):
    reporter = ActionReporter()
    run_step(_inputs("csv"), _context(), reporter, compare=_compare(SCENARIO_FILES))

    out = capsys.readouterr().out.splitlines()
    assert "::debug::Payload keys: before,after" in out
    assert "Base commit: aaa" in out
    assert "Head commit: bbb" in out
    assert "All: a.txt,b.txt" in out
    assert "Added or modified: a.txt" in out


@patch("changed_files_ci.runner.compare_commits")
def test_default_compare_uses_github_api(mock_compare):
    mock_compare.return_value = CompareResult(http_status=200, status="ahead", files=SCENARIO_FILES)
    inputs = ActionInputs(token="t0ken", format="csv", api_url="https://ghe.example/api/v3", timeout_seconds=9)

    assert run_step(inputs, _context(), ActionReporter())

    mock_compare.assert_called_once_with(
        "octo",
        "hello",
        "aaa",
        "bbb",
        token="t0ken",
        api_url="https://ghe.example/api/v3",
        timeout=9,
    )


def test_missing_head_logs_raw_base_and_compares_placeholders(capsys):
    calls = []

    def compare(base, head):
        calls.append((base, head))
        return CompareResult(http_status=200, status="ahead", files=[])

    reporter = ActionReporter()
    ok = run_step(_inputs("csv"), _context("push", {"before": "aaa"}), reporter, compare=compare)

    assert not ok
    assert calls == [("", "")]
    assert len(reporter.failures) == 1
    assert "missing from the payload" in reporter.failures[0]
    out = capsys.readouterr().out.splitlines()
    assert "Base commit: aaa" in out
    assert out.index("Base commit: aaa") > out.index(next(line for line in out if line.startswith("::error::")))
    assert reporter.outputs["all"] == ""


def test_ref_failures_reported_even_when_compare_raises():
    def compare(base, head):
        raise requests.Timeout("read timed out")

    reporter = ActionReporter()
    run_step(_inputs("csv"), _context("push", {}), reporter, compare=compare)

    assert len(reporter.failures) == 2
    assert "missing from the payload" in reporter.failures[0]
    assert reporter.failures[1] == "read timed out"


def test_run_step_is_idempotent():
    files = [ChangedFile("a.txt", "added"), ChangedFile("b c.txt", "renamed"), ChangedFile("d.txt", "weird")]
    first, second = ActionReporter(), ActionReporter()

    run_step(_inputs("space-delimited"), _context(), first, compare=_compare(files))
    run_step(_inputs("space-delimited"), _context(), second, compare=_compare(files))

    assert first.outputs == second.outputs
    assert first.failures == second.failures
    assert len(first.failures) == 2
