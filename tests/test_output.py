"""
Tests for output formatting of groups and download reports
"""

import json
from pathlib import Path
from unittest.mock import MagicMock

from dlmomentos.exceptions import NetworkError
from dlmomentos.models import Group
from dlmomentos.orchestrator import DownloadReport, EventResult, GroupResult
from dlmomentos.output import OutputFormatter


def _report():
    ok = GroupResult(
        group_id="g1",
        events=[
            EventResult("e1", files=(Path("g1/e1.vtt"), Path("g1/e1.mp4"))),
            EventResult("e2", error=NetworkError("Recording stream interrupted")),
        ],
        index_path=Path("g1/index.csv"),
    )
    broken = GroupResult(group_id="g2", error=NetworkError("Momentos API error (HTTP 404)"))
    return DownloadReport(groups=[ok, broken])


def _printed(mock_console):
    return "\n".join(str(call.args[0]) for call in mock_console.print.call_args_list if call.args)


class TestGroups:
    def test_json(self, capsys):
        OutputFormatter("json").output_groups([Group("g1", "Family")])
        payload = json.loads(capsys.readouterr().out)
        assert payload == {
            "status": "success",
            "total_groups": 1,
            "groups": [{"id": "g1", "name": "Family"}],
        }

    def test_tsv_empty_prints_nothing(self, capsys):
        OutputFormatter("tsv").output_groups([])
        assert capsys.readouterr().out == ""

    def test_human_no_groups(self):
        formatter = OutputFormatter()
        formatter.console = MagicMock()
        formatter.output_groups([])
        assert "No groups found" in _printed(formatter.console)


class TestDownloadReport:
    def test_human_summary(self):
        formatter = OutputFormatter()
        formatter.console = MagicMock()

        formatter.output_download_report(_report())

        printed = _printed(formatter.console)
        assert "Group g1: 2 events, 2 files written" in printed
        assert "event e2" in printed
        assert "event e1" not in printed
        assert "Group g2: NETWORK_ERROR" in printed
        assert "Groups: 1/2 succeeded" in printed
        assert "Failed events: 1" in printed

    def test_json(self, capsys):
        OutputFormatter("json").output_download_report(_report())
        payload = json.loads(capsys.readouterr().out)

        assert payload["status"] == "error"
        assert payload["failed_events"] == 1
        g1, g2 = payload["groups"]
        assert g1["status"] == "partial"
        assert g1["index"] == str(Path("g1/index.csv"))
        assert g1["events"][0]["files"] == [str(Path("g1/e1.vtt")), str(Path("g1/e1.mp4"))]
        assert g2["error"]["message"] == "Momentos API error (HTTP 404)"

    def test_tsv_rows(self, capsys):
        OutputFormatter("tsv").output_download_report(_report())
        lines = capsys.readouterr().out.splitlines()
        assert lines[0] == "group_id\tevent_id\tstatus\tfiles"
        assert lines[1].startswith("g1\te1\tsuccess\t")
        assert lines[2] == "g1\te2\terror\t"


class TestMessages:
    def test_error_uses_red_markup(self):
        formatter = OutputFormatter()
        formatter.console = MagicMock()
        formatter.output_error("AUTH_FAILED: Not signed in")
        call_args = formatter.console.print.call_args[0][0]
        assert "[bold red]Error:[/bold red]" in call_args
        assert "Not signed in" in call_args

    def test_error_json(self, capsys):
        OutputFormatter("json").output_error("boom")
        assert json.loads(capsys.readouterr().out) == {"status": "error", "error": "boom"}

    def test_info_suppressed_in_json_mode(self):
        formatter = OutputFormatter("json")
        formatter.console = MagicMock()
        formatter.output_info("hello")
        assert not formatter.console.print.called
