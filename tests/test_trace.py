"""
Tests for the Run Trace
"""
import json

from web_research.browser.base import ToolResult
from web_research.config import TraceConfig
from web_research.core.actions import GoToPageAction
from web_research.core.planner import build_fallback_plan
from web_research.core.trace import NullTrace, RunTrace, create_trace


def read_events(trace):
    with open(trace.events_file, encoding="utf-8") as f:
        return [json.loads(line) for line in f]


class TestCreateTrace:
    def test_disabled_is_noop(self, tmp_path):
        trace = create_trace(TraceConfig(enabled=False, trace_dir=str(tmp_path)))
        assert type(trace) is NullTrace
        trace.start_run("task")
        trace.end_run(True)
        assert list(tmp_path.iterdir()) == []

    def test_missing_config_is_noop(self):
        assert type(create_trace(None)) is NullTrace

    def test_enabled(self, tmp_path):
        trace = create_trace(TraceConfig(enabled=True, trace_dir=str(tmp_path)), run_id="abc")
        assert isinstance(trace, RunTrace)
        assert trace.run_dir == tmp_path / "run-abc"


class TestRunTrace:
    """Events written for one run."""

    def test_event_sequence(self, tmp_path):
        trace = RunTrace(TraceConfig(enabled=True, trace_dir=str(tmp_path)), run_id="r1")
        plan = build_fallback_plan("vite")

        trace.start_run("vite", {"max_steps": 5})
        trace.log_plan(plan)
        trace.log_planned_search(1, "google", "vite", True)
        trace.start_step(1, "https://www.google.com/search?q=vite")
        trace.log_action(1, GoToPageAction(url="https://vitejs.dev"))
        trace.log_action_result(1, "goToPage", ToolResult(success=False, output="timeout"), 12.5)
        trace.log_plan(plan, replanned=True, reason="dead end")
        trace.end_run(False, {"error": "Max steps reached"})

        events = read_events(trace)
        assert [e["event_type"] for e in events] == [
            "run.start", "plan.created", "search.planned", "step.start",
            "action.decided", "action.result", "replan", "run.end",
        ]
        assert all(e["run_id"] == "r1" for e in events)
        assert events[1]["data"]["queries"] == ["google:vite", "google:vite guide"]
        assert events[4]["data"]["url"] == "https://vitejs.dev"
        assert events[5]["error"] == "timeout"
        assert events[6]["data"]["reason"] == "dead end"
        assert events[7]["error"] == "Max steps reached"
        assert events[7]["duration_ms"] is not None

        metadata = json.loads((trace.run_dir / "metadata.json").read_text())
        assert metadata["task"] == "vite"
        assert metadata["max_steps"] == 5

    def test_content_truncated_and_redacted(self, tmp_path):
        config = TraceConfig(enabled=True, trace_dir=str(tmp_path), max_content_length=10, include_content=False)
        trace = RunTrace(config, run_id="r2")

        trace.start_run("x" * 50)
        trace.log_action(1, GoToPageAction(url="https://vitejs.dev"))

        events = read_events(trace)
        assert events[0]["data"]["task"].startswith("x" * 10 + "... [truncated 40 chars]")
        assert events[1]["data"] == {"tool": "goToPage"}
