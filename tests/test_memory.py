"""
Tests for Research Memory and Run State
"""
from web_research.browser.base import ToolResult
from web_research.core.actions import (
    ActionHistoryEntry,
    GetTextAction,
    GoToPageAction,
    PerformSearchAction,
    SaveFindingAction,
    UpdateScratchpadAction,
)
from web_research.core.memory import ResearchMemory, ResearchResult, RunState
from web_research.core.models import Finding


class TestResearchMemory:
    """Append-only memory of one run."""

    def test_findings_are_numbered_in_notes(self):
        memory = ResearchMemory()
        memory.note("Research Plan:\nsearch")

        n = memory.add_finding(Finding(title="Vite", url="https://vitejs.dev"))

        assert n == 1
        assert memory.scratchpad.endswith("\n[Finding 1] Vite — https://vitejs.dev")

    def test_findings_not_deduplicated(self):
        memory = ResearchMemory()
        finding = Finding(title="Vite", url="https://vitejs.dev")
        memory.add_finding(finding)
        memory.add_finding(finding)
        assert len(memory.findings) == 2

    def test_search_completed_once(self):
        memory = ResearchMemory()
        assert memory.mark_search_completed("google", "vite") is True
        assert memory.mark_search_completed("google", "vite") is False
        assert memory.mark_search_completed("bing", "vite") is True
        assert memory.completed_searches == {("google", "vite"), ("bing", "vite")}
        assert memory.recent_searches() == ["google:vite", "bing:vite"]

    def test_recent_visited_window(self):
        memory = ResearchMemory()
        for i in range(15):
            memory.mark_visited(f"https://example.com/{i}")
        memory.mark_visited("https://example.com/3")

        recent = memory.recent_visited(10)
        assert len(recent) == 10
        assert recent[-1] == "https://example.com/14"
        assert len(memory.visited_urls) == 15

    def test_record_action(self):
        memory = ResearchMemory()
        memory.record_action(UpdateScratchpadAction(new_data="esbuild is written in Go"))
        memory.record_action(SaveFindingAction(finding=Finding(title="esbuild", url="https://esbuild.github.io")))
        memory.record_action(PerformSearchAction(query="vite"), default_engine="bing")
        memory.record_action(GoToPageAction(url="https://vitejs.dev"))
        memory.record_action(GetTextAction(selector="main"))

        assert "esbuild is written in Go" in memory.scratchpad
        assert len(memory.findings) == 1
        assert memory.is_search_completed("bing", "vite")
        assert "https://vitejs.dev" in memory.visited_urls


class TestRunState:
    def test_remaining_searches(self, make_plan):
        state = RunState(plan=make_plan(["a", "b", "c"]))
        state.current_search_index = 1
        assert [q.query for q in state.remaining_searches()] == ["b", "c"]
        assert RunState().remaining_searches() == []

    def test_recent_history_window(self):
        state = RunState()
        for i in range(8):
            state.history.append(ActionHistoryEntry(
                action=GetTextAction(selector=f"#s{i}"),
                result=ToolResult(success=True),
            ))
        window = state.recent_history(6)
        assert len(window) == 6
        assert window[0].action.selector == "#s2"

    def test_result_from_state(self, make_plan):
        state = RunState(plan=make_plan())
        state.memory.add_finding(Finding(title="Vite", url="https://vitejs.dev"))
        state.steps_taken = 4

        result = ResearchResult.from_state(state, success=False, error="Max steps reached")

        assert result.success is False
        assert result.error == "Max steps reached"
        assert result.steps_taken == 4
        assert result.plan == state.plan
        assert len(result.findings) == 1
        # JSON-serializable for the API
        assert result.model_dump(mode="json")["findings"][0]["url"] == "https://vitejs.dev"
