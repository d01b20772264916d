"""
Research Run Trace

A JSONL-based trace of one research run, for debugging and offline analysis
of how the loop planned, searched and decided.

Trace Events:
- run.start / run.end
- plan.created / replan
- search.planned
- step.start
- action.decided / action.result

Directory Structure:
    traces/
    └── run-{run_id}/
        ├── metadata.json      # Run metadata
        └── events.jsonl       # All events for this run
"""
import json
import time
import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from ..config import TraceConfig


@dataclass
class TraceEvent:
    """A single trace event."""
    timestamp: str
    event_type: str
    run_id: str
    step: Optional[int] = None
    data: Dict[str, Any] = field(default_factory=dict)
    duration_ms: Optional[float] = None
    error: Optional[str] = None


class NullTrace:
    """Tracer used when tracing is disabled. Every call is a no-op."""

    def __init__(self, run_id: Optional[str] = None):
        self.run_id = run_id or uuid.uuid4().hex[:12]

    def start_run(self, task: str, metadata: Optional[Dict[str, Any]] = None):
        pass

    def end_run(self, success: bool, metadata: Optional[Dict[str, Any]] = None):
        pass

    def log_plan(self, plan: Any, replanned: bool = False, reason: Optional[str] = None):
        pass

    def log_planned_search(self, step: int, engine: str, query: str, success: bool):
        pass

    def start_step(self, step: int, url: str):
        pass

    def log_action(self, step: int, action: Any):
        pass

    def log_action_result(self, step: int, tool: str, result: Any, duration_ms: Optional[float] = None):
        pass


class RunTrace(NullTrace):
    """Writes the events of a single research run to disk."""

    def __init__(self, config: TraceConfig, run_id: Optional[str] = None):
        super().__init__(run_id)
        self.config = config
        self.run_dir = Path(config.trace_dir) / f"run-{self.run_id}"
        self.events_file = self.run_dir / "events.jsonl"
        self.metadata_file = self.run_dir / "metadata.json"
        self._start_time: Optional[float] = None

        self.run_dir.mkdir(parents=True, exist_ok=True)

    def _write_event(self, event: TraceEvent):
        with open(self.events_file, "a", encoding="utf-8") as f:
            f.write(json.dumps(asdict(event), default=str, ensure_ascii=False) + "\n")

    def _now(self) -> str:
        return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")

    def _truncate(self, content: Any) -> Any:
        limit = self.config.max_content_length
        if isinstance(content, str) and len(content) > limit:
            return content[:limit] + f"... [truncated {len(content) - limit} chars]"
        return content

    def _emit(self, event_type: str, step: Optional[int] = None, **kwargs):
        self._write_event(TraceEvent(
            timestamp=self._now(),
            event_type=event_type,
            run_id=self.run_id,
            step=step,
            **kwargs
        ))

    # Run lifecycle

    def start_run(self, task: str, metadata: Optional[Dict[str, Any]] = None):
        self._start_time = time.time()
        run_metadata = {
            "run_id": self.run_id,
            "created_at": self._now(),
            "task": task,
            **(metadata or {})
        }
        with open(self.metadata_file, "w", encoding="utf-8") as f:
            json.dump(run_metadata, f, indent=2, ensure_ascii=False)
        self._emit("run.start", data={"task": self._truncate(task), **(metadata or {})})

    def end_run(self, success: bool, metadata: Optional[Dict[str, Any]] = None):
        duration_ms = (time.time() - self._start_time) * 1000 if self._start_time else None
        data = {"success": success, **(metadata or {})}
        self._emit("run.end", duration_ms=duration_ms, error=data.pop("error", None), data=data)

    # Planning

    def log_plan(self, plan: Any, replanned: bool = False, reason: Optional[str] = None):
        data = {
            "strategy": self._truncate(plan.strategy),
            "queries": [f"{q.engine}:{q.query}" for q in plan.search_queries],
            "depth": plan.depth,
        }
        if reason:
            data["reason"] = reason
        self._emit("replan" if replanned else "plan.created", data=data)

    def log_planned_search(self, step: int, engine: str, query: str, success: bool):
        self._emit("search.planned", step=step, data={"engine": engine, "query": query, "success": success})

    # Steps

    def start_step(self, step: int, url: str):
        self._emit("step.start", step=step, data={"url": url})

    def log_action(self, step: int, action: Any):
        data = action.model_dump() if self.config.include_content else {"tool": action.tool}
        self._emit("action.decided", step=step, data=data)

    def log_action_result(self, step: int, tool: str, result: Any, duration_ms: Optional[float] = None):
        data = {"tool": tool, "success": result.success}
        if self.config.include_content:
            data["output"] = self._truncate(result.output)
        self._emit(
            "action.result",
            step=step,
            duration_ms=duration_ms,
            error=None if result.success else self._truncate(result.output),
            data=data
        )


def create_trace(config: Optional[TraceConfig] = None, run_id: Optional[str] = None) -> NullTrace:
    """Tracer for one run: a RunTrace when tracing is enabled, otherwise a NullTrace."""
    if config is not None and config.enabled:
        return RunTrace(config, run_id)
    return NullTrace(run_id)
