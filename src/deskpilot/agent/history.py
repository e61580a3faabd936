"""Run history persistence.

One YAML file per finished run in the history directory:
  <root>/<run-id>.yaml

where run-id is the start timestamp (YYYYmmdd-HHMMSS-ffffff). Files contain:
- run_id, created_at (ISO timestamp)
- query, target_app, response
- tools_used: tool names in call order
- actions: [{tool, args, timestamp}]
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml

from deskpilot.logging import get_logger

if TYPE_CHECKING:
    from deskpilot.agent.run import Run

log = get_logger("history")


@dataclass
class RunRecord:
    run_id: str
    created_at: datetime
    query: str
    response: str
    target_app: str | None = None
    tools_used: list[str] = field(default_factory=list)
    actions: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "run_id": self.run_id,
            "created_at": self.created_at.isoformat(),
            "query": self.query,
            "target_app": self.target_app,
            "response": self.response,
            "tools_used": self.tools_used,
            "actions": self.actions,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RunRecord:
        return cls(
            run_id=data["run_id"],
            created_at=datetime.fromisoformat(data["created_at"]),
            query=data.get("query", ""),
            response=data.get("response", ""),
            target_app=data.get("target_app"),
            tools_used=list(data.get("tools_used") or []),
            actions=list(data.get("actions") or []),
        )

    def summary(self, width: int = 80) -> str:
        """One line for prompts and listings."""
        query = self.query if len(self.query) <= width else self.query[: width - 3] + "..."
        line = f'{self.created_at:%Y-%m-%d %H:%M} "{query}"'
        if self.tools_used:
            line += f" (tools: {', '.join(dict.fromkeys(self.tools_used))})"
        return line


def record_from_run(run: Run, response: str) -> RunRecord:
    created = datetime.fromtimestamp(run.started_at)
    return RunRecord(
        run_id=f"{created:%Y%m%d-%H%M%S-%f}",
        created_at=created,
        query=run.query,
        response=response,
        target_app=run.target_app,
        tools_used=list(run.tools_used),
        actions=[
            {"tool": entry.tool, "args": entry.args, "timestamp": entry.timestamp}
            for entry in run.action_log
        ],
    )


class RunHistoryStore:
    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def path_for(self, run_id: str) -> Path:
        return self.root / f"{run_id}.yaml"

    def save(self, record: RunRecord) -> Path:
        """Write a record atomically via a temp file."""
        self.root.mkdir(parents=True, exist_ok=True)
        path = self.path_for(record.run_id)
        temp_path = self.root / f"{record.run_id}.yaml.tmp"
        try:
            with open(temp_path, "w", encoding="utf-8") as f:
                yaml.safe_dump(record.to_dict(), f, default_flow_style=False, allow_unicode=True, sort_keys=False)
            temp_path.replace(path)
        except Exception as e:
            if temp_path.exists():
                temp_path.unlink()
            raise RuntimeError(f"Failed to save run history: {e}") from e
        log.debug("Saved run %s to %s", record.run_id, path)
        return path

    def load(self, run_id: str) -> RunRecord | None:
        path = self.path_for(run_id)
        if not path.exists():
            return None
        try:
            with open(path, encoding="utf-8") as f:
                return RunRecord.from_dict(yaml.safe_load(f))
        except (OSError, yaml.YAMLError, KeyError, TypeError, ValueError) as e:
            log.warning("Failed to load run %s: %s", path, e)
            return None

    def list_runs(self) -> list[RunRecord]:
        """All readable records, newest first."""
        if not self.root.is_dir():
            return []
        records = []
        for path in self.root.glob("*.yaml"):
            record = self.load(path.stem)
            if record:
                records.append(record)
        records.sort(key=lambda r: r.created_at, reverse=True)
        return records

    def recent(self, limit: int) -> list[RunRecord]:
        if limit <= 0:
            return []
        return self.list_runs()[:limit]

    def delete(self, run_id: str) -> bool:
        path = self.path_for(run_id)
        if path.exists():
            path.unlink()
            return True
        return False
