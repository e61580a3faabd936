"""Markdown-file long-term memory.

Layout under the memory root:

    MEMORY.md         durable facts written by the agent
    YYYY-MM-DD.md     daily logs, one "## Memory Flush [HH:MM]" section per flush

Search is keyword overlap over paragraphs; it only needs to surface a few
relevant snippets for the prompt.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from deskpilot.logging import get_logger

log = get_logger("memory")

MEMORY_FILE = "MEMORY.md"
_DAILY_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}\.md$")
_WORD = re.compile(r"[a-z0-9][a-z0-9_\-']+")

STOPWORDS = frozenset(
    {
        "the", "and", "for", "with", "that", "this", "from", "what", "when",
        "where", "which", "who", "how", "are", "was", "were", "can", "could",
        "would", "should", "into", "about", "please", "you", "your", "have",
        "has", "had", "not", "but", "all", "any", "open", "make",
    }
)


def keywords(text: str) -> set[str]:
    """Lowercased words of 3+ chars, minus stopwords."""
    return {w for w in _WORD.findall(text.lower()) if len(w) >= 3 and w not in STOPWORDS}


@dataclass(frozen=True, slots=True)
class MemoryHit:
    source: str  # File name
    text: str
    score: int


class MemoryStore:
    """Reads and appends the markdown memory files."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    @property
    def memory_file(self) -> Path:
        return self.root / MEMORY_FILE

    def daily_path(self, day: datetime) -> Path:
        return self.root / f"{day:%Y-%m-%d}.md"

    def append_daily(self, content: str, now: datetime | None = None) -> Path:
        """Append a flush section to today's log, creating it if needed."""
        now = now or datetime.now()
        self.root.mkdir(parents=True, exist_ok=True)
        path = self.daily_path(now)
        if not path.exists():
            path.write_text(f"# {now:%Y-%m-%d}\n\n", encoding="utf-8")
        with open(path, "a", encoding="utf-8") as f:
            f.write(f"\n## Memory Flush [{now:%H:%M}]\n{content.strip()}\n")
        log.debug("Appended %d chars to %s", len(content), path.name)
        return path

    def write(self, fact: str) -> Path:
        """Append one durable fact to MEMORY.md."""
        self.root.mkdir(parents=True, exist_ok=True)
        path = self.memory_file
        if not path.exists():
            path.write_text("# Memory\n\n", encoding="utf-8")
        line = fact.strip()
        if not line.startswith(("- ", "* ")):
            line = f"- {line}"
        with open(path, "a", encoding="utf-8") as f:
            f.write(f"{line}\n")
        return path

    def files(self) -> list[Path]:
        """MEMORY.md first, then daily logs newest first."""
        if not self.root.is_dir():
            return []
        daily = sorted(
            (p for p in self.root.iterdir() if _DAILY_PATTERN.match(p.name)),
            key=lambda p: p.name,
            reverse=True,
        )
        result = [self.memory_file] if self.memory_file.exists() else []
        return result + daily

    def _chunks(self, path: Path) -> list[str]:
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            log.warning("Could not read %s: %s", path, e)
            return []
        chunks: list[str] = []
        for block in re.split(r"\n\s*\n", text):
            lines = [ln for ln in block.strip().splitlines() if not ln.startswith("# ")]
            if not lines:
                continue
            # Bullet lists are searched item by item
            if all(ln.lstrip().startswith(("- ", "* ", "## ")) for ln in lines):
                chunks.extend(ln.strip() for ln in lines if not ln.startswith("## "))
            else:
                chunks.append("\n".join(lines))
        return chunks

    def search(self, query: str, limit: int = 3) -> list[MemoryHit]:
        """Best-matching snippets by keyword overlap; earlier files win ties."""
        terms = keywords(query)
        if not terms or limit <= 0:
            return []
        hits: list[tuple[int, int, MemoryHit]] = []
        order = 0
        for path in self.files():
            for chunk in self._chunks(path):
                score = len(terms & keywords(chunk))
                if score:
                    hits.append((-score, order, MemoryHit(path.name, chunk, score)))
                order += 1
        hits.sort(key=lambda h: (h[0], h[1]))
        return [hit for _, _, hit in hits[:limit]]

    def context_for(self, query: str, limit: int = 3) -> str:
        """Prompt block with relevant memories, or "" if nothing matches."""
        hits = self.search(query, limit)
        if not hits:
            return ""
        lines = ["=== Relevant Memories ==="]
        lines.extend(hit.text if hit.text.startswith("- ") else f"- {hit.text}" for hit in hits)
        return "\n".join(lines)
