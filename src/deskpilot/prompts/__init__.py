"""Static prompts for the agent, loaded from markdown files in this package."""

from importlib.resources import files

_PROMPTS_PKG = files("deskpilot.prompts")


def load_prompt(name: str) -> str:
    """Load a prompt by name (without .md extension)."""
    return _PROMPTS_PKG.joinpath(f"{name}.md").read_text(encoding="utf-8")


def list_prompts() -> list[str]:
    return [f.name[:-3] for f in _PROMPTS_PKG.iterdir() if f.name.endswith(".md")]


SYSTEM_PROMPT = load_prompt("system")

__all__ = ["SYSTEM_PROMPT", "list_prompts", "load_prompt"]
