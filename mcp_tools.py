#!/usr/bin/env python3
"""Prompt and tool definitions served by this MCP server.

Each capability is a Declaration (name, description, argument schema) plus a
handler. Prompt handlers are plain functions that build text; tool handlers
are coroutines and may run external commands through mcp_process.
"""

import logging
from typing import Any, Dict, List

import mcp_settings
from mcp_errors import LaunchFailure
from mcp_process import run_checked, run_command
from mcp_registry import PROMPT, TOOL, Argument, CapabilityRegistry, Declaration

logger = logging.getLogger(__name__)

# ============================================================================
# CONTENT HELPERS
# ============================================================================


def text_content(text: str) -> Dict[str, Any]:
    return {"type": "text", "text": text}


def prompt_message(text: str, role: str = "user") -> Dict[str, Any]:
    return {"role": role, "content": text_content(text)}


# ============================================================================
# PROMPTS
# ============================================================================

HOUSE_RULES = Declaration(
    kind=PROMPT,
    name="house_rules",
    description=(
        "Reusable instructions for how I want the assistant to behave "
        "(safe, scoped, and consistent)."
    ),
    arguments=(
        Argument(
            name="mode",
            type="string",
            default="general",
            description="Optional: what kind of work we are doing (review, triage, release-notes).",
        ),
    ),
)


def house_rules(args: Dict[str, Any]) -> Dict[str, Any]:
    """Build the house rules prompt; `mode` is substituted verbatim."""
    text = "\n".join([
        "You are my coding assistant.",
        "",
        "Operating rules:",
        "1) Prefer safe and reversible actions. Start read-only.",
        "2) Summarize what you plan to do before you do it.",
        "3) Keep scope small. If a task is large, propose the smallest next step.",
        "4) Be explicit. Use checklists and concrete commands.",
        "5) If you are blocked, ask one clarifying question. Otherwise proceed.",
        "",
        f"Mode: {args['mode']}",
        "",
        "When using tools:",
        "- Explain which tool you are calling and why.",
        "- If a tool can mutate data, confirm intent first.",
    ])
    return {
        "description": "My reusable assistant rules",
        "messages": [prompt_message(text)],
    }


# ============================================================================
# TOOLS
# ============================================================================

MAX_COMMITS = 50
DEFAULT_COMMITS = 15

GIT_CONTEXT = Declaration(
    kind=TOOL,
    name="git_context",
    description=(
        "Fetches a compact git context bundle so the assistant stops asking "
        "for basic repo details."
    ),
    arguments=(
        Argument(
            name="repoPath",
            type="string",
            required=True,
            min_length=1,
            description="Absolute repo path",
        ),
        Argument(
            name="maxCommits",
            type="integer",
            default=DEFAULT_COMMITS,
            minimum=1,
            maximum=MAX_COMMITS,
            description=f"Max commits (1..{MAX_COMMITS})",
        ),
    ),
)


async def _git(repo_path: str, *args: str) -> str:
    result = await run_checked(mcp_settings.GIT_EXECUTABLE, ["-C", repo_path, *args])
    return result.stdout


async def _is_work_tree(repo_path: str) -> bool:
    """Check whether repo_path is inside a git working tree.

    Any failure counts as "no", unless STRICT_REPO_CHECK is set, in which case a
    git that cannot be launched at all is re-raised.
    """
    try:
        result = await run_command(
            mcp_settings.GIT_EXECUTABLE,
            ["-C", repo_path, "rev-parse", "--is-inside-work-tree"],
        )
    except LaunchFailure:
        if mcp_settings.STRICT_REPO_CHECK:
            raise
        logger.warning(f"work-tree check could not run for {repo_path}, treating as not a repository")
        return False
    return result.ok and result.stdout == "true"


async def git_context(args: Dict[str, Any]) -> List[Dict[str, Any]]:
    repo_path = args["repoPath"]
    max_commits = args["maxCommits"]

    if not await _is_work_tree(repo_path):
        return [text_content(f"Not a git repository: {repo_path}")]

    # The path is a confirmed repository from here on, so failures propagate.
    branch = await _git(repo_path, "rev-parse", "--abbrev-ref", "HEAD")
    commits = await _git(repo_path, "log", "-n", str(max_commits), "--pretty=format:%h %s")
    diffstat = await _git(repo_path, "show", "--stat", "--oneline", "-1")

    commit_lines = [f"- {line}" for line in commits.split("\n")] if commits else ["- None"]
    payload = "\n".join([
        "# Repo Context",
        f"- Branch: {branch}",
        "",
        "## Recent commits",
        *commit_lines,
        "",
        "## Latest commit diffstat",
        "```",
        diffstat,
        "```",
    ])
    return [text_content(payload)]


# ============================================================================
# REGISTRY
# ============================================================================


def build_registry() -> CapabilityRegistry:
    """Declare every capability and freeze the registry."""
    registry = CapabilityRegistry()
    registry.declare(PROMPT, HOUSE_RULES, house_rules)
    registry.declare(TOOL, GIT_CONTEXT, git_context)
    return registry.freeze()
