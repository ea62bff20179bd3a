"""Built-in tools implemented inside the worker.

The set is closed (:class:`~agentbox.core.toolbus.models.BuiltinTool`);
each entry pairs a fixed parameter schema with its implementation.
"""

from __future__ import annotations

import html
import logging
import re
import sys
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from agentbox.core.blackboard.models import ARTIFACTS_NAMESPACE
from agentbox.errors import ToolValidationError
from agentbox.runtime.errors import SandboxTimeoutError
from agentbox.runtime.sandbox.models import ExecutionRequest

if TYPE_CHECKING:
    from agentbox.core.blackboard.blackboard import Blackboard
    from agentbox.runtime.sandbox.executor import SandboxExecutor

logger = logging.getLogger(__name__)

EXECUTE_PYTHON_PARAMETERS: dict[str, Any] = {
    "type": "object",
    "properties": {
        "code": {"type": "string", "description": "Python source to execute"},
        "stdin": {"type": "string", "description": "Optional standard input"},
        "timeout": {"type": "number", "description": "Timeout in seconds"},
    },
    "required": ["code"],
}

GENERATE_DOCUMENT_PARAMETERS: dict[str, Any] = {
    "type": "object",
    "properties": {
        "title": {"type": "string", "description": "Document title"},
        "content": {"type": "string", "description": "Document body"},
        "format": {"type": "string", "description": "Either 'markdown' (default) or 'html'"},
    },
    "required": ["title", "content"],
}

DOCUMENT_FORMATS = ("markdown", "html")

_MD_HEADING = re.compile(r"^(#{1,6})\s+(.+?)\s*#*\s*$", re.MULTILINE)
_MD_LINK = re.compile(r"(?<!!)\[([^\]]+)\]\(([^)\s]+)(?:\s+\"[^\"]*\")?\)")
_HTML_HEADING = re.compile(r"<h([1-6])[^>]*>(.*?)</h\1>", re.IGNORECASE | re.DOTALL)
_HTML_LINK = re.compile(r"<a\s[^>]*href=\"([^\"]+)\"[^>]*>(.*?)</a>", re.IGNORECASE | re.DOTALL)
_HTML_TAG = re.compile(r"<[^>]+>")


async def execute_python(
    sandbox: SandboxExecutor, arguments: dict[str, Any]
) -> dict[str, Any]:
    """Run Python code in *sandbox* and report its output."""
    request = ExecutionRequest(
        command=[sys.executable, "-I", "-c", arguments["code"]],
        stdin=arguments.get("stdin"),
        timeout=arguments.get("timeout"),
    )
    try:
        result = await sandbox.execute(request)
    except SandboxTimeoutError as exc:
        return {"stdout": "", "stderr": str(exc), "exitCode": -1, "timedOut": True}

    return {
        "stdout": result.stdout,
        "stderr": result.stderr,
        "exitCode": result.exit_code,
        "timedOut": result.timed_out,
    }


async def generate_document(
    blackboard: Blackboard | None,
    session_id: str,
    arguments: dict[str, Any],
    agent_id: str | None = None,
) -> dict[str, Any]:
    """Stage a document artifact on the blackboard and return its id."""
    fmt = arguments.get("format") or "markdown"
    if fmt not in DOCUMENT_FORMATS:
        raise ToolValidationError(
            "generate_document", f"format must be one of {', '.join(DOCUMENT_FORMATS)}"
        )

    document_id = f"doc_{uuid4().hex[:12]}"
    content: str = arguments["content"]
    metadata = {"format": fmt, **extract_document_metadata(content, fmt)}

    if blackboard is None:
        logger.warning("No blackboard configured; document %s is not staged", document_id)
    else:
        await blackboard.write(
            session_id,
            ARTIFACTS_NAMESPACE,
            document_id,
            {
                "type": "document",
                "title": arguments["title"],
                "content": content,
                "metadata": metadata,
            },
            agent_id=agent_id,
            metadata={"source": "generate_document"},
        )

    logger.info("Generated document %s: %s", document_id, arguments["title"])
    return {"documentId": document_id, "status": "created"}


def extract_document_metadata(content: str, fmt: str = "markdown") -> dict[str, Any]:
    """Return word count, section headings and links found in *content*."""
    if fmt == "html":
        sections = [
            (int(level), _strip_html(text)) for level, text in _HTML_HEADING.findall(content)
        ]
        links = [{"text": _strip_html(text), "url": url} for url, text in _HTML_LINK.findall(content)]
        words = _strip_html(content).split()
    else:
        sections = [(len(hashes), text) for hashes, text in _MD_HEADING.findall(content)]
        links = [{"text": text, "url": url} for text, url in _MD_LINK.findall(content)]
        words = content.split()

    return {
        "wordCount": len(words),
        "sections": [
            {"id": _slugify(title, i), "title": title, "level": level}
            for i, (level, title) in enumerate(sections)
        ],
        "links": links,
    }


def _strip_html(text: str) -> str:
    return html.unescape(_HTML_TAG.sub(" ", text)).strip()


def _slugify(title: str, index: int) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", title.lower()).strip("-")
    return slug or f"section-{index + 1}"
