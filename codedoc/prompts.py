"""Prompt construction for the documentation producer."""

import logging
import os
import re
from pathlib import Path
from typing import Optional

from codedoc.context import FileContext

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATE = Path(__file__).resolve().parent / "templates" / "default-prompt.md"

SYSTEM_PROMPT = (
    "You are a technical documentation specialist with expertise in "
    "PHP and web application codebases."
)

TRUNCATION_MARKER = "\n...(truncated for length)..."

_VARIABLE_RE = re.compile(r"\{(FILE_PATH|FILE_CONTENT|FILE_NAME|EXTENSION|BASE_NAME|DIRECTORY|CONTEXT|TOC_LINK)\}")


def normalize_for_toc(text: str) -> str:
    """'UserController.php' -> 'usercontroller-php'."""
    return re.sub(r"[^a-z0-9]+", "-", text.strip().lower())


def truncate_content(content: str, max_tokens: int) -> str:
    """Cut content past ``max_tokens * 4`` characters (a rough token estimate)."""
    limit = max_tokens * 4
    if limit > 0 and len(content) > limit:
        return content[:limit] + TRUNCATION_MARKER
    return content


def format_context_as_markdown(context: Optional[FileContext]) -> str:
    if context is None:
        return ""

    md = ""
    if context.imports:
        md += "### Imports\n"
        md += "".join(f"- {imp}\n" for imp in context.imports)
        md += "\n"

    if context.related_files:
        md += "### Related Files\n"
        md += "".join(f"- {imp}: {path}\n" for imp, path in context.related_files.items())
        md += "\n"

    routes = context.routes or context.defined_routes
    if routes:
        md += "### Related Routes\n" if context.routes else "### Defined Routes\n"
        for route in routes:
            line = f"- {route.method} {route.path} -> {route.controller}@{route.action}"
            if route.name:
                line += f" ({route.name})"
            md += line + "\n"
        md += "\n"

    if context.controller_actions:
        md += "### Controller Actions\n"
        md += "".join(f"- {action}\n" for action in context.controller_actions)
        md += "\n"

    if context.model_relationships:
        md += "### Model Relationships\n"
        for rel in context.model_relationships:
            md += f"- {rel.method} ({rel.type}) -> {rel.related}\n"
        md += "\n"

    return md


def basic_prompt(file_path: str, content: str) -> str:
    return f"Please document the file {file_path}. Here's the content:\n\n```\n{content}\n```"


class PromptBuilder:
    """Render the prompt template for one file.

    Args:
        template_path: Custom template. Falls back to the packaged default
                       when missing; to a one-line prompt when neither loads.
    """

    def __init__(self, template_path: Optional[Path] = None):
        self.template_path = Path(template_path) if template_path else DEFAULT_TEMPLATE

    def _load_template(self) -> Optional[str]:
        for candidate in (self.template_path, DEFAULT_TEMPLATE):
            try:
                return candidate.read_text(encoding="utf-8")
            except OSError as exc:
                logger.warning("Prompt template %s unreadable: %s", candidate, exc)
        return None

    def build(self, file_path, content: str, context: Optional[FileContext] = None) -> str:
        file_path = str(file_path)
        template = self._load_template()
        if template is None:
            return basic_prompt(file_path, content)

        file_name = os.path.basename(file_path)
        variables = {
            "FILE_PATH": file_path,
            "FILE_CONTENT": content,
            "FILE_NAME": file_name,
            "EXTENSION": os.path.splitext(file_name)[1].lstrip("."),
            "BASE_NAME": os.path.splitext(file_name)[0],
            "DIRECTORY": os.path.dirname(file_path),
            "CONTEXT": format_context_as_markdown(context),
            "TOC_LINK": normalize_for_toc(file_name),
        }
        # Single pass, so placeholders inside the file content stay untouched.
        return _VARIABLE_RE.sub(lambda m: variables[m.group(1)], template)
