"""
Utility functions for the UI generator host and sandbox.
"""

import html
import io
import re
import zipfile
from pathlib import Path
from typing import Dict


# Fenced block as emitted by chat models: ```tsx\n...\n```
CODE_FENCE_RE = re.compile(r"```[\w+\-.]*[^\S\n]*\n?(.*?)\n?[^\S\n]*```", re.DOTALL)


def extract_code_block(text: str) -> str:
    """
    Return the contents of the first Markdown code fence in text.

    Text without a fence is returned unchanged (model output is often bare code).

    Args:
        text: Model output, possibly wrapped in ```tsx ... ``` fences

    Returns:
        The code without fences
    """
    match = CODE_FENCE_RE.search(text)
    if match:
        return match.group(1)

    # Unclosed fence: drop the opening line
    stripped = text.lstrip()
    if stripped.startswith("```"):
        newline = stripped.find("\n")
        return "" if newline < 0 else stripped[newline + 1:]
    return text


def make_zip_bytes(files: Dict[str, str]) -> bytes:
    """
    Create an in-memory ZIP archive from a dictionary of files.

    Args:
        files: Dictionary mapping file paths to file contents

    Returns:
        Bytes of the ZIP archive
    """
    buffer = io.BytesIO()

    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as zf:
        for path, content in files.items():
            normalized_path = path.replace("\\", "/").lstrip("/")
            zf.writestr(normalized_path, content)

    buffer.seek(0)
    return buffer.getvalue()


# Languages for st.code highlighting of generated component files
EXTENSION_LANGUAGE_MAP = {
    ".js": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".jsx": "jsx",
    ".ts": "typescript",
    ".tsx": "tsx",
    ".json": "json",
    ".css": "css",
    ".html": "html",
    ".md": "markdown",
}


def guess_language_from_filename(path: str) -> str:
    """Guess the highlighting language from a filename, defaulting to "text"."""
    return EXTENSION_LANGUAGE_MAP.get(Path(path).suffix.lower(), "text")


def safe_project_name(description: str) -> str:
    """
    Generate a safe file/package name from a component description.

    Args:
        description: The user's component description

    Returns:
        A lowercase string usable as a filename and npm package name
    """
    name = description[:50].strip()
    name = re.sub(r"\s+", "-", name)
    name = re.sub(r"[^\w\-]", "", name)
    name = name.strip("-_")

    if not name:
        name = "generated-component"

    return name.lower()


def package_row_html(name: str, version: str, kind: str, source: str, description: str, installed: bool) -> str:
    """One detected-package line for the host's package list; every field is escaped."""
    mark = "✅" if installed else "▫️"
    return (
        f'<div class="package-row">{mark} <code>{html.escape(name)}@{html.escape(version)}</code> '
        f'<small>({html.escape(kind)}, {html.escape(source)})</small> - {html.escape(description)}</div>'
    )
