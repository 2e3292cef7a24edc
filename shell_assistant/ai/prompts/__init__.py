"""System prompt templates and the builder that fills them in."""

import re

from pathlib import Path
from typing import Optional

from loguru import logger

from ...system_info import SystemInfo

TEMPLATE_DIR = Path(__file__).parent
SECTION_SEPARATOR = "\n\n---\n\n"
PLACEHOLDER = re.compile(r"\{(OS|SHELL|CURRENT_DIR|USERNAME|HOSTNAME)\}")

COMMON_TEMPLATE = "common.md"
MODE_TEMPLATES = {
    "ask": "ask.md",
    "suggest": "suggest.md",
    "mode_select": "mode_select.md",
}


class PromptBuilder:
    """
    Builds the system prompt for a mode from the shared preamble and the
    mode-specific template, filled in with the detected environment.

    A template that cannot be read is treated as empty so that a broken
    installation degrades the prompt instead of aborting the request.
    """

    def __init__(self, system_info: SystemInfo, template_dir: Optional[Path] = None):
        self.system_info = system_info
        self.template_dir = Path(template_dir) if template_dir else TEMPLATE_DIR

    def load_template(self, name: str) -> str:
        try:
            return (self.template_dir / name).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Failed to load prompt template {}: {}", name, e)
            return ""

    def render(self, template: str) -> str:
        info = self.system_info
        values = {
            "OS": info.os.value,
            "SHELL": info.shell.value,
            "CURRENT_DIR": str(info.current_dir),
            "USERNAME": info.username or "unknown",
            "HOSTNAME": info.hostname or "unknown",
        }
        # Substituted values are never rescanned.
        return PLACEHOLDER.sub(lambda match: values[match.group(1)], template)

    def build(self, mode: str) -> str:
        if mode not in MODE_TEMPLATES:
            raise ValueError(f"No prompt template for mode '{mode}'.")

        common = self.render(self.load_template(COMMON_TEMPLATE))
        body = self.render(self.load_template(MODE_TEMPLATES[mode]))
        return f"{common}{SECTION_SEPARATOR}{body}"

    def build_ask(self) -> str:
        return self.build("ask")

    def build_suggest(self) -> str:
        return self.build("suggest")

    def build_mode_select(self) -> str:
        return self.build("mode_select")
