"""
Turns the model's free-form reply into structured data.

Models often wrap JSON in a markdown fence or surround it with prose, so the
parser first narrows the text down to the most likely JSON candidate and only
then decodes it. Every failure surfaces as a `ParseError`; retrying is left to
the caller.
"""

import json

from dataclasses import dataclass
from typing import Any, Dict, Tuple

from ..errors import ParseError

FENCE = "```"


@dataclass(frozen=True)
class ModeSelection:
    mode: str
    reason: str


@dataclass(frozen=True)
class CommandSuggestion:
    command: str
    description: str


@dataclass(frozen=True)
class SuggestResult:
    suggestions: Tuple[CommandSuggestion, ...] = ()

    def __len__(self) -> int:
        return len(self.suggestions)

    def __iter__(self):
        return iter(self.suggestions)

    def __getitem__(self, index: int) -> CommandSuggestion:
        return self.suggestions[index]


def extract_json(text: str) -> str:
    """
    Picks the JSON candidate out of a model reply.

    The first rule that matches wins:
    1. The interior of the first fenced block, without its language tag line.
    2. The span from the first `{` to the last `}`.
    3. The trimmed text itself.
    """
    text = text.strip()

    start = text.find(FENCE)
    if start != -1:
        end = text.find(FENCE, start + len(FENCE))
        if end != -1:
            block = text[start + len(FENCE):end]
            newline = block.find("\n")
            # A first line without JSON brackets is a language tag such as `json`.
            if newline != -1 and not any(c in block[:newline] for c in "{["):
                block = block[newline + 1:]
            return block.strip()

    start = text.find("{")
    end = text.rfind("}")
    if start != -1 and end > start:
        return text[start:end + 1]

    return text


def _load_object(text: str, schema_name: str) -> Dict[str, Any]:
    candidate = extract_json(text)
    try:
        data = json.loads(candidate)
    except json.JSONDecodeError as e:
        raise ParseError(f"Failed to parse {schema_name} response: {e}", text) from e

    if not isinstance(data, dict):
        raise ParseError(f"Failed to parse {schema_name} response: expected a JSON object", text)
    return data


def _require_str(data: Dict[str, Any], key: str, schema_name: str, text: str) -> str:
    value = data.get(key)
    if not isinstance(value, str):
        raise ParseError(f"Failed to parse {schema_name} response: '{key}' must be a string", text)
    return value


def parse_ask(text: str) -> str:
    # Ask answers are free text, nothing to decode.
    return text


def parse_mode_selection(text: str) -> ModeSelection:
    data = _load_object(text, "mode selection")
    return ModeSelection(
        mode=_require_str(data, "mode", "mode selection", text).strip().lower(),
        reason=_require_str(data, "reason", "mode selection", text),
    )


def parse_suggest(text: str) -> SuggestResult:
    data = _load_object(text, "suggest")

    items = data.get("suggestions")
    if not isinstance(items, list):
        raise ParseError("Failed to parse suggest response: 'suggestions' must be a list", text)

    suggestions = []
    for item in items:
        if not isinstance(item, dict):
            raise ParseError("Failed to parse suggest response: every suggestion must be an object", text)
        # The prompt asks for `cmd`; some models answer with `command`.
        command_key = "cmd" if "cmd" in item else "command"
        suggestions.append(
            CommandSuggestion(
                command=_require_str(item, command_key, "suggest", text),
                description=_require_str(item, "description", "suggest", text),
            )
        )

    return SuggestResult(tuple(suggestions))
