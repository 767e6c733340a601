"""
Text-unit extraction and reassembly for common document formats.

Each document type splits a file into the text units handed to the
scheduler and renders the file back from translated units, keeping
everything that is not a unit (blank lines, code blocks, list markers,
HTML tags, non-string JSON values) exactly as it was.

Supported formats:
    - Plain text: one unit per non-blank line
    - Markdown: like plain text, but fenced code blocks are left alone and
      heading/list markers stay outside the unit
    - HTML: one unit per line with visible text; tags are protected
    - JSON: one unit per non-blank string leaf, at any nesting depth

License: MIT
"""

import json
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from ..config.logging_config import get_logger
from ..core.string_utils import is_blank
from .protector import SubstringProtector

# Module-level logger for consistent logging.
logger = get_logger(__name__)

# Heading, bullet and ordered-list markers kept outside Markdown units.
MARKDOWN_PREFIX_PATTERN = re.compile(r'^(\s*#+\s*|\s*[*\-+]\s+|\s*\d+\.\s*)')

MARKDOWN_FENCE = "```"

HTML_TAG_PATTERN = r'<[^>]*>'


class TextDocument:
    """
    Plain text document: every non-blank line is one unit.

    Attributes:
        lines: The document lines, without line terminators.
        units: The text units, in document order.
    """

    suffix = ".txt"

    def __init__(self, text: str):
        self.lines = text.split("\n")
        self.units: List[str] = []
        # Line index and line prefix for every unit.
        self._slots: List[Tuple[int, str]] = []
        self._extract()

    def _extract(self) -> None:
        for index, line in enumerate(self.lines):
            if not is_blank(line):
                self._add_unit(index, "", line)

    def _add_unit(self, line_index: int, prefix: str, unit: str) -> None:
        self._slots.append((line_index, prefix))
        self.units.append(unit)

    def _finish_line(self, line_index: int, prefix: str, translated: str) -> str:
        return f"{prefix}{translated}"

    def render(self, translations: Sequence[str]) -> str:
        """
        Rebuild the document with translated units.

        Args:
            translations: One translation per unit, in unit order.

        Returns:
            str: The translated document.
        """
        if len(translations) != len(self.units):
            raise ValueError(
                f"Expected {len(self.units)} translations, got {len(translations)}"
            )
        lines = list(self.lines)
        for (line_index, prefix), translated in zip(self._slots, translations):
            lines[line_index] = self._finish_line(line_index, prefix, translated)
        return "\n".join(lines)


class MarkdownDocument(TextDocument):
    """Markdown document; code blocks and line markers are not translated."""

    suffix = ".md"

    def _extract(self) -> None:
        in_code_block = False
        for index, line in enumerate(self.lines):
            stripped = line.strip()
            if stripped.startswith(MARKDOWN_FENCE):
                in_code_block = not in_code_block
                continue
            if in_code_block or not stripped:
                continue

            match = MARKDOWN_PREFIX_PATTERN.match(line)
            prefix = match.group(0) if match else ""
            body = line[len(prefix):]
            if is_blank(body):
                continue
            self._add_unit(index, prefix, body)


class HtmlDocument(TextDocument):
    """
    HTML document; one unit per line that has visible text.

    Tags inside a line are swapped for placeholders before the line is
    handed out as a unit and restored when rendering.
    """

    suffix = ".html"

    def __init__(self, text: str):
        self._tag_protector = SubstringProtector(patterns=[HTML_TAG_PATTERN], prefix="POLYTAG")
        self._tag_maps: Dict[int, Dict[str, str]] = {}
        super().__init__(text)

    def _extract(self) -> None:
        for index, line in enumerate(self.lines):
            if is_blank(re.sub(HTML_TAG_PATTERN, "", line)):
                continue
            protected, tags = self._tag_protector.protect(line)
            self._tag_maps[index] = tags
            self._add_unit(index, "", protected)

    def _finish_line(self, line_index: int, prefix: str, translated: str) -> str:
        return SubstringProtector.restore(translated, self._tag_maps.get(line_index, {}))


class JsonDocument:
    """
    JSON document; every non-blank string leaf is one unit.

    Object keys, numbers, booleans, nulls and blank strings are kept.
    """

    suffix = ".json"

    def __init__(self, text: str):
        self.data = json.loads(text)
        self.units = collect_json_strings(self.data)

    def render(self, translations: Sequence[str]) -> str:
        if len(translations) != len(self.units):
            raise ValueError(
                f"Expected {len(self.units)} translations, got {len(translations)}"
            )
        rebuilt = apply_json_translations(self.data, translations)
        return json.dumps(rebuilt, indent=2, ensure_ascii=False) + "\n"


def collect_json_strings(obj: Any, units: Optional[List[str]] = None) -> List[str]:
    """
    Collect non-blank string leaves of a JSON value in traversal order.

    Example:
        >>> collect_json_strings({"menu": {"open": "Open", "count": 3}, "tags": ["a", ""]})
        ['Open', 'a']
    """
    if units is None:
        units = []

    if isinstance(obj, dict):
        for value in obj.values():
            collect_json_strings(value, units)
    elif isinstance(obj, list):
        for value in obj:
            collect_json_strings(value, units)
    elif isinstance(obj, str) and not is_blank(obj):
        units.append(obj)

    return units


def apply_json_translations(obj: Any, translations: Sequence[str]) -> Any:
    """
    Return a copy of obj with string leaves replaced, in the order used by
    collect_json_strings().
    """
    remaining = iter(translations)

    def rebuild(node: Any) -> Any:
        if isinstance(node, dict):
            return {key: rebuild(value) for key, value in node.items()}
        if isinstance(node, list):
            return [rebuild(value) for value in node]
        if isinstance(node, str) and not is_blank(node):
            return next(remaining)
        return node

    return rebuild(obj)


DOCUMENT_TYPES = {
    ".json": JsonDocument,
    ".md": MarkdownDocument,
    ".markdown": MarkdownDocument,
    ".html": HtmlDocument,
    ".htm": HtmlDocument,
}


def load_document(path: Union[str, Path]):
    """
    Read a file and wrap it in the document type matching its extension.

    Unknown extensions are treated as plain text.

    Raises:
        OSError: If the file cannot be read.
        ValueError: If a .json file does not contain valid JSON.
    """
    path = Path(path)
    document_type = DOCUMENT_TYPES.get(path.suffix.lower(), TextDocument)
    text = path.read_text(encoding="utf-8")
    document = document_type(text)
    logger.info(f"{path.name}: {len(document.units)} text units ({document_type.__name__})")
    return document


def output_path(path: Union[str, Path], lang: str, output_dir: Optional[Union[str, Path]] = None) -> Path:
    """
    Build the output file name for a translation: <stem>-<lang><suffix>.

    Example:
        >>> output_path("docs/README.md", "pt_BR")
        PosixPath('docs/README-pt_BR.md')
    """
    path = Path(path)
    directory = Path(output_dir) if output_dir is not None else path.parent
    suffix = path.suffix or TextDocument.suffix
    return directory / f"{path.stem}-{lang}{suffix}"


def translate_document(path: Union[str, Path], languages: Sequence[str], scheduler):
    """
    Translate a document into several languages.

    Args:
        path: The document to translate.
        languages: Target language codes.
        scheduler: A TranslationScheduler.

    Returns:
        Tuple of (rendered, run_result) where rendered maps each language
        code to the translated document text.
    """
    document = load_document(path)
    result = scheduler.run(document.units, languages)
    rendered = {
        lang: document.render(units) for lang, units in result.translations.items()
    }
    return rendered, result
