"""
Markdown to HTML conversion for vault notes.

The converter is a fixed pipeline of regex rewrite stages. Every stage takes
the cumulative HTML produced by the stages before it and returns new HTML, so
the order of the pipeline is part of the output format. Fenced code is lifted
out first and put back last, which keeps the other stages away from it.

Input is not escaped: raw HTML in a note passes through untouched.
"""

import re
from functools import partial
from typing import Callable, Iterable, List, Optional, Tuple

from bs4 import BeautifulSoup

# Module scope regex variables

# Fenced content is hidden behind placeholders so no later stage rewrites it
FENCE_PATTERN = re.compile(r"```([\s\S]*?)```")
CODE_PLACEHOLDER = "\x00CODE{index}\x00"
CODE_PLACEHOLDER_PATTERN = re.compile(r"\x00CODE(\d+)\x00")
# Level 6 first so "###### x" is never taken by the level 1 rule
HEADER_PATTERNS = [
    (level, re.compile(r"^%s (.*)$" % ("#" * level), re.MULTILINE))
    for level in range(6, 0, -1)
]
STRONG_PATTERN = re.compile(r"\*\*(.*?)\*\*")
EM_PATTERN = re.compile(r"\*(.*?)\*")
WIKILINK_PATTERN = re.compile(r"\[\[([^\]]+)\]\]")
LINK_PATTERN = re.compile(r"(?<!!)\[([^\]]+)\]\(([^)]+)\)")
IMAGE_PATTERN = re.compile(r"!\[([^\]]*)\]\(([^)]+)\)")
INLINE_CODE_PATTERN = re.compile(r"`([^`]+)`")
HR_PATTERN = re.compile(r"^---$", re.MULTILINE)
BLOCK_TAG_PATTERN = re.compile(
    r"^<(?:h[1-6]|p|pre|hr|ul|ol|li|div|blockquote|table|dl)\b", re.IGNORECASE
)
LIST_MARKER_PATTERN = re.compile(r"^(?:[-+*]|\d+\.) ")
UL_ITEM_PATTERN = re.compile(r"^[-+*] (.+)$", re.MULTILINE)
OL_ITEM_PATTERN = re.compile(r"^\d+\. (.+)$")
LIST_ITEM_LINE_PATTERN = re.compile(r"^(?:<(?:ul|ol)>)?<li>.*</li>(</(?:ul|ol)>)?$")
LIST_OPENERS = ("<ul>", "<ol>")

WIKILINK_HTML = r'<a href="#" class="wikilink" data-link="\1">\1</a>'

Stage = Callable[[str], str]


# ----- Code blocks -----


def fence_code_blocks(markdown: str) -> Tuple[str, List[str]]:
    """Swap every fenced block for a placeholder; return the text and the blocks."""
    blocks: List[str] = []

    def _stash(match: re.Match) -> str:
        blocks.append(f"<pre><code>{match.group(1)}</code></pre>")
        return CODE_PLACEHOLDER.format(index=len(blocks) - 1)

    return FENCE_PATTERN.sub(_stash, markdown), blocks


def restore_code_blocks(html: str, blocks: List[str]) -> str:
    def _restore(match: re.Match) -> str:
        index = int(match.group(1))
        if index < len(blocks):
            return blocks[index]
        return match.group(0)

    return CODE_PLACEHOLDER_PATTERN.sub(_restore, html)


# ----- Inline stages -----


def render_headers(html: str) -> str:
    for level, pattern in HEADER_PATTERNS:
        html = pattern.sub(rf"<h{level}>\1</h{level}>", html)
    return html


def render_emphasis(html: str) -> str:
    """Strong before em, otherwise ``**x**`` would split into two em spans."""
    html = STRONG_PATTERN.sub(r"<strong>\1</strong>", html)
    return EM_PATTERN.sub(r"<em>\1</em>", html)


def render_wikilinks(html: str) -> str:
    return WIKILINK_PATTERN.sub(WIKILINK_HTML, html)


def render_links(html: str) -> str:
    return LINK_PATTERN.sub(r'<a href="\2" target="_blank">\1</a>', html)


def render_images(html: str) -> str:
    return IMAGE_PATTERN.sub(r'<img src="\2" alt="\1">', html)


def render_inline_code(html: str) -> str:
    return INLINE_CODE_PATTERN.sub(r"<code>\1</code>", html)


def render_rules(html: str) -> str:
    return HR_PATTERN.sub("<hr>", html)


# ----- Block stages -----


def _is_standalone_line(line: str) -> bool:
    return bool(
        BLOCK_TAG_PATTERN.match(line)
        or LIST_MARKER_PATTERN.match(line)
        or CODE_PLACEHOLDER_PATTERN.match(line)
    )


def group_paragraphs(html: str) -> str:
    """Wrap runs of plain lines in ``<p>``; block lines stand on their own.

    Lines are trimmed and blank lines end the current paragraph.
    """
    blocks: List[str] = []
    current: List[str] = []

    def flush() -> None:
        if current:
            blocks.append("<p>" + "\n".join(current) + "</p>")
            current.clear()

    for raw_line in html.split("\n"):
        line = raw_line.strip()
        if not line:
            flush()
        elif _is_standalone_line(line):
            flush()
            blocks.append(line)
        else:
            current.append(line)
    flush()

    return "\n".join(blocks)


def _list_item_runs(lines: List[str]) -> List[Tuple[int, int]]:
    """Return ``(start, end)`` ranges of consecutive ``<li>`` lines.

    A line opening a list container starts a new run and a line closing one
    ends it, so already wrapped lists are reported as runs of their own.
    """
    runs: List[Tuple[int, int]] = []
    start: Optional[int] = None
    for idx, line in enumerate(lines):
        match = LIST_ITEM_LINE_PATTERN.match(line)
        if match is None:
            if start is not None:
                runs.append((start, idx))
                start = None
            continue
        if start is not None and line.startswith(LIST_OPENERS):
            runs.append((start, idx))
            start = None
        if start is None:
            start = idx
        if match.group(1):
            runs.append((start, idx + 1))
            start = None
    if start is not None:
        runs.append((start, len(lines)))
    return runs


def _wrap_list_runs(
    lines: List[str],
    tag: str,
    wrap_all: bool,
    only: Optional[Iterable[int]] = None,
) -> str:
    wanted = set(only) if only is not None else None
    for start, end in _list_item_runs(lines):
        if lines[start].startswith(LIST_OPENERS):
            continue
        if wanted is not None and not wanted.intersection(range(start, end)):
            continue
        lines[start] = f"<{tag}>{lines[start]}"
        lines[end - 1] = f"{lines[end - 1]}</{tag}>"
        if not wrap_all:
            break
    return "\n".join(lines)


def render_unordered_lists(html: str, wrap_all: bool = False) -> str:
    """Turn ``-``/``+``/``*`` lines into items and wrap them in ``<ul>``.

    Only the first unwrapped run is wrapped unless ``wrap_all`` is set.
    """
    lines = UL_ITEM_PATTERN.sub(r"<li>\1</li>", html).split("\n")
    return _wrap_list_runs(lines, "ul", wrap_all)


def render_ordered_lists(html: str, wrap_all: bool = False) -> str:
    """Turn ``N.`` lines into items and wrap the run holding them in ``<ol>``.

    Runs already inside a list container are left alone, as are runs without
    a numbered item.
    """
    lines = html.split("\n")
    numbered: List[int] = []
    for idx, line in enumerate(lines):
        match = OL_ITEM_PATTERN.match(line)
        if match:
            lines[idx] = f"<li>{match.group(1)}</li>"
            numbered.append(idx)
    if not numbered:
        return html
    return _wrap_list_runs(lines, "ol", wrap_all, only=numbered)


# ----- Converter -----


class MarkupConverter:
    """Convert one note's Markdown into an HTML fragment.

    Stage order (after fenced code is lifted out): headers, emphasis,
    wikilinks, links, images, inline code, rules, paragraphs, unordered
    lists, ordered lists.
    """

    def __init__(self, wrap_all_lists: bool = False):
        self.wrap_all_lists = wrap_all_lists

    def stages(self) -> List[Tuple[str, Stage]]:
        return [
            ("headers", render_headers),
            ("emphasis", render_emphasis),
            ("wikilinks", render_wikilinks),
            ("links", render_links),
            ("images", render_images),
            ("inline_code", render_inline_code),
            ("rules", render_rules),
            ("paragraphs", group_paragraphs),
            ("unordered_lists", partial(render_unordered_lists, wrap_all=self.wrap_all_lists)),
            ("ordered_lists", partial(render_ordered_lists, wrap_all=self.wrap_all_lists)),
        ]

    def convert(self, markdown: str) -> str:
        text = markdown.replace("\r\n", "\n")
        html, code_blocks = fence_code_blocks(text)
        for _name, stage in self.stages():
            html = stage(html)
        return restore_code_blocks(html, code_blocks)


def extract_references(fragment: str) -> List[str]:
    """Return the wikilink keys of a rendered fragment, first seen order.

    Keys are read back through an HTML parser so they match what the
    browser exposes as ``dataset.link``.
    """
    soup = BeautifulSoup(fragment, "html.parser")
    references: List[str] = []
    for anchor in soup.select("a.wikilink"):
        key = anchor.get("data-link")
        if key is not None and key not in references:
            references.append(key)
    return references
