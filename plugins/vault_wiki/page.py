import json
from html import escape
from pathlib import Path
from typing import Any, Dict, Optional

from mkdocs.utils import log

from plugins.vault_wiki.minify import minify_asset, minify_html
from plugins.vault_wiki.session import BuildSession

ASSETS_DIR = Path(__file__).parent / "assets"
DEFAULT_TITLE = "Vault Wiki"


def embed_json(data: Any) -> str:
    """Serialise ``data`` for a ``<script>`` element; ``<`` is escaped so no string can close it."""
    return json.dumps(data, ensure_ascii=False).replace("<", "\\u003c")


def load_asset(name: str) -> str:
    return (ASSETS_DIR / name).read_text(encoding="utf-8")


class WikiPage:
    """
    The single-file wiki: sidebar tree, every rendered note, the link table
    and the navigation script, all inlined into one HTML document.
    """

    def __init__(
        self,
        session: BuildSession,
        title: str = DEFAULT_TITLE,
        minify: bool = False,
        htmlmin_opts: Optional[Dict] = None,
    ):
        self.session = session
        self.title = title
        self.minify = minify
        self.htmlmin_opts = htmlmin_opts or {}

    def payload(self) -> Dict[str, Any]:
        return {
            "notes": self.session.corpus_data(),
            "structure": self.session.tree_data(),
            "links": self.session.link_table(),
        }

    def render(self) -> str:
        css = load_asset("wiki.css")
        js = load_asset("wiki.js")
        if self.minify:
            css = minify_asset(css, "css")
            js = minify_asset(js, "js")

        title = escape(self.title)
        html = f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{title}</title>
    <style>
{css}
    </style>
</head>
<body data-theme="light">
    <header>
        <div class="header-left">
            <button class="sidebar-toggle" id="sidebarToggle" aria-label="Toggle sidebar">&#9776;</button>
            <h1 class="site-title">{title}</h1>
        </div>
        <button class="theme-toggle" id="themeToggle" aria-label="Toggle theme"></button>
    </header>

    <aside class="sidebar" id="sidebar">
        <h2>Vault</h2>
        <ul class="file-tree" id="fileTree"></ul>
    </aside>

    <main class="main-content" id="mainContent">
        <div class="empty-state" id="emptyState">
            <h2>Welcome</h2>
            <p>Select a note from the sidebar to begin.</p>
        </div>
        <div id="notesContainer"></div>
    </main>

    <script id="wiki-data" type="application/json">{embed_json(self.payload())}</script>
    <script>
{js}
    </script>
</body>
</html>
"""
        if self.minify:
            html = minify_html(html, self.htmlmin_opts)
        return html

    def write(self, output_path: Path) -> Path:
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(self.render(), encoding="utf-8")
        log.debug(f"[vault_wiki] wrote {output_path}")
        return output_path
