"""
An MkDocs plugin that bundles a folder of Markdown notes into a single-file
wiki with a sidebar tree and ``[[wikilink]]`` navigation.
"""

from pathlib import Path
from typing import Dict, Iterable, Optional, Union

from mkdocs.config import config_options as c
from mkdocs.plugins import BasePlugin
from mkdocs.utils import log

from plugins.vault_wiki.converter import MarkupConverter
from plugins.vault_wiki.page import DEFAULT_TITLE, WikiPage
from plugins.vault_wiki.session import DEFAULT_IGNORE_DIRS, BuildSession


def build_wiki(
    vault_root: Union[str, Path],
    output_path: Union[str, Path],
    site_title: str = DEFAULT_TITLE,
    ignore_dirs: Iterable[str] = DEFAULT_IGNORE_DIRS,
    wrap_all_lists: bool = False,
    minify: bool = False,
    htmlmin_opts: Optional[Dict] = None,
) -> BuildSession:
    """Scan ``vault_root``, render every note and write the wiki to ``output_path``."""
    session = BuildSession(
        converter=MarkupConverter(wrap_all_lists=wrap_all_lists),
        ignore_dirs=ignore_dirs,
    )

    log.info(f"[vault_wiki] scanning vault {vault_root}")
    session.scan(vault_root)
    log.info(f"[vault_wiki] found {len(session.corpus)} notes")

    page = WikiPage(session, title=site_title, minify=minify, htmlmin_opts=htmlmin_opts)
    written = page.write(Path(output_path))
    log.info(f"[vault_wiki] generated {written}")
    return session


class VaultWikiPlugin(BasePlugin):
    """MkDocs plugin that writes the vault wiki into the built site.

    Configuration options (all optional):
    - vault_dir (str): Notes folder, relative to mkdocs.yml. Defaults to `docs_dir`.
    - output_file (str): Output path relative to `site_dir`.
    - site_title (str): Title shown in the page header and `<title>`.
    - ignore_dirs (list): Folder names skipped while scanning.
    - wrap_all_lists (bool): Wrap every list run instead of only the first one per note.
    - minify (bool): Minify the generated page and its inline CSS/JS.
    - htmlmin_opts (dict): Extra options forwarded to `htmlmin.minify`.
    """

    config_scheme = (
        ("vault_dir", c.Type(str, default="")),
        ("output_file", c.Type(str, default="wiki/index.html")),
        ("site_title", c.Type(str, default=DEFAULT_TITLE)),
        ("ignore_dirs", c.Type(list, default=list(DEFAULT_IGNORE_DIRS))),
        ("wrap_all_lists", c.Type(bool, default=False)),
        ("minify", c.Type(bool, default=False)),
        ("htmlmin_opts", c.Type(dict, default={})),
    )

    def __init__(self):
        super().__init__()
        self.session: Optional[BuildSession] = None

    def _vault_root(self, config) -> Path:
        vault_rel = self.config["vault_dir"]
        if not vault_rel:
            return Path(config["docs_dir"]).resolve()
        config_file_path = config.get("config_file_path")
        project_root = Path(config_file_path).resolve().parent if config_file_path else Path.cwd()
        return (project_root / vault_rel).resolve()

    # Runs once the site is on disk, so the wiki lands next to it
    def on_post_build(self, config):
        site_dir = Path(config["site_dir"]).resolve()
        output_rel = self.config["output_file"]

        # Keep the output inside the site directory
        target_path = (site_dir / output_rel).resolve()
        try:
            target_path.relative_to(site_dir)
        except ValueError:
            log.error(f"[vault_wiki] output_file '{output_rel}' resolves outside the site directory")
            log.error(f"[vault_wiki] resolved target: {target_path}")
            return

        vault_root = self._vault_root(config)
        if not vault_root.is_dir():
            log.warning(f"[vault_wiki] vault directory '{vault_root}' not found; skipping wiki build.")
            return

        self.session = build_wiki(
            vault_root,
            target_path,
            site_title=self.config["site_title"],
            ignore_dirs=self.config["ignore_dirs"],
            wrap_all_lists=self.config["wrap_all_lists"],
            minify=self.config["minify"],
            htmlmin_opts=self.config["htmlmin_opts"],
        )
