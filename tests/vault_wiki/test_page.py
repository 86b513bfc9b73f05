import json
import logging

from bs4 import BeautifulSoup

from plugins.vault_wiki.minify import MINIFIERS, minify_asset, minify_html
from plugins.vault_wiki.page import WikiPage, embed_json
from plugins.vault_wiki.session import BuildSession, Leaf


def make_session() -> BuildSession:
    session = BuildSession()
    session.add_note("Home", "# Home\nGo to [[guide]] or [[Nowhere]]", "Home.md")
    session.add_note("User Guide", "```\n    indented  code\n```", "User Guide.md")
    session.tree = [
        Leaf("Home", "Home.md", "Home"),
        Leaf("User Guide", "User Guide.md", "User Guide"),
    ]
    return session


def read_payload(html: str) -> dict:
    soup = BeautifulSoup(html, "html.parser")
    return json.loads(soup.find("script", id="wiki-data").string)


class TestWikiPage:
    """Test the single-file wiki output."""

    def test_payload_holds_notes_tree_and_links(self):
        """Test: The embedded data carries every note, the tree and the link table."""
        data = read_payload(WikiPage(make_session()).render())

        assert list(data["notes"]) == ["Home", "User Guide"]
        assert data["notes"]["Home"]["rawContent"].startswith("# Home")
        assert data["structure"][1] == {
            "type": "file",
            "name": "User Guide",
            "path": "User Guide.md",
            "noteId": "User Guide",
        }
        assert data["links"] == {"guide": "User Guide", "Nowhere": None}

    def test_title_is_escaped(self):
        html = WikiPage(make_session(), title="Notes & <Ideas>").render()
        soup = BeautifulSoup(html, "html.parser")
        assert soup.title.string == "Notes & <Ideas>"
        assert "<Ideas>" not in html

    def test_page_shell(self):
        """Test: Sidebar, empty state and navigation script are present."""
        soup = BeautifulSoup(WikiPage(make_session()).render(), "html.parser")
        assert soup.find(id="fileTree") is not None
        assert soup.find(id="emptyState") is not None
        scripts = [s.string or "" for s in soup.find_all("script")]
        assert any("localStorage.getItem('theme')" in s for s in scripts)
        assert any("attachWikiLinkListeners" in s for s in scripts)

    def test_note_html_cannot_close_the_script(self):
        """Test: Raw HTML in a note is escaped inside the embedded JSON."""
        session = BuildSession()
        session.add_note("Evil", "</script><script>alert(1)</script>")
        html = WikiPage(session).render()

        assert "</script><script>alert(1)" not in html
        assert read_payload(html)["notes"]["Evil"]["rawContent"] == "</script><script>alert(1)</script>"

    def test_embed_json(self):
        assert embed_json({"a": "<b>"}) == '{"a": "\\u003cb>"}'

    def test_write_creates_parent_folders(self, tmp_path):
        target = tmp_path / "site" / "wiki" / "index.html"
        WikiPage(make_session()).write(target)
        assert target.read_text(encoding="utf-8").startswith("<!DOCTYPE html>")

    def test_minified_page(self):
        """Test: Minification shrinks the page and keeps the data intact."""
        session = make_session()
        plain = WikiPage(session).render()
        minified = WikiPage(session, minify=True).render()

        assert len(minified) < len(plain)
        data = read_payload(minified)
        assert data["notes"]["User Guide"]["content"] == "<pre><code>\n    indented  code\n</code></pre>"
        assert data["links"]["guide"] == "User Guide"


class TestMinify:
    """Test the minifier helpers."""

    def test_minify_js(self):
        result = minify_asset("console.log('hello');\nvar x = 1;", "js")
        assert "console.log('hello');var x=1" in result

    def test_minify_css(self):
        result = minify_asset(".test {\n    color: red;\n    margin: 10px;\n}", "css")
        assert ".test{" in result and "color:red" in result

    def test_dispatch_table(self):
        assert set(MINIFIERS) == {"js", "css"}

    def test_minify_html(self):
        result = minify_html("<html><body><p>Hello   World</p></body></html>")
        assert "<p>Hello World</p>" in result

    def test_unknown_htmlmin_option_is_ignored(self, caplog):
        with caplog.at_level(logging.WARNING):
            result = minify_html("<p>a</p>", {"no_such_option": True})
        assert "<p>a</p>" in result
        assert "no_such_option" in caplog.text
