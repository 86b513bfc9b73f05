from plugins.vault_wiki.resolver import LinkResolver


class TestLinkResolver:
    """Test the two-phase wikilink lookup."""

    def test_exact_match_beats_substring(self):
        """Test: An exact (case-insensitive) match wins over an earlier partial one."""
        assert LinkResolver(["Alpha", "Alpha Beta"]).resolve("alpha") == "Alpha"
        assert LinkResolver(["Alpha Beta", "Alpha"]).resolve("alpha") == "Alpha"

    def test_reference_inside_identifier(self):
        """Test: The fallback finds an identifier that contains the reference."""
        assert LinkResolver(["Project X"]).resolve("proj") == "Project X"

    def test_identifier_inside_reference(self):
        """Test: The fallback finds an identifier contained in the reference."""
        assert LinkResolver(["Go"]).resolve("Golang notes") == "Go"

    def test_fallback_takes_first_in_corpus_order(self):
        """Test: Among several partial matches the first identifier wins."""
        resolver = LinkResolver(["Project Y", "Project X"])
        assert resolver.resolve("project") == "Project Y"

    def test_case_variants_keep_first_identifier(self):
        """Test: Identifiers differing only in case resolve to the first one."""
        assert LinkResolver(["Notes", "notes"]).resolve("NOTES") == "Notes"

    def test_no_match(self):
        """Test: Unknown references resolve to None every time."""
        resolver = LinkResolver(["Alpha", "Beta"])
        assert resolver.resolve("zeta") is None
        assert resolver.resolve("zeta") is None
        assert len(resolver) == 2

    def test_empty_corpus(self):
        assert LinkResolver([]).resolve("anything") is None

    def test_resolve_all_deduplicates(self):
        """Test: Each distinct key is resolved once, in first-seen order."""
        resolver = LinkResolver(["Alpha"])
        table = resolver.resolve_all(["missing", "alpha", "missing", "Alpha"])
        assert list(table) == ["missing", "alpha", "Alpha"]
        assert table == {"missing": None, "alpha": "Alpha", "Alpha": "Alpha"}
