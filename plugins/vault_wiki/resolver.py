from typing import Dict, Iterable, List, Optional, Tuple

from mkdocs.utils import log


class LinkResolver:
    """
    Resolve ``[[wikilink]]`` keys to note identifiers.

    Built once per corpus snapshot. Lookup is case-insensitive and runs in
    two phases, first match wins in both:

    1. exact: the identifier whose lower-cased form equals the key;
    2. fallback: the first identifier (corpus order) that contains the key
       or is contained in it.
    """

    def __init__(self, identifiers: Iterable[str]):
        self._exact: Dict[str, str] = {}
        self._entries: List[Tuple[str, str]] = []
        for identifier in identifiers:
            lowered = identifier.lower()
            # Earlier identifiers keep the slot, as in a linear scan
            self._exact.setdefault(lowered, identifier)
            self._entries.append((lowered, identifier))

    def __len__(self) -> int:
        return len(self._entries)

    def resolve(self, reference: str) -> Optional[str]:
        """Return the identifier ``reference`` points at, or None."""
        wanted = reference.lower()

        found = self._exact.get(wanted)
        if found is not None:
            return found

        for lowered, identifier in self._entries:
            if lowered in wanted or wanted in lowered:
                log.debug(f"[vault_wiki] '{reference}' matched '{identifier}' by substring")
                return identifier

        log.debug(f"[vault_wiki] no note found for '{reference}'")
        return None

    def resolve_all(self, references: Iterable[str]) -> Dict[str, Optional[str]]:
        """Resolve each distinct reference once, keeping first-seen order."""
        table: Dict[str, Optional[str]] = {}
        for reference in references:
            if reference not in table:
                table[reference] = self.resolve(reference)
        return table
