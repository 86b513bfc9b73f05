import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from mkdocs.utils import log

from plugins.vault_wiki.converter import MarkupConverter, extract_references
from plugins.vault_wiki.resolver import LinkResolver

DEFAULT_IGNORE_DIRS = (".obsidian", "node_modules", ".git", "_Indexes")
NOTE_SUFFIX = ".md"


@dataclass(frozen=True)
class Document:
    """One rendered note. ``id`` is the file name without ``.md``."""

    id: str
    name: str
    path: str
    content: str
    raw_content: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "id": self.id,
            "name": self.name,
            "path": self.path,
            "content": self.content,
            "rawContent": self.raw_content,
        }


@dataclass
class Leaf:
    name: str
    path: str
    note_id: str

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "file", "name": self.name, "path": self.path, "noteId": self.note_id}


@dataclass
class Folder:
    name: str
    path: str
    children: List["Node"] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": "folder",
            "name": self.name,
            "path": self.path,
            "children": [child.to_dict() for child in self.children],
        }


Node = Union[Folder, Leaf]


def _entry_sort_key(entry: os.DirEntry):
    # Folders first, then by name
    return (not entry.is_dir(follow_symlinks=False), entry.name.casefold(), entry.name)


class BuildSession:
    """
    State of one wiki build: the note corpus and the sidebar tree.

    The scanner fills both, after which they are only read by the page
    renderer and the link resolver.
    """

    def __init__(
        self,
        converter: Optional[MarkupConverter] = None,
        ignore_dirs: Iterable[str] = DEFAULT_IGNORE_DIRS,
    ):
        self.converter = converter or MarkupConverter()
        self.ignore_dirs = set(ignore_dirs)
        self.corpus: Dict[str, Document] = {}
        self.tree: List[Node] = []

    # ----- Corpus -----

    def add_document(self, document: Document) -> None:
        """Register a note; a later note with the same id replaces the earlier one."""
        previous = self.corpus.get(document.id)
        if previous is not None:
            log.warning(
                f"[vault_wiki] note id '{document.id}' at {document.path} replaces {previous.path}"
            )
        self.corpus[document.id] = document

    def add_note(self, note_id: str, raw_content: str, path: str = "") -> Document:
        """Convert ``raw_content`` and register it under ``note_id``."""
        document = Document(
            id=note_id,
            name=note_id,
            path=path or f"{note_id}{NOTE_SUFFIX}",
            content=self.converter.convert(raw_content),
            raw_content=raw_content,
        )
        self.add_document(document)
        return document

    # ----- Traversal -----

    def scan(self, vault_root: Union[str, Path]) -> List[Node]:
        """Walk ``vault_root``, converting every note and building the tree."""
        self.tree = self._scan_directory(Path(vault_root), "")
        return self.tree

    def _scan_directory(self, dir_path: Path, relative_path: str) -> List[Node]:
        items: List[Node] = []

        try:
            with os.scandir(dir_path) as it:
                entries = sorted(it, key=_entry_sort_key)
        except OSError as e:
            log.error(f"[vault_wiki] error scanning {dir_path}: {e}")
            return items

        for entry in entries:
            # Symlinks are neither notes nor folders
            if entry.is_symlink():
                continue
            rel_path = f"{relative_path}/{entry.name}" if relative_path else entry.name

            if entry.is_dir(follow_symlinks=False):
                if entry.name in self.ignore_dirs:
                    continue
                children = self._scan_directory(Path(entry.path), rel_path)
                # Folders with nothing to show are dropped
                if children:
                    items.append(Folder(name=entry.name, path=rel_path, children=children))
            elif entry.is_file(follow_symlinks=False) and entry.name.endswith(NOTE_SUFFIX):
                document = self._load_note(Path(entry.path), rel_path)
                if document is not None:
                    items.append(Leaf(name=document.name, path=rel_path, note_id=document.id))

        return items

    def _load_note(self, file_path: Path, rel_path: str) -> Optional[Document]:
        try:
            text = file_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            log.error(f"[vault_wiki] could not read {file_path}: {e}")
            return None
        note_id = file_path.name[: -len(NOTE_SUFFIX)]
        log.debug(f"[vault_wiki] converted {rel_path}")
        return self.add_note(note_id, text, rel_path)

    # ----- Resolution -----

    def resolver(self) -> LinkResolver:
        """Return a resolver over the corpus as it stands now."""
        return LinkResolver(self.corpus.keys())

    def references(self) -> List[str]:
        """Every wikilink key used across the corpus, first seen order."""
        seen: Dict[str, None] = {}
        for document in self.corpus.values():
            for key in extract_references(document.content):
                seen.setdefault(key, None)
        return list(seen)

    def link_table(self) -> Dict[str, Optional[str]]:
        """Map each wikilink key to its target note id (None when unresolved)."""
        table = self.resolver().resolve_all(self.references())
        unresolved = [key for key, target in table.items() if target is None]
        for key in unresolved:
            log.info(f"[vault_wiki] unresolved wikilink '{key}'")
        if unresolved:
            log.info(f"[vault_wiki] {len(unresolved)} of {len(table)} wikilinks do not resolve")
        return table

    # ----- Serialisation -----

    def tree_data(self) -> List[Dict[str, Any]]:
        return [node.to_dict() for node in self.tree]

    def corpus_data(self) -> Dict[str, Dict[str, str]]:
        return {note_id: document.to_dict() for note_id, document in self.corpus.items()}
