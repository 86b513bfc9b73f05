"""Build ``index.html`` for the vault in the current directory."""

import logging
import sys
from pathlib import Path

from plugins.vault_wiki.plugin import build_wiki

OUTPUT_FILE = "index.html"


def main() -> int:
    # MkDocs normally installs the handlers; outside of it we do
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    vault_root = Path.cwd()
    build_wiki(vault_root, vault_root / OUTPUT_FILE)
    return 0


if __name__ == "__main__":
    sys.exit(main())
