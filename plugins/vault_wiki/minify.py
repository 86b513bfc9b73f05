"""
Minification of the generated wiki page and its inline assets.
"""

import logging
from typing import Callable, Dict, Optional, Tuple, Union

import csscompressor
import htmlmin
import jsmin

# Use MkDocs' recommended plugin logger namespace so debug logs appear only with `--verbose`.
logger = logging.getLogger(f"mkdocs.plugins.{__name__}")

# Minifier dispatch table for the inline JS/CSS. HTML is handled via `htmlmin2` package.
MINIFIERS: Dict[str, Callable] = {
    "js": jsmin.jsmin,
    "css": csscompressor.compress,
}


def minify_asset(data: str, asset_type: str) -> str:
    """Run the minifier registered for ``asset_type`` ("js" or "css")."""
    minify_func = MINIFIERS[asset_type]
    if minify_func.__name__ == "jsmin":
        return minify_func(data, quote_chars="'\"`")
    return minify_func(data)


def minify_html(output: str, htmlmin_opts: Optional[Dict] = None) -> str:
    """Minify HTML; ``htmlmin_opts`` overrides the defaults below, unknown keys are ignored."""
    output_opts: Dict[str, Union[bool, str, Tuple[str, ...]]] = {
        "remove_comments": True,
        "remove_empty_space": True,
        "remove_all_empty_space": False,
        "reduce_empty_attributes": True,
        "reduce_boolean_attributes": False,
        "remove_optional_attribute_quotes": False,
        "convert_charrefs": True,
        "keep_pre": False,
        "pre_tags": ("pre", "textarea", "script", "style"),
        "pre_attr": "pre",
    }

    for key, value in (htmlmin_opts or {}).items():
        if key in output_opts:
            output_opts[key] = value
        else:
            logger.warning("htmlmin option '%s' not recognized", key)

    minified = htmlmin.minify(output, **output_opts)
    logger.debug("[vault_wiki] minified page %d -> %d chars", len(output), len(minified))
    return minified
