# config.py
# Loads package descriptions (YAML, optionally embedded in a wiki page) and
# merges their `inherits` chain into flat extensions/skins tables.

from __future__ import annotations

import re
import urllib.error
import urllib.request
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

KINDS = ("extensions", "skins")

_SYNTAXHIGHLIGHT_RE = re.compile(
    r"""<syntaxhighlight\s+lang=["']yaml["']>(.*?)</syntaxhighlight>""",
    re.IGNORECASE | re.DOTALL,
)


class ConfigError(Exception):
    """Raised when a package description can't be read or understood."""
    pass


def _is_url(source: str) -> bool:
    return source.startswith(("http://", "https://"))


def read_source(source: str, timeout: float = 30.0) -> str:
    """Return the text of a local file or an http(s) URL."""
    if _is_url(source):
        try:
            with urllib.request.urlopen(source, timeout=timeout) as response:
                return response.read().decode("utf-8")
        except urllib.error.URLError as e:
            raise ConfigError(f"Could not fetch {source}: {e}") from e

    path = Path(source).expanduser()
    try:
        return path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Could not read {path}: {e}") from e


def extract_yaml(text: str) -> str:
    """If the text is a wiki page with a yaml syntaxhighlight block, keep only the block."""
    m = _SYNTAXHIGHLIGHT_RE.search(text)
    if m:
        return m.group(1)
    return text


def _resolve_inherit(parent: str, source: str) -> str:
    # relative inherits are resolved against the including file
    if _is_url(parent) or Path(parent).is_absolute() or _is_url(source):
        return parent
    return str(Path(source).expanduser().parent / parent)


def _entries(source: str, kind: str, raw: Any) -> List[tuple[str, Dict[str, Any]]]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ConfigError(f"{source}: '{kind}' must be a list, got {type(raw).__name__}")

    out: List[tuple[str, Dict[str, Any]]] = []
    for item in raw:
        if isinstance(item, str):
            # `- Foo` with no body
            out.append((item, {}))
            continue
        if not isinstance(item, dict) or len(item) != 1:
            raise ConfigError(f"{source}: each '{kind}' entry must be a single-key mapping, got {item!r}")
        name, data = next(iter(item.items()))
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError(f"{source}: {kind}/{name} must map to a mapping, got {type(data).__name__}")
        out.append((str(name), data))
    return out


def load_contents(
    source: str,
    contents: Optional[Dict[str, Dict[str, Dict[str, Any]]]] = None,
    _stack: Optional[List[str]] = None,
) -> Dict[str, Dict[str, Dict[str, Any]]]:
    """
    Load `source` and everything it inherits from.

    Parents are applied first, so an entry in a child file replaces the
    parent's entry of the same name.

    Returns:
      {"extensions": {name: data, ...}, "skins": {name: data, ...}}

    Raises:
      ConfigError on unreadable sources, malformed YAML, or inheritance cycles
    """
    if contents is None:
        contents = {kind: {} for kind in KINDS}
    stack = list(_stack or [])

    key = source if _is_url(source) else str(Path(source).expanduser().resolve())
    if key in stack:
        chain = " -> ".join(stack + [key])
        raise ConfigError(f"Inheritance cycle: {chain}")
    stack.append(key)

    text = extract_yaml(read_source(source))
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {source}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"{source}: top level must be a mapping, got {type(data).__name__}")

    parent = data.get("inherits")
    if parent:
        load_contents(_resolve_inherit(str(parent), source), contents, stack)

    for kind in KINDS:
        for name, entry in _entries(source, kind, data.get(kind)):
            contents[kind][name] = entry

    return contents
