from __future__ import annotations

from dataclasses import replace
from importlib import import_module
from pathlib import Path

from ..gamedata import GameItem

# Dynamically load all catalog modules in this package
ITEMS: list[GameItem] = []
package_path = Path(__file__).parent
for path in sorted(package_path.glob("*.py")):
    if path.stem.startswith("__"):
        continue
    module_name = f"{__name__}.{path.stem}"
    module = import_module(module_name)
    source = getattr(module, "FILE", f"{path.stem}.csv")
    for item in getattr(module, "ITEMS", ()):
        if isinstance(item, GameItem):
            ITEMS.append(replace(item, source_file=source))

__all__ = ["ITEMS"]
