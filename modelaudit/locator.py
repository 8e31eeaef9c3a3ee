"""
Model discovery: finds concrete model classes in the modules under a set
of directories.
"""

from __future__ import annotations

import importlib
import inspect
import logging
from pathlib import Path
from typing import Iterator, List, Sequence

logger: logging.Logger = logging.getLogger("modelaudit.locator")


def is_model_class(candidate: object) -> bool:
    """Concrete (non-abstract) class that maps to a table."""
    if not inspect.isclass(candidate) or inspect.isabstract(candidate):
        return False
    if vars(candidate).get("__abstract__", False):
        return False
    return hasattr(candidate, "__table__") or "__tablename__" in vars(candidate)


class ModuleModelLocator:
    """
    Walks each path for ``.py`` files and imports them under the matching
    module prefix: ``app/models/billing/invoice.py`` with prefix
    ``app.models`` becomes ``app.models.billing.invoice``.
    """

    def locate(self, paths: Sequence[str], modules: Sequence[str]) -> Iterator[type]:
        prefixes: List[str] = list(modules)
        if len(prefixes) == 1 and len(paths) > 1:
            prefixes = prefixes * len(paths)

        seen: set = set()
        for index, raw_path in enumerate(paths):
            root: Path = Path(raw_path)
            prefix: str = (prefixes[index] if index < len(prefixes) else "app.models").strip(".")
            if not root.is_dir():
                logger.warning("Models path does not exist: %s", root)
                continue

            for file in sorted(root.rglob("*.py")):
                relative = file.relative_to(root).with_suffix("")
                parts: List[str] = [p for p in relative.parts if p != "__init__"]
                module_name: str = ".".join([prefix] + parts) if prefix else ".".join(parts)
                if not module_name:
                    continue

                module = importlib.import_module(module_name)
                for _, member in inspect.getmembers(module, is_model_class):
                    if member.__module__ != module.__name__ or member in seen:
                        continue
                    seen.add(member)
                    yield member


__all__: List[str] = ["ModuleModelLocator", "is_model_class"]
