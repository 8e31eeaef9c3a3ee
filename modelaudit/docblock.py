"""
Parser for ``@property`` tags in model docstrings.

Recognised forms (one per line, leading ``*`` decoration allowed)::

    @property int $id
    @property-read ?string $nickname
    @property-write app.enums.Status|null $status
"""

from __future__ import annotations

import re
from typing import Dict, List, Optional

from modelaudit.models import ParsedProperty

_PROPERTY_RE: re.Pattern[str] = re.compile(
    r"^@property(?:-read|-write)?\s+(\S+)\s+\$([A-Za-z_]\w*)",
    re.IGNORECASE,
)
_DECORATION: str = " \t\n\r\0\x0b*"


class DocblockPropertyParser:
    """Turn docstring text into ``{name: ParsedProperty}``."""

    def parse(self, docblock: Optional[str]) -> Dict[str, ParsedProperty]:
        if not docblock:
            return {}

        out: Dict[str, ParsedProperty] = {}
        for line in docblock.splitlines():
            match = _PROPERTY_RE.match(line.strip(_DECORATION))
            if match is None:
                continue

            type_string, name = match.group(1), match.group(2)
            nullable: bool = False
            types: List[str] = []

            for alternative in type_string.split("|"):
                token: str = alternative.lstrip("\\")
                if not token:
                    continue
                if token.startswith("?"):
                    nullable = True
                    token = token[1:].lstrip("\\")
                if token.lower() == "null":
                    nullable = True
                    continue
                if token and token not in types:
                    types.append(token)

            # A repeated name replaces the earlier declaration.
            out[name] = ParsedProperty(
                name=name,
                types=tuple(types),
                nullable=nullable,
                raw=type_string,
            )

        return out


__all__: List[str] = ["DocblockPropertyParser"]
