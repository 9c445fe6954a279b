"""
Directive payloads.

Payload grammar (text after % @strudel-of-lilypond@):

    <color> punchcard     enable punchcard in <color>
    gain <value>          number or mini-notation, e.g. <0.5 1 1.5>
    pan <value>           number or mini-notation
    comment <text>        annotation, no effect on output

Directives collect into a voice's Modifiers; the first occurrence of
each key wins. Anything else is logged and ignored.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from chuk_mcp_strudel.models.document import Modifiers

logger = logging.getLogger(__name__)

_PUNCHCARD_RE = re.compile(r"^(\w+)\s+punchcard$")
_KEYED_RE = re.compile(r"^(gain|pan|comment)\s+(.+)$")


@dataclass
class ModifierBuilder:
    """Accumulates directive payloads for one voice."""

    punchcard: str | None = None
    gain: str | None = None
    pan: str | None = None
    comments: list[str] = field(default_factory=list)

    def apply(self, payload: str) -> bool:
        """
        Apply one payload.

        Returns:
            True if the payload was recognised
        """
        payload = payload.strip()
        match = _PUNCHCARD_RE.match(payload)
        if match:
            if self.punchcard is None:
                self.punchcard = match.group(1)
            return True

        match = _KEYED_RE.match(payload)
        if match:
            key, value = match.group(1), match.group(2).strip()
            if key == "comment":
                self.comments.append(value)
            elif getattr(self, key) is None:
                setattr(self, key, value)
            return True

        logger.warning("Ignoring unrecognised directive: %s", payload)
        return False

    def build(self) -> Modifiers:
        return Modifiers(punchcard=self.punchcard, gain=self.gain, pan=self.pan)
