"""Ref-name validation applied before a name reaches a mutating git command.

Follows the rules of ``git check-ref-format`` closely enough to reject
anything unsafe without spawning a process.
"""

import re

from repostate.exceptions import InvalidRefNameError

_REF_CHARS_RE = re.compile(r"[A-Za-z0-9._/\-]+")
_MAX_REF_LENGTH = 255
_FORBIDDEN_SEQUENCES = ("..", "@{", "\\", "\x00")


def is_valid_ref_name(name: str) -> bool:
    if not name or len(name) > _MAX_REF_LENGTH:
        return False
    if name.startswith(("/", "-")) or name.endswith("/") or "//" in name:
        return False
    if any(seq in name for seq in _FORBIDDEN_SEQUENCES):
        return False
    if not _REF_CHARS_RE.fullmatch(name):
        return False
    for component in name.split("/"):
        if component.startswith(".") or component.endswith(".lock"):
            return False
    return True


def validate_ref_name(name: str, kind: str = "branch name") -> str:
    """Return *name* unchanged, or raise InvalidRefNameError."""
    if not is_valid_ref_name(name):
        raise InvalidRefNameError(name, kind)
    return name
