"""Name rules shared by file, folder and bulk operations."""

import os
import re
from typing import Optional

from ..exceptions import ValidationError

INVALID_NAME_CHARS = re.compile(r'[/\\:*?"<>|]')
DANGEROUS_EXTENSIONS = frozenset({".exe", ".bat", ".cmd", ".scr", ".pif", ".com", ".jar"})

MAX_COPY_ATTEMPTS = 1000


def check_folder_name(name: str) -> None:
    if INVALID_NAME_CHARS.search(name):
        raise ValidationError("Folder name contains invalid characters", field="name")


def check_file_name(name: str, field: str = "originalName") -> None:
    """Reject path separators, reserved characters and executable extensions."""
    if not name.strip():
        raise ValidationError("File name cannot be empty", field=field)
    if INVALID_NAME_CHARS.search(name):
        raise ValidationError(
            'Filename contains invalid characters: / \\ : * ? " < > |', field=field
        )
    if os.path.splitext(name)[1].lower() in DANGEROUS_EXTENSIONS:
        raise ValidationError("File extension not allowed for security reasons", field=field)


def copy_name(name: str, attempt: int) -> str:
    """``Copy of X`` for the first attempt, then ``Copy (2) of X``, ``Copy (3) of X``..."""
    if attempt <= 1:
        return f"Copy of {name}"
    return f"Copy ({attempt}) of {name}"


def render_rename_pattern(
    pattern: str,
    index: int,
    original_name: str,
    stored_filename: str,
) -> str:
    """Expand ``{{index}}``, ``{{original}}`` and ``{{name}}`` in *pattern*.

    ``{{name}}`` is the stored filename without its extension. When the
    result has no extension, the display name's extension (or failing that,
    the stored filename's) is appended.
    """
    stem, stored_ext = os.path.splitext(stored_filename)
    new_name = (
        pattern.replace("{{index}}", str(index))
        .replace("{{original}}", original_name)
        .replace("{{name}}", stem)
    ).strip()

    if not os.path.splitext(new_name)[1]:
        new_name += _extension(original_name) or stored_ext
    return new_name


def _extension(name: str) -> Optional[str]:
    return os.path.splitext(name)[1] or None
