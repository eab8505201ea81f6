"""
Formatting helpers for Canvas Sync: local names and human readable sizes.
"""

import unicodedata

# Course, folder and file names on Canvas are free text ("Week 1: Intro",
# "Q&A / Review?"). Characters no common filesystem accepts are mapped to
# something readable; a slash must never split a name into two components.
REPLACEMENTS = {
    "/": "-",
    "\\": "-",
    ":": " -",
    "<": "-",
    ">": "-",
    "|": "-",
    '"': "'",
    "?": "",
    "*": "",
}
REPLACEMENTS.update({chr(code): "_" for code in range(32)})
REPLACEMENTS[chr(127)] = "_"

_TRANSLATION = str.maketrans(REPLACEMENTS)

# Device names Windows refuses as file names, with or without an extension
RESERVED_NAMES = frozenset(
    ["CON", "PRN", "AUX", "NUL"]
    + [f"COM{n}" for n in range(1, 10)]
    + [f"LPT{n}" for n in range(1, 10)]
)


def sanitize_filename(name: str) -> str:
    """
    Turn a Canvas course, folder or file name into one local path component.

    - Unicode is normalized to NFC, so a name synced on macOS compares equal
      to the one Canvas sends.
    - Separators and characters Windows rejects are replaced, and control
      characters become "_".
    - Trailing dots and spaces are dropped (Windows drops them anyway, and
      the next run would then miss the file).
    - Windows device names get a "_" prefix.
    - A name left empty, including "." and "..", becomes "_".

    Names without any of the above are returned unchanged. Different names
    can map to the same result; see planner.local_names().
    """
    name = unicodedata.normalize("NFC", name).translate(_TRANSLATION).rstrip(". ")

    if name.split(".", 1)[0].upper() in RESERVED_NAMES:
        name = "_" + name

    return name or "_"


def format_size(size_bytes: int) -> str:
    """Format bytes as human readable string."""
    for unit in ["B", "KB", "MB", "GB", "TB"]:
        if size_bytes < 1024:
            return f"{size_bytes:.1f} {unit}"
        size_bytes /= 1024
    return f"{size_bytes:.1f} PB"
