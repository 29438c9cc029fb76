"""Log format detection from the first non-blank line of a file."""

from pathlib import Path

JSON = "json"
XML = "xml"
TEXT = "text"


def detect_format(path: str | Path) -> str:
    """Classify a log file as ``json``, ``xml`` or ``text``.

    Raises OSError if the file cannot be opened.
    """
    with open(path, encoding="utf-8", errors="ignore") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            if line.startswith("{") and line.endswith("}"):
                return JSON
            if line.startswith("<"):
                return XML
            return TEXT
    return TEXT
