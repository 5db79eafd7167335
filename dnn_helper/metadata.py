from __future__ import annotations

from pathlib import Path
from typing import Dict, Union


def load_class_names(path: Union[str, Path]) -> Dict[int, str]:
    """
    Load class names for a model.

    Two formats are understood:

    - Darknet `.names` files: one name per line, the line index is the class id
      (blank lines are skipped without consuming an id).
      Any file with the `.names` suffix is read this way.
    - A `names:` mapping, as exported next to YOLO models (the first
      non-comment line must be `names:`):

        names:
          0: person
          1: bicycle
    """

    path = Path(path)
    lines = path.read_text(encoding="utf-8").splitlines()
    if path.suffix.lower() != ".names" and _first_entry(lines) == "names:":
        return _parse_names_mapping(lines)

    names: Dict[int, str] = {}
    for raw in lines:
        name = raw.strip()
        if name:
            names[len(names)] = name
    return names


def _first_entry(lines) -> str:
    for raw in lines:
        line = raw.strip()
        if line and not line.startswith("#"):
            return line
    return ""


def _parse_names_mapping(lines) -> Dict[int, str]:
    names: Dict[int, str] = {}
    in_names = False
    for raw in lines:
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        if line == "names:":
            in_names = True
            continue
        if not in_names or ":" not in line:
            continue

        left, right = line.split(":", 1)
        left = left.strip()
        if not left.isdigit():
            continue
        names[int(left)] = right.strip().strip("'").strip('"')
    return names
