from __future__ import annotations

from typing import Dict, Tuple

# Class count the defect model ships with when it has no embedded labels.
DEFAULT_CLASS_COUNT = 7


def fallback_labels(count: int = DEFAULT_CLASS_COUNT) -> Tuple[str, ...]:
    return tuple(f"Class {i}" for i in range(count))


def load_labels(metadata_path: str) -> Tuple[str, ...]:
    """
    Load the ordered label list from a lightweight `metadata.yaml`:

        names:
          0: scratch
          1: dent
          ...

    Parsed by hand so PyYAML is not needed. Ids must run 0..N-1 without gaps,
    since position i is matched to class score channel i.
    """

    names: Dict[int, str] = {}
    in_names = False

    with open(metadata_path, "r", encoding="utf-8") as f:
        for raw in f:
            line = raw.strip()
            if not line or line.startswith("#"):
                continue
            if line == "names:":
                in_names = True
                continue
            if not in_names:
                continue
            if not raw[:1].isspace():
                # next top-level key
                break

            if ":" not in line:
                continue
            left, right = line.split(":", 1)
            left = left.strip()
            right = right.strip().strip("'").strip('"')
            if not left.isdigit():
                continue
            names[int(left)] = right

    if not names:
        raise ValueError(f"No class names found in {metadata_path}")
    expected = list(range(len(names)))
    if sorted(names) != expected:
        raise ValueError(f"Class ids in {metadata_path} must be contiguous from 0, got {sorted(names)}")
    return tuple(names[i] for i in expected)
