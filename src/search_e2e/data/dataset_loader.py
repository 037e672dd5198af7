"""Load data-driven search cases from JSON or CSV files."""

import csv
import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from ..models.search_models import SearchDataCase

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parents[3]

_FIELD_ALIASES = {
    "term": "term",
    "expectresults": "expectResults",
    "expectedmessage": "expectedMessage",
}


def resolve_data_path(
    path: Union[str, Path], search_roots: Optional[Iterable[Union[str, Path]]] = None
) -> Path:
    """
    Locate a dataset file.

    Absolute paths are used as-is. Relative paths are tried against each
    search root (current directory first, then the project root); when more
    than one exists the most recently modified wins.

    Raises:
        FileNotFoundError: If no candidate exists
    """
    candidate = Path(path)
    if candidate.is_absolute():
        if not candidate.exists():
            raise FileNotFoundError(f"Dataset file '{path}' could not be located.")
        return candidate

    roots = list(search_roots) if search_roots is not None else [Path.cwd(), PROJECT_ROOT]
    candidates: List[Path] = []
    for root in roots:
        full = (Path(root) / candidate).resolve()
        if full not in candidates:
            candidates.append(full)

    existing = [c for c in candidates if c.is_file()]
    if not existing:
        raise FileNotFoundError(
            f"Dataset file '{path}' could not be located (searched: {[str(c) for c in candidates]})"
        )
    return max(existing, key=lambda c: c.stat().st_mtime)


def load_search_cases(
    dataset_key: str,
    path: Union[str, Path],
    search_roots: Optional[Iterable[Union[str, Path]]] = None,
) -> List[SearchDataCase]:
    """
    Load the cases of one dataset.

    Args:
        dataset_key: Dataset identifier (JSON top-level key or CSV ``dataset`` column)
        path: File path, ``.json`` or ``.csv``
        search_roots: Directories to resolve relative paths against

    Returns:
        Cases in file order (empty if the dataset has none)

    Raises:
        FileNotFoundError: If the file cannot be found
        ValueError: If the file extension is not supported
    """
    resolved = resolve_data_path(path, search_roots)
    extension = resolved.suffix.lower()

    if extension == ".json":
        cases = _load_json(resolved, dataset_key)
    elif extension == ".csv":
        cases = _load_csv(resolved, dataset_key)
    else:
        raise ValueError(f"Unsupported dataset format: {extension}")

    logger.info(f"Loaded {len(cases)} case(s) for dataset '{dataset_key}' from {resolved}")
    return cases


def _normalize_case(raw: Dict[str, Any]) -> Dict[str, Any]:
    normalized = {}
    for key, value in raw.items():
        field = _FIELD_ALIASES.get(str(key).strip().lower())
        if field:
            normalized[field] = value
    return normalized


def _load_json(path: Path, dataset_key: str) -> List[SearchDataCase]:
    data = json.loads(path.read_text(encoding="utf-8-sig"))
    if not isinstance(data, dict):
        raise ValueError(f"Dataset file must contain a JSON object: {path}")

    rows = data.get(dataset_key)
    if rows is None:
        matches = [v for k, v in data.items() if k.lower() == dataset_key.lower()]
        rows = matches[0] if matches else None
    if not rows:
        return []

    return [SearchDataCase.model_validate(_normalize_case(row)) for row in rows]


def _parse_bool(value: Optional[str], default: bool = True) -> bool:
    text = (value or "").strip().lower()
    if text == "true":
        return True
    if text == "false":
        return False
    return default


def _load_csv(path: Path, dataset_key: str) -> List[SearchDataCase]:
    with open(path, newline="", encoding="utf-8-sig") as f:
        lines = [line for line in f if line.strip() and not line.lstrip().startswith("#")]

    if len(lines) <= 1:
        return []

    reader = csv.reader(lines, skipinitialspace=True)
    header = [h.strip().lstrip("﻿").lower() for h in next(reader)]

    def column(name: str) -> int:
        return header.index(name) if name in header else -1

    dataset_idx = column("dataset")
    term_idx = column("term")
    expect_idx = column("expectresults")
    message_idx = column("expectedmessage")

    def field(row: List[str], idx: int) -> Optional[str]:
        return row[idx].strip() if 0 <= idx < len(row) else None

    cases = []
    for row in reader:
        if dataset_idx >= 0:
            dataset = field(row, dataset_idx)
            if dataset is None or dataset.lower() != dataset_key.lower():
                continue

        message = field(row, message_idx)
        cases.append(
            SearchDataCase(
                term=field(row, term_idx) or "",
                expect_results=_parse_bool(field(row, expect_idx)),
                expected_message=message or None,
            )
        )

    return cases
