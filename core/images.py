"""Best-effort image lookup for age and drug-type pages.

Lookups never raise: a missing root, an unreadable directory or no match all
come back as None. Age lookups run an ordered list of strategies and stop at
the first hit.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from core.indices import parse_number

logger = logging.getLogger(__name__)

IMAGE_SUFFIXES = {".jpg", ".jpeg", ".png", ".webp"}

Strategy = Callable[[Path, str], Optional[Path]]


def is_image(path: Path) -> bool:
    return path.suffix.lower() in IMAGE_SUFFIXES


def search_dirs(root: Path) -> List[Path]:
    # Many photos live under a nested folder of the same name, e.g. AgePhotos/AgePhotos.
    return [root / root.name, root]


def _list_dir(path: Path) -> List[Path]:
    try:
        return sorted(path.iterdir(), key=lambda p: p.name)
    except OSError as exc:
        logger.debug("Cannot list %s: %s", path, exc)
        return []


def first_image_in(path: Path) -> Optional[Path]:
    for entry in _list_dir(path):
        try:
            if entry.is_file() and is_image(entry):
                return entry
        except OSError:
            continue
    return None


def age_bucket(key: str) -> Optional[str]:
    """Coarse folder used when an age has no photo of its own."""
    n = parse_number(key)
    if n is None:
        return None
    if n <= 19:
        return "Age19"
    if 26 <= n <= 29:
        return "Age26-29"
    if 50 <= n <= 64:
        return "Age50-64"
    if n >= 65:
        return "Age65+"
    return "Age26-29"


def exact_name(root: Path, key: str) -> Optional[Path]:
    prefix = f"age{key}".lower()
    for directory in search_dirs(root):
        for entry in _list_dir(directory):
            if entry.name.lower().startswith(prefix) and is_image(entry):
                return entry
    return None


def directory_name(root: Path, key: str) -> Optional[Path]:
    wanted = f"age{key}".lower()
    for directory in search_dirs(root):
        for entry in _list_dir(directory):
            if entry.name.lower() == wanted and entry.is_dir():
                found = first_image_in(entry)
                if found is not None:
                    return found
    return None


def bucket_fallback(root: Path, key: str) -> Optional[Path]:
    group = age_bucket(key)
    if group is None:
        return None
    for directory in search_dirs(root):
        found = first_image_in(directory / group)
        if found is not None:
            return found
    return None


AGE_STRATEGIES: Tuple[Tuple[str, Strategy], ...] = (
    ("exact_name", exact_name),
    ("directory_name", directory_name),
    ("bucket_fallback", bucket_fallback),
)


def find_age_image(root: Path, key: str, strategies: Iterable[Tuple[str, Strategy]] = AGE_STRATEGIES) -> Optional[Path]:
    for name, strategy in strategies:
        try:
            found = strategy(root, key)
        except OSError as exc:
            logger.debug("Image strategy %s failed for age %s: %s", name, key, exc)
            continue
        if found is not None:
            return found
    return None


def find_category_image(root: Path, category: str) -> Optional[Path]:
    needle = category.lower()
    for directory in search_dirs(root):
        for entry in _list_dir(directory):
            if needle in entry.name.lower() and is_image(entry):
                return entry
    return None


def to_url(path: Optional[Path], base_dir: Path, prefix: str) -> Optional[str]:
    """Render a found file as a URL under the static image mount."""
    if path is None:
        return None
    try:
        rel = path.relative_to(base_dir)
    except ValueError:
        logger.debug("Image %s is outside the static root %s; not served", path, base_dir)
        return None
    return f"{prefix.rstrip('/')}/{rel.as_posix()}"


def build_age_image_map(keys: Iterable[str], root: Path, base_dir: Path, prefix: str) -> Dict[str, Optional[str]]:
    return {key: to_url(find_age_image(root, key), base_dir, prefix) for key in keys}


def build_category_image_map(categories: Iterable[str], root: Path, base_dir: Path, prefix: str) -> Dict[str, Optional[str]]:
    return {cat: to_url(find_category_image(root, cat), base_dir, prefix) for cat in categories}
