from __future__ import annotations

import io
import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

import pandas as pd

from core.config import Settings
from core.images import build_age_image_map, build_category_image_map
from core.indices import FREQUENCY_SUFFIX, USE_SUFFIX, build_age_index, extract_categories

logger = logging.getLogger(__name__)

AGE_COLUMN = "age"


class DataInitError(Exception):
    """Raised when the source table cannot be loaded; the app must not start."""


@dataclass(frozen=True)
class CategoryValue:
    use: Optional[float] = None
    frequency: Optional[float] = None


@dataclass(frozen=True)
class Record:
    age: str
    values: Mapping[str, CategoryValue] = field(default_factory=dict)
    fields: Mapping[str, str] = field(default_factory=dict)

    def use(self, category: str) -> Optional[float]:
        value = self.values.get(category)
        return value.use if value is not None else None

    def frequency(self, category: str) -> Optional[float]:
        value = self.values.get(category)
        return value.frequency if value is not None else None


@dataclass(frozen=True)
class DataSnapshot:
    """Everything a request may read. Built once, never mutated."""

    records: Tuple[Record, ...]
    ages: Tuple[str, ...]
    categories: Tuple[str, ...]
    age_images: Mapping[str, Optional[str]] = field(default_factory=lambda: MappingProxyType({}))
    category_images: Mapping[str, Optional[str]] = field(default_factory=lambda: MappingProxyType({}))
    source: Optional[Path] = None

    @property
    def labels(self) -> List[str]:
        return [r.age for r in self.records]

    @property
    def min_age(self) -> Optional[int]:
        return int(self.ages[0]) if self.ages else None

    @property
    def max_age(self) -> Optional[int]:
        return int(self.ages[-1]) if self.ages else None


# ---------------- Parsing ----------------
def parse_table(text: str) -> pd.DataFrame:
    """Parse comma-separated text into an all-string frame.

    Blank lines are skipped, values are trimmed, short rows are padded with ""
    and surplus values are dropped. A repeated header keeps its last column.
    Nothing is validated here.
    """
    if not (text or "").strip():
        return pd.DataFrame()
    n_headers = len(pd.read_csv(io.StringIO(text), nrows=0, engine="python").columns)
    rows = pd.read_csv(
        io.StringIO(text),
        header=None,
        names=list(range(n_headers)),
        dtype=str,
        keep_default_na=False,
        skip_blank_lines=True,
        engine="python",
        on_bad_lines=lambda row: row[:n_headers],
    )
    rows = rows.fillna("").apply(lambda col: col.astype(str).str.strip())

    headers = pd.Index([str(h) for h in rows.iloc[0]])
    frame = rows.iloc[1:].reset_index(drop=True)
    frame.columns = headers
    if headers.has_duplicates:
        logger.debug("Repeated headers %s; keeping the last column of each", list(headers[headers.duplicated()]))
        frame = frame.loc[:, ~headers.duplicated(keep="last")]
    return frame


def _to_float(value: object) -> Optional[float]:
    if value is None or pd.isna(value):
        return None
    out = float(value)
    if math.isinf(out):
        return None
    return out


def records_from_frame(frame: pd.DataFrame, categories: Iterable[str]) -> Tuple[Record, ...]:
    if frame.empty:
        return ()
    categories = list(categories)
    numeric: Dict[str, pd.Series] = {}
    for cat in categories:
        for suffix in (USE_SUFFIX, FREQUENCY_SUFFIX):
            col = f"{cat}{suffix}"
            if col in frame.columns:
                numeric[col] = pd.to_numeric(frame[col].replace({"": pd.NA}), errors="coerce")

    records: List[Record] = []
    for idx, row in frame.iterrows():
        fields = {str(k): str(v) for k, v in row.items()}
        values: Dict[str, CategoryValue] = {}
        for cat in categories:
            use_col = f"{cat}{USE_SUFFIX}"
            freq_col = f"{cat}{FREQUENCY_SUFFIX}"
            values[cat] = CategoryValue(
                use=_to_float(numeric[use_col].loc[idx]) if use_col in numeric else None,
                frequency=_to_float(numeric[freq_col].loc[idx]) if freq_col in numeric else None,
            )
        records.append(
            Record(
                age=fields.get(AGE_COLUMN, ""),
                values=MappingProxyType(values),
                fields=MappingProxyType(fields),
            )
        )
    return tuple(records)


def read_source(path: Path) -> str:
    try:
        return Path(path).read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as exc:
        raise DataInitError(
            f"Failed to read data file {path}: {exc}. "
            f"Ensure data/drug-use-by-age.csv exists and is included in your deployed files."
        ) from exc


# ---------------- Snapshot ----------------
def build_snapshot(
    text: str,
    *,
    img_dir: Optional[Path] = None,
    age_image_root: Optional[Path] = None,
    drug_image_root: Optional[Path] = None,
    static_prefix: str = "/static/img",
    source: Optional[Path] = None,
) -> DataSnapshot:
    frame = parse_table(text)
    categories = extract_categories(frame.columns)
    records = records_from_frame(frame, categories)
    if not records:
        raise DataInitError(f"No usable records in {source or 'source text'}.")

    labels = [r.age for r in records]
    ages = build_age_index(labels)

    # Range labels get their own entry so "Age22-23.jpg" is found for the "22-23" page.
    age_keys = list(dict.fromkeys(list(ages) + labels))
    age_images: Dict[str, Optional[str]] = dict.fromkeys(age_keys)
    category_images: Dict[str, Optional[str]] = dict.fromkeys(categories)
    if img_dir is not None:
        age_root = age_image_root or img_dir / "AgePhotos"
        drug_root = drug_image_root or img_dir / "DrugPhotos"
        age_images = build_age_image_map(age_keys, age_root, img_dir, static_prefix)
        category_images = build_category_image_map(categories, drug_root, img_dir, static_prefix)

    snapshot = DataSnapshot(
        records=records,
        ages=ages,
        categories=tuple(categories),
        age_images=MappingProxyType(age_images),
        category_images=MappingProxyType(category_images),
        source=source,
    )
    logger.info(
        "Loaded %d records, ages %s-%s, %d categories, %d/%d age images, %d/%d drug images",
        len(records),
        ages[0] if ages else "?",
        ages[-1] if ages else "?",
        len(categories),
        sum(1 for v in age_images.values() if v),
        len(age_images),
        sum(1 for v in category_images.values() if v),
        len(category_images),
    )
    return snapshot


def load_snapshot(settings: Optional[Settings] = None) -> DataSnapshot:
    settings = settings or Settings.from_env()
    text = read_source(settings.data_file)
    return build_snapshot(
        text,
        img_dir=settings.img_dir,
        age_image_root=settings.age_image_root,
        drug_image_root=settings.drug_image_root,
        static_prefix=settings.static_prefix,
        source=settings.data_file,
    )
