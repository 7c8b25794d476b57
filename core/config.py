from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

# ---------------------------------------------------------------------------
# Project paths
# ---------------------------------------------------------------------------

# Root of the project (repo root)
PROJECT_ROOT = Path(__file__).resolve().parents[1]

DATA_DIR = PROJECT_ROOT / "data"
DATA_FILE = DATA_DIR / "drug-use-by-age.csv"

# Image roots. Each may hold a same-named nested folder, e.g. img/AgePhotos/AgePhotos
IMG_DIR = PROJECT_ROOT / "img"
AGE_PHOTOS = "AgePhotos"
DRUG_PHOTOS = "DrugPhotos"

# URL prefix the image dir is mounted under
STATIC_IMG_PREFIX = "/static/img"

# ---------------------------------------------------------------------------
# App identity
# ---------------------------------------------------------------------------

APP_NAME = "Drug Use Dynamic Viewer"
APP_VERSION = "0.1.0"

DEFAULT_PORT = 3000


@dataclass(frozen=True)
class Settings:
    data_file: Path = DATA_FILE
    img_dir: Path = IMG_DIR
    static_prefix: str = STATIC_IMG_PREFIX
    port: int = DEFAULT_PORT

    @property
    def age_image_root(self) -> Path:
        return self.img_dir / AGE_PHOTOS

    @property
    def drug_image_root(self) -> Path:
        return self.img_dir / DRUG_PHOTOS

    @classmethod
    def from_env(cls) -> "Settings":
        data_file = os.getenv("DRUG_USE_DATA_FILE", "").strip()
        img_dir = os.getenv("DRUG_USE_IMG_DIR", "").strip()
        port = os.getenv("PORT", "").strip()
        try:
            port_num = int(port) if port else DEFAULT_PORT
        except ValueError:
            port_num = DEFAULT_PORT
        return cls(
            data_file=Path(data_file) if data_file else DATA_FILE,
            img_dir=Path(img_dir) if img_dir else IMG_DIR,
            port=port_num,
        )
