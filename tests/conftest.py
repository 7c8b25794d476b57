"""
Shared fixtures for the viewer tests.
"""

from pathlib import Path

import pytest

from core.data import build_snapshot


SAMPLE_CSV = """age,n,alcohol_use,alcohol_frequency,cocaine_use,cocaine_frequency,heroin_use,heroin_frequency
12,100,3.9,3.0,0.1,5.0,0.0,-
13,100,8.5,6.0,0.0,1.0,0.1,35.5

14,100,18.1,5.0,0.1,5.5,0.1,2.0
18,100,58.7,24.0,3.2,5.0,0.4,46.0
19-20,100,64.6,36.0,4.1,5.5
22-23,100,84.2,52.0,4.5,5.0,1.1,57.5
65+,100,49.3,52.0,0.0,-,0.0,120.0
"""


@pytest.fixture
def sample_csv() -> str:
    return SAMPLE_CSV


@pytest.fixture
def snapshot():
    """Snapshot without any image lookup."""
    return build_snapshot(SAMPLE_CSV)


def _touch(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"")
    return path


@pytest.fixture
def image_tree(tmp_path) -> Path:
    """Create a small img/ tree covering every lookup strategy."""
    img = tmp_path / "img"
    age_root = img / "AgePhotos"
    _touch(age_root / "AgePhotos" / "Age18.jpg")
    _touch(age_root / "AgePhotos" / "Age22-23.png")
    _touch(age_root / "Age20" / "notes.txt")
    _touch(age_root / "Age20" / "portrait.PNG")
    _touch(age_root / "Age19" / "group.webp")
    _touch(age_root / "AgePhotos" / "Age65+" / "senior.jpg")
    drug_root = img / "DrugPhotos"
    _touch(drug_root / "DrugPhotos" / "Cocaine.JPG")
    _touch(drug_root / "alcohol_notes.txt")
    _touch(drug_root / "heroin-pile.jpeg")
    return img
