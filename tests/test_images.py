"""
Tests for image lookup strategies.
"""

import logging
from pathlib import Path

import pytest

from core.images import (
    age_bucket,
    bucket_fallback,
    build_age_image_map,
    build_category_image_map,
    directory_name,
    exact_name,
    find_age_image,
    find_category_image,
    to_url,
)


@pytest.fixture
def age_root(image_tree) -> Path:
    return image_tree / "AgePhotos"


@pytest.fixture
def drug_root(image_tree) -> Path:
    return image_tree / "DrugPhotos"


@pytest.mark.parametrize(
    "key,bucket",
    [("12", "Age19"), ("19", "Age19"), ("27", "Age26-29"), ("55", "Age50-64"), ("70", "Age65+"), ("22", "Age26-29"), ("35", "Age26-29"), ("22-23", None), ("abc", None)],
)
def test_age_bucket(key, bucket):
    assert age_bucket(key) == bucket


def test_exact_name_prefers_nested_folder(age_root):
    assert exact_name(age_root, "18") == age_root / "AgePhotos" / "Age18.jpg"
    assert exact_name(age_root, "22-23") == age_root / "AgePhotos" / "Age22-23.png"


def test_exact_name_skips_directories(age_root):
    # Age20 is a folder, not a photo
    assert exact_name(age_root, "20") is None


def test_directory_name_takes_first_image(age_root):
    assert directory_name(age_root, "20") == age_root / "Age20" / "portrait.PNG"
    assert directory_name(age_root, "65+") == age_root / "AgePhotos" / "Age65+" / "senior.jpg"


def test_bucket_fallback(age_root):
    assert bucket_fallback(age_root, "13") == age_root / "Age19" / "group.webp"
    assert bucket_fallback(age_root, "65") == age_root / "AgePhotos" / "Age65+" / "senior.jpg"
    assert bucket_fallback(age_root, "40") is None


def test_strategies_run_in_order(age_root):
    assert find_age_image(age_root, "18") == age_root / "AgePhotos" / "Age18.jpg"
    assert find_age_image(age_root, "20") == age_root / "Age20" / "portrait.PNG"
    assert find_age_image(age_root, "14") == age_root / "Age19" / "group.webp"
    assert find_age_image(age_root, "23") is None


def test_failing_strategy_is_skipped(age_root):
    def broken(root, key):
        raise PermissionError("denied")

    strategies = (("broken", broken), ("exact_name", exact_name))
    assert find_age_image(age_root, "18", strategies) == age_root / "AgePhotos" / "Age18.jpg"


def test_category_image_substring_match(drug_root):
    assert find_category_image(drug_root, "cocaine") == drug_root / "DrugPhotos" / "Cocaine.JPG"
    assert find_category_image(drug_root, "heroin") == drug_root / "heroin-pile.jpeg"
    assert find_category_image(drug_root, "alcohol") is None


def test_missing_root_never_raises(tmp_path):
    root = tmp_path / "nowhere"
    assert build_age_image_map(["12", "22-23", "abc"], root, tmp_path, "/static/img") == {"12": None, "22-23": None, "abc": None}
    assert build_category_image_map(["cocaine"], root, tmp_path, "/static/img") == {"cocaine": None}


def test_to_url(image_tree, age_root):
    path = age_root / "AgePhotos" / "Age18.jpg"
    assert to_url(path, image_tree, "/static/img/") == "/static/img/AgePhotos/AgePhotos/Age18.jpg"
    assert to_url(None, image_tree, "/static/img") is None
    assert to_url(Path("/elsewhere/x.jpg"), image_tree, "/static/img") is None


def test_to_url_outside_static_root_is_logged(image_tree, caplog):
    with caplog.at_level(logging.DEBUG, logger="core.images"):
        assert to_url(Path("/elsewhere/x.jpg"), image_tree, "/static/img") is None
    assert "outside the static root" in caplog.text
