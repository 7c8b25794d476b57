"""
Tests for the tabular parser, record typing and snapshot building.
"""

from types import MappingProxyType

import pytest

from core.config import Settings
from core.data import DataInitError, build_snapshot, load_snapshot, parse_table, read_source, records_from_frame


class TestParseTable:
    def test_header_and_rows_in_source_order(self, sample_csv):
        df = parse_table(sample_csv)
        assert list(df.columns)[:3] == ["age", "n", "alcohol_use"]
        assert df["age"].tolist() == ["12", "13", "14", "18", "19-20", "22-23", "65+"]

    def test_blank_lines_skipped(self):
        df = parse_table("age,x_use\n\n   \n12,1\n\n13,2\n")
        assert len(df) == 2

    def test_values_trimmed_and_crlf_handled(self):
        df = parse_table(" age , x_use \r\n 12 ,  1.5 \r\n")
        assert list(df.columns) == ["age", "x_use"]
        assert df.iloc[0].tolist() == ["12", "1.5"]

    def test_short_rows_padded_with_empty_string(self):
        df = parse_table("age,a_use,a_frequency\n12,1\n")
        assert df.iloc[0]["a_frequency"] == ""

    def test_extra_values_dropped(self):
        df = parse_table("age,a_use\n12,1,999,1000\n")
        assert df.shape == (1, 2)

    def test_quoted_field_keeps_its_comma(self):
        df = parse_table('age,name,x_use\n12,"a,b",1\n')
        assert df.iloc[0].tolist() == ["12", "a,b", "1"]

    def test_repeated_header_keeps_last_column(self):
        df = parse_table("age,x_use,x_use\n12,1,2\n")
        assert list(df.columns) == ["age", "x_use"]
        assert df.iloc[0]["x_use"] == "2"

    def test_empty_text(self):
        assert parse_table("").empty
        assert parse_table("\n \n").empty


class TestRecords:
    def test_non_numeric_fields_become_none(self, sample_csv):
        df = parse_table(sample_csv)
        records = records_from_frame(df, ["alcohol", "cocaine", "heroin"])
        first = records[0]
        assert first.age == "12"
        assert first.use("alcohol") == pytest.approx(3.9)
        assert first.frequency("heroin") is None

    def test_missing_trailing_fields_are_empty(self, sample_csv):
        records = records_from_frame(parse_table(sample_csv), ["heroin"])
        ranged = [r for r in records if r.age == "19-20"][0]
        assert ranged.use("heroin") is None
        assert ranged.fields["heroin_use"] == ""

    def test_unknown_category_is_none(self, sample_csv):
        records = records_from_frame(parse_table(sample_csv), ["alcohol"])
        assert records[0].use("crack") is None

    def test_records_are_read_only(self, sample_csv):
        record = records_from_frame(parse_table(sample_csv), ["alcohol"])[0]
        assert isinstance(record.values, MappingProxyType)
        with pytest.raises(TypeError):
            record.values["alcohol"] = None  # type: ignore[index]


class TestSnapshot:
    def test_builds_indices(self, snapshot):
        assert snapshot.categories == ("alcohol", "cocaine", "heroin")
        assert snapshot.ages == ("12", "13", "14", "18", "19", "20", "22", "23", "65")
        assert snapshot.min_age == 12
        assert snapshot.max_age == 65

    def test_header_only_is_fatal(self):
        with pytest.raises(DataInitError):
            build_snapshot("age,x_use\n")

    def test_missing_file_is_fatal(self, tmp_path):
        missing = tmp_path / "data" / "drug-use-by-age.csv"
        with pytest.raises(DataInitError) as exc_info:
            read_source(missing)
        assert str(missing) in str(exc_info.value)

    def test_load_snapshot_from_settings(self, tmp_path, sample_csv, image_tree):
        data_file = tmp_path / "drug-use-by-age.csv"
        data_file.write_text(sample_csv, encoding="utf-8")
        snap = load_snapshot(Settings(data_file=data_file, img_dir=image_tree))
        assert snap.source == data_file
        assert snap.age_images["18"] == "/static/img/AgePhotos/AgePhotos/Age18.jpg"
        assert snap.age_images["22-23"] == "/static/img/AgePhotos/AgePhotos/Age22-23.png"
        assert snap.category_images["cocaine"] == "/static/img/DrugPhotos/DrugPhotos/Cocaine.JPG"
        assert snap.category_images["alcohol"] is None

    def test_missing_image_root_yields_none(self, tmp_path, sample_csv):
        snap = build_snapshot(sample_csv, img_dir=tmp_path / "does-not-exist")
        assert snap.age_images
        assert all(v is None for v in snap.age_images.values())
        assert all(v is None for v in snap.category_images.values())

    def test_without_image_dir_every_key_maps_to_none(self, sample_csv):
        snap = build_snapshot(sample_csv)
        assert set(snap.age_images) == set(snap.ages) | set(snap.labels)
        assert set(snap.category_images) == set(snap.categories)
        assert all(v is None for v in snap.age_images.values())

    def test_repeated_header_does_not_abort(self):
        snap = build_snapshot("age,x_use,x_use\n12,1,2\n")
        assert snap.categories == ("x",)
        assert snap.records[0].use("x") == 2.0

    def test_byte_order_mark_is_stripped(self, tmp_path):
        path = tmp_path / "data.csv"
        path.write_bytes("age,x_use\n12,1\n".encode("utf-8-sig"))
        assert build_snapshot(read_source(path)).records[0].age == "12"
