# tests/test_holdout.py
import numpy as np
import pytest

from conftest import HEADER, pixel_line, write_holdout
from features.holdout import (HOLDOUT_COLUMNS, assign_holdout_labels, label_from_filename,
                              parse_holdout_dir, parse_holdout_file)
from utils.errors import DataUnavailable, FileParseError


def test_three_valid_rows_and_one_short_row(tmp_path):
    p = write_holdout(tmp_path / "roi.txt", [
        pixel_line(1), pixel_line(2),
        "1 A B C D E F G H",
        pixel_line(3),
    ])
    df = parse_holdout_file(p)
    assert len(df) == 3
    assert df["ID"].tolist() == ["1", "2", "3"]
    assert list(df.columns[:10]) == HOLDOUT_COLUMNS
    assert df["Blue"].tolist() == [200.0, 200.0, 200.0]
    assert (df["source_file"] == "roi.txt").all()


def test_extra_fields_are_ignored(tmp_path):
    p = write_holdout(tmp_path / "wide.txt", [pixel_line(1) + " 7 8 9", pixel_line(2) + " 7 8 9 10 11"])
    df = parse_holdout_file(p)
    assert len(df) == 2
    assert df[["Red", "Green", "Blue"]].values.tolist() == [[10.0, 20.0, 200.0]] * 2


def test_nine_column_file_is_rejected(tmp_path):
    p = write_holdout(tmp_path / "nine.txt", ["1 2 3 4 5 6 7 8 9"] * 4)
    with pytest.raises(FileParseError, match="9 column"):
        parse_holdout_file(p)


def test_partial_coercion_keeps_clean_rows(tmp_path):
    p = write_holdout(tmp_path / "mixed.txt", [
        pixel_line(1),
        "2 102 202 775000.2 2052000.2 18.52 -72.31 ten 20 200",
        pixel_line(3),
        "4 104 204 775000.4 2052000.4 NA -72.31 10 20 200",
    ])
    df = parse_holdout_file(p)
    assert df["ID"].tolist() == ["1", "3"]


def test_infinite_values_are_dropped(tmp_path):
    p = write_holdout(tmp_path / "inf.txt", [
        pixel_line(1),
        "2 102 202 775000.2 2052000.2 18.52 -72.31 inf 20 200",
        pixel_line(3),
        "4 104 204 775000.4 2052000.4 18.52 -72.31 10 -inf 200",
    ])
    df = parse_holdout_file(p)
    assert df["ID"].tolist() == ["1", "3"]
    assert np.isfinite(df[["Red", "Green", "Blue"]].to_numpy()).all()


def test_utf8_header_is_read(tmp_path):
    header = ["; ENVI Output of ROIs (5.0) région d'intérêt"] + HEADER[1:]
    p = write_holdout(tmp_path / "utf8.txt", [pixel_line(1), pixel_line(2)], header=header)
    assert parse_holdout_file(p)["ID"].tolist() == ["1", "2"]


def test_header_only_file_is_rejected(tmp_path):
    p = write_holdout(tmp_path / "empty.txt", [])
    with pytest.raises(FileParseError):
        parse_holdout_file(p)


def test_empty_directory_gives_empty_table(tmp_path):
    batch = parse_holdout_dir(tmp_path)
    assert batch.records.empty
    assert batch.skipped == []
    assert set(HOLDOUT_COLUMNS).issubset(batch.records.columns)


def test_missing_directory_is_unavailable(tmp_path):
    with pytest.raises(DataUnavailable):
        parse_holdout_dir(tmp_path / "nope")


def test_directory_skips_bad_files_and_keeps_order(tmp_path):
    write_holdout(tmp_path / "b.txt", [pixel_line(20), pixel_line(21)])
    write_holdout(tmp_path / "a.txt", [pixel_line(10)])
    write_holdout(tmp_path / "c.txt", ["1 2 3 4 5 6 7 8 9"])
    (tmp_path / "d.txt").write_bytes(b"\xff\xfe\x00\x81" * 50)
    (tmp_path / "notes.csv").write_text("ignored")

    batch = parse_holdout_dir(tmp_path)
    assert batch.records["ID"].tolist() == ["10", "20", "21"]
    assert batch.records["source_file"].tolist() == ["a.txt", "b.txt", "b.txt"]
    assert [f for f, _ in batch.skipped] == ["c.txt", "d.txt"]


def test_custom_header_length(tmp_path):
    write_holdout(tmp_path / "short.txt", [pixel_line(1)], header=HEADER[:2])
    batch = parse_holdout_dir(tmp_path, header_lines=2)
    assert len(batch.records) == 1


@pytest.mark.parametrize("name,expected", [
    ("orthovnir057_ROI_Blue_Tarps.txt", "BlueTarp"),
    ("orthovnir067_ROI_Blue_Tarps_data.txt", "BlueTarp"),
    ("orthovnir057_ROI_NON_Blue_Tarps.txt", "NonBlueTarp"),
    ("orthovnir078_ROI_NOT_Blue_Tarps.txt", "NonBlueTarp"),
    ("orthovnir069_ROI_Vegetation.txt", None),
])
def test_label_from_filename(name, expected):
    assert label_from_filename(name) == expected


def test_random_labels_are_seeded_placeholders(tmp_path):
    write_holdout(tmp_path / "a.txt", [pixel_line(i) for i in range(40)])
    recs = parse_holdout_dir(tmp_path).records
    a = assign_holdout_labels(recs, "random", seed=3)
    b = assign_holdout_labels(recs, "random", seed=3)
    assert a["y"].tolist() == b["y"].tolist()
    assert set(a["y"]) == {0, 1}
    assert a.attrs["labels_synthetic"] is True


def test_filename_labels(tmp_path):
    write_holdout(tmp_path / "x_Blue_Tarps.txt", [pixel_line(1)])
    write_holdout(tmp_path / "x_NON_Blue_Tarps.txt", [pixel_line(2), pixel_line(3)])
    write_holdout(tmp_path / "x_other.txt", [pixel_line(4)])
    recs = parse_holdout_dir(tmp_path).records
    out = assign_holdout_labels(recs, "filename")
    assert out["ID"].tolist() == ["1", "2", "3"]
    assert out["y_name"].tolist() == ["BlueTarp", "NonBlueTarp", "NonBlueTarp"]
    assert out["y"].tolist() == [1, 0, 0]
    assert out.attrs["labels_synthetic"] is False
