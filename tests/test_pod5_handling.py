from unittest.mock import MagicMock

from dorado16s import pod5_handling
from dorado16s.pod5_handling import find_pod5_files, get_run_metadata
from tests.conftest import create_files


def test_find_pod5_files_sorted(tmp_path):
    # Arrange
    create_files([tmp_path / f for f in ["b.pod5", "a.pod5", "pass/c.pod5", "other.txt"]])

    # Act
    result = find_pod5_files(tmp_path)

    # Assert
    assert result == [tmp_path / "a.pod5", tmp_path / "b.pod5", tmp_path / "pass" / "c.pod5"]


def test_get_run_metadata_no_complete_files(tmp_path):
    # Arrange
    create_files([tmp_path / "a.pod5"])

    # Act
    result = get_run_metadata([tmp_path / "a.pod5"])

    # Assert
    assert result is None


def test_get_run_metadata(tmp_path, monkeypatch):
    # Arrange
    run_info = MagicMock(
        protocol_run_id="run-1",
        sample_id="library-1",
        sample_rate=5000,
        flow_cell_product_code="flo-pro114m",
        sequencing_kit="sqk-lsk114",
    )
    reader = MagicMock()
    reader.__enter__.return_value = reader
    reader.reads.return_value = iter([MagicMock(run_info=run_info)])
    monkeypatch.setattr(pod5_handling, "is_complete_pod5_file", lambda *args, **kwargs: True)
    monkeypatch.setattr(pod5_handling.pod5, "Reader", MagicMock(return_value=reader))

    # Act
    result = get_run_metadata([tmp_path / "a.pod5"])

    # Assert
    assert result.flow_cell_product_code == "FLO-PRO114M"
    assert result.sequencing_kit == "SQK-LSK114"
    assert result.sample_rate == 5000
