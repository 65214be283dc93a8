"""Test session-scoped state and the end-to-end data flow."""

import pandas as pd
import pytest

from pvpr_engine.core.errors import MasterLoadError, MergeError, SchemaError
from pvpr_engine.core.schemas import EngineConfig
from pvpr_engine.session import PRSession

INPUT_CSV = (
    "date,irradiation_kwhm2,panel_area_m2,panel_efficiency_percent,pcs_1-1-1_kwh,pcs_1-1-2_kwh\n"
    "2025-11-01,3.95,1500,20.1,124.5,126.2\n"
    "2025-11-02,3.10,1500,20.1,109.2,111.0\n"
    "2025-11-03,3.55,1500,20.1,127.3,129.4\n"
)


@pytest.fixture
def master_path(tmp_path):
    """Write a master workbook."""
    path = tmp_path / "pvdata.xlsx"
    pd.DataFrame(
        {"PCS番号（通し）": ["PCS 1-1-1", "PCS 2-1-1"], "枚数": [24, 18], "面積": [46.6, 34.9]}
    ).to_excel(path, index=False)
    return path


def test_analyze_shift_jis_file():
    """Test a Shift-JIS file is decoded and analysed."""
    text = INPUT_CSV.replace("2025-11-01", "2025年11月1日")
    session = PRSession()

    dataset = session.analyze_bytes(text.encode("cp932"))

    assert dataset.records[0].date == "2025年11月1日"
    assert dataset.pcs_list == ["1-1-1", "1-1-2"]
    assert session.dataset is dataset


def test_new_load_replaces_dataset():
    """Test each load replaces the previous derived data wholesale."""
    session = PRSession()
    first = session.analyze_bytes(INPUT_CSV.encode("utf-8"))

    second = session.analyze_bytes(INPUT_CSV.replace("pcs_1-1-2", "pcs_9").encode("utf-8"))

    assert session.dataset is second
    assert second is not first
    assert second.pcs_list == ["1-1-1", "9"]


def test_failed_load_leaves_no_stale_dataset():
    """Test a failing load does not keep the previous file's data."""
    session = PRSession()
    session.analyze_bytes(INPUT_CSV.encode("utf-8"))

    with pytest.raises(SchemaError):
        session.analyze_bytes(b"date,pcs_A_kwh\n2025-11-01,1\n")

    assert session.dataset is None


def test_classify_requires_master():
    """Test classification without a master table fails."""
    session = PRSession()

    with pytest.raises(MasterLoadError):
        session.classify_bytes(INPUT_CSV.encode("utf-8"))


def test_master_loaded_once(master_path, tmp_path):
    """Test the master table is read once and then reused."""
    session = PRSession(EngineConfig(master_path=str(master_path)))

    first = session.load_master()
    second = session.load_master(tmp_path / "other.xlsx")

    assert session.master_loaded
    assert first is second

    session.clear_master()
    assert not session.master_loaded


def test_load_master_without_source_fails():
    """Test a session with no configured master path cannot load one."""
    with pytest.raises(MasterLoadError):
        PRSession().load_master()


def test_merge_then_classify(master_path, tmp_path):
    """Test raw exports merged and then grouped by master panel count."""
    export_1 = tmp_path / "export_1.csv"
    export_2 = tmp_path / "export_2.csv"
    export_1.write_bytes(
        "日時,1-1-1_PCS 有効電力量(kWh)\n2025-11-01,124.5\n2025-11-02,109.2\n".encode("cp932")
    )
    export_2.write_bytes(
        "日時,2-1-1_PCS 有効電力量(kWh),3-1-1_PCS 有効電力量(kWh)\nX,1\nY,2\n".encode("utf-8")
    )
    session = PRSession()

    merged = session.merge_files([export_1, export_2])
    merged_path = tmp_path / "merged.csv"
    merged.write_csv(merged_path)

    session.load_master(master_path)
    grouping = session.classify_file(merged_path)

    assert [g.key for g in grouping.groups] == ["24", "18", "unclassified"]
    assert grouping.get_group("unclassified").columns == ["pcs_3-1-1_kwh"]
    assert session.merge_result is None
    assert session.grouping is grouping
    header, rows = grouping.export_matrix("24")
    assert rows == [["2025-11-01", "", "", "", "124.5"], ["2025-11-02", "", "", "", "109.2"]]


def test_unreadable_merge_input_is_skipped(tmp_path):
    """Test a missing file is reported and the rest are still merged."""
    export_1 = tmp_path / "a.csv"
    export_1.write_text("日時,1-1-1_PCS 有効電力量(kWh)\n2025-11-01,124.5\n", encoding="utf-8")

    result = PRSession().merge_files([export_1, tmp_path / "gone.csv"])

    assert result.processed_files == ["a.csv"]
    assert [(w.source, w.kind) for w in result.warnings] == [("gone.csv", "file_skipped")]


def test_merge_fails_when_no_input_is_readable(tmp_path):
    """Test the merge fails when every file is missing."""
    with pytest.raises(MergeError):
        PRSession().merge_files([tmp_path / "gone.csv"])


def test_classify_accepts_trailing_commas(master_path, tmp_path):
    """Test rows ending in a trailing comma are classified normally."""
    path = tmp_path / "merged.csv"
    path.write_text(
        "date,irradiation_kwhm2,panel_area_m2,panel_efficiency_percent,pcs_1-1-1_kwh,pcs_2-1-1_kwh\n"
        "2025-11-01,3.95,1500,20.1,124.5,98.0,\n"
        "2025-11-02,3.10,1500,20.1,109.2,87.5,\n",
        encoding="utf-8",
    )
    session = PRSession()
    session.load_master(master_path)

    grouping = session.classify_file(path)

    assert [g.key for g in grouping.groups] == ["24", "18"]
    header, rows = grouping.export_matrix("18")
    assert header[-1] == "pcs_2-1-1_kwh"
    assert rows[1][-1] == "87.5"
