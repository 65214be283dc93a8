"""Test master table loading and PCS grouping."""

import pandas as pd
import pytest

from pvpr_engine.core.constants import REQUIRED_COLUMNS, UNCLASSIFIED_KEY
from pvpr_engine.core.errors import MasterLoadError, NoDeviceColumnsError, RowDataError, SchemaError
from pvpr_engine.core.grouping import classify_matrix, group_pcs_columns
from pvpr_engine.core.schemas import MasterEntry, PcsColumn
from pvpr_engine.io.formats import ParsedMatrix, parse_csv_matrix
from pvpr_engine.io.master import build_master_map, load_master_table


@pytest.fixture
def master():
    """Create a master lookup."""
    entries = [
        MasterEntry(pcs_id="PCS 1-7-1", count=24, area=46.6),
        MasterEntry(pcs_id="PCS 1-7-2", count=24, area=46.6),
        MasterEntry(pcs_id="PCS 2-1-1", count=18, area=34.9),
    ]
    return {entry.pcs_id: entry for entry in entries}


@pytest.fixture
def matrix():
    """Create a merged table with three known and one unknown PCS."""
    text = (
        "date,irradiation_kwhm2,panel_area_m2,panel_efficiency_percent,"
        "pcs_1-7-1_kwh,pcs_2-1-1_kwh,pcs_9-9-9_kwh,pcs_1-7-2_kwh\n"
        "2025-11-01,3.95,1500,20.1,10,20,30,40\n"
        "2025-11-02,3.10,1500,20.1,11,21,31,41\n"
    )
    return parse_csv_matrix(text)


def test_groups_keyed_and_labelled_by_count(matrix, master):
    """Test columns land in the group of their master panel count."""
    result = classify_matrix(matrix, master)

    group = result.get_group("24")
    assert group.label == "24枚"
    assert group.count == 24
    assert group.columns == ["pcs_1-7-1_kwh", "pcs_1-7-2_kwh"]


def test_groups_partition_pcs_columns(matrix, master):
    """Test every PCS column belongs to exactly one group."""
    result = classify_matrix(matrix, master)

    members = [col for group in result.groups for col in group.columns]
    assert sorted(members) == sorted(
        ["pcs_1-7-1_kwh", "pcs_2-1-1_kwh", "pcs_9-9-9_kwh", "pcs_1-7-2_kwh"]
    )
    assert len(members) == len(set(members))


def test_group_order_and_default_selection(matrix, master):
    """Test larger groups first, unclassified last, first group active."""
    result = classify_matrix(matrix, master)

    assert [g.key for g in result.groups] == ["24", "18", UNCLASSIFIED_KEY]
    assert result.active_key == "24"
    assert result.groups[-1].label == "未分類"


def test_ties_broken_by_descending_count():
    """Test equal-size groups are ordered by panel count, descending."""
    master = {
        "PCS 1": MasterEntry(pcs_id="PCS 1", count=18),
        "PCS 2": MasterEntry(pcs_id="PCS 2", count=24),
    }
    columns = [PcsColumn(header="pcs_1_kwh", pcs_id="1"), PcsColumn(header="pcs_2_kwh", pcs_id="2")]

    groups, unmatched = group_pcs_columns(columns, master)

    assert [g.key for g in groups] == ["24", "18"]
    assert unmatched == []


def test_unclassified_always_last_even_when_largest():
    """Test unclassified sorts last regardless of its size."""
    master = {"PCS 1": MasterEntry(pcs_id="PCS 1", count=24)}
    columns = [PcsColumn(header=f"pcs_{i}_kwh", pcs_id=str(i)) for i in range(1, 5)]

    groups, unmatched = group_pcs_columns(columns, master)

    assert [g.key for g in groups] == ["24", UNCLASSIFIED_KEY]
    assert unmatched == ["pcs_2_kwh", "pcs_3_kwh", "pcs_4_kwh"]


def test_unmatched_warning_caps_examples(master):
    """Test the warning names at most three unmatched columns, each once."""
    unknown = [f"pcs_9-9-{i}_kwh" for i in range(1, 6)]
    text = ",".join(REQUIRED_COLUMNS + unknown) + "\n" + ",".join(["d1", "1", "1", "1"] + ["0"] * 5)

    result = classify_matrix(parse_csv_matrix(text), master)

    assert result.unmatched_columns == unknown
    assert len(result.warnings) == 1
    warning = result.warnings[0]
    assert warning.kind == "unmatched_master"
    for header in unknown[:3]:
        assert warning.message.count(header) == 1
    for header in unknown[3:]:
        assert header not in warning.message


def test_no_warning_when_all_matched(master):
    """Test fully matched tables produce no warning."""
    text = ",".join(REQUIRED_COLUMNS + ["pcs_1-7-1_kwh"]) + "\nd1,1,1,1,5\n"

    result = classify_matrix(parse_csv_matrix(text), master)

    assert result.warnings == []
    assert [g.key for g in result.groups] == ["24"]


def test_export_matrix_subsets_columns(matrix, master):
    """Test export keeps required columns plus the group's columns, in row order."""
    result = classify_matrix(matrix, master)

    header, rows = result.export_matrix("24")

    assert header == REQUIRED_COLUMNS + ["pcs_1-7-1_kwh", "pcs_1-7-2_kwh"]
    assert rows == [
        ["2025-11-01", "3.95", "1500", "20.1", "10", "40"],
        ["2025-11-02", "3.10", "1500", "20.1", "11", "41"],
    ]


def test_select_changes_default_export(matrix, master):
    """Test selecting a group changes the active export."""
    result = classify_matrix(matrix, master)

    result.select("18")
    header, _ = result.export_matrix()

    assert header[-1] == "pcs_2-1-1_kwh"
    with pytest.raises(KeyError):
        result.select("99")


def test_headers_are_trimmed(master):
    """Test surrounding whitespace in header cells is ignored."""
    text = " date , irradiation_kwhm2,panel_area_m2,panel_efficiency_percent, pcs_1-7-1_kwh \nd1,1,1,1,5\n"

    result = classify_matrix(parse_csv_matrix(text), master)

    assert result.groups[0].columns == ["pcs_1-7-1_kwh"]


def test_classification_is_case_sensitive(master):
    """Test upper-case PCS wrappers are not discovered on this path."""
    text = ",".join(REQUIRED_COLUMNS + ["PCS_1-7-1_KWH"]) + "\nd1,1,1,1,5\n"

    with pytest.raises(NoDeviceColumnsError):
        classify_matrix(parse_csv_matrix(text), master)


def test_header_only_table_is_an_error(master):
    """Test a table without data rows fails."""
    with pytest.raises(RowDataError):
        classify_matrix(ParsedMatrix(header=REQUIRED_COLUMNS + ["pcs_1-7-1_kwh"]), master)


def test_missing_required_column_is_an_error(master):
    """Test the schema gate on the classification path."""
    text = "date,pcs_1-7-1_kwh\nd1,5\n"

    with pytest.raises(SchemaError):
        classify_matrix(parse_csv_matrix(text), master)


def test_build_master_map_accepts_id_variants():
    """Test alternative id column spellings and loose numeric cells."""
    df = pd.DataFrame(
        {
            "PCS番号(通し)": ["PCS 1-7-1", " PCS 2-1-1 ", None],
            "枚数": ["24", 18.0, 10],
            "面積": [46.6, "34.9", None],
        }
    )

    master = build_master_map(df)

    assert set(master) == {"PCS 1-7-1", "PCS 2-1-1"}
    assert master["PCS 1-7-1"].count == 24
    assert master["PCS 2-1-1"].count == 18
    assert master["PCS 2-1-1"].area == pytest.approx(34.9)


def test_build_master_map_without_ids_fails():
    """Test a sheet with no recognisable id column is rejected."""
    df = pd.DataFrame({"name": ["a"], "枚数": [24]})

    with pytest.raises(MasterLoadError):
        build_master_map(df)


def test_load_master_table_from_workbook(tmp_path):
    """Test reading the first sheet of a master workbook."""
    path = tmp_path / "pvdata.xlsx"
    pd.DataFrame(
        {"No": [1, 2], "PCS番号（通し）": ["PCS 1-7-1", "PCS 1-7-2"], "枚数": [24, 24], "面積": [46.6, 46.6]}
    ).to_excel(path, index=False)

    master = load_master_table(path)

    assert set(master) == {"PCS 1-7-1", "PCS 1-7-2"}
    assert master["PCS 1-7-2"].count == 24


def test_load_master_table_missing_file(tmp_path):
    """Test an unreachable master table fails with MasterLoadError."""
    with pytest.raises(MasterLoadError):
        load_master_table(tmp_path / "missing.xlsx")


def test_load_master_table_keeps_parser_cause(tmp_path):
    """Test a corrupt workbook fails with the reader error chained."""
    path = tmp_path / "pvdata.xlsx"
    path.write_bytes(b"not a workbook")

    with pytest.raises(MasterLoadError) as excinfo:
        load_master_table(path)

    assert excinfo.value.__cause__ is not None


def test_write_all_groups_one_sheet_each(matrix, master, tmp_path):
    """Test the combined export has one sheet per group, in group order."""
    result = classify_matrix(matrix, master)
    path = tmp_path / "groups.xlsx"

    result.write_all(path)

    assert pd.ExcelFile(path).sheet_names == ["24枚", "18枚", "未分類"]
    sheet = pd.read_excel(path, sheet_name="24枚", dtype=str)
    assert list(sheet.columns) == REQUIRED_COLUMNS + ["pcs_1-7-1_kwh", "pcs_1-7-2_kwh"]
    assert len(sheet) == 2
