"""
Tests for the output module.
"""
import json
import os
import pytest
import pandas as pd
from datetime import date
from decimal import Decimal
from unittest.mock import patch

from schemafill import SchemaFiller
from schemafill.output import save_dataframe, save_dataframes
from schemafill.schemas import ColumnDescriptor


@pytest.fixture
def sample_df():
    """Rows as a dry run collects them for one table."""
    return pd.DataFrame({
        "name": ["Alice", "Bob"],
        "salary": [Decimal("10.50"), Decimal("7.25")],
        "hired": [date(2020, 1, 2), date(2021, 3, 4)],
        "dept_id": [1, None],
    })


@pytest.fixture
def sample_dfs(sample_df):
    return {
        "Employee": sample_df,
        "Dept": pd.DataFrame({"title": ["it", "hr"]}),
    }


class TestSaveDataframe:
    """Tests for the save_dataframe function."""

    @patch('os.makedirs')
    @patch('pandas.DataFrame.to_csv')
    def test_save_dataframe_to_csv(self, mock_to_csv, mock_makedirs, sample_df):
        output_path = "/tmp/output/employee.csv"

        assert save_dataframe(sample_df, output_path, format="csv") == output_path

        mock_makedirs.assert_called_once_with("/tmp/output", exist_ok=True)
        mock_to_csv.assert_called_once_with(output_path, index=False)

    @patch('os.makedirs')
    @patch('pandas.DataFrame.to_json')
    def test_save_dataframe_to_json(self, mock_to_json, mock_makedirs, sample_df):
        output_path = "/tmp/output/employee.json"

        save_dataframe(sample_df, output_path, format="json")

        mock_to_json.assert_called_once_with(
            output_path, orient="records", date_format="iso", default_handler=str
        )

    def test_format_appends_extension(self, tmp_path, sample_df):
        path = save_dataframe(sample_df, str(tmp_path / "employee"), format="JSON")

        assert path.endswith("employee.json")
        records = json.loads((tmp_path / "employee.json").read_text())
        assert records[0]["name"] == "Alice"
        assert len(records) == 2

    def test_defaults_to_csv(self, tmp_path, sample_df):
        path = save_dataframe(sample_df, str(tmp_path / "employee"))

        assert path.endswith("employee.csv")
        written = pd.read_csv(path)
        assert list(written.columns) == ["name", "salary", "hired", "dept_id"]
        assert written["name"].tolist() == ["Alice", "Bob"]

    def test_save_dataframe_unsupported_format(self, sample_df):
        with pytest.raises(ValueError, match="Unsupported format"):
            save_dataframe(sample_df, "/tmp/output.xyz", format="xyz")

    def test_save_dataframe_without_columns(self):
        with pytest.raises(ValueError, match="no columns"):
            save_dataframe(pd.DataFrame(), "/tmp/output/empty.csv")


class TestSaveDataframes:
    """Tests for the save_dataframes function."""

    @patch('schemafill.output.save_dataframe')
    def test_save_dataframes_to_csv(self, mock_save_dataframe, sample_dfs, tmp_path):
        mock_save_dataframe.return_value = "dummy.csv"

        saved = save_dataframes(sample_dfs, str(tmp_path), format="csv")

        assert saved == ["dummy.csv", "dummy.csv"]
        called_paths = [os.path.basename(args[1]) for args, _ in mock_save_dataframe.call_args_list]
        # Table names are lower-cased into file names
        assert called_paths == ["employee", "dept"]
        assert all(kwargs["format"] == "csv" for _, kwargs in mock_save_dataframe.call_args_list)

    @patch('schemafill.output.save_dataframe')
    def test_save_dataframes_custom_filenames(self, mock_save_dataframe, sample_dfs, tmp_path):
        save_dataframes(sample_dfs, str(tmp_path), filenames={"Employee": "staff"})

        called_paths = [os.path.basename(args[1]) for args, _ in mock_save_dataframe.call_args_list]
        assert called_paths == ["staff", "dept"]

    def test_save_dataframes_empty_dict(self, tmp_path):
        with patch('schemafill.output.save_dataframe') as mock_save_dataframe:
            assert save_dataframes({}, str(tmp_path / "out")) == []

            mock_save_dataframe.assert_not_called()
        assert (tmp_path / "out").is_dir()

    def test_dry_run_rows_to_json(self, tmp_path):
        """Test writing the rows of a dry run, one file per table."""
        filler = SchemaFiller.dry_run({"Dept": [
            ColumnDescriptor(name="id", data_type="int", is_auto_generated=True, nullable=False),
            ColumnDescriptor(name="title", data_type="varchar", max_length=20),
            ColumnDescriptor(name="opened", data_type="smalldatetime"),
            ColumnDescriptor(name="budget", data_type="money"),
        ]})
        filler.fill_table({"target_table": "Dept", "row_count": 3, "seed": 1})

        saved = save_dataframes(filler.executor.to_dataframes(), str(tmp_path), format="json")

        assert saved == [os.path.join(str(tmp_path), "dept.json")]
        records = json.loads((tmp_path / "dept.json").read_text())
        assert len(records) == 3
        assert set(records[0]) == {"title", "opened", "budget"}
