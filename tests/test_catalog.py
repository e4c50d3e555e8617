"""
Tests for the catalog module.
"""
import json
import pytest
import yaml
from unittest.mock import MagicMock, patch
from sqlalchemy import create_engine, text
from sqlalchemy.dialects import mssql, mysql
from sqlalchemy.pool import StaticPool
from sqlalchemy.types import NullType

from schemafill import FillState, SchemaFiller
from schemafill.catalog import (
    SqlAlchemyCatalogReader, StaticCatalog, load_descriptors, load_fill_plan
)
from schemafill.exceptions import CatalogError
from schemafill.schemas import ColumnDescriptor, FillPlan


@pytest.fixture
def engine():
    """In-memory SQLite database with a dept and an employee table."""
    engine = create_engine("sqlite://", poolclass=StaticPool,
                           connect_args={"check_same_thread": False})
    with engine.begin() as conn:
        conn.execute(text("CREATE TABLE dept (id INTEGER PRIMARY KEY, title VARCHAR(20) NOT NULL)"))
        conn.execute(text("CREATE UNIQUE INDEX ix_dept_title ON dept (title)"))
        conn.execute(text(
            "CREATE TABLE employee ("
            " id INTEGER PRIMARY KEY,"
            " name VARCHAR(10),"
            " age SMALLINT NOT NULL,"
            " salary NUMERIC(7, 2),"
            " hired DATE,"
            " updated DATETIME,"
            " notes TEXT,"
            " code CHAR(4),"
            " avatar BLOB,"
            " dept_id INTEGER NOT NULL REFERENCES dept(id))"
        ))
    yield engine
    engine.dispose()


@pytest.fixture
def column_dicts():
    return [
        {"name": "id", "data_type": "int", "is_primary_key": True, "is_auto_generated": True, "nullable": False},
        {"name": "name", "data_type": "varchar", "max_length": 10},
        {"name": "dept_id", "data_type": "int", "is_foreign_key": True, "referenced_table": "Dept"},
    ]


class TestSqlAlchemyCatalogReader:
    """Tests for reading descriptors from a live catalog."""

    def test_columns_in_catalog_order(self, engine):
        descriptors = SqlAlchemyCatalogReader(engine).fetch_descriptors("employee")

        assert [d.name for d in descriptors] == [
            "id", "name", "age", "salary", "hired", "updated", "notes", "code", "avatar", "dept_id"
        ]

    def test_types_and_lengths(self, engine):
        by_name = {d.name: d for d in SqlAlchemyCatalogReader(engine).fetch_descriptors("employee")}

        assert by_name["name"].data_type == "varchar"
        assert by_name["name"].max_length == 10
        assert by_name["age"].data_type == "smallint"
        assert by_name["age"].nullable is False
        assert by_name["salary"].precision == 7
        assert by_name["salary"].scale == 2
        assert by_name["code"].max_length == 4
        assert by_name["hired"].type_family == "date"
        assert by_name["updated"].type_family == "datetime"
        assert by_name["notes"].type_family == "large_text"
        assert by_name["avatar"].type_family == "binary"

    def test_rowid_primary_key_is_auto_generated(self, engine):
        by_name = {d.name: d for d in SqlAlchemyCatalogReader(engine).fetch_descriptors("employee")}

        assert by_name["id"].is_primary_key is True
        assert by_name["id"].is_auto_generated is True
        assert by_name["name"].is_auto_generated is False

    def test_foreign_key_reference(self, engine):
        by_name = {d.name: d for d in SqlAlchemyCatalogReader(engine).fetch_descriptors("employee")}

        dept_id = by_name["dept_id"]
        assert dept_id.is_foreign_key is True
        assert dept_id.referenced_table == "dept"
        assert dept_id.referenced_column == "id"
        assert dept_id.target_column == "id"
        assert dept_id.nullable is False

    def test_unique_index(self, engine):
        by_name = {d.name: d for d in SqlAlchemyCatalogReader(engine).fetch_descriptors("dept")}

        assert by_name["title"].is_unique is True
        assert by_name["title"].requires_unique_values is True

    def test_missing_table(self, engine):
        with pytest.raises(CatalogError) as excinfo:
            SqlAlchemyCatalogReader(engine).fetch_descriptors("nope")
        assert "nope" in str(excinfo.value)


def fake_inspector(columns, dialect_name, default_schema_name=None):
    """Inspector stub reporting the given columns on the given dialect."""
    inspector = MagicMock()
    inspector.has_table.return_value = True
    inspector.get_columns.return_value = columns
    inspector.get_pk_constraint.return_value = {"constrained_columns": ["id"]}
    inspector.get_foreign_keys.return_value = []
    inspector.get_unique_constraints.return_value = []
    inspector.get_indexes.return_value = []
    inspector.dialect.name = dialect_name
    inspector.default_schema_name = default_schema_name
    return inspector


class TestUnrecognizedTypes:
    """Tests for column types SQLAlchemy does not recognize or treats specially."""

    @pytest.fixture
    def site_engine(self):
        """SQLite database with an attached information_schema declaring a geography column."""
        engine = create_engine("sqlite://", poolclass=StaticPool,
                               connect_args={"check_same_thread": False})
        with engine.begin() as conn:
            conn.execute(text("ATTACH DATABASE ':memory:' AS information_schema"))
            conn.execute(text(
                "CREATE TABLE information_schema.columns "
                "(table_schema TEXT, table_name TEXT, column_name TEXT, data_type TEXT)"
            ))
            conn.execute(text(
                "INSERT INTO information_schema.columns VALUES "
                "('main', 'site', 'office', 'GEOGRAPHY'), "
                "('other', 'site', 'office', 'xml')"
            ))
            # A column declared without a type reflects as NullType
            conn.execute(text("CREATE TABLE site (id INTEGER PRIMARY KEY, name VARCHAR(10), office NOT NULL)"))
        yield engine
        engine.dispose()

    def test_declared_type_read_for_null_type(self, site_engine):
        by_name = {d.name: d for d in SqlAlchemyCatalogReader(site_engine).fetch_descriptors("site")}

        assert by_name["office"].data_type == "geography"
        assert by_name["office"].type_family == "geo"
        assert by_name["office"].nullable is False
        assert by_name["name"].data_type == "varchar"

    def test_geography_column_is_filled(self, site_engine):
        filler = SchemaFiller.from_engine(site_engine)

        result = filler.fill_table({"target_table": "site", "row_count": 3, "seed": 4})

        assert result.state == FillState.DONE
        with site_engine.connect() as conn:
            offices = [r[0] for r in conn.execute(text("SELECT office FROM site"))]
        assert len(offices) == 3
        assert all(office.startswith("POINT(") for office in offices)

    def test_mssql_timestamp_is_auto_generated(self):
        columns = [
            {"name": "id", "type": mssql.INTEGER(), "nullable": False, "autoincrement": False},
            {"name": "version", "type": mssql.TIMESTAMP(), "nullable": False, "autoincrement": False},
        ]
        with patch("schemafill.catalog.sqla_inspect", return_value=fake_inspector(columns, "mssql", "dbo")):
            by_name = {d.name: d for d in SqlAlchemyCatalogReader(MagicMock()).fetch_descriptors("T")}

        assert by_name["version"].is_auto_generated is True
        assert by_name["id"].is_auto_generated is False

    def test_mssql_rowversion_is_auto_generated(self):
        """Test that a rowversion column, unknown to SQLAlchemy, is omitted from inserts."""
        columns = [
            {"name": "id", "type": mssql.INTEGER(), "nullable": False, "autoincrement": False},
            {"name": "row_ver", "type": NullType(), "nullable": False, "autoincrement": False},
        ]
        reader = SqlAlchemyCatalogReader(MagicMock())
        with patch("schemafill.catalog.sqla_inspect", return_value=fake_inspector(columns, "mssql", "dbo")), \
                patch.object(reader, "_declared_type_names", return_value={"row_ver": "timestamp"}) as declared:
            by_name = {d.name: d for d in reader.fetch_descriptors("T")}

        declared.assert_called_once_with("T", "dbo")
        assert by_name["row_ver"].data_type == "timestamp"
        assert by_name["row_ver"].is_auto_generated is True

    def test_mysql_timestamp_is_generated(self):
        columns = [
            {"name": "id", "type": mysql.INTEGER(), "nullable": False, "autoincrement": False},
            {"name": "changed", "type": mysql.TIMESTAMP(), "nullable": True, "autoincrement": False},
        ]
        with patch("schemafill.catalog.sqla_inspect", return_value=fake_inspector(columns, "mysql")):
            by_name = {d.name: d for d in SqlAlchemyCatalogReader(MagicMock()).fetch_descriptors("T")}

        assert by_name["changed"].is_auto_generated is False
        assert by_name["changed"].type_family == "datetime"

    def test_information_schema_skipped_for_known_types(self, engine):
        reader = SqlAlchemyCatalogReader(engine)
        with patch.object(reader, "_declared_type_names") as declared:
            reader.fetch_descriptors("employee")
        declared.assert_not_called()


class TestStaticCatalog:
    """Tests for the StaticCatalog class."""

    def test_accepts_descriptors_and_dicts(self, column_dicts):
        descriptors = [ColumnDescriptor(name="id", data_type="int")]
        catalog = StaticCatalog({"Dept": descriptors, "T": column_dicts})

        assert catalog.fetch_descriptors("Dept") == descriptors
        assert [d.name for d in catalog.fetch_descriptors("T")] == ["id", "name", "dept_id"]

    def test_unknown_table(self):
        with pytest.raises(CatalogError):
            StaticCatalog({}).fetch_descriptors("T")


class TestLoadDescriptors:
    """Tests for the load_descriptors function."""

    def test_from_list(self, column_dicts):
        descriptors = load_descriptors(column_dicts)

        assert len(descriptors) == 3
        assert descriptors[2].referenced_table == "Dept"

    def test_from_dict_with_columns(self, column_dicts):
        assert len(load_descriptors({"columns": column_dicts})) == 3

    def test_from_json_file(self, tmp_path, column_dicts):
        path = tmp_path / "t.json"
        path.write_text(json.dumps({"columns": column_dicts}))

        descriptors = load_descriptors(str(path))
        assert descriptors[0].is_auto_generated is True

    def test_from_yaml_file(self, tmp_path, column_dicts):
        path = tmp_path / "t.yml"
        path.write_text(yaml.safe_dump(column_dicts))

        descriptors = load_descriptors(str(path))
        assert [d.name for d in descriptors] == ["id", "name", "dept_id"]

    def test_duplicate_names(self, column_dicts):
        with pytest.raises(ValueError) as excinfo:
            load_descriptors(column_dicts + [{"name": "name", "data_type": "int"}])
        assert "Duplicate column names: name" in str(excinfo.value)

    def test_missing_columns_key(self):
        with pytest.raises(ValueError):
            load_descriptors({"tables": []})

    def test_missing_file(self, tmp_path):
        with pytest.raises(ValueError) as excinfo:
            load_descriptors(str(tmp_path / "missing.json"))
        assert "File not found" in str(excinfo.value)

    def test_unsupported_extension(self, tmp_path):
        path = tmp_path / "t.txt"
        path.write_text("name,data_type")

        with pytest.raises(ValueError) as excinfo:
            load_descriptors(str(path))
        assert "Unsupported file format" in str(excinfo.value)


class TestLoadFillPlan:
    """Tests for the load_fill_plan function."""

    def test_from_yaml_file(self, tmp_path):
        path = tmp_path / "plan.yaml"
        path.write_text(
            "seed: 7\n"
            "tables:\n"
            "  - target_table: Dept\n"
            "    row_count: 3\n"
            "  - target_table: Employee\n"
            "    row_count: 10\n"
            "    randomness_factor: 3\n"
        )

        plan = load_fill_plan(str(path))

        assert isinstance(plan, FillPlan)
        assert [t.target_table for t in plan.tables] == ["Dept", "Employee"]
        assert plan.tables[1].randomness_factor == 3
        assert plan.tables[0].seed == 7

    def test_from_dict(self):
        plan = load_fill_plan({"tables": [{"target_table": "T", "row_count": 2}]})
        assert plan.tables[0].row_count == 2
