"""
tests/test_drivers.py
Unit tests for ormgen.drivers: ColumnFilter, StaticDriver, FileDriver and
load_document.
"""

from __future__ import annotations

import pathlib
from typing import Any, Dict

import pytest
import yaml

from ormgen.drivers import ColumnFilter, Driver, FileDriver, StaticDriver, load_document
from ormgen.errors import DriverError
from ormgen.models import SchemaModel


class TestColumnFilter:
    def test_default_allows_everything(self) -> None:
        assert ColumnFilter().allows("anything")

    def test_only(self) -> None:
        f = ColumnFilter(only=["id", "email"])
        assert f.allows("id")
        assert not f.allows("name")

    def test_exclude_wins_over_only(self) -> None:
        f = ColumnFilter(only=["id", "email"], exclude=["email"])
        assert f.allows("id")
        assert not f.allows("email")


class TestStaticDriver:
    def test_is_a_driver(self, blog_driver: StaticDriver) -> None:
        assert isinstance(blog_driver, Driver)
        assert blog_driver.name == "psql"

    def test_assemble_returns_fresh_copies(self, blog_driver: StaticDriver) -> None:
        first = blog_driver.assemble()
        first.get_table("users").columns[0].type = "mutated"
        second = blog_driver.assemble()
        assert second.get_table("users").columns[0].type == "int"

    def test_assemble_keeps_order(
        self, blog_driver: StaticDriver, blog_schema: SchemaModel
    ) -> None:
        assembled = blog_driver.assemble()
        assert assembled.table_names == blog_schema.table_names
        assert assembled.get_table("posts").column_names == ["id", "author_id", "title", "price"]
        assert [c.name for c in assembled.get_table("posts").constraints] == [
            "posts_pkey",
            "posts_author_id_fkey",
        ]

    def test_table_columns_with_filter(self, blog_driver: StaticDriver) -> None:
        columns = blog_driver.table_columns("users", ColumnFilter(exclude=["created_at"]))
        assert [c.name for c in columns] == ["id", "email", "name"]

    def test_configured_filters_apply_to_assemble(self, blog_schema: SchemaModel) -> None:
        driver = StaticDriver(
            blog_schema,
            column_filters={"users": ColumnFilter(only=["id"])},
        )
        assert driver.assemble().get_table("users").column_names == ["id"]
        assert driver.name == "static"

    def test_unknown_table(self, blog_driver: StaticDriver) -> None:
        with pytest.raises(DriverError) as exc_info:
            blog_driver.table_columns("ghosts")
        assert exc_info.value.phase == "assemble"
        assert exc_info.value.entities == ["ghosts"]


class TestLoadDocument:
    def test_yaml(self, schema_yaml_path: pathlib.Path) -> None:
        data = load_document(schema_yaml_path)
        assert data["dialect"] == "psql"

    def test_json(self, schema_json_path: pathlib.Path) -> None:
        assert len(load_document(schema_json_path)["tables"]) == 5

    def test_empty_file_is_empty_mapping(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert load_document(path) == {}

    def test_missing(self, tmp_path: pathlib.Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_document(tmp_path / "nope.yaml")

    def test_not_a_mapping(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ValueError, match="Expected a mapping"):
            load_document(path)

    def test_unparsable(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "bad.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ValueError, match="Cannot parse"):
            load_document(path)


class TestFileDriver:
    def test_assemble_from_yaml(self, schema_yaml_path: pathlib.Path) -> None:
        driver = FileDriver(schema_yaml_path)
        schema = driver.assemble()
        assert driver.name == "psql"
        assert schema.table_names == ["users", "profiles", "posts", "tags", "post_tags"]
        assert schema.get_table("posts").get_column("price").domain_name == "money_amount"

    def test_default_dialect(
        self, blog_schema_dict: Dict[str, Any], tmp_path: pathlib.Path
    ) -> None:
        blog_schema_dict.pop("dialect")
        path = tmp_path / "schema.yaml"
        path.write_text(yaml.safe_dump(blog_schema_dict), encoding="utf-8")
        assert FileDriver(path).name == "file"

    def test_table_columns(self, schema_json_path: pathlib.Path) -> None:
        columns = FileDriver(schema_json_path).table_columns("tags")
        assert [c.name for c in columns] == ["id", "name"]

    def test_missing_file(self, tmp_path: pathlib.Path) -> None:
        with pytest.raises(DriverError) as exc_info:
            FileDriver(tmp_path / "nope.yaml").assemble()
        assert exc_info.value.entities == [str(tmp_path / "nope.yaml")]

    def test_invalid_document(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "schema.yaml"
        path.write_text(
            yaml.safe_dump({"tables": [{"name": "t", "columns": [{"name": "a"}, {"name": "a"}]}]}),
            encoding="utf-8",
        )
        with pytest.raises(DriverError, match="Invalid schema document"):
            FileDriver(path).assemble()

    def test_unknown_key_rejected(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "schema.yaml"
        path.write_text(yaml.safe_dump({"tables": [], "views": []}), encoding="utf-8")
        with pytest.raises(DriverError):
            FileDriver(path).assemble()
