"""
tests/conftest.py
Shared fixtures for the ormgen test suite.

The reference schema is a small blog:

    users ──< posts ──< post_tags >── tags
      └──── profiles (one-to-one)

No external mocking libraries are used; real file I/O is performed
inside temporary directories managed by pytest's tmp_path fixtures.
"""

from __future__ import annotations

import copy
import json
import pathlib
from typing import Any, Dict

import pytest
import yaml

from ormgen.drivers import StaticDriver
from ormgen.models import GenerationConfig, SchemaModel


# ---------------------------------------------------------------------------
# Raw document fixtures
# ---------------------------------------------------------------------------

_BLOG_SCHEMA: Dict[str, Any] = {
    "dialect": "psql",
    "tables": [
        {
            "name": "users",
            "columns": [
                {"name": "id", "type": "int", "db_type": "serial"},
                {"name": "email", "type": "string", "db_type": "text"},
                {
                    "name": "name",
                    "type": "null.String",
                    "db_type": "text",
                    "nullable": True,
                },
                {"name": "created_at", "type": "time.Time", "db_type": "timestamp"},
            ],
            "constraints": [
                {"name": "users_pkey", "kind": "primary_key", "columns": ["id"]},
                {"name": "users_email_key", "kind": "unique", "columns": ["email"]},
            ],
        },
        {
            "name": "profiles",
            "columns": [
                {"name": "id", "type": "int", "db_type": "serial"},
                {"name": "user_id", "type": "int", "db_type": "integer"},
                {"name": "bio", "type": "string", "db_type": "text"},
            ],
            "constraints": [
                {"name": "profiles_pkey", "kind": "primary_key", "columns": ["id"]},
                {"name": "profiles_user_id_key", "kind": "unique", "columns": ["user_id"]},
                {
                    "name": "profiles_user_id_fkey",
                    "kind": "foreign_key",
                    "columns": ["user_id"],
                    "foreign_table": "users",
                    "foreign_columns": ["id"],
                },
            ],
        },
        {
            "name": "posts",
            "columns": [
                {"name": "id", "type": "int", "db_type": "serial"},
                {"name": "author_id", "type": "int", "db_type": "integer"},
                {"name": "title", "type": "string", "db_type": "varchar"},
                {
                    "name": "price",
                    "type": "string",
                    "db_type": "numeric",
                    "domain_name": "money_amount",
                },
            ],
            "constraints": [
                {"name": "posts_pkey", "kind": "primary_key", "columns": ["id"]},
                {
                    "name": "posts_author_id_fkey",
                    "kind": "foreign_key",
                    "columns": ["author_id"],
                    "foreign_table": "users",
                    "foreign_columns": ["id"],
                },
            ],
        },
        {
            "name": "tags",
            "columns": [
                {"name": "id", "type": "int", "db_type": "serial"},
                {"name": "name", "type": "string", "db_type": "text"},
            ],
            "constraints": [
                {"name": "tags_pkey", "kind": "primary_key", "columns": ["id"]},
            ],
        },
        {
            "name": "post_tags",
            "columns": [
                {"name": "post_id", "type": "int", "db_type": "integer"},
                {"name": "tag_id", "type": "int", "db_type": "integer"},
            ],
            "constraints": [
                {
                    "name": "post_tags_pkey",
                    "kind": "primary_key",
                    "columns": ["post_id", "tag_id"],
                },
                {
                    "name": "post_tags_post_id_fkey",
                    "kind": "foreign_key",
                    "columns": ["post_id"],
                    "foreign_table": "posts",
                    "foreign_columns": ["id"],
                },
                {
                    "name": "post_tags_tag_id_fkey",
                    "kind": "foreign_key",
                    "columns": ["tag_id"],
                    "foreign_table": "tags",
                    "foreign_columns": ["id"],
                },
            ],
        },
    ],
}


@pytest.fixture()
def blog_schema_dict() -> Dict[str, Any]:
    """Return a deep copy of the blog schema document so tests can mutate it."""
    return copy.deepcopy(_BLOG_SCHEMA)


@pytest.fixture()
def blog_schema(blog_schema_dict: Dict[str, Any]) -> SchemaModel:
    """The blog schema as a validated model (``dialect`` is a document key only)."""
    data = dict(blog_schema_dict)
    data.pop("dialect")
    return SchemaModel.model_validate(data)


@pytest.fixture()
def blog_driver(blog_schema: SchemaModel) -> StaticDriver:
    return StaticDriver(blog_schema, name="psql")


@pytest.fixture()
def config_dict() -> Dict[str, Any]:
    """A representative configuration touching every phase."""
    return {
        "tags": ["json", "db"],
        "tag_ignore": ["created_at"],
        "replacements": [
            {
                "match": {"db_type": "serial"},
                "replace": {"type": "excellent.Type", "imports": ['"rock.com/excellent"']},
            },
            {
                "match": {"domain_name": "money_amount"},
                "replace": {"type": "decimal.Decimal", "imports": ['"shopspring/decimal"']},
            },
        ],
        "aliases": {
            "tables": {
                "users": {
                    "up_singular": "Member",
                    "up_plural": "Members",
                    "columns": {"email": "EmailAddress"},
                },
            },
        },
        "relationships": [
            {
                "name": "tags",
                "from_table": "posts",
                "to_table": "tags",
                "kind": "many_to_many",
                "bridge_table": "post_tags",
            },
        ],
    }


@pytest.fixture()
def config(config_dict: Dict[str, Any]) -> GenerationConfig:
    return GenerationConfig.model_validate(config_dict)


# ---------------------------------------------------------------------------
# On-disk fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def schema_yaml_path(blog_schema_dict: Dict[str, Any], tmp_path: pathlib.Path) -> pathlib.Path:
    """Write the blog schema to a temporary YAML file and return its path."""
    path = tmp_path / "schema.yaml"
    with open(path, "w", encoding="utf-8") as fh:
        yaml.safe_dump(blog_schema_dict, fh, default_flow_style=False, sort_keys=False)
    return path


@pytest.fixture()
def schema_json_path(blog_schema_dict: Dict[str, Any], tmp_path: pathlib.Path) -> pathlib.Path:
    path = tmp_path / "schema.json"
    path.write_text(json.dumps(blog_schema_dict, indent=2), encoding="utf-8")
    return path


@pytest.fixture()
def config_yaml_path(config_dict: Dict[str, Any], tmp_path: pathlib.Path) -> pathlib.Path:
    """Write the representative config to a temporary YAML file."""
    path = tmp_path / "ormgen.yaml"
    with open(path, "w", encoding="utf-8") as fh:
        yaml.safe_dump(config_dict, fh, default_flow_style=False, sort_keys=False)
    return path


@pytest.fixture()
def output_dir(tmp_path: pathlib.Path) -> pathlib.Path:
    """Return a clean temporary output directory."""
    out = tmp_path / "generated"
    out.mkdir()
    return out
