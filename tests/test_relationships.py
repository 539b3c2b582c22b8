"""
tests/test_relationships.py
Unit tests for ormgen.relationships.

Tests cover:
- Foreign-key derived relationships and one-to-one detection
- Explicit declarations and the pairs they cover
- Back-reference synthesis, suppression and self-references
- Deduplication and deterministic ordering
- ResolutionError for unknown tables/columns
- Merging configured constraints
"""

from __future__ import annotations

from typing import Any, Dict, List

import pytest

from ormgen.aliases import AliasResolver
from ormgen.errors import ResolutionError
from ormgen.models import (
    Constraint,
    Relationship,
    RelationshipDeclaration,
    RelationshipKind,
    SchemaModel,
)
from ormgen.relationships import (
    RelationshipResolver,
    _dedupe,
    foreign_key_kind,
    invert,
    merge_constraints,
)


def _decl(**kwargs: Any) -> RelationshipDeclaration:
    return RelationshipDeclaration.model_validate(kwargs)


def _triples(relationships: List[Relationship]) -> List[tuple]:
    return [(r.from_table, r.to_table, r.kind.value) for r in relationships]


# ===========================================================================
# Foreign keys
# ===========================================================================


class TestForeignKeys:
    def test_kind_detection(self, blog_schema: SchemaModel) -> None:
        profiles = blog_schema.get_table("profiles")
        posts = blog_schema.get_table("posts")
        assert foreign_key_kind(profiles, profiles.foreign_keys[0]) == RelationshipKind.ONE_TO_ONE
        assert foreign_key_kind(posts, posts.foreign_keys[0]) == RelationshipKind.MANY_TO_ONE

    def test_derived_without_back_references(self, blog_schema: SchemaModel) -> None:
        result = RelationshipResolver(no_back_referencing=True).resolve(blog_schema)
        assert _triples(result) == [
            ("post_tags", "posts", "many_to_one"),
            ("post_tags", "tags", "many_to_one"),
            ("posts", "users", "many_to_one"),
            ("profiles", "users", "one_to_one"),
        ]
        assert all(not r.synthetic_back_reference for r in result)

    def test_named_after_constraint_with_columns(self, blog_schema: SchemaModel) -> None:
        RelationshipResolver(no_back_referencing=True).resolve(blog_schema)
        (rel,) = blog_schema.get_table("posts").relationships
        assert rel.name == "posts_author_id_fkey"
        assert rel.from_columns == ["author_id"]
        assert rel.to_columns == ["id"]

    def test_full_graph_with_back_references(self, blog_schema: SchemaModel) -> None:
        result = RelationshipResolver().resolve(blog_schema)
        assert _triples(result) == [
            ("post_tags", "posts", "many_to_one"),
            ("post_tags", "tags", "many_to_one"),
            ("posts", "post_tags", "one_to_many"),
            ("posts", "users", "many_to_one"),
            ("profiles", "users", "one_to_one"),
            ("tags", "post_tags", "one_to_many"),
            ("users", "posts", "one_to_many"),
            ("users", "profiles", "one_to_one"),
        ]
        assert sum(r.synthetic_back_reference for r in result) == 4

    def test_relationships_stored_per_table(self, blog_schema: SchemaModel) -> None:
        RelationshipResolver().resolve(blog_schema)
        users = blog_schema.get_table("users")
        assert [r.to_table for r in users.relationships] == ["posts", "profiles"]
        assert all(r.from_table == "users" for r in users.relationships)

    def test_foreign_key_to_unknown_table(self) -> None:
        schema = SchemaModel.model_validate({
            "tables": [{
                "name": "orders",
                "columns": [{"name": "customer_id"}],
                "constraints": [{
                    "name": "orders_customer_fkey",
                    "kind": "foreign_key",
                    "columns": ["customer_id"],
                    "foreign_table": "customers",
                    "foreign_columns": ["id"],
                }],
            }],
        })
        with pytest.raises(ResolutionError) as exc_info:
            RelationshipResolver().resolve(schema)
        assert exc_info.value.entities == ["customers"]
        assert exc_info.value.phase == "relationships"


# ===========================================================================
# Explicit declarations
# ===========================================================================


class TestDeclarations:
    def test_back_reference_synthesis(self, blog_schema: SchemaModel) -> None:
        decls = [_decl(name="writer", from_table="tags", to_table="users", kind="one_to_many")]
        result = RelationshipResolver(decls).resolve(blog_schema)
        inverse = [r for r in result if r.pair == ("users", "tags")]
        assert len(inverse) == 1
        assert inverse[0].kind == RelationshipKind.MANY_TO_ONE
        assert inverse[0].synthetic_back_reference
        assert inverse[0].name == "writer"

    def test_back_reference_suppressed(self, blog_schema: SchemaModel) -> None:
        decls = [_decl(name="writer", from_table="tags", to_table="users", kind="one_to_many")]
        result = RelationshipResolver(decls, no_back_referencing=True).resolve(blog_schema)
        assert not [r for r in result if r.pair == ("users", "tags")]
        assert not any(r.synthetic_back_reference for r in result)

    def test_declaration_covers_foreign_key_pair(self, blog_schema: SchemaModel) -> None:
        decls = [_decl(
            name="author",
            from_table="posts",
            to_table="users",
            kind="many_to_one",
            from_columns=["author_id"],
            to_columns=["id"],
        )]
        result = RelationshipResolver(decls).resolve(blog_schema)
        forward = [r for r in result if r.pair == ("posts", "users")]
        assert [r.name for r in forward] == ["author"]
        backward = [r for r in result if r.pair == ("users", "posts")]
        assert [(r.name, r.kind) for r in backward] == [("author", RelationshipKind.ONE_TO_MANY)]

    def test_existing_reverse_prevents_synthesis(self, blog_schema: SchemaModel) -> None:
        decls = [_decl(
            name="posts",
            from_table="users",
            to_table="posts",
            kind="one_to_many",
            from_columns=["id"],
            to_columns=["author_id"],
        )]
        result = RelationshipResolver(decls).resolve(blog_schema)
        pair_entries = [r for r in result if r.pair in {("users", "posts"), ("posts", "users")}]
        assert len(pair_entries) == 2
        assert not any(r.synthetic_back_reference for r in pair_entries)

    def test_many_to_many_through_bridge(self, blog_schema: SchemaModel) -> None:
        decls = [_decl(
            name="tags",
            from_table="posts",
            to_table="tags",
            kind="many_to_many",
            bridge_table="post_tags",
        )]
        result = RelationshipResolver(decls).resolve(blog_schema)
        m2m = [r for r in result if r.kind == RelationshipKind.MANY_TO_MANY]
        assert [r.pair for r in m2m] == [("posts", "tags"), ("tags", "posts")]
        assert all(r.bridge_table == "post_tags" for r in m2m)
        assert m2m[1].synthetic_back_reference

    def test_default_name(self, blog_schema: SchemaModel) -> None:
        decls = [_decl(from_table="tags", to_table="users", kind="many-to-one")]
        result = RelationshipResolver(decls, no_back_referencing=True).resolve(blog_schema)
        (rel,) = [r for r in result if r.pair == ("tags", "users")]
        assert rel.name == "tags_users"
        assert rel.kind == RelationshipKind.MANY_TO_ONE

    @pytest.mark.parametrize(
        "decl, entity",
        [
            ({"from_table": "ghosts", "to_table": "users", "kind": "one_to_many"}, "ghosts"),
            ({"from_table": "users", "to_table": "ghosts", "kind": "one_to_many"}, "ghosts"),
            (
                {
                    "from_table": "posts",
                    "to_table": "tags",
                    "kind": "many_to_many",
                    "bridge_table": "ghosts",
                },
                "ghosts",
            ),
            (
                {
                    "from_table": "users",
                    "to_table": "posts",
                    "kind": "one_to_many",
                    "from_columns": ["nope"],
                    "to_columns": ["author_id"],
                },
                "users.nope",
            ),
        ],
    )
    def test_unknown_references(
        self, blog_schema: SchemaModel, decl: Dict[str, Any], entity: str
    ) -> None:
        with pytest.raises(ResolutionError) as exc_info:
            RelationshipResolver([_decl(**decl)]).resolve(blog_schema)
        assert entity in exc_info.value.entities


# ===========================================================================
# Back-reference edge cases, dedupe and ordering
# ===========================================================================


class TestEdgeCases:
    def _self_referencing(self) -> SchemaModel:
        return SchemaModel.model_validate({
            "tables": [{
                "name": "categories",
                "columns": [{"name": "id"}, {"name": "parent_id"}],
                "constraints": [
                    {"name": "categories_pkey", "kind": "primary_key", "columns": ["id"]},
                    {
                        "name": "categories_parent_fkey",
                        "kind": "foreign_key",
                        "columns": ["parent_id"],
                        "foreign_table": "categories",
                        "foreign_columns": ["id"],
                    },
                ],
            }],
        })

    def test_self_reference_has_no_inverse(self) -> None:
        result = RelationshipResolver().resolve(self._self_referencing())
        assert _triples(result) == [("categories", "categories", "many_to_one")]

    def _with_editor(self, blog_schema: SchemaModel) -> SchemaModel:
        posts = blog_schema.get_table("posts")
        posts.columns.append(posts.columns[1].model_copy(update={"name": "editor_id"}))
        posts.constraints.append(Constraint(
            name="posts_editor_id_fkey",
            kind="foreign_key",
            columns=["editor_id"],
            foreign_table="users",
            foreign_columns=["id"],
        ))
        return blog_schema

    def test_two_foreign_keys_to_one_parent_both_kept(self, blog_schema: SchemaModel) -> None:
        schema = self._with_editor(blog_schema)
        result = RelationshipResolver(no_back_referencing=True).resolve(schema)
        forward = [r for r in result if r.pair == ("posts", "users")]
        assert [(r.name, r.from_columns) for r in forward] == [
            ("posts_author_id_fkey", ["author_id"]),
            ("posts_editor_id_fkey", ["editor_id"]),
        ]

    def test_two_foreign_keys_to_one_parent_get_two_inverses(
        self, blog_schema: SchemaModel
    ) -> None:
        schema = self._with_editor(blog_schema)
        result = RelationshipResolver().resolve(schema)
        backward = [r for r in result if r.pair == ("users", "posts")]
        assert [(r.name, r.to_columns) for r in backward] == [
            ("posts_author_id_fkey", ["author_id"]),
            ("posts_editor_id_fkey", ["editor_id"]),
        ]
        assert all(r.synthetic_back_reference for r in backward)
        assert all(r.kind == RelationshipKind.ONE_TO_MANY for r in backward)

    def test_mirrored_reverse_covers_only_its_own_foreign_key(
        self, blog_schema: SchemaModel
    ) -> None:
        schema = self._with_editor(blog_schema)
        decls = [_decl(
            name="authored",
            from_table="users",
            to_table="posts",
            kind="one_to_many",
            from_columns=["id"],
            to_columns=["author_id"],
        )]
        result = RelationshipResolver(decls).resolve(schema)
        backward = [r for r in result if r.pair == ("users", "posts")]
        assert [(r.name, r.synthetic_back_reference) for r in backward] == [
            ("authored", False),
            ("posts_editor_id_fkey", True),
        ]

    def test_identical_relationships_collapse(self) -> None:
        rel = Relationship(
            name="r",
            from_table="a",
            to_table="b",
            kind=RelationshipKind.MANY_TO_ONE,
            from_columns=["b_id"],
            to_columns=["id"],
        )
        assert _dedupe([rel, rel.model_copy(), invert(rel)]) == [rel, invert(rel)]

    def test_ordering_is_deterministic(self, blog_schema: SchemaModel) -> None:
        decls = [
            _decl(name="tags", from_table="posts", to_table="tags",
                  kind="many_to_many", bridge_table="post_tags"),
            _decl(name="fans", from_table="users", to_table="tags",
                  kind="many_to_many", bridge_table="post_tags"),
        ]
        first = RelationshipResolver(decls).resolve(blog_schema.model_copy(deep=True))
        second = RelationshipResolver(decls).resolve(blog_schema.model_copy(deep=True))
        assert [r.model_dump() for r in first] == [r.model_dump() for r in second]
        keys = [(r.from_table, r.to_table) for r in first]
        assert keys == sorted(keys)

    def test_invert(self) -> None:
        rel = Relationship(
            name="r",
            from_table="a",
            to_table="b",
            kind=RelationshipKind.MANY_TO_ONE,
            from_columns=["b_id"],
            to_columns=["id"],
        )
        inv = invert(rel)
        assert inv.pair == ("b", "a")
        assert inv.kind == RelationshipKind.ONE_TO_MANY
        assert inv.from_columns == ["id"]
        assert inv.to_columns == ["b_id"]
        assert inv.synthetic_back_reference
        assert inv.name == "r"

    def test_aliases_filled(self, blog_schema: SchemaModel) -> None:
        aliases = AliasResolver().resolve(blog_schema)
        RelationshipResolver().resolve(blog_schema, aliases)
        assert aliases.table("users").relationships == {
            "posts_author_id_fkey": "Posts",
            "profiles_user_id_fkey": "Profile",
        }
        assert aliases.table("posts").relationships == {
            "post_tags_post_id_fkey": "PostTags",
            "posts_author_id_fkey": "User",
        }


# ===========================================================================
# Configured constraints
# ===========================================================================


class TestMergeConstraints:
    def test_foreign_key_from_config_creates_relationship(self) -> None:
        schema = SchemaModel.model_validate({
            "tables": [
                {"name": "orders", "columns": [{"name": "id"}, {"name": "customer_id"}]},
                {"name": "customers", "columns": [{"name": "id"}]},
            ],
        })
        added = merge_constraints(schema, {
            "orders": [Constraint(
                name="orders_customer_fkey",
                kind="foreign_key",
                columns=["customer_id"],
                foreign_table="customers",
                foreign_columns=["id"],
            )],
        })
        assert added == 1
        result = RelationshipResolver().resolve(schema)
        assert _triples(result) == [
            ("customers", "orders", "one_to_many"),
            ("orders", "customers", "many_to_one"),
        ]

    def test_unique_makes_foreign_key_one_to_one(self, blog_schema: SchemaModel) -> None:
        merge_constraints(blog_schema, {
            "posts": [Constraint(name="posts_author_key", kind="unique", columns=["author_id"])],
        })
        RelationshipResolver(no_back_referencing=True).resolve(blog_schema)
        (rel,) = blog_schema.get_table("posts").relationships
        assert rel.kind == RelationshipKind.ONE_TO_ONE

    def test_unknown_table(self, blog_schema: SchemaModel) -> None:
        with pytest.raises(ResolutionError):
            merge_constraints(blog_schema, {
                "ghosts": [Constraint(name="g", kind="unique", columns=["id"])],
            })

    def test_unknown_column(self, blog_schema: SchemaModel) -> None:
        with pytest.raises(ResolutionError) as exc_info:
            merge_constraints(blog_schema, {
                "users": [Constraint(name="u", kind="unique", columns=["nickname"])],
            })
        assert exc_info.value.entities == ["users.nickname"]

    def test_unknown_foreign_column(self, blog_schema: SchemaModel) -> None:
        with pytest.raises(ResolutionError):
            merge_constraints(blog_schema, {
                "posts": [Constraint(
                    name="posts_title_fkey",
                    kind="foreign_key",
                    columns=["title"],
                    foreign_table="tags",
                    foreign_columns=["label"],
                )],
            })

    def test_duplicate_name(self, blog_schema: SchemaModel) -> None:
        with pytest.raises(ResolutionError):
            merge_constraints(blog_schema, {
                "users": [Constraint(name="users_pkey", kind="primary_key", columns=["id"])],
            })
