"""
Tests for the CRUD facade.
"""

import logging
from datetime import datetime
from unittest.mock import patch

import pytest
from sqlalchemy.orm import Session

from madatabase import (
    EngineError,
    ExactMatch,
    OperatorMap,
    Paginated,
    PaginationResult,
    SchemaError,
    TableNotRegistered,
    TextMatch,
    TranslationError,
)


def names(records):
    return sorted(r["name"] for r in records)


class TestInsert:
    """Single and bulk inserts."""

    def test_insert_then_find_by_id(self, people_db):
        created = people_db.insert("Person", {"name": "Ada", "email": "ada@example.com", "age": 36})

        assert isinstance(created["id"], int)
        assert created["createdAt"] is not None
        assert created["updatedAt"] is not None
        assert created["active"] is True

        found = people_db.find_by_id("Person", created["id"])
        assert found == created

    def test_find_by_missing_id(self, people_db):
        assert people_db.find_by_id("Person", 12345) is None

    def test_insert_many_keeps_order(self, people_db, sample_people):
        created = people_db.insert_many("Person", sample_people)
        assert [r["name"] for r in created] == [p["name"] for p in sample_people]
        assert [r["id"] for r in created] == sorted(r["id"] for r in created)
        assert people_db.count("Person") == len(sample_people)

    def test_insert_many_is_all_or_nothing(self, people_db):
        with pytest.raises(EngineError):
            people_db.insert_many("Person", [
                {"name": "A", "email": "same@example.com"},
                {"name": "B", "email": "same@example.com"},
            ])
        assert people_db.count("Person") == 0

    def test_insert_many_empty(self, people_db):
        assert people_db.insert_many("Person", []) == []

    def test_constraint_violation_propagates(self, people_db):
        with pytest.raises(EngineError):
            people_db.insert("Person", {"email": "nameless@example.com"})

    def test_unknown_column_propagates(self, people_db):
        with pytest.raises(EngineError):
            people_db.insert("Person", {"name": "X", "salary": 10})

    def test_caller_defined_string_key(self, db):
        db.create_table("Token", {"id": {"type": "string", "primary_key": True}, "owner": "string"})
        db.sync_tables()
        created = db.insert("Token", {"id": "tok-1", "owner": "ada"})
        assert created["id"] == "tok-1"
        assert db.find_by_id("Token", "tok-1")["owner"] == "ada"

    def test_keyless_table_is_refused(self, db):
        with pytest.raises(SchemaError):
            db.create_table("Tag", {"id": "string", "label": "string"})
        assert db.get_model("Tag") is None
        with pytest.raises(TableNotRegistered):
            db.insert("Tag", {"id": "t1", "label": "x"})


class TestFind:
    """Reads through every condition style."""

    def test_find_all_by_default(self, seeded_db, sample_people):
        assert len(seeded_db.find("Person")) == len(sample_people)

    def test_find_exact(self, seeded_db):
        assert names(seeded_db.find("Person", {"active": True, "age": 30})) == ["Alice"]

    def test_find_order_limit_offset(self, seeded_db):
        rows = seeded_db.find("Person", order_by="-age", limit=2, offset=1)
        assert [r["name"] for r in rows] == ["Carol", "Bob"]

    def test_find_with_paginated_condition(self, seeded_db):
        rows = seeded_db.find("Person", Paginated(None, page=2, page_size=2), order_by="id")
        assert [r["name"] for r in rows] == ["Bob", "Carol"]

    def test_find_one(self, seeded_db):
        assert seeded_db.find_one("Person", {"name": "Bob"})["age"] == 45
        assert seeded_db.find_one("Person", {"name": "Nobody"}) is None

    def test_find_one_ordered(self, seeded_db):
        assert seeded_db.find_one("Person", order_by="-age")["name"] == "Dave"

    def test_find_one_with_paginated_condition(self, seeded_db):
        """The first record of the requested page, not of the whole table."""
        assert seeded_db.find_one("Person", Paginated(None, page=3, page_size=1), order_by="id")["name"] == "Bob"
        assert seeded_db.find_one("Person", Paginated(None, page=9, page_size=1)) is None

    def test_null_equality(self, people_db):
        people_db.insert("Person", {"name": "NoEmail"})
        assert names(people_db.find("Person", {"email": None})) == ["NoEmail"]


class TestSearch:
    """The four search entry points."""

    def test_search_exact(self, seeded_db):
        assert names(seeded_db.search("Person", {"active": False})) == ["ALINA", "Dave"]

    def test_search_text_is_case_insensitive(self, seeded_db):
        assert names(seeded_db.search_text("Person", "name", "ali")) == ["ALINA", "Alice"]
        assert names(seeded_db.search_text("Person", "name", "ALI")) == ["ALINA", "Alice"]

    def test_search_text_wildcards_are_literal(self, seeded_db):
        seeded_db.insert("Person", {"name": "a_b"})
        seeded_db.insert("Person", {"name": "100% Ada"})
        assert names(seeded_db.search_text("Person", "name", "_")) == ["a_b"]
        assert names(seeded_db.search_text("Person", "name", "%")) == ["100% Ada"]
        assert seeded_db.search_text("Person", "name", "a_c") == []

    @pytest.mark.parametrize("call", [
        lambda db: db.search("Person", None),
        lambda db: db.search("Person", ["age"]),
        lambda db: db.search_advanced("Person", ["age"]),
        lambda db: db.search_advanced("Person", None),
    ])
    def test_malformed_conditions_are_translation_errors(self, seeded_db, call):
        with patch.object(Session, "execute") as execute:
            with pytest.raises(TranslationError):
                call(seeded_db)
        execute.assert_not_called()

    def test_search_advanced(self, seeded_db):
        rows = seeded_db.search_advanced("Person", {"age": {"gte": 18, "lte": 65}})
        assert names(rows) == ["Alice", "Bob", "Carol"]

    def test_between_matches_gte_lte(self, seeded_db):
        between = seeded_db.search_advanced("Person", {"age": {"between": [18, 65]}})
        ranged = seeded_db.search_advanced("Person", {"age": {"gte": 18, "lte": 65}})
        assert between == ranged

    def test_search_advanced_in_and_ne(self, seeded_db):
        rows = seeded_db.search_advanced("Person", {
            "name": {"in": ["Alice", "Bob", "Carol"]},
            "age": {"ne": 45},
        })
        assert names(rows) == ["Alice", "Carol"]

    def test_search_advanced_like(self, seeded_db):
        assert names(seeded_db.search_advanced("Person", {"email": {"like": "%@example.com"}})) == [
            "ALINA", "Alice", "Bob", "Carol", "Dave",
        ]

    def test_condition_objects(self, seeded_db):
        assert names(seeded_db.find("Person", TextMatch("email", "BOB"))) == ["Bob"]
        assert names(seeded_db.find("Person", ExactMatch({"age": 70}))) == ["Dave"]
        assert names(seeded_db.find("Person", OperatorMap({"age": {"gt": 60}}))) == ["Carol", "Dave"]

    def test_search_fields_projects(self, seeded_db):
        rows = seeded_db.search_fields("Person", {"active": True}, ["name", "age"])
        assert all(set(r) == {"name", "age"} for r in rows)
        assert names(rows) == ["Alice", "Bob", "Carol"]

    def test_search_fields_with_paginated_condition(self, seeded_db):
        rows = seeded_db.search_fields("Person", Paginated({"active": True}, page=1, page_size=2), ["name"])
        assert len(rows) == 2
        assert all(set(r) == {"name"} for r in rows)

    def test_search_fields_unknown_field(self, seeded_db):
        with pytest.raises(TranslationError):
            seeded_db.search_fields("Person", None, ["name", "salary"])


class TestSearchPaginated:
    """Pagination metadata over 25 matching rows."""

    def test_middle_page(self, crowd_db):
        result = crowd_db.search_paginated("Person", {"active": True}, page=2, page_size=10)
        assert isinstance(result, PaginationResult)
        assert len(result.data) == 10
        assert result.total == 25
        assert result.pages == 3
        assert result.page == 2
        assert result.has_more is True
        assert [r["age"] for r in result.data] == list(range(30, 40))

    def test_last_page(self, crowd_db):
        result = crowd_db.search_paginated("Person", {"active": True}, page=3, page_size=10)
        assert len(result.data) == 5
        assert result.has_more is False

    def test_past_the_end(self, crowd_db):
        result = crowd_db.search_paginated("Person", {"active": True}, page=9, page_size=10)
        assert result.data == []
        assert result.total == 25
        assert result.has_more is False

    def test_no_matches(self, crowd_db):
        result = crowd_db.search_paginated("Person", {"age": {"gt": 1000}})
        assert (result.total, result.pages, result.has_more) == (0, 0, False)

    def test_to_dict(self, crowd_db):
        result = crowd_db.search_paginated("Person", None, page=1, page_size=20).to_dict()
        assert set(result) == {"data", "total", "page", "pages", "hasMore"}
        assert result["total"] == 26
        assert result["hasMore"] is True

    def test_invalid_page(self, crowd_db):
        with pytest.raises(TranslationError):
            crowd_db.search_paginated("Person", None, page=0)


class TestUpdateDelete:
    """Mutations return affected row counts."""

    def test_update(self, seeded_db):
        assert seeded_db.update("Person", {"active": False}, {"age": {"lt": 50}}) == 3
        assert names(seeded_db.search("Person", {"active": True})) == ["Carol"]

    def test_update_no_match(self, seeded_db):
        assert seeded_db.update("Person", {"age": 1}, {"name": "Nobody"}) == 0

    def test_update_bumps_updated_at(self, people_db):
        old = datetime(2000, 1, 1)
        created = people_db.insert("Person", {"name": "Ada", "updatedAt": old})
        assert created["updatedAt"] == old

        people_db.update("Person", {"age": 37}, {"id": created["id"]})
        assert people_db.find_by_id("Person", created["id"])["updatedAt"] > old

    def test_update_keeps_explicit_updated_at(self, people_db):
        created = people_db.insert("Person", {"name": "Ada"})
        stamp = datetime(2010, 5, 5)
        people_db.update("Person", {"updatedAt": stamp}, {"id": created["id"]})
        assert people_db.find_by_id("Person", created["id"])["updatedAt"] == stamp

    def test_delete(self, seeded_db, sample_people):
        assert seeded_db.delete("Person", {"active": False}) == 2
        assert seeded_db.count("Person") == len(sample_people) - 2
        assert seeded_db.delete("Person", {"name": "Nobody"}) == 0

    def test_count(self, seeded_db):
        assert seeded_db.count("Person") == 5
        assert seeded_db.count("Person", {"age": {"gte": 45}}) == 3
        assert seeded_db.count("Person", TextMatch("name", "a")) == 4

    @pytest.mark.parametrize("call", [
        lambda db: db.delete("Person", Paginated(None, page=1, page_size=1)),
        lambda db: db.update("Person", {"active": False}, Paginated({"active": True}, 1, 1)),
        lambda db: db.count("Person", Paginated(None, 1, 2)),
    ])
    def test_paginated_conditions_rejected_outside_reads(self, seeded_db, call):
        """A page window cannot silently widen to every matching row."""
        with patch.object(Session, "execute") as execute:
            with pytest.raises(TranslationError, match="paginated"):
                call(seeded_db)
        execute.assert_not_called()
        assert seeded_db.count("Person", {"active": True}) == 3

    def test_empty_operator_map_deletes_nothing(self, seeded_db):
        with pytest.raises(TranslationError):
            seeded_db.delete("Person", {"age": {}})
        assert seeded_db.count("Person") == 5


class TestUnregisteredTable:
    """Unknown tables fail before the engine is reached."""

    @pytest.mark.parametrize("call", [
        lambda db: db.insert("Ghost", {"a": 1}),
        lambda db: db.insert_many("Ghost", [{"a": 1}]),
        lambda db: db.find("Ghost"),
        lambda db: db.find_one("Ghost", {"a": 1}),
        lambda db: db.find_by_id("Ghost", 1),
        lambda db: db.update("Ghost", {"a": 2}, {"a": 1}),
        lambda db: db.delete("Ghost", {"a": 1}),
        lambda db: db.count("Ghost"),
        lambda db: db.search("Ghost", {"a": 1}),
        lambda db: db.search_text("Ghost", "a", "b"),
        lambda db: db.search_advanced("Ghost", {"a": {"gt": 1}}),
        lambda db: db.search_paginated("Ghost", None, 1, 10),
        lambda db: db.search_fields("Ghost", None, ["a"]),
    ])
    def test_raises_without_engine_calls(self, people_db, call):
        with patch.object(Session, "execute") as execute:
            with pytest.raises(TableNotRegistered) as excinfo:
                call(people_db)
        execute.assert_not_called()
        assert excinfo.value.table_name == "Ghost"
        assert str(excinfo.value) == "Table 'Ghost' not found"

    def test_translation_errors_precede_engine(self, people_db):
        with patch.object(Session, "execute") as execute:
            with pytest.raises(TranslationError):
                people_db.update("Person", {"age": 1}, {"age": {"between": [1]}})
            with pytest.raises(TranslationError):
                people_db.delete("Person", {"age": {"matches": 1}})
        execute.assert_not_called()


class TestRawQuery:
    """Raw statements bypass translation."""

    def test_select(self, seeded_db):
        result = seeded_db.query("SELECT name FROM person WHERE age > :age ORDER BY age", {"age": 50})
        assert result.results == [{"name": "Carol"}, {"name": "Dave"}]
        assert result.metadata["columns"] == ["name"]

    def test_write(self, seeded_db):
        result = seeded_db.query("UPDATE person SET active = 0")
        assert result.results == []
        assert result.metadata["rowcount"] == 5

    def test_malformed_statement_is_reported_and_raised(self, seeded_db, caplog):
        with caplog.at_level(logging.ERROR, logger="madatabase"):
            with pytest.raises(EngineError):
                seeded_db.query("SELEC nonsense")
        errors = [r for r in caplog.records if r.levelno == logging.ERROR]
        assert len(errors) == 1
        assert "executing raw query" in errors[0].getMessage()
