from __future__ import annotations

import uuid

import pytest

from associated_save.adapters.sqlalchemy.association import (
    SqlAlchemyAssociationIntrospector,
    coerce_identifier,
    describe_association,
    primary_key_type,
)
from associated_save.domain.errors import AssociationConfigurationError
from tests.helpers.library import Collection, Item, Tag, Unmapped, start_mappers


@pytest.fixture(autouse=True)
def mapped() -> None:
    start_mappers()


def test_describe_items_association() -> None:
    shape = describe_association(Collection, "items")

    assert shape.child_cls is Item
    assert shape.id_key == "id"
    assert shape.id_type is int
    assert shape.foreign_key == "collection_id"
    assert shape.parent_key == "id"
    assert shape.has_position is True


def test_describe_tags_association_without_position() -> None:
    shape = describe_association(Collection, "tags")

    assert shape.child_cls is Tag
    assert shape.id_type is uuid.UUID
    assert shape.has_position is False


def test_introspector_rejects_missing_relationship() -> None:
    with pytest.raises(AssociationConfigurationError, match="not a mapped relationship"):
        SqlAlchemyAssociationIntrospector().validate(Collection, "widgets")


def test_introspector_rejects_column_attribute() -> None:
    with pytest.raises(AssociationConfigurationError, match="not a mapped relationship"):
        SqlAlchemyAssociationIntrospector().validate(Collection, "name")


def test_introspector_rejects_many_to_one() -> None:
    with pytest.raises(AssociationConfigurationError, match="not a one-to-many"):
        SqlAlchemyAssociationIntrospector().validate(Item, "collection")


def test_introspector_rejects_unmapped_class() -> None:
    with pytest.raises(AssociationConfigurationError, match="not a mapped class"):
        SqlAlchemyAssociationIntrospector().validate(Unmapped, "items")


def test_primary_key_type() -> None:
    assert primary_key_type(Collection) is int
    assert primary_key_type(Tag) is uuid.UUID


@pytest.mark.parametrize(
    ("value", "id_type", "expected"),
    [
        ("7", int, 7),
        (" 7 ", int, 7),
        (7, int, 7),
        (7.0, int, 7),
        ("abc", str, "abc"),
        ("x", None, "x"),
    ],
)
def test_coerce_identifier(value: object, id_type: type | None, expected: object) -> None:
    assert coerce_identifier(value, id_type) == expected


def test_coerce_identifier_accepts_uuid_strings() -> None:
    value = uuid.uuid4()

    assert coerce_identifier(str(value).upper(), uuid.UUID) == value
    assert coerce_identifier(value.hex, uuid.UUID) == value


@pytest.mark.parametrize(
    ("value", "id_type"),
    [
        ("abc", int),
        ("1.5", int),
        (1.5, int),
        ("not-a-uuid", uuid.UUID),
        (None, int),
        (True, int),
        (False, int),
    ],
)
def test_coerce_identifier_rejects_invalid_values(value: object, id_type: type) -> None:
    with pytest.raises(ValueError, match="not a valid|not an integer"):
        coerce_identifier(value, id_type)
