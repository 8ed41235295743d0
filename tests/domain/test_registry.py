from __future__ import annotations

import pytest

from associated_save.config import ConfigurationError
from associated_save.domain.errors import AssociationConfigurationError
from associated_save.domain.registry import AssociationRegistry
from tests.helpers.fakes import RecordingIntrospector


class Collection:
    pass


class SpecialCollection(Collection):
    pass


def test_declare_returns_defaults_and_reflects() -> None:
    registry = AssociationRegistry()

    declared = registry.declare(Collection, "items")
    reflection = registry.reflect(Collection, "items")

    assert reflection == declared
    assert reflection.from_attr == "_items"
    assert reflection.callback == "save_associated_items"
    assert reflection.delete is True


def test_declare_validates_with_introspector() -> None:
    introspector = RecordingIntrospector(rejected={"missing"})
    registry = AssociationRegistry(introspector)

    registry.declare(Collection, "items")
    with pytest.raises(AssociationConfigurationError, match="rejected"):
        registry.declare(Collection, "missing")

    assert introspector.seen == [(Collection, "items"), (Collection, "missing")]
    assert (Collection, "missing") not in registry


def test_declare_rejects_duplicates() -> None:
    registry = AssociationRegistry()
    registry.declare(Collection, "items")

    with pytest.raises(AssociationConfigurationError, match="already declared"):
        registry.declare(Collection, "items", delete=False)


def test_declare_rejects_shared_from_attr() -> None:
    registry = AssociationRegistry()
    registry.declare(Collection, "items", from_attr="rows")

    with pytest.raises(AssociationConfigurationError, match="already reads from 'rows'"):
        registry.declare(Collection, "tags", from_attr="rows")


def test_declare_rejects_empty_name() -> None:
    with pytest.raises(AssociationConfigurationError):
        AssociationRegistry().declare(Collection, "")


def test_reflect_unknown_association() -> None:
    registry = AssociationRegistry()

    with pytest.raises(AssociationConfigurationError, match="not declared"):
        registry.reflect(Collection, "items")


def test_subclasses_inherit_and_may_override() -> None:
    registry = AssociationRegistry()
    registry.declare(Collection, "items")
    registry.declare(Collection, "tags")
    registry.declare(SpecialCollection, "tags", delete=False)

    inherited = registry.configs_for(SpecialCollection)

    assert [config.name for config in inherited] == ["items", "tags"]
    assert registry.reflect(SpecialCollection, "tags").delete is False
    assert registry.reflect(Collection, "tags").delete is True
    assert (SpecialCollection, "items") in registry


def test_iteration_and_length() -> None:
    registry = AssociationRegistry()
    registry.declare(Collection, "items")
    registry.declare(SpecialCollection, "tags")

    assert len(registry) == 2
    assert [(cls, config.name) for cls, config in registry] == [
        (Collection, "items"),
        (SpecialCollection, "tags"),
    ]
    assert "items" not in registry


def test_declaration_errors_are_configuration_errors() -> None:
    registry = AssociationRegistry()

    with pytest.raises(ConfigurationError, match="is not declared"):
        registry.reflect(Collection, "items")
