"""Explicit registry of associations that reconcile on save."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .errors import AssociationConfigurationError
from .model import AssociationConfig

if TYPE_CHECKING:
    from collections.abc import Iterator

    from .ports import AssociationIntrospector


class AssociationRegistry:
    """Maps parent classes to the associations reconciled after they are saved.

    Build one at application setup and hand it to the unit of work. Declarations on a
    base class apply to its subclasses; a subclass may redeclare an association to
    change its options.
    """

    def __init__(self, introspector: AssociationIntrospector | None = None) -> None:
        self._introspector = introspector
        self._configs: dict[type, dict[str, AssociationConfig]] = {}

    def declare(
        self,
        parent_cls: type,
        name: str,
        *,
        from_attr: str | None = None,
        delete: bool = True,
    ) -> AssociationConfig:
        if not name:
            raise AssociationConfigurationError("Association name must not be empty")
        if self._introspector is not None:
            self._introspector.validate(parent_cls, name)

        declared = self._configs.setdefault(parent_cls, {})
        if name in declared:
            raise AssociationConfigurationError(
                f"{parent_cls.__name__}.{name} is already declared for associated save"
            )

        config = AssociationConfig.build(name, from_attr=from_attr, delete=delete)
        for existing in self.configs_for(parent_cls):
            if existing.from_attr == config.from_attr and existing.name != name:
                raise AssociationConfigurationError(
                    f"{parent_cls.__name__}.{existing.name} already reads from "
                    f"{config.from_attr!r}"
                )

        declared[name] = config
        return config

    def reflect(self, parent_cls: type, name: str) -> AssociationConfig:
        for config in self.configs_for(parent_cls):
            if config.name == name:
                return config
        raise AssociationConfigurationError(
            f"{parent_cls.__name__}.{name} is not declared for associated save"
        )

    def configs_for(self, parent_cls: type) -> tuple[AssociationConfig, ...]:
        """Return the configs applying to ``parent_cls``, base-class declarations first."""

        merged: dict[str, AssociationConfig] = {}
        for klass in reversed(parent_cls.__mro__):
            merged.update(self._configs.get(klass, {}))
        return tuple(merged.values())

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, tuple) or len(key) != 2:  # noqa: PLR2004
            return False
        parent_cls, name = key
        if not isinstance(parent_cls, type):
            return False
        return any(config.name == name for config in self.configs_for(parent_cls))

    def __iter__(self) -> Iterator[tuple[type, AssociationConfig]]:
        for parent_cls, declared in self._configs.items():
            for config in declared.values():
                yield parent_cls, config

    def __len__(self) -> int:
        return sum(len(declared) for declared in self._configs.values())
