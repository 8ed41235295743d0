"""Reconcile a parent's child collection with a submitted payload.

For every non-blank payload entry the matching child is updated (when the entry
carries an ``id``) or a new child is created. Children that no entry referenced
are deleted afterwards unless the association was declared with ``delete=False``.
Entries are processed in order and, when the child defines a ``position`` column,
each child's position is its index in the payload.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Final, cast

from .errors import AssociationConfigurationError
from .model import ReconcileResult, is_blank, is_blank_entry

if TYPE_CHECKING:
    from .model import AssociationConfig, PayloadEntry, SubmittedPayload
    from .ports import AssociationGateway, ChildAssociation

POSITION_ATTR: Final[str] = "position"

log = logging.getLogger(__name__)


def reconcile(
    parent: object,
    name: str,
    payload: SubmittedPayload | None,
    config: AssociationConfig,
    *,
    gateway: AssociationGateway,
) -> ReconcileResult:
    """Create, update and delete children of ``parent`` so they match ``payload``.

    ``payload=None`` means nothing was submitted and the call is a no-op. Lookup and
    validation failures propagate and abort the pass; the caller's transaction is
    responsible for discarding the writes performed so far.
    """

    if name != config.name:
        raise AssociationConfigurationError(
            f"Configuration for {config.name!r} cannot reconcile association {name!r}"
        )

    result = ReconcileResult(association=name)
    if payload is None:
        log.debug("No payload submitted for %s.%s", type(parent).__name__, name)
        return result

    association = gateway.bind(parent, name)
    remaining = association.current_ids()

    for index, entry in enumerate(payload):
        if is_blank_entry(entry):
            result.skipped += 1
            continue

        attributes = _merge_attributes(entry, index, association)
        raw_id = attributes.pop(association.id_key, None)

        if is_blank(raw_id):
            child = association.build(attributes)
            child_id = association.identity(child)
            result.created.append(child_id)
            log.debug("Created %s child %s at index %d", name, child_id, index)
        else:
            child_id = association.normalize_id(raw_id)
            child = association.find(child_id)
            if association.update(child, attributes):
                result.updated.append(child_id)
                log.debug("Updated %s child %s at index %d", name, child_id, index)
            else:
                result.unchanged.append(child_id)

        remaining.discard(child_id)

    if config.delete and remaining:
        stale = sorted(cast("set[Any]", remaining))
        association.delete(stale)
        result.deleted.extend(stale)

    log.info(
        "Reconciled %s.%s: created=%d, updated=%d, unchanged=%d, deleted=%d, skipped=%d",
        type(parent).__name__,
        name,
        len(result.created),
        len(result.updated),
        len(result.unchanged),
        len(result.deleted),
        result.skipped,
    )
    return result


def _merge_attributes(
    entry: PayloadEntry,
    index: int,
    association: ChildAssociation,
) -> dict[str, object]:
    attributes: dict[str, object] = {str(key): value for key, value in entry.items()}
    attributes[association.foreign_key] = association.parent_key
    if association.has_position:
        attributes[POSITION_ATTR] = index
    return attributes
