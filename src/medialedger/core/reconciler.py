"""Inventory reconciliation between the filesystem and the catalog.

A pure set-diff: every absolute path seen on disk or in the catalog gets
exactly one ``InventoryAction``.
"""

from collections import Counter
from collections.abc import Iterable, Mapping

import structlog

from medialedger.core.schemas import InventoryAction

logger = structlog.get_logger(__name__)


def collection_action(in_catalog: bool, on_filesystem: bool) -> InventoryAction:
    """Decide what to do with one path.

    Args:
        in_catalog: Path is a known catalog record
        on_filesystem: Path was found by the filesystem scan

    Returns:
        DELETE for catalog-only paths, ADD for disk-only paths, SKIP otherwise
    """
    if in_catalog and not on_filesystem:
        return InventoryAction.DELETE
    if on_filesystem and not in_catalog:
        return InventoryAction.ADD
    return InventoryAction.SKIP


def reconcile(
    filesystem_paths: Iterable[str], catalog_paths: Iterable[str]
) -> dict[str, InventoryAction]:
    """Assign an action to every path in the union of both inventories.

    Args:
        filesystem_paths: Absolute paths found on disk (duplicates allowed)
        catalog_paths: Absolute paths known to the catalog

    Returns:
        Mapping with each path exactly once; disk paths first in scan order,
        then catalog-only paths
    """
    on_disk = dict.fromkeys(filesystem_paths)
    known = dict.fromkeys(catalog_paths)

    actions: dict[str, InventoryAction] = {}
    for path in (*on_disk, *known):
        if path in actions:
            continue
        actions[path] = collection_action(path in known, path in on_disk)

    logger.debug("reconcile.done", **{k.value: v for k, v in summarize(actions).items()})
    return actions


def summarize(actions: Mapping[str, InventoryAction]) -> Counter[InventoryAction]:
    """Count actions per kind (ADD/DELETE/SKIP)."""
    counts: Counter[InventoryAction] = Counter({action: 0 for action in InventoryAction})
    counts.update(actions.values())
    return counts
