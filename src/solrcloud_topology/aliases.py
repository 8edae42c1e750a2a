"""
Collection alias resolution.

Maps a user-facing collection or alias name to the canonical collection
name in a ClusterState. Aliases are exactly one hop: an alias never
points to another alias, and this is not re-validated here.
"""

from solrcloud_topology.exceptions import CollectionNotFound
from solrcloud_topology.types import ClusterState


def resolve_names(state: ClusterState, name: str) -> list[str]:
    """
    Resolve a name to every collection it designates.

    A collection name resolves to itself. An alias resolves to its
    targets; the cluster stores multi-collection aliases as a comma
    separated list.

    Args:
        state: Snapshot to resolve against.
        name: Collection or alias name.

    Returns:
        Canonical collection names, in alias order.

    Raises:
        CollectionNotFound: If the name is neither a collection nor an alias.
    """
    if name in state.collections:
        return [name]

    target = state.aliases.get(name)
    if target is None:
        raise CollectionNotFound(name)

    names = [part.strip() for part in target.split(",") if part.strip()]
    if not names:
        raise CollectionNotFound(name, "alias has no target collection")
    return names


def resolve_name(state: ClusterState, name: str) -> str:
    """
    Resolve a name to its canonical collection name.

    For a multi-collection alias this is the first target, the collection
    the cluster routes updates to.

    Raises:
        CollectionNotFound: If the name is neither a collection nor an alias.
    """
    return resolve_names(state, name)[0]
