"""
Exception classes for topology reading and endpoint resolution.

This module defines the error taxonomy shared by the snapshot reader,
the backends and the resolvers:
- TopologyError: Base class for every error raised by this package
- BackendUnavailable: Transport failure, HTTP error status or fetch timeout
- MalformedSnapshot: Structurally invalid topology document
- CollectionNotFound: Name or alias resolves to nothing in the snapshot
- LeaderUnavailable: A shard has no leader when one is required

Per project patterns:
- Store context data in attributes for error handling
- Include descriptive message with the collection and shard names
"""


class TopologyError(Exception):
    """
    Base class for cluster topology errors.

    Decode-time failures during snapshot construction are raised as
    subclasses of this type; callers that do not care about the exact
    cause can catch TopologyError alone.
    """


class BackendUnavailable(TopologyError):
    """
    Raised when the topology backend cannot be reached.

    Covers connection errors, HTTP error statuses, ZooKeeper session
    problems and fetch timeouts. No partial state is usable after this.

    Attributes:
        source: Description of the backend that failed (URL or ZK hosts)
        reason: What went wrong
    """

    def __init__(self, source: str, reason: str) -> None:
        self.source = source
        self.reason = reason
        super().__init__(f"Topology backend {source} unavailable: {reason}")


class MalformedSnapshot(TopologyError):
    """
    Raised when a topology document is structurally invalid.

    Attributes:
        detail: What is missing or invalid
        collection: Collection whose state document failed, if known
        shard: Shard whose state failed, if known
    """

    def __init__(
        self,
        detail: str,
        collection: str | None = None,
        shard: str | None = None,
    ) -> None:
        self.detail = detail
        self.collection = collection
        self.shard = shard

        where = ""
        if collection is not None:
            where = f" in collection '{collection}'"
            if shard is not None:
                where += f" shard '{shard}'"
        super().__init__(f"Malformed cluster state{where}: {detail}")


class CollectionNotFound(TopologyError):
    """
    Raised when a collection or alias name resolves to nothing.

    The snapshot may be stale relative to the cluster; the caller may
    re-resolve against a refreshed snapshot.

    Attributes:
        name: The collection or alias name that was requested
        detail: Optional extra context
    """

    def __init__(self, name: str, detail: str | None = None) -> None:
        self.name = name
        self.detail = detail
        message = f"Collection '{name}' not found"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class LeaderUnavailable(TopologyError):
    """
    Raised when a shard has no leader replica.

    This happens mid-election or when the leader's node went away.
    Leader-only routing never falls back to a non-leader replica.

    Attributes:
        collection: The collection owning the shard
        shard: The shard lacking a leader
    """

    def __init__(self, collection: str, shard: str) -> None:
        self.collection = collection
        self.shard = shard
        super().__init__(
            f"No leader available for shard '{shard}' "
            f"of collection '{collection}'"
        )
