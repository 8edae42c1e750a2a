"""Environment-based configuration for the topology client."""

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings

from solrcloud_topology.backends.zookeeper import build_zk_host_string
from solrcloud_topology.reader import DEFAULT_CACHE_KEY


class TopologySettings(BaseSettings):
    """Topology client configuration.

    All settings can be overridden via environment variables with
    SOLRCLOUD_ prefix. List values are JSON encoded. For example:
        SOLRCLOUD_ZK_HOSTS='["zk1:2181","zk2:2181"]'
        SOLRCLOUD_ZK_CHROOT=/solr
        SOLRCLOUD_CACHE_TTL_SECONDS=30

    ZooKeeper is used when zk_hosts is set, otherwise the Collections
    API of solr_urls.
    """

    # ZooKeeper backend
    zk_hosts: list[str] = []
    zk_chroot: str = ""
    zk_timeout_seconds: float = 10.0

    # Collections API backend
    solr_urls: list[str] = []

    # Snapshot refresh
    cache_ttl_seconds: float = 60.0
    fetch_timeout_seconds: float = 10.0
    background_refresh: bool = False

    # Shared cache
    cache_key: str = DEFAULT_CACHE_KEY
    redis_url: str | None = None

    model_config = {"env_prefix": "SOLRCLOUD_"}

    @field_validator("zk_chroot")
    @classmethod
    def _check_chroot(cls, value: str) -> str:
        if value and not value.startswith("/"):
            raise ValueError("The chroot must start with a forward slash.")
        return value.rstrip("/")

    @field_validator("zk_timeout_seconds", "fetch_timeout_seconds")
    @classmethod
    def _check_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("must be positive")
        return value

    @field_validator("cache_ttl_seconds")
    @classmethod
    def _check_ttl(cls, value: float) -> float:
        if value < 0:
            raise ValueError("must not be negative")
        return value

    @model_validator(mode="after")
    def _check_backend(self) -> "TopologySettings":
        if not self.zk_hosts and not self.solr_urls:
            raise ValueError("Either zk_hosts or solr_urls must be configured")
        return self

    @property
    def uses_zookeeper(self) -> bool:
        return bool(self.zk_hosts)

    @property
    def zk_host_string(self) -> str:
        """Kazoo connection string, e.g. "zk1:2181,zk2:2181/solr"."""
        return build_zk_host_string(self.zk_hosts, self.zk_chroot)
