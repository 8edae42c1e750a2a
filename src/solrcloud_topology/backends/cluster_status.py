"""
Collections API backend for cluster topology.

ClusterStatusBackend reads the topology from any cluster member through
GET {solr_url}/admin/collections?action=CLUSTERSTATUS and adapts the
"cluster" object of the response to the backend-neutral document.

The httpx.AsyncClient is injected. Members are tried in random order;
the first one that answers successfully wins.
"""

import logging
import random
from dataclasses import dataclass, field
from typing import Any

import httpx
from pydantic import ValidationError

from solrcloud_topology.exceptions import BackendUnavailable, MalformedSnapshot
from solrcloud_topology.schema import ClusterStatusResponse

logger = logging.getLogger(__name__)

CLUSTER_STATUS_PATH = "/admin/collections"


@dataclass
class ClusterStatusBackend:
    """
    CLUSTERSTATUS backend with injected httpx client.

    Attributes:
        http: Pre-configured httpx.AsyncClient (timeouts, auth). Requests
            use absolute URLs, so no base_url is needed.
        solr_urls: Base URLs of cluster members, e.g.
            ["http://solr1:8983/solr", "http://solr2:8983/solr"].
        rng: Random source for the member order.
        close_client: Whether aclose() closes the http client. Set by the
            factory for clients it creates; injected clients stay open.

    Example:
        async with httpx.AsyncClient(timeout=10.0) as http:
            backend = ClusterStatusBackend(
                http=http, solr_urls=["http://localhost:8983/solr"]
            )
            raw = await backend.fetch_raw_topology()
    """

    http: httpx.AsyncClient
    solr_urls: list[str]
    rng: random.Random = field(default_factory=random.Random)
    close_client: bool = False

    def __post_init__(self) -> None:
        if not self.solr_urls:
            raise ValueError("ClusterStatusBackend needs at least one Solr URL")

    async def fetch_raw_topology(self) -> dict[str, Any]:
        """
        Fetch the topology from the first responsive member.

        Raises:
            BackendUnavailable: If every member failed with a transport
                error or an HTTP error status.
            MalformedSnapshot: If a member answered with an unusable body.
        """
        urls = list(self.solr_urls)
        self.rng.shuffle(urls)

        failures = []
        for url in urls:
            try:
                response = await self.http.get(
                    f"{url.rstrip('/')}{CLUSTER_STATUS_PATH}",
                    params={"action": "CLUSTERSTATUS", "wt": "json"},
                )
                response.raise_for_status()
            except httpx.HTTPError as e:
                logger.warning(f"CLUSTERSTATUS request to {url} failed: {e}")
                failures.append(f"{url}: {e}")
                continue

            logger.debug(f"Read cluster status from {url}")
            return self._topology_from_response(response)

        raise BackendUnavailable(", ".join(self.solr_urls), "; ".join(failures))

    async def aclose(self) -> None:
        if self.close_client:
            await self.http.aclose()

    def _topology_from_response(self, response: httpx.Response) -> dict[str, Any]:
        """
        Adapt a CLUSTERSTATUS response to the backend-neutral document.

        Collection documents are passed through untouched; they are
        validated one by one during decode.
        """
        try:
            data = ClusterStatusResponse.model_validate(response.json())
        except ValueError as e:
            # ValidationError is a ValueError, as is a JSON decode error.
            detail = str(e) if isinstance(e, ValidationError) else f"invalid JSON: {e}"
            raise MalformedSnapshot(f"CLUSTERSTATUS response: {detail}") from e

        cluster = data.cluster
        return {
            "aliases": dict(cluster.aliases),
            "collections": dict(cluster.collections),
            "live_nodes": list(cluster.live_nodes),
        }
