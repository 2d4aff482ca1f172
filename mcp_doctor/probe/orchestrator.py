"""Concurrent probing of every declared server."""

import asyncio
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from ..models import ConfigDocument, ProbeResult, ServerSpec, servers_from_mapping
from ..services.config_loader import get_servers_from_config
from .prober import HandshakeProber


def merge_probe_results(results: Iterable[ProbeResult]) -> List[ProbeResult]:
    """Deduplicate results by server name.

    A healthy result always wins over an unhealthy one; among results of the
    same health the later one replaces the earlier one. First-seen name order
    is preserved.
    """
    merged: Dict[str, ProbeResult] = {}
    for result in results:
        existing = merged.get(result.name)
        if existing is None or result.healthy or not existing.healthy:
            merged[result.name] = result
    return list(merged.values())


class ProbeOrchestrator:
    """Runs one handshake prober per server concurrently."""

    def __init__(
        self,
        prober: Optional[HandshakeProber] = None,
        max_concurrency: Optional[int] = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            prober: Prober used for every server
            max_concurrency: Optional cap on simultaneously running probes;
                by default every server gets its own task
        """
        self.prober = prober or HandshakeProber()
        self.max_concurrency = max_concurrency

    async def _probe_one(
        self, server: ServerSpec, semaphore: Optional[asyncio.Semaphore]
    ) -> ProbeResult:
        if semaphore is None:
            return await self.prober.probe(server)
        async with semaphore:
            return await self.prober.probe(server)

    async def probe_servers(self, servers: Mapping[str, ServerSpec]) -> List[ProbeResult]:
        """Probe every server in a mapping; returns once all probes finished."""
        return await self._probe_all(list(servers.values()))

    async def probe_config(
        self, config: Mapping[str, Any], source_file: Optional[str] = None
    ) -> List[ProbeResult]:
        """Probe every server declared in one config mapping."""
        mapping = get_servers_from_config(config)
        if not mapping:
            return []
        return await self.probe_servers(servers_from_mapping(mapping, source_file))

    async def probe_documents(self, documents: Sequence[ConfigDocument]) -> List[ProbeResult]:
        """Probe the servers of several documents and merge duplicate names."""
        servers: List[ServerSpec] = []
        for document in documents:
            if document.mapping is None:
                continue
            mapping = get_servers_from_config(document.mapping)
            if mapping:
                servers.extend(servers_from_mapping(mapping, document.path).values())

        return merge_probe_results(await self._probe_all(servers))

    async def _probe_all(self, servers: List[ServerSpec]) -> List[ProbeResult]:
        if not servers:
            return []

        semaphore = asyncio.Semaphore(self.max_concurrency) if self.max_concurrency else None
        tasks = [self._probe_one(server, semaphore) for server in servers]
        outcomes = await asyncio.gather(*tasks, return_exceptions=True)

        results: List[ProbeResult] = []
        for server, outcome in zip(servers, outcomes):
            if isinstance(outcome, ProbeResult):
                results.append(outcome)
            else:
                # A crashing probe is reported, never propagated
                results.append(
                    ProbeResult.failure(
                        server.name,
                        f"Probe failed unexpectedly: {type(outcome).__name__}: {outcome}",
                        source_file=server.source_file,
                    )
                )
        return results
