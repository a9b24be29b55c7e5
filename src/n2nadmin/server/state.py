"""
Service wiring for the admin server.

Every shared in-memory table lives in one service object that owns its
lock. The services are created once per application and handed to
endpoints through ``app.state``.
"""

from dataclasses import dataclass
from typing import Annotated

import httpx
from fastapi import Depends, Request

from n2nadmin.db.inventory import DatabaseInventory
from n2nadmin.server.background.log_tailer import (
    JournalLogSource,
    LogSource,
    LogTailer,
)
from n2nadmin.server.config import ServerConfig
from n2nadmin.services.aggregator import NodeAggregator, NodeInventory, PeerSource
from n2nadmin.services.geoip import GeoIPCache
from n2nadmin.services.login_throttle import LoginThrottle
from n2nadmin.services.mgmt_client import MgmtClient
from n2nadmin.services.relay_tracker import RelayTracker


@dataclass
class Services:
    """Handles to the live-state services."""

    config: ServerConfig
    peers: PeerSource
    geoip: GeoIPCache
    relays: RelayTracker
    throttle: LoginThrottle
    aggregator: NodeAggregator
    tailer: LogTailer

    @classmethod
    def build(
        cls,
        config: ServerConfig,
        inventory: NodeInventory | None = None,
        peers: PeerSource | None = None,
        log_source: LogSource | None = None,
        http_client: httpx.Client | None = None,
    ) -> "Services":
        """
        Create the services from configuration.

        Any collaborator may be injected; missing ones get their production
        implementation.
        """
        peers = peers or MgmtClient.from_config(config)
        geoip = GeoIPCache.from_config(config, client=http_client)
        relays = RelayTracker(stale_seconds=config.RELAY_STALE_SECONDS)
        throttle = LoginThrottle.from_config(config)
        aggregator = NodeAggregator(
            inventory=inventory or DatabaseInventory(),
            peers=peers,
            relays=relays,
            geoip=geoip,
        )
        tailer = LogTailer(
            source=log_source or JournalLogSource(config.SUPERNODE_UNIT),
            tracker=relays,
            retry_seconds=config.LOG_TAILER_RETRY_SECONDS,
            restart_seconds=config.LOG_TAILER_RESTART_SECONDS,
        )
        return cls(
            config=config,
            peers=peers,
            geoip=geoip,
            relays=relays,
            throttle=throttle,
            aggregator=aggregator,
            tailer=tailer,
        )

    def close(self) -> None:
        self.geoip.close()


def get_services(request: Request) -> Services:
    """Dependency: the services of the running application."""
    return request.app.state.services


ServicesDep = Annotated[Services, Depends(get_services)]
