"""
Inventory database models for n2n-admin.

This module defines the node, community and setting models, and the
peewee-backed inventory the aggregator reads from.
"""

import datetime

import peewee

from n2nadmin.db.base import BaseModel
from n2nadmin.models.enums import Encryption
from n2nadmin.services.aggregator import InventoryNode


# =============================================================================
# Community Model
# =============================================================================


class Community(BaseModel):
    """
    An n2n community (a virtual network).

    Attributes:
        name: Community name passed to edges with ``-c``.
        range: Optional overlay CIDR used for address allocation.
        password: Shared encryption key passed to edges with ``-k``.
    """

    id = peewee.AutoField()
    name = peewee.CharField(unique=True, max_length=50)
    range = peewee.CharField(max_length=50, default="")
    password = peewee.CharField(default="")
    created_at = peewee.DateTimeField(default=datetime.datetime.now)

    class Meta:
        table_name = "communities"

    def to_dict(self) -> dict:
        """Convert community to dictionary for API responses."""
        return {
            "id": self.id,
            "name": self.name,
            "range": self.range,
            "password": self.password,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


# =============================================================================
# Node Model
# =============================================================================


class Node(BaseModel):
    """
    A registered edge node.

    The hardware address is stored in canonical form (uppercase hex, no
    separators) so it can be matched directly against live peer keys.
    """

    # -------------------------------------------------------------------------
    # Identification
    # -------------------------------------------------------------------------

    id = peewee.AutoField()
    name = peewee.CharField(max_length=100)
    ip_address = peewee.CharField(max_length=45, unique=True)
    mac_address = peewee.CharField(max_length=17, unique=True)
    community = peewee.CharField(max_length=50, index=True)
    description = peewee.TextField(default="")

    # -------------------------------------------------------------------------
    # Edge Options
    # -------------------------------------------------------------------------

    encryption = peewee.CharField(default=Encryption.AES.value)
    compression = peewee.BooleanField(default=False)
    routing = peewee.CharField(default="")  # e.g. 192.168.1.0/24:10.10.10.5
    local_port = peewee.IntegerField(default=0)

    # -------------------------------------------------------------------------
    # Timestamps
    # -------------------------------------------------------------------------

    created_at = peewee.DateTimeField(default=datetime.datetime.now)
    updated_at = peewee.DateTimeField(default=datetime.datetime.now)

    class Meta:
        table_name = "nodes"

    def save(self, *args, **kwargs):
        self.updated_at = datetime.datetime.now()
        return super().save(*args, **kwargs)

    def to_inventory(self) -> InventoryNode:
        return InventoryNode(
            id=self.id,
            name=self.name,
            ip_address=self.ip_address,
            mac_address=self.mac_address,
            community=self.community,
        )

    def to_dict(self) -> dict:
        """Convert node to dictionary for API responses."""
        return {
            "id": self.id,
            "name": self.name,
            "ip_address": self.ip_address,
            "mac_address": self.mac_address,
            "community": self.community,
            "description": self.description,
            "encryption": self.encryption,
            "compression": self.compression,
            "routing": self.routing,
            "local_port": self.local_port,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


# =============================================================================
# Setting Model
# =============================================================================


class Setting(BaseModel):
    """Free-form key/value settings (e.g. ``supernode_host``)."""

    key = peewee.CharField(primary_key=True)
    value = peewee.TextField(default="")

    class Meta:
        table_name = "settings"

    @classmethod
    def get_value(cls, key: str, default: str = "") -> str:
        setting = cls.get_or_none(cls.key == key)
        return setting.value if setting else default

    @classmethod
    def set_value(cls, key: str, value: str) -> None:
        cls.insert(key=key, value=value).on_conflict_replace().execute()

    @classmethod
    def as_dict(cls) -> dict[str, str]:
        return {s.key: s.value for s in cls.select()}


# =============================================================================
# Aggregator Inventory
# =============================================================================


class DatabaseInventory:
    """NodeInventory backed by the SQLite database."""

    def list_nodes(self) -> list[InventoryNode]:
        return [node.to_inventory() for node in Node.select()]

    def count_communities(self) -> int:
        return Community.select().count()
