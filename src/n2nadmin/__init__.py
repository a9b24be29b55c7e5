"""
n2n-admin: web administration panel for an n2n supernode.

Manages the node/community inventory and aggregates live network state
from the supernode management port, its system log and GeoIP lookups.
"""

__version__ = "1.0.0"
