"""
Enumeration types for n2n-admin.

This module defines the enumeration types shared by the services, the
HTTP layer and the CLI.
"""

from enum import Enum


# =============================================================================
# Node-Related Enums
# =============================================================================


class ConnectionType(str, Enum):
    """
    How an online edge reaches the rest of the community.

    - P2P: Edges talk to each other directly
    - RELAY: The supernode forwards packets on the edge's behalf
    """

    P2P = "p2p"
    RELAY = "relay"


class NodeGroup(str, Enum):
    """Vertex groups used by the topology view."""

    SUPERNODE = "supernode"
    ONLINE = "online"
    OFFLINE = "offline"


class Encryption(str, Enum):
    """Edge payload cipher (n2n ``-A`` option)."""

    NONE = "none"
    TWOFISH = "twofish"
    AES = "aes"
    CHACHA20 = "chacha20"
    SPECK = "speck"


# =============================================================================
# Tool Enums
# =============================================================================


class ToolCommand(str, Enum):
    """Diagnostic commands the tools endpoint may run."""

    PING = "ping"
    TRACEROUTE = "traceroute"


# =============================================================================
# Configuration Enums
# =============================================================================


class LogLevel(str, Enum):
    """
    Logging verbosity levels.

    Levels (from most to least verbose):
        - FULL: Complete trace with detailed stack information
        - DEBUG: Debug messages and above
        - INFO: Informational messages and above
        - WARNING: Only warnings and errors
    """

    FULL = "full"
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
