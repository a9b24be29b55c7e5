"""
Edge configuration file generation.

Renders the ``edge.conf`` an n2n edge needs to join its community, in the
one-option-per-line format the edge reads with ``edge /etc/n2n/edge.conf``.
"""

from dataclasses import dataclass

from n2nadmin.models.enums import Encryption
from n2nadmin.services.addressing import format_mac

DEFAULT_COMMUNITY_PASSWORD = "password"

# n2n -A<n> transform ids
_CIPHER_IDS = {
    Encryption.NONE: 1,
    Encryption.TWOFISH: 2,
    Encryption.AES: 3,
    Encryption.CHACHA20: 4,
    Encryption.SPECK: 5,
}


@dataclass
class EdgeConfigParams:
    name: str
    ip_address: str
    community: str
    password: str
    supernode: str
    mac_address: str
    encryption: str = Encryption.AES.value
    compression: bool = False
    routing: str = ""
    local_port: int = 0


def render_edge_config(params: EdgeConfigParams) -> str:
    """Render an edge.conf for one node."""
    try:
        cipher = _CIPHER_IDS[Encryption(params.encryption.lower())]
    except ValueError:
        cipher = _CIPHER_IDS[Encryption.AES]

    lines = [
        f"# n2n edge configuration for {params.name}",
        "-d=n2n0",
        f"-c={params.community}",
        f"-k={params.password or DEFAULT_COMMUNITY_PASSWORD}",
        f"-a={params.ip_address}",
        f"-l={params.supernode or '<supernode-host>:<port>'}",
        f"-m={format_mac(params.mac_address)}",
        f"-A{cipher}",
        f"-I={params.name}",
    ]
    if params.compression:
        lines.append("-z1")
    if params.local_port:
        lines.append(f"-p={params.local_port}")
    if params.routing:
        lines.append("-r")
        lines.append(f"-n={params.routing}")

    return "\n".join(lines) + "\n"
