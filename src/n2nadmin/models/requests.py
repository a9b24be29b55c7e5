"""
Pydantic models for API requests.

Model Categories:
    - Auth Requests: Login and password change
    - Inventory Requests: Node and community creation
    - Tool Requests: Diagnostic command execution
"""

from pydantic import BaseModel, Field

from n2nadmin.models.enums import Encryption, ToolCommand


# =============================================================================
# Auth Requests
# =============================================================================


class LoginRequest(BaseModel):
    """Login request body."""

    username: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=1)


class ChangePasswordRequest(BaseModel):
    """Password change request body."""

    old_password: str = Field(..., min_length=1)
    new_password: str = Field(..., description="At least 6 characters")


# =============================================================================
# Inventory Requests
# =============================================================================


class NodeCreateRequest(BaseModel):
    """
    Request body for registering an edge node.

    Empty ``mac_address`` generates a random locally administered address;
    empty ``ip_address`` allocates the next free address in the
    community's range.
    """

    name: str = Field(..., max_length=100)
    community: str = Field(..., max_length=50)
    ip_address: str = Field(default="", max_length=45)
    mac_address: str = Field(default="", max_length=17)
    description: str = ""
    encryption: Encryption = Encryption.AES
    compression: bool = False
    local_port: int = Field(default=0, ge=0, le=65535)
    route_net: str = Field(default="", description="Routed network CIDR")
    route_gw: str = Field(default="", description="Gateway for route_net")


class CommunityCreateRequest(BaseModel):
    """Request body for creating a community."""

    name: str = Field(..., max_length=50)
    range: str = Field(default="", description="Overlay CIDR, e.g. 10.0.0.0/24")
    password: str = Field(..., description="At least 4 characters")


# =============================================================================
# Tool Requests
# =============================================================================


class ToolExecRequest(BaseModel):
    """Diagnostic command request."""

    command: ToolCommand
    target: str = Field(..., max_length=253)
