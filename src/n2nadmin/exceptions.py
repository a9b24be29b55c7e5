"""Exception classes for n2n-admin."""


class N2NAdminError(Exception):
    """Base exception for n2n-admin."""

    pass


class MgmtError(N2NAdminError):
    """The supernode management port could not be queried."""

    def __init__(self, message: str, addr: str):
        self.addr = addr
        super().__init__(f"Management query to {addr} failed: {message}")


class SupernodeConfigError(N2NAdminError):
    """Reading or writing a supernode file failed."""

    def __init__(self, message: str, path: str):
        self.path = path
        super().__init__(f"{path}: {message}")


class ToolError(N2NAdminError):
    """A diagnostic or service command could not be executed."""

    pass
