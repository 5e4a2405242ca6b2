"""
Errors raised by the Proxmox driver.

Every public operation raises one of the ProxmoxError subclasses below; transport
and decoding exceptions are translated before they reach the caller.
"""


class ProxmoxError(Exception):
    """Base class of all driver errors."""

    def __init__(self, message=''):
        super().__init__(message)
        self.message = message


class ProxmoxConnectionError(ProxmoxError):
    """The Proxmox server could not be reached."""
    pass


class InvalidCredentials(ProxmoxError):
    """The Proxmox server rejected the login."""
    pass


class TaskTimeoutError(ProxmoxError):
    """A server task did not finish within the task timeout."""

    def __init__(self, message='', upid=None):
        super().__init__(message)
        self.upid = upid


class NoVmIdAvailable(ProxmoxError):
    """Every VM ID of the configured range is in use."""

    def __init__(self, message='', vm_id_range=None):
        super().__init__(message)
        self.vm_id_range = vm_id_range


class ProxmoxAPIError(ProxmoxError):
    """The Proxmox server answered with an error."""

    def __init__(self, message='', status_code=None):
        super().__init__(message)
        self.status_code = status_code
