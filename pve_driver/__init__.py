"""
Proxmox VE driver: sessions, task polling and VM lifecycle operations.
"""

from .config import ConnectionConfig, load_config, load_connection
from .connection import NOT_CREATED, Connection
from .exceptions import (
    InvalidCredentials,
    NoVmIdAvailable,
    ProxmoxAPIError,
    ProxmoxConnectionError,
    ProxmoxError,
    TaskTimeoutError,
)
from .tasks import Clock, TaskPoller
from .transport import HttpTransport, format_cookie_header

__version__ = '0.1.0'

__all__ = [
    'Clock',
    'Connection',
    'ConnectionConfig',
    'HttpTransport',
    'InvalidCredentials',
    'NOT_CREATED',
    'NoVmIdAvailable',
    'ProxmoxAPIError',
    'ProxmoxConnectionError',
    'ProxmoxError',
    'TaskPoller',
    'TaskTimeoutError',
    'format_cookie_header',
    'load_config',
    'load_connection',
]
