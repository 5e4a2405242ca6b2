import logging
import os
from typing import Optional, Tuple

import yaml
from pydantic import BaseModel, ValidationError, field_validator

from .connection import Connection

logger = logging.getLogger(__name__)

PASSWORD_ENV = 'PROXMOX_PASSWORD'


class ConnectionConfig(BaseModel):
    api_url: str
    vm_id_range: Tuple[int, int] = (900, 999)
    task_timeout: float = 60
    task_status_check_interval: float = 2
    vm_type: str = 'openvz'
    verify_ssl: bool = True
    timeout: int = 30
    username: Optional[str] = None
    password: Optional[str] = None

    @field_validator('vm_id_range')
    @classmethod
    def check_vm_id_range(cls, value):
        lower, upper = value
        if lower > upper:
            raise ValueError(f"lower bound {lower} exceeds upper bound {upper}")
        return value

    @field_validator('task_timeout', 'task_status_check_interval', 'timeout')
    @classmethod
    def check_positive(cls, value):
        if value <= 0:
            raise ValueError("must be positive")
        return value

    def connection(self, clock=None):
        return Connection(
            self.api_url,
            vm_id_range=self.vm_id_range,
            task_timeout=self.task_timeout,
            task_status_check_interval=self.task_status_check_interval,
            vm_type=self.vm_type,
            verify_ssl=self.verify_ssl,
            timeout=self.timeout,
            clock=clock,
        )


def load_config(config_path):
    """
    Read the 'proxmox' section of a YAML configuration file.

    :param config_path: Path of the YAML file
    :return: ConnectionConfig
    """
    with open(config_path, 'r') as f:
        raw_config = yaml.safe_load(f) or {}
    try:
        return ConnectionConfig(**raw_config['proxmox'])
    except KeyError:
        raise ValueError(f"Invalid config: no 'proxmox' section in {config_path}")
    except (TypeError, ValidationError) as e:
        raise ValueError(f"Invalid config: {e}")


def load_connection(config_path):
    """
    Build a Connection from a configuration file, logged in when a user is configured.

    The password falls back to the PROXMOX_PASSWORD environment variable.
    """
    config = load_config(config_path)
    connection = config.connection()
    if config.username:
        password = config.password or os.getenv(PASSWORD_ENV)
        if password is None:
            raise ValueError(f"Invalid config: no password for {config.username}, set {PASSWORD_ENV}")
        connection.login(config.username, password)
    else:
        logger.info(f"No username configured, connection to {config.api_url} is not logged in")
    return connection
