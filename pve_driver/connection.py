import logging
import os

from .allocator import find_free_vm_id, used_vm_ids
from .exceptions import InvalidCredentials, ProxmoxAPIError, ProxmoxConnectionError
from .tasks import TaskPoller
from .transport import HttpTransport

logger = logging.getLogger(__name__)

DEFAULT_VM_ID_RANGE = range(900, 1000)
VM_TYPES = ('openvz', 'qemu', 'lxc')
NOT_CREATED = 'not_created'


def _as_range(vm_id_range):
    if not isinstance(vm_id_range, range):
        lower, upper = vm_id_range
        vm_id_range = range(int(lower), int(upper) + 1)
    if len(vm_id_range) == 0 or vm_id_range.step != 1:
        raise ValueError(f"Invalid VM ID range {vm_id_range}: lower bound must not exceed upper bound")
    return vm_id_range


class Connection:
    """
    Session with one Proxmox VE API endpoint.

    Holds the login ticket and CSRF token, attaches them to every request once both
    are known, and turns the asynchronous server tasks of the VM operations into
    blocking calls. One instance serves one caller at a time.
    """

    def __init__(self, api_url, vm_id_range=DEFAULT_VM_ID_RANGE, task_timeout=60,
                 task_status_check_interval=2, vm_type='openvz', verify_ssl=True,
                 timeout=30, clock=None):
        """
        :param api_url: API base URL (e.g., 'https://pve.example.com:8006/api2/json')
        :param vm_id_range: VM IDs available for allocation, a range or a (lower, upper) pair
        :param task_timeout: Seconds to wait for a server task
        :param task_status_check_interval: Seconds between two task status checks
        :param vm_type: VM type path segment ('openvz', 'qemu' or 'lxc')
        :param verify_ssl: Whether to verify SSL certificates
        :param timeout: Per-request timeout in seconds
        :param clock: Optional clock used while waiting for tasks
        """
        if vm_type not in VM_TYPES:
            raise ValueError(f"Invalid VM type '{vm_type}': must be one of {', '.join(VM_TYPES)}")
        self._api_url = api_url
        self.vm_id_range = vm_id_range
        self.task_timeout = task_timeout
        self.task_status_check_interval = task_status_check_interval
        self.vm_type = vm_type
        self.clock = clock
        self.transport = HttpTransport(api_url, verify_ssl=verify_ssl, timeout=timeout)
        self.ticket = None
        self.csrf_token = None

    @property
    def api_url(self):
        return self._api_url

    @property
    def vm_id_range(self):
        return self._vm_id_range

    @vm_id_range.setter
    def vm_id_range(self, value):
        self._vm_id_range = _as_range(value)

    @property
    def is_authenticated(self):
        return bool(self.ticket and self.csrf_token)

    def login(self, username, password):
        """
        Obtain a fresh ticket and CSRF prevention token.

        :param username: User name including realm (e.g., 'root@pam')
        :param password: Password of the user
        """
        try:
            response = self.transport.request(
                'POST', '/access/ticket', data={'username': username, 'password': password}
            )
        except ProxmoxAPIError as e:
            logger.error(f"Login of {username} rejected: {e}")
            raise InvalidCredentials(f"Login of {username} failed: {e}") from e
        except ProxmoxConnectionError as e:
            logger.error(f"Login of {username} failed: {e}")
            raise
        ticket = response.get('ticket') if isinstance(response, dict) else None
        csrf_token = response.get('CSRFPreventionToken') if isinstance(response, dict) else None
        if not ticket or not csrf_token:
            logger.error(f"Login of {username} returned no ticket")
            raise InvalidCredentials(f"Login of {username} failed: no ticket in response")
        self.ticket = ticket
        self.csrf_token = csrf_token
        logger.info(f"Logged in to {self.api_url} as {username}")

    def _credentials(self):
        if not self.is_authenticated:
            return None, None
        return {'PVEAuthCookie': self.ticket}, {'CSRFPreventionToken': self.csrf_token}

    def get(self, path, params=None):
        cookies, headers = self._credentials()
        return self.transport.request('GET', path, params=params, cookies=cookies, headers=headers)

    def post(self, path, data=None, files=None):
        cookies, headers = self._credentials()
        return self.transport.request('POST', path, data=data, files=files, cookies=cookies, headers=headers)

    def delete(self, path):
        cookies, headers = self._credentials()
        return self.transport.request('DELETE', path, cookies=cookies, headers=headers)

    def _vm_path(self, node, vm_id=None, *parts):
        path = f'/nodes/{node}/{self.vm_type}'
        if vm_id is not None:
            path = f'{path}/{vm_id}'
        for part in parts:
            path = f'{path}/{part}'
        return path

    def get_node_list(self):
        """Return the names of all cluster nodes."""
        nodes = self.get('/nodes') or []
        return [n['node'] for n in nodes]

    def get_vm_state(self, node, vm_id):
        """
        Return the state of a VM ('stopped', 'running', ...).

        Proxmox answers the status query of a missing VM with a server error (5xx),
        which yields 'not_created'. Every other error is raised.
        """
        try:
            status = self.get(self._vm_path(node, vm_id, 'status', 'current'))
        except ProxmoxAPIError as e:
            if e.status_code is None or not 500 <= e.status_code < 600:
                raise
            logger.warning(f"Status of {self.vm_type} {vm_id} on node {node} unavailable, assuming not created: {e}")
            return NOT_CREATED
        if not isinstance(status, dict) or 'status' not in status:
            raise ProxmoxAPIError(f"No status reported for {self.vm_type} {vm_id} on node {node}")
        return status['status']

    def get_vm_config(self, node, vm_id):
        return self.get(self._vm_path(node, vm_id, 'config'))

    def get_task_exitstatus(self, upid, node):
        """
        Return the exit status of a task, or None while it is still running.

        :param upid: Unique Process ID
        :param node: Node name
        """
        status = self.get(f'/nodes/{node}/tasks/{upid}/status') or {}
        if not isinstance(status, dict):
            logger.error(f"Unexpected status of task {upid} on node {node}: {status!r}")
            raise ProxmoxAPIError(f"Unexpected status of task {upid} on node {node}")
        return status.get('exitstatus')

    def wait_for_completion(self, upid, node, timeout_message=''):
        """
        Block until the task exits and return its exit status.

        Raises TaskTimeoutError with timeout_message once task_timeout has elapsed.
        """
        poller = TaskPoller(
            self.get_task_exitstatus,
            timeout=self.task_timeout,
            interval=self.task_status_check_interval,
            clock=self.clock,
        )
        return poller.wait_for_completion(upid, node, timeout_message)

    def get_free_vm_id(self):
        """
        Return the lowest VM ID of vm_id_range not used anywhere in the cluster.

        The cluster resources are read on every call.
        """
        resources = self.get('/cluster/resources', params={'type': 'vm'})
        vm_id = find_free_vm_id(used_vm_ids(resources), self.vm_id_range)
        logger.info(f"Allocated free VM ID {vm_id}")
        return vm_id

    def _run_task(self, upid, node, description):
        logger.info(f"{description} initiated, UPID: {upid}")
        return self.wait_for_completion(upid, node, f"{description} timed out")

    def create_vm(self, node, params):
        """
        Create a VM and wait for the creation task.

        :param node: Node name
        :param params: Creation parameters, passed to the server as given
        :return: Task exit status
        """
        upid = self.post(self._vm_path(node), params)
        return self._run_task(upid, node, f"Creation of {self.vm_type} on node {node}")

    def delete_vm(self, node, vm_id):
        upid = self.delete(self._vm_path(node, vm_id))
        return self._run_task(upid, node, f"Deletion of {self.vm_type} {vm_id}")

    def _vm_action(self, node, vm_id, action):
        upid = self.post(self._vm_path(node, vm_id, 'status', action), None)
        return self._run_task(upid, node, f"{self.vm_type} {vm_id} action '{action}'")

    def start_vm(self, node, vm_id):
        return self._vm_action(node, vm_id, 'start')

    def stop_vm(self, node, vm_id):
        return self._vm_action(node, vm_id, 'stop')

    def shutdown_vm(self, node, vm_id):
        return self._vm_action(node, vm_id, 'shutdown')

    def list_storage_files(self, node, storage):
        """Return the volume IDs stored in a storage of a node."""
        content = self.get(f'/nodes/{node}/storage/{storage}/content') or []
        return [c['volid'] for c in content]

    def is_file_in_storage(self, filename, node, storage):
        basename = os.path.basename(filename)
        return any(basename in volid for volid in self.list_storage_files(node, storage))

    def upload_file(self, file, content_type, node, storage):
        """
        Upload a file (template, ISO) to a storage unless it is already there.

        :param file: Local path of the file
        :param content_type: Storage content type (e.g., 'vztmpl', 'iso')
        :param node: Node name
        :param storage: Storage ID
        :return: Task exit status, or None when the file was already stored
        """
        if self.is_file_in_storage(file, node, storage):
            logger.info(f"{os.path.basename(file)} already present in storage {storage} on node {node}")
            return None
        with open(file, 'rb') as f:
            upid = self.post(
                f'/nodes/{node}/storage/{storage}/upload',
                {'content': content_type},
                files={'filename': (os.path.basename(file), f)},
            )
        return self._run_task(upid, node, f"Upload of {os.path.basename(file)} to storage {storage}")
