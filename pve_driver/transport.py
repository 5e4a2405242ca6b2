import logging

import requests

from .exceptions import ProxmoxAPIError, ProxmoxConnectionError

logger = logging.getLogger(__name__)


def format_cookie_header(cookies):
    """
    Render a cookie mapping as the value of a Cookie header.

    Values are written exactly as given; '+%20%21' stays '+%20%21'. The cookie jar
    of requests is bypassed so Proxmox tickets reach the server unaltered.
    """
    return '; '.join(f'{name}={value}' for name, value in cookies.items())


def _error_message(response):
    if response is None:
        return "HTTP error without response"
    message = f"HTTP {response.status_code}: {response.reason}"
    try:
        body = response.json()
    except ValueError:
        return message
    if isinstance(body, dict) and body.get('errors'):
        message = f"{message} {body['errors']}"
    return message


class HttpTransport:
    """
    Thin synchronous wrapper around a requests session.

    Builds URLs relative to the API base URL, renders cookies and headers, decodes
    the JSON envelope and translates every failure into a ProxmoxError.
    """

    def __init__(self, api_url, verify_ssl=True, timeout=30, session=None):
        """
        :param api_url: API base URL (e.g., 'https://pve.example.com:8006/api2/json')
        :param verify_ssl: Whether to verify SSL certificates
        :param timeout: Per-request timeout in seconds
        :param session: Optional requests session to reuse
        """
        self.api_url = api_url
        self.verify_ssl = verify_ssl
        self.timeout = timeout
        self.session = session if session is not None else requests.Session()

    def url(self, path):
        return f"{self.api_url.rstrip('/')}/{path.lstrip('/')}"

    def build_headers(self, cookies=None, headers=None):
        result = dict(headers or {})
        if cookies:
            result['Cookie'] = format_cookie_header(cookies)
        return result

    def request(self, method, path, data=None, params=None, cookies=None, headers=None, files=None):
        """
        Perform one request against the API.

        :param method: HTTP method
        :param path: API path (e.g., '/cluster/resources')
        :param data: Optional form parameters
        :param params: Optional query parameters
        :param cookies: Optional cookies, sent verbatim
        :param headers: Optional extra headers
        :param files: Optional multipart files
        :return: The 'data' member of the JSON response, or the whole body when absent
        """
        url = self.url(path)
        logger.debug(f"{method} {url}")
        try:
            resp = self.session.request(
                method,
                url,
                params=params,
                data=data,
                files=files,
                headers=self.build_headers(cookies, headers),
                verify=self.verify_ssl,
                timeout=self.timeout,
            )
            resp.raise_for_status()
        except requests.exceptions.HTTPError as e:
            status_code = e.response.status_code if e.response is not None else None
            message = _error_message(e.response)
            logger.error(f"{method} {url} failed: {message}")
            raise ProxmoxAPIError(message, status_code=status_code) from e
        except requests.exceptions.Timeout as e:
            logger.error(f"{method} {url} timed out: {e}")
            raise ProxmoxConnectionError(f"Request to {url} timed out: {e}") from e
        except OSError as e:
            # requests.RequestException derives from OSError, as do socket errors
            logger.error(f"{method} {url} failed: {e}")
            raise ProxmoxConnectionError(f"Request to {url} failed: {e}") from e
        return self.decode(resp)

    @staticmethod
    def decode(resp):
        if not resp.content:
            return None
        try:
            payload = resp.json()
        except ValueError as e:
            logger.error(f"Invalid JSON response: {e}")
            raise ProxmoxAPIError(f"Invalid JSON response: {e}", status_code=resp.status_code) from e
        if isinstance(payload, dict) and 'data' in payload:
            return payload['data']
        return payload
