"""
Process-wide HTTP session.

One ``requests.Session`` is shared by every update task. It is created lazily on
first use, at most once even if several worker threads ask for it at the same
time, and is never replaced for the rest of the process.
"""

import threading
from typing import Any, Optional

import requests
from loguru import logger

from modupdater.utils.app_info import AppInfo
from modupdater.utils.exception import TransportError

_session: Optional[requests.Session] = None
_session_lock = threading.Lock()


def get_session() -> requests.Session:
    global _session
    if _session is None:
        with _session_lock:
            if _session is None:
                session = requests.Session()
                session.headers["User-Agent"] = AppInfo().user_agent
                logger.debug("Created shared HTTP session")
                _session = session
    return _session


def reset_session() -> None:
    """Drop the shared session. Only meant for tests."""
    global _session
    with _session_lock:
        if _session is not None:
            _session.close()
        _session = None


def send(
    session: requests.Session,
    method: str,
    url: str,
    timeout: Optional[float] = None,
    **kwargs: Any,
) -> requests.Response:
    """
    Send a request and fail fast on anything but a success status.

    No retries are attempted; a failed request is reported and left for the next run.

    :param session: Session to send the request with
    :param method: HTTP method
    :param url: URL to request
    :param timeout: Timeout in seconds, None for no timeout
    :param kwargs: Passed through to ``requests.Session.request``
    :return: The successful response
    :raises TransportError: On connection failures and non-2xx status codes
    """
    logger.debug(f"{method.upper()} {url}")
    try:
        response = session.request(method, url, timeout=timeout, **kwargs)
    except requests.RequestException as e:
        raise TransportError(f"Request to {url} failed: {e.__class__.__name__}: {e}") from e

    try:
        response.raise_for_status()
    except requests.HTTPError as e:
        status = f"HTTP {response.status_code}"
        if response.reason:
            status += f" {response.reason}"
        raise TransportError(
            f"{status} for url: {url}", status_code=response.status_code
        ) from e
    return response
