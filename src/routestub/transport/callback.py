"""
routestub Callback Transport

A two-callback asynchronous HTTP client:

    transport.request(request, on_success, on_failure) -> Future

Requests are first offered to the active stub scope. Stubbed responses are
delivered to on_success from a worker thread. Unmatched requests go to the
real sender, which by default runs a requests.Session call on the same pool.
"""

import logging
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import Any, Callable, Optional

import requests

from ..stub.dispatcher import dispatch_async
from ..stub.request import normalize_request
from ..stub.stub_config import get_config


logger = logging.getLogger("routestub.callback")

SuccessCallback = Callable[[Any], Any]
FailureCallback = Callable[[BaseException], Any]


class CallbackTransport:
    """
    Callback-style HTTP client with stub support.

    Example:
        transport = CallbackTransport()
        with http_stub({"http://example.com": {"get": handler}}):
            future = transport.request("http://example.com", print, log_error)
            future.result()
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        executor: Optional[Executor] = None,
        timeout: int = 30
    ):
        """
        Initialize transport.

        Args:
            session: Session used for real requests (created if None)
            executor: Worker pool for callbacks (created if None)
            timeout: Real request timeout in seconds
        """
        self.session = session or requests.Session()
        self.executor = executor or ThreadPoolExecutor(
            max_workers=get_config().async_max_workers,
            thread_name_prefix="routestub-callback"
        )
        self.timeout = timeout

    def send_real(self, raw_request: Any, on_success: SuccessCallback, on_failure: FailureCallback) -> Future:
        """
        Send a request over the network on the worker pool.

        Args:
            raw_request: Request in any form accepted by normalize_request
            on_success: Called with the requests.Response
            on_failure: Called with any exception raised while sending or by on_success

        Returns:
            Future resolving to the response (or None on failure)
        """
        request = normalize_request(raw_request)

        def run():
            try:
                response = self.session.request(
                    method=request.method,
                    url=request.address,
                    headers=request.headers or None,
                    data=request.body,
                    timeout=self.timeout
                )
                on_success(response)
            except Exception as e:
                logger.debug(f"Real request failed: {request.method} {request.address}: {e}")
                on_failure(e)
                return None
            return response

        return self.executor.submit(run)

    def request(self, raw_request: Any, on_success: SuccessCallback, on_failure: FailureCallback) -> Any:
        """
        Issue a request, stubbed if the active scope has a matching route.

        Raises:
            NoMatchingRouteError: In isolation mode, after on_failure was called
        """
        return dispatch_async(raw_request, self.send_real, on_success, on_failure, self.executor)

    def close(self):
        """Shut down the worker pool and session."""
        self.executor.shutdown(wait=True)
        self.session.close()
