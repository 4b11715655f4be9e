import logging
from typing import Any, Optional

import requests
from requests.adapters import HTTPAdapter

from pysolarnetwork.exceptions import SolarNetworkApiError
from pysolarnetwork.net.auth_v2 import AuthorizationV2Builder
from pysolarnetwork.net.http_headers import HttpHeaders, HttpMethod

API_TIMEOUT = 10  # Time in seconds to wait for API response

log = logging.getLogger(__name__)


class JsonClient:
    """
    HTTP client for SolarNetwork JSON APIs.

    Requests are signed with SNWS2 authorization when an auth builder with a valid
    signing key is provided. Responses are expected in the SolarNetwork result
    envelope {"success": true, "data": ...} and the data value is returned.

    Args:
        timeout     = Seconds for the timeout on http requests
        poolmaxsize = Pool max size for http connection re-use (persistent connections disabled if zero)
        session     = Optional requests.Session to use
    """

    def __init__(self, timeout: float = API_TIMEOUT, poolmaxsize: int = 10,
                 session: Optional[requests.Session] = None):
        self.timeout = timeout
        if session is not None:
            self.session = session
        elif poolmaxsize > 0:
            # Create session object for http connection re-use
            self.session = requests.Session()
            adapter = HTTPAdapter(pool_maxsize=poolmaxsize)
            self.session.mount('https://', adapter)
            self.session.mount('http://', adapter)
        else:
            # Disable http persistent connections
            self.session = requests

    def signed_headers(self, url: str, method: str = HttpMethod.GET.value,
                       auth: Optional[AuthorizationV2Builder] = None, sign_url: Optional[str] = None) -> dict:
        headers = {HttpHeaders.ACCEPT: "application/json"}
        if auth is not None and auth.signing_key_valid:
            # sign with a per-request copy so a shared builder is never mutated
            signed = (auth.clone_for(auth.environment)
                      .method(method)
                      .sn_date(True)
                      .url(sign_url or url, True)
                      .request())
            headers.update(signed.headers)
        return headers

    def request(self, url: str, method: str = HttpMethod.GET.value,
                auth: Optional[AuthorizationV2Builder] = None, sign_url: Optional[str] = None) -> Any:
        """
        Send a request and return the result envelope data.

        Raises SolarNetworkApiError on transport errors, non-2xx status, malformed JSON
        or a non-success result.
        """
        method = str(method)
        headers = self.signed_headers(url, method, auth, sign_url)
        log.debug(f"{method}: {url}")
        try:
            response = self.session.request(method, url, headers=headers, timeout=self.timeout)
        except requests.exceptions.Timeout as exc:
            log.error(f"Timeout error requesting {url}")
            raise SolarNetworkApiError(f"Timeout requesting {url}") from exc
        except requests.exceptions.RequestException as exc:
            log.error(f"Error requesting {url}: {exc}")
            raise SolarNetworkApiError(f"Error requesting {url}: {exc}") from exc

        if not response.ok:
            message, code = response.reason or f"HTTP {response.status_code}", None
            try:
                body = response.json()
                if isinstance(body, dict):
                    message = body.get('message') or message
                    code = body.get('code')
            except ValueError:
                pass
            log.error(f"Code {response.status_code}: {message}")
            raise SolarNetworkApiError(message, code=code, status=response.status_code)

        try:
            body = response.json()
        except ValueError as exc:
            log.error(f"Invalid JSON response from {url}: {exc}")
            raise SolarNetworkApiError(f"Invalid JSON response from {url}", status=response.status_code) from exc

        if not isinstance(body, dict) or not body.get('success'):
            message = body.get('message') if isinstance(body, dict) else None
            code = body.get('code') if isinstance(body, dict) else None
            raise SolarNetworkApiError(message or "non-success result returned", code=code,
                                       status=response.status_code)
        return body.get('data')

    def get(self, url: str, auth: Optional[AuthorizationV2Builder] = None, sign_url: Optional[str] = None) -> Any:
        return self.request(url, HttpMethod.GET.value, auth, sign_url)

    def post(self, url: str, auth: Optional[AuthorizationV2Builder] = None, sign_url: Optional[str] = None) -> Any:
        return self.request(url, HttpMethod.POST.value, auth, sign_url)

    def close(self):
        if isinstance(self.session, requests.Session):
            self.session.close()
