# pySolarNetwork - SNWS2 Authorization
# -*- coding: utf-8 -*-
"""
 SolarNetwork SNWS2 HTTP Authorization

 The SNWS2 scheme signs a canonical form of each HTTP request with a signing
 key derived from the token secret. The signing key only depends on the UTC
 day of the request date, so it can be computed once and re-used for up to 7
 days without the token secret being kept around.

 Functions:
    canonical_query_parameters(params)            - canonical query string
    canonical_headers(names, headers, date)       - canonical headers block
    canonical_header_names(headers, sn_date, ...) - sorted, lower-case header names to sign
    canonical_content_sha256(digest)              - hex body digest
    canonical_request_data(...)                   - the full canonical request
    compute_signing_key(secret, date)             - derive a signing key
    compute_signature_data(data, date)            - the data to sign
    sign(key, data)                               - hex HMAC-SHA256 signature

 Classes:
    AuthorizationV2Builder(token_id, environment) - stateful request signer
    SignedRequest                                 - immutable signed request values

 Example:
    auth = AuthorizationV2Builder("my-token").save_signing_key("my-token-secret")
    header = auth.reset().sn_date(True).url(url, True).build_with_saved_key()
"""

import base64
import hashlib
import hmac
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional, Union
from urllib.parse import quote, urlsplit

from pysolarnetwork.exceptions import SigningKeyError
from pysolarnetwork.net.environment import Environment
from pysolarnetwork.net.http_headers import HttpHeaders, HttpMethod
from pysolarnetwork.net.url_helper import url_query_parse
from pysolarnetwork.util.dates import as_utc, floor_utc_day, http_date, iso8601_date, utc_now
from pysolarnetwork.util.multi_map import MultiMap

log = logging.getLogger(__name__)

# The hex-encoded SHA256 digest of an empty string
EMPTY_STRING_SHA256_HEX = "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"

SNWS2_AUTH_SCHEME = "SNWS2"
SNWS2_SIGNATURE_ALGORITHM = "SNWS2-HMAC-SHA256"
SNWS2_SIGNING_KEY_SCOPE = "snws2_request"

# Signing keys are valid for 7 days, truncated to the UTC day
SIGNING_KEY_VALIDITY = timedelta(days=7)


def hmac_sha256(key: bytes, msg: Union[str, bytes]) -> bytes:
    if isinstance(msg, str):
        msg = msg.encode('utf-8')
    return hmac.new(key, msg, hashlib.sha256).digest()


def uri_encode(val) -> str:
    # encodeURIComponent() plus escaping of !'()*
    return quote(str(val), safe='')


def canonical_query_parameters(params: MultiMap) -> str:
    keys = sorted(params.key_set())
    pairs = []
    for key in keys:
        for val in params.value(key) or []:
            pairs.append(f"{uri_encode(key)}={uri_encode('' if val is None else val)}")
    return '&'.join(pairs)


def canonical_headers(sorted_lowercase_header_names: Iterable[str], headers: MultiMap,
                      request_date: datetime) -> str:
    result = ""
    for name in sorted_lowercase_header_names:
        if name in ('date', 'x-sn-date'):
            value = http_date(request_date)
        else:
            value = headers.first_value(name)
        result += f"{name}:{str(value).strip() if value is not None else ''}\n"
    return result


def canonical_header_names(headers: MultiMap, use_sn_date: bool,
                           signed_header_names: Optional[Iterable[str]] = None) -> List[str]:
    names = MultiMap()  # for case-insensitive de-duplication
    names.put(HttpHeaders.HOST, True)
    names.put(HttpHeaders.X_SN_DATE if use_sn_date else HttpHeaders.DATE, True)
    for name in (HttpHeaders.CONTENT_MD5, HttpHeaders.CONTENT_TYPE, HttpHeaders.DIGEST):
        if headers.contains_key(name):
            names.put(name, True)
    for name in signed_header_names or []:
        names.put(name, True)
    return sorted(name.lower() for name in names.key_set())


def canonical_content_sha256(digest: Optional[bytes]) -> str:
    return digest.hex() if digest else EMPTY_STRING_SHA256_HEX


def canonical_request_data(method: str, path: str, canonical_query: str, canonical_headers_block: str,
                           sorted_lowercase_header_names: List[str], content_sha256_hex: str) -> str:
    # the headers block already ends with a newline
    return (f"{method}\n"
            f"{path}\n"
            f"{canonical_query}\n"
            f"{canonical_headers_block}"
            f"{';'.join(sorted_lowercase_header_names)}\n"
            f"{content_sha256_hex}")


def compute_signing_key(secret_key: str, date: datetime) -> bytes:
    date_key = hmac_sha256((SNWS2_AUTH_SCHEME + secret_key).encode('utf-8'), iso8601_date(date))
    return hmac_sha256(date_key, SNWS2_SIGNING_KEY_SCOPE)


def compute_signature_data(data: str, date: datetime) -> str:
    return (f"{SNWS2_SIGNATURE_ALGORITHM}\n"
            f"{iso8601_date(date, True)}\n"
            f"{hashlib.sha256(data.encode('utf-8')).hexdigest()}")


def sign(signing_key: bytes, signature_data: str) -> str:
    return hmac_sha256(signing_key, signature_data).hex()


def authorization_header_value(token_id: Optional[str], sorted_lowercase_header_names: List[str],
                               signature: str) -> str:
    return (f"{SNWS2_AUTH_SCHEME} Credential={token_id},"
            f"SignedHeaders={';'.join(sorted_lowercase_header_names)},"
            f"Signature={signature}")


@dataclass(frozen=True)
class SignedRequest:
    """Immutable snapshot of a signed request: send headers with method to path?query."""
    method: str
    path: str
    query: str
    authorization: str
    headers: Dict[str, str] = field(default_factory=dict)


class AuthorizationV2Builder:
    """
    Builder for SNWS2 HTTP Authorization header values.

    One-off use:

        header = AuthorizationV2Builder("my-token").path("/solarquery/api/v1/sec/...").build("my-secret")

    Re-use for a token, with a saved signing key (valid for up to 7 days):

        auth = AuthorizationV2Builder("my-token").save_signing_key("my-secret")
        header = auth.reset().path("/solarquery/api/v1/sec/...").build_with_saved_key()

    For POST or PUT requests configure method(), content_type() and either
    query_params() for form-encoded content or compute_content_digest() for
    other content, then send the Digest header from http_headers.

    Setter methods return the builder so calls can be chained; calling
    method(), path(), date(), key() or signed_http_headers() without an
    argument returns the current value instead.
    """

    def __init__(self, token_id: Optional[str] = None, environment: Optional[Environment] = None):
        self.token_id = token_id
        self.environment = environment or Environment()
        self.http_headers = HttpHeaders()
        self.parameters = MultiMap()
        self.force_host_port = False
        self._http_method = HttpMethod.GET.value
        self._request_path = "/"
        self._request_date = utc_now()
        self._content_digest: Optional[bytes] = None
        self._signing_key: Optional[bytes] = None
        self._signing_key_expiration: Optional[datetime] = None
        self._signed_header_names: Optional[List[str]] = None
        self.reset()

    def reset(self) -> 'AuthorizationV2Builder':
        """
        Reset the per-request values to their defaults.

        The method is set to GET, the path to "/", the date to now, the host to
        the environment host, and the content digest, headers, query parameters
        and signed header names are cleared. A saved signing key is preserved.
        """
        self._http_method = HttpMethod.GET.value
        self._request_date = utc_now()
        self._request_path = "/"
        self._content_digest = None
        self._signed_header_names = None
        self.http_headers.clear()
        self.parameters.clear()
        return self.host(self.environment.host)

    # Signing key

    def save_signing_key(self, token_secret: str) -> 'AuthorizationV2Builder':
        """Compute and save the signing key for the configured date."""
        return self.key(self.compute_signing_key(token_secret), self._request_date)

    def key(self, key: Union[bytes, str, None] = None, date: Optional[datetime] = None):
        """
        Get or set the saved signing key.

        The key expires 7 days after date (or the configured request date),
        truncated to midnight UTC. A str key is treated as hex.
        """
        if key is None:
            return self._signing_key
        if isinstance(key, str):
            key = bytes.fromhex(key)
        self._signing_key = bytes(key)
        self._signing_key_expiration = floor_utc_day((date or self._request_date) + SIGNING_KEY_VALIDITY)
        log.debug(f"Saved signing key expires {self._signing_key_expiration.isoformat()}")
        return self

    @property
    def signing_key_expiration_date(self) -> Optional[datetime]:
        return self._signing_key_expiration

    def is_signing_key_valid(self, at: Optional[datetime] = None) -> bool:
        if not self._signing_key or self._signing_key_expiration is None:
            return False
        return as_utc(at or utc_now()) < self._signing_key_expiration

    @property
    def signing_key_valid(self) -> bool:
        return self.is_signing_key_valid()

    # Request properties

    def method(self, val: Optional[str] = None):
        if val is None:
            return self._http_method
        self._http_method = str(val)
        return self

    def host(self, val: str) -> 'AuthorizationV2Builder':
        if self.force_host_port and ':' not in val and self.environment.port != 80:
            val = f"{val}:{self.environment.port}"
        self.http_headers.put(HttpHeaders.HOST, val)
        return self

    def path(self, val: Optional[str] = None):
        if val is None:
            return self._request_path
        self._request_path = val
        return self

    def url(self, url: str, ignore_host: bool = False) -> 'AuthorizationV2Builder':
        """Set the host, path and query parameters from a URL."""
        parts = urlsplit(url)
        scheme = parts.scheme.lower()
        # keep the host as given, e.g. mixed case or a bracketed IPv6 address
        host = parts.netloc.rsplit('@', 1)[-1]
        if host.startswith('['):
            host = host[:host.find(']') + 1]
        else:
            host = host.split(':', 1)[0]
        port = parts.port
        if host and port and ((scheme in ('https', 'wss') and port != 443)
                              or (scheme in ('http', 'ws') and port != 80)):
            host = f"{host}:{port}"
        if parts.query:
            self.query_params(url_query_parse(parts.query))
        if not ignore_host and host:
            self.host(host)
        path = parts.path or "/"
        if scheme in ('ws', 'wss') and parts.query:
            # WebSocket resource name
            path += "?" + parts.query
        return self.path(path)

    def content_type(self, val: Optional[str]) -> 'AuthorizationV2Builder':
        self.http_headers.put(HttpHeaders.CONTENT_TYPE, None if val is None else str(val))
        return self

    def date(self, val: Optional[datetime] = None):
        if val is None:
            return self._request_date
        # anything other than a datetime resets to now
        self._request_date = as_utc(val) if isinstance(val, datetime) else utc_now()
        return self

    @property
    def request_date_header_value(self) -> str:
        return http_date(self._request_date)

    @property
    def use_sn_date(self) -> bool:
        """True if the X-SN-Date header is signed in place of Date."""
        signed = self._signed_header_names or []
        return (any(n.lower() == HttpHeaders.X_SN_DATE.lower() for n in signed)
                or self.http_headers.contains_key(HttpHeaders.X_SN_DATE))

    @use_sn_date.setter
    def use_sn_date(self, enabled: bool):
        signed = self._signed_header_names
        existing = -1
        if signed:
            existing = next((i for i, n in enumerate(signed)
                             if n.lower() == HttpHeaders.X_SN_DATE.lower()), -1)
        if enabled and existing < 0:
            self._signed_header_names = (signed or []) + [HttpHeaders.X_SN_DATE]
        elif not enabled and existing >= 0:
            del signed[existing]
        # the header value is sent by the caller, using request_date_header_value
        self.http_headers.remove(HttpHeaders.X_SN_DATE)

    def sn_date(self, enabled: bool) -> 'AuthorizationV2Builder':
        self.use_sn_date = enabled
        return self

    def header(self, name: str, value: str) -> 'AuthorizationV2Builder':
        self.http_headers.put(name, value)
        return self

    def headers(self, headers: HttpHeaders) -> 'AuthorizationV2Builder':
        self.http_headers = headers
        return self

    def query_params(self, params: Union[MultiMap, Dict]) -> 'AuthorizationV2Builder':
        if isinstance(params, MultiMap):
            self.parameters = params
        else:
            self.parameters.put_all(params)
        return self

    def signed_http_headers(self, signed_header_names: Optional[List[str]] = None):
        if signed_header_names is None:
            return list(self._signed_header_names) if self._signed_header_names is not None else None
        self._signed_header_names = list(signed_header_names)
        return self

    def content_sha256(self, digest: Union[bytes, str]) -> 'AuthorizationV2Builder':
        """Set the request body SHA-256 digest, as bytes or a hex string."""
        self._content_digest = bytes.fromhex(digest) if isinstance(digest, str) else bytes(digest)
        return self

    def compute_content_digest(self, content: Union[str, bytes]) -> 'AuthorizationV2Builder':
        """
        Compute the SHA-256 digest of the request body and set the Digest header.

        The Digest header value must then be sent with the request.
        """
        if isinstance(content, str):
            content = content.encode('utf-8')
        digest = hashlib.sha256(content).digest()
        self.content_sha256(digest)
        return self.header(HttpHeaders.DIGEST, "sha-256=" + base64.b64encode(digest).decode('ascii'))

    # Canonical request

    def canonical_query_parameters(self) -> str:
        return canonical_query_parameters(self.parameters)

    def canonical_headers(self, sorted_lowercase_header_names: List[str]) -> str:
        return canonical_headers(sorted_lowercase_header_names, self.http_headers, self._request_date)

    def canonical_header_names(self) -> List[str]:
        return canonical_header_names(self.http_headers, self.use_sn_date, self._signed_header_names)

    def canonical_content_sha256(self) -> str:
        return canonical_content_sha256(self._content_digest)

    def _canonical_request_data(self, sorted_lowercase_header_names: List[str]) -> str:
        return canonical_request_data(self._http_method, self._request_path,
                                      self.canonical_query_parameters(),
                                      self.canonical_headers(sorted_lowercase_header_names),
                                      sorted_lowercase_header_names,
                                      self.canonical_content_sha256())

    def build_canonical_request_data(self) -> str:
        return self._canonical_request_data(self.canonical_header_names())

    def compute_signing_key(self, secret_key: str) -> bytes:
        """Compute, but do not save, a signing key for the configured date."""
        return compute_signing_key(secret_key, self._request_date)

    def compute_signature_data(self, canonical_request: str) -> str:
        return compute_signature_data(canonical_request, self._request_date)

    # Authorization

    def build_with_key(self, signing_key: Union[bytes, str]) -> str:
        if isinstance(signing_key, str):
            signing_key = bytes.fromhex(signing_key)
        names = self.canonical_header_names()
        signature_data = self.compute_signature_data(self._canonical_request_data(names))
        return authorization_header_value(self.token_id, names, sign(signing_key, signature_data))

    def build(self, token_secret: str) -> str:
        return self.build_with_key(self.compute_signing_key(token_secret))

    def build_with_saved_key(self) -> str:
        if not self._signing_key:
            raise SigningKeyError("Saved signing key not available.")
        return self.build_with_key(self._signing_key)

    def request(self, token_secret: Optional[str] = None) -> SignedRequest:
        """
        Sign the configured request and return its values as a SignedRequest.

        The saved signing key is used unless token_secret is provided. The
        returned headers include Authorization, the date header and any
        configured headers other than Host.
        """
        authorization = self.build(token_secret) if token_secret else self.build_with_saved_key()
        headers = {k: str(v) for k, v in self.http_headers.to_dict().items()
                   if k.lower() != HttpHeaders.HOST.lower()}
        date_header = HttpHeaders.X_SN_DATE if self.use_sn_date else HttpHeaders.DATE
        headers[date_header] = self.request_date_header_value
        headers[HttpHeaders.AUTHORIZATION] = authorization
        return SignedRequest(self._http_method, self._request_path,
                             self.canonical_query_parameters(), authorization, headers)

    def clone_for(self, environment: Environment) -> 'AuthorizationV2Builder':
        """Return a new builder for another environment, sharing the token and saved signing key."""
        result = AuthorizationV2Builder(self.token_id, environment)
        result.force_host_port = self.force_host_port
        result._signing_key = self._signing_key
        result._signing_key_expiration = self._signing_key_expiration
        return result
