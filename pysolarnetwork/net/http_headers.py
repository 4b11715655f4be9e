from enum import Enum

from pysolarnetwork.util.multi_map import MultiMap


class HttpMethod(str, Enum):
    GET = "GET"
    HEAD = "HEAD"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    OPTIONS = "OPTIONS"
    TRACE = "TRACE"

    def __str__(self):
        return self.value


class HttpHeaders(MultiMap):
    """Case-insensitive, multi-valued HTTP headers."""

    ACCEPT = "Accept"
    AUTHORIZATION = "Authorization"
    CONTENT_MD5 = "Content-MD5"
    CONTENT_TYPE = "Content-Type"
    DATE = "Date"
    DIGEST = "Digest"
    HOST = "Host"
    X_SN_DATE = "X-SN-Date"

    def to_dict(self) -> dict:
        # First value of each header, as accepted by requests
        return {key: vals[0] for key, vals in self.items() if vals and vals[0] is not None}
