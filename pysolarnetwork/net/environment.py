import logging
from typing import Any, Optional

from pysolarnetwork.exceptions import InvalidConfigurationParameter

log = logging.getLogger(__name__)

DEFAULT_HOST = "data.solarnetwork.net"
HOST_KEYS = ('host', 'protocol', 'port', 'proxy_url_prefix')
PROTOCOLS = ("http", "https")


class Environment:
    """
    SolarNetwork host configuration.

    Args:
        host            = Hostname of the SolarNetwork API (default data.solarnetwork.net)
        protocol        = "https" (default) or "http"; a trailing ":" is ignored
        port            = Port number (default 443 for https, 80 for http)
        proxy_url_prefix = Optional URL prefix to replace the scheme and host of request URLs
        **kwargs        = Additional values, available via value()
    """

    def __init__(self, host: Optional[str] = None, protocol: Optional[str] = None,
                 port: Optional[int] = None, proxy_url_prefix: Optional[str] = None, **kwargs):
        self.host = host or DEFAULT_HOST
        self.protocol = (protocol or "https").rstrip(":").lower()
        if self.protocol not in PROTOCOLS:
            raise InvalidConfigurationParameter(f"Unsupported protocol '{protocol}'")
        try:
            self.port = int(port) if port else None
        except ValueError:
            log.debug(f"Ignoring invalid port value '{port}'")
            self.port = None
        if not self.port:
            self.port = 443 if self.protocol == "https" else 80
        self.proxy_url_prefix = proxy_url_prefix
        self._values = dict(kwargs)

    def use_tls(self) -> bool:
        return self.protocol == "https"

    def value(self, key: str, default: Any = None) -> Any:
        if key in HOST_KEYS:
            return getattr(self, key)
        return self._values.get(key, default)

    def set_value(self, key: str, val: Any) -> 'Environment':
        if key in HOST_KEYS:
            setattr(self, key, val)
        else:
            self._values[key] = val
        return self

    def __repr__(self) -> str:
        return f"Environment(host={self.host!r}, protocol={self.protocol!r}, port={self.port!r})"
