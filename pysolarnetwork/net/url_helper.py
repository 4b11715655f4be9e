import re
from typing import Any, Dict, List, Optional, Sequence, Union
from urllib.parse import quote, unquote

from pysolarnetwork.domain.datum import DatumFilter
from pysolarnetwork.domain.instruction import InstructionParameter, InstructionState
from pysolarnetwork.net.environment import Environment

SOLARQUERY_DEFAULT_PATH = "/solarquery"
SOLARQUERY_PATH_KEY = "solarQueryPath"
SOLARQUERY_API_PATH_V1 = "/api/v1"
SOLARQUERY_PUBLIC_PATH_KEY = "publicQuery"

SOLARUSER_DEFAULT_PATH = "/solaruser"
SOLARUSER_PATH_KEY = "solarUserPath"
SOLARUSER_API_PATH_V1 = "/api/v1/sec"


def encode_uri_component(val: Any) -> str:
    # Same escaping as JavaScript encodeURIComponent()
    return quote(str(val), safe="-_.!~*'()")


def url_query_parse(search: Optional[str]) -> Dict[str, List[str]]:
    """
    Parse a URL query string into a dictionary of parameter lists.

    Unlike urllib.parse.parse_qs a "+" is not decoded as a space, and
    parameters without a "=" are ignored.
    """
    params: Dict[str, List[str]] = {}
    if not search:
        return params
    for pair in search.lstrip('?').split('&'):
        if '=' not in pair:
            continue
        k, v = pair.split('=', 1)
        params.setdefault(unquote(k), []).append(unquote(v))
    return params


class UrlHelper:
    """Base URL helper for a SolarNetwork Environment."""

    def __init__(self, environment: Optional[Environment] = None):
        self.environment = environment if isinstance(environment, Environment) else Environment()
        self.parameters: Dict[str, Any] = {}

    def env(self, key: str, default: Any = None) -> Any:
        return self.environment.value(key, default)

    def parameter(self, key: str, default: Any = None) -> Any:
        return self.parameters.get(key, default)

    def host_url(self) -> str:
        tls = self.environment.use_tls()
        port = int(self.environment.port or 0)
        url = f"http{'s' if tls else ''}://{self.environment.host}"
        if (tls and port > 0 and port != 443) or (not tls and port > 0 and port != 80):
            url += f":{port}"
        return url

    def to_request_url(self, url: str) -> str:
        prefix = self.environment.proxy_url_prefix
        if prefix:
            url = re.sub(r'^[^:]+://[^/]+', prefix, url)
        return url

    def host_request_url(self) -> str:
        return self.to_request_url(self.host_url())

    def base_url(self) -> str:
        return self.host_url()


class SolarQueryApi(UrlHelper):
    """SolarQuery URL helper, for datum queries."""

    @property
    def public_query(self) -> bool:
        return bool(self.env(SOLARQUERY_PUBLIC_PATH_KEY))

    @public_query.setter
    def public_query(self, value: bool):
        self.environment.set_value(SOLARQUERY_PUBLIC_PATH_KEY, bool(value))

    def base_url(self) -> str:
        path = self.env(SOLARQUERY_PATH_KEY) or SOLARQUERY_DEFAULT_PATH
        return self.host_url() + path + SOLARQUERY_API_PATH_V1 + ("/pub" if self.public_query else "/sec")

    def most_recent_datum_url(self, datum_filter: Optional[DatumFilter] = None) -> str:
        datum_filter = datum_filter or DatumFilter(self.parameter('nodeId'), self.parameter('sourceId'))
        url = self.base_url() + "/datum/mostRecent"
        params = datum_filter.to_uri_encoding()
        if params:
            url += "?" + params
        return url


class SolarUserApi(UrlHelper):
    """SolarUser URL helper, for node instructions."""

    def base_url(self) -> str:
        path = self.env(SOLARUSER_PATH_KEY) or SOLARUSER_DEFAULT_PATH
        return self.host_url() + path + SOLARUSER_API_PATH_V1

    def _node_id(self, node_id: Optional[int]) -> Any:
        return node_id or self.parameter('nodeId')

    def view_instruction_url(self, instruction_id: int) -> str:
        return f"{self.base_url()}/instr/view?id={encode_uri_component(instruction_id)}"

    def view_active_instructions_url(self, node_id: Optional[int] = None) -> str:
        return f"{self.base_url()}/instr/viewActive?nodeId={self._node_id(node_id)}"

    def view_pending_instructions_url(self, node_id: Optional[int] = None) -> str:
        return f"{self.base_url()}/instr/viewPending?nodeId={self._node_id(node_id)}"

    def update_instruction_state_url(self, instruction_id: int, state: InstructionState) -> str:
        return (f"{self.base_url()}/instr/updateState?id={encode_uri_component(instruction_id)}"
                f"&state={encode_uri_component(state.value)}")

    @staticmethod
    def url_encode_instruction_parameters(parameters: Optional[Sequence[InstructionParameter]]) -> str:
        encoded = []
        for i, param in enumerate(parameters or []):
            encoded.append(f"{encode_uri_component(f'parameters[{i}].name')}={encode_uri_component(param.name)}"
                           f"&{encode_uri_component(f'parameters[{i}].value')}={encode_uri_component(param.value)}")
        return '&'.join(encoded)

    def _instruction_url(self, execute: bool, topic: str,
                         parameters: Optional[Sequence[InstructionParameter]] = None,
                         node_ids: Union[int, List[int], None] = None) -> str:
        if isinstance(node_ids, (list, tuple)):
            nodes = list(node_ids)
        elif node_ids is not None:
            nodes = [node_ids]
        else:
            node_id = self.parameter('nodeId')
            nodes = [node_id] if node_id is not None else []
        url = f"{self.base_url()}/instr/{'exec' if execute else 'add'}/{encode_uri_component(topic)}"
        if nodes:
            if len(nodes) > 1:
                url += "?nodeIds=" + ",".join(str(n) for n in nodes)
            else:
                url += f"?nodeId={nodes[0]}"
        if parameters:
            url += "&" if nodes else "?"
            url += self.url_encode_instruction_parameters(parameters)
        return url

    def queue_instruction_url(self, topic: str, parameters: Optional[Sequence[InstructionParameter]] = None,
                              node_id: Optional[int] = None) -> str:
        return self._instruction_url(False, topic, parameters, node_id)

    def queue_instructions_url(self, topic: str, parameters: Optional[Sequence[InstructionParameter]] = None,
                               node_ids: Optional[List[int]] = None) -> str:
        return self._instruction_url(False, topic, parameters, node_ids)

    def exec_instruction_url(self, topic: str, parameters: Optional[Sequence[InstructionParameter]] = None,
                             node_ids: Union[int, List[int], None] = None) -> str:
        return self._instruction_url(True, topic, parameters, node_ids)
