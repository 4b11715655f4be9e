"""Tests for the SolarUser and SolarQuery URL helpers."""

import pytest

from pysolarnetwork.domain.datum import DatumFilter
from pysolarnetwork.domain.instruction import Instruction, InstructionState
from pysolarnetwork.exceptions import InvalidConfigurationParameter
from pysolarnetwork.net.environment import Environment
from pysolarnetwork.net.url_helper import SolarQueryApi, SolarUserApi, UrlHelper, url_query_parse


class TestUrlHelper:
    """Host URL formatting."""

    def test_default_host_url(self):
        assert UrlHelper().host_url() == "https://data.solarnetwork.net"

    def test_non_standard_port(self):
        assert UrlHelper(Environment("localhost", "http", 8080)).host_url() == "http://localhost:8080"

    def test_standard_port_omitted(self):
        assert UrlHelper(Environment("localhost", "http:", 80)).host_url() == "http://localhost"

    def test_proxy_url_prefix(self):
        helper = UrlHelper(Environment("data.solarnetwork.net", proxy_url_prefix="https://proxy.example.com/sn"))
        assert helper.host_request_url() == "https://proxy.example.com/sn"


class TestSolarUserApi:
    """Instruction URLs."""

    api = SolarUserApi()

    def test_base_url(self):
        assert self.api.base_url() == "https://data.solarnetwork.net/solaruser/api/v1/sec"

    def test_view_instruction(self):
        assert self.api.view_instruction_url(123) == \
            "https://data.solarnetwork.net/solaruser/api/v1/sec/instr/view?id=123"

    def test_view_pending_instructions(self):
        assert self.api.view_pending_instructions_url(5) == \
            "https://data.solarnetwork.net/solaruser/api/v1/sec/instr/viewPending?nodeId=5"

    def test_update_instruction_state(self):
        assert self.api.update_instruction_state_url(123, InstructionState.Declined) == \
            "https://data.solarnetwork.net/solaruser/api/v1/sec/instr/updateState?id=123&state=Declined"

    def test_queue_instruction(self):
        url = self.api.queue_instruction_url("SetControlParameter",
                                             [Instruction.parameter("/power/switch/1", 1)], 5)
        assert url == ("https://data.solarnetwork.net/solaruser/api/v1/sec/instr/add/SetControlParameter"
                       "?nodeId=5&parameters%5B0%5D.name=%2Fpower%2Fswitch%2F1&parameters%5B0%5D.value=1")

    def test_queue_instructions_multiple_nodes(self):
        url = self.api.queue_instructions_url("Signal", None, [1, 2])
        assert url.endswith("/instr/add/Signal?nodeIds=1,2")


class TestSolarQueryApi:
    """Datum query URLs."""

    def test_most_recent_datum(self):
        api = SolarQueryApi()
        assert api.most_recent_datum_url(DatumFilter(5, "/power/switch/1")) == (
            "https://data.solarnetwork.net/solarquery/api/v1/sec/datum/mostRecent"
            "?nodeId=5&sourceId=%2Fpower%2Fswitch%2F1")

    def test_public_query(self):
        api = SolarQueryApi(Environment())
        api.public_query = True
        assert api.base_url() == "https://data.solarnetwork.net/solarquery/api/v1/pub"

    def test_multiple_sources(self):
        url = SolarQueryApi().most_recent_datum_url(DatumFilter([1, 2], ["a", "b"]))
        assert url.endswith("/datum/mostRecent?nodeIds=1,2&sourceIds=a,b")


def test_url_query_parse():
    assert url_query_parse("?foo=bar&a=1&a=2&empty=&novalue") == {
        "foo": ["bar"],
        "a": ["1", "2"],
        "empty": [""],
    }
    assert url_query_parse("path=%2Fpath%2F%2A") == {"path": ["/path/*"]}
    assert url_query_parse(None) == {}


class TestEnvironment:
    """Host configuration values."""

    def test_defaults(self):
        env = Environment()
        assert (env.host, env.protocol, env.port) == ("data.solarnetwork.net", "https", 443)
        assert env.use_tls()

    def test_http_default_port(self):
        assert Environment("localhost", "HTTP").port == 80

    def test_invalid_protocol(self):
        with pytest.raises(InvalidConfigurationParameter):
            Environment("localhost", "ftp")

    def test_values(self):
        env = Environment(solarUserPath="/su")
        assert env.value("solarUserPath") == "/su"
        assert env.value("host") == "data.solarnetwork.net"
        assert env.set_value("port", 8443).port == 8443
        assert SolarUserApi(env).base_url() == "https://data.solarnetwork.net:8443/su/api/v1/sec"


def test_active_and_exec_instruction_urls():
    api = SolarUserApi()
    assert api.view_active_instructions_url(5).endswith("/instr/viewActive?nodeId=5")
    assert api.exec_instruction_url("Signal", [Instruction.parameter("a", "b")], 5).endswith(
        "/instr/exec/Signal?nodeId=5&parameters%5B0%5D.name=a&parameters%5B0%5D.value=b")
