"""Tests for the instruction and datum domain objects."""

from datetime import datetime, timezone

from pysolarnetwork.domain.datum import ControlDatum, DatumFilter
from pysolarnetwork.domain.instruction import Instruction, InstructionParameter, InstructionState

INSTRUCTION = {
    "id": 12345,
    "created": "2024-01-10 15:30:00.000Z",
    "nodeId": 123,
    "topic": "SetControlParameter",
    "instructionDate": "2024-01-10 15:30:00.000Z",
    "state": "Queued",
    "statusDate": "2024-01-10 15:31:00.000Z",
    "parameters": [{"name": "/power/switch/1", "value": "1"}],
}


class TestInstruction:
    """Parse SolarUser instruction JSON."""

    def test_parse(self):
        instr = Instruction(INSTRUCTION)
        assert instr.id == 12345
        assert instr.node_id == 123
        assert instr.created == datetime(2024, 1, 10, 15, 30, tzinfo=timezone.utc)
        assert instr.status_date == datetime(2024, 1, 10, 15, 31, tzinfo=timezone.utc)
        assert instr.instruction_state == InstructionState.Queued
        assert instr.parameters == [InstructionParameter("/power/switch/1", "1")]
        assert instr.parameter_value("/power/switch/1") == "1"
        assert instr.parameter_value("/other") is None
        assert instr.first_parameter_value == "1"

    def test_params_object(self):
        instr = Instruction({"id": 1, "state": "Completed", "params": {"a": "b"}})
        assert instr.parameters == [InstructionParameter("a", "b")]
        assert instr.instruction_state.is_finished

    def test_unknown_state(self):
        assert Instruction({"state": "Bogus"}).instruction_state == InstructionState.Unknown
        assert InstructionState.value_of("executing") == InstructionState.Executing

    def test_active_states(self):
        active = {s for s in InstructionState if s.is_active}
        assert active == {InstructionState.Queuing, InstructionState.Queued,
                          InstructionState.Received, InstructionState.Executing}
        assert not InstructionState.Unknown.is_active
        assert not InstructionState.Unknown.is_finished


class TestDatum:
    """Parse SolarQuery datum JSON."""

    def test_control_datum(self):
        datum = ControlDatum({"created": "2024-01-10 15:30:00.000Z", "nodeId": 123,
                              "sourceId": "/power/switch/1", "val": 1})
        assert datum.val == 1
        assert datum.source_id == "/power/switch/1"
        assert datum.date == datetime(2024, 1, 10, 15, 30, tzinfo=timezone.utc)
        assert datum.props == {"val": 1}

    def test_missing_created_has_no_date(self):
        datum = ControlDatum({"sourceId": "/power/switch/1", "val": 0})
        assert datum.date is None
        assert datum.created is None

    def test_sample_properties_as_attributes(self):
        datum = ControlDatum({"created": "2024-01-10 15:30:00.000Z", "watts": 10})
        assert datum.watts == 10
        assert datum.val is None

    def test_filter_encoding(self):
        assert DatumFilter(123, "/a/b").to_uri_encoding() == "nodeId=123&sourceId=%2Fa%2Fb"
        assert DatumFilter().to_uri_encoding() == ""
        assert DatumFilter(123, "/a/b").source_id == "/a/b"
