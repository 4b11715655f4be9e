from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pysolarnetwork.util.dates import parse_date


class InstructionState(Enum):
    Unknown = "Unknown"
    Queuing = "Queuing"
    Queued = "Queued"
    Received = "Received"
    Executing = "Executing"
    Declined = "Declined"
    Completed = "Completed"

    @classmethod
    def value_of(cls, name: Optional[str]) -> 'InstructionState':
        """Return the state with the given name (case-insensitive), or Unknown."""
        if name:
            for state in cls:
                if state.value.lower() == str(name).lower():
                    return state
        return cls.Unknown

    @property
    def is_active(self) -> bool:
        return self in ACTIVE_STATES

    @property
    def is_finished(self) -> bool:
        return self in FINISHED_STATES


ACTIVE_STATES = frozenset({InstructionState.Queuing, InstructionState.Queued,
                           InstructionState.Received, InstructionState.Executing})
FINISHED_STATES = frozenset({InstructionState.Completed, InstructionState.Declined})


class CommonInstructionTopicName(str, Enum):
    CancelInstruction = "CancelInstruction"
    DatumExpression = "DatumExpression"
    DisableOperationalModes = "DisableOperationalModes"
    EnableOperationalModes = "EnableOperationalModes"
    LoggingSetLevel = "LoggingSetLevel"
    RenewCertificate = "RenewCertificate"
    SetControlParameter = "SetControlParameter"
    SetOperatingState = "SetOperatingState"
    ShedLoad = "ShedLoad"
    Signal = "Signal"
    StartRemoteSsh = "StartRemoteSsh"
    StopRemoteSsh = "StopRemoteSsh"
    SystemConfiguration = "SystemConfiguration"
    SystemReboot = "SystemReboot"
    SystemRestart = "SystemRestart"
    UpdatePlatform = "UpdatePlatform"

    def __str__(self):
        return self.value


@dataclass(frozen=True)
class InstructionParameter:
    name: str
    value: str


class Instruction:
    """
    A node instruction, as returned by the SolarUser instruction API.

        {
            "id": 12345,
            "created": "2024-01-10 15:30:00.000Z",
            "nodeId": 123,
            "topic": "SetControlParameter",
            "instructionDate": "2024-01-10 15:30:00.000Z",
            "state": "Queued",
            "statusDate": "2024-01-10 15:30:00.000Z",
            "parameters": [{"name": "/power/switch/1", "value": "1"}]
        }
    """

    def __init__(self, info: Dict[str, Any]):
        self.id = info.get('id')
        self.node_id = info.get('nodeId')
        self.topic = info.get('topic')
        self.created: Optional[datetime] = parse_date(info.get('created'))
        self.instruction_date: Optional[datetime] = parse_date(info.get('instructionDate'))
        self.status_date: Optional[datetime] = parse_date(info.get('statusDate'))
        self.state: Optional[str] = info.get('state')
        self.instruction_state = InstructionState.value_of(self.state)
        self.parameters: List[InstructionParameter] = [
            InstructionParameter(p.get('name'), p.get('value'))
            for p in (info.get('parameters') or []) if isinstance(p, dict)
        ]
        # Simple "params" style requests are returned as a name/value object
        params = info.get('params')
        if isinstance(params, dict) and not self.parameters:
            self.parameters = [InstructionParameter(k, v) for k, v in params.items()]
        self.result_parameters: Optional[Dict[str, Any]] = info.get('resultParameters')

    @staticmethod
    def parameter(name: str, value: Any) -> InstructionParameter:
        return InstructionParameter(name, str(value))

    def parameter_value(self, name: str) -> Optional[str]:
        for param in self.parameters:
            if param.name == name:
                return param.value
        return None

    @property
    def first_parameter_value(self) -> Optional[str]:
        return self.parameters[0].value if self.parameters else None

    def __repr__(self) -> str:
        return (f"Instruction(id={self.id!r}, topic={self.topic!r}, "
                f"state={self.instruction_state.value}, parameters={self.parameters!r})")
