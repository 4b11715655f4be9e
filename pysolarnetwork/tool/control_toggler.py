# pySolarNetwork - Control Toggler
# -*- coding: utf-8 -*-
"""
 SolarNetwork Control Toggler

 Manage the value of a SolarNode control through the SolarUser instruction
 queue, observing the control through the SolarQuery most recent datum API.

 Setting a value queues a SetControlParameter instruction for the node. The
 node picks the instruction up some time later, so the toggler polls both the
 pending instructions and the most recent control datum to work out the
 current value, and calls a callback whenever that changes.

 Class:
    ControlToggler(api, auth, node_id, control_id, query_api, client, logger)

 Functions:
    value()                 # Return the last known control value
    value(desired)          # Set the control value (queue an instruction)
    update()                # Poll for the current control state
    start(when_ms)          # Start polling
    stop()                  # Stop polling
    has_pending_state_change  # True while an instruction is active
    state                   # TogglerState.STOPPED, SCHEDULED or POLLING

 Example:
    auth = AuthorizationV2Builder(token).save_signing_key(secret)
    toggler = ControlToggler(SolarUserApi(), auth, 123, "/power/switch/1")
    toggler.callback = lambda error: print(error or toggler.value())
    toggler.start()
    toggler.value(1)
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from enum import Enum
from typing import Any, Callable, List, Optional, Tuple

from pysolarnetwork.domain.datum import ControlDatum, DatumFilter
from pysolarnetwork.domain.instruction import CommonInstructionTopicName, Instruction, InstructionState
from pysolarnetwork.exceptions import SigningKeyError, SolarNetworkApiError
from pysolarnetwork.net.auth_v2 import AuthorizationV2Builder
from pysolarnetwork.net.json_client import JsonClient
from pysolarnetwork.net.url_helper import SolarQueryApi, SolarUserApi, UrlHelper

log = logging.getLogger(__name__)

DEFAULT_REFRESH_MS = 20000         # poll interval when no change is pending
DEFAULT_PENDING_REFRESH_MS = 5000  # poll interval while an instruction is active
DEFAULT_START_MS = 20              # delay before the first poll


class TogglerState(Enum):
    STOPPED = "stopped"
    SCHEDULED = "scheduled"
    POLLING = "polling"


def _normalize(val: Any) -> Optional[str]:
    if val is None:
        return None
    if isinstance(val, bool):
        return "1" if val else "0"
    if isinstance(val, str):
        text = val.strip()
        if text.lower() in ('true', 'false'):
            return "1" if text.lower() == 'true' else "0"
        try:
            val = float(text)
        except ValueError:
            return text
    if isinstance(val, float) and val.is_integer():
        return str(int(val))
    return str(val)


def values_equal(a: Any, b: Any) -> bool:
    """
    Compare control values loosely.

    Instruction parameter values are always strings while datum values are
    usually numbers, so both sides are normalized to strings first: numbers
    compare by value ("1" == 1 == 1.0) and booleans compare as 1/0.
    None is only equal to None.
    """
    return _normalize(a) == _normalize(b)


def instruction_value_string(val: Any) -> str:
    if isinstance(val, bool):
        return "true" if val else "false"
    return str(val)


def most_recent_value(datum: Optional[ControlDatum], instruction: Optional[Instruction]) -> Any:
    """
    Return the most recent control value from a datum and an instruction.

    The instruction's first parameter value is used unless the instruction was
    declined, or the datum is newer than the instruction. A datum without a
    date is never newer.
    """
    if instruction is None:
        return datum.val if datum is not None else None
    if instruction.instruction_state == InstructionState.Declined:
        return datum.val if datum is not None else None
    if datum is not None and datum.date is not None:
        instruction_date = instruction.created or instruction.instruction_date
        if instruction_date is None or datum.date > instruction_date:
            return datum.val
    return instruction.first_parameter_value


class ControlToggler:
    """
    Manage the state of a boolean (or scalar) SolarNode control.

    Args:
        api         = SolarUserApi for the instruction API
        auth        = AuthorizationV2Builder with a saved signing key
        node_id     = The node ID with the control
        control_id  = The control ID to manage
        query_api   = SolarQueryApi for the datum API (default uses the api environment)
        client      = JsonClient to send requests with
        logger      = Logger to use (default module logger)

    The callback property, if set, is invoked as callback(error) after the control
    state changes or an error occurs. Errors raised by the callback are logged.
    """

    def __init__(self, api: SolarUserApi, auth: AuthorizationV2Builder, node_id: int, control_id: str,
                 query_api: Optional[SolarQueryApi] = None, client: Optional[JsonClient] = None,
                 logger: Optional[logging.Logger] = None):
        self.api = api
        self.auth = auth
        self.node_id = node_id
        self.control_id = control_id
        self.query_api = query_api or SolarQueryApi(api.environment)
        self.client = client or JsonClient()
        self.log = logger or log
        self.refresh_ms = DEFAULT_REFRESH_MS
        self.pending_refresh_ms = DEFAULT_PENDING_REFRESH_MS
        self.callback: Optional[Callable[[Optional[Exception]], Any]] = None
        self.last_known_datum: Optional[ControlDatum] = None
        self.last_known_instruction: Optional[Instruction] = None
        self._lock = threading.RLock()
        self._timer: Optional[threading.Timer] = None
        self._started = False
        self._polling = False
        self._generation = 0  # incremented by stop() so in-flight polls are discarded
        self._inflight: Optional[Future] = None

    @property
    def query_auth(self) -> AuthorizationV2Builder:
        # The query host may differ from the instruction host, so sign with a copy for its environment
        return self.auth.clone_for(self.query_api.environment)

    @property
    def state(self) -> TogglerState:
        with self._lock:
            if not self._started:
                return TogglerState.STOPPED
            return TogglerState.POLLING if self._polling else TogglerState.SCHEDULED

    @property
    def has_pending_state_change(self) -> bool:
        instruction = self.last_known_instruction
        return instruction is not None and instruction.instruction_state.is_active

    def _notify(self, error: Optional[Exception] = None):
        callback = self.callback
        if callback is None:
            return
        try:
            callback(error)
        except Exception as exc:  # pylint: disable=broad-except
            self.log.error(f"Error in ControlToggler callback for {self.control_id}: {exc}")

    def _get(self, helper: UrlHelper, url: str, auth: AuthorizationV2Builder) -> Any:
        # send through the proxy prefix, if any, but sign for the real host
        return self.client.get(helper.to_request_url(url), auth, sign_url=url)

    def _post(self, url: str) -> Any:
        return self.client.post(self.api.to_request_url(url), self.auth, sign_url=url)

    def _require_signing_key(self):
        if not self.auth.signing_key_valid:
            raise SigningKeyError("Valid signing key not available.")

    # Value

    def value(self, desired_value: Any = None) -> Any:
        """
        Get or set the control value.

        Without an argument return the last known control value. Otherwise queue
        an instruction to change the control to desired_value, first cancelling a
        queued instruction for a different value, and return the resulting
        Instruction (the existing one, or None, if no change was needed). API errors
        are logged and passed to the callback, and None is returned.
        """
        if desired_value is None:
            datum = self.last_known_datum
            return datum.val if datum is not None else None

        self._require_signing_key()
        with self._lock:
            instruction = self.last_known_instruction
            current_value = self.value()
            generation = self._generation

        cancelled = False
        try:
            if (instruction is not None and instruction.instruction_state == InstructionState.Queued
                    and not values_equal(instruction.parameter_value(self.control_id), desired_value)):
                self.log.debug(f"Cancelling queued instruction {instruction.id} for {self.control_id}")
                # a failed cancel raises, so no new instruction is queued
                self._post(self.api.update_instruction_state_url(instruction.id, InstructionState.Declined))
                with self._lock:
                    if self.last_known_instruction is instruction:
                        self.last_known_instruction = None
                instruction = None
                cancelled = True

            pending_value = None
            if instruction is not None and instruction.instruction_state.is_active:
                pending_value = instruction.parameter_value(self.control_id)

            if pending_value is None:
                pending_value = current_value
            if values_equal(current_value, desired_value) and values_equal(pending_value, desired_value):
                self.log.debug(f"Control {self.control_id} already set to {desired_value}")
                if cancelled:
                    self._notify()
                return instruction

            url = self.api.queue_instruction_url(
                CommonInstructionTopicName.SetControlParameter.value,
                [Instruction.parameter(self.control_id, instruction_value_string(desired_value))],
                self.node_id)
            queued = _instruction(self._post(url))
            self.log.info(f"Queued instruction {queued.id} to set {self.control_id} to {desired_value}")
        except SolarNetworkApiError as exc:
            self.log.error(f"Error setting control {self.control_id} to {desired_value}: {exc}")
            self._notify(exc)
            return None

        with self._lock:
            self.last_known_instruction = queued
            if self._started and generation == self._generation:
                self._schedule(self.pending_refresh_ms)
        self._notify()
        return queued

    # Update

    def update(self) -> Any:
        """
        Query the current control state and return the control value.

        A datum query, a pending instructions query and (while the last known
        instruction is not finished) a query for that instruction run in parallel.
        If an update is already in flight, wait for and share its result. API
        errors are logged and passed to the callback.
        """
        self._require_signing_key()
        with self._lock:
            inflight = self._inflight
            if inflight is None:
                inflight = self._inflight = Future()
                owner = True
                generation = self._generation
            else:
                owner = False
        if not owner:
            return inflight.result()

        changed, error = False, None
        try:
            changed, error = self._update(generation)
        finally:
            with self._lock:
                self._inflight = None
                current = self.value()
                active = generation == self._generation
                if active and self._started:
                    self._schedule(self.pending_refresh_ms if self.has_pending_state_change else self.refresh_ms)
            inflight.set_result(current)
        if active and (changed or error is not None):
            self._notify(error)
        return current

    def _update(self, generation: int) -> Tuple[bool, Optional[Exception]]:
        query_auth = self.query_auth
        datum_url = self.query_api.most_recent_datum_url(DatumFilter(self.node_id, self.control_id))
        pending_url = self.api.view_pending_instructions_url(self.node_id)
        last_instruction = self.last_known_instruction
        exact_url = None
        if last_instruction is not None and not last_instruction.instruction_state.is_finished:
            exact_url = self.api.view_instruction_url(last_instruction.id)

        try:
            with ThreadPoolExecutor(max_workers=3) as pool:
                datum_future = pool.submit(self._get, self.query_api, datum_url, query_auth)
                pending_future = pool.submit(self._get, self.api, pending_url, self.auth)
                exact_future = pool.submit(self._get, self.api, exact_url, self.auth) if exact_url else None
                datum_data = datum_future.result()
                pending_data = pending_future.result()
                exact = _instruction(exact_future.result()) if exact_future else None
        except SolarNetworkApiError as exc:
            self.log.error(f"Error updating control {self.control_id} state: {exc}")
            return False, exc

        datum = self._control_datum(datum_data)
        instruction = self._active_instruction(pending_data)
        if exact is not None:
            if instruction is None or instruction.id == exact.id or not _newer(instruction, exact):
                instruction = exact

        with self._lock:
            if generation != self._generation:
                self.log.debug(f"Discarding stopped update for control {self.control_id}")
                return False, None
            previous_value = most_recent_value(self.last_known_datum, self.last_known_instruction)
            new_value = most_recent_value(datum, instruction)
            changed = not values_equal(new_value, previous_value) or exact_url is not None
            if changed:
                self.log.debug(f"Control {self.control_id} value {previous_value} -> {new_value}")
                self.last_known_datum = datum
                self.last_known_instruction = instruction
        return changed, None

    def _control_datum(self, data: Any) -> Optional[ControlDatum]:
        results = data.get('results') if isinstance(data, dict) else data
        for info in results or []:
            if isinstance(info, dict) and info.get('sourceId', self.control_id) == self.control_id:
                return ControlDatum(info)
        return None

    def _active_instruction(self, data: Any) -> Optional[Instruction]:
        result = None
        items: List[Any] = []
        if isinstance(data, list):
            items = data
        elif isinstance(data, dict):
            items = data.get('results') or []
        for info in items:
            if not isinstance(info, dict):
                continue
            instruction = Instruction(info)
            if (instruction.topic != CommonInstructionTopicName.SetControlParameter.value
                    or not instruction.instruction_state.is_active
                    or instruction.parameter_value(self.control_id) is None):
                continue
            if result is None or _newer(instruction, result):
                result = instruction
        return result

    # Polling

    def _schedule(self, delay_ms: int):
        # caller holds self._lock
        if self._timer is not None:
            self._timer.cancel()
        self._timer = threading.Timer(delay_ms / 1000.0, self._poll, args=(self._generation,))
        self._timer.daemon = True
        self._timer.start()

    def _poll(self, generation: int):
        with self._lock:
            if generation != self._generation or not self._started:
                return
            self._timer = None
            self._polling = True
        try:
            self.update()
        except SigningKeyError as exc:
            self.log.error(f"Unable to update control {self.control_id}: {exc}")
            self._notify(exc)
            with self._lock:
                if generation == self._generation and self._started:
                    self._schedule(self.refresh_ms)
        finally:
            with self._lock:
                self._polling = False

    def start(self, when_ms: int = DEFAULT_START_MS) -> 'ControlToggler':
        """Start polling for the control state, first polling after when_ms milliseconds."""
        with self._lock:
            if self._started:
                return self
            self._started = True
            self._schedule(when_ms)
        self.log.debug(f"Started polling control {self.control_id}")
        return self

    def stop(self) -> 'ControlToggler':
        """Stop polling; updates already in flight will not invoke the callback."""
        with self._lock:
            self._generation += 1
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            if self._started:
                self.log.debug(f"Stopped polling control {self.control_id}")
            self._started = False
        return self


def _instruction(data: Any) -> Instruction:
    if not isinstance(data, dict):
        raise SolarNetworkApiError(f"Unexpected instruction response: {data!r}")
    return Instruction(data)


def _newer(a: Instruction, b: Instruction) -> bool:
    # True if a was created strictly after b
    if a.created is None:
        return False
    return b.created is None or a.created > b.created
