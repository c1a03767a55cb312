"""
Contract event subscriptions and the event-wait helper.

A ``LogSubscription`` is a log filter installed on the node for a single
event of a single contract. It is opened once, polled, and closed; it is
never reused after closing.

``wait_for_event`` arms a deadline, opens a fresh subscription and returns
the first event accepted by a match function, or raises
``EventTimeoutError`` when the deadline passes first.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Optional

from eth_abi import decode

from .abi import canonical_type, decode_named, event_topic, find_event, hex_to_bytes
from .errors import EventTimeoutError
from .rpc import get_filter_changes, get_logs, new_filter, uninstall_filter

logger = logging.getLogger(__name__)

DEFAULT_EVENT_TIMEOUT = 60.0

Event = dict[str, Any]
Match = Callable[[Event], Optional[dict[str, Any]]]


def decode_log(event_abi: dict[str, Any], log: dict[str, Any]) -> Event:
    """
    Decode a raw log into ``{arg_name: value}``.

    Indexed static arguments are decoded from their topics. Indexed dynamic
    arguments (strings, bytes, arrays) only exist as a hash on chain and are
    returned as the raw 32-byte topic.
    """
    topics = log.get("topics", [])[1:]
    indexed = [p for p in event_abi["inputs"] if p.get("indexed")]
    plain = [p for p in event_abi["inputs"] if not p.get("indexed")]

    values: dict[str, Any] = {}
    for param, topic in zip(indexed, topics):
        raw = hex_to_bytes(topic)
        abi_type = canonical_type(param)
        if abi_type in ("string", "bytes") or abi_type.endswith("]") or abi_type.startswith("("):
            values[param["name"]] = raw
        else:
            (values[param["name"]],) = decode([abi_type], raw)

    if plain:
        values.update(decode_named(plain, hex_to_bytes(log.get("data", "0x"))))

    # Keep ABI input order
    return {p["name"]: values.get(p["name"]) for p in event_abi["inputs"]}


class LogSubscription:
    """
    Log filter for one event on one contract address.

    With ``from_block`` set, logs already mined from that block on are read
    once with eth_getLogs when the subscription opens and are returned by
    the first poll, ahead of anything the filter reports.
    """

    def __init__(
        self,
        address: str,
        abi: list,
        event_name: str,
        rpc_url: str,
        from_block: Optional[int] = None,
    ):
        self.address = address
        self.event_name = event_name
        self.rpc_url = rpc_url
        self.from_block = from_block
        self._event_abi = find_event(abi, event_name)
        self._filter_id: Optional[str] = None
        self._backlog: list[dict[str, Any]] = []
        self._seen: set[tuple[Any, Any]] = set()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def open(self) -> "LogSubscription":
        if self._closed:
            raise RuntimeError(f"Subscription to {self.event_name} is closed")
        if self._filter_id is None:
            topics = [event_topic(self._event_abi)]
            # Filter before backlog; overlapping logs are dropped by (tx hash, log index)
            self._filter_id = new_filter(self.address, topics, self.rpc_url)
            logger.debug("Subscribed to %s (filter %s)", self.event_name, self._filter_id)
            if self.from_block is not None:
                self._backlog = get_logs(self.address, topics, self.rpc_url, self.from_block)
                logger.debug(
                    "Read %d %s logs from block %s", len(self._backlog), self.event_name, self.from_block
                )
        return self

    def _is_new(self, log: dict[str, Any]) -> bool:
        if log.get("removed"):
            return False
        key = (log.get("transactionHash"), log.get("logIndex"))
        if key == (None, None):
            return True
        if key in self._seen:
            return False
        self._seen.add(key)
        return True

    def poll(self) -> list[Event]:
        """Decoded events that arrived since the previous poll."""
        if self._filter_id is None:
            self.open()
        logs, self._backlog = self._backlog, []
        logs += get_filter_changes(self._filter_id, self.rpc_url)
        return [decode_log(self._event_abi, log) for log in logs if self._is_new(log)]

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._filter_id is not None:
            try:
                uninstall_filter(self._filter_id, self.rpc_url)
            except Exception as exc:
                # The filter expires on the node anyway
                logger.warning("Failed to uninstall filter %s: %s", self._filter_id, exc)
            self._filter_id = None

    def __enter__(self) -> "LogSubscription":
        return self.open()

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


def wait_for_event(
    subscribe: Callable[[], Any],
    event_name: str,
    match: Match,
    timeout: float = DEFAULT_EVENT_TIMEOUT,
    on_success: Optional[Callable[..., Any]] = None,
    on_failure: Optional[Callable[[], Any]] = None,
    timeout_message: str = "Event not received",
    poll_interval: float = 2.0,
) -> dict[str, Any]:
    """
    Wait for the first event accepted by ``match``.

    Args:
        subscribe: Opens and returns a fresh subscription (``poll``/``close``)
        event_name: Event name, for logging and the timeout error
        match: Returns the success payload for a matching event, None otherwise
        timeout: Seconds from arming until the wait gives up
        on_success: Called once with the payload values, positionally
        on_failure: Called once, with no arguments, on timeout
        timeout_message: ``msg`` of the raised EventTimeoutError
        poll_interval: Seconds between subscription polls

    Returns:
        The payload returned by ``match``

    Raises:
        EventTimeoutError: If no event matched before the deadline
    """
    deadline = time.monotonic() + timeout
    subscription = subscribe()
    logger.debug("Waiting up to %ss for %s", timeout, event_name)

    payload: Optional[dict[str, Any]] = None
    try:
        while payload is None:
            for event in subscription.poll():
                payload = match(event)
                if payload is not None:
                    break
                logger.debug("Ignoring %s not addressed to this account: %s", event_name, event)
            if payload is not None:
                break

            # Non-matching events do not move the deadline
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                break
            time.sleep(min(poll_interval, remaining))
    finally:
        subscription.close()

    if payload is None:
        logger.info("Timed out after %ss waiting for %s", timeout, event_name)
        if on_failure is not None:
            on_failure()
        raise EventTimeoutError(timeout_message, event_name=event_name, timeout=timeout)

    logger.info("Received %s: %s", event_name, payload)
    if on_success is not None:
        on_success(*payload.values())
    return payload
