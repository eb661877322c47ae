"""Protocol constants.

Keep these in one place to avoid magic numbers in message handling.
"""

from __future__ import annotations

import enum


PROTOCOL_VERSION = b"1"


class MessageType(enum.IntEnum):
    """Numeric tag identifying the payload kind carried by an envelope."""

    TP_REGISTER_REQUEST = 1
    TP_REGISTER_RESPONSE = 2
    TP_UNREGISTER_REQUEST = 3
    TP_UNREGISTER_RESPONSE = 4
    TP_PROCESS_REQUEST = 5
    TP_PROCESS_RESPONSE = 6
    TP_STATE_GET_REQUEST = 7
    TP_STATE_GET_RESPONSE = 8
    TP_STATE_SET_REQUEST = 9
    TP_STATE_SET_RESPONSE = 10
    TP_STATE_DELETE_REQUEST = 11
    TP_STATE_DELETE_RESPONSE = 12
    TP_RECEIPT_ADD_DATA_REQUEST = 13
    TP_RECEIPT_ADD_DATA_RESPONSE = 14
    TP_EVENT_ADD_REQUEST = 15
    TP_EVENT_ADD_RESPONSE = 16

    PING_REQUEST = 200
    PING_RESPONSE = 201


# Every locally-initiated request expects exactly one reply type.

REPLY_TYPES = {
    MessageType.TP_REGISTER_REQUEST: MessageType.TP_REGISTER_RESPONSE,
    MessageType.TP_UNREGISTER_REQUEST: MessageType.TP_UNREGISTER_RESPONSE,
    MessageType.TP_PROCESS_REQUEST: MessageType.TP_PROCESS_RESPONSE,
    MessageType.TP_STATE_GET_REQUEST: MessageType.TP_STATE_GET_RESPONSE,
    MessageType.TP_STATE_SET_REQUEST: MessageType.TP_STATE_SET_RESPONSE,
    MessageType.TP_STATE_DELETE_REQUEST: MessageType.TP_STATE_DELETE_RESPONSE,
    MessageType.TP_RECEIPT_ADD_DATA_REQUEST: MessageType.TP_RECEIPT_ADD_DATA_RESPONSE,
    MessageType.TP_EVENT_ADD_REQUEST: MessageType.TP_EVENT_ADD_RESPONSE,
    MessageType.PING_REQUEST: MessageType.PING_RESPONSE,
}

RESPONSES = frozenset(REPLY_TYPES.values())


class RegisterStatus(enum.IntEnum):
    STATUS_UNSET = 0
    OK = 1
    ERROR = 2
    NOT_READY = 3


class ProcessStatus(enum.IntEnum):
    STATUS_UNSET = 0
    OK = 1
    INVALID_TRANSACTION = 2
    INTERNAL_ERROR = 3


class StateStatus(enum.IntEnum):
    STATUS_UNSET = 0
    OK = 1
    AUTHORIZATION_ERROR = 2


class AddStatus(enum.IntEnum):
    """Status of an event or receipt-data addition."""

    STATUS_UNSET = 0
    OK = 1
    ERROR = 2
