"""Typed payloads carried in the *content* of an envelope.

Each class corresponds to exactly one :class:`~txproc.protocol.fields.MessageType`;
see :data:`TYPES` for the mapping. Every field has a default, so that a
payload can be built up field by field in the same manner as the validator
builds its own messages, and so that an empty content is a valid encoding.
"""

from __future__ import annotations

from typing import List

import msgspec

from .fields import AddStatus, MessageType, ProcessStatus, RegisterStatus, StateStatus


def _list():
    return msgspec.field(default_factory=list)


class TpRegisterRequest(msgspec.Struct, kw_only=True):
    family: str = ""
    version: str = ""
    namespaces: List[str] = _list()
    max_occupancy: int = 0
    protocol_version: int = 1


class TpRegisterResponse(msgspec.Struct, kw_only=True):
    status: RegisterStatus = RegisterStatus.STATUS_UNSET
    protocol_version: int = 1


class TpUnregisterRequest(msgspec.Struct, kw_only=True):
    pass


class TpUnregisterResponse(msgspec.Struct, kw_only=True):
    status: RegisterStatus = RegisterStatus.STATUS_UNSET


class TransactionHeader(msgspec.Struct, kw_only=True):
    family_name: str = ""
    family_version: str = ""
    payload_encoding: str = ""
    signer_public_key: str = ""
    batcher_public_key: str = ""
    inputs: List[str] = _list()
    outputs: List[str] = _list()
    dependencies: List[str] = _list()
    nonce: str = ""
    payload_sha512: str = ""


class TpProcessRequest(msgspec.Struct, kw_only=True):
    header: TransactionHeader = msgspec.field(default_factory=TransactionHeader)
    payload: bytes = b""
    signature: str = ""
    context_id: str = ""


class TpProcessResponse(msgspec.Struct, kw_only=True):
    status: ProcessStatus = ProcessStatus.STATUS_UNSET
    message: str = ""
    extended_data: bytes = b""


class TpStateEntry(msgspec.Struct, kw_only=True):
    address: str = ""
    data: bytes = b""


class TpStateGetRequest(msgspec.Struct, kw_only=True):
    context_id: str = ""
    addresses: List[str] = _list()


class TpStateGetResponse(msgspec.Struct, kw_only=True):
    entries: List[TpStateEntry] = _list()
    status: StateStatus = StateStatus.STATUS_UNSET


class TpStateSetRequest(msgspec.Struct, kw_only=True):
    context_id: str = ""
    entries: List[TpStateEntry] = _list()


class TpStateSetResponse(msgspec.Struct, kw_only=True):
    addresses: List[str] = _list()
    status: StateStatus = StateStatus.STATUS_UNSET


class TpStateDeleteRequest(msgspec.Struct, kw_only=True):
    context_id: str = ""
    addresses: List[str] = _list()


class TpStateDeleteResponse(msgspec.Struct, kw_only=True):
    addresses: List[str] = _list()
    status: StateStatus = StateStatus.STATUS_UNSET


class EventAttribute(msgspec.Struct, kw_only=True):
    key: str = ""
    value: str = ""


class Event(msgspec.Struct, kw_only=True):
    event_type: str = ""
    attributes: List[EventAttribute] = _list()
    data: bytes = b""


class TpEventAddRequest(msgspec.Struct, kw_only=True):
    context_id: str = ""
    event: Event = msgspec.field(default_factory=Event)


class TpEventAddResponse(msgspec.Struct, kw_only=True):
    status: AddStatus = AddStatus.STATUS_UNSET


class TpReceiptAddDataRequest(msgspec.Struct, kw_only=True):
    context_id: str = ""
    data: bytes = b""


class TpReceiptAddDataResponse(msgspec.Struct, kw_only=True):
    status: AddStatus = AddStatus.STATUS_UNSET


class PingRequest(msgspec.Struct, kw_only=True):
    pass


class PingResponse(msgspec.Struct, kw_only=True):
    pass


TYPES = {
    MessageType.TP_REGISTER_REQUEST: TpRegisterRequest,
    MessageType.TP_REGISTER_RESPONSE: TpRegisterResponse,
    MessageType.TP_UNREGISTER_REQUEST: TpUnregisterRequest,
    MessageType.TP_UNREGISTER_RESPONSE: TpUnregisterResponse,
    MessageType.TP_PROCESS_REQUEST: TpProcessRequest,
    MessageType.TP_PROCESS_RESPONSE: TpProcessResponse,
    MessageType.TP_STATE_GET_REQUEST: TpStateGetRequest,
    MessageType.TP_STATE_GET_RESPONSE: TpStateGetResponse,
    MessageType.TP_STATE_SET_REQUEST: TpStateSetRequest,
    MessageType.TP_STATE_SET_RESPONSE: TpStateSetResponse,
    MessageType.TP_STATE_DELETE_REQUEST: TpStateDeleteRequest,
    MessageType.TP_STATE_DELETE_RESPONSE: TpStateDeleteResponse,
    MessageType.TP_RECEIPT_ADD_DATA_REQUEST: TpReceiptAddDataRequest,
    MessageType.TP_RECEIPT_ADD_DATA_RESPONSE: TpReceiptAddDataResponse,
    MessageType.TP_EVENT_ADD_REQUEST: TpEventAddRequest,
    MessageType.TP_EVENT_ADD_RESPONSE: TpEventAddResponse,
    MessageType.PING_REQUEST: PingRequest,
    MessageType.PING_RESPONSE: PingResponse,
}
