"""
Pydantic models for ledger records and API payloads.

This module contains:
- Record models for the values stored on the ledger (Messenger, Message)
- Decoders turning raw stored bytes into records
- Composite query results (audit trail, full snapshot)
- Request/response models for the HTTP surface

Record fields all default to their empty value and unknown fields are
ignored, so decoding an empty or partial payload yields a partially empty
record instead of failing. Existence checks in accessors.py rely on this.
"""

import logging
from functools import lru_cache
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

logger = logging.getLogger(__name__)

MESSENGER_OBJECT_TYPE = "message_messenger"
MESSAGE_DOC_TYPE = "message"


# =============================================================================
# Ledger Records
# =============================================================================

class MessengerRecord(BaseModel):
    """
    A registered sender, stored under its id ("o" prefix).

    company is part of the record but no write path sets it.
    """
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    object_type: str = Field(default="", alias="objectType")
    id: str = ""
    username: str = ""
    company: str = ""


class MessengerSnapshot(BaseModel):
    """Copy of a Messenger's identity embedded in a Message at creation time."""
    model_config = ConfigDict(extra="ignore")

    id: str = ""
    username: str = ""
    company: str = ""


class MessageRecord(BaseModel):
    """A message sent by a Messenger, stored under its id ("m" prefix)."""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    doc_type: str = Field(default="", alias="docType")
    id: str = ""
    text: str = ""
    priority: int = 0
    messenger: MessengerSnapshot = Field(default_factory=MessengerSnapshot)


LedgerRecord = Union[MessengerRecord, MessageRecord]

_JsonObject = TypeAdapter(dict)


@lru_cache(maxsize=None)
def _field_adapter(annotation) -> TypeAdapter:
    return TypeAdapter(annotation)


def _decode_fields(model, data: dict):
    """
    Build a record from a JSON object one field at a time.

    A field that is missing or has the wrong type keeps its default; the
    other fields are still decoded.
    """
    values = {}
    for name, field in model.model_fields.items():
        key = field.alias or name
        if key not in data:
            continue
        annotation = field.annotation
        if isinstance(annotation, type) and issubclass(annotation, BaseModel):
            if isinstance(data[key], dict):
                values[name] = _decode_fields(annotation, data[key])
            else:
                logger.warning(f"Ignoring {model.__name__}.{key}: expected an object")
            continue
        try:
            values[name] = _field_adapter(annotation).validate_python(data[key])
        except PydanticValidationError:
            logger.warning(f"Ignoring {model.__name__}.{key}: not a valid {annotation.__name__}")
    return model(**values)


def _decode(model, raw: Optional[bytes]):
    if not raw:
        return model()
    try:
        data = _JsonObject.validate_json(raw)
    except PydanticValidationError:
        logger.warning(f"Stored value is not a JSON object, decoding as an empty {model.__name__}")
        return model()
    return _decode_fields(model, data)


def decode_messenger(raw: Optional[bytes]) -> MessengerRecord:
    """Decode stored bytes as a Messenger; fields that fail to decode keep their default."""
    return _decode(MessengerRecord, raw)


def decode_message(raw: Optional[bytes]) -> MessageRecord:
    """Decode stored bytes as a Message; fields that fail to decode keep their default."""
    return _decode(MessageRecord, raw)


def decode_record(raw: Optional[bytes]) -> LedgerRecord:
    """
    Decode stored bytes using the record's kind tag.

    Payloads tagged objectType == "message_messenger" decode as Messengers;
    everything else, including empty payloads, decodes as a Message.
    """
    if raw:
        try:
            tag = _JsonObject.validate_json(raw).get("objectType")
        except PydanticValidationError:
            tag = None
        if tag == MESSENGER_OBJECT_TYPE:
            return decode_messenger(raw)
    return decode_message(raw)


def encode_record(record: BaseModel, **kwargs) -> bytes:
    """Serialize a record with its ledger field names."""
    return record.model_dump_json(by_alias=True, **kwargs).encode("utf-8")


# =============================================================================
# Query Results
# =============================================================================

class AuditEntry(BaseModel):
    """One mutation of a key: the transaction id and the value it left behind."""
    model_config = ConfigDict(populate_by_name=True)

    tx_id: str = Field(..., alias="txId")
    value: LedgerRecord


AuditTrail = TypeAdapter(list[AuditEntry])


class Everything(BaseModel):
    """Every Messenger and every Message on the ledger."""
    messengers: list[MessengerRecord] = Field(default_factory=list)
    messages: list[MessageRecord] = Field(default_factory=list)


# =============================================================================
# API Models
# =============================================================================

class InvokeRequest(BaseModel):
    """Positional string arguments for a ledger command."""
    args: list[str] = Field(
        default_factory=list,
        description="Command arguments in positional order"
    )

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"args": ["m1490898165086", "hello", "1", "o99999999"]}
            ]
        }
    }


class InvokeResponse(BaseModel):
    """Response for commands that return no payload."""
    status: str = Field(default="ok", description="Operation status")


class ErrorResponse(BaseModel):
    """Response model for failed commands."""
    detail: str = Field(..., description="Error description")


class HealthResponse(BaseModel):
    """Response model for health check endpoints."""
    status: str = Field(..., description="Health status")
    reason: Optional[str] = Field(None, description="Reason if not ready")
