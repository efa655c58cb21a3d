"""
Read operations assembling results from ledger scans.

Every scan runs inside a ``with`` block so the host iterator is closed on
every exit path. An iteration error aborts the whole operation; no partial
result is returned.
"""

import json
import logging

from msgledger.host import LedgerHost
from msgledger.schemas import (
    AuditEntry,
    AuditTrail,
    Everything,
    decode_message,
    decode_messenger,
    decode_record,
)
from msgledger.validation import sanitize_arguments

logger = logging.getLogger(__name__)

# Lexical bounds of the id prefixes: Messengers are "o...", Messages are "m..."
MESSENGER_KEY_RANGE = ("o0", "o9999999999999999999")
MESSAGE_KEY_RANGE = ("m0", "m9999999999999999999")


def read(host: LedgerHost, key: str) -> bytes:
    """Return the raw bytes stored under key (b"" when absent)."""
    sanitize_arguments([key])

    logger.info(f"Reading key: {key}")
    return host.get(key)


def range_query(host: LedgerHost, start_key: str, end_key: str) -> bytes:
    """
    List every key in [start_key, end_key) with its stored value.

    Returns:
        JSON array of {"Key": key, "Record": value}. Stored values are
        embedded as-is, so they must already be JSON to yield valid output.
    """
    logger.info(f"Range query: start={start_key}, end={end_key}")

    parts = []
    with host.range_scan(start_key, end_key) as results:
        while results.has_next():
            key, value = results.next()
            parts.append(b'{"Key":' + json.dumps(key).encode("utf-8") + b', "Record":' + value + b"}")

    logger.debug(f"Range query returned {len(parts)} record(s)")
    return b"[" + b",".join(parts) + b"]"


def history(host: LedgerHost, key: str) -> bytes:
    """
    Return the audit trail of a key, oldest first.

    Each entry pairs a transaction id with the value that transaction left.
    A deletion appears as an entry whose value is the empty Message.

    Returns:
        JSON array of {"txId": ..., "value": {...}}
    """
    sanitize_arguments([key])
    logger.info(f"History query: key={key}")

    trail = []
    with host.history_scan(key) as results:
        for tx_id, value in results:
            trail.append(AuditEntry(tx_id=tx_id, value=decode_record(value)))

    logger.debug(f"History of {key} has {len(trail)} entr{'y' if len(trail) == 1 else 'ies'}")
    return AuditTrail.dump_json(trail, by_alias=True)


def read_everything(host: LedgerHost) -> bytes:
    """
    Return every Messenger and every Message.

    Returns:
        JSON {"messengers": [...], "messages": [...]} in key order
    """
    logger.info("Reading all messengers and messages")
    everything = Everything()

    with host.range_scan(*MESSAGE_KEY_RANGE) as results:
        for key, value in results:
            logger.debug(f"On message id - {key}")
            everything.messages.append(decode_message(value))

    with host.range_scan(*MESSENGER_KEY_RANGE) as results:
        for key, value in results:
            logger.debug(f"On messenger id - {key}")
            everything.messengers.append(decode_messenger(value))

    logger.info(
        f"Read {len(everything.messengers)} messenger(s) and {len(everything.messages)} message(s)"
    )
    return everything.model_dump_json(by_alias=True).encode("utf-8")
