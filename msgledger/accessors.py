"""
Fetch-and-decode accessors for Messengers and Messages.

The ledger host returns b"" for a missing key, so existence is inferred from
the decoded record: a Messenger exists when its username is non-empty, a
Message exists when its stored id equals the requested one. A stored record
whose identifying field is empty is therefore reported as absent.

find_* return None for an absent entity; get_* raise NotFoundError.
"""

import logging
from typing import Optional

from msgledger.errors import HostError, NotFoundError
from msgledger.host import LedgerHost
from msgledger.schemas import MessageRecord, MessengerRecord, decode_message, decode_messenger

logger = logging.getLogger(__name__)


def _fetch(host: LedgerHost, key: str) -> Optional[bytes]:
    try:
        return host.get(key)
    except HostError as e:
        logger.warning(f"Treating {key} as absent after host failure: {e}")
        return None


def find_messenger(host: LedgerHost, messenger_id: str) -> Optional[MessengerRecord]:
    """Return the Messenger stored under messenger_id, or None."""
    raw = _fetch(host, messenger_id)
    if raw is None:
        return None
    messenger = decode_messenger(raw)
    if len(messenger.username) == 0:
        return None
    return messenger


def find_message(host: LedgerHost, message_id: str) -> Optional[MessageRecord]:
    """Return the Message stored under message_id, or None."""
    raw = _fetch(host, message_id)
    if raw is None:
        return None
    message = decode_message(raw)
    if message.id != message_id:
        return None
    return message


def get_messenger(host: LedgerHost, messenger_id: str) -> MessengerRecord:
    """
    Get a Messenger from the ledger.

    Raises:
        NotFoundError: if the fetch failed or no Messenger is stored under the id
    """
    messenger = find_messenger(host, messenger_id)
    if messenger is None:
        raise NotFoundError(f"Messenger does not exist - {messenger_id}")
    return messenger


def get_message(host: LedgerHost, message_id: str) -> MessageRecord:
    """
    Get a Message from the ledger.

    Raises:
        NotFoundError: if the fetch failed or no Message is stored under the id
    """
    message = find_message(host, message_id)
    if message is None:
        raise NotFoundError(f"Message does not exist - {message_id}")
    return message
