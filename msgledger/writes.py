"""
Write operations on the ledger.

Each operation validates its arguments, runs its existence and authorization
checks, and only then performs exactly one put or delete. A failed check
leaves the ledger untouched.
"""

import logging
from typing import Optional

from msgledger.accessors import find_message, find_messenger, get_message, get_messenger
from msgledger.errors import AuthorizationError, ConflictError
from msgledger.host import LedgerHost
from msgledger.schemas import (
    MESSAGE_DOC_TYPE,
    MESSENGER_OBJECT_TYPE,
    MessageRecord,
    MessengerRecord,
    MessengerSnapshot,
    encode_record,
)
from msgledger.validation import parse_priority, sanitize_arguments

logger = logging.getLogger(__name__)


def write(host: LedgerHost, key: str, value: str) -> None:
    """
    Store an opaque value under key, with no type or existence checks.

    Args:
        host: Ledger host
        key: Ledger key
        value: Value stored as its UTF-8 bytes
    """
    sanitize_arguments([key, value])

    logger.info(f"Writing generic value: key={key}")
    host.put(key, value.encode("utf-8"))


def create_messenger(host: LedgerHost, messenger_id: str, username: str) -> MessengerRecord:
    """
    Register a new Messenger.

    Args:
        host: Ledger host
        messenger_id: Ledger key of the Messenger ("o" prefix)
        username: Display name, stored lowercased

    Returns:
        The stored MessengerRecord

    Raises:
        ValidationError: if an argument is empty or too long
        ConflictError: if a Messenger already exists under messenger_id
    """
    sanitize_arguments([messenger_id, username])

    messenger = MessengerRecord(
        object_type=MESSENGER_OBJECT_TYPE,
        id=messenger_id,
        username=username.lower(),
    )
    logger.info(f"Creating messenger: id={messenger.id}, username={messenger.username}")

    if find_messenger(host, messenger.id) is not None:
        logger.info(f"Messenger already exists: {messenger.id}")
        raise ConflictError(f"This messenger already exists - {messenger.id}")

    host.put(messenger.id, encode_record(messenger, exclude={"company"}))
    logger.info(f"Messenger created: {messenger.id}")
    return messenger


def create_message(
    host: LedgerHost,
    message_id: str,
    text: str,
    priority: str,
    messenger_id: str,
    recipient_id: Optional[str] = None,
) -> MessageRecord:
    """
    Create a Message sent by an existing Messenger.

    The Message embeds a copy of the Messenger's id and username taken now;
    it is not linked to the Messenger record afterwards.

    Args:
        host: Ledger host
        message_id: Ledger key of the Message ("m" prefix)
        text: Message body
        priority: Base-10 integer string
        messenger_id: Id of the sending Messenger
        recipient_id: Validated when given but not stored

    Returns:
        The stored MessageRecord

    Raises:
        ValidationError: on an empty/oversized argument or non-numeric priority
        NotFoundError: if the Messenger does not exist
        ConflictError: if a Message already exists under message_id
    """
    args = [message_id, text, priority, messenger_id]
    if recipient_id is not None:
        args.append(recipient_id)
    sanitize_arguments(args)

    priority_value = parse_priority(priority)
    logger.info(f"Creating message: id={message_id}, messenger={messenger_id}, priority={priority_value}")

    messenger = get_messenger(host, messenger_id)

    if find_message(host, message_id) is not None:
        logger.info(f"Message already exists: {message_id}")
        raise ConflictError(f"This message already exists - {message_id}")

    message = MessageRecord(
        doc_type=MESSAGE_DOC_TYPE,
        id=message_id,
        text=text,
        priority=priority_value,
        messenger=MessengerSnapshot(id=messenger_id, username=messenger.username),
    )
    host.put(message_id, encode_record(message, exclude={"messenger": {"company"}}))
    logger.info(f"Message created: {message_id}")
    return message


def delete_message(host: LedgerHost, message_id: str, authorizing_company: str) -> None:
    """
    Delete a Message if the authorizing company matches the stored one.

    Messages are created without a company, so the stored value is empty and
    any non-empty authorizing_company is refused.

    Raises:
        ValidationError: if an argument is empty or too long
        NotFoundError: if the Message does not exist
        AuthorizationError: if authorizing_company differs from the stored company
    """
    sanitize_arguments([message_id, authorizing_company])
    logger.info(f"Deleting message: id={message_id}, authorized_by={authorizing_company}")

    message = get_message(host, message_id)
    stored_company = message.messenger.company

    if not stored_company:
        logger.warning(f"Message {message_id} has no company on record; deletion cannot be authorized")

    if stored_company != authorizing_company:
        raise AuthorizationError(
            f"The company '{authorizing_company}' cannot authorize deletion for '{stored_company}'."
        )

    host.delete(message_id)
    logger.info(f"Message deleted: {message_id}")
