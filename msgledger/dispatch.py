"""
Command dispatch: maps a command name and its string arguments to an operation.

Handlers return the payload bytes for read commands and None for writes.
"""

import logging
from typing import Callable, Dict, List, Optional

from msgledger import queries, writes
from msgledger.errors import LedgerError, ValidationError
from msgledger.host import LedgerHost
from msgledger.validation import expect_argument_count

logger = logging.getLogger(__name__)

Handler = Callable[[LedgerHost, List[str]], Optional[bytes]]


def _read(host: LedgerHost, args: List[str]) -> bytes:
    expect_argument_count(args, 1)
    return queries.read(host, args[0])


def _write(host: LedgerHost, args: List[str]) -> None:
    expect_argument_count(args, 2)
    writes.write(host, args[0], args[1])


def _create_messenger(host: LedgerHost, args: List[str]) -> None:
    expect_argument_count(args, 2)
    writes.create_messenger(host, args[0], args[1])


def _create_message(host: LedgerHost, args: List[str]) -> None:
    # a fifth argument (recipient id) is accepted but not stored
    expect_argument_count(args, 4, 5)
    writes.create_message(host, *args)


def _delete_message(host: LedgerHost, args: List[str]) -> None:
    expect_argument_count(args, 2)
    writes.delete_message(host, args[0], args[1])


def _range_query(host: LedgerHost, args: List[str]) -> bytes:
    expect_argument_count(args, 2)
    return queries.range_query(host, args[0], args[1])


def _history(host: LedgerHost, args: List[str]) -> bytes:
    expect_argument_count(args, 1)
    return queries.history(host, args[0])


def _read_all(host: LedgerHost, args: List[str]) -> bytes:
    return queries.read_everything(host)


COMMANDS: Dict[str, Handler] = {
    "read": _read,
    "write": _write,
    "createMessenger": _create_messenger,
    "createMessage": _create_message,
    "deleteMessage": _delete_message,
    "rangeQuery": _range_query,
    "history": _history,
    "readAll": _read_all,
}

# Commands whose payload is JSON; read returns whatever bytes were stored
JSON_COMMANDS = frozenset({"rangeQuery", "history", "readAll"})


def invoke(host: LedgerHost, command: str, args: List[str]) -> Optional[bytes]:
    """
    Run a ledger command.

    Args:
        host: Ledger host the command runs against
        command: Command name, one of COMMANDS
        args: Positional string arguments

    Returns:
        Payload bytes for read commands, None for writes

    Raises:
        LedgerError: subclass describing why the command failed
    """
    handler = COMMANDS.get(command)
    if handler is None:
        logger.error(f"Received unknown function invocation - {command}")
        raise ValidationError(f"Received unknown function invocation - {command}")

    logger.info(f"Starting {command}")
    try:
        payload = handler(host, args)
    except LedgerError as e:
        logger.error(f"{command} failed: {e.message}")
        raise

    logger.info(f"- end {command}")
    return payload
