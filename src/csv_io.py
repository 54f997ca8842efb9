import csv
import logging
from decimal import Decimal
from typing import Dict, Iterator, Mapping, Optional, TextIO, Union

from errors import MalformedRecord
from models import (
    AMOUNT_QUANTUM,
    ClientAccount,
    Deposit,
    ROUNDING_CONTEXT,
    Transaction,
    TransactionType,
    TRANSACTION_CLASSES,
    Withdrawal,
    to_amount,
)

logger = logging.getLogger(__name__)

INPUT_FIELDS = ("type", "client", "tx", "amount")
OUTPUT_FIELDS = ("client", "available", "held", "total", "locked")

MAX_CLIENT_ID = 2**16 - 1
MAX_TRANSACTION_ID = 2**32 - 1


def _parse_id(raw: str, field: str, upper: int, row) -> int:
    try:
        value = int(raw)
    except ValueError:
        raise MalformedRecord(row, f"{field} is not an integer: {raw!r}") from None
    if not 0 <= value <= upper:
        raise MalformedRecord(row, f"{field} out of range 0..{upper}: {value}")
    return value


def parse_csv_row(row: Mapping[Optional[str], Union[str, list, None]]) -> Transaction:
    """Parse CSV row into a Transaction, raising MalformedRecord if it cannot be."""
    normalized: Dict[str, str] = {}
    for key, value in row.items():
        # Extra columns land under the None key as a list
        if key is None or not isinstance(value, str):
            continue
        normalized[key.strip().lower()] = value.strip()

    for field in ("type", "client", "tx"):
        if not normalized.get(field):
            raise MalformedRecord(row, f"missing {field}")

    try:
        transaction_type = TransactionType(normalized["type"].lower())
    except ValueError:
        raise MalformedRecord(row, f"unknown transaction type {normalized['type']!r}") from None

    client_id = _parse_id(normalized["client"], "client", MAX_CLIENT_ID, row)
    transaction_id = _parse_id(normalized["tx"], "tx", MAX_TRANSACTION_ID, row)

    cls = TRANSACTION_CLASSES[transaction_type]
    if cls not in (Deposit, Withdrawal):
        # Amounts on dispute-lifecycle rows are ignored
        return cls(client_id=client_id, transaction_id=transaction_id)

    amount_str = normalized.get("amount", "")
    if not amount_str:
        raise MalformedRecord(row, f"{transaction_type.value} requires an amount")
    try:
        amount = to_amount(amount_str)
    except ValueError as e:
        raise MalformedRecord(row, str(e)) from None

    return cls(client_id=client_id, transaction_id=transaction_id, amount=amount)


def read_transactions(stream: TextIO, on_malformed=None) -> Iterator[Transaction]:
    """
    Yield transactions from a CSV stream in input order.
    Malformed rows are logged and skipped; on_malformed, if given, is called with each error.
    """
    reader = csv.DictReader(stream, skipinitialspace=True)
    for row in reader:
        try:
            yield parse_csv_row(row)
        except MalformedRecord as e:
            logger.warning(f"Skipping line {reader.line_num}: {e}")
            if on_malformed is not None:
                on_malformed(e)


def format_amount(value: Decimal) -> str:
    """Format an amount with exactly four decimal places."""
    return f"{value.quantize(AMOUNT_QUANTUM, context=ROUNDING_CONTEXT):f}"


def write_accounts(accounts: Mapping[int, ClientAccount], stream: TextIO) -> None:
    """Write one CSV row per client, sorted by client id."""
    writer = csv.writer(stream, lineterminator="\n")
    writer.writerow(OUTPUT_FIELDS)
    for client_id in sorted(accounts.keys()):
        account = accounts[client_id]
        writer.writerow(
            (
                client_id,
                format_amount(account.available),
                format_amount(account.held),
                format_amount(account.total),
                str(account.locked).lower(),
            )
        )
