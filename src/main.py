import sys
import logging
from typing import List, Optional

from pydantic import ValidationError

from csv_io import write_accounts
from engine import ReplayEngine
from settings import ReplaySettings

USAGE = """Usage: ledger-replay <transactions.csv>

Replays deposit, withdrawal, dispute, resolve and chargeback transactions
and prints the resulting client accounts as CSV. Input looks like:

    type,       client, tx, amount
    deposit,         1,  1,    1.0
    withdrawal,      2,  2,  0.234
"""


def main(argv: Optional[List[str]] = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    if len(args) != 1 or args[0] in ("-h", "--help"):
        print(USAGE, file=sys.stderr)
        return 1

    try:
        settings = ReplaySettings()
    except ValidationError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 1

    logging.basicConfig(
        level=settings.log_level,
        format=settings.log_format,
        stream=sys.stderr,
    )

    filepath = args[0]
    engine = ReplayEngine(workers=settings.workers, queue_size=settings.queue_size)
    try:
        accounts = engine.process_file(filepath)
    except OSError as e:
        print(f"Cannot read {filepath}: {e}", file=sys.stderr)
        return 1

    write_accounts(accounts, sys.stdout)
    return 0


if __name__ == "__main__":
    sys.exit(main())
