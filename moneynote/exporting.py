"""
CSV Export

Downloads a user's transactions as a spreadsheet-friendly CSV file.
Rows keep the order they are given in; the UI passes the sorted,
searched table so the export matches what the user sees.
"""

from datetime import date
from typing import Iterable

import pandas as pd

from moneynote.ledger.aggregator import amount_text
from moneynote.models.transaction import Transaction

CSV_COLUMNS = ["Date", "Label", "Type", "Amount"]


def transactions_frame(transactions: Iterable[Transaction]) -> pd.DataFrame:
    """Transactions as a DataFrame with the export column names."""
    rows = [
        {
            "Date": tx.date,
            "Label": tx.label,
            "Type": tx.type.value,
            "Amount": amount_text(tx.amount),
        }
        for tx in transactions
    ]
    return pd.DataFrame(rows, columns=CSV_COLUMNS)


def export_csv(transactions: Iterable[Transaction]) -> str:
    """CSV text with a Date,Label,Type,Amount header."""
    return transactions_frame(transactions).to_csv(index=False, lineterminator="\n")


def export_filename(username: str, today: date) -> str:
    """MoneyNote_<user>_<YYYY-MM-DD>.csv"""
    return f"MoneyNote_{username}_{today.isoformat()}.csv"
