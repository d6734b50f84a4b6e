"""Tests for CSV export."""

from datetime import date
from decimal import Decimal

from conftest import make_tx
from moneynote.exporting import export_csv, export_filename, transactions_frame
from moneynote.models.transaction import TransactionType


class TestExportCsv:
    """Tests for export_csv."""

    def test_header_and_rows(self, june_ledger):
        lines = export_csv(june_ledger).splitlines()
        assert lines == [
            "Date,Label,Type,Amount",
            "2024-06-01,Breakfast,EXPENSE,4500",
            "2024-06-01,Shopping,EXPENSE,5000",
            "2024-06-05,Salary,INCOME,300000",
        ]

    def test_empty(self):
        assert export_csv([]) == "Date,Label,Type,Amount\n"

    def test_quotes_commas_and_quotes(self):
        tx = make_tx('Rice, "premium"', 12000, "2024-06-03")
        line = export_csv([tx]).splitlines()[1]
        assert line == '2024-06-03,"Rice, ""premium""",EXPENSE,12000'

    def test_keeps_burmese_text(self):
        tx = make_tx("မနက်စာ", 4500, "2024-06-01")
        assert "မနက်စာ" in export_csv([tx])

    def test_fractional_amount(self):
        tx = make_tx("Bread", "2.50", "2024-06-01", TransactionType.EXPENSE)
        assert export_csv([tx]).splitlines()[1].endswith(",2.5")

    def test_frame_columns(self, june_ledger):
        frame = transactions_frame(june_ledger)
        assert list(frame.columns) == ["Date", "Label", "Type", "Amount"]
        assert len(frame) == 3


class TestExportFilename:
    """Tests for export_filename."""

    def test_format(self):
        assert export_filename("mgmg", date(2024, 6, 30)) == "MoneyNote_mgmg_2024-06-30.csv"
