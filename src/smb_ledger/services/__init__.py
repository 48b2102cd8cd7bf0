from smb_ledger.services.bulk_import import AccountIndex, BulkImportServiceImpl
from smb_ledger.services.chart_of_accounts import ChartOfAccountsServiceImpl
from smb_ledger.services.entry_numbering import EntryNumberSequence
from smb_ledger.services.interfaces import (
    BalanceDrift,
    BulkImportResult,
    BulkImportService,
    ChartOfAccountsService,
    EntryNumberingService,
    GeneralLedgerLine,
    GeneralLedgerReport,
    LedgerService,
    ReportingService,
    TrialBalanceLine,
    TrialBalanceReport,
)
from smb_ledger.services.ledger import LedgerServiceImpl
from smb_ledger.services.reporting import ReportingServiceImpl

__all__ = [
    "AccountIndex",
    "BalanceDrift",
    "BulkImportResult",
    "BulkImportService",
    "BulkImportServiceImpl",
    "ChartOfAccountsService",
    "ChartOfAccountsServiceImpl",
    "EntryNumberSequence",
    "EntryNumberingService",
    "GeneralLedgerLine",
    "GeneralLedgerReport",
    "LedgerService",
    "LedgerServiceImpl",
    "ReportingService",
    "ReportingServiceImpl",
    "TrialBalanceLine",
    "TrialBalanceReport",
]
