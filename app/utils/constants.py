"""
Application-wide constants for the sponsorship dashboard.

Defines program codes, financial field names, status and category
defaults, import options and broadcast event types used across
routers, services and parsers.
"""

from typing import Final

# ---------------------------------------------------------------------------
# Currency
# ---------------------------------------------------------------------------

EXCHANGE_RATE: Final[float] = 4100.0
"""Default EUR -> UGX rate."""

BASE_CURRENCY: Final[str] = "EUR"
LOCAL_CURRENCY: Final[str] = "UGX"

# ---------------------------------------------------------------------------
# Sponsorship programs
# ---------------------------------------------------------------------------

PROGRAM_CODES: Final[list[str]] = ["CH", "YSP", "ICCSP", "OTM_GA"]

PROGRAM_NAMES: Final[dict[str, str]] = {
    "CH": "CH FINANCIAL ANALYSIS REPORT TERM III 2025",
    "YSP": "YSP FINANCIAL ANALYSIS REPORT Term III 2025",
    "ICCSP": "ICCSP FINANCIAL ANALYSIS REPORT TERM III 2025",
    "OTM_GA": "OTM-GA FINANCIAL ANALYSIS REPORT TERM III 2025",
}

DEFAULT_PACKAGE: Final[str] = "Day"
UNSPECIFIED_PACKAGE: Final[str] = "Unspecified"

# ---------------------------------------------------------------------------
# Student financial fields
# ---------------------------------------------------------------------------

# Raw inputs, in evaluation order.
RAW_FINANCIAL_FIELDS: Final[list[str]] = [
    "termly_school_fees",
    "direct_spending_school_fees_ugx_monthly",
    "direct_spending_school_fees_euros_monthly",
    "food",
    "average_medical",
    "school_personal_requirements_transport",
    "admin_utilities",
    "cash_received_euro",
]

DERIVED_FINANCIAL_FIELDS: Final[list[str]] = [
    "monthly_output_ugx",
    "monthly_output_euro",
    "cash_received_ugx",
    "plus_minus_diff_ugx",
    "plus_minus_diff_euro",
]

# Monthly UGX cost components (termly fees are divided by TERM_MONTHS).
MONTHLY_COST_FIELDS: Final[list[str]] = [
    "direct_spending_school_fees_ugx_monthly",
    "food",
    "average_medical",
    "school_personal_requirements_transport",
    "admin_utilities",
]

TERM_MONTHS: Final[int] = 3

# Spreadsheet cell references accepted in formulas and the field each reads.
CELL_REFERENCES: Final[dict[str, str]] = {
    "$E$3": "termly_school_fees",
    "$D$3": "termly_school_fees",
    "D3": "termly_school_fees",
    "E3": "direct_spending_school_fees_ugx_monthly",
    "F3": "direct_spending_school_fees_euros_monthly",
    "G3": "food",
    "H3": "average_medical",
    "I3": "school_personal_requirements_transport",
    "J3": "admin_utilities",
}

# ---------------------------------------------------------------------------
# Sponsors
# ---------------------------------------------------------------------------

SPONSOR_ACTIVE: Final[str] = "active"
SPONSOR_INACTIVE: Final[str] = "inactive"
SPONSOR_STATUSES: Final[list[str]] = [SPONSOR_ACTIVE, SPONSOR_INACTIVE]

DEFAULT_SPONSOR_CATEGORY: Final[str] = "Individual"
SPONSOR_CATEGORIES: Final[list[str]] = ["Individual", "Organization", "Church", "School"]

# ---------------------------------------------------------------------------
# Expenses
# ---------------------------------------------------------------------------

DEFAULT_EXPENSE_CATEGORY: Final[str] = "other"
EXPENSE_CATEGORIES: Final[list[str]] = [
    "school",
    "medical",
    "food",
    "transport",
    "admin",
    "other",
]

# ---------------------------------------------------------------------------
# Import
# ---------------------------------------------------------------------------

IMPORT_KINDS: Final[list[str]] = ["students", "sponsors", "expenses", "all"]
MERGE_STRATEGIES: Final[list[str]] = ["replace", "merge", "append"]

EXCEL_CONTENT_TYPES: Final[frozenset[str]] = frozenset(
    {
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        "application/vnd.ms-excel",
        "application/octet-stream",  # some browsers send this for .xlsx
    }
)

# ---------------------------------------------------------------------------
# Realtime events
# ---------------------------------------------------------------------------

EVENT_DATABASE_LOADED: Final[str] = "database_loaded"
EVENT_DATABASE_IMPORTED: Final[str] = "database_imported"
EVENT_PROGRAM_UPDATED: Final[str] = "program_updated"
EVENT_STUDENT_ADDED: Final[str] = "student_added"
EVENT_STUDENT_UPDATED: Final[str] = "student_updated"
EVENT_STUDENT_DELETED: Final[str] = "student_deleted"
EVENT_SPONSOR_ADDED: Final[str] = "sponsor_added"
EVENT_SPONSOR_UPDATED: Final[str] = "sponsor_updated"
EVENT_SPONSOR_DELETED: Final[str] = "sponsor_deleted"
EVENT_EXPENSE_ADDED: Final[str] = "expense_added"
EVENT_EXPENSE_UPDATED: Final[str] = "expense_updated"
EVENT_EXPENSE_DELETED: Final[str] = "expense_deleted"
EVENT_EVENT_ADDED: Final[str] = "event_added"
EVENT_EVENT_UPDATED: Final[str] = "event_updated"
EVENT_EVENT_DELETED: Final[str] = "event_deleted"
EVENT_SETTINGS_UPDATED: Final[str] = "settings_updated"
EVENT_LOGO_UPDATED: Final[str] = "logo_updated"

SETTINGS_SECTIONS: Final[dict[str, str]] = {
    "organization": "organization_settings_updated",
    "forex": "forex_settings_updated",
    "notifications": "notification_settings_updated",
}
