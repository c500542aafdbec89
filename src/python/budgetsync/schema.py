"""Database schema and protocol constants."""

from __future__ import annotations

OPERATION_CREATE = "CREATE"
OPERATION_UPDATE = "UPDATE"
OPERATION_DELETE = "DELETE"
OPERATIONS = (OPERATION_CREATE, OPERATION_UPDATE, OPERATION_DELETE)

ERROR_CONFLICT = "CONFLICT"
ERROR_NOT_FOUND = "NOT_FOUND"
ERROR_VALIDATION = "VALIDATION_ERROR"
ERROR_INTERNAL = "INTERNAL_ERROR"

# Request keys in dependency order: referenced kinds come first.
SYNC_ORDER = ("accounts", "categories", "budgets", "transactions")

ENTITY_TYPES = {
    "accounts": "account",
    "categories": "category",
    "budgets": "budget",
    "transactions": "transaction",
}

ENTITY_TABLES = {
    "accounts": "Account",
    "categories": "Category",
    "budgets": "Budget",
    "transactions": "Transaction",
}

MAX_CHANGES_PER_KIND = 250
MAX_TOTAL_CHANGES = 1000
MAX_CLIENT_ID_LENGTH = 100
DEFAULT_TIMEOUT_SECONDS = 30
DEFAULT_BUSY_TIMEOUT_SECONDS = 5

ACCOUNT_TYPES = {"cash", "bank", "card", "savings"}
CATEGORY_TYPES = {"income", "expense", "transfer"}
TRANSACTION_TYPES = {"income", "expense", "transfer"}
BUDGET_PERIODS = {"weekly", "monthly", "yearly"}

SYNC_COLUMNS = [
    "id",
    "familyId",
    "version",
    "isDeleted",
    "deletedAt",
    "createdAt",
    "updatedAt",
]

ACCOUNT_COLUMNS = SYNC_COLUMNS + [
    "name",
    "type",
    "currency",
    "openingBalance",
    "isActive",
]

CATEGORY_COLUMNS = SYNC_COLUMNS + [
    "name",
    "type",
    "parentId",
    "color",
    "icon",
]

BUDGET_COLUMNS = SYNC_COLUMNS + [
    "categoryId",
    "accountId",
    "periodType",
    "amount",
    "startDate",
    "endDate",
]

TRANSACTION_COLUMNS = SYNC_COLUMNS + [
    "accountId",
    "categoryId",
    "userId",
    "type",
    "amount",
    "currency",
    "date",
    "payee",
    "notes",
    "transferAccountId",
]

SCHEMA_STATEMENTS = [
    """
    CREATE TABLE IF NOT EXISTS "Account" (
        id TEXT PRIMARY KEY,
        familyId TEXT NOT NULL,
        version INTEGER NOT NULL DEFAULT 1,
        isDeleted INTEGER NOT NULL DEFAULT 0,
        deletedAt TEXT,
        createdAt TEXT NOT NULL,
        updatedAt TEXT NOT NULL,
        name TEXT NOT NULL,
        type TEXT NOT NULL,
        currency TEXT NOT NULL,
        openingBalance TEXT NOT NULL,
        isActive INTEGER NOT NULL DEFAULT 1
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS "Category" (
        id TEXT PRIMARY KEY,
        familyId TEXT NOT NULL,
        version INTEGER NOT NULL DEFAULT 1,
        isDeleted INTEGER NOT NULL DEFAULT 0,
        deletedAt TEXT,
        createdAt TEXT NOT NULL,
        updatedAt TEXT NOT NULL,
        name TEXT NOT NULL,
        type TEXT NOT NULL,
        parentId TEXT REFERENCES "Category" (id),
        color TEXT NOT NULL,
        icon TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS "Budget" (
        id TEXT PRIMARY KEY,
        familyId TEXT NOT NULL,
        version INTEGER NOT NULL DEFAULT 1,
        isDeleted INTEGER NOT NULL DEFAULT 0,
        deletedAt TEXT,
        createdAt TEXT NOT NULL,
        updatedAt TEXT NOT NULL,
        categoryId TEXT NOT NULL REFERENCES "Category" (id),
        accountId TEXT REFERENCES "Account" (id),
        periodType TEXT NOT NULL,
        amount TEXT NOT NULL,
        startDate TEXT NOT NULL,
        endDate TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS "Transaction" (
        id TEXT PRIMARY KEY,
        familyId TEXT NOT NULL,
        version INTEGER NOT NULL DEFAULT 1,
        isDeleted INTEGER NOT NULL DEFAULT 0,
        deletedAt TEXT,
        createdAt TEXT NOT NULL,
        updatedAt TEXT NOT NULL,
        accountId TEXT NOT NULL REFERENCES "Account" (id),
        categoryId TEXT NOT NULL REFERENCES "Category" (id),
        userId TEXT NOT NULL,
        type TEXT NOT NULL,
        amount TEXT NOT NULL,
        currency TEXT NOT NULL,
        date TEXT NOT NULL,
        payee TEXT NOT NULL,
        notes TEXT NOT NULL DEFAULT '',
        transferAccountId TEXT REFERENCES "Account" (id)
    )
    """,
    'CREATE INDEX IF NOT EXISTS idx_account_sync ON "Account" (familyId, updatedAt)',
    'CREATE INDEX IF NOT EXISTS idx_category_sync ON "Category" (familyId, updatedAt)',
    'CREATE INDEX IF NOT EXISTS idx_budget_sync ON "Budget" (familyId, updatedAt)',
    'CREATE INDEX IF NOT EXISTS idx_transaction_sync ON "Transaction" (familyId, updatedAt)',
]

TABLE_COLUMNS = {
    "Account": ACCOUNT_COLUMNS,
    "Category": CATEGORY_COLUMNS,
    "Budget": BUDGET_COLUMNS,
    "Transaction": TRANSACTION_COLUMNS,
}
