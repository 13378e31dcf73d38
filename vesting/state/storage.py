"""
Token Vesting Ledger State Storage

SQLite persistence (via aiosqlite) for the vault and the reference token.

Amounts are stored as decimal TEXT: 18-decimal token amounts overflow
SQLite's 64-bit INTEGER.
"""

from __future__ import annotations
import logging
import time
from pathlib import Path
from typing import Dict, Optional

import aiosqlite

from vesting.clock import Clock
from vesting.core.schedule import ScheduleDefinition
from vesting.core.state import Category
from vesting.state.vault import TokenVesting
from vesting.token.ledger import Token

logger = logging.getLogger(__name__)


# Schema version for migrations
SCHEMA_VERSION = 1


CREATE_TABLES_SQL = """
-- Schema version tracking
CREATE TABLE IF NOT EXISTS schema_info (
    key TEXT PRIMARY KEY,
    value TEXT
);

-- Vault
CREATE TABLE IF NOT EXISTS vault_info (
    id INTEGER PRIMARY KEY CHECK (id = 1),
    address TEXT NOT NULL,
    owner TEXT NOT NULL,
    open_unlock INTEGER NOT NULL DEFAULT 0,
    updated_at INTEGER NOT NULL
);

CREATE TABLE IF NOT EXISTS admins (
    address TEXT PRIMARY KEY
);

CREATE TABLE IF NOT EXISTS members (
    address TEXT PRIMARY KEY,
    category TEXT NOT NULL,
    total_allocation TEXT NOT NULL,
    unlocked_amount TEXT NOT NULL,
    withdrawn_amount TEXT NOT NULL,
    updated_at INTEGER NOT NULL
);

-- Token ledger
CREATE TABLE IF NOT EXISTS token_info (
    id INTEGER PRIMARY KEY CHECK (id = 1),
    name TEXT NOT NULL,
    symbol TEXT NOT NULL,
    decimals INTEGER NOT NULL,
    owner TEXT NOT NULL,
    total_supply TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS token_balances (
    address TEXT PRIMARY KEY,
    balance TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_members_category ON members(category);
"""


class StateStorage:
    """
    SQLite-based state storage.

    Each save replaces the stored snapshot inside a single transaction, so
    a crash mid-save leaves the previous snapshot intact.

    Usage:
        async with StateStorage("data/vesting.db") as storage:
            await storage.save_snapshot(vault, token)
    """

    def __init__(self, db_path: str):
        self.db_path = db_path
        self._conn: Optional[aiosqlite.Connection] = None

    async def connect(self) -> None:
        """Open database connection and initialize schema."""
        if self._conn is not None:
            return

        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        self._conn = await aiosqlite.connect(self.db_path)
        await self._conn.execute("PRAGMA journal_mode=WAL")
        await self._init_schema()

        logger.info(f"Connected to state storage: {self.db_path}")

    async def _init_schema(self) -> None:
        await self._conn.executescript(CREATE_TABLES_SQL)

        async with self._conn.execute(
            "SELECT value FROM schema_info WHERE key = 'version'"
        ) as cursor:
            row = await cursor.fetchone()

        if row is None:
            await self._conn.execute(
                "INSERT INTO schema_info (key, value) VALUES ('version', ?)",
                (str(SCHEMA_VERSION),)
            )
            await self._conn.commit()

    async def close(self) -> None:
        """Close database connection."""
        if self._conn is not None:
            await self._conn.close()
            self._conn = None
            logger.info("Closed state storage")

    async def __aenter__(self) -> "StateStorage":
        await self.connect()
        return self

    async def __aexit__(self, *args) -> None:
        await self.close()

    async def _ensure_connected(self) -> aiosqlite.Connection:
        if self._conn is None:
            await self.connect()
        return self._conn

    # =========================================================================
    # Writes
    # =========================================================================

    async def _write_vault(self, conn: aiosqlite.Connection, vault: TokenVesting) -> None:
        now = int(time.time() * 1000)
        data = vault.to_dict()

        await conn.execute("DELETE FROM vault_info")
        await conn.execute("DELETE FROM admins")
        await conn.execute("DELETE FROM members")

        await conn.execute(
            "INSERT INTO vault_info (id, address, owner, open_unlock, updated_at) VALUES (1, ?, ?, ?, ?)",
            (data["address"], data["owner"], int(data["open_unlock"]), now)
        )
        await conn.executemany(
            "INSERT INTO admins (address) VALUES (?)",
            [(a,) for a in data["admins"]]
        )
        await conn.executemany(
            """INSERT INTO members
               (address, category, total_allocation, unlocked_amount, withdrawn_amount, updated_at)
               VALUES (?, ?, ?, ?, ?, ?)""",
            [
                (
                    m["address"],
                    m["category"],
                    str(m["total_allocation"]),
                    str(m["unlocked_amount"]),
                    str(m["withdrawn_amount"]),
                    now,
                )
                for m in data["members"].values()
            ]
        )

    async def _write_token(self, conn: aiosqlite.Connection, token: Token) -> None:
        await conn.execute("DELETE FROM token_info")
        await conn.execute("DELETE FROM token_balances")

        await conn.execute(
            """INSERT INTO token_info (id, name, symbol, decimals, owner, total_supply)
               VALUES (1, ?, ?, ?, ?, ?)""",
            (token.name, token.symbol, token.decimals, str(token.owner), str(token.total_supply))
        )
        await conn.executemany(
            "INSERT INTO token_balances (address, balance) VALUES (?, ?)",
            [(str(addr), str(balance)) for addr, balance in token.holders()]
        )

    async def save_vault(self, vault: TokenVesting) -> None:
        """Replace the stored vault snapshot."""
        conn = await self._ensure_connected()
        try:
            await self._write_vault(conn, vault)
            await conn.commit()
        except Exception:
            await conn.rollback()
            raise
        logger.debug(f"Saved vault {vault.address} ({vault.member_count()} members)")

    async def save_token(self, token: Token) -> None:
        """Replace the stored token ledger."""
        conn = await self._ensure_connected()
        try:
            await self._write_token(conn, token)
            await conn.commit()
        except Exception:
            await conn.rollback()
            raise
        logger.debug(f"Saved token {token.symbol}")

    async def save_snapshot(self, vault: TokenVesting, token: Token) -> None:
        """Save vault and token ledger in one transaction."""
        conn = await self._ensure_connected()
        try:
            await self._write_vault(conn, vault)
            await self._write_token(conn, token)
            await conn.commit()
        except Exception:
            await conn.rollback()
            raise
        logger.info(f"Saved snapshot of vault {vault.address}")

    # =========================================================================
    # Reads
    # =========================================================================

    async def load_token(self) -> Optional[Token]:
        """Load the stored token ledger, or None if none was saved."""
        conn = await self._ensure_connected()

        async with conn.execute(
            "SELECT name, symbol, decimals, owner, total_supply FROM token_info WHERE id = 1"
        ) as cursor:
            row = await cursor.fetchone()
        if row is None:
            return None

        async with conn.execute("SELECT address, balance FROM token_balances") as cursor:
            balances = {addr: int(balance) for addr, balance in await cursor.fetchall()}

        return Token.from_dict({
            "name": row[0],
            "symbol": row[1],
            "decimals": row[2],
            "owner": row[3],
            "total_supply": int(row[4]),
            "balances": balances,
        })

    async def load_vault(
        self,
        token,
        clock: Optional[Clock] = None,
        schedules: Optional[Dict[Category, ScheduleDefinition]] = None
    ) -> Optional[TokenVesting]:
        """Rebuild the stored vault against `token`, or None if none was saved."""
        conn = await self._ensure_connected()

        async with conn.execute(
            "SELECT address, owner, open_unlock FROM vault_info WHERE id = 1"
        ) as cursor:
            row = await cursor.fetchone()
        if row is None:
            return None

        async with conn.execute("SELECT address FROM admins") as cursor:
            admins = [r[0] for r in await cursor.fetchall()]

        async with conn.execute(
            """SELECT address, category, total_allocation, unlocked_amount, withdrawn_amount
               FROM members"""
        ) as cursor:
            members = {
                r[0]: {
                    "address": r[0],
                    "category": r[1],
                    "total_allocation": int(r[2]),
                    "unlocked_amount": int(r[3]),
                    "withdrawn_amount": int(r[4]),
                }
                for r in await cursor.fetchall()
            }

        return TokenVesting.from_dict(
            {
                "address": row[0],
                "owner": row[1],
                "open_unlock": bool(row[2]),
                "admins": admins,
                "members": members,
            },
            token=token,
            clock=clock,
            schedules=schedules,
        )

    async def get_stats(self) -> dict:
        """Row counts per table."""
        conn = await self._ensure_connected()
        stats = {}
        for table in ("admins", "members", "token_balances"):
            async with conn.execute(f"SELECT COUNT(*) FROM {table}") as cursor:
                row = await cursor.fetchone()
            stats[table] = row[0]
        stats["schema_version"] = SCHEMA_VERSION
        return stats
