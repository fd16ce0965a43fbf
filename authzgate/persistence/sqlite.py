"""SQLite implementation of the policy repository."""

from __future__ import annotations

import asyncio
import json
import sqlite3
from pathlib import Path
from typing import Any, Iterable

from .models import EnforcerRecord, Permission, PolicyModel, PolicyRule
from .repository import PolicyRepository


class SQLitePolicyRepository(PolicyRepository):
    """Persist policy records using SQLite."""

    def __init__(self, db_path: str | Path):
        self.db_path = str(db_path)
        self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._ensure_schema()

    # ------------------------------------------------------------------
    # Schema management
    def _ensure_schema(self) -> None:
        cur = self._conn.cursor()
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS policy_models (
                id TEXT PRIMARY KEY,
                owner TEXT NOT NULL,
                name TEXT NOT NULL,
                text TEXT NOT NULL
            )
            """
        )
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS permissions (
                seq INTEGER PRIMARY KEY AUTOINCREMENT,
                id TEXT NOT NULL UNIQUE,
                owner TEXT NOT NULL,
                name TEXT NOT NULL,
                model TEXT NOT NULL,
                adapter TEXT NOT NULL,
                resources TEXT NOT NULL,
                description TEXT NOT NULL DEFAULT ''
            )
            """
        )
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS enforcers (
                id TEXT PRIMARY KEY,
                owner TEXT NOT NULL,
                name TEXT NOT NULL,
                model TEXT NOT NULL,
                adapter TEXT NOT NULL
            )
            """
        )
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS policy_rules (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                adapter TEXT NOT NULL,
                ptype TEXT NOT NULL,
                rule_values TEXT NOT NULL,
                permission_id TEXT
            )
            """
        )
        self._conn.commit()

    # ------------------------------------------------------------------
    # Helper methods
    def _execute(self, query: str, *params: Any) -> None:
        cur = self._conn.cursor()
        cur.execute(query, params)
        self._conn.commit()

    def _executemany(self, query: str, rows: list[tuple]) -> None:
        cur = self._conn.cursor()
        cur.executemany(query, rows)
        self._conn.commit()

    def _fetchone(self, query: str, *params: Any) -> sqlite3.Row | None:
        cur = self._conn.cursor()
        cur.execute(query, params)
        return cur.fetchone()

    def _fetchall(self, query: str, *params: Any) -> list[sqlite3.Row]:
        cur = self._conn.cursor()
        cur.execute(query, params)
        return cur.fetchall()

    @staticmethod
    def _permission(row: sqlite3.Row) -> Permission:
        return Permission(
            owner=row["owner"],
            name=row["name"],
            model=row["model"],
            adapter=row["adapter"],
            resources=json.loads(row["resources"]),
            description=row["description"],
        )

    # ------------------------------------------------------------------
    # Repository API
    async def get_permission(self, permission_id: str) -> Permission | None:
        row = await asyncio.to_thread(
            self._fetchone,
            "SELECT * FROM permissions WHERE id = ?",
            permission_id,
        )
        return self._permission(row) if row else None

    async def get_permissions_by_model(self, owner: str, name: str) -> list[Permission]:
        rows = await asyncio.to_thread(
            self._fetchall,
            "SELECT * FROM permissions WHERE model = ? ORDER BY seq",
            f"{owner}/{name}",
        )
        return [self._permission(r) for r in rows]

    async def get_permissions_by_resource(self, resource_id: str) -> list[Permission]:
        rows = await asyncio.to_thread(
            self._fetchall,
            """
            SELECT * FROM permissions
            WHERE EXISTS (
                SELECT 1 FROM json_each(permissions.resources) WHERE json_each.value = ?
            )
            ORDER BY seq
            """,
            resource_id,
        )
        return [self._permission(r) for r in rows]

    async def get_model(self, model_id: str) -> PolicyModel | None:
        row = await asyncio.to_thread(
            self._fetchone,
            "SELECT owner, name, text FROM policy_models WHERE id = ?",
            model_id,
        )
        if not row:
            return None
        return PolicyModel(owner=row["owner"], name=row["name"], text=row["text"])

    async def get_rules(self, adapter: str) -> list[PolicyRule]:
        rows = await asyncio.to_thread(
            self._fetchall,
            "SELECT adapter, ptype, rule_values, permission_id FROM policy_rules WHERE adapter = ? ORDER BY id",
            adapter,
        )
        return [
            PolicyRule(
                adapter=r["adapter"],
                ptype=r["ptype"],
                values=json.loads(r["rule_values"]),
                permission_id=r["permission_id"],
            )
            for r in rows
        ]

    async def get_enforcer(self, enforcer_id: str) -> EnforcerRecord | None:
        row = await asyncio.to_thread(
            self._fetchone,
            "SELECT owner, name, model, adapter FROM enforcers WHERE id = ?",
            enforcer_id,
        )
        if not row:
            return None
        return EnforcerRecord(
            owner=row["owner"], name=row["name"], model=row["model"], adapter=row["adapter"]
        )

    async def save_model(self, model: PolicyModel) -> None:
        await asyncio.to_thread(
            self._execute,
            "INSERT OR REPLACE INTO policy_models (id, owner, name, text) VALUES (?, ?, ?, ?)",
            model.id,
            model.owner,
            model.name,
            model.text,
        )

    async def save_permission(self, permission: Permission) -> None:
        await asyncio.to_thread(
            self._execute,
            """
            INSERT INTO permissions (id, owner, name, model, adapter, resources, description)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                model = excluded.model,
                adapter = excluded.adapter,
                resources = excluded.resources,
                description = excluded.description
            """,
            permission.id,
            permission.owner,
            permission.name,
            permission.model,
            permission.adapter,
            json.dumps(list(permission.resources)),
            permission.description,
        )

    async def save_enforcer(self, enforcer: EnforcerRecord) -> None:
        await asyncio.to_thread(
            self._execute,
            "INSERT OR REPLACE INTO enforcers (id, owner, name, model, adapter) VALUES (?, ?, ?, ?, ?)",
            enforcer.id,
            enforcer.owner,
            enforcer.name,
            enforcer.model,
            enforcer.adapter,
        )

    async def add_rules(self, rules: Iterable[PolicyRule]) -> None:
        rows = [
            (r.adapter, r.ptype, json.dumps(list(r.values)), r.permission_id)
            for r in rules
        ]
        if not rows:
            return
        await asyncio.to_thread(
            self._executemany,
            "INSERT INTO policy_rules (adapter, ptype, rule_values, permission_id) VALUES (?, ?, ?, ?)",
            rows,
        )
