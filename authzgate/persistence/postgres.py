"""PostgreSQL implementation of the policy repository."""

from __future__ import annotations

from typing import Iterable

import asyncpg

from .models import EnforcerRecord, Permission, PolicyModel, PolicyRule
from .repository import PolicyRepository


class PostgresPolicyRepository(PolicyRepository):
    """Persist policy records using PostgreSQL."""

    def __init__(self, dsn: str):
        self._dsn = dsn
        self._initialized = False

    async def _connect(self) -> asyncpg.Connection:
        conn = await asyncpg.connect(self._dsn)
        if not self._initialized:
            await self._ensure_schema(conn)
            self._initialized = True
        return conn

    async def _ensure_schema(self, conn: asyncpg.Connection) -> None:
        await conn.execute(
            """
            CREATE TABLE IF NOT EXISTS policy_models (
                id TEXT PRIMARY KEY,
                owner TEXT NOT NULL,
                name TEXT NOT NULL,
                text TEXT NOT NULL
            )
            """
        )
        await conn.execute(
            """
            CREATE TABLE IF NOT EXISTS permissions (
                seq BIGSERIAL,
                id TEXT PRIMARY KEY,
                owner TEXT NOT NULL,
                name TEXT NOT NULL,
                model TEXT NOT NULL,
                adapter TEXT NOT NULL,
                resources TEXT[] NOT NULL DEFAULT '{}',
                description TEXT NOT NULL DEFAULT ''
            )
            """
        )
        await conn.execute(
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
        await conn.execute(
            """
            CREATE TABLE IF NOT EXISTS policy_rules (
                id BIGSERIAL PRIMARY KEY,
                adapter TEXT NOT NULL,
                ptype TEXT NOT NULL,
                rule_values TEXT[] NOT NULL,
                permission_id TEXT
            )
            """
        )

    @staticmethod
    def _permission(row: asyncpg.Record) -> Permission:
        return Permission(
            owner=row["owner"],
            name=row["name"],
            model=row["model"],
            adapter=row["adapter"],
            resources=tuple(row["resources"]),
            description=row["description"],
        )

    # ------------------------------------------------------------------
    async def get_permission(self, permission_id: str) -> Permission | None:
        conn = await self._connect()
        try:
            row = await conn.fetchrow(
                "SELECT * FROM permissions WHERE id = $1", permission_id
            )
        finally:
            await conn.close()
        return self._permission(row) if row else None

    async def get_permissions_by_model(self, owner: str, name: str) -> list[Permission]:
        conn = await self._connect()
        try:
            rows = await conn.fetch(
                "SELECT * FROM permissions WHERE model = $1 ORDER BY seq",
                f"{owner}/{name}",
            )
        finally:
            await conn.close()
        return [self._permission(r) for r in rows]

    async def get_permissions_by_resource(self, resource_id: str) -> list[Permission]:
        conn = await self._connect()
        try:
            rows = await conn.fetch(
                "SELECT * FROM permissions WHERE $1 = ANY(resources) ORDER BY seq",
                resource_id,
            )
        finally:
            await conn.close()
        return [self._permission(r) for r in rows]

    async def get_model(self, model_id: str) -> PolicyModel | None:
        conn = await self._connect()
        try:
            row = await conn.fetchrow(
                "SELECT owner, name, text FROM policy_models WHERE id = $1", model_id
            )
        finally:
            await conn.close()
        if not row:
            return None
        return PolicyModel(owner=row["owner"], name=row["name"], text=row["text"])

    async def get_rules(self, adapter: str) -> list[PolicyRule]:
        conn = await self._connect()
        try:
            rows = await conn.fetch(
                "SELECT adapter, ptype, rule_values, permission_id FROM policy_rules WHERE adapter = $1 ORDER BY id",
                adapter,
            )
        finally:
            await conn.close()
        return [
            PolicyRule(
                adapter=r["adapter"],
                ptype=r["ptype"],
                values=tuple(r["rule_values"]),
                permission_id=r["permission_id"],
            )
            for r in rows
        ]

    async def get_enforcer(self, enforcer_id: str) -> EnforcerRecord | None:
        conn = await self._connect()
        try:
            row = await conn.fetchrow(
                "SELECT owner, name, model, adapter FROM enforcers WHERE id = $1",
                enforcer_id,
            )
        finally:
            await conn.close()
        if not row:
            return None
        return EnforcerRecord(
            owner=row["owner"], name=row["name"], model=row["model"], adapter=row["adapter"]
        )

    async def save_model(self, model: PolicyModel) -> None:
        conn = await self._connect()
        try:
            await conn.execute(
                """
                INSERT INTO policy_models (id, owner, name, text) VALUES ($1, $2, $3, $4)
                ON CONFLICT (id) DO UPDATE SET text = EXCLUDED.text
                """,
                model.id,
                model.owner,
                model.name,
                model.text,
            )
        finally:
            await conn.close()

    async def save_permission(self, permission: Permission) -> None:
        conn = await self._connect()
        try:
            await conn.execute(
                """
                INSERT INTO permissions (id, owner, name, model, adapter, resources, description)
                VALUES ($1, $2, $3, $4, $5, $6, $7)
                ON CONFLICT (id) DO UPDATE SET
                    model = EXCLUDED.model,
                    adapter = EXCLUDED.adapter,
                    resources = EXCLUDED.resources,
                    description = EXCLUDED.description
                """,
                permission.id,
                permission.owner,
                permission.name,
                permission.model,
                permission.adapter,
                list(permission.resources),
                permission.description,
            )
        finally:
            await conn.close()

    async def save_enforcer(self, enforcer: EnforcerRecord) -> None:
        conn = await self._connect()
        try:
            await conn.execute(
                """
                INSERT INTO enforcers (id, owner, name, model, adapter) VALUES ($1, $2, $3, $4, $5)
                ON CONFLICT (id) DO UPDATE SET model = EXCLUDED.model, adapter = EXCLUDED.adapter
                """,
                enforcer.id,
                enforcer.owner,
                enforcer.name,
                enforcer.model,
                enforcer.adapter,
            )
        finally:
            await conn.close()

    async def add_rules(self, rules: Iterable[PolicyRule]) -> None:
        rows = [(r.adapter, r.ptype, list(r.values), r.permission_id) for r in rules]
        if not rows:
            return
        conn = await self._connect()
        try:
            await conn.executemany(
                "INSERT INTO policy_rules (adapter, ptype, rule_values, permission_id) VALUES ($1, $2, $3, $4)",
                rows,
            )
        finally:
            await conn.close()
