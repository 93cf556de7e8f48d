"""规则仓库适配器（只读）"""

from __future__ import annotations

import asyncio
import sqlite3
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Protocol, Sequence

from ..schemas import CapabilityTag, CompatibilityRule, RuleKind

_KNOWN_TAGS = {t.value for t in CapabilityTag}


class RuleRepository(Protocol):
    async def get_tags_for_role(self, role_slug: str) -> List[CapabilityTag]: ...
    async def get_rules_by_kind(self, kind: RuleKind) -> List[CompatibilityRule]: ...


class InMemoryRuleRepository:
    """内存规则仓库，测试与嵌入式调用使用"""

    def __init__(
        self,
        category_tags: Mapping[str, Sequence[CapabilityTag]] | None = None,
        rules: Iterable[CompatibilityRule] = (),
    ):
        self._category_tags: Dict[str, List[CapabilityTag]] = {
            slug.lower(): list(tags) for slug, tags in (category_tags or {}).items()
        }
        self._rules = list(rules)

    async def get_tags_for_role(self, role_slug: str) -> List[CapabilityTag]:
        return list(self._category_tags.get(role_slug.strip().lower(), []))

    async def get_rules_by_kind(self, kind: RuleKind) -> List[CompatibilityRule]:
        return [r for r in self._rules if r.kind == kind]


class SQLiteRuleRepository:
    """SQLite 规则仓库

    Every read opens its own connection on a worker thread, so concurrent
    validations never share a connection.
    """

    def __init__(self, db_path: Path):
        self.db_path = db_path

    def _query(self, sql: str, params: tuple) -> List[sqlite3.Row]:
        if not self.db_path.exists():
            return []
        with sqlite3.connect(self.db_path) as conn:
            conn.row_factory = sqlite3.Row
            return conn.execute(sql, params).fetchall()

    def _tags_for_role(self, role_slug: str) -> List[CapabilityTag]:
        rows = self._query(
            """
            SELECT tag FROM category_tags
            WHERE slug = ?
            ORDER BY position
            """,
            (role_slug.strip().lower(),),
        )
        return [CapabilityTag(r["tag"]) for r in rows if r["tag"] in _KNOWN_TAGS]

    def _rules_by_kind(self, kind: RuleKind) -> List[CompatibilityRule]:
        rows = self._query(
            """
            SELECT id, name, description, kind, severity, primary_tag, secondary_tag,
                   primary_category, secondary_category, primary_field, secondary_field
            FROM compatibility_rules
            WHERE kind = ? AND is_active = 1
            ORDER BY id
            """,
            (kind.value,),
        )
        return [
            CompatibilityRule.model_validate({k: v for k, v in dict(r).items() if v not in ("", None)})
            for r in rows
        ]

    async def get_tags_for_role(self, role_slug: str) -> List[CapabilityTag]:
        return await asyncio.to_thread(self._tags_for_role, role_slug)

    async def get_rules_by_kind(self, kind: RuleKind) -> List[CompatibilityRule]:
        return await asyncio.to_thread(self._rules_by_kind, kind)
