from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Iterable, Mapping, Sequence

from .data.seed import DEFAULT_CATEGORY_TAGS, DEFAULT_RULES
from .schemas import CapabilityTag, CompatibilityRule


CATEGORY_TAGS_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS category_tags (
  slug TEXT NOT NULL,
  tag TEXT NOT NULL,
  position INTEGER NOT NULL DEFAULT 0,
  PRIMARY KEY (slug, tag)
)
"""

RULES_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS compatibility_rules (
  id TEXT PRIMARY KEY,
  name TEXT NOT NULL,
  description TEXT,
  kind TEXT NOT NULL,
  severity TEXT NOT NULL,
  primary_tag TEXT,
  secondary_tag TEXT,
  primary_category TEXT,
  secondary_category TEXT,
  primary_field TEXT NOT NULL,
  secondary_field TEXT NOT NULL,
  is_active INTEGER NOT NULL DEFAULT 1,
  updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
)
"""


def rebuild_rules_db(
    db_path: Path,
    category_tags: Mapping[str, Sequence[CapabilityTag]] = DEFAULT_CATEGORY_TAGS,
    rules: Iterable[CompatibilityRule] = DEFAULT_RULES,
) -> dict:
    """重建规则库：类目标签与兼容性规则

    重复的规则 id 只保留第一条。
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)

    seen_ids = set()
    unique_rules = []
    duplicates = 0
    for rule in rules:
        if rule.id in seen_ids:
            duplicates += 1
            continue
        seen_ids.add(rule.id)
        unique_rules.append(rule)

    with sqlite3.connect(db_path) as conn:
        conn.execute("DROP TABLE IF EXISTS category_tags")
        conn.execute("DROP TABLE IF EXISTS compatibility_rules")
        conn.execute(CATEGORY_TAGS_TABLE_SQL)
        conn.execute(RULES_TABLE_SQL)

        for slug, tags in category_tags.items():
            for position, tag in enumerate(dict.fromkeys(tags)):
                conn.execute(
                    "INSERT INTO category_tags (slug, tag, position) VALUES (?, ?, ?)",
                    (slug.strip().lower(), CapabilityTag(tag).value, position),
                )

        for rule in unique_rules:
            conn.execute(
                """
                INSERT INTO compatibility_rules (
                  id, name, description, kind, severity, primary_tag, secondary_tag,
                  primary_category, secondary_category, primary_field, secondary_field, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, CURRENT_TIMESTAMP)
                """,
                (
                    rule.id,
                    rule.name,
                    rule.description,
                    rule.kind.value,
                    rule.severity.value,
                    rule.primary_tag.value if rule.primary_tag else None,
                    rule.secondary_tag.value if rule.secondary_tag else None,
                    rule.primary_category,
                    rule.secondary_category,
                    rule.primary_field,
                    rule.secondary_field,
                ),
            )
        conn.commit()
        tags_total = conn.execute("SELECT COUNT(*) FROM category_tags").fetchone()[0]
        rules_total = conn.execute("SELECT COUNT(*) FROM compatibility_rules").fetchone()[0]

    return {
        "db": str(db_path),
        "categories": len(category_tags),
        "tags_total": int(tags_total),
        "rules_total": int(rules_total),
        "duplicates_skipped": duplicates,
    }
