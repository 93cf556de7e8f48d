"""Data 模块：规则仓库与种子数据"""

from .repository import InMemoryRuleRepository, RuleRepository, SQLiteRuleRepository
from .seed import DEFAULT_CATEGORY_TAGS, DEFAULT_RULES

__all__ = [
    "InMemoryRuleRepository",
    "RuleRepository",
    "SQLiteRuleRepository",
    "DEFAULT_CATEGORY_TAGS",
    "DEFAULT_RULES",
]
