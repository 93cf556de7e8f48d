"""Builder 模块：兼容性规则引擎、功耗预算与结果汇总"""

from .aggregate import aggregate_result
from .compatibility import CompatibilityEngine
from .power import PowerBudget, calculate_power, validate_supply

__all__ = [
    "aggregate_result",
    "CompatibilityEngine",
    "PowerBudget",
    "calculate_power",
    "validate_supply",
]
