"""Specs 模块：规格类型、参考数据与归一化"""

from .normalizer import ComponentNormalization, infer_declaration, normalize, normalize_component
from .types import (
    DataKind,
    FormFactor,
    MemoryType,
    NormalizationResult,
    SocketType,
    ChipsetType,
    SpecificationDeclaration,
    SpecificationValue,
)

__all__ = [
    "ComponentNormalization",
    "infer_declaration",
    "normalize",
    "normalize_component",
    "DataKind",
    "FormFactor",
    "MemoryType",
    "NormalizationResult",
    "SocketType",
    "ChipsetType",
    "SpecificationDeclaration",
    "SpecificationValue",
]
