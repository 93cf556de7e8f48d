"""
规格类型定义 - Specification Type Definitions

规格的数据种类、规范枚举、带标签的规格值联合类型以及规格声明。
Data kinds, canonical enums, the tagged specification value union and
specification declarations.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class DataKind(str, Enum):
    TEXT = "text"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ENUM = "enum"
    SOCKET = "socket"
    MEMORY_TYPE = "memory_type"
    CHIPSET = "chipset"
    FREQUENCY = "frequency"
    MEMORY_SIZE = "memory_size"
    POWER_CONSUMPTION = "power_consumption"


class SocketType(str, Enum):
    AM4 = "AM4"
    AM5 = "AM5"
    LGA1700 = "LGA1700"
    LGA1200 = "LGA1200"
    LGA1151 = "LGA1151"
    LGA2066 = "LGA2066"


class MemoryType(str, Enum):
    DDR4 = "DDR4"
    DDR5 = "DDR5"


class ChipsetType(str, Enum):
    # AMD
    B450 = "B450"
    B550 = "B550"
    X570 = "X570"
    B650 = "B650"
    B650E = "B650E"
    X670 = "X670"
    X670E = "X670E"
    # Intel
    Z490 = "Z490"
    B560 = "B560"
    Z590 = "Z590"
    H610 = "H610"
    B660 = "B660"
    H670 = "H670"
    Z690 = "Z690"
    B760 = "B760"
    H770 = "H770"
    Z790 = "Z790"


class FormFactor(str, Enum):
    ATX = "ATX"
    MICRO_ATX = "Micro ATX"
    MINI_ITX = "Mini ITX"
    E_ATX = "E-ATX"


class _ValueBase(BaseModel):
    """规格值基类 - Base of every normalized specification value.

    ``source_unit`` is the unit string as typed by the user and is kept for
    display only; it takes no part in equality.
    """

    model_config = ConfigDict(frozen=True)

    source_unit: str = ""

    def _identity(self) -> dict:
        return self.model_dump(exclude={"source_unit"})

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, _ValueBase):
            return NotImplemented
        return self._identity() == other._identity()

    def __hash__(self) -> int:
        return hash(tuple(sorted((k, str(v)) for k, v in self._identity().items())))


class TextValue(_ValueBase):
    kind: Literal["text"] = "text"
    value: str


class NumberValue(_ValueBase):
    kind: Literal["number"] = "number"
    value: float
    unit: str = ""


class BooleanValue(_ValueBase):
    kind: Literal["boolean"] = "boolean"
    value: bool


class EnumValue(_ValueBase):
    kind: Literal["enum"] = "enum"
    value: str


class SocketValue(_ValueBase):
    kind: Literal["socket"] = "socket"
    value: SocketType


class MemoryTypeValue(_ValueBase):
    kind: Literal["memory_type"] = "memory_type"
    value: MemoryType


class ChipsetValue(_ValueBase):
    kind: Literal["chipset"] = "chipset"
    value: ChipsetType


class FrequencyValue(_ValueBase):
    kind: Literal["frequency"] = "frequency"
    value: float
    unit: Literal["MHz"] = "MHz"


class MemorySizeValue(_ValueBase):
    kind: Literal["memory_size"] = "memory_size"
    value: float
    unit: Literal["GB"] = "GB"


class PowerValue(_ValueBase):
    kind: Literal["power_consumption"] = "power_consumption"
    value: float
    unit: Literal["W"] = "W"


SpecificationValue = Annotated[
    Union[
        TextValue,
        NumberValue,
        BooleanValue,
        EnumValue,
        SocketValue,
        MemoryTypeValue,
        ChipsetValue,
        FrequencyValue,
        MemorySizeValue,
        PowerValue,
    ],
    Field(discriminator="kind"),
]


FilterHint = Literal["checkbox", "dropdown", "range", "search"]


class SpecificationDeclaration(BaseModel):
    """规格声明 - Contract for one named attribute of a profile."""

    model_config = ConfigDict(frozen=True)

    name: str
    display_name: str = ""
    kind: DataKind
    required: bool = False
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    enum_values: List[str] = Field(default_factory=list)
    unit: str = ""
    pattern: Optional[str] = None
    compatibility_key: bool = False
    filter_hint: Optional[FilterHint] = None
    aliases: List[str] = Field(default_factory=list)

    def accepts_name(self, raw_name: str) -> bool:
        lowered = raw_name.strip().lower()
        if lowered == self.name.lower():
            return True
        return any(lowered == alias.lower() for alias in self.aliases)


class NormalizationResult(BaseModel):
    """规格校验结果 - Outcome of normalizing one raw value.

    Either ``value`` is set and ``errors`` is empty, or ``value`` is absent.
    """

    field: str
    raw_value: Any = None
    value: Optional[SpecificationValue] = None
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    suggestions: List[str] = Field(default_factory=list)
    missing: bool = False

    @property
    def is_valid(self) -> bool:
        return not self.errors
