"""
组件档案 - Component Profiles

每种组件档案定义能力标签、必填/可选规格声明以及用于自动识别类目的名称模式与关键词。
Each profile defines capability tags, required/optional specification
declarations and the name patterns and keywords used to detect it from an
arbitrary category name.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Tuple

from pydantic import BaseModel, ConfigDict, Field

from ..schemas import CapabilityTag
from ..specs.types import DataKind, FormFactor, SpecificationDeclaration


class ComponentProfile(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    display_name: str
    description: str = ""
    tags: List[CapabilityTag] = Field(default_factory=list)
    required_specifications: List[SpecificationDeclaration] = Field(default_factory=list)
    optional_specifications: List[SpecificationDeclaration] = Field(default_factory=list)
    category_patterns: List[str] = Field(default_factory=list)
    priority: int = 0

    def declarations(self) -> List[SpecificationDeclaration]:
        return [*self.required_specifications, *self.optional_specifications]


@dataclass(frozen=True)
class DetectionRule:
    """类目识别规则 - Keyword heuristics layered on top of a profile's name patterns."""

    profile_id: str
    keywords: Tuple[str, ...]
    exclude_patterns: Tuple[str, ...] = ()
    confidence: float = 0.9


# 通用规格声明 - Standard declarations shared by several profiles
STANDARD_SPECS: Dict[str, SpecificationDeclaration] = {
    "socket": SpecificationDeclaration(
        name="socket",
        display_name="CPU Socket",
        kind=DataKind.SOCKET,
        required=True,
        compatibility_key=True,
        filter_hint="dropdown",
        aliases=["connector_type", "socket_type", "cpu_socket"],
    ),
    "tdp": SpecificationDeclaration(
        name="tdp",
        display_name="TDP",
        kind=DataKind.POWER_CONSUMPTION,
        required=True,
        min_value=1,
        max_value=1000,
        unit="W",
        compatibility_key=True,
        filter_hint="range",
        aliases=["tdp_w", "thermal_design_power"],
    ),
    "power_consumption": SpecificationDeclaration(
        name="power_consumption",
        display_name="Power Consumption",
        kind=DataKind.POWER_CONSUMPTION,
        required=True,
        min_value=1,
        max_value=2000,
        unit="W",
        compatibility_key=True,
        filter_hint="range",
        aliases=["power_draw", "board_power", "tgp"],
    ),
    "memory_type": SpecificationDeclaration(
        name="memory_type",
        display_name="Memory Type",
        kind=DataKind.MEMORY_TYPE,
        required=True,
        compatibility_key=True,
        filter_hint="dropdown",
        aliases=["ram_type", "ddr_type"],
    ),
    "memory_size": SpecificationDeclaration(
        name="memory_size",
        display_name="Memory Size",
        kind=DataKind.MEMORY_SIZE,
        required=True,
        min_value=1,
        unit="GB",
        compatibility_key=True,
        filter_hint="range",
        aliases=["capacity", "total_capacity", "vram"],
    ),
    "base_clock": SpecificationDeclaration(
        name="base_clock",
        display_name="Base Clock",
        kind=DataKind.FREQUENCY,
        required=True,
        min_value=100,
        unit="MHz",
        filter_hint="range",
        aliases=["base_frequency"],
    ),
    "boost_clock": SpecificationDeclaration(
        name="boost_clock",
        display_name="Boost Clock",
        kind=DataKind.FREQUENCY,
        min_value=100,
        unit="MHz",
        filter_hint="range",
        aliases=["boost_frequency", "max_frequency"],
    ),
    "form_factor": SpecificationDeclaration(
        name="form_factor",
        display_name="Form Factor",
        kind=DataKind.ENUM,
        required=True,
        enum_values=[f.value for f in FormFactor],
        compatibility_key=True,
        filter_hint="dropdown",
    ),
    "chipset": SpecificationDeclaration(
        name="chipset",
        display_name="Chipset",
        kind=DataKind.CHIPSET,
        required=True,
        compatibility_key=True,
        filter_hint="dropdown",
    ),
}


def _number(
    name: str,
    display_name: str,
    *,
    required: bool = False,
    min_value: float | None = None,
    max_value: float | None = None,
    unit: str = "",
    compatibility_key: bool = False,
    aliases: List[str] | None = None,
) -> SpecificationDeclaration:
    return SpecificationDeclaration(
        name=name,
        display_name=display_name,
        kind=DataKind.NUMBER,
        required=required,
        min_value=min_value,
        max_value=max_value,
        unit=unit,
        compatibility_key=compatibility_key,
        filter_hint="range",
        aliases=aliases or [],
    )


def _flag(name: str, display_name: str) -> SpecificationDeclaration:
    return SpecificationDeclaration(
        name=name, display_name=display_name, kind=DataKind.BOOLEAN, filter_hint="checkbox"
    )


CPU_PROFILE = ComponentProfile(
    id="cpu",
    name="CPU",
    display_name="Processor (CPU)",
    description="Central processing unit",
    tags=[
        CapabilityTag.POWER_CONSUMER,
        CapabilityTag.REQUIRES_SOCKET,
        CapabilityTag.GENERATES_HEAT,
        CapabilityTag.REQUIRES_COOLING,
        CapabilityTag.OVERCLOCKABLE,
    ],
    required_specifications=[
        STANDARD_SPECS["socket"],
        STANDARD_SPECS["tdp"],
        STANDARD_SPECS["base_clock"],
        _number("cores", "Cores", required=True, min_value=1, max_value=64),
        _number("threads", "Threads", required=True, min_value=1, max_value=128),
    ],
    optional_specifications=[
        STANDARD_SPECS["boost_clock"],
        _number("cache_l3", "L3 Cache", min_value=1, unit="MB", aliases=["l3_cache"]),
        _flag("integrated_graphics", "Integrated Graphics"),
        SpecificationDeclaration(
            name="generation",
            display_name="Generation",
            kind=DataKind.TEXT,
            compatibility_key=True,
            filter_hint="dropdown",
            aliases=["cpu_generation", "architecture"],
        ),
    ],
    category_patterns=[r"cpu.*", r"processor.*", r".*处理器.*"],
    priority=10,
)

GPU_PROFILE = ComponentProfile(
    id="gpu",
    name="GPU",
    display_name="Graphics Card (GPU)",
    description="Graphics processing unit",
    tags=[
        CapabilityTag.POWER_CONSUMER,
        CapabilityTag.REQUIRES_SLOT,
        CapabilityTag.GRAPHICS_ACCELERATED,
        CapabilityTag.GENERATES_HEAT,
        CapabilityTag.REQUIRES_COOLING,
        CapabilityTag.OVERCLOCKABLE,
    ],
    required_specifications=[
        STANDARD_SPECS["power_consumption"],
        STANDARD_SPECS["memory_size"],
    ],
    optional_specifications=[
        SpecificationDeclaration(
            name="recommended_psu_power",
            display_name="Recommended PSU",
            kind=DataKind.POWER_CONSUMPTION,
            min_value=200,
            max_value=2000,
            unit="W",
            compatibility_key=True,
            filter_hint="range",
            aliases=["recommended_psu", "min_psu_wattage", "recommended_psu_wattage"],
        ),
        _number(
            "length",
            "Card Length",
            min_value=50,
            max_value=600,
            unit="mm",
            compatibility_key=True,
            aliases=["length_mm", "gpu_length"],
        ),
        STANDARD_SPECS["boost_clock"],
    ],
    category_patterns=[r"gpu.*", r"graphics.*card.*", r"video.*card.*", r".*显卡.*"],
    priority=10,
)

MOTHERBOARD_PROFILE = ComponentProfile(
    id="motherboard",
    name="MOTHERBOARD",
    display_name="Motherboard",
    description="Main circuit board that connects all components",
    tags=[
        CapabilityTag.POWER_CONSUMER,
        CapabilityTag.HAS_SOCKET,
        CapabilityTag.HAS_SLOTS,
        CapabilityTag.HAS_PORTS,
        CapabilityTag.HAS_FORM_FACTOR,
        CapabilityTag.REQUIRES_FORM_FACTOR,
    ],
    required_specifications=[
        STANDARD_SPECS["socket"],
        STANDARD_SPECS["chipset"],
        STANDARD_SPECS["form_factor"],
        STANDARD_SPECS["memory_type"],
        _number(
            "memory_slots",
            "Memory Slots",
            required=True,
            min_value=1,
            max_value=8,
            compatibility_key=True,
            aliases=["dimm_slots", "ram_slots"],
        ),
        SpecificationDeclaration(
            name="max_memory",
            display_name="Maximum Memory",
            kind=DataKind.MEMORY_SIZE,
            required=True,
            min_value=8,
            unit="GB",
            compatibility_key=True,
            filter_hint="range",
            aliases=["max_memory_size", "memory_max"],
        ),
    ],
    optional_specifications=[
        _number(
            "pcie_x16_slots",
            "PCIe x16 Slots",
            min_value=0,
            max_value=8,
            compatibility_key=True,
            aliases=["pcie_x16", "x16_slots"],
        ),
        _flag("wifi_support", "WiFi Support"),
    ],
    category_patterns=[r"motherboard.*", r"mainboard.*", r".*主板.*"],
    priority=10,
)

RAM_PROFILE = ComponentProfile(
    id="ram",
    name="RAM",
    display_name="Memory (RAM)",
    description="System memory",
    tags=[
        CapabilityTag.POWER_CONSUMER,
        CapabilityTag.REQUIRES_SLOT,
        CapabilityTag.VOLATILE_MEMORY,
        CapabilityTag.OVERCLOCKABLE,
    ],
    required_specifications=[
        STANDARD_SPECS["memory_type"],
        STANDARD_SPECS["memory_size"],
        SpecificationDeclaration(
            name="memory_speed",
            display_name="Memory Speed",
            kind=DataKind.FREQUENCY,
            required=True,
            min_value=1600,
            max_value=8000,
            unit="MHz",
            compatibility_key=True,
            filter_hint="range",
            aliases=["speed", "frequency"],
        ),
    ],
    optional_specifications=[
        _number(
            "modules",
            "Modules",
            min_value=1,
            max_value=8,
            compatibility_key=True,
            aliases=["module_count", "sticks"],
        ),
        _number("cas_latency", "CAS Latency", min_value=10, max_value=40, aliases=["cl"]),
        _flag("rgb_lighting", "RGB Lighting"),
    ],
    category_patterns=[r"ram.*", r"memory.*", r"ddr.*", r".*内存.*"],
    priority=10,
)

STORAGE_PROFILE = ComponentProfile(
    id="storage",
    name="STORAGE",
    display_name="Storage",
    description="Persistent storage drive",
    tags=[
        CapabilityTag.POWER_CONSUMER,
        CapabilityTag.PERSISTENT_STORAGE,
        CapabilityTag.REQUIRES_PORTS,
    ],
    required_specifications=[
        SpecificationDeclaration(
            name="storage_type",
            display_name="Storage Type",
            kind=DataKind.ENUM,
            required=True,
            enum_values=["SSD", "HDD", "NVMe SSD", "M.2 SSD"],
            filter_hint="dropdown",
            aliases=["drive_type"],
        ),
        SpecificationDeclaration(
            name="capacity",
            display_name="Capacity",
            kind=DataKind.MEMORY_SIZE,
            required=True,
            min_value=1,
            unit="GB",
            filter_hint="range",
            aliases=["storage_size", "size"],
        ),
        SpecificationDeclaration(
            name="interface",
            display_name="Interface",
            kind=DataKind.ENUM,
            required=True,
            enum_values=["SATA III", "NVMe", "M.2", "PCIe"],
            compatibility_key=True,
            filter_hint="dropdown",
            aliases=["storage_interface"],
        ),
    ],
    optional_specifications=[
        _number("read_speed", "Read Speed", min_value=50, max_value=15000, unit="MB/s"),
        _number("write_speed", "Write Speed", min_value=50, max_value=15000, unit="MB/s"),
    ],
    category_patterns=[r"storage.*", r"ssd.*", r"hdd.*", r".*硬盘.*", r".*固态.*"],
    priority=10,
)

PSU_PROFILE = ComponentProfile(
    id="psu",
    name="PSU",
    display_name="Power Supply (PSU)",
    description="Power supply unit",
    tags=[
        CapabilityTag.POWER_PROVIDER,
        CapabilityTag.HAS_FORM_FACTOR,
        CapabilityTag.MODULAR,
    ],
    required_specifications=[
        SpecificationDeclaration(
            name="wattage",
            display_name="Wattage",
            kind=DataKind.POWER_CONSUMPTION,
            required=True,
            min_value=200,
            max_value=2000,
            unit="W",
            compatibility_key=True,
            filter_hint="range",
            aliases=["power", "watt", "rated_power"],
        ),
        SpecificationDeclaration(
            name="efficiency_rating",
            display_name="Efficiency Rating",
            kind=DataKind.ENUM,
            required=True,
            enum_values=[
                "80 PLUS",
                "80 PLUS Bronze",
                "80 PLUS Silver",
                "80 PLUS Gold",
                "80 PLUS Platinum",
                "80 PLUS Titanium",
            ],
            filter_hint="dropdown",
            aliases=["efficiency", "certification"],
        ),
        SpecificationDeclaration(
            name="form_factor",
            display_name="PSU Form Factor",
            kind=DataKind.ENUM,
            required=True,
            enum_values=["ATX", "SFX", "SFX-L", "TFX"],
            compatibility_key=True,
            filter_hint="dropdown",
            aliases=["psu_form_factor"],
        ),
    ],
    optional_specifications=[
        _flag("modular", "Modular Cables"),
        _number(
            "pcie_connectors",
            "PCIe Power Connectors",
            min_value=0,
            max_value=12,
            compatibility_key=True,
            aliases=["pcie_power_connectors", "pcie_cables"],
        ),
    ],
    category_patterns=[r"psu.*", r"power.*suppl.*", r".*电源.*"],
    priority=10,
)

CASE_PROFILE = ComponentProfile(
    id="case",
    name="CASE",
    display_name="Case",
    description="Chassis that houses every other component",
    tags=[
        CapabilityTag.HOUSES_COMPONENTS,
        CapabilityTag.HAS_FORM_FACTOR,
    ],
    required_specifications=[
        _number(
            "max_gpu_length",
            "Max GPU Length",
            required=True,
            min_value=100,
            max_value=600,
            unit="mm",
            compatibility_key=True,
            aliases=["gpu_clearance", "max_gpu_length_mm"],
        ),
        SpecificationDeclaration(
            name="supported_form_factors",
            display_name="Motherboard Support",
            kind=DataKind.TEXT,
            required=True,
            compatibility_key=True,
            filter_hint="search",
            aliases=["motherboard_support", "form_factors"],
        ),
    ],
    optional_specifications=[
        _number(
            "max_cooler_height",
            "Max Cooler Height",
            min_value=30,
            max_value=250,
            unit="mm",
            compatibility_key=True,
            aliases=["cooler_clearance", "max_cpu_cooler_height"],
        ),
        SpecificationDeclaration(
            name="supported_psu_form_factors",
            display_name="PSU Support",
            kind=DataKind.TEXT,
            compatibility_key=True,
            filter_hint="search",
            aliases=["psu_support"],
        ),
        _number("included_fans", "Included Fans", min_value=0, max_value=12, aliases=["fans"]),
    ],
    category_patterns=[r"case.*", r"chassis.*", r".*机箱.*"],
    priority=9,
)

COOLER_PROFILE = ComponentProfile(
    id="cooler",
    name="COOLER",
    display_name="CPU Cooler",
    description="Air or liquid CPU cooler",
    tags=[
        CapabilityTag.PROVIDES_COOLING,
        CapabilityTag.POWER_CONSUMER,
    ],
    required_specifications=[
        SpecificationDeclaration(
            name="cooler_type",
            display_name="Cooler Type",
            kind=DataKind.ENUM,
            required=True,
            enum_values=["Air", "Liquid"],
            compatibility_key=True,
            filter_hint="dropdown",
            aliases=["type", "cooling_type"],
        ),
        SpecificationDeclaration(
            name="tdp_rating",
            display_name="TDP Rating",
            kind=DataKind.POWER_CONSUMPTION,
            required=True,
            min_value=30,
            max_value=500,
            unit="W",
            compatibility_key=True,
            filter_hint="range",
            aliases=["max_tdp", "tdp_capacity"],
        ),
        SpecificationDeclaration(
            name="supported_sockets",
            display_name="Supported Sockets",
            kind=DataKind.TEXT,
            required=True,
            compatibility_key=True,
            filter_hint="search",
            aliases=["socket_support", "compatible_sockets"],
        ),
    ],
    optional_specifications=[
        _number(
            "height",
            "Height",
            min_value=20,
            max_value=250,
            unit="mm",
            compatibility_key=True,
            aliases=["cooler_height", "height_mm"],
        ),
        _number("radiator_size", "Radiator Size", min_value=120, max_value=480, unit="mm"),
    ],
    category_patterns=[r"cool.*", r".*cooler.*", r".*散热.*"],
    priority=9,
)


DEFAULT_PROFILES: Tuple[ComponentProfile, ...] = (
    CPU_PROFILE,
    GPU_PROFILE,
    MOTHERBOARD_PROFILE,
    RAM_PROFILE,
    STORAGE_PROFILE,
    PSU_PROFILE,
    CASE_PROFILE,
    COOLER_PROFILE,
)

DEFAULT_DETECTION_RULES: Tuple[DetectionRule, ...] = (
    DetectionRule("cpu", ("cpu", "processor", "intel", "ryzen", "core", "处理器")),
    DetectionRule("gpu", ("gpu", "graphics", "nvidia", "radeon", "geforce", "rtx", "显卡")),
    DetectionRule("motherboard", ("motherboard", "mainboard", "chipset", "主板")),
    DetectionRule(
        "ram",
        ("ram", "memory", "ddr4", "ddr5", "dimm", "内存"),
        exclude_patterns=(r".*(flash|card|storage).*",),
    ),
    DetectionRule("storage", ("storage", "ssd", "hdd", "nvme", "硬盘", "固态")),
    DetectionRule("psu", ("psu", "power", "supply", "电源")),
    DetectionRule(
        "case",
        ("case", "chassis", "tower", "机箱"),
        exclude_patterns=(r".*(fan|cable).*",),
        confidence=0.85,
    ),
    DetectionRule("cooler", ("cooler", "cooling", "aio", "heatsink", "散热"), confidence=0.85),
)

# 身份标签 - the tag that identifies which role a tagged component plays
ROLE_IDENTITY_TAGS: Tuple[Tuple[CapabilityTag, str], ...] = (
    (CapabilityTag.REQUIRES_SOCKET, "cpu"),
    (CapabilityTag.HAS_SOCKET, "motherboard"),
    (CapabilityTag.GRAPHICS_ACCELERATED, "gpu"),
    (CapabilityTag.VOLATILE_MEMORY, "ram"),
    (CapabilityTag.PERSISTENT_STORAGE, "storage"),
    (CapabilityTag.POWER_PROVIDER, "psu"),
    (CapabilityTag.PROVIDES_COOLING, "cooler"),
    (CapabilityTag.HOUSES_COMPONENTS, "case"),
)

# 旧版固定槽位 - category slugs understood when no role carries tags
LEGACY_SLOTS: Dict[str, str] = {
    "processors": "cpu",
    "processor": "cpu",
    "cpu": "cpu",
    "motherboards": "motherboard",
    "motherboard": "motherboard",
    "memory": "ram",
    "ram": "ram",
    "graphics-cards": "gpu",
    "graphics": "gpu",
    "gpu": "gpu",
    "power-supplies": "psu",
    "power-supply": "psu",
    "psu": "psu",
    "cases": "case",
    "case": "case",
    "cooling": "cooler",
    "coolers": "cooler",
    "cooler": "cooler",
    "storage": "storage",
}
