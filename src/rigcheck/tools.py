from __future__ import annotations

from typing import Dict, List

from langchain_core.tools import tool
from pydantic import BaseModel, Field

from .schemas import ComponentInstance, RawValue
from .service import ValidationService


class ValidateConfigurationInput(BaseModel):
    configuration: Dict[str, ComponentInstance] = Field(
        description="Role slug such as processors or graphics-cards mapped to a component "
        "with id, title and raw specifications"
    )


class NormalizeSpecificationInput(BaseModel):
    raw_value: RawValue = Field(description="Value as typed by the user, e.g. '3.2 GHz'")
    profile_id: str = Field(description="Profile id such as cpu, gpu, motherboard, ram, psu")
    field: str = Field(description="Specification name or alias, e.g. socket, base_clock")
    context: Dict[str, RawValue] = Field(
        default_factory=dict, description="Sibling raw values on the same component"
    )


class DetectProfilesInput(BaseModel):
    category_name: str = Field(description="Category name to classify, e.g. 'Graphics Cards'")
    description: str = ""


class Toolset:
    def __init__(self, service: ValidationService):
        self.service = service

    def register(self):
        service = self.service

        @tool("validate_configuration", args_schema=ValidateConfigurationInput)
        def validate_configuration(configuration: Dict[str, ComponentInstance]) -> dict:
            """Validate a PC configuration and return blocking issues, warnings and power figures."""
            components = {
                role: c if isinstance(c, ComponentInstance) else ComponentInstance.model_validate(c)
                for role, c in configuration.items()
            }
            return service.validate_configuration_sync(components).model_dump()

        @tool("normalize_specification", args_schema=NormalizeSpecificationInput)
        def normalize_specification(
            raw_value: RawValue,
            profile_id: str,
            field: str,
            context: Dict[str, RawValue] | None = None,
        ) -> dict:
            """Parse one raw specification value into its canonical typed form."""
            result = service.normalize_field(raw_value, profile_id, field, context or {})
            payload = result.model_dump()
            payload["is_valid"] = result.is_valid
            return payload

        @tool("detect_profiles", args_schema=DetectProfilesInput)
        def detect_profiles(category_name: str, description: str = "") -> List[dict]:
            """Guess which component profiles a category name refers to, best match first."""
            return [m.model_dump() for m in service.detect_profiles(category_name, description)]

        return {
            "validate_configuration": validate_configuration,
            "normalize_specification": normalize_specification,
            "detect_profiles": detect_profiles,
        }
