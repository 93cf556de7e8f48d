"""
校验服务测试 - Validation Service Tests

仓库读取失败或超时时，服务退化为给出提示，而不是抛出异常。
"""

import asyncio

import pytest

from rigcheck.data.repository import InMemoryRuleRepository
from rigcheck.data.seed import DEFAULT_CATEGORY_TAGS, DEFAULT_RULES
from rigcheck.service import ValidationService


class SlowRepository(InMemoryRuleRepository):
    async def get_rules_by_kind(self, kind):
        await asyncio.sleep(1.0)
        return await super().get_rules_by_kind(kind)


class FailingRepository(InMemoryRuleRepository):
    async def get_tags_for_role(self, role_slug):
        raise ConnectionError("database is locked")


@pytest.fixture
def build(component):
    def _build():
        return {
            "processors": component("AMD Ryzen 7 7700X", socket="AM5", tdp=105, base_clock="4.5 GHz"),
            "motherboards": component(
                "MSI B650 Tomahawk",
                socket="AM5",
                chipset="B650",
                form_factor="ATX",
                memory_type="DDR5",
                memory_slots=4,
                max_memory="192 GB",
                pcie_x16_slots=1,
            ),
            "memory": component(
                "32GB DDR5-4800", memory_type="DDR5", memory_size="32 GB", memory_speed=4800, modules=2
            ),
            "cooling": component(
                "Tower cooler", cooler_type="Air", tdp_rating=220, supported_sockets="AM4, AM5", height=155
            ),
            "cases": component(
                "Mid tower",
                max_gpu_length=360,
                supported_form_factors="ATX, Micro ATX",
                max_cooler_height=165,
                supported_psu_form_factors="ATX",
                included_fans=3,
            ),
            "power-supplies": component(
                "650W Gold",
                wattage=650,
                efficiency_rating="80 PLUS Gold",
                form_factor="ATX",
                modular=True,
                pcie_connectors=2,
            ),
        }

    return _build


class TestValidateConfiguration:
    def test_compatible_build_is_valid(self, service, build):
        result = service.validate_configuration_sync(build())

        assert result.is_valid
        assert result.issues == []
        assert result.evaluation_mode == "tagged"
        # 105 + 2 x 5 + 5 + 30 + 10
        assert result.actual_power_consumption == 160
        assert result.recommended_psu_power == 192

    def test_same_input_same_output(self, service, build):
        first = service.validate_configuration_sync(build())
        second = service.validate_configuration_sync(build())

        assert first == second
        assert first.model_dump_json() == second.model_dump_json()

    def test_role_order_does_not_matter(self, service, build):
        configuration = build()
        reversed_configuration = dict(reversed(list(configuration.items())))

        assert service.validate_configuration_sync(configuration) == service.validate_configuration_sync(
            reversed_configuration
        )

    def test_errors_precede_warnings(self, service, build, component):
        configuration = build()
        configuration["processors"] = component("CPU", socket="AM4", tdp=65)

        result = service.validate_configuration_sync(configuration)

        assert not result.is_valid
        assert all(i.kind == "error" for i in result.issues)
        assert all(w.kind == "warning" for w in result.warnings)

    def test_warnings_never_block(self, service, component):
        result = service.validate_configuration_sync(
            {"processors": component("CPU", socket="AM5", tdp=65)}
        )

        assert result.warnings
        assert result.is_valid

    def test_concurrent_validations_are_independent(self, service, build, component):
        broken = build()
        broken["motherboards"] = component("Board", socket="AM4", chipset="B550")

        async def run_both():
            return await asyncio.gather(
                service.validate_configuration(build()),
                service.validate_configuration(broken),
            )

        good, bad = asyncio.run(run_both())

        assert good.is_valid
        assert not bad.is_valid


class TestRepositoryFailures:
    def test_slow_repository_yields_single_warning(self, registry, build):
        service = ValidationService(
            SlowRepository(DEFAULT_CATEGORY_TAGS, DEFAULT_RULES),
            registry,
            repository_timeout_seconds=0.05,
        )

        result = service.validate_configuration_sync(build())

        unavailable = [w for w in result.warnings if w.message == "Compatibility rules unavailable"]
        assert len(unavailable) == 1
        assert "timed out" in unavailable[0].details
        assert result.is_valid

    def test_failed_tag_reads_fall_back_to_legacy(self, registry, build):
        service = ValidationService(FailingRepository(DEFAULT_CATEGORY_TAGS, DEFAULT_RULES), registry)

        result = service.validate_configuration_sync(build())

        unavailable = [w for w in result.warnings if w.message == "Compatibility rules unavailable"]
        assert len(unavailable) == 1
        assert "database is locked" in unavailable[0].details
        assert result.evaluation_mode == "legacy"
        assert result.is_valid

    def test_evaluation_failure_returns_partial_result(self, service, build, monkeypatch):
        def explode(*args, **kwargs):
            raise RuntimeError("boom")

        monkeypatch.setattr(service.engine, "evaluate", explode)

        result = service.validate_configuration_sync(build())

        assert result.is_valid
        assert "Validation could not complete" in [w.message for w in result.warnings]
        # 105 + 2 x 5 + 5 + 30 baseline + 10 case fans, plus 20% headroom
        assert result.actual_power_consumption == 160
        assert result.recommended_psu_power == 192

    def test_power_failure_keeps_engine_findings(self, service, build, component, monkeypatch):
        def explode(*args, **kwargs):
            raise RuntimeError("boom")

        monkeypatch.setattr("rigcheck.service.calculate_power", explode)
        config = build()
        config["processors"] = component("Intel Core i5-13600K", socket="LGA1700", tdp=125)

        result = service.validate_configuration_sync(config)

        assert not result.is_valid
        assert "Power budget could not complete" in [w.message for w in result.warnings]
        assert result.recommended_psu_power == 0


class TestConstruction:
    def test_negative_headroom_rejected(self, repository, registry):
        with pytest.raises(ValueError):
            ValidationService(repository, registry, headroom_percent=-1)

    def test_non_positive_timeout_rejected(self, repository, registry):
        with pytest.raises(ValueError):
            ValidationService(repository, registry, repository_timeout_seconds=0)

    def test_headroom_applies_to_component_sum(self, repository, registry, build):
        service = ValidationService(repository, registry, headroom_percent=50)
        assert service.validate_configuration_sync(build()).recommended_psu_power == 240


class TestNormalizeField:
    def test_alias_resolves_against_profile(self, service):
        result = service.normalize_field("3.6 GHz", "cpu", "base_frequency")

        assert result.is_valid
        assert result.field == "base_clock"
        assert result.value.value == 3600

    def test_context_enables_cross_field_checks(self, service):
        result = service.normalize_field("B650", "motherboard", "chipset", {"socket": "LGA1700"})

        assert not result.is_valid
        assert "LGA1700" in result.errors[0]

    def test_unknown_profile_suggests_known_ones(self, service):
        result = service.normalize_field("AM5", "toaster", "socket")

        assert not result.is_valid
        assert "cpu" in result.suggestions

    def test_undeclared_field_is_inferred(self, service):
        result = service.normalize_field("12", "cpu", "warranty_months")

        assert result.is_valid
        assert result.value.value == 12

    def test_detect_profiles_delegates_to_registry(self, service):
        assert service.detect_profiles("Graphics Cards")[0].profile_id == "gpu"
