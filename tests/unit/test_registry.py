"""VendorRegistry 단위 테스트 (패키지 리소스 YAML 사용)"""

import pytest

from partsearch.core.config import VendorConfig
from partsearch.core.exceptions import UnknownVendorException, VendorConfigurationException
from partsearch.engine.registry import VendorRegistry
from partsearch.engine.vendor import SearchKind
from tests.fakes import FakeClassifier


@pytest.fixture
def registry(fake_session_factory):
    _, factory = fake_session_factory()
    return VendorRegistry.from_resources(classifier_factory=lambda cfg: None, session_factory=factory)


def test_resources_define_three_vendors(registry):
    assert [cfg.name for cfg in registry.vendors()] == ["kemet", "murata", "tdk"]


def test_murata_config_from_yaml(registry):
    cfg = registry.config("Murata")
    assert cfg.categories["GRM"] == "luCeramicCapacitorsSMD"
    assert cfg.cross_ref_default_category == "cgInductorscrossreference"
    assert "cross_reference" in cfg.capabilities


def test_filter_definitions(registry):
    defs = registry.filters("murata", "luCeramicCapacitorsSMD")
    captions = [d.caption for d in defs]
    assert "Capacitance" in captions
    assert registry.filters("murata", "luUnknown") == []


@pytest.mark.asyncio
async def test_orchestrators_are_cached(registry):
    first = await registry.get("murata")
    second = await registry.get("MURATA ")
    assert first is second
    assert first.strategy.supports(SearchKind.CROSS_REFERENCE)

    tdk = await registry.get("tdk")
    assert not tdk.strategy.supports(SearchKind.CROSS_REFERENCE)
    await registry.close()


@pytest.mark.asyncio
async def test_unknown_vendor(registry):
    with pytest.raises(UnknownVendorException):
        await registry.get("avx")


@pytest.mark.asyncio
async def test_forward_paths_loaded_into_resolver(registry):
    murata = await registry.get("murata")
    assert murata.strategy.resolver.resolve_for_path("Inductors", "Inductor (Wire-wound)") == "luInductorWirewound"
    assert murata.strategy.cross_ref_resolver.resolve_for_path("Power Inductors") == "cgInductorscrossreference"


@pytest.mark.asyncio
async def test_classifier_factory_enables_ai(fake_session_factory):
    _, factory = fake_session_factory()
    classifier = FakeClassifier(category="luInductorWirewound")
    registry = VendorRegistry.from_resources(classifier_factory=lambda cfg: classifier, session_factory=factory)

    murata = await registry.get("murata")
    kemet = await registry.get("kemet")

    assert murata.strategy.ai is not None
    assert "luInductorWirewound" in murata.strategy.ai.valid_codes
    assert kemet.strategy.ai is None


def test_disabled_vendor_is_not_registered():
    configs = {
        "tdk": VendorConfig(name="tdk", kind="tdk", base_url="https://product.tdk.com", enabled=False),
    }
    registry = VendorRegistry(configs)
    assert registry.vendors() == []
    with pytest.raises(UnknownVendorException):
        registry.config("tdk")


def test_unknown_kind_is_configuration_error():
    configs = {"acme": VendorConfig(name="acme", kind="acme", base_url="https://acme.example")}
    with pytest.raises(VendorConfigurationException):
        VendorRegistry(configs)


@pytest.mark.asyncio
@pytest.mark.parametrize("identifier", ["G", "GR", "ZZZZ", "#"])
async def test_resolve_for_part_never_raises_with_default(registry, identifier):
    for cfg in registry.vendors():
        engine = await registry.get(cfg.name)
        resolver = engine.strategy.resolver
        if resolver is None or not resolver.default:
            continue
        assert await resolver.resolve_for_part(identifier) == resolver.default
