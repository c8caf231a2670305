import pytest

from litestar_inertia import InertiaConfig, InertiaSSRConfig


def test_default_inertia_config() -> None:
    config = InertiaConfig()
    assert config.version is None
    assert config.root_template == "index.html"
    assert config.component_opt_keys == ("component", "page")
    assert config.encrypt_history is False
    assert config.extra_static_page_props == {}
    assert config.share is None
    assert config.ssr is None
    assert config.ssr_config is None


def test_version_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("INERTIA_VERSION", "build-42")
    assert InertiaConfig().version == "build-42"


@pytest.mark.parametrize(("value", "expected"), [("true", True), ("1", True), ("yes", True), ("no", False)])
def test_encrypt_history_from_environment(monkeypatch: pytest.MonkeyPatch, value: str, expected: bool) -> None:
    monkeypatch.setenv("INERTIA_ENCRYPT_HISTORY", value)
    assert InertiaConfig().encrypt_history is expected


def test_explicit_values_win_over_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("INERTIA_VERSION", "from-env")
    assert InertiaConfig(version="explicit").version == "explicit"


def test_ssr_normalisation() -> None:
    assert InertiaConfig(ssr=True).ssr == InertiaSSRConfig()
    assert InertiaConfig(ssr=False).ssr is None

    custom = InertiaSSRConfig(url="http://node:13714", timeout=5.0)
    assert InertiaConfig(ssr=custom).ssr_config is custom


def test_disabled_ssr_config() -> None:
    config = InertiaConfig(ssr=InertiaSSRConfig(enabled=False))
    assert config.ssr is not None
    assert config.ssr_config is None


def test_extra_static_page_props_are_not_shared_between_instances() -> None:
    first = InertiaConfig()
    first.extra_static_page_props["a"] = 1
    assert InertiaConfig().extra_static_page_props == {}
