from collections.abc import Generator
from pathlib import Path

import pytest
from litestar.contrib.jinja import JinjaTemplateEngine
from litestar.template.config import TemplateConfig

from litestar_inertia import InertiaConfig, InertiaContext, InertiaPlugin


@pytest.fixture
def inertia_config() -> Generator[InertiaConfig, None, None]:
    yield InertiaConfig(version="1.0", root_template="index.html")


@pytest.fixture
def inertia_plugin(inertia_config: InertiaConfig) -> Generator[InertiaPlugin, None, None]:
    yield InertiaPlugin(config=inertia_config)


@pytest.fixture
def template_config() -> TemplateConfig[JinjaTemplateEngine]:
    return TemplateConfig(engine=JinjaTemplateEngine(directory=Path(__file__).parent / "templates"))


@pytest.fixture
def first_load() -> InertiaContext:
    return InertiaContext(url="/users")


@pytest.fixture
def inertia_visit() -> InertiaContext:
    return InertiaContext(is_inertia=True, url="/users")
