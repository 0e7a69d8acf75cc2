"""Shared fixtures: a temporary cache, a small SwiftUI corpus and a fake fetcher."""

import copy
import asyncio
import logging
from datetime import datetime, timedelta, timezone

import pytest

from config.settings import CacheSettings, CrawlerSettings, Settings
from cache.file_store import FileStore
from client.docs_client import DocsClient
from client.errors import FetchError
from client.types import Technology
from observability.logging import HANDLER_NAME
from observability.telemetry import SessionTelemetry

DOC_PREFIX = "doc://com.apple.documentation/documentation"
SWIFTUI_ID = f"{DOC_PREFIX}/swiftui"
UIKIT_ID = f"{DOC_PREFIX}/uikit"
GRID_ITEM_ID = f"{DOC_PREFIX}/swiftui/griditem"
LAZY_VGRID_ID = f"{DOC_PREFIX}/swiftui/lazyvgrid"
VIEW_LAYOUT_ID = f"{DOC_PREFIX}/swiftui/view-layout"
GRID_ITEM_SIZE_ID = f"{DOC_PREFIX}/swiftui/griditem/size"
TOGGLE_ID = f"{DOC_PREFIX}/swiftui/toggle"


def text(value):
    return [{"type": "text", "text": value}]


def build_corpus():
    """Documents keyed by the path the fetcher is asked for."""
    swiftui = {
        "abstract": text("Declare the user interface and behavior for your app on every platform."),
        "metadata": {
            "title": "SwiftUI",
            "role": "collection",
            "platforms": [{"name": "iOS", "introducedAt": "13.0"}, {"name": "macOS", "introducedAt": "10.15"}],
        },
        "identifier": {"url": f"{DOC_PREFIX}/SwiftUI", "interfaceLanguage": "swift"},
        "topicSections": [{"title": "Layout", "identifiers": [GRID_ITEM_ID, LAZY_VGRID_ID]}],
        "references": {
            GRID_ITEM_ID: {
                "title": "GridItem",
                "kind": "symbol",
                "role": "symbol",
                "url": "/documentation/swiftui/griditem",
                "abstract": text("A description of a row or a column in a lazy grid."),
                "platforms": [{"name": "iOS", "introducedAt": "14.0"}, {"name": "Mac Catalyst", "introducedAt": "14.0"}],
            },
            LAZY_VGRID_ID: {
                "title": "LazyVGrid",
                "kind": "symbol",
                "role": "symbol",
                "url": "/documentation/swiftui/lazyvgrid",
                "abstract": text("A container view that arranges its child views in a grid that grows vertically."),
                "platforms": [{"name": "macOS", "introducedAt": "11.0"}],
            },
            VIEW_LAYOUT_ID: {
                "title": "View layout",
                "kind": "article",
                "role": "collectionGroup",
                "url": "/documentation/swiftui/view-layout",
                "abstract": text("Arrange views inside built-in layout containers."),
            },
        },
    }
    grid_item = {
        "abstract": text("A description of a row or a column in a lazy grid."),
        "metadata": {
            "title": "GridItem",
            "symbolKind": "struct",
            "role": "symbol",
            "url": "/documentation/swiftui/griditem",
            "platforms": [{"name": "iOS", "introducedAt": "14.0"}, {"name": "Mac Catalyst", "introducedAt": "14.0"}],
        },
        "identifier": {"url": GRID_ITEM_ID, "interfaceLanguage": "swift"},
        "topicSections": [{"title": "Sizing", "identifiers": [GRID_ITEM_SIZE_ID]}],
        "references": {
            GRID_ITEM_SIZE_ID: {
                "title": "GridItem.Size",
                "kind": "symbol",
                "url": "/documentation/swiftui/griditem/size",
                "abstract": text("The size in the minor axis of one or more rows or columns."),
            },
            LAZY_VGRID_ID: {
                "title": "LazyVGrid",
                "kind": "symbol",
                "url": "/documentation/swiftui/lazyvgrid",
            },
        },
    }
    lazy_vgrid = {
        "abstract": text("A container view that arranges its child views in a grid that grows vertically."),
        "metadata": {
            "title": "LazyVGrid",
            "symbolKind": "struct",
            "url": "/documentation/swiftui/lazyvgrid",
            "platforms": [{"name": "macOS", "introducedAt": "11.0"}],
        },
        "identifier": {"url": LAZY_VGRID_ID},
        "references": {},
    }
    view_layout = {
        "abstract": text("Arrange views inside built-in layout containers."),
        "metadata": {"title": "View layout", "role": "collectionGroup", "url": "/documentation/swiftui/view-layout"},
        "identifier": {"url": VIEW_LAYOUT_ID},
        "references": {},
    }
    grid_item_size = {
        "abstract": text("The size in the minor axis of one or more rows or columns."),
        "metadata": {"title": "GridItem.Size", "symbolKind": "enum", "url": "/documentation/swiftui/griditem/size"},
        "identifier": {"url": GRID_ITEM_SIZE_ID},
        "references": {},
    }
    toggle = {
        "abstract": text("A control that toggles between on and off states."),
        "metadata": {"title": "Toggle", "symbolKind": "struct", "url": "/documentation/swiftui/toggle",
                     "platforms": [{"name": "iOS", "introducedAt": "13.0"}]},
        "identifier": {"url": TOGGLE_ID},
        "references": {},
    }
    technologies = {
        "references": {
            SWIFTUI_ID: {"identifier": SWIFTUI_ID, "title": "SwiftUI", "kind": "technologies",
                         "url": "/documentation/swiftui", "abstract": text("Declare the user interface.")},
            UIKIT_ID: {"identifier": UIKIT_ID, "title": "UIKit", "kind": "technologies",
                       "url": "/documentation/uikit", "abstract": text("Construct and manage a graphical app.")},
        }
    }
    return {
        "documentation/technologies": technologies,
        "documentation/swiftui": swiftui,
        "documentation/swiftui/griditem": grid_item,
        "documentation/swiftui/lazyvgrid": lazy_vgrid,
        "documentation/swiftui/view-layout": view_layout,
        "documentation/swiftui/griditem/size": grid_item_size,
        "documentation/swiftui/Toggle": toggle,
    }


class FakeFetcher:
    """In-memory stand-in for the HTTP transport.

    ``failures`` maps a path to how many times it should fail before
    succeeding; unknown paths fail with a 404.
    """

    def __init__(self, documents=None, failures=None):
        self.documents = dict(documents or {})
        self.failures = dict(failures or {})
        self.calls = []
        self.cache_cleared = False

    async def get_documentation(self, path):
        self.calls.append(path)
        remaining = self.failures.get(path, 0)
        if remaining:
            self.failures[path] = remaining - 1
            raise FetchError(path, "simulated outage", status=503)
        if path not in self.documents:
            raise FetchError(path, "HTTP 404", status=404)
        return copy.deepcopy(self.documents[path])

    def calls_for(self, path):
        return self.calls.count(path)

    def clear_cache(self):
        self.cache_cleared = True


class GatedFetcher(FakeFetcher):
    """Fetcher that blocks every request until the gate is opened."""

    def __init__(self, documents=None, failures=None):
        super().__init__(documents, failures)
        self.gate = asyncio.Event()

    async def get_documentation(self, path):
        await self.gate.wait()
        return await super().get_documentation(path)


class ManualClock:
    """Deterministic clock for recency ordering."""

    def __init__(self):
        self.now = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, seconds=1):
        self.now += timedelta(seconds=seconds)


class RecordingSleep:
    """Records requested delays without waiting."""

    def __init__(self):
        self.delays = []

    async def __call__(self, seconds):
        self.delays.append(seconds)


@pytest.fixture
def corpus():
    return build_corpus()


@pytest.fixture
def cache_settings(tmp_path):
    return CacheSettings(cache_dir=tmp_path / "cache")


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def telemetry():
    return SessionTelemetry(enabled=True)


@pytest.fixture
def file_store(cache_settings, telemetry, clock):
    return FileStore(cache_settings, telemetry=telemetry, clock=clock)


@pytest.fixture
def fetcher(corpus):
    return FakeFetcher(corpus)


@pytest.fixture
def docs_client(fetcher, file_store):
    return DocsClient(fetcher, file_store)


@pytest.fixture
def crawler_settings():
    return CrawlerSettings(rate_limit_delay=0.1, max_retries=3, max_concurrency=5, max_depth=4)


@pytest.fixture
def recording_sleep():
    return RecordingSleep()


@pytest.fixture
def settings(cache_settings):
    return Settings(cache=cache_settings, crawler=CrawlerSettings(rate_limit_delay=0), telemetry_enabled=True)


@pytest.fixture
def swiftui():
    return Technology(identifier=SWIFTUI_ID, title="SwiftUI", url="/documentation/swiftui")


@pytest.fixture
def uikit():
    return Technology(identifier=UIKIT_ID, title="UIKit", url="/documentation/uikit")


@pytest.fixture
def reset_root_logger():
    """Drop handlers installed by setup_logging once the test is done."""
    root = logging.getLogger()
    level = root.level
    yield
    for handler in list(root.handlers):
        if handler.get_name() == HANDLER_NAME:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)
