import pytest

from pipelines.prefetch import prefetch_core_frameworks
from sources.loader import DEFAULT_FRAMEWORKS, PrefetchConfig, load_prefetch_config


class TestPrefetchConfig:
    """Test loading the prefetch list."""

    def test_bundled_file(self):
        config = load_prefetch_config()

        assert config.enabled
        assert config.frameworks == DEFAULT_FRAMEWORKS

    def test_custom_file(self, tmp_path):
        path = tmp_path / "prefetch.yaml"
        path.write_text("enabled: false\nframeworks:\n  - SwiftUI\n  - ' MapKit '\n  - SwiftUI\n")

        config = load_prefetch_config(path)

        assert not config.enabled
        assert config.frameworks == ["SwiftUI", "MapKit"]

    @pytest.mark.parametrize("content", [
        "",
        "- SwiftUI\n",
        "frameworks: [SwiftUI\n",
        "frameworks:\n  - ''\n",
        "frameworks: SwiftUI\n",
    ])
    def test_invalid_files_fall_back_to_defaults(self, tmp_path, content):
        path = tmp_path / "prefetch.yaml"
        path.write_text(content)

        assert load_prefetch_config(path).to_dict() == {"frameworks": DEFAULT_FRAMEWORKS, "enabled": True}

    def test_missing_file(self, tmp_path):
        assert load_prefetch_config(tmp_path / "absent.yaml").frameworks == DEFAULT_FRAMEWORKS

    def test_validation(self):
        with pytest.raises(ValueError):
            PrefetchConfig(frameworks=["SwiftUI", 3])


class TestPrefetch:
    """Test warming the cache."""

    @pytest.mark.asyncio
    async def test_failures_are_reported_not_raised(self, docs_client, fetcher, file_store):
        prefetched = await prefetch_core_frameworks(docs_client, ["swiftui", "uikit"])

        assert prefetched == ["swiftui"]
        assert file_store.load_framework("swiftui") is not None
        assert fetcher.calls_for("documentation/uikit") == 1

    @pytest.mark.asyncio
    async def test_defaults_come_from_configuration(self, docs_client, fetcher):
        prefetched = await prefetch_core_frameworks(docs_client)

        assert prefetched == []
        assert sorted(fetcher.calls) == sorted(f"documentation/{name}" for name in DEFAULT_FRAMEWORKS)
