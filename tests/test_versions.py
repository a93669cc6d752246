"""
Version variable resolution (bundlekit.versions).
"""

import pytest

from bundlekit.faults import InvalidVersionMaskFault
from bundlekit.files import LocalFileProvider
from bundlekit.versions import VersionCache, VersionResolver, parse_version


@pytest.fixture
def resolver(files):
    return VersionResolver(files)


@pytest.fixture
def touch(write_tree):
    def touch_files(directory, *names):
        write_tree(directory, {name: "" for name in names})
    return touch_files


# ============================================================================
# parse_version
# ============================================================================

class TestParseVersion:

    def test_dotted_integers(self):
        assert parse_version("1.10.2") == (1, 10, 2)
        assert parse_version("7") == (7,)

    @pytest.mark.parametrize("value", ["", "1.", ".1", "1..2", "1.2-beta", "v1", "-1", "1.2.min"])
    def test_rejects_non_numeric(self, value):
        assert parse_version(value) is None


# ============================================================================
# get_latest_version
# ============================================================================

class TestGetLatestVersion:

    def test_numeric_not_lexical_ordering(self, tmp_path, resolver, touch):
        touch(tmp_path, "app.9.js", "app.10.js", "app.2.js")
        assert resolver.get_latest_version(tmp_path, "app.*.js") == "10"

    def test_segment_wise_ordering(self, tmp_path, resolver, touch):
        touch(tmp_path, "lib-1.9.3.js", "lib-1.10.0.js", "lib-1.2.12.js")
        assert resolver.get_latest_version(tmp_path, "lib-*.js") == "1.10.0"

    def test_longer_sequence_wins_on_equal_prefix(self, tmp_path, resolver, touch):
        touch(tmp_path, "lib-1.2.js", "lib-1.2.0.js")
        assert resolver.get_latest_version(tmp_path, "lib-*.js") == "1.2.0"

    def test_non_numeric_candidates_excluded(self, tmp_path, resolver, touch):
        touch(tmp_path, "app.beta.js", "app.3.js", "app.4.rc1.js", "app..js")
        assert resolver.get_latest_version(tmp_path, "app.*.js") == "3"

    def test_no_candidates(self, tmp_path, resolver, touch):
        touch(tmp_path, "app.beta.js", "other.1.js")
        assert resolver.get_latest_version(tmp_path, "app.*.js") is None

    def test_missing_directory(self, tmp_path, resolver):
        assert resolver.get_latest_version(tmp_path / "nope", "app.*.js") is None

    def test_empty_mask(self, tmp_path, resolver):
        assert resolver.get_latest_version(tmp_path, "") is None

    @pytest.mark.parametrize("mask", ["*.js", "app.js", "app.*.*.js"])
    def test_invalid_masks(self, tmp_path, resolver, mask):
        with pytest.raises(InvalidVersionMaskFault):
            resolver.get_latest_version(tmp_path, mask)


# ============================================================================
# expand_version_variable
# ============================================================================

class TestExpandVersionVariable:

    def test_picks_highest_release(self, resolver):
        assert resolver.expand_version_variable("~/lib/select2-{version}.css") == "~/lib/select2-4.0.13.css"

    def test_minified_suffix_is_part_of_mask(self, resolver):
        assert resolver.expand_version_variable("~/lib/select2-{version}.min.css") == "~/lib/select2-4.0.13.min.css"

    def test_token_is_case_insensitive(self, resolver):
        assert resolver.expand_version_variable("~/lib/select2-{VERSION}.css") == "~/lib/select2-4.0.13.css"

    def test_root_relative_url(self, resolver):
        assert resolver.expand_version_variable("/lib/select2-{version}.css") == "/lib/select2-4.0.13.css"

    def test_url_without_token_is_not_cached(self, resolver):
        assert resolver.expand_version_variable("~/css/reset.css") == "~/css/reset.css"
        assert len(resolver.cache) == 0

    def test_result_is_cached(self, resolver):
        url = "~/lib/select2-{version}.css"
        resolver.expand_version_variable(url)
        assert resolver.cache.get(url) == "~/lib/select2-4.0.13.css"

    def test_miss_returns_and_caches_template(self, resolver):
        url = "~/lib/missing-{version}.css"
        assert resolver.expand_version_variable(url) == url
        assert url in resolver.cache

    def test_cached_until_cleared(self, web_root, resolver, touch):
        url = "~/lib/select2-{version}.css"
        resolver.expand_version_variable(url)
        touch(web_root / "lib", "select2-4.1.0.css")

        assert resolver.expand_version_variable(url) == "~/lib/select2-4.0.13.css"
        resolver.cache.clear()
        assert resolver.expand_version_variable(url) == "~/lib/select2-4.1.0.css"

    def test_traversal_fails_open(self, resolver):
        url = "~/../../etc/passwd-{version}"
        assert resolver.expand_version_variable(url) == url

    def test_shared_cache(self, files):
        cache = VersionCache()
        VersionResolver(files, cache).expand_version_variable("~/lib/select2-{version}.css")
        other = VersionResolver(LocalFileProvider("/nonexistent"), cache)
        assert other.expand_version_variable("~/lib/select2-{version}.css") == "~/lib/select2-4.0.13.css"
