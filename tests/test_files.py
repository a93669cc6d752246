"""
Local file provider (bundlekit.files).
"""

import pytest

from bundlekit.faults import PathTraversalFault
from bundlekit.files import FileProvider, LocalFileProvider


class TestSecureCombine:

    @pytest.mark.parametrize("relative", ["css/reset.css", "/css/reset.css", "~/css/reset.css", "css\\reset.css"])
    def test_forms(self, files, web_root, relative):
        assert files.secure_combine(relative) == (web_root / "css" / "reset.css").resolve()

    def test_dot_segments_inside_root(self, files, web_root):
        assert files.secure_combine("css/theme/../reset.css") == (web_root / "css" / "reset.css").resolve()

    @pytest.mark.parametrize("relative", ["../secret.css", "~/../../etc/passwd", "css/../../x"])
    def test_traversal(self, files, relative):
        with pytest.raises(PathTraversalFault) as exc_info:
            files.secure_combine(relative)
        assert exc_info.value.metadata["path"] == relative

    def test_root_resolved(self, web_root):
        provider = LocalFileProvider(web_root / "css" / "..")
        assert provider.root == web_root.resolve()


class TestFileAccess:

    def test_protocol(self, files):
        assert isinstance(files, FileProvider)

    def test_exists(self, files):
        assert files.exists(files.secure_combine("css/reset.css"))
        assert not files.exists(files.secure_combine("css/missing.css"))
        assert not files.exists(files.secure_combine("css"))

    def test_read_text(self, files):
        assert files.read_text(files.secure_combine("css/reset.css")) == "body { margin: 0; }\n"

    def test_byte_order_mark_stripped(self, files, web_root):
        (web_root / "bom.css").write_bytes(b"\xef\xbb\xbfp {}")
        assert files.read_text(files.secure_combine("bom.css")) == "p {}"

    def test_list_files(self, files, web_root):
        assert files.list_files(web_root / "lib", "select2-*.css") == [
            "select2-4.0.13.css",
            "select2-4.0.13.min.css",
            "select2-4.0.3.css",
        ]

    def test_list_files_ignores_case(self, files, web_root):
        assert files.list_files(web_root / "lib", "SELECT2-*.MIN.CSS") == ["select2-4.0.13.min.css"]

    def test_list_files_missing_directory(self, files, web_root):
        assert files.list_files(web_root / "nope", "*.css") == []
