"""Unit tests for file_mapper.path_translator module."""

import pytest

from src.file_mapper.errors import UnsupportedFileTypeError
from src.file_mapper.path_translator import PathTranslator
from src.models.remote_file import FileType


class TestToRemote:
    """Test cases for PathTranslator.to_remote."""

    def test_strips_extension(self):
        assert PathTranslator.to_remote("main.js") == "main"

    def test_keeps_directory_segments(self):
        """Directory separators become literal '/' in the remote identifier."""
        assert PathTranslator.to_remote("utils/helper.js") == "utils/helper"

    def test_normalizes_windows_separators(self):
        assert PathTranslator.to_remote("utils\\deep\\helper.html") == "utils/deep/helper"

    def test_drops_leading_dot_slash(self):
        assert PathTranslator.to_remote("./lib/a.js") == "lib/a"

    def test_legacy_gs_extension(self):
        assert PathTranslator.to_remote("Code.gs") == "Code"
        assert PathTranslator.file_type_for("Code.gs") is FileType.SERVER_JS

    def test_only_trailing_extension_is_stripped(self):
        assert PathTranslator.to_remote("lib/jquery.min.js") == "lib/jquery.min"

    def test_uppercase_extension_is_accepted(self):
        assert PathTranslator.file_type_for("Index.HTML") is FileType.HTML

    @pytest.mark.parametrize("path", ["README.md", "notes.txt", "Makefile", "utils/", ".js"])
    def test_unsupported_paths_raise(self, path):
        with pytest.raises(UnsupportedFileTypeError):
            PathTranslator.to_remote(path)


class TestToLocal:
    """Test cases for PathTranslator.to_local."""

    @pytest.mark.parametrize("file_type,expected", [
        (FileType.SERVER_JS, "utils/helper.js"),
        (FileType.HTML, "utils/helper.html"),
        (FileType.JSON, "utils/helper.json"),
    ])
    def test_appends_canonical_extension(self, file_type, expected):
        assert PathTranslator.to_local("utils/helper", file_type) == expected

    def test_unsupported_type_raises(self):
        with pytest.raises(UnsupportedFileTypeError) as exc_info:
            PathTranslator.to_local("weird", FileType.UNSUPPORTED)
        assert exc_info.value.file_type == "UNSUPPORTED"


class TestRoundTrip:
    """to_local and to_remote must be inverses for canonical extensions."""

    @pytest.mark.parametrize("path", [
        "main.js",
        "utils/helper.js",
        "a/b/c/deep.html",
        "appsscript.json",
        "dotted.name.js",
    ])
    def test_local_round_trip(self, path):
        name = PathTranslator.to_remote(path)
        assert PathTranslator.to_local(name, PathTranslator.file_type_for(path)) == path

    def test_remote_round_trip(self):
        assert PathTranslator.to_remote(PathTranslator.to_local("x/y", FileType.HTML)) == "x/y"


class TestIsSupported:
    """Test cases for PathTranslator.is_supported."""

    def test_supported(self):
        assert PathTranslator.is_supported("main.js") is True

    def test_unsupported(self):
        assert PathTranslator.is_supported("image.png") is False


class TestAliasPaths:
    """Test cases for PathTranslator.alias_paths."""

    def test_code_files_have_gs_alias(self):
        assert PathTranslator.alias_paths("utils/helper", FileType.SERVER_JS) == ["utils/helper.gs"]

    def test_other_types_have_none(self):
        assert PathTranslator.alias_paths("index", FileType.HTML) == []
        assert PathTranslator.alias_paths("legacy", FileType.UNSUPPORTED) == []
