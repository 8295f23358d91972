"""
Tests for searchkit.utils.
"""

import os

from . import utils


class TestJsonDumps:
    def test_compact_sorted_by_default(self):
        assert utils.jsonDumps({"b": 1, "a": [1, 2]}) == '{"a":[1,2],"b":1}'

    def test_indent_is_not_compact(self):
        assert utils.jsonDumps({"a": 1}, indent=2) == '{\n  "a": 1\n}'

    def test_unicode_kept(self):
        assert utils.jsonDumps({"q": "café"}) == '{"q":"café"}'


class TestUrlEncode:
    def test_slash_is_encoded(self):
        assert utils.urlEncode("a/b c") == "a%2Fb%20c"

    def test_plain_value(self):
        assert utils.urlEncode("movies_2024") == "movies_2024"


class TestLoadDotenv:
    def test_missing_file(self, tmp_path):
        assert utils.load_dotenv(str(tmp_path / ".env")) == {}

    def test_parses_and_populates(self, tmp_path, monkeypatch):
        monkeypatch.delenv("SEARCHKIT_DOTENV_TEST", raising=False)
        path = tmp_path / ".env"
        path.write_text('# comment\n\nSEARCHKIT_DOTENV_TEST = "a=b"\nbroken line\n')

        values = utils.load_dotenv(str(path))

        assert values == {"SEARCHKIT_DOTENV_TEST": "a=b"}
        assert os.environ["SEARCHKIT_DOTENV_TEST"] == "a=b"
        monkeypatch.delenv("SEARCHKIT_DOTENV_TEST")

    def test_no_populate(self, tmp_path, monkeypatch):
        monkeypatch.delenv("SEARCHKIT_DOTENV_OTHER", raising=False)
        path = tmp_path / ".env"
        path.write_text("SEARCHKIT_DOTENV_OTHER=1\n")

        utils.load_dotenv(str(path), populateEnv=False)

        assert "SEARCHKIT_DOTENV_OTHER" not in os.environ
