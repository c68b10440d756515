"""Tests for npm search output parsing."""

import json

import pytest

from commands.search_parser import parse_search_output


class TestParseSearchOutput:
    """Tests for parse_search_output."""

    def test_parses_npm_json_array(self):
        output = json.dumps([
            {
                "name": "react",
                "version": "18.2.0",
                "description": "React is a JavaScript library for building user interfaces.",
                "keywords": ["react"],
                "date": "2022-06-14T19:46:38.369Z",
                "links": {"npm": "https://www.npmjs.com/package/react"},
                "publisher": {"username": "gnoff"},
                "maintainers": [{"username": "fb"}],
            },
            {"name": "react-dom", "version": "18.2.0", "author": {"name": "Meta"}},
        ])

        packages = parse_search_output(output)

        assert [p.name for p in packages] == ["react", "react-dom"]
        assert packages[0].version == "18.2.0"
        assert packages[0].author == "fb"
        assert packages[0].keywords == ["react"]
        assert packages[0].links["npm"].endswith("/react")
        assert packages[1].author == "Meta"
        assert str(packages[1]) == "react-dom@18.2.0"

    def test_registry_objects_shape(self):
        output = json.dumps({"objects": [{"package": {"name": "lodash", "version": "4.17.21"}}]})
        assert [p.name for p in parse_search_output(output)] == ["lodash"]

    def test_empty_output(self):
        assert parse_search_output("") == []
        assert parse_search_output(None) == []
        assert parse_search_output("[]\n") == []

    def test_entries_without_name_skipped(self):
        output = json.dumps([{"version": "1.0.0"}, "junk", {"name": "ok"}])
        assert [p.name for p in parse_search_output(output)] == ["ok"]

    def test_invalid_json_raises(self):
        with pytest.raises(ValueError):
            parse_search_output("NAME | DESCRIPTION")

    def test_non_array_raises(self):
        with pytest.raises(ValueError):
            parse_search_output(json.dumps({"error": "nope"}))
