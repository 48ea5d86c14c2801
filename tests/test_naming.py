"""Tests for class and member naming."""

import logging

import pytest

from gql_clientgen.core.naming import (
    NameKind,
    NameResolver,
    capitalize,
    escape_member_name,
    fragment_accessor_name,
    safe_identifier,
    to_pascal_case,
    to_snake_case,
)


class TestCaseConversion:
    """Tests for case conversion helpers."""

    @pytest.mark.parametrize(
        "name,expected",
        [
            ("personSearch", "person_search"),
            ("PersonSearch", "person_search"),
            ("HTTPResponse", "http_response"),
            ("movies", "movies"),
        ],
    )
    def test_to_snake_case(self, name, expected):
        assert to_snake_case(name) == expected

    def test_to_pascal_case(self):
        assert to_pascal_case("person_search") == "PersonSearch"
        assert to_pascal_case("personSearch") == "PersonSearch"

    def test_capitalize_only_touches_first_character(self):
        assert capitalize("favoriteMovie") == "FavoriteMovie"
        assert capitalize("URL") == "URL"
        assert capitalize("") == ""


class TestMemberNames:
    """Tests for accessor name escaping."""

    @pytest.mark.parametrize(
        "name,expected",
        [("_", "__"), ("root", "_root"), ("parent", "_parent"), ("import", "_import")],
    )
    def test_reserved_names_are_escaped(self, name, expected):
        assert escape_member_name(name) == expected

    @pytest.mark.parametrize("name", ["title", "rootCause", "parents", "__typename2", "Root"])
    def test_other_names_pass_through(self, name):
        assert escape_member_name(name) == name

    def test_safe_identifier(self):
        assert safe_identifier("from") == "from_"
        assert safe_identifier("class") == "class_"
        assert safe_identifier("title") == "title"

    def test_fragment_accessor(self):
        assert fragment_accessor_name("Movie") == "onMovie"


class TestNameResolver:
    """Tests for path to class name resolution."""

    def test_root_name(self):
        assert NameResolver().resolve(["movies"]).name == "MoviesProjectionRoot"

    def test_child_name(self):
        assert NameResolver().resolve(["movies", "actors"]).name == "Movies_ActorsProjection"

    def test_nested_name(self):
        name = NameResolver().resolve(["movies", "actors", "agent"])
        assert name.name == "Movies_Actors_AgentProjection"
        assert name.path == ("movies", "actors", "agent")
        assert not name.short

    def test_polymorphic_branch_uses_type_name(self):
        assert NameResolver().resolve(["search", "Movie"]).name == "Search_MovieProjection"

    def test_operation_name(self):
        assert NameResolver().operation_name("personSearch").name == "PersonSearchGraphQLQuery"

    def test_operation_name_ignores_short_mode(self):
        assert NameResolver(short=True).operation_name("personSearch").name == "PersonSearchGraphQLQuery"

    def test_explicit_kind(self):
        name = NameResolver().resolve(["movies", "actors"], kind=NameKind.ROOT)
        assert name.name == "Movies_ActorsProjectionRoot"

    def test_empty_path(self):
        with pytest.raises(ValueError):
            NameResolver().resolve([])

    def test_str(self):
        assert str(NameResolver().resolve(["movies"])) == "MoviesProjectionRoot"


class TestShortNames:
    """Tests for short naming mode."""

    def test_truncates_all_but_last_segment(self):
        resolver = NameResolver(short=True)
        assert resolver.resolve(["movies", "actors", "movies"]).name == "Mo_Ac_MoviesProjection"

    def test_children_of_root_keep_root_segment(self):
        resolver = NameResolver(short=True)
        assert resolver.resolve(["movies", "actors"]).name == "Movies_ActorsProjection"

    def test_root_is_not_truncated(self):
        assert NameResolver(short=True).resolve(["movies"]).name == "MoviesProjectionRoot"

    def test_per_call_override(self):
        resolver = NameResolver()
        name = resolver.resolve(["movies", "actors", "movies"], short=True)
        assert name.name == "Mo_Ac_MoviesProjection"
        assert name.short

    def test_collision_gets_numeric_suffix(self, caplog):
        resolver = NameResolver(short=True)
        first = resolver.resolve(["movies", "actors", "agent"])
        with caplog.at_level(logging.WARNING, logger="gql_clientgen.core.naming"):
            second = resolver.resolve(["movies", "actresses", "agent"])
        assert first.name == "Mo_Ac_AgentProjection"
        assert second.name == "Mo_Ac_Agent2Projection"
        assert "already used" in caplog.text

    def test_same_path_resolves_to_same_name(self):
        resolver = NameResolver(short=True)
        first = resolver.resolve(["movies", "actors", "agent"])
        again = resolver.resolve(["movies", "actors", "agent"])
        assert first.name == again.name == "Mo_Ac_AgentProjection"


class TestDeterminism:
    """Names depend only on the path."""

    def test_fresh_resolvers_agree(self):
        paths = [["movies"], ["movies", "actors"], ["movies", "actors", "Movie"]]
        first = [NameResolver().resolve(p).name for p in paths]
        second = [NameResolver().resolve(p).name for p in reversed(paths)][::-1]
        assert first == second
