"""Tests for projection tree construction."""

import pytest

from gql_clientgen.core.errors import UnresolvedTypeReference
from gql_clientgen.core.naming import NameResolver
from gql_clientgen.core.parser import SchemaParser
from gql_clientgen.core.projections import ProjectionBuilder


def parse(sdl: str):
    return SchemaParser().parse_sdl(sdl)


def build(sdl: str, operation: str, **kwargs):
    schema = parse(sdl)
    op = next(o for o in schema.all_operations if o.name == operation)
    short = kwargs.pop("short", False)
    return ProjectionBuilder(schema, NameResolver(short=short), **kwargs).build(op)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def movies_schema():
    return """
        type Query {
            movies: [Movie]
        }

        type Movie {
            title: String
            rating: Rating
            actors: [Actor]
        }

        type Actor {
            name: String
            age: Int
            agent: Agent
        }

        type Agent {
            name: String
            address: Address
        }

        type Address {
            street: String
        }

        type Rating {
            stars: Int
            review: Review
        }

        type Review {
            description: String
        }
    """


@pytest.fixture
def interface_cycle_schema():
    return """
        type Query {
            search(title: String): [Show]
        }

        interface Show {
            title: String
        }

        type Movie implements Show {
            title: String
            duration: Int
            details: Details
        }

        type Details {
            show: Show
        }
    """


@pytest.fixture
def union_cycle_schema():
    return """
        type Query {
            search(title: String): [Video]
        }

        union Video = Show | Movie

        type Show {
            title: String
        }

        type Movie {
            title: String
            duration: Int
            related: Related
        }

        type Related {
            video: Video
        }
    """


# =============================================================================
# Basic expansion
# =============================================================================


class TestRootProjection:
    """Tests for the root of a projection tree."""

    def test_single_root(self):
        tree = build(
            """
            type Query { people: [Person] }
            type Person { firstname: String lastname: String }
            """,
            "people",
        )
        assert tree.class_names == ["PeopleProjectionRoot"]
        assert tree.root.member_names == ["firstname", "lastname"]
        assert tree.root.is_root
        assert tree.root.depth == 0

    def test_scalar_return_type_has_no_projection(self):
        tree = build("type Query { movieTitles: [String] }", "movieTitles")
        assert tree is None

    def test_enum_return_type_has_no_projection(self):
        tree = build(
            """
            type Query { genre: Genre }
            enum Genre { DRAMA COMEDY }
            """,
            "genre",
        )
        assert tree is None

    def test_custom_scalar_field_is_a_leaf(self):
        tree = build(
            """
            type Query { movieCountry: MovieCountry }
            type MovieCountry { country: String movieId: Long }
            scalar Long
            """,
            "movieCountry",
        )
        assert len(tree) == 1
        assert tree.root.member_names == ["country", "movieId"]

    def test_roots_of_different_operations(self):
        sdl = """
            type Query {
                persons: [Person]
                friends: [Person]
            }
            type Person { name: String }
        """
        assert build(sdl, "persons").class_names == ["PersonsProjectionRoot"]
        assert build(sdl, "friends").class_names == ["FriendsProjectionRoot"]


class TestSubProjections:
    """Tests for nested object fields."""

    def test_child_projection(self):
        tree = build(
            """
            type Query { movies: [Movie] }
            type Movie { title: String actors: [Actor] }
            type Actor { name: String age: Int }
            """,
            "movies",
        )
        assert tree.class_names == ["MoviesProjectionRoot", "Movies_ActorsProjection"]
        actors = tree.find("Movies_ActorsProjection")
        assert actors.parent_class_name == "MoviesProjectionRoot"
        assert actors.root_class_name == "MoviesProjectionRoot"
        assert actors.member_name == "actors"
        assert actors.depth == 1

    def test_similar_query_and_field_names(self):
        tree = build(
            """
            type Query { user: User }
            type User { favoriteMovie: Movie favoriteMovieGenre: Genre }
            type Movie { genre: Genre }
            type Genre { name: String }
            """,
            "user",
        )
        assert tree.class_names == [
            "UserProjectionRoot",
            "User_FavoriteMovieProjection",
            "User_FavoriteMovie_GenreProjection",
            "User_FavoriteMovieGenreProjection",
        ]

    def test_same_type_through_different_paths(self):
        tree = build(
            """
            type Query { workshop: Workshop }
            type Workshop { reviews: ReviewConnection assets: Asset }
            type ReviewConnection { edges: [ReviewEdge] }
            type ReviewEdge { node: String }
            type Asset { reviews: ReviewConnection }
            """,
            "workshop",
        )
        assert len(tree) == 6
        direct = tree.find("Workshop_ReviewsProjection")
        nested = tree.find("Workshop_Assets_ReviewsProjection")
        assert direct is not None and nested is not None
        assert direct is not nested
        assert "edges" in direct.member_names
        assert "edges" in nested.member_names

    def test_different_parent_types(self):
        sdl = """
            type Query {
                persons: [Person]
                details(name: String): Details
            }
            type Person { details: Details }
            type Details { name: String age: Int }
        """
        assert build(sdl, "persons").class_names == [
            "PersonsProjectionRoot",
            "Persons_DetailsProjection",
        ]
        assert build(sdl, "details").class_names == ["DetailsProjectionRoot"]

    def test_field_arguments_are_carried(self):
        tree = build(
            """
            type Query { movie: Movie }
            type Movie {
                title(language: String): String
                actors(first: Int!): [Actor]
            }
            type Actor { name: String }
            """,
            "movie",
        )
        title = tree.root.fields[0]
        assert [a.name for a in title.arguments] == ["language"]
        actors = tree.find("Movie_ActorsProjection")
        assert [a.name for a in actors.field_arguments] == ["first"]

    def test_skipped_field_is_not_projected(self):
        tree = build(
            """
            type Query { movie: Movie }
            type Movie {
                title: String
                internal: Secret @skipcodegen
            }
            type Secret { value: String }
            """,
            "movie",
        )
        assert tree.class_names == ["MovieProjectionRoot"]
        assert tree.root.member_names == ["title"]

    def test_accessors_follow_declaration_order(self):
        tree = build(
            """
            type Query { movie: Movie }
            type Movie { rating: Rating title: String year: Int }
            type Rating { stars: Int }
            """,
            "movie",
        )
        assert tree.root.member_names == ["rating", "title", "year"]
        assert [a.accessor_kind for a in tree.root.accessors] == ["child", "field", "field"]


class TestExtensions:
    """Tests for fields contributed by type extensions."""

    def test_extend_root_projection(self):
        tree = build(
            """
            type Query { people: [Person] }
            type Person { name: String }
            extend type Person { email: String }
            """,
            "people",
        )
        assert tree.root.member_names == ["name", "email"]

    def test_extend_sub_projection(self):
        tree = build(
            """
            type Query { search: [SearchResult] }
            type SearchResult { movie: Movie }
            type Movie { title: String }
            extend type Movie { director: String }
            """,
            "search",
        )
        assert tree.class_names[1] == "Search_MovieProjection"
        assert tree.nodes[1].member_names == ["title", "director"]

    def test_extend_sub_projection_out_of_order(self):
        tree = build(
            """
            type Query { search: [SearchResult] }
            type SearchResult { movie: Movie }
            extend type Movie { director: String }
            type Movie { title: String }
            """,
            "search",
        )
        assert tree.nodes[1].member_names == ["title", "director"]


# =============================================================================
# Cycles
# =============================================================================


class TestCycles:
    """Tests for termination on recursive schemas."""

    def test_self_reference(self):
        tree = build(
            """
            type Query { persons: [Person] }
            type Person { name: String friends: [Person] }
            """,
            "persons",
        )
        assert tree.class_names == ["PersonsProjectionRoot", "Persons_FriendsProjection"]
        assert "name" in tree.root.member_names
        assert "friends" in tree.root.member_names

        friends = tree.nodes[1]
        assert friends.back_reference
        assert "name" in friends.member_names
        assert friends.children == []

    def test_back_reference_links_to_first_occurrence(self):
        tree = build(
            """
            type Query { persons: [Person] }
            type Person { name: String friends: [Person] }
            """,
            "persons",
        )
        friends = tree.nodes[1]
        assert [(link.name, link.target_class_name) for link in friends.links] == [
            ("friends", "Persons_FriendsProjection"),
        ]

    def test_interface_cycle(self, interface_cycle_schema):
        tree = build(interface_cycle_schema, "search")
        assert tree.class_names == [
            "SearchProjectionRoot",
            "Search_MovieProjection",
            "Search_Movie_DetailsProjection",
            "Search_Movie_Details_ShowProjection",
            "Search_Movie_Details_Show_MovieProjection",
        ]
        show = tree.find("Search_Movie_Details_ShowProjection")
        movie = tree.find("Search_Movie_Details_Show_MovieProjection")
        assert show.back_reference
        assert movie.back_reference
        assert movie.is_fragment

    def test_interface_cycle_link_targets(self, interface_cycle_schema):
        tree = build(interface_cycle_schema, "search")
        movie = tree.find("Search_Movie_Details_Show_MovieProjection")
        assert [(link.name, link.target_class_name) for link in movie.links] == [
            ("details", "Search_Movie_DetailsProjection"),
        ]

    def test_link_to_interface_field_of_fragment(self):
        tree = build(
            """
            type Query { search: [Show] }
            interface Show { title: String related: Show }
            type Movie implements Show { title: String related: Show director: Person }
            type Person { name: String favorite: Movie }
            """,
            "search",
        )
        favorite = tree.find("Search_Movie_Director_FavoriteProjection")
        assert favorite.back_reference
        assert favorite.member_names == ["title", "related", "director"]
        assert [(link.name, link.target_class_name) for link in favorite.links] == [
            ("related", "Search_RelatedProjection"),
            ("director", "Search_Movie_DirectorProjection"),
        ]

    def test_union_cycle(self, union_cycle_schema):
        tree = build(union_cycle_schema, "search")
        assert tree.class_names == [
            "SearchProjectionRoot",
            "Search_ShowProjection",
            "Search_MovieProjection",
            "Search_Movie_RelatedProjection",
            "Search_Movie_Related_VideoProjection",
            "Search_Movie_Related_Video_ShowProjection",
            "Search_Movie_Related_Video_MovieProjection",
        ]
        assert tree.find("Search_Movie_Related_VideoProjection").back_reference
        assert not tree.find("Search_Movie_Related_Video_ShowProjection").back_reference
        assert tree.find("Search_Movie_Related_Video_MovieProjection").back_reference

    def test_mutual_recursion_terminates(self):
        tree = build(
            """
            type Query { author: Author }
            type Author { name: String books: [Book] }
            type Book { title: String author: Author }
            """,
            "author",
        )
        assert tree.class_names == [
            "AuthorProjectionRoot",
            "Author_BooksProjection",
            "Author_Books_AuthorProjection",
        ]
        back = tree.nodes[2]
        assert back.back_reference
        assert [link.target_class_name for link in back.links] == ["Author_BooksProjection"]


# =============================================================================
# Polymorphism
# =============================================================================


class TestFragments:
    """Tests for interface and union fragments."""

    @pytest.fixture
    def interface_schema(self):
        return """
            type Query { search(title: String): [Show] }
            interface Show { title: String }
            type Movie implements Show { title: String duration: Int }
            type Series implements Show { title: String episodes: Int }
        """

    def test_interface_fragments(self, interface_schema):
        tree = build(interface_schema, "search")
        assert tree.class_names == [
            "SearchProjectionRoot",
            "Search_MovieProjection",
            "Search_SeriesProjection",
        ]
        assert tree.root.member_names == ["title", "onMovie", "onSeries"]

    def test_fragment_excludes_interface_fields(self, interface_schema):
        tree = build(interface_schema, "search")
        movie = tree.find("Search_MovieProjection")
        series = tree.find("Search_SeriesProjection")
        assert movie.member_names == ["duration"]
        assert series.member_names == ["episodes"]
        assert movie.is_fragment
        assert movie.type_name == "Movie"

    def test_interface_fragment_on_sub_type(self):
        tree = build(
            """
            type Query { search(title: String): [Result] }
            type Result { show: Show }
            interface Show { title: String }
            type Movie implements Show { title: String duration: Int }
            type Series implements Show { title: String episodes: Int }
            """,
            "search",
        )
        assert tree.class_names == [
            "SearchProjectionRoot",
            "Search_ShowProjection",
            "Search_Show_MovieProjection",
            "Search_Show_SeriesProjection",
        ]
        assert "title" in tree.nodes[1].member_names
        assert tree.nodes[2].member_names == ["duration"]
        assert tree.nodes[3].root_class_name == "SearchProjectionRoot"
        assert tree.nodes[3].parent_class_name == "Search_ShowProjection"

    def test_union_fragments(self):
        tree = build(
            """
            type Query { search: [Result] }
            union Result = Movie | Actor
            type Movie { title: String }
            type Actor { name: String }
            """,
            "search",
        )
        assert tree.class_names == [
            "SearchProjectionRoot",
            "Search_MovieProjection",
            "Search_ActorProjection",
        ]
        assert tree.root.member_names == ["onMovie", "onActor"]
        assert tree.nodes[1].member_names == ["title"]
        assert tree.nodes[2].member_names == ["name"]

    def test_union_fragment_on_sub_type(self):
        tree = build(
            """
            type Query { search(title: String): [Result] }
            type Result { result: SearchResult }
            union SearchResult = Movie | Actor
            type Movie { title: String }
            type Actor { name: String }
            """,
            "search",
        )
        assert tree.class_names == [
            "SearchProjectionRoot",
            "Search_ResultProjection",
            "Search_Result_MovieProjection",
            "Search_Result_ActorProjection",
        ]
        assert tree.nodes[1].member_names == ["onMovie", "onActor"]
        assert tree.nodes[3].root_class_name == "SearchProjectionRoot"

    def test_fragments_share_parent_depth(self):
        tree = build(
            """
            type Query { search: [Result] }
            union Result = Movie | Actor
            type Movie { title: String }
            type Actor { name: String }
            """,
            "search",
        )
        assert [node.depth for node in tree] == [0, 0, 0]


# =============================================================================
# Depth ceiling
# =============================================================================


class TestMaxDepth:
    """Tests for max_depth truncation."""

    def test_max_depth_two(self, movies_schema):
        tree = build(movies_schema, "movies", max_depth=2)
        assert tree.class_names == [
            "MoviesProjectionRoot",
            "Movies_RatingProjection",
            "Movies_Rating_ReviewProjection",
            "Movies_ActorsProjection",
            "Movies_Actors_AgentProjection",
        ]

    def test_node_at_ceiling_keeps_leaf_fields(self, movies_schema):
        tree = build(movies_schema, "movies", max_depth=2)
        agent = tree.find("Movies_Actors_AgentProjection")
        assert agent.member_names == ["name"]
        assert agent.truncated

    def test_max_depth_one(self, movies_schema):
        tree = build(movies_schema, "movies", max_depth=1)
        assert tree.class_names == [
            "MoviesProjectionRoot",
            "Movies_RatingProjection",
            "Movies_ActorsProjection",
        ]

    def test_unlimited_depth(self, movies_schema):
        tree = build(movies_schema, "movies")
        assert "Movies_Actors_Agent_AddressProjection" in tree.class_names
        assert not any(node.truncated for node in tree)


# =============================================================================
# Naming modes
# =============================================================================


class TestNaming:
    """Tests for naming inside the builder."""

    def test_short_names(self):
        tree = build(
            """
            type Query { movies: [Movie] }
            type Movie { title: String actors: [Actor] }
            type Actor { name: String age: Int movies: [Movie] }
            """,
            "movies",
            short=True,
        )
        assert tree.class_names == [
            "MoviesProjectionRoot",
            "Movies_ActorsProjection",
            "Mo_Ac_MoviesProjection",
        ]

    def test_reserved_names_on_root(self):
        tree = build(
            """
            type Query { weirdType: WeirdType }
            type WeirdType { _: String root: String parent: String import: String }
            """,
            "weirdType",
        )
        assert tree.class_names == ["WeirdTypeProjectionRoot"]
        assert tree.root.member_names == ["__", "_root", "_parent", "_import"]

    def test_reserved_names_on_sub_projection(self):
        tree = build(
            """
            type Query { normalType: NormalType }
            type NormalType { weirdType: WeirdType }
            type WeirdType { _: String root: String parent: String import: String }
            """,
            "normalType",
        )
        assert len(tree) == 2
        weird = tree.find("NormalType_WeirdTypeProjection")
        assert weird.member_names == ["__", "_root", "_parent", "_import"]

    def test_deterministic_across_runs(self, union_cycle_schema):
        first = build(union_cycle_schema, "search")
        second = build(union_cycle_schema, "search")
        assert first.class_names == second.class_names


class TestErrors:
    """Tests for dangling references."""

    def test_unknown_field_type(self):
        with pytest.raises(UnresolvedTypeReference) as exc_info:
            build(
                """
                type Query { movie: Movie }
                type Movie { rating: Rating }
                """,
                "movie",
            )
        assert exc_info.value.type_name == "Rating"
        assert exc_info.value.path == ("movie", "rating")
        assert "movie.rating" in str(exc_info.value)

    def test_unknown_return_type(self):
        with pytest.raises(UnresolvedTypeReference):
            build("type Query { movie: Movie }", "movie")

    def test_unknown_union_member(self):
        with pytest.raises(UnresolvedTypeReference) as exc_info:
            build(
                """
                type Query { search: [Result] }
                union Result = Movie | Trailer
                type Movie { title: String }
                """,
                "search",
            )
        assert exc_info.value.type_name == "Trailer"
        assert exc_info.value.path == ("search", "Trailer")
