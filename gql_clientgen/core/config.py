"""Configuration for a generation run."""

from dataclasses import dataclass, field

from .errors import InvalidDepthConfiguration


@dataclass
class CodeGenConfig:
    """Options consumed by the generation core and the emitter."""

    # Projection settings
    max_projection_depth: int | None = None  # None means unlimited
    short_projection_names: bool = False

    # What to generate
    generate_data_types: bool = True
    generate_client_api: bool = True

    # Operation selection; None or an empty set selects every operation
    include_queries: set[str] | None = None
    include_mutations: set[str] | None = None
    include_subscriptions: set[str] | None = None

    # Scalar name -> dotted Python type, e.g. {"Long": "int"}
    type_mapping: dict[str, str] = field(default_factory=dict)

    # Emitter settings
    package_name: str = "generated"

    def validate(self):
        """Reject settings that cannot produce a finite projection graph.

        Raises:
            InvalidDepthConfiguration: if max_projection_depth is not a
                positive integer (bool is rejected too)
        """
        depth = self.max_projection_depth
        if depth is None:
            return
        if isinstance(depth, bool) or not isinstance(depth, int) or depth <= 0:
            raise InvalidDepthConfiguration(depth)

    def includes(self, operation_type: str) -> set[str] | None:
        """Return the explicit selection for one operation type, or None for all."""
        selected = {
            "query": self.include_queries,
            "mutation": self.include_mutations,
            "subscription": self.include_subscriptions,
        }[operation_type]
        return set(selected) if selected else None
