from dataclasses import dataclass, field


def split_path(path: str) -> tuple[str, ...]:
    """
    Tokenize a request path into segments.

    Query string and fragment are dropped; empty segments (leading, trailing
    or doubled slashes) are ignored, so "/documents/" and "/documents" are the
    same path.
    """
    if not isinstance(path, str):
        raise ValueError("Path must be a string")
    for separator in ("?", "#"):
        path = path.split(separator, 1)[0]
    return tuple(segment for segment in path.split("/") if segment)


def is_parameter_segment(segment: str) -> bool:
    """`:id` (Express style) or `[id]` (file-route style)"""
    if segment.startswith(":"):
        return len(segment) > 1
    return segment.startswith("[") and segment.endswith("]") and len(segment) > 2


def parameter_name(segment: str) -> str:
    if segment.startswith(":"):
        return segment[1:]
    return segment[1:-1]


@dataclass(frozen=True)
class RoutePattern:
    """
    Value object for a resource path pattern such as `/documents/:id/edit`.

    A pattern matches a concrete path when both have the same number of
    segments and every literal segment is equal. Parameter segments match
    any single non-empty segment. Specificity is the number of parameter
    segments: fewer parameters means a more specific pattern.
    """

    pattern: str
    segments: tuple[str, ...] = field(init=False, repr=False)

    def __post_init__(self):
        if not isinstance(self.pattern, str) or not self.pattern.startswith("/"):
            raise ValueError(f"Route pattern must be an absolute path: {self.pattern!r}")
        object.__setattr__(self, "segments", split_path(self.pattern))

    @property
    def parameter_count(self) -> int:
        return sum(1 for segment in self.segments if is_parameter_segment(segment))

    def match(self, path: str) -> dict[str, str] | None:
        """Return extracted parameters when `path` matches, otherwise None"""
        candidate = split_path(path)
        if len(candidate) != len(self.segments):
            return None

        params: dict[str, str] = {}
        for expected, actual in zip(self.segments, candidate):
            if is_parameter_segment(expected):
                params[parameter_name(expected)] = actual
            elif expected != actual:
                return None
        return params

    def matches(self, path: str) -> bool:
        return self.match(path) is not None
