from enum import Enum


class DirectiveType(Enum):
    """Cache-Control directives emitted for cached pages."""

    PUBLIC = "public"
    MAX_AGE = "max-age"
    S_MAXAGE = "s-maxage"
    STALE_WHILE_REVALIDATE = "stale-while-revalidate"
