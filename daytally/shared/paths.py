# daytally/shared/paths.py
"""Addresses of ledger data inside the hierarchical store."""

FORBIDDEN_SEGMENT_CHARS = set("/.$#[]")


def join_path(*segments: str) -> str:
    """Join path segments, rejecting ones the store cannot address."""
    cleaned = []
    for segment in segments:
        segment = str(segment)
        if not segment or FORBIDDEN_SEGMENT_CHARS.intersection(segment):
            raise ValueError(f"Invalid store path segment: {segment!r}")
        cleaned.append(segment)
    return "/".join(cleaned)


def day_path(user_id: str, day: str) -> str:
    return join_path("users", user_id, "days", day, "activities")


def activity_path(user_id: str, day: str, activity_id: str) -> str:
    return join_path("users", user_id, "days", day, "activities", activity_id)
