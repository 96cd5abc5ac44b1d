from enum import StrEnum


class Behavior(StrEnum):
    """What a deque does when an element is pushed while it is full."""

    # Reject the new element and hand it back to the caller.
    SATURATING = "saturating"
    # Evict the element at the opposite end to make room.
    WRAPPING = "wrapping"

    @classmethod
    def parse(cls, value: "Behavior | str") -> "Behavior":
        """Returns the member matching ``value``, ignoring case.

        Raises:
            ValueError: If ``value`` names no known behavior.
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as e:
            known = ", ".join(member.value for member in cls)
            err_msg = f"Unknown overflow behavior '{value}'. Expected one of: {known}."
            raise ValueError(err_msg) from e
