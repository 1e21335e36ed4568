from typing import Hashable


class RingError(Exception):
    """Base class for consistent hash ring errors."""


class TargetAlreadyExists(RingError):
    def __init__(self, target: Hashable):
        self.target = target
        super().__init__(f"Target '{target}' already exists.")


class TargetNotFound(RingError):
    def __init__(self, target: Hashable):
        self.target = target
        super().__init__(f"Target '{target}' does not exist.")


class InvalidLookupCount(RingError, ValueError):
    def __init__(self, requested_count: int):
        self.requested_count = requested_count
        super().__init__(f"Invalid count requested: {requested_count}")


class NoTargets(RingError):
    def __init__(self):
        super().__init__("No targets exist")
