"""Error hierarchy. All package errors inherit from ReactiveContextError."""


class ReactiveContextError(Exception):
    """Base error for reactive_context."""


class FieldCollisionError(ReactiveContextError, TypeError):
    """A field name is already taken on the host (field, attribute or method)."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Field '{name}' already exists")
        self.name = name
