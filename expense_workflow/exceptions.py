"""
Domain errors.

Two kinds are enough for the workflow core:

    BusinessRuleError  a precondition of the requested operation failed;
                       the message names the rule and is shown to callers.
    NotFoundError      the target id does not resolve.

Both subclass builtin exceptions so that code catching ValueError or
LookupError keeps working. Everything else (database or identity-store
failures) propagates as-is.
"""


class BusinessRuleError(ValueError):
    """A business rule rejected the requested operation."""


class NotFoundError(LookupError):
    """The requested entity does not exist."""

    def __init__(self, entity: str, entity_id) -> None:
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")
