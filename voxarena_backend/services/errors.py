"""Exceptions raised by the service layer and mapped to HTTP codes by the routers."""


class PayloadValidationError(ValueError):
    """Request body failed validation (400)."""


class ConflictError(Exception):
    """Write would violate a uniqueness or reference rule (409)."""


class PersonaInUseError(ConflictError):
    """Persona is still seated in one or more debates."""

    def __init__(self, persona_id, usage_count: int):
        self.persona_id = persona_id
        self.usage_count = usage_count
        super().__init__(
            "This persona is used in one or more debates. "
            "Remove it from those debates before deleting."
        )
