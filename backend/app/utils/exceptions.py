class PropertyNotFoundError(Exception):
    pass


class PropertyValidationError(Exception):
    """Raised when a lead is missing the fields the property store requires."""

    def __init__(self, missing: list[str]) -> None:
        self.missing = missing
        super().__init__(f"Property is missing required fields: {', '.join(missing)}")


class ContactNotFoundError(Exception):
    pass


class ConversationNotFoundError(Exception):
    pass


class DealNotFoundError(Exception):
    pass


class ChatSessionNotFoundError(Exception):
    pass


class AnalysisError(Exception):
    pass
