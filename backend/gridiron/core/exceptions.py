class GridironError(Exception):
    """Base exception for the onboarding core."""

    pass


class TransportError(GridironError):
    """Raised when the persistence transport fails (network or server error)."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class AuthError(GridironError):
    """Raised when the caller is unauthenticated or does not own the subject."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class ValidationError(GridironError):
    """Raised when step data or a request payload is malformed."""

    pass


class WizardStateError(GridironError):
    """Raised when a wizard operation is invoked from the wrong step."""

    pass


class NegotiationError(GridironError):
    """Raised on an invalid restore-negotiation transition."""

    def __init__(self, state: str, action: str):
        self.state = state
        self.action = action
        super().__init__(f"Cannot {action} while restore negotiation is '{state}'")
