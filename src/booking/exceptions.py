class StepGuardError(Exception):
    """Raised when the wizard is asked to move forward without the required selections."""
