class AppError(Exception):
    """Base error carrying the HTTP status it maps to"""

    status_code = 500

    def __init__(self, message: str, status_code: int = None, **extra):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.extra = extra


class ValidationError(AppError):
    status_code = 400


class InvalidTransitionError(ValidationError):
    def __init__(self, kind: str, current, target):
        super().__init__(
            f"Cannot change {kind} status from '{_value(current)}' "
            f"to '{_value(target)}'",
            current=_value(current),
            requested=_value(target),
        )


class ContestNotActiveError(ValidationError):
    def __init__(self, contest_id: int):
        super().__init__(
            "Voting is not active for this contest", contest_id=contest_id
        )


class DuplicateVoteError(AppError):
    status_code = 400

    def __init__(self, same_target: bool):
        if same_target:
            message = "You have already voted for this model in this contest"
        else:
            message = (
                "You have already voted in this contest. "
                "You can only vote for one model per contest."
            )
        super().__init__(message, same_target=same_target)
        self.same_target = same_target


class ConflictError(AppError):
    status_code = 409


class WinnerTieError(ConflictError):
    def __init__(self, candidates: list):
        super().__init__(
            "Multiple entries are tied for first place; "
            "choose the winning entry",
            candidates=candidates,
        )
        self.candidates = candidates


class NotFoundError(AppError):
    status_code = 404


class EntryNotFoundError(NotFoundError):
    def __init__(self, message="Model entry not found in this contest"):
        super().__init__(message)


class AuthenticationError(AppError):
    status_code = 401


class AuthorizationError(AppError):
    status_code = 403


class ExternalServiceError(AppError):
    status_code = 502


class WebhookSignatureError(ExternalServiceError):
    status_code = 400


def _value(status):
    return getattr(status, "value", status)
