"""Error kinds raised by the deck/card stores.

Stores raise these directly; the HTTP layer maps them to responses in
``flashdecks.main`` without re-inspecting any state.
"""


class DeckError(Exception):
    status_code = 400
    default_detail = "Bad request"

    def __init__(self, detail: str | None = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class NotFound(DeckError):
    status_code = 404
    default_detail = "Not found"


class Forbidden(DeckError):
    status_code = 403
    default_detail = "Unauthorized operation"


class InvalidName(DeckError):
    status_code = 422
    default_detail = "Invalid deck name"


class InvalidOperation(DeckError):
    status_code = 422
    default_detail = "Invalid operation"


class InvalidTarget(DeckError):
    status_code = 422
    default_detail = "Invalid user"


class Conflict(DeckError):
    status_code = 409
    default_detail = "Conflicting update, retry the request"
