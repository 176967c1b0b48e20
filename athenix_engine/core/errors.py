from __future__ import annotations


class InvalidInputError(ValueError):
    """Raised when an observation breaks the input contract.

    Gate rejections are never raised; they come back as ``no_trade`` results.
    """

    def __init__(self, field: str, message: str) -> None:
        super().__init__(f'{field}: {message}')
        self.field = field
        self.message = message
