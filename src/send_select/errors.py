"""Exceptions raised by send_select."""


class InvalidInputError(ValueError):
    """Caller input is unusable: wrong table type, missing id columns or a non-bool flag.

    Raised before any query is issued.
    """
