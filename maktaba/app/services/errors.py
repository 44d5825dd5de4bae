class NotFoundError(ValueError):
    """A referenced record does not exist."""


class InvalidCredentialsError(ValueError):
    pass


class InactiveUserError(ValueError):
    pass


class AccountLockedError(ValueError):
    def __init__(self, minutes_left: int) -> None:
        super().__init__(f"Account locked. Try again in {minutes_left} minutes.")
        self.minutes_left = minutes_left
