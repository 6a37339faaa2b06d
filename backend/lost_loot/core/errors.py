class GameError(Exception):
    """Base for every failure the game core reports to its caller."""

    title = "Game Error"
    status_code = 400

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class TeamNotFound(GameError):
    title = "Team Not Found"
    status_code = 404

    def __init__(self, detail: str = "No active game session found for this team.") -> None:
        super().__init__(detail)


class CheckpointUnavailable(GameError):
    title = "Checkpoint Not Available"
    status_code = 400


class GameNotCompletable(GameError):
    title = "Game Not Completable"
    status_code = 400

    def __init__(
        self,
        detail: str = "Not enough checkpoints or keys have been collected to end the game.",
    ) -> None:
        super().__init__(detail)


class PersistenceFailure(GameError):
    """The durable store could not be read or written.

    The detail is fixed so infrastructure errors never reach the caller; the
    original exception is chained as ``__cause__`` and logged by the store.
    """

    title = "Internal Server Error"
    status_code = 500

    def __init__(self, detail: str = "An unexpected internal server error occurred.") -> None:
        super().__init__(detail)
