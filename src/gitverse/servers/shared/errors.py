ExtraInfoType = dict[str, str | None]


class ServerError(Exception):
    """A request error from the GitVerse server."""

    def __init__(self, message: str, extra_info: ExtraInfoType | None = None):
        msg = message
        if extra_info:
            msg += " (" + ", ".join([f"{key}: {value}" for key, value in extra_info.items() if value is not None]) + ")"
        super().__init__(msg)


class RepositoryNotAnalyzedError(ServerError):
    """The repository exists but its analysis has not completed."""

    def __init__(self, repository_id: str, status: str):
        super().__init__(
            message="The repository analysis has not completed yet.",
            extra_info={"repository_id": repository_id, "status": status},
        )


class SamplingSupportRequiredError(ServerError):
    """Neither the server nor the connected client can sample."""

    def __init__(self):
        super().__init__(message="Your client does not support sampling. Sampling support is required to use the assistant tools.")
