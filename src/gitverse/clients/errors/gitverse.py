ExtraInfoType = dict[str, str | None]


class ClientError(Exception):
    """An error from the GitVerse client."""

    def __init__(self, message: str, extra_info: ExtraInfoType | None = None):
        msg = message
        if extra_info:
            msg += " (" + ", ".join([f"{key}: {value}" for key, value in extra_info.items() if value is not None]) + ")"
        super().__init__(msg)


class RequestError(ClientError):
    """A request to the GitVerse API failed."""

    def __init__(self, action: str, message: str | None = None, extra_info: ExtraInfoType | None = None):
        if not extra_info:
            extra_info = {}
        super().__init__(message="A request error occured.", extra_info={"action": action, "message": message, **extra_info})


class ResourceNotFoundError(RequestError):
    """The GitVerse API does not know the requested resource."""

    def __init__(self, action: str, resource: str | None = None, extra_info: ExtraInfoType | None = None):
        if not extra_info:
            extra_info = {}
        super().__init__(
            action=action,
            message="The resource could not be found.",
            extra_info={"resource": resource, **extra_info},
        )


class SnapshotValidationError(RequestError):
    """The GitVerse API returned data that does not match the repository schema."""

    def __init__(self, action: str, message: str):
        super().__init__(action=action, message=f"The response did not match the expected schema: {message}")


class InvalidRepositoryUrlError(ClientError):
    """The URL does not point at a supported repository host."""

    def __init__(self, url: str):
        super().__init__(message="Only GitHub, GitLab and Bitbucket repository URLs can be analyzed.", extra_info={"url": url})
