ExtraInfoType = dict[str, str | None]


class ServerError(Exception):
    """A request error from the Prompt Library server."""

    def __init__(self, message: str, extra_info: ExtraInfoType | None = None):
        msg = message
        if extra_info:
            msg += " (" + ", ".join([f"{key}: {value}" for key, value in extra_info.items() if value is not None]) + ")"
        super().__init__(msg)


class LibraryRootMissingError(ServerError):
    """The configured library root does not exist or is not a directory."""

    def __init__(self, root: str):
        super().__init__(message="The prompt library root could not be found.", extra_info={"root": root})


class DocumentNotFoundError(ServerError):
    """A document is not part of the loaded library."""

    def __init__(self, path: str):
        super().__init__(message="The document could not be found.", extra_info={"path": path})


class InvalidDocumentPathError(ServerError):
    """A document path points outside of the library root."""

    def __init__(self, path: str, root: str):
        super().__init__(message="The document path is not inside the library.", extra_info={"path": path, "root": root})


class PromptNotFoundError(ServerError):
    """A prompt id does not match any entry of the loaded library."""

    def __init__(self, prompt_id: str, suggestion: str | None = None):
        super().__init__(message="The prompt could not be found.", extra_info={"prompt_id": prompt_id, "did you mean": suggestion})


class UnknownLintRuleError(ServerError):
    """A lint rule id was selected or ignored that does not exist."""

    def __init__(self, rules: list[str], available: list[str]):
        super().__init__(
            message="Unknown lint rule.",
            extra_info={"rules": ", ".join(sorted(rules)), "available": ", ".join(available)},
        )
