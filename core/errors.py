class RelayError(Exception):
    """Base class for errors raised while relaying a LINE event."""


class ConfigMissing(RelayError):
    def __init__(self, missing: list[str]):
        self.missing = list(missing)
        super().__init__(f"Missing required environment variables: {', '.join(self.missing)}")


class WebhookRejected(RelayError):
    """The request never reaches the dispatcher; answered with 200 and an error body."""


class SignatureInvalid(WebhookRejected):
    pass


class PayloadUnreadable(WebhookRejected):
    pass


class DispatchSetupFailure(RelayError):
    pass


class CompletionFailure(RelayError):
    pass


class ReplyFailure(RelayError):
    pass
