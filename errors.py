class ConfigError(Exception):
    """Raised at startup when an environment setting cannot be parsed."""


class SignalingError(Exception):
    """Base class for errors raised while handling one inbound event.

    ``code`` is what the sender sees in the ``error`` event.
    """

    code = "SignalingError"

    def __init__(self, message, event=None):
        super().__init__(message)
        self.message = message
        self.event = event

    def to_payload(self):
        return {"code": self.code, "event": self.event, "message": self.message}


class InvalidPayload(SignalingError):
    code = "InvalidPayload"


class UnknownEvent(SignalingError):
    code = "UnknownEvent"


class NotRegistered(SignalingError):
    code = "NotRegistered"


class TargetOffline(SignalingError):
    code = "TargetOffline"

    def __init__(self, user_id, event=None):
        super().__init__(f"user {user_id!r} is not connected", event)
        self.user_id = user_id

