from __future__ import annotations


class PlexError(RuntimeError):
    pass


class TransportError(PlexError):
    def __init__(self, method: str, url: str, reason: str) -> None:
        super().__init__(f"Plex request {method} {url} failed: {reason}")
        self.method = method
        self.url = url


def _friendly_error_message(status_code: int) -> str:
    if status_code == 401:
        return "Authentication failed. Your Plex token may have expired."
    if status_code == 403:
        return "You don't have permission to perform this action."
    if status_code == 404:
        return "The requested resource was not found on the Plex server."
    if status_code >= 500:
        return "Plex server is experiencing issues. Please try again later."
    return f"Plex request failed with status {status_code}."


class UnexpectedStatus(PlexError):
    def __init__(self, path: str, status_code: int) -> None:
        super().__init__(f"{_friendly_error_message(status_code)} URL: {path}")
        self.path = path
        self.status_code = status_code


class PairingTimeout(PlexError):
    def __init__(self, pin_id: str, timeout_seconds: float) -> None:
        super().__init__(
            f"Plex pairing for PIN {pin_id} was not completed within {timeout_seconds:g} seconds."
        )
        self.pin_id = pin_id
        self.timeout_seconds = timeout_seconds


class SignInRejected(PlexError):
    def __init__(self, status_code: int) -> None:
        super().__init__(
            "Plex sign-in failed: username/email and password is incorrect "
            f"(status {status_code})."
        )
        self.status_code = status_code
