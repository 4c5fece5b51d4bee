"""Test doubles shared across the test modules."""


class FakeClock:
    """Manually advanced clock, callable like time.time."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingTransport:
    """Mail transport that records documents instead of sending them."""

    def __init__(self, fail_on: int = 0, error: Exception = None):
        self.sent = []
        self.attempts = 0
        self.fail_on = fail_on
        self.error = error or ConnectionRefusedError("SMTP server unreachable")

    def send(self, document):
        self.attempts += 1
        if self.fail_on and self.attempts >= self.fail_on:
            raise self.error
        self.sent.append(document)


def fetch_token(client) -> str:
    response = client.get("/api/csrf-token")
    assert response.status_code == 200
    return response.json()["csrfToken"]
