from fantasy_disc_golf.exceptions import ExternalCallError


class FakeSmsSender:
    """Records every message instead of sending it."""

    def __init__(self, *, fail: bool = False) -> None:
        self.sent: list[tuple[str, str]] = []
        self._fail = fail

    def send(self, to_phone: str, body: str) -> str:
        if self._fail:
            raise ExternalCallError("twilio", "Twilio error (500): boom")
        self.sent.append((to_phone, body))
        return f"SM{len(self.sent):04d}"
