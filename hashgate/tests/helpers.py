"""
Shared helpers for hashgate tests.
"""

TEST_SECRET = b"unit-test-site-secret"


class FakeClock:
    """Manually advanced time source for token tests."""

    def __init__(self, now: float = 1_700_000_000):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds
