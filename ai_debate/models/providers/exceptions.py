"""Provider-level exceptions."""


class ProviderInitError(Exception):
    """Raised when a provider client cannot be constructed."""

    def __init__(self, provider: str, detail: str):
        self.provider = provider
        self.detail = detail
        super().__init__(f"{provider}: {detail}")
