from .fake import FakeActionHandler, RaisingActionHandler, fake_handlers_for
from .services import (
    SERVICES,
    CommandHandler,
    ConfigFileHandler,
    ConnectionTestHandler,
    OAuthSetupHandler,
    ServiceProfile,
    build_default_handlers,
)

__all__ = [
    "SERVICES",
    "CommandHandler",
    "ConfigFileHandler",
    "ConnectionTestHandler",
    "FakeActionHandler",
    "OAuthSetupHandler",
    "RaisingActionHandler",
    "ServiceProfile",
    "build_default_handlers",
    "fake_handlers_for",
]
