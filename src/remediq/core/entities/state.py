from collections import OrderedDict
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

ServiceLevel = Literal["not-configured", "partially-configured", "fully-configured"]
DeploymentLevel = Literal["not-deployed", "partially-deployed", "fully-deployed"]
TestingLevel = Literal["not-tested", "partially-tested", "fully-tested"]
IntegrationLevel = Literal["not-integrated", "partially-integrated", "fully-integrated"]
ResilienceLevel = Literal["not-implemented", "partially-implemented", "fully-implemented"]

# Readiness dimensions in serialization order. The first level of each is the default.
DIMENSION_LEVELS = OrderedDict(
    [
        ("github", ("not-configured", "partially-configured", "fully-configured")),
        ("vercel", ("not-configured", "partially-configured", "fully-configured")),
        ("supabase", ("not-configured", "partially-configured", "fully-configured")),
        ("stripe", ("not-configured", "partially-configured", "fully-configured")),
        ("deployment", ("not-deployed", "partially-deployed", "fully-deployed")),
        ("testing", ("not-tested", "partially-tested", "fully-tested")),
        ("integration", ("not-integrated", "partially-integrated", "fully-integrated")),
        ("resilience", ("not-implemented", "partially-implemented", "fully-implemented")),
        ("tooling", ("not-configured", "partially-configured", "fully-configured")),
    ]
)


def default_level(dimension: str) -> str:
    return DIMENSION_LEVELS[dimension][0]


class StateSnapshot(BaseModel):
    """Readiness of every external service plus the trial bookkeeping."""

    model_config = ConfigDict(frozen=True)

    github: ServiceLevel = "not-configured"
    vercel: ServiceLevel = "not-configured"
    supabase: ServiceLevel = "not-configured"
    stripe: ServiceLevel = "not-configured"
    deployment: DeploymentLevel = "not-deployed"
    testing: TestingLevel = "not-tested"
    integration: IntegrationLevel = "not-integrated"
    resilience: ResilienceLevel = "not-implemented"
    tooling: ServiceLevel = "not-configured"

    trial_number: int = Field(0, ge=0)
    consecutive_failures: int = Field(0, ge=0)
    last_action: str = "none"
