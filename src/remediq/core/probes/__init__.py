from .readiness import DEFAULT_CREDENTIALS, DEFAULT_MARKERS, ReadinessProbe, read_credentials

__all__ = ["DEFAULT_CREDENTIALS", "DEFAULT_MARKERS", "ReadinessProbe", "read_credentials"]
