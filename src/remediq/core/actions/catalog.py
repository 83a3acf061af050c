import logging
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from remediq.core.entities.engine import ActionCategory, ActionSpec
from remediq.core.errors import ConfigurationError

logger = logging.getLogger(__name__)

# Exploration weights per category: configuration (OAuth and setup) dominates early
# exploration, connection tests come next.
DEFAULT_CATEGORY_WEIGHTS: Dict[ActionCategory, float] = {
    ActionCategory.CONFIGURATION: 3.0,
    ActionCategory.TESTING: 2.0,
    ActionCategory.DEPLOYMENT: 1.0,
    ActionCategory.INTEGRATION: 1.0,
    ActionCategory.RESILIENCE: 1.0,
    ActionCategory.TOOLING: 1.0,
}

DEFAULT_ACTIONS: Tuple[Tuple[str, ActionCategory], ...] = (
    ("configure-github-oauth", ActionCategory.CONFIGURATION),
    ("configure-vercel-oauth", ActionCategory.CONFIGURATION),
    ("configure-supabase-oauth", ActionCategory.CONFIGURATION),
    ("configure-stripe-oauth", ActionCategory.CONFIGURATION),
    ("setup-github-actions", ActionCategory.CONFIGURATION),
    ("setup-vercel-deployment", ActionCategory.CONFIGURATION),
    ("setup-supabase-database", ActionCategory.CONFIGURATION),
    ("setup-stripe-webhooks", ActionCategory.CONFIGURATION),
    ("test-github-connection", ActionCategory.TESTING),
    ("test-vercel-connection", ActionCategory.TESTING),
    ("test-supabase-connection", ActionCategory.TESTING),
    ("test-stripe-connection", ActionCategory.TESTING),
    ("deploy-github-pages", ActionCategory.DEPLOYMENT),
    ("deploy-vercel-production", ActionCategory.DEPLOYMENT),
    ("deploy-supabase-migrations", ActionCategory.DEPLOYMENT),
    ("deploy-stripe-products", ActionCategory.DEPLOYMENT),
    ("integrate-github-vercel", ActionCategory.INTEGRATION),
    ("integrate-supabase-auth", ActionCategory.INTEGRATION),
    ("integrate-stripe-payments", ActionCategory.INTEGRATION),
    ("setup-webhook-handlers", ActionCategory.INTEGRATION),
    ("implement-circuit-breaker", ActionCategory.RESILIENCE),
    ("setup-health-checks", ActionCategory.RESILIENCE),
    ("configure-auto-scaling", ActionCategory.RESILIENCE),
    ("setup-monitoring-alerts", ActionCategory.RESILIENCE),
    ("setup-cursor-integration", ActionCategory.TOOLING),
    ("configure-debug-tools", ActionCategory.TOOLING),
    ("setup-logging-system", ActionCategory.TOOLING),
    ("implement-ci-cd-pipeline", ActionCategory.TOOLING),
)


class ActionCatalog:
    """
    Fixed, ordered list of the actions the engine may choose from.

    Declaration order matters: exploitation breaks ties in favour of the
    earliest declared action. The catalog is built once and never mutated.
    """

    def __init__(
        self,
        actions: Iterable[ActionSpec],
        category_weights: Optional[Mapping[Any, float]] = None,
    ):
        self._actions: Tuple[ActionSpec, ...] = tuple(actions)
        if not self._actions:
            raise ConfigurationError("Action catalog must contain at least one action")

        names = [spec.name for spec in self._actions]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ConfigurationError(f"Duplicate actions in catalog: {', '.join(duplicates)}")

        weights = dict(DEFAULT_CATEGORY_WEIGHTS)
        for category, weight in (category_weights or {}).items():
            try:
                weights[ActionCategory(category)] = float(weight)
            except (TypeError, ValueError) as e:
                raise ConfigurationError(f"Invalid category weight {category!r}: {weight!r}") from e

        negative = [c.value for c, w in weights.items() if w < 0]
        if negative:
            raise ConfigurationError(f"Category weights must be non-negative: {', '.join(negative)}")
        if sum(weights[spec.category] for spec in self._actions) <= 0:
            raise ConfigurationError("At least one catalog action needs a positive exploration weight")

        self._category_weights = MappingProxyType(weights)
        self._by_name = {spec.name: spec for spec in self._actions}

    @classmethod
    def from_entries(
        cls,
        entries: Iterable[Mapping[str, Any]],
        category_weights: Optional[Mapping[Any, float]] = None,
    ) -> "ActionCatalog":
        """Build a catalog from config entries like {"name": ..., "category": ...}."""
        specs = []
        for entry in entries:
            try:
                specs.append(ActionSpec(name=entry["name"], category=entry["category"]))
            except (KeyError, TypeError, ValueError) as e:
                raise ConfigurationError(f"Invalid action entry {entry!r}: {e}") from e
        return cls(specs, category_weights=category_weights)

    @property
    def actions(self) -> Tuple[ActionSpec, ...]:
        return self._actions

    @property
    def names(self) -> Tuple[str, ...]:
        return tuple(spec.name for spec in self._actions)

    @property
    def category_weights(self) -> Mapping[ActionCategory, float]:
        return self._category_weights

    def get(self, name: str) -> Optional[ActionSpec]:
        return self._by_name.get(name)

    def category_of(self, name: str) -> Optional[ActionCategory]:
        spec = self._by_name.get(name)
        return spec.category if spec else None

    def weight_of(self, name: str) -> float:
        return self._category_weights[self._by_name[name].category]

    def by_category(self, category: ActionCategory) -> List[ActionSpec]:
        return [spec for spec in self._actions if spec.category == ActionCategory(category)]

    def __iter__(self) -> Iterator[ActionSpec]:
        return iter(self._actions)

    def __len__(self) -> int:
        return len(self._actions)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def __repr__(self) -> str:
        return f"ActionCatalog({len(self._actions)} actions)"


def default_catalog(category_weights: Optional[Mapping[Any, float]] = None) -> ActionCatalog:
    """The built-in action set covering six categories across four services."""
    return ActionCatalog(
        (ActionSpec(name=name, category=category) for name, category in DEFAULT_ACTIONS),
        category_weights=category_weights,
    )
