import logging
import os
from typing import Dict, List, Mapping, Optional, Sequence

from dotenv import dotenv_values

from remediq.core.entities.state import DIMENSION_LEVELS

logger = logging.getLogger(__name__)

PLACEHOLDER_SUFFIX = "_here"

# Files whose presence signals progress on a dimension.
DEFAULT_MARKERS: Dict[str, List[str]] = {
    "github": [".github/workflows", ".github/config.yml"],
    "vercel": ["vercel.json", ".vercel/project.json"],
    "supabase": ["supabase/config.toml", ".env.local"],
    "stripe": ["stripe-config.json", ".env.local"],
    "deployment": [".vercel/project.json", ".vercel/output"],
    "testing": ["tests", "__tests__", "jest.config.js"],
    "resilience": [],
    "tooling": [".cursor", ".vscode", "eslint.config.mjs", "tsconfig.json"],
}

# Credentials whose presence signals integration progress.
DEFAULT_CREDENTIALS: List[str] = ["GITHUB_TOKEN", "VERCEL_TOKEN", "SUPABASE_URL", "STRIPE_SECRET_KEY"]

ENV_FILES = (".env", ".env.local")


def read_credentials(project_root: str, env_files: Sequence[str] = ENV_FILES) -> Dict[str, str]:
    """
    Collect credentials from the project's .env files and the process environment.

    Placeholder values such as "your_github_token_here" count as unset.
    """
    values: Dict[str, str] = {}
    for name in env_files:
        path = os.path.join(project_root, name)
        if os.path.isfile(path):
            values.update({k: v for k, v in dotenv_values(path).items() if v})
    values.update({k: v for k, v in os.environ.items() if v})
    return {k: v for k, v in values.items() if not v.endswith(PLACEHOLDER_SUFFIX)}


class ReadinessProbe:
    """
    Reports how far each service dimension has progressed by counting the
    marker files that exist under the project root (integration counts
    credentials instead).

    Zero markers gives the "not-" level, all of them the "fully-" level and
    anything in between the "partially-" level. Call the probe to get a mapping
    suitable as the trial loop's state provider.
    """

    def __init__(
        self,
        project_root: str = ".",
        markers: Optional[Mapping[str, List[str]]] = None,
        credentials: Optional[List[str]] = None,
    ):
        self.project_root = project_root
        self.markers = dict(DEFAULT_MARKERS)
        self.markers.update(markers or {})
        self.credentials = list(credentials if credentials is not None else DEFAULT_CREDENTIALS)

    def __call__(self) -> Dict[str, str]:
        readiness = {}
        for dimension, levels in DIMENSION_LEVELS.items():
            try:
                if dimension == "integration":
                    found, expected = self._count_credentials()
                else:
                    found, expected = self._count_markers(self.markers.get(dimension, []))
            except OSError as e:
                logger.warning("Could not probe '%s', assuming '%s': %s", dimension, levels[0], e)
                found, expected = 0, 0
            readiness[dimension] = _level(levels, found, expected)
        return readiness

    def _count_markers(self, paths: List[str]):
        found = sum(1 for p in paths if os.path.exists(os.path.join(self.project_root, p)))
        return found, len(paths)

    def _count_credentials(self):
        available = read_credentials(self.project_root)
        found = sum(1 for key in self.credentials if key in available)
        return found, len(self.credentials)


def _level(levels, found: int, expected: int) -> str:
    if expected == 0 or found == 0:
        return levels[0]
    if found < expected:
        return levels[1]
    return levels[2]
