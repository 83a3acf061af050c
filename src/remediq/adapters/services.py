import json
import logging
import os
import shlex
import subprocess
from typing import Any, Dict, List, Mapping, Optional

import requests
from dotenv import dotenv_values, set_key
from pydantic import BaseModel, ConfigDict

from remediq.core.abstract.integrations.base_action_handler import BaseActionHandler
from remediq.core.actions.catalog import DEFAULT_ACTIONS
from remediq.core.entities.engine import ActionCategory
from remediq.core.probes.readiness import read_credentials

logger = logging.getLogger(__name__)

ENV_FILE = ".env.local"

GITHUB_WORKFLOW = """name: Deploy

on:
  push:
    branches: [ main ]
  pull_request:
    branches: [ main ]

jobs:
  deploy:
    runs-on: ubuntu-latest
    steps:
      - uses: actions/checkout@v4
      - uses: actions/setup-node@v4
        with:
          node-version: '20'
      - run: npm ci
      - run: npm run build
"""

GITHUB_CONFIG = """repository:
  has_issues: true
  has_wiki: false
  default_branch: main
"""

SUPABASE_CONFIG = """[api]
enabled = true
port = 54321

[db]
port = 54322
major_version = 15

[auth]
enabled = true
site_url = "http://localhost:3000"
"""


def _json(data: Dict[str, Any]) -> str:
    return json.dumps(data, indent=2) + "\n"


########################################################-----########################################################


class ServiceProfile(BaseModel):
    """Everything the handlers need to know about one external service."""

    model_config = ConfigDict(frozen=True)

    key: str
    label: str
    token_env: str
    placeholders: List[str]
    files: Dict[str, str]
    setup_file: str
    next_steps: List[str]


SERVICES: Dict[str, ServiceProfile] = {
    "github": ServiceProfile(
        key="github",
        label="GitHub",
        token_env="GITHUB_TOKEN",
        placeholders=["GITHUB_TOKEN", "GITHUB_USERNAME"],
        files={
            ".github/workflows/deploy.yml": GITHUB_WORKFLOW,
            ".github/config.yml": GITHUB_CONFIG,
        },
        setup_file=".github/workflows/deploy.yml",
        next_steps=[
            "Create a personal access token with the repo and workflow scopes",
            f"Set GITHUB_TOKEN and GITHUB_USERNAME in {ENV_FILE}",
        ],
    ),
    "vercel": ServiceProfile(
        key="vercel",
        label="Vercel",
        token_env="VERCEL_TOKEN",
        placeholders=["VERCEL_TOKEN", "VERCEL_ORG_ID", "VERCEL_PROJECT_ID"],
        files={
            "vercel.json": _json({"version": 2, "buildCommand": "npm run build"}),
            ".vercel/project.json": _json({"orgId": "", "projectId": ""}),
        },
        setup_file=".vercel/project.json",
        next_steps=[
            "Create a token in the Vercel dashboard under Settings > Tokens",
            f"Set VERCEL_TOKEN, VERCEL_ORG_ID and VERCEL_PROJECT_ID in {ENV_FILE}",
        ],
    ),
    "supabase": ServiceProfile(
        key="supabase",
        label="Supabase",
        token_env="SUPABASE_URL",
        placeholders=["SUPABASE_URL", "SUPABASE_ANON_KEY", "SUPABASE_SERVICE_ROLE_KEY"],
        files={"supabase/config.toml": SUPABASE_CONFIG},
        setup_file="supabase/config.toml",
        next_steps=[
            "Copy the project URL and anon key from Settings > API",
            f"Set SUPABASE_URL and SUPABASE_ANON_KEY in {ENV_FILE}",
        ],
    ),
    "stripe": ServiceProfile(
        key="stripe",
        label="Stripe",
        token_env="STRIPE_SECRET_KEY",
        placeholders=["STRIPE_SECRET_KEY", "STRIPE_PUBLISHABLE_KEY", "STRIPE_WEBHOOK_SECRET"],
        files={
            "stripe-config.json": _json(
                {"webhook_endpoint": "/api/webhooks/stripe", "events": ["checkout.session.completed"]}
            )
        },
        setup_file="stripe-config.json",
        next_steps=[
            "Copy the secret and publishable keys from Developers > API keys",
            f"Set STRIPE_SECRET_KEY and STRIPE_PUBLISHABLE_KEY in {ENV_FILE}",
        ],
    ),
}


def write_if_missing(project_root: str, relative_path: str, content: str) -> bool:
    """Write a file under the project root unless it already exists. Returns True if written."""
    path = os.path.join(project_root, relative_path)
    if os.path.exists(path):
        return False
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(content)
    return True


def add_placeholders(project_root: str, keys: List[str]) -> List[str]:
    """Append `<key>=your_<key>_here` entries for keys not yet present in the env file."""
    path = os.path.join(project_root, ENV_FILE)
    if not os.path.exists(path):
        open(path, "a", encoding="utf-8").close()

    existing = dotenv_values(path)
    added = []
    for key in keys:
        if key not in existing:
            set_key(path, key, f"your_{key.lower()}_here")
            added.append(key)
    return added


########################################################-----########################################################


class OAuthSetupHandler(BaseActionHandler):
    """Prepares a service for authenticated use: config files plus placeholder credentials."""

    def __init__(self, name: str, service: ServiceProfile, project_root: str = "."):
        super().__init__(name, ActionCategory.CONFIGURATION)
        self.service = service
        self.project_root = project_root

    def run(self) -> Dict[str, Any]:
        if self.service.token_env in read_credentials(self.project_root):
            return {"success": True, "message": f"{self.service.label} credentials already present"}

        written = [p for p, c in self.service.files.items() if write_if_missing(self.project_root, p, c)]
        added = add_placeholders(self.project_root, self.service.placeholders)
        logger.info(
            "%s OAuth prepared: %d file(s) written, %d placeholder(s) added",
            self.service.label,
            len(written),
            len(added),
        )
        return {
            "success": True,
            "message": f"{self.service.label} OAuth configuration files created",
            "files": written,
            "placeholders": added,
            "next_steps": self.service.next_steps,
        }


class ConfigFileHandler(BaseActionHandler):
    """Writes the main configuration file of one service."""

    def __init__(self, name: str, service: ServiceProfile, project_root: str = "."):
        super().__init__(name, ActionCategory.CONFIGURATION)
        self.service = service
        self.project_root = project_root

    def run(self) -> Dict[str, Any]:
        path = self.service.setup_file
        created = write_if_missing(self.project_root, path, self.service.files[path])
        state = "created" if created else "already present"
        return {"success": True, "message": f"{path} {state}", "file": path, "created": created}


class ConnectionTestHandler(BaseActionHandler):
    """
    Verifies a service's credentials with one authenticated GET.

    A missing credential fails with "<Service> token not configured" without
    touching the network; 401 and 403 responses fail as authentication errors.
    """

    def __init__(self, name: str, service: ServiceProfile, project_root: str = ".", timeout: float = 15.0):
        super().__init__(name, ActionCategory.TESTING)
        self.service = service
        self.project_root = project_root
        self.timeout = timeout

    def _request(self, credentials: Mapping[str, str]):
        """Return (url, headers) for the service, or None when a credential is missing."""
        key = self.service.key
        if key == "github":
            token = credentials.get("GITHUB_TOKEN")
            return token and ("https://api.github.com/user", {"Authorization": f"token {token}"})
        if key == "vercel":
            token = credentials.get("VERCEL_TOKEN")
            return token and ("https://api.vercel.com/v2/user", {"Authorization": f"Bearer {token}"})
        if key == "supabase":
            url, anon_key = credentials.get("SUPABASE_URL"), credentials.get("SUPABASE_ANON_KEY")
            if not (url and anon_key):
                return None
            headers = {"apikey": anon_key, "Authorization": f"Bearer {anon_key}"}
            return f"{url.rstrip('/')}/rest/v1/", headers
        if key == "stripe":
            token = credentials.get("STRIPE_SECRET_KEY")
            return token and ("https://api.stripe.com/v1/account", {"Authorization": f"Bearer {token}"})
        return None

    def run(self) -> Dict[str, Any]:
        label = self.service.label
        request = self._request(read_credentials(self.project_root))
        if not request:
            return {"success": False, "error": f"{label} token not configured"}

        url, headers = request
        try:
            response = requests.get(url, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            return {"success": False, "error": f"{label} connection error: {type(e).__name__}"}

        if response.status_code in (401, 403):
            return {
                "success": False,
                "error": f"{label} authentication failed (HTTP {response.status_code})",
                "status_code": response.status_code,
            }
        if not response.ok:
            return {
                "success": False,
                "error": f"{label} API returned HTTP {response.status_code}",
                "status_code": response.status_code,
            }
        return {"success": True, "message": f"{label} connection verified", "status_code": response.status_code}


class CommandHandler(BaseActionHandler):
    """Runs the shell command configured for an action inside the project root."""

    def __init__(
        self,
        name: str,
        category: ActionCategory,
        command: Optional[str] = None,
        project_root: str = ".",
        timeout: float = 300.0,
    ):
        super().__init__(name, category)
        self.command = command
        self.project_root = project_root
        self.timeout = timeout

    def run(self) -> Dict[str, Any]:
        if not self.command:
            return {"success": False, "error": f"{self.name} not configured"}

        try:
            completed = subprocess.run(
                shlex.split(self.command),
                cwd=self.project_root,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except subprocess.TimeoutExpired:
            return {"success": False, "error": f"{self.name} timed out after {self.timeout:g}s"}
        except OSError as e:
            return {"success": False, "error": f"{self.name} could not start: {e.strerror or e}"}

        output = (completed.stderr or completed.stdout or "").strip()
        if completed.returncode != 0:
            tail = output.splitlines()[-1] if output else "no output"
            return {
                "success": False,
                "error": f"{self.category.value} failed (exit {completed.returncode}): {tail}",
                "returncode": completed.returncode,
            }
        return {"success": True, "message": f"{self.name} completed", "returncode": 0}


########################################################-----########################################################

OAUTH_ACTIONS = {f"configure-{key}-oauth": key for key in SERVICES}
TEST_ACTIONS = {f"test-{key}-connection": key for key in SERVICES}
SETUP_ACTIONS = {
    "setup-github-actions": "github",
    "setup-vercel-deployment": "vercel",
    "setup-supabase-database": "supabase",
    "setup-stripe-webhooks": "stripe",
}


def build_default_handlers(
    project_root: str = ".",
    commands: Optional[Mapping[str, str]] = None,
    http_timeout: float = 15.0,
    command_timeout: float = 300.0,
) -> List[BaseActionHandler]:
    """
    Build one handler per default catalog action.

    Configuration and connection-test actions are handled natively; every
    other action runs the shell command configured for it, if any.
    """
    commands = commands or {}
    handlers: List[BaseActionHandler] = []
    for name, category in DEFAULT_ACTIONS:
        if name in OAUTH_ACTIONS:
            handlers.append(OAuthSetupHandler(name, SERVICES[OAUTH_ACTIONS[name]], project_root))
        elif name in SETUP_ACTIONS:
            handlers.append(ConfigFileHandler(name, SERVICES[SETUP_ACTIONS[name]], project_root))
        elif name in TEST_ACTIONS:
            handlers.append(
                ConnectionTestHandler(name, SERVICES[TEST_ACTIONS[name]], project_root, timeout=http_timeout)
            )
        else:
            handlers.append(
                CommandHandler(name, category, commands.get(name), project_root, timeout=command_timeout)
            )
    return handlers
