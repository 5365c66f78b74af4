"""Reading and storing the Skedda username/password pair."""

from __future__ import annotations

import logging
import os

from dotenv import set_key
from rich.prompt import Prompt

from skedda_client.config import AppSettings, LoginDetails, load_login_details

logger = logging.getLogger(__name__)


def save_credentials(settings: AppSettings, username: str, password: str) -> None:
    """Write the credentials env file, readable by the owner only."""
    path = settings.credentials_path
    path.parent.mkdir(parents=True, exist_ok=True)
    path.touch(mode=0o600, exist_ok=True)
    os.chmod(path, 0o600)

    set_key(path, "SKEDDA_USERNAME", username)
    set_key(path, "SKEDDA_PASSWORD", password)
    logger.info(f"Saved credentials to {path}")


def prompt_credentials(current: LoginDetails) -> tuple[str, str]:
    """Ask for username and password, keeping the stored values on empty input."""
    username = Prompt.ask("Username", default=current.skedda_username or None)
    password = Prompt.ask(
        "Password",
        password=True,
        default=current.skedda_password or None,
        show_default=False,
    )
    return (username or "").strip(), (password or "").strip()


def configure(settings: AppSettings | None = None) -> LoginDetails:
    settings = settings or AppSettings()
    username, password = prompt_credentials(load_login_details(settings))
    save_credentials(settings, username, password)
    return LoginDetails(SKEDDA_USERNAME=username, SKEDDA_PASSWORD=password)
