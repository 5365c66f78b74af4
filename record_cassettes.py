"""
Record VCR cassettes for tests/test_live.py against the real Skedda service.

Only read-only calls are recorded; nothing gets booked. Credentials come from
the environment or from `skedda configure`.
"""

import subprocess
import sys
from pathlib import Path

from rich.console import Console

from skedda_client.config import load_login_details

CASSETTE_DIR = Path(__file__).parent / "tests" / "cassettes"

console = Console()


def main() -> int:
    login = load_login_details()
    if not (login.skedda_username and login.skedda_password):
        console.print("[red]No credentials.[/red] Run `skedda configure` first.")
        return 1

    result = subprocess.run(
        [sys.executable, "-m", "pytest", "tests/test_live.py", "-m", "live", "-v"]
    )
    if result.returncode != 0:
        console.print(f"[red]Recording failed (exit {result.returncode})[/red]")
        return result.returncode

    for cassette in sorted(CASSETTE_DIR.glob("*.yaml")):
        console.print(f"recorded {cassette.relative_to(CASSETTE_DIR.parent.parent)}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
