"""
Local hosting launcher.

Runs the Streamlit app bound to the configured host and port, under the
configured URL prefix, e.g. http://localhost:3006/YAiFinanzas/.
"""

import subprocess
import sys
from pathlib import Path
from typing import Optional

import structlog

from household_budget.config import ServerSettings, get_settings


logger = structlog.get_logger(__name__)

DEFAULT_APP_PATH = Path(__file__).resolve().parent / "ui" / "app.py"


def build_streamlit_command(
    server_settings: ServerSettings,
    app_path: Path = DEFAULT_APP_PATH,
) -> list[str]:
    """Command line that serves the app with the given settings."""
    command = [
        sys.executable, "-m", "streamlit", "run", str(app_path),
        "--server.port", str(server_settings.port),
        "--server.address", server_settings.host,
    ]
    if server_settings.base_path:
        command += ["--server.baseUrlPath", server_settings.base_path]
    return command


def app_url(server_settings: ServerSettings) -> str:
    url = f"http://{server_settings.host}:{server_settings.port}/"
    if server_settings.base_path:
        url += f"{server_settings.base_path}/"
    return url


def main(argv: Optional[list[str]] = None) -> int:
    """Entry point of the `household-budget-serve` script."""
    argv = sys.argv[1:] if argv is None else argv
    app_path = Path(argv[0]) if argv else DEFAULT_APP_PATH
    if not app_path.exists():
        logger.error("app_not_found", path=str(app_path))
        return 1

    server_settings = get_settings().server
    command = build_streamlit_command(server_settings, app_path)
    logger.info("serving", url=app_url(server_settings))

    try:
        return subprocess.run(command).returncode
    except KeyboardInterrupt:
        return 0


if __name__ == "__main__":
    sys.exit(main())
