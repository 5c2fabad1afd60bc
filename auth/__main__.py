"""Run the browser login: ``python -m auth``."""
import asyncio
import sys

from auth.authenticator import AuthenticatorError, authenticate
from utils.logger import get_logger

log = get_logger("auth")

if __name__ == "__main__":
    try:
        ok = asyncio.run(authenticate())
    except AuthenticatorError as exc:
        log.error("Configuration error: %s", exc)
        sys.exit(1)
    sys.exit(0 if ok else 1)
