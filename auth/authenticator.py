"""
auth/authenticator.py
=====================
Browser login that produces a session-cookie file.

Drives a headless Chromium through Playwright: open the login page, type the
credentials, wait for the logged-in landing page, then dump the browser's
cookies.  The session file is base64 of a JSON list of cookies, each with its
``name`` field renamed to ``key``:

    [{"key": "c_user", "value": "...", "domain": ".facebook.com", ...}, ...]

Credentials come from LOGIN_EMAIL / LOGIN_PASSWORD (or FB_EMAIL / FB_PASS)
in .env.  Two-factor authentication is not supported.
"""
from __future__ import annotations

import base64
import json
from pathlib import Path
from typing import List, Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright.async_api import async_playwright

from config.settings import settings
from utils.logger import get_logger, log_success

log = get_logger(__name__)

EMAIL_SELECTOR = "#email"
PASSWORD_SELECTOR = "#pass"
LOGIN_BUTTON_SELECTOR = "button[name='login']"
# Only rendered once the login went through
LOGGED_IN_SELECTOR = "div[role=main]"


class AuthenticatorError(Exception):
    """Raised when the login cannot even be attempted (e.g. no credentials)."""


def encode_session(cookies: List[dict]) -> bytes:
    """Return the session-file bytes for a list of browser cookies."""
    renamed = [{"key": cookie["name"], **{k: v for k, v in cookie.items() if k != "name"}} for cookie in cookies]
    return base64.b64encode(json.dumps(renamed, separators=(",", ":")).encode("utf-8"))


def load_session(path: Optional[Path] = None) -> List[dict]:
    """Decode a session file written by :func:`authenticate`."""
    path = Path(path) if path is not None else settings.SESSION_FILE
    return json.loads(base64.b64decode(path.read_bytes()).decode("utf-8"))


async def authenticate(
    email: Optional[str] = None,
    password: Optional[str] = None,
    session_file: Optional[Path] = None,
    login_url: Optional[str] = None,
    headless: Optional[bool] = None,
) -> bool:
    """Log in through a browser and write the session file.

    Returns True once the file is written.  Browser failures are logged and
    reported as False; the browser is closed either way.

    Raises
    ------
    AuthenticatorError
        If no email or password is configured.
    """
    email = email or settings.LOGIN_EMAIL
    password = password or settings.LOGIN_PASSWORD
    if not email or not password:
        raise AuthenticatorError(
            "No login credentials were found. Set LOGIN_EMAIL and LOGIN_PASSWORD "
            "(or FB_EMAIL and FB_PASS) in .env."
        )

    session_file = Path(session_file) if session_file is not None else settings.SESSION_FILE
    login_url = login_url or settings.LOGIN_URL
    headless = settings.LOGIN_HEADLESS if headless is None else headless

    async with async_playwright() as playwright:
        browser = await playwright.chromium.launch(headless=headless)
        try:
            page = await browser.new_page()

            log.debug("Parsing login credentials...")
            await page.goto(login_url)
            await page.wait_for_selector(EMAIL_SELECTOR)
            await page.fill(EMAIL_SELECTOR, email)
            await page.fill(PASSWORD_SELECTOR, password)
            await page.click(LOGIN_BUTTON_SELECTOR)

            log.debug("Trying to authenticate...")
            await page.wait_for_selector(LOGGED_IN_SELECTOR)
            cookies = await page.context.cookies()

            log.debug("Writing session file...")
            session_file.parent.mkdir(parents=True, exist_ok=True)
            session_file.write_bytes(encode_session(cookies))

            log_success(log, "Session file has been created at %s!", session_file)
            return True
        except PlaywrightTimeoutError as exc:
            if LOGGED_IN_SELECTOR in str(exc):
                log.error(
                    "Invalid email address or password. If your account has 2FA enabled, "
                    "please disable it. %s",
                    exc,
                )
            else:
                log.error("Error: %s", exc)
            return False
        except PlaywrightError as exc:
            log.error("Error: %s", exc)
            return False
        finally:
            await browser.close()
