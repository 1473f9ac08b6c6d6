'''
Load a persisted cookie set and hand it to the browser context.

Supported files:
- a JSON list of cookie records, as exported by Puppeteer or browser extensions
- a Playwright storage state (JSON object with a "cookies" key)
- a Netscape cookies.txt file
'''

import json
import logging
from http.cookiejar import LoadError, MozillaCookieJar
from pathlib import Path
from typing import Union

from playwright.async_api import BrowserContext

from .errors import CookieFileError

logger = logging.getLogger(__name__)

SAME_SITE_VALUES = {
    'strict': 'Strict',
    'lax': 'Lax',
    'none': 'None',
    'no_restriction': 'None',
}


def normalize_cookie(record: dict) -> dict:
    """Reduce an exported cookie record to the fields Playwright accepts."""
    try:
        cookie = {
            'name': str(record['name']),
            'value': str(record['value']),
            'domain': str(record['domain']),
            'path': str(record.get('path') or '/'),
        }
    except KeyError as e:
        raise CookieFileError(f"Cookie record is missing field {e}: {record!r}") from e

    # Session cookies carry no expiry; -1, 0 and session=True all mean that
    expires = record.get('expires', record.get('expirationDate'))
    if expires is not None and not record.get('session') and float(expires) > 0:
        cookie['expires'] = float(expires)
    if 'httpOnly' in record:
        cookie['httpOnly'] = bool(record['httpOnly'])
    if 'secure' in record:
        cookie['secure'] = bool(record['secure'])
    same_site = SAME_SITE_VALUES.get(str(record.get('sameSite', '')).lower())
    if same_site:
        cookie['sameSite'] = same_site
    return cookie


def _load_netscape_cookies(path: Path) -> list:
    jar = MozillaCookieJar(str(path))
    try:
        jar.load(ignore_discard=True, ignore_expires=True)
    except (LoadError, OSError) as e:
        raise CookieFileError(f"Could not parse cookie file {path}: {e}") from e
    return [
        {
            'name': c.name,
            'value': c.value or '',
            'domain': c.domain,
            'path': c.path,
            'expires': c.expires,
            'secure': c.secure,
            'httpOnly': c.has_nonstandard_attr('HttpOnly'),
        }
        for c in jar
    ]


def load_cookies(cookies_path: Union[str, Path]) -> list:
    """Read the cookie file and return Playwright-ready cookie dicts."""
    path = Path(cookies_path)
    try:
        text = path.read_text(encoding='utf-8')
    except OSError as e:
        raise CookieFileError(f"Could not read cookie file {path}: {e}") from e

    stripped = text.lstrip()
    if stripped.startswith(('[', '{')):
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise CookieFileError(f"Cookie file {path} is not valid JSON: {e}") from e
        if isinstance(data, dict):
            data = data.get('cookies')
        if not isinstance(data, list):
            raise CookieFileError(f"Cookie file {path} does not contain a list of cookies.")
        records = data
    else:
        records = _load_netscape_cookies(path)

    cookies = [normalize_cookie(record) for record in records]
    logger.info(f"Loaded {len(cookies)} cookies from {path}")
    return cookies


async def apply_cookies(context: BrowserContext, cookies: list) -> None:
    """Inject cookies into the browser context. Must run before any navigation."""
    if not cookies:
        logger.warning("Cookie set is empty; the course page will likely require a login.")
        return
    await context.add_cookies(cookies)
    logger.info(f"Applied {len(cookies)} cookies to browser context.")
