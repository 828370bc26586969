# google calendar service: oauth2 sign-in/sign-out and read-only event listing
# tokens live encrypted in the oauth_tokens table, events are never written back to google
#
# oauth flow:
#   1. create_authorization_url stores a single-use state in oauth_states
#   2. exchange_code consumes that state before trading the code for tokens
#   3. every call to google goes through _request so network failures surface as GoogleCalendarError

import base64
import hashlib
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional
from urllib.parse import quote, urlencode

import httpx
from cryptography.fernet import Fernet, InvalidToken
from fastapi import Depends

from practice_admin.config import settings
from practice_admin.models.calendar import GoogleCalendarEvent, GoogleConnectionStatus
from practice_admin.services.backend import BackendClient, Filter, eq, get_backend

logger = logging.getLogger(__name__)

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"  # noqa: S105 - oauth endpoint url
GOOGLE_REVOKE_URL = "https://oauth2.googleapis.com/revoke"
GOOGLE_CALENDAR_API = "https://www.googleapis.com/calendar/v3"
GOOGLE_CALENDAR_SCOPES = ["https://www.googleapis.com/auth/calendar.readonly"]

PROVIDER = "google"
UNTITLED_EVENT = "אירוע ללא כותרת"
REFRESH_MARGIN = timedelta(minutes=5)
STATE_TTL = timedelta(minutes=10)


class GoogleCalendarError(Exception):
    """the calendar provider rejected a request or could not be reached"""


class GoogleNotConnectedError(GoogleCalendarError):
    """no usable oauth token is stored for the provider"""


class InvalidOAuthStateError(GoogleCalendarError):
    """the callback state was never issued, already used or expired"""


# token encryption

def _cipher() -> Fernet:
    key = settings.TOKEN_ENCRYPTION_KEY
    if not key:
        # derive a valid fernet key from the jwt secret when none is configured
        key = base64.urlsafe_b64encode(hashlib.sha256(settings.JWT_SECRET.encode()).digest()).decode()
    return Fernet(key.encode())


def encrypt_token(token: Optional[str]) -> Optional[str]:
    if not token:
        return None
    return _cipher().encrypt(token.encode()).decode()


def decrypt_token(token: Optional[str]) -> Optional[str]:
    if not token:
        return None
    return _cipher().decrypt(token.encode()).decode()


class GoogleCalendarService:
    """oauth token lifecycle and event reads against the google calendar api"""

    def __init__(self, backend: BackendClient, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.backend = backend
        self._transport = transport

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            async with httpx.AsyncClient(
                transport=self._transport, timeout=settings.GOOGLE_API_TIMEOUT_SECONDS,
            ) as client:
                return await client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"Google request {method} {url} failed: {e!r}")
            raise GoogleCalendarError("Google Calendar is unreachable") from e

    # oauth

    def build_authorization_url(self, state: str) -> str:
        if not settings.GOOGLE_CLIENT_ID:
            raise GoogleCalendarError("Google Calendar is not configured")
        params = {
            "client_id": settings.GOOGLE_CLIENT_ID,
            "redirect_uri": settings.GOOGLE_REDIRECT_URI,
            "response_type": "code",
            "scope": " ".join(GOOGLE_CALENDAR_SCOPES),
            "access_type": "offline",
            "prompt": "consent",
            "state": state,
        }
        return f"{GOOGLE_AUTH_URL}?{urlencode(params)}"

    async def create_authorization_url(self) -> str:
        """consent url with a fresh state recorded for the callback to check"""
        state = secrets.token_urlsafe(24)
        url = self.build_authorization_url(state)
        await self.backend.insert("oauth_states", {
            "provider": PROVIDER,
            "state": state,
            "expires_at": (datetime.now(timezone.utc) + STATE_TTL).isoformat(),
        })
        return url

    async def _consume_state(self, state: str):
        used = await self.backend.delete("oauth_states", [eq("provider", PROVIDER), eq("state", state)])
        # expired states are dropped on every callback
        await self.backend.delete("oauth_states", [Filter("expires_at", "lt", datetime.now(timezone.utc).isoformat())])
        if not used:
            raise InvalidOAuthStateError("Unknown or already used OAuth state")
        if datetime.fromisoformat(used[0]["expires_at"]) < datetime.now(timezone.utc):
            raise InvalidOAuthStateError("OAuth state expired, start the sign-in again")

    async def exchange_code(self, code: str, state: str) -> dict:
        """trade an authorization code for tokens and store them"""
        await self._consume_state(state)
        response = await self._request(
            "POST",
            GOOGLE_TOKEN_URL,
            data={
                "code": code,
                "client_id": settings.GOOGLE_CLIENT_ID,
                "client_secret": settings.GOOGLE_CLIENT_SECRET,
                "redirect_uri": settings.GOOGLE_REDIRECT_URI,
                "grant_type": "authorization_code",
            },
        )
        if response.status_code != 200:
            logger.error(f"Token exchange failed: {response.text}")
            raise GoogleCalendarError("Failed to exchange authorization code")

        tokens = response.json()
        if not tokens.get("access_token"):
            raise GoogleCalendarError("Invalid token response")

        await self.backend.delete("oauth_tokens", [eq("provider", PROVIDER)])
        row = await self.backend.insert("oauth_tokens", {
            "provider": PROVIDER,
            "access_token": encrypt_token(tokens["access_token"]),
            "refresh_token": encrypt_token(tokens.get("refresh_token")),
            "expires_at": _expiry(tokens.get("expires_in", 3600)),
            "scope": tokens.get("scope", " ".join(GOOGLE_CALENDAR_SCOPES)),
        })
        logger.info("Google Calendar connected")
        return row

    async def _stored_row(self) -> Optional[dict]:
        rows = await self.backend.fetch("oauth_tokens", [eq("provider", PROVIDER)], limit=1)
        return rows[0] if rows else None

    async def _stored_token(self) -> dict:
        """stored token row with decrypted tokens"""
        row = await self._stored_row()
        if row is None:
            raise GoogleNotConnectedError("Google Calendar is not connected")
        try:
            row["access_token"] = decrypt_token(row.get("access_token"))
            row["refresh_token"] = decrypt_token(row.get("refresh_token"))
        except InvalidToken:
            logger.warning("Stored Google token cannot be decrypted with the current key")
            raise GoogleNotConnectedError("Google Calendar session is unreadable, sign in again")
        return row

    async def get_valid_access_token(self) -> str:
        """stored access token, refreshed when it expires within five minutes"""
        token = await self._stored_token()

        expires_at = datetime.fromisoformat(token["expires_at"])
        if expires_at > datetime.now(timezone.utc) + REFRESH_MARGIN:
            return token["access_token"]

        if not token.get("refresh_token"):
            raise GoogleNotConnectedError("Google Calendar session expired, sign in again")

        logger.info("Google Calendar token expired, refreshing")
        response = await self._request(
            "POST",
            GOOGLE_TOKEN_URL,
            data={
                "client_id": settings.GOOGLE_CLIENT_ID,
                "client_secret": settings.GOOGLE_CLIENT_SECRET,
                "refresh_token": token["refresh_token"],
                "grant_type": "refresh_token",
            },
        )
        if response.status_code != 200:
            logger.error(f"Token refresh failed: {response.text}")
            raise GoogleNotConnectedError("Google Calendar session expired, sign in again")

        tokens = response.json()
        access_token = tokens.get("access_token")
        if not access_token:
            raise GoogleCalendarError("No access token in refresh response")

        await self.backend.update_one("oauth_tokens", token["id"], {
            "access_token": encrypt_token(access_token),
            "expires_at": _expiry(tokens.get("expires_in", 3600)),
        })
        return access_token

    async def sign_out(self) -> bool:
        """revoke and forget the stored token, False when nothing was connected"""
        if await self._stored_row() is None:
            return False

        try:
            token = await self._stored_token()
            response = await self._request("POST", GOOGLE_REVOKE_URL, params={"token": token["access_token"]})
            if response.status_code != 200:
                logger.warning(f"Token revoke returned {response.status_code}: {response.text}")
        except GoogleCalendarError as e:
            # the token is dropped locally either way
            logger.warning(f"Token revoke skipped: {e}")

        await self.backend.delete("oauth_tokens", [eq("provider", PROVIDER)])
        logger.info("Google Calendar disconnected")
        return True

    async def is_connected(self) -> bool:
        return await self._stored_row() is not None

    async def status(self) -> GoogleConnectionStatus:
        row = await self._stored_row()
        if row is None:
            return GoogleConnectionStatus(connected=False)
        return GoogleConnectionStatus(
            connected=True,
            calendarId=settings.GOOGLE_CALENDAR_ID,
            expiresAt=row.get("expires_at"),
        )

    # events

    async def list_events(
        self,
        time_min: datetime,
        time_max: datetime,
        calendar_id: Optional[str] = None,
    ) -> list[GoogleCalendarEvent]:
        """single (expanded) events between time_min and time_max, ordered by start"""
        access_token = await self.get_valid_access_token()
        calendar_id = calendar_id or settings.GOOGLE_CALENDAR_ID

        response = await self._request(
            "GET",
            f"{GOOGLE_CALENDAR_API}/calendars/{quote(calendar_id, safe='')}/events",
            params={
                "timeMin": time_min.isoformat(),
                "timeMax": time_max.isoformat(),
                "singleEvents": "true",
                "orderBy": "startTime",
            },
            headers={"Authorization": f"Bearer {access_token}"},
        )
        if response.status_code == 401:
            raise GoogleNotConnectedError("Google Calendar rejected the stored token")
        if response.status_code != 200:
            logger.error(f"Failed to list calendar events: {response.status_code} {response.text}")
            raise GoogleCalendarError(f"Google Calendar API error: {response.status_code}")

        items = response.json().get("items", [])
        logger.info(f"Received {len(items)} events from Google Calendar")
        return [
            GoogleCalendarEvent(
                id=item["id"],
                summary=item.get("summary") or UNTITLED_EVENT,
                description=item.get("description") or "",
                start=item.get("start", {}),
                end=item.get("end", {}),
                status=item.get("status") or "confirmed",
                syncStatus="google-only",
            )
            for item in items
        ]


def _expiry(expires_in: int) -> str:
    return (datetime.now(timezone.utc) + timedelta(seconds=int(expires_in))).isoformat()


async def get_google_calendar(backend: BackendClient = Depends(get_backend)) -> GoogleCalendarService:
    """dependency injection for the google calendar service"""
    return GoogleCalendarService(backend)
