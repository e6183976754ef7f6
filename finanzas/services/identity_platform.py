# -*- coding: utf-8 -*-
"""
Client for the external identity platform (GoTrue-compatible REST API).

Credential checks, session issuance, password recovery and identity
provisioning are all delegated to the platform. User-facing calls use the
public (anon) key; ``admin_*`` calls use the service-role key and must only
be reached from trusted internal paths.
"""

import json
from typing import Any, Dict, List, Optional

import requests
from flask import current_app
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry


class IdentityPlatformError(Exception):
    """The platform rejected a request."""

    def __init__(self, message: str, status_code: Optional[int] = None,
                 error_code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error_code = error_code

    @property
    def is_rate_limited(self) -> bool:
        return (self.status_code == 429
                or (self.error_code or "").startswith("over_")
                or "rate limit" in self.message.lower())

    def __repr__(self):
        return f"<IdentityPlatformError {self.status_code} {self.error_code}: {self.message}>"


class IdentityPlatformUnavailable(IdentityPlatformError):
    """The platform could not be reached (timeout, connection error)."""


class IdentityPlatformClient:
    """Synchronous HTTP client with retry logic for idempotent reads."""

    ADMIN_PAGE_SIZE = 1000

    def __init__(
        self,
        base_url: str,
        anon_key: Optional[str],
        service_role_key: Optional[str] = None,
        timeout: float = 10,
        max_retries: int = 2,
    ):
        self.base_url = (base_url or "").rstrip("/")
        self.anon_key = anon_key
        self.service_role_key = service_role_key
        self.timeout = timeout

        self.session = requests.Session()
        retry_strategy = Retry(
            total=max_retries,
            status_forcelist=[502, 503, 504],
            allowed_methods=["GET"],
            backoff_factor=0.5,
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)

    @classmethod
    def from_config(cls, config) -> "IdentityPlatformClient":
        return cls(
            base_url=config.get("SUPABASE_URL"),
            anon_key=config.get("SUPABASE_ANON_KEY"),
            service_role_key=config.get("SUPABASE_SERVICE_ROLE_KEY"),
            timeout=config.get("IDENTITY_TIMEOUT", 10),
        )

    # --- plumbing ---
    def _headers(self, bearer: Optional[str] = None, admin: bool = False) -> Dict[str, str]:
        key = self.service_role_key if admin else self.anon_key
        if admin and not key:
            raise IdentityPlatformError("Service role key not configured", 500, "not_configured")
        return {
            "apikey": key or "",
            "Authorization": f"Bearer {bearer or key or ''}",
            "Content-Type": "application/json",
        }

    @staticmethod
    def _error_message(data: Dict[str, Any], status_code: int) -> str:
        for field in ("msg", "error_description", "message", "error"):
            value = data.get(field)
            if isinstance(value, str) and value:
                return value
        return f"HTTP {status_code}"

    def _handle_response(self, response: requests.Response) -> Dict[str, Any]:
        try:
            data = response.json() if response.content else {}
        except json.JSONDecodeError:
            data = {"msg": response.text}

        if 200 <= response.status_code < 300:
            return data

        error_code = data.get("error_code") or data.get("code") or data.get("error")
        raise IdentityPlatformError(
            self._error_message(data, response.status_code),
            response.status_code,
            str(error_code) if error_code is not None else None,
        )

    def request(
        self,
        method: str,
        path: str,
        json_data: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        bearer: Optional[str] = None,
        admin: bool = False,
    ) -> Dict[str, Any]:
        if not self.base_url:
            raise IdentityPlatformError("Identity platform URL not configured", 500, "not_configured")
        url = f"{self.base_url}/auth/v1/{path.lstrip('/')}"
        try:
            response = self.session.request(
                method=method,
                url=url,
                json=json_data,
                params=params,
                headers=self._headers(bearer=bearer, admin=admin),
                timeout=self.timeout,
            )
        except requests.Timeout as e:
            raise IdentityPlatformUnavailable(f"Request timed out after {self.timeout}s") from e
        except requests.RequestException as e:
            raise IdentityPlatformUnavailable(f"Request failed: {e}") from e
        return self._handle_response(response)

    # --- user-facing ---
    def sign_up(self, email: str, password: str, full_name: Optional[str] = None) -> Dict[str, Any]:
        """Register an identity. Returns the user object."""
        data = self.request("POST", "signup", {
            "email": email,
            "password": password,
            "data": {"full_name": full_name} if full_name else {},
        })
        # Depending on auto-confirm the platform returns a session or a bare user
        return data.get("user") or data

    def sign_in_with_password(self, email: str, password: str) -> Dict[str, Any]:
        """Returns a session: access_token, refresh_token, expires_at, user."""
        return self.request("POST", "token", {"email": email, "password": password},
                            params={"grant_type": "password"})

    def refresh_session(self, refresh_token: str) -> Dict[str, Any]:
        return self.request("POST", "token", {"refresh_token": refresh_token},
                            params={"grant_type": "refresh_token"})

    def recover_password(self, email: str, redirect_to: Optional[str] = None) -> None:
        params = {"redirect_to": redirect_to} if redirect_to else None
        self.request("POST", "recover", {"email": email}, params=params)

    def sign_out(self, access_token: str) -> None:
        self.request("POST", "logout", bearer=access_token)

    def get_user(self, access_token: str) -> Dict[str, Any]:
        return self.request("GET", "user", bearer=access_token)

    def update_user(self, access_token: str, password: Optional[str] = None,
                    metadata: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        body: Dict[str, Any] = {}
        if password is not None:
            body["password"] = password
        if metadata is not None:
            body["data"] = metadata
        return self.request("PUT", "user", body, bearer=access_token)

    def send_magic_link(self, email: str, redirect_to: Optional[str] = None) -> None:
        """Passwordless sign-in link for an existing identity."""
        params = {"redirect_to": redirect_to} if redirect_to else None
        self.request("POST", "otp", {"email": email, "create_user": False}, params=params)

    # --- administrative ---
    def admin_list_users(self, page: int = 1, per_page: int = ADMIN_PAGE_SIZE) -> List[Dict[str, Any]]:
        data = self.request("GET", "admin/users", params={"page": page, "per_page": per_page}, admin=True)
        if isinstance(data, list):
            return data
        return data.get("users") or []

    def admin_find_user_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        """Walk the full identity list (paged) for a case-insensitive email match."""
        wanted = email.strip().lower()
        page = 1
        while True:
            users = self.admin_list_users(page=page)
            for user in users:
                if (user.get("email") or "").lower() == wanted:
                    return user
            if len(users) < self.ADMIN_PAGE_SIZE:
                return None
            page += 1

    def admin_create_user(self, email: str, full_name: Optional[str] = None) -> Dict[str, Any]:
        """Create an auto-confirmed identity with no password."""
        body: Dict[str, Any] = {"email": email, "email_confirm": True}
        if full_name:
            body["user_metadata"] = {"full_name": full_name}
        data = self.request("POST", "admin/users", body, admin=True)
        return data.get("user") or data


def init_identity_platform(app) -> IdentityPlatformClient:
    client = IdentityPlatformClient.from_config(app.config)
    app.extensions["identity_platform"] = client
    return client


def get_identity_client() -> IdentityPlatformClient:
    client = current_app.extensions.get("identity_platform")
    if client is None:
        client = init_identity_platform(current_app)
    return client
