"""
auth/federation.py -- Verification of Firebase / Google ID token assertions.

The client signs in with Google through Firebase and posts the resulting ID
token to /google-auth. That token is an RS256 JWT issued by Google's secure
token service. IdentityVerifier checks it without any Google SDK:

  1. Signature -- against Google's public JWKS, fetched with httpx and cached
     for Settings.jwks_cache_seconds. A token whose kid is missing from the
     cached set forces one refresh (Google rotates keys daily).
  2. Claims -- via authlib.jose claims_options:
       iss == https://securetoken.google.com/<FIREBASE_PROJECT_ID>
       aud == FIREBASE_PROJECT_ID
       exp / iat checked by claims.validate()
       sub and email must be present.

Any failure raises UntrustedAssertion. The caller (auth/service.py) turns that
into a generic "federation failed" response -- the reason is logged only.

Picture URLs: Google encodes the avatar size in the URL path. The declared
substitution table below upgrades the default 96px crop to 384px.

Layer rule: no imports from api/, blog/, or media/. Import from core/ is
allowed -- core/ is the kernel layer.
"""

from __future__ import annotations

import logging
import time

import httpx
from authlib.jose import JsonWebKey, JsonWebToken, KeySet
from authlib.jose.errors import JoseError
from jose import JWTError
from jose import jwt as jose_jwt

from auth.models import FederatedIdentity
from core.config import get_settings
from core.errors import UntrustedAssertion

logger = logging.getLogger("inkwell.auth.federation")

_ISSUER_PREFIX = "https://securetoken.google.com/"

# Provider-specific resolution tokens in profile image URLs: low-res -> high-res.
PICTURE_RESOLUTION_UPGRADES: dict[str, str] = {"s96-c": "s384-c"}

_jwt = JsonWebToken(["RS256"])


def upgrade_picture_url(url: str) -> str:
    """Swap every known low-resolution token in url for its high-res variant."""
    for low, high in PICTURE_RESOLUTION_UPGRADES.items():
        url = url.replace(low, high)
    return url


class IdentityVerifier:
    """Verifies federated ID tokens against a trusted issuer.

    Args:
        project_id: Firebase project ID -- the expected audience.
        jwks_url:   Where the issuer publishes its signing keys.
        key_set:    Optional pre-loaded JWKS dict ({"keys": [...]}). When
                    given, no network fetch is ever made (tests, air-gapped
                    deployments).
        cache_seconds: How long a fetched key set stays fresh.
    """

    def __init__(
        self,
        project_id: str,
        jwks_url: str = "",
        key_set: dict | None = None,
        cache_seconds: int = 3600,
    ) -> None:
        self.project_id = project_id
        self.issuer = f"{_ISSUER_PREFIX}{project_id}"
        self.jwks_url = jwks_url
        self.cache_seconds = cache_seconds
        self._static = key_set is not None
        self._keys: KeySet | None = JsonWebKey.import_key_set(key_set) if key_set is not None else None
        self._fetched_at = 0.0

    @classmethod
    def from_settings(cls) -> IdentityVerifier:
        cfg = get_settings()
        return cls(
            project_id=cfg.firebase_project_id,
            jwks_url=cfg.firebase_jwks_url,
            cache_seconds=cfg.jwks_cache_seconds,
        )

    # ------------------------------------------------------------------
    # Key management
    # ------------------------------------------------------------------

    async def _fetch_keys(self) -> KeySet:
        async with httpx.AsyncClient(timeout=10.0) as client:
            resp = await client.get(self.jwks_url)
            resp.raise_for_status()
            data = resp.json()
        logger.info("Fetched %d identity provider signing keys", len(data.get("keys", [])))
        self._fetched_at = time.monotonic()
        return JsonWebKey.import_key_set(data)

    async def _get_keys(self, kid: str | None) -> KeySet:
        if self._static:
            return self._keys
        stale = time.monotonic() - self._fetched_at > self.cache_seconds
        if self._keys is None or stale:
            self._keys = await self._fetch_keys()
        elif kid and not _has_kid(self._keys, kid):
            self._keys = await self._fetch_keys()
        return self._keys

    # ------------------------------------------------------------------
    # Verification
    # ------------------------------------------------------------------

    async def verify(self, assertion: str) -> FederatedIdentity:
        """Verify an ID token and return the identity claims it carries.

        Raises:
            UntrustedAssertion: on any signature, issuer, audience, expiry or
                claim-shape failure, and when the key set cannot be fetched.
        """
        if not self.project_id:
            raise UntrustedAssertion("Federated login is not configured.")
        if not assertion:
            raise UntrustedAssertion("Missing identity assertion.")

        try:
            header = jose_jwt.get_unverified_header(assertion)
            keys = await self._get_keys(header.get("kid"))
            claims = _jwt.decode(
                assertion,
                keys,
                claims_options={
                    "iss": {"essential": True, "value": self.issuer},
                    "aud": {"essential": True, "value": self.project_id},
                    "sub": {"essential": True},
                    "exp": {"essential": True},
                    "iat": {"essential": True},
                },
            )
            claims.validate(leeway=60)
        except (JoseError, JWTError, ValueError) as exc:
            logger.warning("Identity assertion rejected: %s", exc)
            raise UntrustedAssertion("Identity assertion could not be verified.") from exc
        except httpx.HTTPError as exc:
            logger.error("Could not fetch identity provider keys: %s", exc)
            raise UntrustedAssertion("Identity provider is unavailable.") from exc

        email = claims.get("email")
        if not email:
            raise UntrustedAssertion("Identity assertion carries no email.")

        return FederatedIdentity(
            email=email,
            display_name=claims.get("name") or email.split("@")[0],
            picture_url=upgrade_picture_url(claims.get("picture") or ""),
            subject=claims["sub"],
        )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _has_kid(keys: KeySet, kid: str) -> bool:
    return any(k.kid == kid for k in keys.keys)
