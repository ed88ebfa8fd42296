"""
Identity provider bridge (Firebase Authentication).

The Firebase Admin app is process-wide state: ``init_identity_verifier`` runs
once from the application lifespan and ``get_identity_verifier`` hands the
same verifier to request handlers as a FastAPI dependency.
"""
import logging
from typing import Optional

import firebase_admin
from firebase_admin import auth as firebase_auth, credentials
from starlette.concurrency import run_in_threadpool

from foodloop.config import Settings, get_settings
from foodloop.errors import AuthenticationInvalid, Internal

logger = logging.getLogger(__name__)


class IdentityVerifier:
    """Turns a bearer token into a verified email address"""

    @property
    def is_available(self) -> bool:
        return True

    async def verify(self, token: str) -> str:
        raise NotImplementedError


class FirebaseIdentityVerifier(IdentityVerifier):
    def __init__(self, settings: Settings):
        self._app: Optional[firebase_admin.App] = None
        if not settings.FIREBASE_CREDENTIALS_PATH:
            return

        try:
            self._app = firebase_admin.get_app()
        except ValueError:
            options = {"projectId": settings.FIREBASE_PROJECT_ID} if settings.FIREBASE_PROJECT_ID else None
            self._app = firebase_admin.initialize_app(
                credentials.Certificate(settings.FIREBASE_CREDENTIALS_PATH),
                options,
            )
        logger.info("Firebase identity verifier initialized")

    @property
    def is_available(self) -> bool:
        return self._app is not None

    async def verify(self, token: str) -> str:
        if self._app is None:
            raise Internal("Identity provider not configured: FIREBASE_CREDENTIALS_PATH is not set")

        try:
            # verify_id_token may fetch Google's public certificates, so keep it off the event loop
            decoded = await run_in_threadpool(firebase_auth.verify_id_token, token, self._app)
        except firebase_auth.CertificateFetchError as e:
            logger.error(f"Could not fetch identity provider certificates: {e}")
            raise Internal("Identity provider unavailable")
        except (firebase_auth.InvalidIdTokenError, ValueError) as e:
            logger.info(f"Token verification failed: {e}")
            raise AuthenticationInvalid()

        email = decoded.get("email")
        if not email:
            raise AuthenticationInvalid("No email found in authentication token")
        return email


_verifier: Optional[IdentityVerifier] = None


def init_identity_verifier(settings: Optional[Settings] = None) -> IdentityVerifier:
    """Create the process-wide verifier; later calls return the existing one"""
    global _verifier
    if _verifier is None:
        _verifier = FirebaseIdentityVerifier(settings or get_settings())
        if not _verifier.is_available:
            logger.warning("FIREBASE_CREDENTIALS_PATH not set - authenticated routes will fail")
    return _verifier


def get_identity_verifier() -> IdentityVerifier:
    """Dependency for the identity verifier"""
    if _verifier is None:
        return init_identity_verifier()
    return _verifier
