"""
Firebase service for Firestore and Authentication operations
"""

from __future__ import annotations
import asyncio
import json
import logging
import os
from typing import Optional, Dict, Any, Callable, List, Tuple, TypeVar

import firebase_admin
from firebase_admin import credentials, firestore, auth as firebase_auth

from devdeakin.config import settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


class FirebaseService:
    """Service for Firebase operations"""

    _instance = None
    _initialized = False

    def __new__(cls):
        """Singleton pattern to ensure only one Firebase instance"""
        if cls._instance is None:
            cls._instance = super(FirebaseService, cls).__new__(cls)
        return cls._instance

    @property
    def db(self):
        """Firestore client, initializing the Admin SDK on first use"""
        self._ensure_initialized()
        return self._db

    def _ensure_initialized(self):
        if not FirebaseService._initialized:
            self._initialize_firebase()
            self._db = firestore.client()
            FirebaseService._initialized = True

    def _initialize_firebase(self):
        """Initialize Firebase Admin SDK with credentials"""
        try:
            # Check if already initialized
            firebase_admin.get_app()
            logger.info("Firebase already initialized")
        except ValueError:
            if settings.DEV_MODE and settings.FIREBASE_EMULATOR_HOST:
                # Use emulator for development
                os.environ["FIRESTORE_EMULATOR_HOST"] = settings.FIREBASE_EMULATOR_HOST
                firebase_admin.initialize_app()
                logger.info(
                    "Firebase initialized with emulator: %s", settings.FIREBASE_EMULATOR_HOST)
                return

            if settings.FIREBASE_CREDENTIALS_JSON:
                try:
                    cred = credentials.Certificate(
                        json.loads(settings.FIREBASE_CREDENTIALS_JSON))
                except json.JSONDecodeError as e:
                    logger.error("Error parsing FIREBASE_CREDENTIALS_JSON: %s", e)
                    raise
                logger.info(
                    "Firebase initialized with credentials from FIREBASE_CREDENTIALS_JSON")
            else:
                # Fallback to file path
                cred = credentials.Certificate(settings.FIREBASE_CREDENTIALS_PATH)
                logger.info(
                    "Firebase initialized with credentials from %s", settings.FIREBASE_CREDENTIALS_PATH)

            options = {}
            if settings.FIREBASE_STORAGE_BUCKET:
                options["storageBucket"] = settings.FIREBASE_STORAGE_BUCKET
            firebase_admin.initialize_app(cred, options)

    # ============================================
    # AUTH OPERATIONS
    # ============================================

    async def verify_id_token(self, id_token: str, check_revoked: bool = True) -> Dict[str, Any]:
        """
        Verify a Firebase ID token

        Args:
            id_token: Raw ID token from the Authorization header
            check_revoked: Also reject tokens whose refresh tokens were revoked

        Returns:
            Decoded token claims

        Raises:
            ValueError / FirebaseError: If the token is malformed, expired or revoked
        """
        self._ensure_initialized()
        return await asyncio.to_thread(
            firebase_auth.verify_id_token, id_token, check_revoked=check_revoked
        )

    async def get_custom_claims(self, uid: str) -> Dict[str, Any]:
        """Return the custom claims currently set on an account"""
        self._ensure_initialized()
        user = await asyncio.to_thread(firebase_auth.get_user, uid)
        return dict(user.custom_claims or {})

    async def set_custom_claims(self, uid: str, claims: Dict[str, Any]) -> None:
        """Replace the custom claims on an account"""
        self._ensure_initialized()
        await asyncio.to_thread(firebase_auth.set_custom_user_claims, uid, claims)
        logger.info("Custom claims updated for %s: %s", uid, sorted(claims))

    # ============================================
    # FIRESTORE OPERATIONS
    # ============================================

    def document(self, *path: str):
        """Document reference from path segments, e.g. ("questions", qid, "answers", aid)"""
        return self.db.document(*path)

    def collection(self, *path: str):
        return self.db.collection(*path)

    async def get_document(self, *path: str) -> Optional[Dict[str, Any]]:
        """Fetch a document's data, or None when it does not exist"""
        doc = await asyncio.to_thread(self.document(*path).get)
        if not doc.exists:
            return None
        return doc.to_dict() or {}

    async def add_document(self, collection_path: Tuple[str, ...], data: Dict[str, Any]) -> str:
        """Create a document with an auto-generated id and return the id"""
        doc_ref = self.collection(*collection_path).document()
        await asyncio.to_thread(doc_ref.set, data)
        return doc_ref.id

    async def update_document(self, path: Tuple[str, ...], data: Dict[str, Any]) -> None:
        await asyncio.to_thread(self.document(*path).update, data)

    async def delete_document(self, *path: str) -> None:
        await asyncio.to_thread(self.document(*path).delete)

    async def increment_field(self, path: Tuple[str, ...], field: str, amount: int = 1) -> None:
        """Server-side atomic increment"""
        await self.update_document(path, {field: firestore.Increment(amount)})

    async def delete_collection(self, *path: str) -> int:
        """Delete every document in a (sub)collection, returning the count"""

        def _delete_all() -> int:
            deleted = 0
            for doc in self.collection(*path).stream():
                doc.reference.delete()
                deleted += 1
            return deleted

        return await asyncio.to_thread(_delete_all)

    async def list_collection(
        self, *path: str, filters: Optional[Dict[str, Any]] = None, limit: Optional[int] = None
    ) -> List[Tuple[str, Dict[str, Any]]]:
        """Return (id, data) pairs of a collection, optionally filtered by equality"""

        def _stream():
            query = self.collection(*path)
            for field, value in (filters or {}).items():
                query = query.where(field, "==", value)
            if limit:
                query = query.limit(limit)
            return [(doc.id, doc.to_dict() or {}) for doc in query.stream()]

        return await asyncio.to_thread(_stream)

    async def run_in_transaction(self, fn: Callable[[Any], T]) -> T:
        """
        Run ``fn(transaction)`` inside a Firestore transaction.

        The SDK re-runs ``fn`` when the transaction is contended, so ``fn`` must
        read everything it needs through the transaction and be free of
        side effects outside it.
        """

        def _run() -> T:
            transaction = self.db.transaction()

            @firestore.transactional
            def _apply(txn):
                return fn(txn)

            return _apply(transaction)

        return await asyncio.to_thread(_run)

    async def run_batch(self, fn: Callable[[Any], T]) -> T:
        """Queue writes with ``fn(batch)`` and commit them atomically"""

        def _run() -> T:
            batch = self.db.batch()
            result = fn(batch)
            batch.commit()
            return result

        return await asyncio.to_thread(_run)


# Global instance; the SDK itself initializes lazily on first use
firebase_service = FirebaseService()
