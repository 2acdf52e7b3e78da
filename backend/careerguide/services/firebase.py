"""
Firebase implementations of the provider interfaces

firebase-admin is a synchronous SDK; every call is pushed to the default
executor so request handlers stay non-blocking. Errors raised by the SDK are
translated to ProviderError so handlers deal with a single exception type.
"""

import asyncio
import time
from functools import lru_cache, partial
from typing import Any, Callable, Dict, List, Optional, Sequence

import firebase_admin
from firebase_admin import auth, credentials, firestore, storage
from firebase_admin.exceptions import FirebaseError
from google.api_core import exceptions as google_exceptions

from careerguide.core.config import settings
from careerguide.core.exceptions import ProviderError, StorageError
from careerguide.core.logging_config import logger
from careerguide.services.store import DocumentStore, FileStorage, Filter, IdentityProvider


def init_firebase() -> firebase_admin.App:
    """Initialize the default Firebase app once, from runtime configuration"""
    try:
        return firebase_admin.get_app()
    except ValueError:
        pass

    service_account = settings.get_service_account()
    if service_account:
        credential = credentials.Certificate(service_account)
    elif settings.FIREBASE_CREDENTIALS_PATH:
        credential = credentials.Certificate(settings.FIREBASE_CREDENTIALS_PATH)
    else:
        credential = credentials.ApplicationDefault()

    options: Dict[str, Any] = {}
    if settings.FIREBASE_PROJECT_ID:
        options["projectId"] = settings.FIREBASE_PROJECT_ID
    if settings.FIREBASE_STORAGE_BUCKET:
        options["storageBucket"] = settings.FIREBASE_STORAGE_BUCKET

    app = firebase_admin.initialize_app(credential, options or None)
    logger.info(f"Firebase Admin initialized (project: {settings.FIREBASE_PROJECT_ID or 'default'})")
    return app


def is_firebase_initialized() -> bool:
    try:
        firebase_admin.get_app()
        return True
    except ValueError:
        return False


async def _run(fn: Callable, *args, **kwargs) -> Any:
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, partial(fn, *args, **kwargs))


class FirebaseIdentityProvider(IdentityProvider):
    """Firebase Authentication"""

    def __init__(self, app: Optional[firebase_admin.App] = None):
        self._app = app or init_firebase()

    async def _call(self, fn: Callable, *args, **kwargs) -> Any:
        try:
            return await _run(fn, *args, app=self._app, **kwargs)
        except (FirebaseError, ValueError) as e:
            raise ProviderError("Identity provider request failed", str(e), code="IDENTITY_PROVIDER_ERROR")

    async def create_user(self, email: str, password: str) -> str:
        record = await self._call(auth.create_user, email=email, password=password)
        return record.uid

    async def set_custom_claims(self, uid: str, claims: Dict[str, Any]) -> None:
        await self._call(auth.set_custom_user_claims, uid, claims)

    async def verify_id_token(self, token: str) -> Dict[str, Any]:
        return await self._call(auth.verify_id_token, token, check_revoked=settings.CHECK_REVOKED_TOKENS)

    async def generate_email_verification_link(self, email: str) -> str:
        return await self._call(auth.generate_email_verification_link, email)


class FirestoreDocumentStore(DocumentStore):
    """Cloud Firestore"""

    def __init__(self, app: Optional[firebase_admin.App] = None):
        self._db = firestore.client(app or init_firebase())

    async def _call(self, operation: str, collection: str, fn: Callable, *args, **kwargs) -> Any:
        start = time.perf_counter()
        try:
            result = await _run(fn, *args, **kwargs)
        except google_exceptions.GoogleAPICallError as e:
            logger.error(f"[Firestore] {operation} on {collection} failed: {e}")
            raise ProviderError("Document store request failed", str(e), code="STORE_ERROR")
        documents = len(result) if isinstance(result, list) else (1 if result else 0)
        logger.log_store_op(operation, collection, (time.perf_counter() - start) * 1000, documents)
        return result

    @staticmethod
    def _to_dict(snapshot) -> Dict[str, Any]:
        data = snapshot.to_dict() or {}
        data["id"] = snapshot.id
        return data

    async def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        def _get():
            snapshot = self._db.collection(collection).document(doc_id).get()
            return self._to_dict(snapshot) if snapshot.exists else None
        return await self._call("get", collection, _get)

    async def set(self, collection: str, doc_id: str, data: Dict[str, Any], merge: bool = False) -> None:
        ref = self._db.collection(collection).document(doc_id)
        await self._call("set", collection, ref.set, data, merge=merge)

    async def add(self, collection: str, data: Dict[str, Any]) -> str:
        def _add():
            _, ref = self._db.collection(collection).add(data)
            return ref.id
        return await self._call("add", collection, _add)

    async def update(self, collection: str, doc_id: str, changes: Dict[str, Any]) -> None:
        ref = self._db.collection(collection).document(doc_id)
        await self._call("update", collection, ref.update, changes)

    async def delete(self, collection: str, doc_id: str) -> None:
        ref = self._db.collection(collection).document(doc_id)
        await self._call("delete", collection, ref.delete)

    async def query(
        self,
        collection: str,
        filters: Sequence[Filter] = (),
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        def _query():
            query = self._db.collection(collection)
            for f in filters:
                query = query.where(filter=firestore.FieldFilter(f.field, f.op, f.value))
            if order_by:
                direction = firestore.Query.DESCENDING if descending else firestore.Query.ASCENDING
                query = query.order_by(order_by, direction=direction)
            if limit:
                query = query.limit(limit)
            return [self._to_dict(snapshot) for snapshot in query.stream()]
        return await self._call("query", collection, _query)

    async def compare_and_update(
        self,
        collection: str,
        doc_id: str,
        expected: Dict[str, Any],
        changes: Dict[str, Any],
    ) -> bool:
        ref = self._db.collection(collection).document(doc_id)

        @firestore.transactional
        def _apply(transaction) -> bool:
            snapshot = ref.get(transaction=transaction)
            if not snapshot.exists:
                return False
            current = snapshot.to_dict() or {}
            if any(current.get(field) != value for field, value in expected.items()):
                return False
            transaction.update(ref, changes)
            return True

        return await self._call("compare_and_update", collection, _apply, self._db.transaction())

    def server_timestamp(self) -> Any:
        return firestore.SERVER_TIMESTAMP


class FirebaseFileStorage(FileStorage):
    """Cloud Storage bucket attached to the Firebase project"""

    def __init__(self, app: Optional[firebase_admin.App] = None):
        self._bucket = storage.bucket(app=app or init_firebase())

    async def upload(self, path: str, data: bytes, content_type: str) -> str:
        def _upload() -> str:
            blob = self._bucket.blob(path)
            blob.upload_from_string(data, content_type=content_type)
            blob.make_public()
            return blob.public_url

        try:
            return await _run(_upload)
        except google_exceptions.GoogleAPICallError as e:
            logger.error(f"[Storage] Upload of {path} failed: {e}")
            raise StorageError(str(e))


# ============================================================================
# FastAPI dependencies (overridden in tests)
# ============================================================================

@lru_cache()
def get_identity_provider() -> IdentityProvider:
    return FirebaseIdentityProvider()


@lru_cache()
def get_document_store() -> DocumentStore:
    return FirestoreDocumentStore()


@lru_cache()
def get_file_storage() -> FileStorage:
    return FirebaseFileStorage()
