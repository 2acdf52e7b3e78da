from fastapi import APIRouter, Depends, status

from careerguide.core.config import settings
from careerguide.core.exceptions import (
    EmailNotVerifiedError,
    LoginFailedError,
    MissingFieldsError,
    ProviderError,
    RegistrationFailedError,
    ValidationError,
)
from careerguide.core.logging_config import logger, set_user_id
from careerguide.schemas.auth import LoginRequest, RegisterRequest
from careerguide.schemas.enums import Role, parse_enum
from careerguide.services import collections
from careerguide.services.firebase import get_document_store, get_identity_provider
from careerguide.services.store import DocumentStore, IdentityProvider

router = APIRouter()


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    user_data: RegisterRequest,
    identity: IdentityProvider = Depends(get_identity_provider),
    store: DocumentStore = Depends(get_document_store),
):
    """Create an account, pin its role as a custom claim and seed the profile"""
    missing = user_data.missing_fields()
    if missing:
        raise MissingFieldsError(missing)

    role = parse_enum(Role, user_data.role)
    if role is None:
        raise ValidationError("Invalid role", field="role", code="INVALID_ROLE")

    try:
        uid = await identity.create_user(user_data.email, user_data.password)
        await identity.set_custom_claims(uid, {"role": role.value})
        await store.set(collections.USERS, uid, {
            "email": user_data.email,
            "role": role.value,
            "profileData": {},
            "createdAt": store.server_timestamp(),
        })
        if settings.SEND_VERIFICATION_EMAIL:
            await identity.generate_email_verification_link(user_data.email)
    except ProviderError as e:
        logger.log_auth_event("register", success=False, user_email=user_data.email, reason=e.provider_message)
        raise RegistrationFailedError(e.provider_message or e.message)

    logger.log_auth_event("register", success=True, user_email=user_data.email, role=role.value)
    return {
        "success": True,
        "message": "User registered successfully. Please verify your email.",
        "uid": uid,
    }


@router.post("/login")
async def login(
    credentials: LoginRequest,
    identity: IdentityProvider = Depends(get_identity_provider),
    store: DocumentStore = Depends(get_document_store),
):
    """Exchange a verified ID token for the user's role and profile"""
    if not credentials.idToken:
        raise ValidationError("Missing idToken", field="idToken", code="MISSING_FIELDS")

    try:
        claims = await identity.verify_id_token(credentials.idToken)
    except ProviderError as e:
        logger.log_auth_event("login", success=False, reason=e.provider_message)
        raise LoginFailedError(e.provider_message or e.message)

    uid = claims.get("uid") or claims.get("sub")
    if not claims.get("email_verified"):
        logger.log_auth_event("login", success=False, user_email=claims.get("email"), reason="email not verified")
        raise EmailNotVerifiedError()

    try:
        user = await store.get(collections.USERS, uid)
    except ProviderError as e:
        raise LoginFailedError(e.provider_message or e.message)

    role = claims.get("role") or (user or {}).get("role")
    set_user_id(uid, role)
    logger.log_auth_event("login", success=True, user_email=claims.get("email"), role=role)
    return {
        "success": True,
        "uid": uid,
        "role": role,
        "profile": (user or {}).get("profileData") or {},
    }
