"""
HTTP routes for the outfits API.

Procedures are grouped by resource. Queries are GET requests with query
parameters; mutations are POST requests with JSON bodies.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from outfits.adapter import SqlAuthAdapter
from outfits.auth import require_adapter_secret, require_user
from outfits.dependencies import get_auth_adapter, get_post_service, get_user_service
from outfits.posts import PostService
from outfits.records import UserRecord
from outfits.schemas import (
    AccountKey,
    AccountPayload,
    AdapterUserCreate,
    AdapterUserResponse,
    AdapterUserUpdate,
    CreatePostRequest,
    CreatePostResponse,
    EditProfileRequest,
    EditProfileResponse,
    EmailRequest,
    IdRequest,
    MeResponse,
    PostResponse,
    PostSummary,
    ProfileResponse,
    SessionAndUserResponse,
    SessionPayload,
    SessionResponse,
    SessionTokenRequest,
    SessionUpdate,
    StatusResponse,
    UploadUrlResponse,
    UserIdRequest,
    VerificationTokenKey,
    VerificationTokenPayload,
    VerificationTokenResponse,
)
from outfits.users import UserService

router = APIRouter()
post_router = APIRouter(prefix="/post", tags=["post"])
user_router = APIRouter(prefix="/user", tags=["user"])
auth_router = APIRouter(
    prefix="/auth",
    tags=["auth"],
    dependencies=[Depends(require_adapter_secret)],
)


@router.get("/health", response_model=StatusResponse)
def health():
    return StatusResponse()


# Posts


@post_router.post("/create_post", response_model=CreatePostResponse)
def create_post(
    payload: CreatePostRequest,
    user: UserRecord = Depends(require_user),
    posts: PostService = Depends(get_post_service),
):
    created = posts.create_post(user.id, payload.type)
    return CreatePostResponse(
        post=PostResponse.model_validate(created.post),
        upload_url=created.upload_url,
    )


@post_router.post("/delete_post", response_model=bool)
def delete_post(
    payload: IdRequest,
    user: UserRecord = Depends(require_user),
    posts: PostService = Depends(get_post_service),
):
    return posts.delete_post(user.id, payload.id)


@post_router.get("/get_posts_all_types", response_model=list[PostSummary])
def get_posts_all_types(
    id: str = Query(..., min_length=1, description="Owner's user id"),
    posts: PostService = Depends(get_post_service),
):
    return [PostSummary.model_validate(post) for post in posts.get_posts_all_types(id)]


# Users


@user_router.get("/profile_exists", response_model=bool)
def profile_exists(
    username: str = Query(..., min_length=1),
    users: UserService = Depends(get_user_service),
):
    return users.profile_exists(username)


@user_router.get("/me", response_model=MeResponse)
def get_me(
    user: UserRecord = Depends(require_user),
    users: UserService = Depends(get_user_service),
):
    return MeResponse.model_validate(users.get_me(user.id))


@user_router.get("/get_profile", response_model=ProfileResponse)
def get_profile(
    username: str = Query(..., min_length=1),
    users: UserService = Depends(get_user_service),
):
    return ProfileResponse.model_validate(users.get_profile(username))


@user_router.post("/edit_profile", response_model=EditProfileResponse)
def edit_profile(
    payload: EditProfileRequest,
    user: UserRecord = Depends(require_user),
    users: UserService = Depends(get_user_service),
):
    result = users.edit_profile(user.id, name=payload.name, username=payload.username)
    return EditProfileResponse(**result)


@user_router.post("/set_image", response_model=UploadUrlResponse)
def set_image(
    user: UserRecord = Depends(require_user),
    users: UserService = Depends(get_user_service),
):
    return UploadUrlResponse(upload_url=users.set_image(user.id))


@user_router.post("/delete_image", response_model=bool)
def delete_image(
    user: UserRecord = Depends(require_user),
    users: UserService = Depends(get_user_service),
):
    return users.delete_image(user.id)


# Auth adapter, called by the authentication library


def _user_or_none(user):
    return AdapterUserResponse.model_validate(user) if user else None


@auth_router.post("/create_user", response_model=AdapterUserResponse)
def adapter_create_user(
    payload: AdapterUserCreate, adapter: SqlAuthAdapter = Depends(get_auth_adapter)
):
    return AdapterUserResponse.model_validate(
        adapter.create_user(payload.model_dump(exclude_none=True))
    )


@auth_router.post("/get_user", response_model=AdapterUserResponse | None)
def adapter_get_user(
    payload: UserIdRequest, adapter: SqlAuthAdapter = Depends(get_auth_adapter)
):
    return _user_or_none(adapter.get_user(payload.id))


@auth_router.post("/get_user_by_email", response_model=AdapterUserResponse | None)
def adapter_get_user_by_email(
    payload: EmailRequest, adapter: SqlAuthAdapter = Depends(get_auth_adapter)
):
    return _user_or_none(adapter.get_user_by_email(payload.email))


@auth_router.post("/get_user_by_account", response_model=AdapterUserResponse | None)
def adapter_get_user_by_account(
    payload: AccountKey, adapter: SqlAuthAdapter = Depends(get_auth_adapter)
):
    return _user_or_none(
        adapter.get_user_by_account(payload.provider, payload.provider_account_id)
    )


@auth_router.post("/update_user", response_model=AdapterUserResponse)
def adapter_update_user(
    payload: AdapterUserUpdate, adapter: SqlAuthAdapter = Depends(get_auth_adapter)
):
    return AdapterUserResponse.model_validate(
        adapter.update_user(payload.model_dump(exclude_unset=True))
    )


@auth_router.post("/delete_user", response_model=StatusResponse)
def adapter_delete_user(
    payload: UserIdRequest, adapter: SqlAuthAdapter = Depends(get_auth_adapter)
):
    adapter.delete_user(payload.id)
    return StatusResponse()


@auth_router.post("/link_account", response_model=StatusResponse)
def adapter_link_account(
    payload: AccountPayload, adapter: SqlAuthAdapter = Depends(get_auth_adapter)
):
    adapter.link_account(payload.model_dump())
    return StatusResponse()


@auth_router.post("/unlink_account", response_model=StatusResponse)
def adapter_unlink_account(
    payload: AccountKey, adapter: SqlAuthAdapter = Depends(get_auth_adapter)
):
    adapter.unlink_account(payload.provider, payload.provider_account_id)
    return StatusResponse()


@auth_router.post("/create_session", response_model=SessionResponse)
def adapter_create_session(
    payload: SessionPayload, adapter: SqlAuthAdapter = Depends(get_auth_adapter)
):
    return SessionResponse.model_validate(adapter.create_session(payload.model_dump()))


@auth_router.post("/get_session_and_user", response_model=SessionAndUserResponse | None)
def adapter_get_session_and_user(
    payload: SessionTokenRequest, adapter: SqlAuthAdapter = Depends(get_auth_adapter)
):
    found = adapter.get_session_and_user(payload.session_token)
    if found is None:
        return None
    session, user = found
    return SessionAndUserResponse(
        session=SessionResponse.model_validate(session),
        user=AdapterUserResponse.model_validate(user),
    )


@auth_router.post("/update_session", response_model=SessionResponse | None)
def adapter_update_session(
    payload: SessionUpdate, adapter: SqlAuthAdapter = Depends(get_auth_adapter)
):
    session = adapter.update_session(payload.model_dump(exclude_unset=True))
    return SessionResponse.model_validate(session) if session else None


@auth_router.post("/delete_session", response_model=StatusResponse)
def adapter_delete_session(
    payload: SessionTokenRequest, adapter: SqlAuthAdapter = Depends(get_auth_adapter)
):
    adapter.delete_session(payload.session_token)
    return StatusResponse()


@auth_router.post("/create_verification_token", response_model=VerificationTokenResponse)
def adapter_create_verification_token(
    payload: VerificationTokenPayload,
    adapter: SqlAuthAdapter = Depends(get_auth_adapter),
):
    return VerificationTokenResponse.model_validate(
        adapter.create_verification_token(payload.model_dump())
    )


@auth_router.post("/use_verification_token", response_model=VerificationTokenResponse)
def adapter_use_verification_token(
    payload: VerificationTokenKey,
    adapter: SqlAuthAdapter = Depends(get_auth_adapter),
):
    return VerificationTokenResponse.model_validate(
        adapter.use_verification_token(payload.identifier, payload.token)
    )


router.include_router(post_router)
router.include_router(user_router)
router.include_router(auth_router)
