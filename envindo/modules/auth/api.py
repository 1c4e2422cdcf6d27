from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from envindo.core.dependencies import get_db, route_policy
from envindo.modules.auth import service as user_service
from envindo.schemas import token_schema, user_schema
from envindo.schemas.response_schema import success_response
from envindo.schemas.token_schema import Identity

router = APIRouter(
    prefix="/auth",
    tags=["Authentication"],
)

profile_router = APIRouter(
    prefix="/user",
    tags=["User"],
)


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    user_data: user_schema.UserRegistration,
    db: AsyncSession = Depends(get_db),
):
    user = await user_service.register_user(db, user_data=user_data)
    return success_response(user_schema.User.model_validate(user), "Registration successful")


@router.post("/login")
async def login_for_access_token(
    data: user_schema.UserLogin,
    db: AsyncSession = Depends(get_db),
):
    """Authenticates any account and returns a bearer token."""
    result = await user_service.login(db, data)
    token = token_schema.Token(
        access_token=result["access_token"],
        token_type=result["token_type"],
        expires_in=result["expires_in"],
        user=user_schema.User.model_validate(result["user"]),
    )
    return success_response(token, "Login successful")


@profile_router.get("/profile")
async def read_profile(
    identity: Identity = Depends(route_policy("user")),
    db: AsyncSession = Depends(get_db),
):
    user = await user_service.get_profile(db, identity.user_id)
    return success_response(user_schema.User.model_validate(user), "Profile retrieved")
