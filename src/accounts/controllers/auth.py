"""This module contains the controllers for the authentication app."""

import typing as t

import structlog
from ninja_extra import api_controller, route
from ninja_jwt.authentication import JWTAuth
from ninja_jwt.controller import TokenObtainPairController
from ninja_jwt.schema import TokenObtainPairInputSchema, TokenObtainPairOutputSchema

from accounts import schema
from common.controllers import UserAwareController
from common.throttling import AuthThrottle, UserDefaultThrottle

from ..models import DoorlistUser

logger = structlog.get_logger(__name__)


@api_controller("/auth", tags=["Auth"], throttle=AuthThrottle())
class AuthController(TokenObtainPairController):
    @route.post("/token/pair", response=TokenObtainPairOutputSchema, url_name="token_obtain_pair")
    def obtain_token(self, user_token: TokenObtainPairInputSchema) -> TokenObtainPairOutputSchema:
        """Authenticate with username and password to obtain JWT access/refresh tokens.

        The access token identifies the actor for every protected endpoint, including ticket scans.
        """
        user = t.cast(DoorlistUser, user_token._user)
        logger.info("token_obtained", user_id=str(user.pk), role=user.role)
        return t.cast(TokenObtainPairOutputSchema, user_token.to_response_schema())  # type: ignore[no-untyped-call]


@api_controller("/account", auth=JWTAuth(), tags=["Account"], throttle=UserDefaultThrottle())
class AccountController(UserAwareController):
    @route.get("/me", url_name="me", response=schema.DoorlistUserSchema)
    def me(self) -> DoorlistUser:
        """Return the authenticated user, including the role used for scan authorization."""
        return self.user()
