"""
ExamHub - Authentication Service
Business logic for user registration, login, and token management
"""
import logging
import uuid
from datetime import datetime, timedelta, timezone
from hashlib import sha256

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from examhub.core.config import settings
from examhub.core.security import (
    create_access_token,
    create_refresh_token,
    get_password_hash,
    verify_password,
    verify_token,
)
from examhub.models.user import RefreshToken, User, UserRole
from examhub.schemas.user import TokenResponse, UserCreate

logger = logging.getLogger(__name__)


class AuthenticationError(Exception):
    """Base authentication error."""
    pass


class InvalidCredentialsError(AuthenticationError):
    """Invalid email or password."""
    pass


class TokenError(AuthenticationError):
    """Token validation error."""
    pass


def hash_token(token: str) -> str:
    return sha256(token.encode()).hexdigest()


class AuthService:
    """Service for authentication operations."""
    
    def __init__(self, db: AsyncSession):
        self.db = db
    
    async def register_user(self, user_data: UserCreate) -> User:
        """
        Register a new user.
        
        Raises:
            ValueError: If email already exists
        """
        existing = await self.db.execute(
            select(User).where(User.email == user_data.email)
        )
        if existing.scalar_one_or_none():
            raise ValueError("Email already registered")
        
        user = User(
            email=user_data.email,
            name=user_data.name,
            hashed_password=get_password_hash(user_data.password),
            role=UserRole.USER,
        )
        
        self.db.add(user)
        await self.db.flush()
        await self.db.refresh(user)
        
        logger.info("Registered user %s", user.id)
        return user
    
    async def authenticate(self, email: str, password: str) -> User:
        """
        Authenticate user with email and password.
        
        Raises:
            InvalidCredentialsError: If credentials are invalid or the account is inactive
        """
        result = await self.db.execute(
            select(User).where(User.email == email)
        )
        user = result.scalar_one_or_none()
        
        if not user or not verify_password(password, user.hashed_password):
            raise InvalidCredentialsError("Invalid email or password")
        
        if not user.is_active:
            raise InvalidCredentialsError("Account is deactivated")
        
        return user
    
    async def create_tokens(self, user: User) -> TokenResponse:
        """Create access and refresh tokens for a user, storing the refresh token hash."""
        role_value = user.role.value if hasattr(user.role, "value") else user.role
        access_token = create_access_token(
            subject=str(user.id),
            additional_claims={"role": role_value}
        )
        refresh_token = create_refresh_token(subject=str(user.id))
        
        self.db.add(RefreshToken(
            user_id=user.id,
            token_hash=hash_token(refresh_token),
            expires_at=datetime.now(timezone.utc) + timedelta(
                days=settings.REFRESH_TOKEN_EXPIRE_DAYS
            )
        ))
        await self.db.flush()
        
        return TokenResponse(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60
        )
    
    async def refresh_tokens(self, refresh_token: str) -> TokenResponse:
        """
        Rotate a refresh token into a new token pair.
        
        Raises:
            TokenError: If refresh token is invalid, expired or revoked
        """
        user_id = verify_token(refresh_token, token_type="refresh")
        if not user_id:
            raise TokenError("Invalid refresh token")
        
        result = await self.db.execute(
            select(RefreshToken).where(
                RefreshToken.token_hash == hash_token(refresh_token),
                RefreshToken.revoked_at.is_(None)
            )
        )
        token_record = result.scalar_one_or_none()
        
        if not token_record or token_record.is_expired:
            raise TokenError("Refresh token expired or revoked")
        
        user = await self.get_user_by_id(user_id)
        if not user or not user.is_active:
            raise TokenError("User not found or inactive")
        
        # Revoke old token
        token_record.revoked_at = datetime.now(timezone.utc)
        
        return await self.create_tokens(user)
    
    async def logout(self, refresh_token: str) -> None:
        """Logout user by revoking refresh token."""
        result = await self.db.execute(
            select(RefreshToken).where(RefreshToken.token_hash == hash_token(refresh_token))
        )
        token_record = result.scalar_one_or_none()
        
        if token_record:
            token_record.revoked_at = datetime.now(timezone.utc)
            await self.db.flush()
    
    async def get_user_by_id(self, user_id: str | uuid.UUID) -> User | None:
        """Get user by ID."""
        if isinstance(user_id, str):
            try:
                user_id = uuid.UUID(user_id)
            except ValueError:
                return None
        
        return await self.db.get(User, user_id)
