from fastapi import HTTPException, Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from firebase_admin import auth

from logger import logger
from gcp.db import get_firebase_app
from account.account_model import UserSession

# Token authentication dependency
security = HTTPBearer()

def session_from_token(id_token: str) -> UserSession:
    """Verify a Firebase ID token and build the session it stands for"""
    decoded = auth.verify_id_token(id_token, app=get_firebase_app())
    return UserSession(user_id=decoded['uid'], email=decoded.get('email'))

async def authenticate(credentials: HTTPAuthorizationCredentials = Depends(security)) -> UserSession:
    try:
        return session_from_token(credentials.credentials)
    except Exception as e:
        logger.warning(f"[AUTH] Rejected ID token: {e}")
        raise HTTPException(status_code=401, detail=f"Authentication Failed! {str(e)}")

def sign_out(session: UserSession) -> bool:
    """
    Revokes the refresh tokens of the session's user so every device has to sign in again.
    A failure is logged and reported as False, it never raises.
    """
    try:
        auth.revoke_refresh_tokens(session.user_id, app=get_firebase_app())
        logger.info(f"[AUTH] Signed out user '{session.user_id}'")
        return True
    except Exception as e:
        logger.error(f"[AUTH] Could not sign out user '{session.user_id}': {e}")
        return False
