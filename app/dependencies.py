from typing import Optional

from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session

from app.database import get_db
from app.errors import Unauthenticated
from app.services.tasks import TaskService
from app.stores.task_store import SqlTaskStore
from app.utils.auth import TokenCodec, get_token_codec
from app.utils.cache import ResultCache


def _extract_token(authorization: Optional[str], token_query: Optional[str]) -> Optional[str]:
    """Return token from Authorization header (Bearer ...) or token query param (compat).
    Header has precedence.
    """
    if authorization:
        parts = authorization.split()
        if len(parts) == 2 and parts[0].lower() == "bearer":
            return parts[1]
    return token_query


def get_current_user(
    authorization: Optional[str] = Header(None),
    token: Optional[str] = None,
    codec: TokenCodec = Depends(get_token_codec),
) -> str:
    tok = _extract_token(authorization, token)
    if not tok:
        raise Unauthenticated("Missing token")
    return codec.verify(tok)


def get_cache(request: Request) -> ResultCache:
    return request.app.state.cache


def get_task_service(db: Session = Depends(get_db), cache: ResultCache = Depends(get_cache)) -> TaskService:
    return TaskService(SqlTaskStore(db), cache)
