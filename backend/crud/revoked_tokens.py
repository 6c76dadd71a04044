from datetime import datetime

from sqlalchemy.orm import Session

from models.revoked_token import RevokedToken


def is_revoked(db: Session, jti: str) -> bool:
    return db.get(RevokedToken, jti) is not None


def revoke(db: Session, jti: str, user_id: str, expires_at: datetime):
    if db.get(RevokedToken, jti) is not None:
        return
    db.add(RevokedToken(jti=jti, user_id=user_id, expires_at=expires_at))
    db.commit()
