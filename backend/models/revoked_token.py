from sqlalchemy import Column, String, DateTime
from database import Base
from models.audit_mixin import utc_now


class RevokedToken(Base):
    __tablename__ = "revoked_token"

    jti = Column(String, primary_key=True)
    user_id = Column(String, index=True, nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    revoked_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
