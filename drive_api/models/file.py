from sqlalchemy import (
    Column,
    Integer,
    String,
    DateTime,
    ForeignKey,
    BigInteger,
    func,
)
from sqlalchemy.orm import relationship

from drive_api.db.base import Base


class File(Base):
    __tablename__ = "files"

    id = Column(Integer, primary_key=True, index=True)

    original_name = Column(String, nullable=False)
    url = Column(String, nullable=False)
    # The ID the object store uses for the bytes
    public_id = Column(String, nullable=False, index=True)
    mime_type = Column(String, nullable=True)
    size_bytes = Column(BigInteger, nullable=False)
    # image / video / raw, needed again to delete the object
    resource_type = Column(String, nullable=False, default="raw")

    # never reassigned after upload
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    owner = relationship("User", back_populates="files")

    permissions = relationship(
        "FilePermission",
        back_populates="file",
        cascade="all, delete-orphan",
        order_by="FilePermission.id",
    )
    access_requests = relationship(
        "AccessRequest",
        back_populates="file",
        cascade="all, delete-orphan",
        order_by="AccessRequest.id",
    )
