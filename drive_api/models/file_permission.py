from sqlalchemy import (
    Column,
    Integer,
    String,
    DateTime,
    ForeignKey,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import relationship

from drive_api.db.base import Base


class FilePermission(Base):
    __tablename__ = "file_permissions"

    id = Column(Integer, primary_key=True, index=True)

    file_id = Column(
        Integer,
        ForeignKey("files.id", ondelete="CASCADE"),
        nullable=False,
    )

    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )

    permission = Column(String, nullable=False)  # "view", "edit"

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    file = relationship("File", back_populates="permissions")
    user = relationship("User")

    __table_args__ = (
        UniqueConstraint("file_id", "user_id", name="uq_file_user_permission"),
    )
