from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, Numeric, Text, func, text

from app.database import Base


class CheckInLog(Base):
    __tablename__ = "check_in_logs"
    __table_args__ = (
        # one open check-in per user
        Index(
            "uq_check_in_logs_active",
            "user_id",
            unique=True,
            sqlite_where=text("check_out_time IS NULL AND deleted_at IS NULL"),
            postgresql_where=text("check_out_time IS NULL AND deleted_at IS NULL"),
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    job_id = Column(Integer, ForeignKey("jobs.id"), nullable=False, index=True)
    check_in_time = Column(DateTime, nullable=False, index=True, server_default=func.now())
    check_out_time = Column(DateTime, nullable=True)
    duration_hours = Column(Numeric(5, 2), nullable=True)
    hourly_rate = Column(Numeric(10, 2), nullable=True)
    billable_amount = Column(Numeric(15, 2), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now())
    deleted_at = Column(DateTime, nullable=True)
