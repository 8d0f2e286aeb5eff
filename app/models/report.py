"""Stored monthly report rows"""

from sqlalchemy import Column, String, Integer, Boolean, DateTime, Index, UniqueConstraint

from app.database import Base


class TimeReportEntry(Base):
    """Arrival and departure times of one completed visit"""
    __tablename__ = "time_report_entries"
    __table_args__ = (Index("ix_time_report_period", "report_year", "report_month"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    report_year = Column(Integer, nullable=False)
    report_month = Column(Integer, nullable=False)

    reservation_id = Column(Integer, nullable=False)
    scheduled_at = Column(DateTime)
    checked_in_at = Column(DateTime)
    checked_out_at = Column(DateTime)
    party_size = Column(Integer, nullable=False)
    customer_name = Column(String(255))
    is_subscriber = Column(Boolean, nullable=False, default=False)


class SubscriberReportEntry(Base):
    """Per-subscriber reservation activity for one month"""
    __tablename__ = "subscriber_report_entries"
    __table_args__ = (Index("ix_subscriber_report_period", "report_year", "report_month"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    report_year = Column(Integer, nullable=False)
    report_month = Column(Integer, nullable=False)

    customer_id = Column(Integer, nullable=False)
    customer_name = Column(String(255))
    subscription_code = Column(String(20))
    total_reservations = Column(Integer, nullable=False, default=0)
    completed = Column(Integer, nullable=False, default=0)
    canceled = Column(Integer, nullable=False, default=0)
    waitlist_entries = Column(Integer, nullable=False, default=0)


class MonthlyReportRun(Base):
    """Marks a month whose reports have been generated, even when they are empty"""
    __tablename__ = "monthly_report_runs"
    __table_args__ = (UniqueConstraint("report_year", "report_month", name="uq_report_run_period"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    report_year = Column(Integer, nullable=False)
    report_month = Column(Integer, nullable=False)
    generated_at = Column(DateTime, nullable=False)
