"""
Customer model. Email is the identity; name and phone are overwritten in place
when a returning email books again.
"""

from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import relationship

from surfclub.db.base import Base, TimestampMixin


class Customer(Base, TimestampMixin):
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    phone = Column(String(32), nullable=True)

    # Booking history is read with explicit queries, never through this attribute
    bookings = relationship("Booking", back_populates="customer", lazy="raise")

    def __repr__(self) -> str:
        return f"<Customer(id={self.id}, email={self.email})>"
