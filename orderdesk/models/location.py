from sqlalchemy import Column, Integer, String, ForeignKey, Index
from sqlalchemy.orm import relationship
from orderdesk.db.base import Base, MYSQL_ARGS


class City(Base):
    __tablename__ = "cities"
    __table_args__ = (
        Index("ix_cities_state_city", "state", "city"),
        MYSQL_ARGS,
    )

    id = Column(Integer, primary_key=True, index=True)
    city = Column(String(120), nullable=False)
    alias = Column(String(120), nullable=True)
    state = Column(String(120), nullable=False)

    pincodes = relationship("Pincode", back_populates="city")


class Pincode(Base):
    __tablename__ = "pincodes"
    __table_args__ = MYSQL_ARGS

    id = Column(Integer, primary_key=True, index=True)
    pincode = Column(String(10), nullable=False, index=True)
    area = Column(String(191), nullable=True)
    city_id = Column(Integer, ForeignKey("cities.id"), nullable=True)

    city = relationship("City", back_populates="pincodes")
