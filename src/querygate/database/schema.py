from sqlalchemy import (
    Column,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class User(Base):
    """User row. Column names upper-cased are the store's standard field names."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    login = Column(String, nullable=False, unique=True, index=True)
    email = Column(String, index=True)
    active = Column(String(1), nullable=False, default="Y")  # Y or N
    blocked = Column(String(1), nullable=False, default="N")
    title = Column(String)
    name = Column(String)
    last_name = Column(String)
    second_name = Column(String)
    phone_number = Column(String)
    xml_id = Column(String)
    lid = Column(String)
    language_id = Column(String)
    external_auth_id = Column(String)
    date_register = Column(String)  # ISO 8601 string
    last_login = Column(String)  # ISO 8601 string
    timestamp_x = Column(String)  # ISO 8601 string
    personal_gender = Column(String(1))
    personal_birthday = Column(String)
    personal_phone = Column(String)
    personal_mobile = Column(String)
    personal_city = Column(String)
    personal_country = Column(String)
    work_company = Column(String)
    work_department = Column(String)
    work_position = Column(String)
    admin_notes = Column(Text)


class UserGroup(Base):
    __tablename__ = "user_groups"

    user_id = Column(Integer, ForeignKey("users.id"), primary_key=True)
    group_id = Column(Integer, primary_key=True, index=True)


class UserFieldValue(Base):
    """Dynamic (UF_*) field value. Multi-valued fields have one row per value."""

    __tablename__ = "user_field_values"

    value_id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    code = Column(String, nullable=False, index=True)  # e.g. UF_DEPARTMENT
    value = Column(Text)
