"""Database models for the tables the transcription pipeline touches.

The platform owns these tables (quoted camelCase names). Only the columns
needed to discover lessons and record transcription completion are mapped.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.db.session import Base


class Tenant(Base):
    """A customer account of the membership platform."""

    __tablename__ = "Tenant"

    id: Mapped[str] = mapped_column(String(30), primary_key=True)
    name: Mapped[str] = mapped_column(String(255))
    ai_enabled: Mapped[bool] = mapped_column("aiEnabled", Boolean, default=False)
    bunny_library_id: Mapped[Optional[str]] = mapped_column(
        "bunnyLibraryId", String(100), nullable=True
    )
    bunny_library_api_key: Mapped[Optional[str]] = mapped_column(
        "bunnyLibraryApiKey", String(255), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        "createdAt", DateTime(timezone=True), server_default=func.now()
    )

    # Relationships
    vitrines: Mapped[list["Vitrine"]] = relationship("Vitrine", back_populates="tenant")


class Vitrine(Base):
    """Top-level catalog showcase grouping courses."""

    __tablename__ = "Vitrine"

    id: Mapped[str] = mapped_column(String(30), primary_key=True)
    name: Mapped[str] = mapped_column(String(255))
    tenant_id: Mapped[str] = mapped_column("tenantId", ForeignKey("Tenant.id"), index=True)
    order: Mapped[Optional[int]] = mapped_column("order", Integer, nullable=True)

    tenant: Mapped["Tenant"] = relationship("Tenant", back_populates="vitrines")
    courses: Mapped[list["Course"]] = relationship("Course", back_populates="vitrine")


class Course(Base):
    __tablename__ = "Course"

    id: Mapped[str] = mapped_column(String(30), primary_key=True)
    name: Mapped[str] = mapped_column(String(255))
    vitrine_id: Mapped[str] = mapped_column("vitrineId", ForeignKey("Vitrine.id"), index=True)
    order: Mapped[Optional[int]] = mapped_column("order", Integer, nullable=True)

    vitrine: Mapped["Vitrine"] = relationship("Vitrine", back_populates="courses")
    sections: Mapped[list["Section"]] = relationship("Section", back_populates="course")


class Section(Base):
    __tablename__ = "Section"

    id: Mapped[str] = mapped_column(String(30), primary_key=True)
    name: Mapped[str] = mapped_column(String(255))
    course_id: Mapped[str] = mapped_column("courseId", ForeignKey("Course.id"), index=True)
    order: Mapped[Optional[int]] = mapped_column("order", Integer, nullable=True)

    course: Mapped["Course"] = relationship("Course", back_populates="sections")
    modules: Mapped[list["Module"]] = relationship("Module", back_populates="section")


class Module(Base):
    __tablename__ = "Module"

    id: Mapped[str] = mapped_column(String(30), primary_key=True)
    name: Mapped[str] = mapped_column(String(255))
    section_id: Mapped[str] = mapped_column("sectionId", ForeignKey("Section.id"), index=True)
    order: Mapped[Optional[int]] = mapped_column("order", Integer, nullable=True)

    section: Mapped["Section"] = relationship("Section", back_populates="modules")
    lessons: Mapped[list["Lesson"]] = relationship("Lesson", back_populates="module")


class Lesson(Base):
    """A lesson; this service only ever writes ``transcriptionCompleted``."""

    __tablename__ = "Lesson"

    id: Mapped[str] = mapped_column(String(30), primary_key=True)
    name: Mapped[str] = mapped_column(String(255))
    slug: Mapped[str] = mapped_column(String(255))
    type: Mapped[Optional[str]] = mapped_column("type", String(50), nullable=True)
    media_url: Mapped[Optional[str]] = mapped_column("mediaUrl", Text, nullable=True)
    thumbnail: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    content: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    published: Mapped[bool] = mapped_column(Boolean, default=True)
    order: Mapped[Optional[int]] = mapped_column("order", Integer, nullable=True)
    module_id: Mapped[str] = mapped_column("moduleId", ForeignKey("Module.id"), index=True)
    transcription_completed: Mapped[bool] = mapped_column(
        "transcriptionCompleted", Boolean, default=False
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        "createdAt", DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        "updatedAt", DateTime(timezone=True), nullable=True
    )

    module: Mapped["Module"] = relationship("Module", back_populates="lessons")
