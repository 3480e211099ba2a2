from sqlalchemy import Column, Integer, String, Boolean, Text, ForeignKey, JSON, UniqueConstraint
from sqlalchemy.orm import relationship
from sitekeeper.core.database import Base, UTCDateTime


class ChecklistTemplate(Base):
    __tablename__ = "checklist_templates"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False)
    description = Column(Text)
    category = Column(String(100))
    is_active = Column(Boolean, nullable=False, default=True)

    items = relationship(
        "ChecklistItem",
        back_populates="template",
        order_by="ChecklistItem.order",
        cascade="all, delete-orphan",
    )

    # Timestamps come from the injected clock, not the database server
    created_at = Column(UTCDateTime, nullable=False)
    updated_at = Column(UTCDateTime, nullable=False)


class ChecklistItem(Base):
    __tablename__ = "checklist_items"
    __table_args__ = (
        UniqueConstraint("template_id", "item_key", name="uq_checklist_items_template_key"),
    )

    id = Column(Integer, primary_key=True, index=True)
    template_id = Column(Integer, ForeignKey("checklist_templates.id", ondelete="CASCADE"), nullable=False)
    item_key = Column(String(64), nullable=False)

    title = Column(String(200), nullable=False)
    description = Column(Text)
    kind = Column(String(20), nullable=False)  # task, text, number, choice, yes_no, photo
    required = Column(Boolean, nullable=False, default=False)
    order = Column(Integer, nullable=False, default=0)

    # Ordered option labels, only used by "choice" items
    options = Column(JSON, nullable=False, default=list)

    template = relationship("ChecklistTemplate", back_populates="items")
