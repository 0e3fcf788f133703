from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from .base import Base

# ✅ Modèle Category (arbre auto-référencé via parent_id)
class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(64), nullable=False)
    slug = Column(String(96), unique=True, nullable=False, index=True)
    description = Column(Text, nullable=True)

    # Référence vers la catégorie parente (NULL pour une racine)
    parent_id = Column(Integer, ForeignKey("categories.id"), nullable=True, index=True)

    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))  # Toujours stocké en UTC
    updated_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    # Relation avec les produits (pas de cascade : la suppression est bloquée tant qu'il en reste)
    products = relationship("Product", back_populates="category")

    def __repr__(self):
        return f"<Category(id={self.id}, slug={self.slug}, parent_id={self.parent_id})>"
