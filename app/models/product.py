import uuid
from sqlalchemy import Column, Integer, String, Float, Text, DateTime, ForeignKey, JSON, func
from sqlalchemy.orm import relationship
from ..database import Base


class Product(Base):
    __tablename__ = "products"

    id = Column(String, primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    name = Column(String, nullable=False)
    description = Column(Text, default="")
    price = Column(Float, nullable=False)
    category = Column(String, index=True, nullable=False)
    sizes = Column(JSON, default=list)  # список доступных размеров
    colors = Column(JSON, default=list)  # список доступных цветов
    stock = Column(Integer, default=0, nullable=False)
    seller_id = Column(String, ForeignKey("users.id"), nullable=True, index=True)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    images = relationship(
        "ProductImage",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="ProductImage.position"
    )


class ProductImage(Base):
    __tablename__ = "product_images"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(String, ForeignKey("products.id", ondelete="CASCADE"), nullable=False)
    url = Column(String, nullable=False)
    alt = Column(String, nullable=True)
    position = Column(Integer, default=0)

    product = relationship("Product", back_populates="images")
