from sqlalchemy import BigInteger, DateTime, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column
from sellerhub.models.base import Base

class SellerAccount(Base):
    __tablename__ = "seller_accounts"

    # seller_id, если маркетплейс его отдал, иначе имя аккаунта
    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    seller_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    account: Mapped[str | None] = mapped_column(String(256), nullable=True)
    country: Mapped[str | None] = mapped_column(String(16), nullable=True)

    # tokens (refresh хранится ЗАШИФРОВАННЫМ)
    access_token: Mapped[str] = mapped_column(Text, nullable=False)
    refresh_token_enc: Mapped[str | None] = mapped_column(Text, nullable=True)
    expires_in: Mapped[int] = mapped_column(Integer, nullable=False)
    token_expires_at: Mapped[int] = mapped_column(BigInteger, nullable=False)  # epoch ms

    # порядок вставки, при перезаписи не меняется
    position: Mapped[int] = mapped_column(Integer, nullable=False)

    added_at: Mapped[DateTime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[DateTime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class StoreState(Base):
    __tablename__ = "store_state"

    key: Mapped[str] = mapped_column(String(64), primary_key=True)
    value: Mapped[str | None] = mapped_column(Text, nullable=True)
