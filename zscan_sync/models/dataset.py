from sqlalchemy import Column, Integer, String, Text
from sqlalchemy.orm import relationship

from zscan_sync.database import Base


class Dataset(Base):
    """
    Dataset directory row.

    Legacy table/column names are kept so existing databases open unchanged.
    mode_field holds a single-character mode symbol or a passcode hash;
    decode it with DatasetMode.decode() before acting on it.
    """

    __tablename__ = "zset"

    id = Column("zsetid", Integer, primary_key=True)
    uid = Column("zsetuid", String(255), nullable=False, unique=True, index=True)
    mode_field = Column("zsetpwh", Text, nullable=False)

    # Relationships
    records = relationship("ScanRecord", back_populates="dataset")

    def __repr__(self) -> str:
        return f"<Dataset uid={self.uid!r}>"
