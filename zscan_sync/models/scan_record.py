from sqlalchemy import Column, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from zscan_sync.database import Base


class ScanRecord(Base):
    """
    One ISBN scan.

    Invariants:
    - (dataset_id, sequence) is unique
    - sequence never changes once assigned
    - rows are never deleted; cancel_flag=1 marks a logical delete
    """

    __tablename__ = "zscan"

    id = Column("zscanid", Integer, primary_key=True)
    dataset_id = Column("zsetid", Integer, ForeignKey("zset.zsetid"), nullable=False)
    sequence = Column("zscanseq", Integer, nullable=False)
    isbn = Column("zscanisbn", String(13), nullable=False)
    timestamp = Column("zscantime", Integer, nullable=False)  # minutes since epoch
    cancel_flag = Column("zscancflag", Integer, nullable=False, default=0)

    dataset = relationship("Dataset", back_populates="records")

    __table_args__ = (
        UniqueConstraint("zsetid", "zscanseq", name="uq_zscan_set_seq"),
    )
