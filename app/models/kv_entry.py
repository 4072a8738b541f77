"""
Key-value entry model backing local demo mode
"""

from datetime import datetime
from sqlalchemy import Column, String, Text, DateTime

from app.core.db import Base

class KeyValueEntry(Base):
    __tablename__ = "kv_entries"
    
    key = Column(String(100), primary_key=True)
    value = Column(Text, nullable=False)  # whole JSON document
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
