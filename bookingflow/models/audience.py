"""
Ban list and mailing list models
"""

from sqlalchemy import Column, Date, String, Text, Uuid, ForeignKey

from bookingflow.models.base import BaseModel


class BannedParticipant(BaseModel):
    """
    Person who may not register for any event
    """
    __tablename__ = "banned_participants"

    first_name = Column(String(100), nullable=False, index=True)
    last_name = Column(String(100), nullable=False, index=True)
    date_of_birth = Column(Date, nullable=False)
    reason = Column(Text)


class MailingListSubscriber(BaseModel):
    """
    Contact who opted into marketing email during booking
    """
    __tablename__ = "mailing_list_subscribers"

    email = Column(String(255), unique=True, nullable=False, index=True)
    first_name = Column(String(100))
    last_name = Column(String(100))
    source_event_id = Column(Uuid(as_uuid=True), ForeignKey("events.id"))
