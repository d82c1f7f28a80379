"""
Email Service with SendGrid Integration
Handles booking notifications that need a human in the loop
"""

from typing import Dict, Optional
import logging

from jinja2 import Template
from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from bookingflow.config import settings
from bookingflow.core.exceptions import NotFoundError
from bookingflow.models.booking import Booking
from bookingflow.services.booking_store import to_uuid

logger = logging.getLogger(__name__)


class EmailService:
    """Service for handling email operations"""

    def __init__(self, client: Optional[SendGridAPIClient] = None):
        self.client = client or SendGridAPIClient(settings.SENDGRID_API_KEY)
        self.from_email = (settings.FROM_EMAIL, settings.FROM_NAME)
        self.templates = self._load_templates()

    def _load_templates(self) -> Dict[str, Template]:
        """Load email templates"""
        return {
            "whitelisted_booking": Template("""
                <!DOCTYPE html>
                <html>
                <body style="font-family: Arial, sans-serif; line-height: 1.6;">
                    <h2>Hi {{ contact_name }},</h2>
                    <p>{{ event_title }} is currently full, so your booking has been added to the whitelist.</p>
                    <p>We will contact you if a place becomes available. You have not been charged.</p>
                    <p><strong>Booking ID:</strong> {{ booking_id }}<br>
                       <strong>Participants:</strong> {{ participants | join(", ") }}</p>
                    <p><a href="{{ booking_url }}">View your booking</a></p>
                </body>
                </html>
            """),

            "conditional_free_request": Template("""
                <!DOCTYPE html>
                <html>
                <body style="font-family: Arial, sans-serif; line-height: 1.6;">
                    <h2>New free entry request for {{ event_title }}</h2>
                    <p>{{ contact_name }} ({{ contact_email }}) requested conditional free entry
                       for {{ quantity }} participant{% if quantity != 1 %}s{% endif %}:</p>
                    <ul>
                    {% for name in participants %}
                        <li>{{ name }}</li>
                    {% endfor %}
                    </ul>
                    <p><a href="{{ review_url }}">Review the request</a></p>
                </body>
                </html>
            """),
        }

    async def send_email(
        self,
        to_email: str,
        subject: str,
        template_name: str,
        context: Dict
    ) -> bool:
        """Send an email using SendGrid"""
        try:
            template = self.templates.get(template_name)
            if not template:
                logger.error(f"Template {template_name} not found")
                return False

            message = Mail(
                from_email=self.from_email,
                to_emails=to_email,
                subject=subject,
                html_content=template.render(**context)
            )

            response = self.client.send(message)

            logger.info(f"Email {template_name} sent to {to_email}: {response.status_code}")
            return response.status_code in [200, 201, 202]

        except Exception as e:
            logger.error(f"Error sending email: {str(e)}")
            return False

    @staticmethod
    async def _load_booking(db: AsyncSession, booking_id: str) -> Booking:
        result = await db.execute(
            select(Booking)
            .options(selectinload(Booking.event), selectinload(Booking.participants))
            .where(Booking.id == to_uuid(booking_id, "Booking"))
        )
        booking = result.scalar_one_or_none()
        if booking is None:
            raise NotFoundError("Booking", booking_id)
        return booking

    @staticmethod
    def _booking_context(booking: Booking) -> Dict:
        contact_name = " ".join(
            part for part in (booking.contact_first_name, booking.contact_last_name) if part
        )
        return {
            "booking_id": str(booking.id),
            "event_title": booking.event.title,
            "contact_name": contact_name or "there",
            "contact_email": booking.contact_email,
            "quantity": booking.quantity,
            "participants": [f"{p.first_name} {p.last_name}" for p in booking.participants],
        }

    async def send_whitelisted_booking(self, db: AsyncSession, booking_id: str) -> bool:
        """Tell the booker their booking is on the whitelist"""
        booking = await self._load_booking(db, booking_id)
        if not booking.contact_email:
            logger.warning(f"Booking {booking_id} has no contact email, skipping whitelist email")
            return False
        context = self._booking_context(booking)
        context["booking_url"] = f"{settings.FRONTEND_URL}/dashboard/bookings/{booking_id}"
        return await self.send_email(
            to_email=booking.contact_email,
            subject=f"You're on the whitelist - {booking.event.title}",
            template_name="whitelisted_booking",
            context=context
        )

    async def send_conditional_free_request(self, db: AsyncSession, booking_id: str) -> bool:
        """Ask the organizer to approve a conditional free entry"""
        booking = await self._load_booking(db, booking_id)
        organizer_email = booking.event.organizer_email
        if not organizer_email:
            logger.warning(f"Event {booking.event_id} has no organizer email, skipping approval request")
            return False
        context = self._booking_context(booking)
        context["review_url"] = f"{settings.FRONTEND_URL}/organizer/events/{booking.event_id}/bookings"
        return await self.send_email(
            to_email=organizer_email,
            subject=f"Free entry approval requested - {booking.event.title}",
            template_name="conditional_free_request",
            context=context
        )


# Initialize global email service
email_service = EmailService()
