# bistro/services/mailer.py
"""
Outbound mail through the Resend HTTP API.

Called after a booking/order is persisted. Delivery is fire-and-forget:
errors are logged and never reach the caller, so a mail failure cannot
undo or block an accepted booking or order.
"""

import logging
from typing import Optional

import httpx

from ..config import settings

logger = logging.getLogger(__name__)

MAIL_TIMEOUT = 10.0


class Mailer:
    def __init__(
        self,
        api_key: Optional[str] = None,
        from_email: Optional[str] = None,
        reply_to: Optional[str] = None,
        api_url: Optional[str] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.api_key = api_key
        self.from_email = from_email or settings.resend_from_email
        self.reply_to = reply_to
        self.api_url = api_url or settings.resend_api_url
        self.transport = transport

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    def send(self, to: Optional[str], subject: str, text: str) -> bool:
        """Send one message. Returns False on any failure."""
        if not to:
            return False
        if not self.enabled:
            logger.debug(f"Mail disabled, skipping '{subject}' to {to}")
            return False

        payload = {
            "from": self.from_email,
            "to": [to],
            "subject": subject,
            "text": text,
        }
        if self.reply_to:
            payload["reply_to"] = self.reply_to

        try:
            with httpx.Client(timeout=MAIL_TIMEOUT, transport=self.transport) as client:
                resp = client.post(
                    self.api_url,
                    json=payload,
                    headers={"Authorization": f"Bearer {self.api_key}"},
                )
            if resp.status_code >= 400:
                logger.error(f"Resend error {resp.status_code}: {resp.text}")
                return False
        except httpx.HTTPError as e:
            logger.error(f"Email send failed: {e}")
            return False

        logger.info(f"Email sent: '{subject}' to {to}")
        return True

    # ── Reservation mail ─────────────────────────────────────────────────

    def reservation_received(self, reservation) -> bool:
        if reservation.status == "confirmed":
            return self.reservation_confirmed(reservation)
        return self.send(
            reservation.customer_email,
            "We received your reservation request",
            f"Hello {reservation.customer_name},\n\n"
            f"we received your request for {reservation.party_size} guests on "
            f"{reservation.reservation_date} at {reservation.reservation_time}. "
            f"You will get another email once it is confirmed.",
        )

    def reservation_confirmed(self, reservation) -> bool:
        return self.send(
            reservation.customer_email,
            "Your reservation is confirmed",
            f"Hello {reservation.customer_name},\n\n"
            f"your table for {reservation.party_size} on {reservation.reservation_date} "
            f"at {reservation.reservation_time} is confirmed."
            + (f"\n\nYour requests: {reservation.special_requests}" if reservation.special_requests else ""),
        )

    def reservation_declined(self, reservation, reason: Optional[str] = None) -> bool:
        return self.send(
            reservation.customer_email,
            "Update about your reservation request",
            f"Hello {reservation.customer_name},\n\n"
            f"unfortunately we cannot host your party of {reservation.party_size} on "
            f"{reservation.reservation_date} at {reservation.reservation_time}."
            + (f"\n\nReason: {reason}" if reason else ""),
        )

    # ── Order mail ───────────────────────────────────────────────────────

    def order_confirmation(self, order, priced) -> bool:
        lines = "\n".join(
            f"  {line.quantity} x {line.name}  {line.line_total:.2f}" for line in priced.lines
        )
        return self.send(
            order.customer_email,
            f"Order #{order.id} received",
            f"Hello {order.customer_name},\n\nthank you for your {order.order_type} order.\n\n"
            f"{lines}\n\nSubtotal: {priced.subtotal}\nTax: {priced.tax}\nTotal: {priced.total}",
        )

    def order_status(self, order) -> bool:
        return self.send(
            order.customer_email,
            f"Order #{order.id} is {order.status}",
            f"Hello {order.customer_name},\n\nyour order #{order.id} is now {order.status}.",
        )


def build_mailer() -> Mailer:
    return Mailer(
        api_key=settings.resend_api_key,
        from_email=settings.resend_from_email,
        reply_to=settings.resend_reply_to,
        api_url=settings.resend_api_url,
    )
