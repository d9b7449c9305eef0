"""
Push notification service - Expo push gateway plus Firestore notification documents
"""
import logging
import os
from dataclasses import dataclass
from typing import Optional, Dict, Any

import httpx

from .constants import (
    EXPO_PUSH_URL,
    NOTIFICATION_RETURN_DECISION,
    NOTIFICATION_RETURN_REQUEST,
    STATUS_APPROVED,
)
from .firebase_service import firestore_service

logger = logging.getLogger("smartreturn")


@dataclass
class PushResult:
    """Result of a push notification attempt"""
    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None
    error_code: Optional[str] = None


class ExpoPushService:
    """
    Expo push gateway client.
    One POST per message, no delivery receipts, no retry.
    """

    def __init__(self):
        self.url = EXPO_PUSH_URL
        self.access_token = os.environ.get("EXPO_ACCESS_TOKEN")

    def _headers(self) -> Dict[str, str]:
        headers = {
            "Accept": "application/json",
            "Accept-Encoding": "gzip, deflate",
            "Content-Type": "application/json",
        }
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"
        return headers

    async def send_push(
        self,
        push_token: str,
        title: str,
        body: str,
        data: Optional[Dict[str, Any]] = None
    ) -> PushResult:
        """
        Send a single push message through Expo.

        Returns:
            PushResult; success means Expo accepted the ticket, not that the
            device received it.
        """
        message = {
            "to": push_token,
            "sound": "default",
            "title": title,
            "body": body,
            "data": data or {},
        }

        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    self.url,
                    headers=self._headers(),
                    json=message,
                    timeout=30.0
                )
        except httpx.TimeoutException:
            logger.error("[EXPO] Push timeout")
            return PushResult(success=False, error="Request timeout", error_code="timeout")
        except httpx.HTTPError as e:
            logger.error(f"[EXPO] Push exception: {e}")
            return PushResult(success=False, error=str(e), error_code="exception")

        if response.status_code != 200:
            logger.error(f"[EXPO] Push failed: {response.status_code} - {response.text}")
            return PushResult(
                success=False,
                error=response.text or "Unknown error",
                error_code=str(response.status_code)
            )

        try:
            ticket = response.json().get("data") or {}
        except ValueError:
            ticket = {}
        if isinstance(ticket, list):
            ticket = ticket[0] if ticket else {}

        if ticket.get("status") == "error":
            details = ticket.get("details") or {}
            logger.warning(f"[EXPO] Ticket error: {ticket.get('message')}")
            return PushResult(
                success=False,
                error=ticket.get("message"),
                error_code=details.get("error", "ticket_error")
            )

        logger.info(f"[EXPO] Push accepted: {ticket.get('id')}")
        return PushResult(success=True, message_id=ticket.get("id"))


class NotificationService:
    """
    Fans a message out to the recipient's device and their notification inbox.
    Failures are logged, never raised.
    """

    def __init__(self, store=None):
        self.expo = ExpoPushService()
        self._store = store

    @property
    def store(self):
        return self._store or firestore_service

    async def send_notification(
        self,
        user_id: str,
        title: str,
        body: str,
        data: Optional[Dict[str, Any]] = None
    ) -> Optional[PushResult]:
        logger.info(f"[NOTIFY] Sending to {user_id}: {title}")
        data = data or {}

        try:
            push_token = self.store.get_push_token(user_id)
            if not push_token:
                logger.info(f"[NOTIFY] Push token not found for {user_id}")
                return None

            result = await self.expo.send_push(push_token, title, body, data)
            if not result.success:
                logger.warning(f"[NOTIFY] Push failed for {user_id}: {result.error}")

            self.store.add_notification(user_id, title, body, data)
            return result
        except Exception as e:
            logger.error(f"[NOTIFY] Notification could not be sent: {e}")
            return None

    async def send_notification_by_email(
        self,
        email: str,
        title: str,
        body: str,
        data: Optional[Dict[str, Any]] = None
    ) -> Optional[PushResult]:
        user = self.store.find_user_by_email(email)
        if not user:
            logger.info(f"[NOTIFY] User not found for {email}")
            return None
        return await self.send_notification(user["id"], title, body, data)

    async def send_return_request_notification(
        self,
        seller_email: str,
        buyer_name: str,
        product_name: str
    ) -> Optional[PushResult]:
        """Tell the seller a buyer asked to return one of their products."""
        title = "New Return Request"
        body = f"Customer {buyer_name} has requested a return for {product_name} product."
        return await self.send_notification_by_email(seller_email, title, body, {
            "type": NOTIFICATION_RETURN_REQUEST,
            "productName": product_name,
            "buyerName": buyer_name,
        })

    async def send_return_decision_notification(
        self,
        buyer_email: str,
        product_name: str,
        decision: str
    ) -> Optional[PushResult]:
        """Tell the buyer their return was approved or rejected."""
        if decision == STATUS_APPROVED:
            title = "Your Return Request Approved"
            body = f"Your return request for {product_name} product has been approved."
        else:
            title = "Your Return Request Rejected"
            body = f"Your return request for {product_name} product has been rejected."

        return await self.send_notification_by_email(buyer_email, title, body, {
            "type": NOTIFICATION_RETURN_DECISION,
            "productName": product_name,
            "decision": decision,
        })


# Singleton instance
notification_service = NotificationService()
