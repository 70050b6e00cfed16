"""
Admin order notifications

Each new order is mailed to the shop's own mailbox. Sending happens in a
background task after the response is sent; failures are retried a few times,
then written to the failed_notification collection. Nothing here ever raises
into the request that created the order.
"""
import logging
import smtplib
import ssl
import time
from email.message import EmailMessage
from html import escape
from typing import Callable, Optional

from config import Settings
from schemas import ONLINE_PAYMENT, FailedNotification

logger = logging.getLogger(__name__)

CURRENCY = "৳"


def _money(value) -> str:
    return f"{CURRENCY}{(value or 0):,.0f}"


def render_order_email(order: dict) -> str:
    items = order.get("cart_items") or []
    subtotal = sum((item.get("price") or 0) * (item.get("quantity") or 0) for item in items)
    payment = "Online Advance" if order.get("payment_method") == ONLINE_PAYMENT else "COD"
    code = escape(str(order.get("order_id")))

    rows = "".join(
        f"""
    <tr>
      <td style="padding: 12px; border-bottom: 1px solid #eee;"><img src="{escape(str(item.get('image') or ''))}" width="50" style="border-radius: 4px;" /></td>
      <td style="padding: 12px; border-bottom: 1px solid #eee;">
        <div style="font-weight: bold; font-size: 14px;">{escape(str(item.get('name') or ''))}</div>
        <div style="font-size: 12px; color: #666;">Size: {escape(str(item.get('size') or '-'))} | Qty: {item.get('quantity')}</div>
      </td>
      <td style="padding: 12px; border-bottom: 1px solid #eee; text-align: right; font-weight: bold;">{_money((item.get('price') or 0) * (item.get('quantity') or 0))}</td>
    </tr>"""
        for item in items
    )

    note = order.get("note")
    note_html = f'<strong>Note:</strong> <i style="color: #666;">{escape(note)}</i>' if note else ""

    return f"""<div style="font-family: sans-serif; max-width: 600px; margin: auto; border: 1px solid #eee; border-radius: 12px; overflow: hidden;">
  <div style="background: #db2777; padding: 20px; color: white; text-align: center;">
    <h1 style="margin:0;">New Order!</h1>
    <p style="margin:5px 0 0 0; opacity: 0.8;">ID: #{code}</p>
  </div>
  <div style="padding: 20px;">
    <h3 style="color: #db2777; border-bottom: 1px solid #eee; padding-bottom: 10px;">Customer Details</h3>
    <p style="line-height: 1.6;">
      <strong>Name:</strong> {escape(str(order.get('first_name') or ''))}<br>
      <strong>Phone:</strong> {escape(str(order.get('phone') or ''))}<br>
      <strong>Address:</strong> {escape(str(order.get('address') or ''))}<br>
      <strong>City/District:</strong> {escape(order.get('city') or 'N/A')}<br>
      <strong>Payment:</strong> {payment}<br>
      {note_html}
    </p>
    <h3 style="color: #db2777; border-bottom: 1px solid #eee; padding-bottom: 10px; margin-top: 20px;">Order Items</h3>
    <table width="100%" cellspacing="0" cellpadding="0">{rows}</table>
    <div style="text-align: right; padding: 20px; background: #fdf2f8; margin-top: 20px; border-radius: 8px;">
      <div style="margin-bottom: 5px; color: #666; font-size: 14px;">Subtotal: {_money(subtotal)}</div>
      <div style="margin-bottom: 10px; color: #666; font-size: 14px;">Delivery Charge: {_money(order.get('shipping_charge'))}</div>
      <div style="font-size: 18px; font-weight: bold; color: #db2777; border-top: 1px solid #f9a8d4; margin-top: 5px;">Total Payable: {_money(order.get('total'))}</div>
    </div>
  </div>
  <div style="background: #f9f9f9; padding: 15px; text-align: center; color: #999; font-size: 12px;">Order Desk</div>
</div>"""


def build_order_message(order: dict, sender: str) -> EmailMessage:
    message = EmailMessage()
    message["From"] = f'"Order Desk" <{sender}>'
    message["To"] = sender
    message["Subject"] = f"New Order #{order.get('order_id')}"
    message["X-Priority"] = "1"
    message["Importance"] = "high"
    message.set_content(f"New order #{order.get('order_id')} received. View it in an HTML-capable client.")
    message.add_alternative(render_order_email(order), subtype="html")
    return message


class SmtpMailer:
    def __init__(self, host: str, port: int, user: str, password: str, timeout: float = 20):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.timeout = timeout

    def send(self, message: EmailMessage) -> None:
        context = ssl.create_default_context()
        with smtplib.SMTP_SSL(self.host, self.port, context=context, timeout=self.timeout) as smtp:
            smtp.login(self.user, self.password)
            smtp.send_message(message)


def mailer_from_settings(settings: Settings) -> Optional[SmtpMailer]:
    if not settings.mail_enabled:
        return None
    return SmtpMailer(settings.smtp_host, settings.smtp_port, settings.mail_user, settings.mail_password)


def notify_admin_of_order(
    order: dict,
    settings: Settings,
    store=None,
    mailer=None,
    sleep: Callable[[float], None] = time.sleep,
) -> bool:
    """Background task body. Returns True when the mail went out."""
    mailer = mailer or mailer_from_settings(settings)
    if mailer is None:
        logger.info("Mail credentials not configured, skipping notification for order %s", order.get("order_id"))
        return False

    message = build_order_message(order, settings.mail_user)
    last_error = None
    for attempt in range(1, settings.notify_max_attempts + 1):
        try:
            mailer.send(message)
            logger.info("Notification sent for order %s", order.get("order_id"))
            return True
        except (smtplib.SMTPException, OSError) as e:
            last_error = e
            logger.warning(
                "Notification for order %s failed (attempt %d/%d): %s",
                order.get("order_id"), attempt, settings.notify_max_attempts, e,
            )
            if attempt < settings.notify_max_attempts:
                sleep(settings.notify_retry_delay)

    logger.error("Giving up on notification for order %s: %s", order.get("order_id"), last_error)
    if store is not None:
        try:
            store.record_failed_notification(FailedNotification(
                order_id=order.get("order_id"),
                error=str(last_error),
                attempts=settings.notify_max_attempts,
            ))
        except Exception:
            logger.exception("Could not record failed notification for order %s", order.get("order_id"))
    return False
