"""
HTML email templates.

One jinja2 template per message type, rendered with autoescaping so customer
supplied fields cannot inject markup.
"""

from typing import Any

from jinja2 import DictLoader, Environment, StrictUndefined, select_autoescape

from storefront_mail.constants import MessageType
from storefront_mail.types.order import OrderRecord

_BASE = """<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{% block title %}{% endblock %}</title>
  <style>
    body { font-family: Arial, sans-serif; line-height: 1.6; color: #333; margin: 0; padding: 0; }
    .container { max-width: 600px; margin: 0 auto; padding: 20px; }
    .header { background: {{ accent }}; color: white; padding: 24px; text-align: center; border-radius: 10px 10px 0 0; }
    .content { background: #f9fafb; padding: 25px; border-radius: 0 0 10px 10px; }
    .panel { background: white; padding: 20px; border-radius: 8px; margin: 15px 0; border-left: 4px solid {{ accent }}; }
    .highlight { color: {{ accent }}; font-weight: bold; }
    .button { display: inline-block; background: {{ accent }}; color: white; padding: 10px 20px; text-decoration: none; border-radius: 5px; }
    .footer { text-align: center; margin-top: 20px; color: #666; font-size: 14px; }
  </style>
</head>
<body>
  <div class="container">
    <div class="header">{% block header %}{% endblock %}</div>
    <div class="content">{% block content %}{% endblock %}</div>
    <div class="footer">{% block footer %}<p>{{ store_name }}</p>{% endblock %}</div>
  </div>
</body>
</html>
"""

_MACROS = """
{% macro address_block(address) -%}
<div class="panel">
  <h3>Shipping Address</h3>
  <p>{{ address.street or "Not provided" }}<br>
  {{ address.city or "Not provided" }}, {{ address.state or "Not provided" }}<br>
  {{ address.pincode or "Not provided" }}, {{ address.country }}</p>
</div>
{%- endmacro %}

{% macro product_block(order, currency) -%}
<div class="panel">
  <h3>Product Details</h3>
  <p><strong>Product:</strong> {{ order.product.name }}</p>
  <p><strong>Quantity:</strong> {{ order.product.quantity }}</p>
  <p><strong>Unit price:</strong> {{ currency }}{{ order.product.price }}</p>
  {% if order.product.discount > 0 %}<p><strong>Discount:</strong> {{ "%g" | format(order.product.discount) }}% OFF</p>{% endif %}
  <p><strong>Total Amount:</strong> <span class="highlight">{{ currency }}{{ order.total_amount }}</span></p>
</div>
{%- endmacro %}
"""

_CUSTOMER_CONFIRMATION = """{% extends "base.html" %}
{% from "macros.html" import address_block, product_block %}
{% block title %}Order Confirmation{% endblock %}
{% block header %}<h1>Order Confirmed!</h1><p>Thank you for shopping with {{ store_name }}</p>{% endblock %}
{% block content %}
<h2>Hello {{ order.customer.name }},</h2>
<p>Your order has been placed and confirmed.</p>
<div class="panel">
  <h3>Order Details</h3>
  <p><strong>Order ID:</strong> <span class="highlight">{{ order.order_id }}</span></p>
  <p><strong>Order Date:</strong> {{ order.formatted_order_date }}</p>
  <p><strong>Status:</strong> <span class="highlight">{{ order.status | upper }}</span></p>
</div>
{{ product_block(order, currency) }}
{{ address_block(order.customer.address) }}
<p>We'll send you another email with tracking information once your order ships.</p>
{% endblock %}
{% block footer %}<p>Thank you for choosing {{ store_name }}!</p><p>Questions? Contact us at {{ support_email }}</p>{% endblock %}
"""

_ADMIN_NOTIFICATION = """{% extends "base.html" %}
{% from "macros.html" import address_block, product_block %}
{% block title %}New Order Notification{% endblock %}
{% block header %}<h1>New Order Received</h1><p>A new order has been placed and requires your attention</p>{% endblock %}
{% block content %}
<div class="panel">
  <h3>Order Information</h3>
  <p><strong>Order ID:</strong> <span class="highlight">{{ order.order_id }}</span></p>
  <p><strong>Order Date:</strong> {{ order.formatted_order_date }}</p>
  <p><strong>Status:</strong> <span class="highlight">{{ order.status | upper }}</span></p>
  <p><strong>Payment Method:</strong> {{ order.payment.method }}</p>
  <p><strong>Payment Status:</strong> {{ order.payment.status }}</p>
</div>
<div class="panel">
  <h3>Customer Details</h3>
  <p><strong>Name:</strong> {{ order.customer.name }}</p>
  <p><strong>Email:</strong> {{ order.customer.email }}</p>
  <p><strong>Phone:</strong> {{ order.customer.phone or "Not provided" }}</p>
</div>
{{ address_block(order.customer.address) }}
{{ product_block(order, currency) }}
<p style="text-align: center;"><a class="button" href="{{ dashboard_url }}/orders/{{ order.order_id }}">View Order Details</a></p>
{% endblock %}
{% block footer %}<p>This is an automated notification from {{ store_name }}</p>{% endblock %}
"""

_STATUS_UPDATE = """{% extends "base.html" %}
{% block title %}Order Status Update{% endblock %}
{% block header %}<h1>Order Status Update</h1><p>Order #{{ order.order_id }}</p>{% endblock %}
{% block content %}
<h2>Hello {{ order.customer.name }},</h2>
<div class="panel">
  <h3>Status Changed: <span class="highlight">{{ previous_status | upper }}</span> &rarr; <span class="highlight">{{ order.status | upper }}</span></h3>
  <p>{{ status_message }}</p>
</div>
<div class="panel">
  <p><strong>Order ID:</strong> {{ order.order_id }}</p>
  <p><strong>Product:</strong> {{ order.product.name }} &times; {{ order.product.quantity }}</p>
  <p><strong>Total Amount:</strong> {{ currency }}{{ order.total_amount }}</p>
</div>
{% endblock %}
{% block footer %}<p>Questions? Contact us at {{ support_email }}</p>{% endblock %}
"""

_ORDER_ALERT = """{% extends "base.html" %}
{% from "macros.html" import address_block %}
{% block title %}New Order Alert{% endblock %}
{% block header %}<h1>New Order Alert</h1><p>Order #{{ order.order_id }}</p>{% endblock %}
{% block content %}
<div class="panel">
  <h3>Immediate Action Required</h3>
  <p>A new order has been placed and requires processing.</p>
</div>
<div class="panel">
  <h3>Order Information</h3>
  <p><strong>Order ID:</strong> {{ order.order_id }}</p>
  <p><strong>Customer:</strong> {{ order.customer.name }}</p>
  <p><strong>Email:</strong> {{ order.customer.email }}</p>
  <p><strong>Phone:</strong> {{ order.customer.phone or "Not provided" }}</p>
  <p><strong>Amount:</strong> {{ currency }}{{ order.total_amount }}</p>
  <p><strong>Payment Method:</strong> {{ order.payment.method | upper }}</p>
  <p><strong>Payment Status:</strong> {{ order.payment.status | upper }}</p>
  <p><strong>Quantity:</strong> {{ order.product.quantity }}</p>
</div>
{{ address_block(order.customer.address) }}
{% if order.notes %}
<div class="panel">
  <h3>Customer Notes</h3>
  <p>{{ order.notes }}</p>
</div>
{% endif %}
<p><strong>Next Steps:</strong></p>
<ul>
  <li>Verify payment details</li>
  <li>Process order for shipping</li>
  <li>Update customer with tracking info</li>
</ul>
{% endblock %}
"""

STATUS_MESSAGES: dict[str, str] = {
    "confirmed": "Your order has been confirmed and is being prepared for shipment.",
    "processing": "Your order is currently being processed.",
    "shipped": "Great news! Your order has been shipped and is on its way to you.",
    "delivered": "Your order has been delivered. Enjoy!",
    "cancelled": "Your order has been cancelled. If this was unexpected, please contact us.",
}
DEFAULT_STATUS_MESSAGE = "Your order status has been updated."

# Template file name and header accent color per message type
TEMPLATES: dict[MessageType, tuple[str, str]] = {
    MessageType.CUSTOMER_CONFIRMATION: ("customer_confirmation.html", "#dc2626"),
    MessageType.ADMIN_NOTIFICATION: ("admin_notification.html", "#1e40af"),
    MessageType.STATUS_UPDATE: ("status_update.html", "#059669"),
    MessageType.ORDER_ALERT: ("order_alert.html", "#b91c1c"),
}

environment = Environment(
    loader=DictLoader(
        {
            "base.html": _BASE,
            "macros.html": _MACROS,
            "customer_confirmation.html": _CUSTOMER_CONFIRMATION,
            "admin_notification.html": _ADMIN_NOTIFICATION,
            "status_update.html": _STATUS_UPDATE,
            "order_alert.html": _ORDER_ALERT,
        }
    ),
    autoescape=select_autoescape(["html"]),
    undefined=StrictUndefined,
)


class TemplateRenderer:
    """Renders order emails with store-wide context."""

    def __init__(
        self,
        store_name: str,
        support_email: str,
        dashboard_url: str,
        currency: str = "₹",
    ):
        self.context: dict[str, Any] = {
            "store_name": store_name,
            "support_email": support_email,
            "dashboard_url": dashboard_url.rstrip("/"),
            "currency": currency,
        }

    def render(self, message_type: MessageType, order: OrderRecord, **extra: Any) -> str:
        """
        Render the template for a message type.

        Raises:
            KeyError: If the message type has no template.
        """
        name, accent = TEMPLATES[message_type]
        return environment.get_template(name).render(
            **self.context, accent=accent, order=order, **extra
        )

    def status_update(self, order: OrderRecord, previous_status: str) -> str:
        return self.render(
            MessageType.STATUS_UPDATE,
            order,
            previous_status=previous_status,
            status_message=STATUS_MESSAGES.get(order.status.lower(), DEFAULT_STATUS_MESSAGE),
        )
