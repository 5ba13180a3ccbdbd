"""
Notifications module.
Contains the order email adapters and their templates.
"""

from storefront_mail.notifications.service import EmailNotificationService
from storefront_mail.notifications.templates import TemplateRenderer

__all__ = ["EmailNotificationService", "TemplateRenderer"]
