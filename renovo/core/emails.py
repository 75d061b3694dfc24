"""Outbound email helpers"""
import logging

from django.conf import settings
from django.core.mail import EmailMultiAlternatives
from django.template.loader import render_to_string

logger = logging.getLogger(__name__)


def build_app_url(path):
    """Absolute link into the web app, e.g. for portal tokens in emails"""
    base_url = getattr(settings, 'APP_BASE_URL', 'http://localhost:3000').rstrip('/')
    return f"{base_url}/{path.lstrip('/')}"


def send_templated_email(subject, to, template_name, context, reply_to=None):
    """
    Render ``<template_name>.txt`` and ``<template_name>.html`` and send them
    as one multipart message. Errors from the mail backend propagate.
    """
    recipients = [to] if isinstance(to, str) else list(to)
    text_body = render_to_string(f'{template_name}.txt', context)
    html_body = render_to_string(f'{template_name}.html', context)

    message = EmailMultiAlternatives(
        subject=subject,
        body=text_body,
        from_email=settings.DEFAULT_FROM_EMAIL,
        to=recipients,
        reply_to=[reply_to] if reply_to else None,
    )
    message.attach_alternative(html_body, 'text/html')
    message.send()
    logger.info(f"Sent '{subject}' to {', '.join(recipients)}")
    return True
