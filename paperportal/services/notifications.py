"""
Outbound notifications.

Delivery is fire-and-forget: a message that cannot be delivered is logged,
and the failure is never propagated to the caller.
"""

from typing import NamedTuple, Optional
from email.message import EmailMessage
import logging
import smtplib

from flask import Flask, current_app, g

logger = logging.getLogger(__name__)


class Message(NamedTuple):
    """A plain-text message to a single recipient."""

    to: str
    subject: str
    body: str
    sender: Optional[str] = None
    """If not set, the configured default sender is used."""


class Notifier(object):
    """Delivers :class:`.Message` instances over SMTP."""

    def __init__(self, host: str = '', port: int = 0,
                 sender: str = '', enabled: bool = True) -> None:
        self._host = host
        self._port = port
        self._sender = sender
        self._enabled = enabled

    def _new_connection(self) -> smtplib.SMTP:
        return smtplib.SMTP(host=self._host, port=self._port, timeout=10)

    def deliver(self, message: Message) -> None:
        """Send ``message``; log and swallow any delivery failure."""
        if not self._enabled:
            logger.info('Mail disabled; not sending "%s" to %s',
                        message.subject, message.to)
            logger.debug('Undelivered message body: %s', message.body)
            return
        email = EmailMessage()
        email['From'] = message.sender or self._sender
        email['To'] = message.to
        email['Subject'] = message.subject
        email.set_content(message.body)
        try:
            with self._new_connection() as conn:
                conn.send_message(email)
        except (smtplib.SMTPException, OSError):
            logger.exception('Could not deliver "%s" to %s',
                             message.subject, message.to)
            return
        logger.debug('Delivered "%s" to %s', message.subject, message.to)

    @classmethod
    def init_app(cls, app: Flask) -> None:
        """Set default configuration parameters for an application."""
        app.config.setdefault('MAIL_ENABLED', False)
        app.config.setdefault('MAIL_HOST', 'localhost')
        app.config.setdefault('MAIL_PORT', 25)
        app.config.setdefault('MAIL_SENDER', 'noreply@example.com')

    @classmethod
    def get_notifier(cls, app: Optional[Flask] = None) -> 'Notifier':
        """Get a new notifier for the configured mail service."""
        config = (app or current_app).config
        return cls(config['MAIL_HOST'], int(config['MAIL_PORT']),
                   config['MAIL_SENDER'], bool(config['MAIL_ENABLED']))

    @classmethod
    def current_notifier(cls) -> 'Notifier':
        """Get/create a :class:`.Notifier` for this context."""
        if 'notifier' not in g:
            g.notifier = cls.get_notifier()
        return g.notifier      # type: ignore


def deliver(message: Message) -> None:
    """Deliver a message with the notifier for this context."""
    Notifier.current_notifier().deliver(message)
