"""Doorman: scripted IVR call trees over Twilio webhooks."""

__version__ = "0.1.0"
