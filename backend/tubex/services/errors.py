"""Domain exceptions raised by the access and settings services.

Each carries an HTTP status so the app-wide error handler can render it with the
standard {"error": {...}} shape without routes catching them individually.
"""
from __future__ import annotations


class TubexError(Exception):
    status_code = 400
    title = 'Bad Request'

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class InvalidSectionError(TubexError):
    status_code = 400
    title = 'Bad Request'


class SettingsPermissionError(TubexError):
    status_code = 403
    title = 'Forbidden'


class StaleSettingsError(TubexError):
    status_code = 409
    title = 'Conflict'


__all__ = ['TubexError', 'InvalidSectionError', 'SettingsPermissionError', 'StaleSettingsError']
