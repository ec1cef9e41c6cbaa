"""Notification subsystem.

Queues notifiable events, resolves subscribers from ``notify<method>``
relationships and delivers per method through plugin hooks or the
registered handlers (e-mail by default).
"""
