"""Gatekeeper — Telegram notifications and decisions for gateway exec approvals."""
