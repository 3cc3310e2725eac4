"""Phishing assessment & incident risk engine."""
