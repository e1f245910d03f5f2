"""Feedback-driven learning signals: rated messages, rating statistics, daily summaries."""
