"""Customs Declaration Scanner.

Extracts tariff codes and item descriptions from printed customs
declaration forms using noisy per-frame OCR, and stabilizes the
resulting stream into confident, de-duplicated auto-commit events.
"""

__version__ = "1.0.0"
