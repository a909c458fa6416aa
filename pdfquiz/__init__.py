"""
PDF Quiz Pipeline
=================
Turns uploaded PDF documents into normalized text sections and
step-by-step quiz widgets.

Architecture:
    - Text Extractor: Pulls embedded text + metadata from PDF bytes (PyMuPDF)
    - OCR Fallback: Decides when embedded text is unusable and runs Tesseract
    - Normalizer: Splits flat text into ordered, display-ready sections
    - Lesson Validator: Strictly validates generated lesson plans
    - Widget Projector: Derives the initial quiz widget state from a plan

Version: 1.0.0
"""

__version__ = "1.0.0"
