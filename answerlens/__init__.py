"""
AnswerLens: capture a photo, crop it, send the crop to an analysis
service and browse past answers.
"""

__version__ = "0.1.0"
