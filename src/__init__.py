"""Cédula Reader.

Incrementally reconstructs the fields of a Costa Rican national ID card
from a stream of noisy OCR snapshots taken from live video frames,
tracking completeness until every field has been detected.
"""
