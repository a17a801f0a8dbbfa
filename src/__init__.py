"""Invoice Layout Engine.

Deterministic field extraction for Turkish e-invoices: positioned OCR
fragments are clustered into rows, split into page zones and columns,
and read by zone-scoped heuristics, vendor profiles and an arithmetic
self-healing pass into a scored invoice record.
"""
