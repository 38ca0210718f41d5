"""
Customers module.

- Customers CRUD over HTML forms (list + add + detail + edit + delete)
- Free-form field mapping per customer (no fixed schema)
- Keyset pagination with opaque page tokens
"""
