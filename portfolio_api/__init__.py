"""
Portfolio backend: client project requests, invoicing, blog, resume and
visitor tracking over a FastAPI JSON API.
"""
