"""
Marketplace storefront: FastAPI front end over the catalog engine.
"""
