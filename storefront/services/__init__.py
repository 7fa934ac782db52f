"""
services/ — Storefront features bound to the orchestrator

cart_service     CartAPI + CartService (["cart"])
cart_items       per-line busy tracking for update/remove
cart_totals      subtotal/shipping/tax/total and price formatting
auth_service     AuthAPI + AuthService (session lifecycle, ["auth", "me"])
catalog_service  products, categories, reviews
user_service     /users admin CRUD
"""
