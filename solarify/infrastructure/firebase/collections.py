"""Firestore collection names (schema-in-code).

Firestore has no DDL or migrations. Collections are created automatically
when you first write a document. Use these constants so collection names
stay consistent and act as the single source of truth for the "schema".
"""

# Marketplace
COLLECTION_USERS = "users"
COLLECTION_RFQS = "rfqs"
COLLECTION_QUOTES = "quotes"
COLLECTION_PRODUCTS = "products"
COLLECTION_ORDERS = "orders"
COLLECTION_REVIEWS = "reviews"
COLLECTION_PROMOTIONS = "promotions"
COLLECTION_NOTIFICATIONS = "notifications"

# Solar billing
COLLECTION_BILLING_CYCLES = "billing_cycles"
COLLECTION_BILLING_HISTORY = "billing_history"

# Realtime Database nodes
RTDB_CONTACT_MESSAGES = "contactMessages"
