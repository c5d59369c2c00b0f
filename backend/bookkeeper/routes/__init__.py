"""
Book Keeper Backend - API Routes Package
=========================================

Route Inventory:
    - users.py:        /api/user/...               (register, login, profile)
    - books.py:        /api/book/...               (catalog)
    - categories.py:   /api/book/category/...      (catalog categories)
    - transactions.py: /api/transaction/...        (loan tickets)
    - health.py:       /, /health
    - deps.py:         bearer credential + access policy dependencies

Routes are thin: parse input, authorize, call one service method, wrap the
result in a response schema. Errors propagate to the global handlers.
"""
