"""
Storefront email package.

Modules:
- core: Base send_email function (SMTP)
- orders: payment confirmation / rejection emails for store orders
"""
